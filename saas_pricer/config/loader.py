"""
Pricing model configuration loading.

Reads a YAML pricing model (costs, tiers, scenarios, assumptions) and
validates it strictly. The calculation engine trusts its inputs, so this is
where malformed or negative values are rejected.
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from saas_pricer.core.costs import (
    DEFAULT_COST_RATES,
    CostCategory,
    CostRates,
    FixedCostItem,
    VariableCostItem,
    derive_cost_rates,
)
from saas_pricer.core.scenario import DEFAULT_SCENARIOS, Scenario
from saas_pricer.core.tiers import UNLIMITED, Tier, TierLimit, TierStatus
from saas_pricer.core.valuation import DEFAULT_CURRENCY

DEFAULT_UTILIZATION_RATE = 0.7
DEFAULT_MONTHLY_GROWTH_RATE = 0.05
DEFAULT_CUSTOMERS = 1000


@dataclass(frozen=True)
class PricingModel:
    """Complete, validated pricing model."""
    tiers: Tuple[Tier, ...]
    variable_costs: Tuple[VariableCostItem, ...] = ()
    fixed_costs: Tuple[FixedCostItem, ...] = ()
    scenarios: Tuple[Scenario, ...] = DEFAULT_SCENARIOS
    cost_rate_defaults: Mapping[CostCategory, float] = field(
        default_factory=lambda: dict(DEFAULT_COST_RATES)
    )
    currency: str = DEFAULT_CURRENCY
    utilization_rate: float = DEFAULT_UTILIZATION_RATE
    monthly_growth_rate: float = DEFAULT_MONTHLY_GROWTH_RATE
    estimated_cac: float = 0.0
    customers: int = DEFAULT_CUSTOMERS

    def __post_init__(self):
        """Validate model-wide assumptions."""
        if not 0 <= self.utilization_rate <= 1:
            raise ValueError("utilization_rate must be between 0 and 1")
        if self.monthly_growth_rate < 0:
            raise ValueError("monthly_growth_rate cannot be negative")
        if self.estimated_cac < 0:
            raise ValueError("estimated_cac cannot be negative")
        if self.customers < 0:
            raise ValueError("customers cannot be negative")

    def get_scenario(self, name: Optional[str] = None) -> Scenario:
        """Get a scenario by name (case-insensitive), the first one if no name.

        Raises:
            ValueError: If no scenario has that name
        """
        if name is None:
            return self.scenarios[0]
        for scenario in self.scenarios:
            if scenario.name.lower() == name.lower():
                return scenario
        available = [s.name for s in self.scenarios]
        raise ValueError(f"Unknown scenario: {name}. Available: {available}")

    def get_tier(self, tier_id: str) -> Tier:
        for tier in self.tiers:
            if tier.id == tier_id:
                return tier
        raise ValueError(f"Unknown tier: {tier_id}")

    def cost_rates(self) -> CostRates:
        return derive_cost_rates(self.variable_costs, self.cost_rate_defaults)

    def free_tier_ids(self) -> Tuple[str, ...]:
        """Ids of tiers that earn nothing (priced at 0)."""
        return tuple(tier.id for tier in self.tiers if tier.monthly_price <= 0)


_ALLOWED_TOP_KEYS = {
    'currency', 'utilization_rate', 'monthly_growth_rate', 'estimated_cac',
    'customers', 'cost_rate_defaults', 'variable_costs', 'fixed_costs',
    'tiers', 'scenarios'
}


def load_pricing_model(path: str) -> PricingModel:
    """Load and validate a pricing model from a YAML file.

    Args:
        path: Path to YAML pricing model

    Returns:
        Validated PricingModel

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If the model is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Pricing model file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in pricing model {path}: {e}")

    if not raw_config:
        raise ValueError("Pricing model file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Pricing model must be a dictionary")

    return parse_pricing_model(raw_config)


def parse_pricing_model(raw_config: Dict[str, Any]) -> PricingModel:
    """Validate an already-parsed pricing model mapping."""
    unknown_keys = set(raw_config.keys()) - _ALLOWED_TOP_KEYS
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    if 'tiers' not in raw_config:
        raise ValueError("Missing required 'tiers' section")

    tiers = tuple(
        _parse_tier(data, f"tiers[{i}]")
        for i, data in enumerate(_require_list(raw_config['tiers'], 'tiers'))
    )
    if not tiers:
        raise ValueError("'tiers' must contain at least one tier")
    tier_ids = [tier.id for tier in tiers]
    if len(set(tier_ids)) != len(tier_ids):
        raise ValueError(f"Duplicate tier ids in 'tiers': {tier_ids}")

    variable_costs = tuple(
        _parse_variable_cost(data, f"variable_costs[{i}]")
        for i, data in enumerate(_require_list(raw_config.get('variable_costs', []), 'variable_costs'))
    )
    fixed_costs = tuple(
        _parse_fixed_cost(data, f"fixed_costs[{i}]")
        for i, data in enumerate(_require_list(raw_config.get('fixed_costs', []), 'fixed_costs'))
    )

    if 'scenarios' in raw_config:
        scenarios = tuple(
            _parse_scenario(data, f"scenarios[{i}]")
            for i, data in enumerate(_require_list(raw_config['scenarios'], 'scenarios'))
        )
        if not scenarios:
            raise ValueError("'scenarios' must contain at least one scenario")
        for i, scenario in enumerate(scenarios):
            unknown_tier_ids = set(scenario.distribution) - set(tier_ids)
            if unknown_tier_ids:
                raise ValueError(
                    f"Unknown tier ids in scenarios[{i}].distribution: {unknown_tier_ids}"
                )
    else:
        scenarios = DEFAULT_SCENARIOS

    cost_rate_defaults = dict(DEFAULT_COST_RATES)
    if 'cost_rate_defaults' in raw_config:
        cost_rate_defaults = _parse_cost_rate_defaults(raw_config['cost_rate_defaults'])

    currency = raw_config.get('currency', DEFAULT_CURRENCY)
    if not isinstance(currency, str) or not currency.strip():
        raise ValueError("'currency' must be a non-empty string")

    customers = raw_config.get('customers', DEFAULT_CUSTOMERS)
    if isinstance(customers, bool) or not isinstance(customers, int):
        raise ValueError("'customers' must be an integer")

    return PricingModel(
        tiers=tiers,
        variable_costs=variable_costs,
        fixed_costs=fixed_costs,
        scenarios=scenarios,
        cost_rate_defaults=cost_rate_defaults,
        currency=currency.upper(),
        utilization_rate=_number(
            raw_config.get('utilization_rate', DEFAULT_UTILIZATION_RATE), 'utilization_rate'
        ),
        monthly_growth_rate=_number(
            raw_config.get('monthly_growth_rate', DEFAULT_MONTHLY_GROWTH_RATE), 'monthly_growth_rate'
        ),
        estimated_cac=_number(raw_config.get('estimated_cac', 0.0), 'estimated_cac'),
        customers=customers
    )


def _require_list(value: Any, path: str) -> list:
    if not isinstance(value, list):
        raise ValueError(f"'{path}' must be a list")
    return value


def _require_dict(value: Any, path: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"'{path}' must be a dictionary")
    return value


def _number(value: Any, path: str) -> float:
    # YAML booleans would otherwise pass as ints
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{path}' must be a number")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"'{path}' must be a finite number")
    return number


def _non_negative(value: Any, path: str) -> float:
    number = _number(value, path)
    if number < 0:
        raise ValueError(f"'{path}' cannot be negative")
    return number


def _check_keys(data: Dict[str, Any], allowed: set, required: set, path: str) -> None:
    unknown_keys = set(data.keys()) - allowed
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")
    for key in sorted(required):
        if key not in data:
            raise ValueError(f"Missing required '{key}' in {path}")


def _parse_category(value: Any, path: str) -> CostCategory:
    if not isinstance(value, str):
        raise ValueError(f"'{path}' must be a string")
    try:
        return CostCategory(value.lower())
    except ValueError:
        valid = [category.value for category in CostCategory]
        raise ValueError(f"'{path}' must be one of: {valid}")


def _parse_variable_cost(data: Any, path: str) -> VariableCostItem:
    """Parse and validate one variable cost item.

    Raises:
        ValueError: If the item is invalid
    """
    data = _require_dict(data, path)
    _check_keys(
        data,
        allowed={'id', 'name', 'unit', 'cost_per_unit', 'usage_per_customer',
                 'description', 'cost_driver'},
        required={'id', 'name', 'unit', 'cost_per_unit', 'usage_per_customer'},
        path=path
    )

    cost_driver = None
    if data.get('cost_driver') is not None:
        cost_driver = _parse_category(data['cost_driver'], f"{path}.cost_driver")

    return VariableCostItem(
        id=str(data['id']),
        name=str(data['name']),
        unit=str(data['unit']),
        cost_per_unit=_non_negative(data['cost_per_unit'], f"{path}.cost_per_unit"),
        usage_per_customer=_non_negative(data['usage_per_customer'], f"{path}.usage_per_customer"),
        description=str(data.get('description', '')),
        cost_driver=cost_driver
    )


def _parse_fixed_cost(data: Any, path: str) -> FixedCostItem:
    data = _require_dict(data, path)
    _check_keys(
        data,
        allowed={'id', 'name', 'monthly_cost', 'description'},
        required={'id', 'name', 'monthly_cost'},
        path=path
    )
    return FixedCostItem(
        id=str(data['id']),
        name=str(data['name']),
        monthly_cost=_non_negative(data['monthly_cost'], f"{path}.monthly_cost"),
        description=str(data.get('description', ''))
    )


def _parse_limit(feature_id: str, value: Any, path: str) -> TierLimit:
    if isinstance(value, bool):
        return TierLimit(feature_id=feature_id, limit=value)
    if isinstance(value, str):
        if value.lower() != UNLIMITED:
            raise ValueError(f"'{path}' must be a number, a boolean or '{UNLIMITED}'")
        return TierLimit(feature_id=feature_id, limit=UNLIMITED)
    return TierLimit(feature_id=feature_id, limit=_non_negative(value, path))


def _parse_tier(data: Any, path: str) -> Tier:
    """Parse and validate one tier.

    Raises:
        ValueError: If the tier is invalid
    """
    data = _require_dict(data, path)
    _check_keys(
        data,
        allowed={'id', 'name', 'monthly_price', 'status', 'limits'},
        required={'id', 'name', 'monthly_price'},
        path=path
    )

    status_str = data.get('status', TierStatus.ACTIVE.value)
    try:
        status = TierStatus(str(status_str).lower())
    except ValueError:
        valid = [status.value for status in TierStatus]
        raise ValueError(f"'{path}.status' must be one of: {valid}")

    limits_data = _require_dict(data.get('limits', {}), f"{path}.limits")
    limits = tuple(
        _parse_limit(str(feature_id), value, f"{path}.limits.{feature_id}")
        for feature_id, value in limits_data.items()
    )

    return Tier(
        id=str(data['id']),
        name=str(data['name']),
        monthly_price=_non_negative(data['monthly_price'], f"{path}.monthly_price"),
        limits=limits,
        status=status
    )


def _parse_scenario(data: Any, path: str) -> Scenario:
    data = _require_dict(data, path)
    _check_keys(
        data,
        allowed={'name', 'distribution', 'monthly_churn_rate', 'conversion_rate'},
        required={'name', 'distribution'},
        path=path
    )

    distribution_data = _require_dict(data['distribution'], f"{path}.distribution")
    distribution = {
        str(tier_id): _non_negative(weight, f"{path}.distribution.{tier_id}")
        for tier_id, weight in distribution_data.items()
    }

    churn = _non_negative(data.get('monthly_churn_rate', 0.0), f"{path}.monthly_churn_rate")
    conversion = _non_negative(data.get('conversion_rate', 0.0), f"{path}.conversion_rate")
    if churn > 100:
        raise ValueError(f"'{path}.monthly_churn_rate' must be a percentage (0-100)")
    if conversion > 100:
        raise ValueError(f"'{path}.conversion_rate' must be a percentage (0-100)")

    return Scenario(
        name=str(data['name']),
        distribution=distribution,
        monthly_churn_rate=churn,
        conversion_rate=conversion
    )


def _parse_cost_rate_defaults(data: Any) -> Dict[CostCategory, float]:
    data = _require_dict(data, 'cost_rate_defaults')
    return {
        _parse_category(key, f"cost_rate_defaults.{key}"):
            _non_negative(value, f"cost_rate_defaults.{key}")
        for key, value in data.items()
    }
