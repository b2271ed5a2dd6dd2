"""
Cost of goods sold (COGS) and cost rate derivation.

Variable costs scale with customer usage, fixed costs are spread across the
customer base. Cost rates are derived from the configured variable costs and
fall back to a defaults table for categories nobody has configured yet.
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


class CostCategory(Enum):
    """Known variable cost drivers."""
    OCR = "ocr"
    AI_PROCESSING = "ai-processing"
    EMAIL = "email"
    STORAGE = "storage"
    API_CALLS = "api-calls"
    COMPUTE_TIME = "compute-time"
    BANDWIDTH = "bandwidth"
    PAYMENT_PROCESSING = "payment-processing"
    SMS = "sms"


@dataclass(frozen=True)
class VariableCostItem:
    """Per-unit cost driver, e.g. one OCR extraction or one GB of storage."""
    id: str
    name: str
    unit: str
    cost_per_unit: float
    usage_per_customer: float
    description: str = ""
    cost_driver: Optional[CostCategory] = None

    def matches(self, category: CostCategory) -> bool:
        """True if this item prices the given category."""
        if self.cost_driver is not None:
            return self.cost_driver == category
        return self.id == category.value


@dataclass(frozen=True)
class FixedCostItem:
    """Monthly cost that does not depend on customer count."""
    id: str
    name: str
    monthly_cost: float
    description: str = ""


@dataclass(frozen=True)
class CostBreakdown:
    """COGS per customer for one customer count."""
    variable_total: float
    fixed_total: float
    fixed_per_customer: float
    total_cogs: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "variable_total": self.variable_total,
            "fixed_total": self.fixed_total,
            "fixed_per_customer": self.fixed_per_customer,
            "total_cogs": self.total_cogs,
        }


@dataclass(frozen=True)
class CostRates:
    """Cost per unit for each category, derived from variable costs."""
    rates: Mapping[CostCategory, float] = field(default_factory=dict)

    def rate_for(self, category: CostCategory) -> float:
        """Rate for a category, 0.0 when nothing prices it."""
        return self.rates.get(category, 0.0)

    def to_dict(self) -> Dict[str, float]:
        return {category.value: rate for category, rate in self.rates.items()}


# Fallback rates used until a matching variable cost is configured
DEFAULT_COST_RATES: Mapping[CostCategory, float] = {
    CostCategory.OCR: 0.15,
    CostCategory.AI_PROCESSING: 0.006,
    CostCategory.EMAIL: 0.005,
    CostCategory.STORAGE: 0.07,
}


def derive_cost_rates(
    variable_costs: Sequence[VariableCostItem],
    defaults: Mapping[CostCategory, float] = DEFAULT_COST_RATES
) -> CostRates:
    """Build a cost rate table from the current variable costs.

    For every category the first matching item wins. Categories without a
    matching item take the rate from ``defaults``; categories missing from
    both are left out and resolve to 0.0 through ``CostRates.rate_for``.

    Args:
        variable_costs: Configured variable cost items
        defaults: Fallback rate per category

    Returns:
        Freshly built CostRates
    """
    rates: Dict[CostCategory, float] = {}
    for category in CostCategory:
        item = next((c for c in variable_costs if c.matches(category)), None)
        if item is not None:
            rates[category] = item.cost_per_unit
        elif category in defaults:
            logger.debug("No variable cost for %s, using default rate %s",
                         category.value, defaults[category])
            rates[category] = defaults[category]
    return CostRates(rates=rates)


def get_cost_rate_by_id(
    variable_costs: Sequence[VariableCostItem],
    cost_id: str,
    default: float = 0.0
) -> float:
    """Look up a single cost per unit by item id."""
    for item in variable_costs:
        if item.id == cost_id:
            return item.cost_per_unit
    return default


def calculate_item_cost_per_customer(
    item: VariableCostItem,
    utilization_rate: float = 1.0
) -> float:
    """Monthly cost of one variable cost item for one customer."""
    return item.cost_per_unit * item.usage_per_customer * utilization_rate


def calculate_variable_costs(
    costs: Sequence[VariableCostItem],
    utilization_rate: float = 1.0
) -> float:
    """Total variable cost per customer."""
    return sum(
        (calculate_item_cost_per_customer(item, utilization_rate) for item in costs),
        0.0
    )


def calculate_total_variable_costs(
    costs: Sequence[VariableCostItem],
    customer_count: int,
    utilization_rate: float = 1.0
) -> float:
    """Variable costs across all customers."""
    return calculate_variable_costs(costs, utilization_rate) * customer_count


def calculate_total_fixed_costs(fixed_costs: Sequence[FixedCostItem]) -> float:
    """Total monthly fixed costs."""
    return sum((item.monthly_cost for item in fixed_costs), 0.0)


def calculate_fixed_cost_per_customer(
    fixed_costs: Sequence[FixedCostItem],
    customer_count: int
) -> float:
    """Fixed costs spread over customers, 0 with no customers."""
    if customer_count <= 0:
        return 0.0
    return calculate_total_fixed_costs(fixed_costs) / customer_count


def calculate_cogs_breakdown(
    variable_costs: Sequence[VariableCostItem],
    fixed_costs: Sequence[FixedCostItem],
    customer_count: int,
    utilization_rate: float = 1.0
) -> CostBreakdown:
    """Complete COGS per customer for a given customer count."""
    variable_total = calculate_variable_costs(variable_costs, utilization_rate)
    fixed_total = calculate_total_fixed_costs(fixed_costs)
    fixed_per_customer = fixed_total / customer_count if customer_count > 0 else 0.0

    return CostBreakdown(
        variable_total=variable_total,
        fixed_total=fixed_total,
        fixed_per_customer=fixed_per_customer,
        total_cogs=variable_total + fixed_per_customer
    )


def calculate_total_cogs(
    variable_costs: Sequence[VariableCostItem],
    fixed_costs: Sequence[FixedCostItem],
    customer_count: int,
    utilization_rate: float = 1.0
) -> float:
    return calculate_cogs_breakdown(
        variable_costs, fixed_costs, customer_count, utilization_rate
    ).total_cogs


def calculate_break_even_customers(
    total_fixed_costs: float,
    price_per_customer: float,
    variable_cost_per_customer: float
) -> Optional[int]:
    """Customers needed to cover fixed costs.

    Break-even = fixed costs / (price - variable cost per customer), rounded
    up. Returns None when each customer loses money, since no customer count
    ever breaks even.
    """
    contribution = price_per_customer - variable_cost_per_customer
    if contribution <= 0:
        return None
    return round_customers(total_fixed_costs / contribution)


def calculate_mrr(
    tier_prices: Mapping[str, float],
    tier_counts: Mapping[str, int]
) -> float:
    """Monthly recurring revenue for customers spread across tiers."""
    return sum(
        (tier_prices.get(tier_id, 0.0) * count for tier_id, count in tier_counts.items()),
        0.0
    )


def calculate_monthly_profit(
    mrr: float,
    total_variable_costs: float,
    total_fixed_costs: float
) -> float:
    return mrr - total_variable_costs - total_fixed_costs


def round_currency(value: float, decimals: int = 2) -> float:
    """Round half-up to currency precision."""
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_customers(value: float) -> int:
    """Customer counts always round up for capacity planning."""
    return math.ceil(value)


def round_percentage(value: float, decimals: int = 1) -> float:
    return round_currency(value, decimals)


def cost_items_to_dicts(items: Sequence[VariableCostItem]) -> List[Dict[str, object]]:
    """Plain-data view of variable cost items for JSON output."""
    return [
        {
            "id": item.id,
            "name": item.name,
            "unit": item.unit,
            "cost_per_unit": item.cost_per_unit,
            "usage_per_customer": item.usage_per_customer,
            "description": item.description,
            "cost_driver": item.cost_driver.value if item.cost_driver else None,
        }
        for item in items
    ]
