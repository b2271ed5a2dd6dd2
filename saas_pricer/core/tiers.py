"""
Tier definitions and variable cost projection.

A tier's usage limits, scaled by how much of the plan customers actually use,
give the variable cost of serving one customer on that tier.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

from .costs import CostCategory, CostRates, derive_cost_rates
from .margin import (
    MarginHealth,
    MarginThresholds,
    TIER_MARGIN_THRESHOLDS,
    calculate_tier_margin,
    margin_health,
)

logger = logging.getLogger(__name__)

UNLIMITED = "unlimited"

LimitValue = Union[float, int, bool, str]


class TierStatus(Enum):
    ACTIVE = "active"
    COMING_SOON = "coming_soon"
    INTERNAL = "internal"


@dataclass(frozen=True)
class TierLimit:
    """Usage allowance for one feature on a tier.

    ``limit`` is a number, the string ``"unlimited"``, or a boolean for
    features that are simply switched on or off.
    """
    feature_id: str
    limit: LimitValue
    unit: str = ""

    @property
    def is_unlimited(self) -> bool:
        return self.limit == UNLIMITED


@dataclass(frozen=True)
class Tier:
    """A priced plan with its feature limits."""
    id: str
    name: str
    monthly_price: float
    limits: Tuple[TierLimit, ...] = ()
    status: TierStatus = TierStatus.ACTIVE

    def limit_for(self, feature_id: str) -> Optional[TierLimit]:
        for limit in self.limits:
            if limit.feature_id == feature_id:
                return limit
        return None


@dataclass(frozen=True)
class TierCostBreakdown:
    """Projected variable cost of one customer on a tier."""
    category_totals: Mapping[CostCategory, float] = field(default_factory=dict)
    total: float = 0.0

    def to_dict(self) -> Dict[str, object]:
        return {
            "category_totals": {
                category.value: amount for category, amount in self.category_totals.items()
            },
            "total": self.total,
        }


# Features whose usage drives a variable cost
DEFAULT_FEATURE_COST_MAPPING: Mapping[str, CostCategory] = {
    "ocr_extraction": CostCategory.OCR,
    "line_item_extraction": CostCategory.AI_PROCESSING,
    "coa_mapping": CostCategory.AI_PROCESSING,
    "journal_entries": CostCategory.AI_PROCESSING,
    "invoice_emails": CostCategory.EMAIL,
    "invoice_reminders": CostCategory.EMAIL,
    "dataroom_storage": CostCategory.STORAGE,
}

# Assumed monthly usage when a tier grants unlimited access
UNLIMITED_USAGE_DEFAULTS: Mapping[str, float] = {
    "ocr_extraction": 500,
    "invoice_emails": 5000,
    "dataroom_storage": 100,
}


def effective_limit(
    limit: TierLimit,
    unlimited_usage: Mapping[str, float] = UNLIMITED_USAGE_DEFAULTS
) -> float:
    """Numeric usage ceiling for a limit before utilization is applied."""
    value = limit.limit
    # bool is an int subclass, so check it first
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if value == UNLIMITED:
        if limit.feature_id not in unlimited_usage:
            logger.debug("No unlimited usage ceiling for %s, assuming 0", limit.feature_id)
        return float(unlimited_usage.get(limit.feature_id, 0.0))
    return 0.0


def project_tier_cost(
    tier: Tier,
    utilization_rate: float = 1.0,
    cost_rates: Optional[CostRates] = None,
    feature_costs: Mapping[str, CostCategory] = DEFAULT_FEATURE_COST_MAPPING,
    unlimited_usage: Mapping[str, float] = UNLIMITED_USAGE_DEFAULTS
) -> TierCostBreakdown:
    """Project the variable cost of one customer on a tier.

    Each limit that maps to a cost category contributes
    ``effective_limit * utilization_rate * rate``. Limits for features with no
    cost category, and categories with no rate, contribute nothing.

    Args:
        tier: Tier to project
        utilization_rate: Share of the plan limits customers actually use (0-1)
        cost_rates: Rates per category; defaults only when omitted
        feature_costs: Feature id to cost category mapping
        unlimited_usage: Assumed usage for unlimited limits, by feature id

    Returns:
        TierCostBreakdown with per-category totals and the overall total
    """
    if cost_rates is None:
        cost_rates = derive_cost_rates([])

    category_totals: Dict[CostCategory, float] = {}
    for limit in tier.limits:
        category = feature_costs.get(limit.feature_id)
        if category is None:
            continue
        usage = effective_limit(limit, unlimited_usage) * utilization_rate
        cost = usage * cost_rates.rate_for(category)
        category_totals[category] = category_totals.get(category, 0.0) + cost

    return TierCostBreakdown(
        category_totals=category_totals,
        total=sum(category_totals.values(), 0.0)
    )


def project_tier_costs(
    tiers: Sequence[Tier],
    utilization_rate: float = 1.0,
    cost_rates: Optional[CostRates] = None,
    feature_costs: Mapping[str, CostCategory] = DEFAULT_FEATURE_COST_MAPPING,
    unlimited_usage: Mapping[str, float] = UNLIMITED_USAGE_DEFAULTS
) -> Dict[str, TierCostBreakdown]:
    """Project every tier, keyed by tier id."""
    return {
        tier.id: project_tier_cost(
            tier, utilization_rate, cost_rates, feature_costs, unlimited_usage
        )
        for tier in tiers
    }


def tier_margin(tier: Tier, breakdown: TierCostBreakdown) -> float:
    return calculate_tier_margin(tier.monthly_price, breakdown.total)


def tier_margin_health(
    tier: Tier,
    breakdown: TierCostBreakdown,
    thresholds: MarginThresholds = TIER_MARGIN_THRESHOLDS
) -> MarginHealth:
    return margin_health(tier_margin(tier, breakdown), thresholds)
