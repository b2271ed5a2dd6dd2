"""
Margin calculations and health classification.

Every margin is a percentage of price (or revenue). A zero price reports a
0% margin rather than dividing by zero. Health bands are passed in as
thresholds because gross, tier and operating margins are judged differently.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence


class MarginHealth(Enum):
    """Three-level margin health band."""
    HEALTHY = "healthy"
    ACCEPTABLE = "acceptable"
    LOW = "low"


@dataclass(frozen=True)
class MarginThresholds:
    """Lower bounds (inclusive) of the healthy and acceptable bands."""
    healthy: float
    acceptable: float

    def __post_init__(self):
        if self.acceptable > self.healthy:
            raise ValueError("acceptable threshold cannot exceed healthy threshold")


# SaaS gross margin: >= 70% healthy, >= 50% acceptable
GROSS_MARGIN_THRESHOLDS = MarginThresholds(healthy=70.0, acceptable=50.0)
# Per-tier margin is judged slightly more leniently
TIER_MARGIN_THRESHOLDS = MarginThresholds(healthy=65.0, acceptable=50.0)
# Operating margin: >= 20% healthy, break-even or better acceptable
OPERATING_MARGIN_THRESHOLDS = MarginThresholds(healthy=20.0, acceptable=0.0)


@dataclass(frozen=True)
class MarginInfo:
    """Margin, profit and health for one price point."""
    margin: float
    profit: float
    health: MarginHealth

    def to_dict(self) -> Dict[str, object]:
        return {
            "margin": self.margin,
            "profit": self.profit,
            "health": self.health.value,
        }


@dataclass(frozen=True)
class MarginBreakdown:
    """Gross margin built from variable and fixed cost per customer."""
    gross_margin: float
    gross_margin_health: MarginHealth
    profit: float
    cogs: float


@dataclass(frozen=True)
class PricePointComparison:
    price: float
    margin: float
    profit: float
    health: MarginHealth


def calculate_gross_margin(price: float, cost: float) -> float:
    """Gross margin percentage: (price - cost) / price * 100.

    A non-positive price yields 0 so a free tier reports 0% instead of an
    undefined value.
    """
    if price <= 0:
        return 0.0
    return ((price - cost) / price) * 100


def calculate_operating_margin(
    revenue: float,
    cogs: float,
    operating_expenses: float
) -> float:
    """Operating margin: (revenue - COGS - opex) / revenue * 100."""
    if revenue <= 0:
        return 0.0
    return ((revenue - cogs - operating_expenses) / revenue) * 100


def calculate_tier_margin(tier_price: float, tier_cost: float) -> float:
    return calculate_gross_margin(tier_price, tier_cost)


def calculate_profit(price: float, cost: float) -> float:
    return price - cost


def margin_health(margin: float, thresholds: MarginThresholds) -> MarginHealth:
    """Classify a margin percentage against a threshold band.

    Args:
        margin: Margin percentage
        thresholds: Band boundaries, both inclusive lower bounds

    Returns:
        MarginHealth for the margin
    """
    if margin >= thresholds.healthy:
        return MarginHealth.HEALTHY
    if margin >= thresholds.acceptable:
        return MarginHealth.ACCEPTABLE
    return MarginHealth.LOW


def get_gross_margin_health(margin: float) -> MarginHealth:
    return margin_health(margin, GROSS_MARGIN_THRESHOLDS)


def get_tier_margin_health(margin: float) -> MarginHealth:
    return margin_health(margin, TIER_MARGIN_THRESHOLDS)


def get_operating_margin_health(margin: float) -> MarginHealth:
    return margin_health(margin, OPERATING_MARGIN_THRESHOLDS)


def get_margin_info(
    price: float,
    cost: float,
    thresholds: MarginThresholds = GROSS_MARGIN_THRESHOLDS
) -> MarginInfo:
    """Complete margin information for a price point."""
    margin = calculate_gross_margin(price, cost)
    return MarginInfo(
        margin=margin,
        profit=calculate_profit(price, cost),
        health=margin_health(margin, thresholds)
    )


def calculate_margin_breakdown(
    price: float,
    variable_cost_per_customer: float,
    fixed_cost_per_customer: float
) -> MarginBreakdown:
    cogs = variable_cost_per_customer + fixed_cost_per_customer
    gross_margin = calculate_gross_margin(price, cogs)
    return MarginBreakdown(
        gross_margin=gross_margin,
        gross_margin_health=get_gross_margin_health(gross_margin),
        profit=calculate_profit(price, cogs),
        cogs=cogs
    )


def compare_price_points(
    price_points: Sequence[float],
    cost: float
) -> List[PricePointComparison]:
    """Margin and profit for each candidate price at a fixed cost."""
    comparisons = []
    for price in price_points:
        margin = calculate_gross_margin(price, cost)
        comparisons.append(PricePointComparison(
            price=price,
            margin=margin,
            profit=calculate_profit(price, cost),
            health=get_gross_margin_health(margin)
        ))
    return comparisons


def find_minimum_price_for_margin(cost: float, target_margin: float) -> Optional[float]:
    """Lowest price that reaches a target gross margin.

    Solves margin = (price - cost) / price * 100 for price. A target of 100%
    or more cannot be reached at any finite price, so None is returned.
    """
    if target_margin >= 100:
        return None
    return cost / (1 - target_margin / 100)
