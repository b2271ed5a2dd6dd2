"""
Compound growth projections: ARR milestones and break-even timeline.

Customer counts are assumed to grow by a fixed monthly rate. The number of
months to reach a target is the smallest whole n with
``current * (1 + g) ** n >= target``.

A projection has three distinct outcomes, kept apart by GrowthProjection so
"already there" (0 months) cannot be mistaken for "cannot get there" (None):

- ACHIEVED: current customers already meet the target
- UNREACHABLE: no growth, or nothing to grow from
- REACHES_IN: target reached after ``months`` months
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .valuation import DEFAULT_CURRENCY, MONTHS_PER_YEAR

logger = logging.getLogger(__name__)

# (label suffix, ARR target)
ARR_MILESTONES: Tuple[Tuple[str, float], ...] = (
    ("100K ARR", 100_000),
    ("500K ARR", 500_000),
    ("1M ARR", 1_000_000),
    ("5M ARR", 5_000_000),
)


class GrowthOutcome(Enum):
    ACHIEVED = "achieved"
    UNREACHABLE = "unreachable"
    REACHES_IN = "reaches_in"


@dataclass(frozen=True)
class GrowthProjection:
    """Outcome of projecting a customer count toward a target."""
    outcome: GrowthOutcome
    months: Optional[int] = None

    @classmethod
    def achieved(cls) -> "GrowthProjection":
        return cls(GrowthOutcome.ACHIEVED, 0)

    @classmethod
    def unreachable(cls) -> "GrowthProjection":
        return cls(GrowthOutcome.UNREACHABLE, None)

    @classmethod
    def reaches_in(cls, months: int) -> "GrowthProjection":
        return cls(GrowthOutcome.REACHES_IN, months)

    @property
    def months_to_reach(self) -> Optional[int]:
        """0 when achieved, None when unreachable, else months."""
        return self.months


@dataclass(frozen=True)
class MilestoneTarget:
    """Customers and time needed to reach one ARR milestone."""
    label: str
    arr_target: float
    customers_needed: int
    projection: GrowthProjection

    @property
    def months_to_reach(self) -> Optional[int]:
        return self.projection.months_to_reach

    @property
    def achieved(self) -> bool:
        return self.projection.outcome == GrowthOutcome.ACHIEVED

    def to_dict(self) -> Dict[str, object]:
        return {
            "label": self.label,
            "arr_target": self.arr_target,
            "customers_needed": self.customers_needed,
            "months_to_reach": self.months_to_reach,
            "outcome": self.projection.outcome.value,
        }


def project_growth(
    current_customers: float,
    target_customers: float,
    monthly_growth_rate: float
) -> GrowthProjection:
    """Project months until ``current_customers`` compounds to the target.

    Args:
        current_customers: Customers today
        target_customers: Customers required
        monthly_growth_rate: Monthly growth as a decimal (0.05 = 5%)

    Returns:
        GrowthProjection; never raises for zero or negative inputs
    """
    if current_customers >= target_customers:
        return GrowthProjection.achieved()
    if monthly_growth_rate <= 0 or current_customers <= 0:
        logger.debug(
            "Target of %s customers unreachable from %s at %s monthly growth",
            target_customers, current_customers, monthly_growth_rate
        )
        return GrowthProjection.unreachable()

    # log1p keeps tiny rates positive; a rate below float resolution still rounds to 0
    growth_log = math.log1p(monthly_growth_rate)
    if growth_log <= 0:
        logger.debug("Monthly growth %s too small to project", monthly_growth_rate)
        return GrowthProjection.unreachable()

    months = math.log(target_customers / current_customers) / growth_log
    if not math.isfinite(months):
        return GrowthProjection.unreachable()
    return GrowthProjection.reaches_in(math.ceil(months))


def calculate_months_to_target(
    current_customers: float,
    target_customers: float,
    monthly_growth_rate: float
) -> Optional[int]:
    """Months to reach a customer target, 0 if met, None if unreachable."""
    return project_growth(
        current_customers, target_customers, monthly_growth_rate
    ).months_to_reach


def customers_for_arr(arr_target: float, arpu: float) -> int:
    """Paying customers needed for an ARR target, rounded up."""
    if arpu <= 0:
        return 0
    return math.ceil(arr_target / (arpu * MONTHS_PER_YEAR))


def calculate_milestones(
    arpu: float,
    current_paid_customers: float,
    monthly_growth_rate: float,
    currency: str = DEFAULT_CURRENCY
) -> List[MilestoneTarget]:
    """Customers needed and months to reach each ARR milestone.

    Args:
        arpu: Average revenue per paying customer per month
        current_paid_customers: Paying customers today
        monthly_growth_rate: Monthly growth as a decimal
        currency: Label prefix for milestone names

    Returns:
        One MilestoneTarget per entry in ARR_MILESTONES, in ascending order
    """
    milestones = []
    for suffix, arr_target in ARR_MILESTONES:
        customers_needed = customers_for_arr(arr_target, arpu)
        milestones.append(MilestoneTarget(
            label=f"{currency} {suffix}",
            arr_target=arr_target,
            customers_needed=customers_needed,
            projection=project_growth(
                current_paid_customers, customers_needed, monthly_growth_rate
            )
        ))
    return milestones


def calculate_break_even_timeline(
    current_customers: float,
    break_even_customers: float,
    monthly_growth_rate: float
) -> Optional[int]:
    """Months until paying customers reach the break-even count.

    Returns 0 when already at or past break-even and None when growth
    cannot get there (no growth, or no customers to grow from).
    """
    return calculate_months_to_target(
        current_customers, break_even_customers, monthly_growth_rate
    )
