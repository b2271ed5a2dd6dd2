"""
Unit economics: lifetime value, LTV:CAC and CAC payback.
"""

import math
from enum import Enum
from typing import Optional

# Assumed customer lifetime when churn is unknown or zero
LTV_FALLBACK_LIFETIME_MONTHS = 24

LTV_CAC_HEALTHY = 3.0
LTV_CAC_ACCEPTABLE = 1.0
PAYBACK_HEALTHY_MONTHS = 12
PAYBACK_ACCEPTABLE_MONTHS = 24


class UnitEconomicsHealth(Enum):
    HEALTHY = "healthy"
    ACCEPTABLE = "acceptable"
    CONCERNING = "concerning"


def calculate_ltv(
    arpu: float,
    gross_margin_percent: float,
    average_lifetime_months: float
) -> float:
    """Margin-adjusted lifetime value: ARPU * margin * lifetime."""
    return arpu * (gross_margin_percent / 100) * average_lifetime_months


def calculate_ltv_from_churn(arpu: float, monthly_churn_rate: float) -> float:
    """Revenue lifetime value from monthly churn percentage.

    LTV = ARPU / churn. With zero (or unknown) churn the lifetime is taken
    as LTV_FALLBACK_LIFETIME_MONTHS.
    """
    if monthly_churn_rate > 0:
        return arpu / (monthly_churn_rate / 100)
    return arpu * LTV_FALLBACK_LIFETIME_MONTHS


def calculate_ltv_cac_ratio(ltv: float, cac: float) -> Optional[float]:
    """LTV:CAC, or None when there is no acquisition cost to compare."""
    if cac <= 0:
        return None
    return ltv / cac


def get_ltv_cac_health(ratio: Optional[float]) -> UnitEconomicsHealth:
    """3:1 or better is healthy, at least 1:1 acceptable."""
    if ratio is None:
        return UnitEconomicsHealth.CONCERNING
    if ratio >= LTV_CAC_HEALTHY:
        return UnitEconomicsHealth.HEALTHY
    if ratio >= LTV_CAC_ACCEPTABLE:
        return UnitEconomicsHealth.ACCEPTABLE
    return UnitEconomicsHealth.CONCERNING


def calculate_payback_period(
    arpu: float,
    gross_margin_percent: float,
    cac: float
) -> Optional[int]:
    """Whole months of gross-margin contribution needed to recover CAC.

    Partial months round up: CAC is only paid back once the month that
    covers it has been collected.

    Returns:
        Months, or None if any input is zero or negative
    """
    if arpu <= 0 or gross_margin_percent <= 0 or cac <= 0:
        return None

    monthly_contribution = arpu * (gross_margin_percent / 100)
    return math.ceil(cac / monthly_contribution)


def get_payback_health(months: Optional[int]) -> UnitEconomicsHealth:
    """Under a year is healthy, up to two years acceptable."""
    if months is None:
        return UnitEconomicsHealth.CONCERNING
    if months <= PAYBACK_HEALTHY_MONTHS:
        return UnitEconomicsHealth.HEALTHY
    if months <= PAYBACK_ACCEPTABLE_MONTHS:
        return UnitEconomicsHealth.ACCEPTABLE
    return UnitEconomicsHealth.CONCERNING
