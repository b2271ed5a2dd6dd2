"""
Revenue-multiple valuation.

Valuation bands use fixed SaaS ARR multiples: 5x conservative, 10x typical,
15x high growth.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict

DEFAULT_CURRENCY = "MYR"

VALUATION_MULTIPLE_LOW = 5
VALUATION_MULTIPLE_MID = 10
VALUATION_MULTIPLE_HIGH = 15

MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class ValuationProjection:
    """Valuation range for a given ARR."""
    current_arr: float
    valuation_low: float
    valuation_mid: float
    valuation_high: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "current_arr": self.current_arr,
            "valuation_low": self.valuation_low,
            "valuation_mid": self.valuation_mid,
            "valuation_high": self.valuation_high,
        }


def calculate_arr(mrr: float) -> float:
    """Annual recurring revenue from monthly recurring revenue."""
    return mrr * MONTHS_PER_YEAR


def calculate_mrr_from_customers(customer_count: int, arpu: float) -> float:
    return customer_count * arpu


def calculate_valuation(arr: float) -> ValuationProjection:
    """Low/mid/high valuation from ARR multiples."""
    return ValuationProjection(
        current_arr=arr,
        valuation_low=arr * VALUATION_MULTIPLE_LOW,
        valuation_mid=arr * VALUATION_MULTIPLE_MID,
        valuation_high=arr * VALUATION_MULTIPLE_HIGH
    )


def _fixed(value: float, places: int) -> str:
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_currency_compact(value: float, currency: str = DEFAULT_CURRENCY) -> str:
    """Compact currency label, e.g. ``MYR 1.5M``, ``MYR 50K``, ``MYR 500``."""
    if value >= 1_000_000:
        return f"{currency} {_fixed(value / 1_000_000, 1)}M"
    if value >= 1_000:
        return f"{currency} {_fixed(value / 1_000, 0)}K"
    return f"{currency} {_fixed(value, 0)}"


def format_valuation_range(
    valuation: ValuationProjection,
    currency: str = DEFAULT_CURRENCY
) -> str:
    """``<low> - <high>`` valuation label."""
    low = format_currency_compact(valuation.valuation_low, currency)
    high = format_currency_compact(valuation.valuation_high, currency)
    return f"{low} - {high}"
