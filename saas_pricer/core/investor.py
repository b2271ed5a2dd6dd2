"""
Investor metrics aggregation.

Combines valuation, ARR milestones, break-even timeline, margin health and
unit economics into one snapshot suitable for an investor report.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .growth import MilestoneTarget, calculate_break_even_timeline, calculate_milestones
from .margin import MarginHealth, get_gross_margin_health
from .unit_economics import (
    UnitEconomicsHealth,
    calculate_ltv_cac_ratio,
    calculate_payback_period,
    get_ltv_cac_health,
    get_payback_health,
)
from .valuation import DEFAULT_CURRENCY, ValuationProjection, calculate_arr, calculate_valuation


@dataclass(frozen=True)
class InvestorMetrics:
    """Point-in-time investor snapshot. Plain data, no identity of its own."""
    mrr: float
    arr: float
    paid_customers: float
    arpu: float
    valuation: ValuationProjection
    milestones: Tuple[MilestoneTarget, ...]
    break_even_customers: float
    current_paid_customers: float
    customers_to_break_even: float
    months_to_break_even: Optional[int]
    gross_margin: float
    gross_margin_health: MarginHealth
    ltv: float
    ltv_cac_ratio: Optional[float]
    ltv_cac_health: UnitEconomicsHealth
    payback_period_months: Optional[int]
    payback_health: UnitEconomicsHealth

    def to_dict(self) -> Dict[str, object]:
        return {
            "mrr": self.mrr,
            "arr": self.arr,
            "paid_customers": self.paid_customers,
            "arpu": self.arpu,
            "valuation": self.valuation.to_dict(),
            "milestones": [m.to_dict() for m in self.milestones],
            "break_even_customers": self.break_even_customers,
            "current_paid_customers": self.current_paid_customers,
            "customers_to_break_even": self.customers_to_break_even,
            "months_to_break_even": self.months_to_break_even,
            "gross_margin": self.gross_margin,
            "gross_margin_health": self.gross_margin_health.value,
            "ltv": self.ltv,
            "ltv_cac_ratio": self.ltv_cac_ratio,
            "ltv_cac_health": self.ltv_cac_health.value,
            "payback_period_months": self.payback_period_months,
            "payback_health": self.payback_health.value,
        }


def calculate_investor_metrics(
    mrr: float,
    paid_customers: float,
    arpu: float,
    gross_margin: float,
    break_even_customers: float,
    monthly_growth_rate: float,
    ltv: float,
    estimated_cac: float = 0.0,
    currency: str = DEFAULT_CURRENCY
) -> InvestorMetrics:
    """Compute the complete investor snapshot.

    Args:
        mrr: Monthly recurring revenue
        paid_customers: Paying customers today
        arpu: Average revenue per paying customer
        gross_margin: Gross margin percentage
        break_even_customers: Paying customers needed to break even
        monthly_growth_rate: Monthly customer growth as a decimal
        ltv: Customer lifetime value
        estimated_cac: Customer acquisition cost, 0 when unknown
        currency: Label used for milestone names

    Returns:
        InvestorMetrics built from freshly computed parts
    """
    arr = calculate_arr(mrr)
    ltv_cac_ratio = calculate_ltv_cac_ratio(ltv, estimated_cac)
    payback = calculate_payback_period(arpu, gross_margin, estimated_cac)

    return InvestorMetrics(
        mrr=mrr,
        arr=arr,
        paid_customers=paid_customers,
        arpu=arpu,
        valuation=calculate_valuation(arr),
        milestones=tuple(
            calculate_milestones(arpu, paid_customers, monthly_growth_rate, currency)
        ),
        break_even_customers=break_even_customers,
        current_paid_customers=paid_customers,
        customers_to_break_even=max(0, break_even_customers - paid_customers),
        months_to_break_even=calculate_break_even_timeline(
            paid_customers, break_even_customers, monthly_growth_rate
        ),
        gross_margin=gross_margin,
        gross_margin_health=get_gross_margin_health(gross_margin),
        ltv=ltv,
        ltv_cac_ratio=ltv_cac_ratio,
        ltv_cac_health=get_ltv_cac_health(ltv_cac_ratio),
        payback_period_months=payback,
        payback_health=get_payback_health(payback)
    )
