"""
saas-pricer: SaaS pricing strategy calculations.

Provides programmatic access to the pricing engine.
"""

from .core.costs import derive_cost_rates, calculate_cogs_breakdown
from .core.growth import calculate_break_even_timeline, calculate_milestones
from .core.investor import InvestorMetrics, calculate_investor_metrics
from .core.margin import MarginHealth, calculate_gross_margin, get_gross_margin_health
from .core.scenario import simulate_scenario, simulate_price_sensitivity
from .core.tiers import project_tier_cost
from .core.unit_economics import calculate_ltv_cac_ratio, calculate_payback_period
from .core.valuation import calculate_arr, calculate_valuation

__all__ = [
    "InvestorMetrics",
    "MarginHealth",
    "calculate_arr",
    "calculate_break_even_timeline",
    "calculate_cogs_breakdown",
    "calculate_gross_margin",
    "calculate_investor_metrics",
    "calculate_ltv_cac_ratio",
    "calculate_milestones",
    "calculate_payback_period",
    "calculate_valuation",
    "derive_cost_rates",
    "get_gross_margin_health",
    "project_tier_cost",
    "simulate_price_sensitivity",
    "simulate_scenario",
]
