"""
Scenario simulation and price sensitivity.

A scenario spreads a customer base across tiers and sets churn and freemium
conversion assumptions. Simulation turns it into revenue, costs, margins,
unit economics and investor metrics for one month.

Simulation is deterministic and side-effect free:
1. Inputs are never mutated
2. No exceptions for degenerate inputs (zero customers, zero prices)
3. Same inputs always give the same result
"""

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .costs import (
    CostRates,
    FixedCostItem,
    calculate_total_fixed_costs,
)
from .investor import InvestorMetrics, calculate_investor_metrics
from .margin import (
    MarginHealth,
    calculate_gross_margin,
    calculate_operating_margin,
    get_gross_margin_health,
    get_operating_margin_health,
)
from .tiers import Tier, TierCostBreakdown, project_tier_costs
from .unit_economics import calculate_ltv_from_churn
from .valuation import DEFAULT_CURRENCY

FREE_TIER_IDS: Tuple[str, ...] = ("freemium",)


class SimulationVerdict(Enum):
    """Overall health verdict of a simulated scenario."""
    PASS = auto()
    WARN = auto()
    FAIL = auto()


@dataclass(frozen=True)
class Scenario:
    """Customer mix and retention assumptions.

    ``distribution`` holds relative weights per tier id and need not sum to
    100; it is normalized when consumed. Churn and conversion are monthly
    percentages.
    """
    name: str
    distribution: Mapping[str, float]
    monthly_churn_rate: float
    conversion_rate: float


DEFAULT_SCENARIOS: Tuple[Scenario, ...] = (
    Scenario(
        name="Early Stage",
        distribution={"freemium": 80, "basic": 15, "pro": 4, "enterprise": 1},
        monthly_churn_rate=5,
        conversion_rate=3
    ),
    Scenario(
        name="Growth",
        distribution={"freemium": 70, "basic": 20, "pro": 8, "enterprise": 2},
        monthly_churn_rate=4,
        conversion_rate=5
    ),
    Scenario(
        name="Mature",
        distribution={"freemium": 60, "basic": 25, "pro": 12, "enterprise": 3},
        monthly_churn_rate=3,
        conversion_rate=7
    ),
)


@dataclass(frozen=True)
class ScenarioResult:
    """Monthly financial picture of one scenario."""
    scenario: Scenario
    normalized_distribution: Dict[str, float]
    customer_counts: Dict[str, int]
    tier_prices: Dict[str, float]
    tier_costs: Dict[str, TierCostBreakdown]
    revenue_by_tier: Dict[str, float]
    variable_costs_by_tier: Dict[str, float]
    mrr: float
    total_variable_costs: float
    total_fixed_costs: float
    total_costs: float
    gross_profit: float
    gross_margin: float
    gross_margin_health: MarginHealth
    operating_profit: float
    operating_margin: float
    operating_margin_health: MarginHealth
    paid_customers: int
    arpu: float
    ltv: float
    contribution_margin: float
    break_even_customers: int
    freemium_costs: float
    freemium_cost_per_user: float
    monthly_conversions: float
    projected_mrr_growth: float
    investor_metrics: InvestorMetrics
    verdict: SimulationVerdict

    def to_dict(self) -> Dict[str, object]:
        return {
            "scenario": {
                "name": self.scenario.name,
                "distribution": dict(self.scenario.distribution),
                "monthly_churn_rate": self.scenario.monthly_churn_rate,
                "conversion_rate": self.scenario.conversion_rate,
            },
            "normalized_distribution": dict(self.normalized_distribution),
            "customer_counts": dict(self.customer_counts),
            "tier_costs": {tier_id: b.to_dict() for tier_id, b in self.tier_costs.items()},
            "revenue_by_tier": dict(self.revenue_by_tier),
            "variable_costs_by_tier": dict(self.variable_costs_by_tier),
            "mrr": self.mrr,
            "total_variable_costs": self.total_variable_costs,
            "total_fixed_costs": self.total_fixed_costs,
            "total_costs": self.total_costs,
            "gross_profit": self.gross_profit,
            "gross_margin": self.gross_margin,
            "gross_margin_health": self.gross_margin_health.value,
            "operating_profit": self.operating_profit,
            "operating_margin": self.operating_margin,
            "operating_margin_health": self.operating_margin_health.value,
            "paid_customers": self.paid_customers,
            "arpu": self.arpu,
            "ltv": self.ltv,
            "contribution_margin": self.contribution_margin,
            "break_even_customers": self.break_even_customers,
            "freemium_costs": self.freemium_costs,
            "freemium_cost_per_user": self.freemium_cost_per_user,
            "monthly_conversions": self.monthly_conversions,
            "projected_mrr_growth": self.projected_mrr_growth,
            "investor_metrics": self.investor_metrics.to_dict(),
            "verdict": self.verdict.name,
        }


@dataclass(frozen=True)
class PriceSensitivityRow:
    """Scenario outcome if one tier were priced differently."""
    price: float
    revenue: float
    gross_profit: float
    operating_profit: float
    gross_margin: float
    health: MarginHealth
    is_current: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "price": self.price,
            "revenue": self.revenue,
            "gross_profit": self.gross_profit,
            "operating_profit": self.operating_profit,
            "gross_margin": self.gross_margin,
            "health": self.health.value,
            "is_current": self.is_current,
        }


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def normalize_distribution(distribution: Mapping[str, float]) -> Dict[str, float]:
    """Scale tier weights so they sum to 100.

    A distribution with no positive total normalizes to all zeros.
    """
    total = sum(distribution.values())
    if total <= 0:
        return {tier_id: 0.0 for tier_id in distribution}
    return {tier_id: (weight / total) * 100 for tier_id, weight in distribution.items()}


def allocate_customers(
    distribution: Mapping[str, float],
    total_customers: int
) -> Dict[str, int]:
    """Whole customer count per tier from a (raw or normalized) distribution."""
    normalized = normalize_distribution(distribution)
    return {
        tier_id: _round_half_up((pct / 100) * total_customers)
        for tier_id, pct in normalized.items()
    }


def simulate_scenario(
    scenario: Scenario,
    tiers: Sequence[Tier],
    total_customers: int,
    fixed_costs: Sequence[FixedCostItem] = (),
    cost_rates: Optional[CostRates] = None,
    utilization_rate: float = 1.0,
    monthly_growth_rate: float = 0.0,
    estimated_cac: float = 0.0,
    free_tier_ids: Sequence[str] = FREE_TIER_IDS,
    currency: str = DEFAULT_CURRENCY
) -> ScenarioResult:
    """
    Simulate one month of a scenario.

    Free tiers earn nothing but still incur variable costs, which paying
    customers have to subsidize. Break-even therefore counts the paid
    customers needed to cover fixed costs plus the freemium subsidy.

    Args:
        scenario: Customer mix and retention assumptions
        tiers: Tier definitions; tiers missing from the distribution get no customers
        total_customers: Customers across all tiers, free included
        fixed_costs: Monthly fixed costs
        cost_rates: Variable cost rates; defaults when omitted
        utilization_rate: Share of plan limits customers use (0-1)
        monthly_growth_rate: Monthly growth as a decimal, for investor projections
        estimated_cac: Customer acquisition cost, 0 when unknown
        free_tier_ids: Tier ids that do not count as paying
        currency: Label for milestone names

    Returns:
        ScenarioResult including investor metrics and a verdict
    """
    normalized = normalize_distribution(scenario.distribution)
    counts = allocate_customers(normalized, total_customers)
    tier_costs = project_tier_costs(tiers, utilization_rate, cost_rates)

    tier_prices = {tier.id: tier.monthly_price for tier in tiers}
    revenue_by_tier = {
        tier.id: counts.get(tier.id, 0) * tier.monthly_price for tier in tiers
    }
    variable_costs_by_tier = {
        tier.id: tier_costs[tier.id].total * counts.get(tier.id, 0) for tier in tiers
    }

    mrr = sum(revenue_by_tier.values(), 0.0)
    total_variable_costs = sum(variable_costs_by_tier.values(), 0.0)
    total_fixed_costs = calculate_total_fixed_costs(fixed_costs)
    total_costs = total_variable_costs + total_fixed_costs

    gross_margin = calculate_gross_margin(mrr, total_variable_costs)
    operating_margin = calculate_operating_margin(mrr, total_variable_costs, total_fixed_costs)

    paid_ids = [tier.id for tier in tiers if tier.id not in free_tier_ids]
    free_ids = [tier.id for tier in tiers if tier.id in free_tier_ids]

    paid_customers = sum(counts.get(tier_id, 0) for tier_id in paid_ids)
    paid_revenue = sum((revenue_by_tier[tier_id] for tier_id in paid_ids), 0.0)
    arpu = paid_revenue / paid_customers if paid_customers > 0 else 0.0
    ltv = calculate_ltv_from_churn(arpu, scenario.monthly_churn_rate)

    paid_variable_costs = sum((variable_costs_by_tier[tier_id] for tier_id in paid_ids), 0.0)
    freemium_costs = sum((variable_costs_by_tier[tier_id] for tier_id in free_ids), 0.0)
    free_customers = sum(counts.get(tier_id, 0) for tier_id in free_ids)

    avg_paid_variable_cost = paid_variable_costs / paid_customers if paid_customers > 0 else 0.0
    contribution_margin = arpu - avg_paid_variable_cost

    # Paid customers cover fixed costs plus the freemium subsidy
    costs_to_recover = total_fixed_costs + freemium_costs
    break_even_customers = (
        math.ceil(costs_to_recover / contribution_margin) if contribution_margin > 0 else 0
    )

    freemium_cost_per_user = freemium_costs / free_customers if free_customers > 0 else 0.0
    monthly_conversions = free_customers * (scenario.conversion_rate / 100)

    investor_metrics = calculate_investor_metrics(
        mrr=mrr,
        paid_customers=paid_customers,
        arpu=arpu,
        gross_margin=gross_margin,
        break_even_customers=break_even_customers,
        monthly_growth_rate=monthly_growth_rate,
        ltv=ltv,
        estimated_cac=estimated_cac,
        currency=currency
    )

    gross_margin_health = get_gross_margin_health(gross_margin)
    operating_margin_health = get_operating_margin_health(operating_margin)

    return ScenarioResult(
        scenario=scenario,
        normalized_distribution=normalized,
        customer_counts=counts,
        tier_prices=tier_prices,
        tier_costs=tier_costs,
        revenue_by_tier=revenue_by_tier,
        variable_costs_by_tier=variable_costs_by_tier,
        mrr=mrr,
        total_variable_costs=total_variable_costs,
        total_fixed_costs=total_fixed_costs,
        total_costs=total_costs,
        gross_profit=mrr - total_variable_costs,
        gross_margin=gross_margin,
        gross_margin_health=gross_margin_health,
        operating_profit=mrr - total_costs,
        operating_margin=operating_margin,
        operating_margin_health=operating_margin_health,
        paid_customers=paid_customers,
        arpu=arpu,
        ltv=ltv,
        contribution_margin=contribution_margin,
        break_even_customers=break_even_customers,
        freemium_costs=freemium_costs,
        freemium_cost_per_user=freemium_cost_per_user,
        monthly_conversions=monthly_conversions,
        projected_mrr_growth=monthly_conversions * arpu,
        investor_metrics=investor_metrics,
        verdict=_determine_verdict(gross_margin_health, operating_margin_health)
    )


def _determine_verdict(
    gross_margin_health: MarginHealth,
    operating_margin_health: MarginHealth
) -> SimulationVerdict:
    """Worst margin health decides the verdict."""
    healths = (gross_margin_health, operating_margin_health)
    if MarginHealth.LOW in healths:
        return SimulationVerdict.FAIL
    elif MarginHealth.ACCEPTABLE in healths:
        return SimulationVerdict.WARN
    return SimulationVerdict.PASS


def price_sensitivity_points(base_price: float) -> List[float]:
    """Candidate prices around a base price, unique and ascending."""
    points = [
        max(10, _round_half_up(base_price * 0.6)),
        max(15, _round_half_up(base_price * 0.8)),
        base_price,
        _round_half_up(base_price * 1.2),
        _round_half_up(base_price * 1.5),
        _round_half_up(base_price * 2),
    ]
    return sorted(set(points))


def simulate_price_sensitivity(
    result: ScenarioResult,
    tier_id: str,
    price_points: Optional[Sequence[float]] = None
) -> List[PriceSensitivityRow]:
    """Re-price one tier in a simulated scenario.

    Customer counts and costs stay fixed; only the tier's revenue changes.

    Args:
        result: Simulated scenario to vary
        tier_id: Tier whose price is varied
        price_points: Prices to test; derived from the current price when omitted

    Returns:
        One row per price point
    """
    current_price = result.tier_prices.get(tier_id, 0.0)
    if price_points is None:
        price_points = price_sensitivity_points(current_price)

    other_revenue = sum(
        (revenue for other_id, revenue in result.revenue_by_tier.items() if other_id != tier_id),
        0.0
    )
    tier_customers = result.customer_counts.get(tier_id, 0)

    rows = []
    for price in price_points:
        revenue = other_revenue + tier_customers * price
        gross_margin = calculate_gross_margin(revenue, result.total_variable_costs)
        rows.append(PriceSensitivityRow(
            price=price,
            revenue=revenue,
            gross_profit=revenue - result.total_variable_costs,
            operating_profit=revenue - result.total_costs,
            gross_margin=gross_margin,
            health=get_gross_margin_health(gross_margin),
            is_current=price == current_price
        ))
    return rows
