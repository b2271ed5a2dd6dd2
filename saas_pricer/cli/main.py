"""
CLI interface for saas-pricer.

Provides command-line access to COGS, tier costs, scenario simulation,
price sensitivity and investor metrics.
"""

import logging
import sys
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from saas_pricer.config.loader import PricingModel, load_pricing_model
from saas_pricer.core.costs import (
    calculate_break_even_customers,
    calculate_cogs_breakdown,
    calculate_item_cost_per_customer,
    cost_items_to_dicts,
)
from saas_pricer.core.investor import InvestorMetrics, calculate_investor_metrics
from saas_pricer.core.margin import MarginHealth, get_margin_info
from saas_pricer.core.scenario import (
    ScenarioResult,
    SimulationVerdict,
    simulate_price_sensitivity,
    simulate_scenario,
)
from saas_pricer.core.tiers import project_tier_costs, tier_margin, tier_margin_health
from saas_pricer.core.unit_economics import (
    LTV_FALLBACK_LIFETIME_MONTHS,
    UnitEconomicsHealth,
    calculate_ltv_from_churn,
)
from saas_pricer.core.valuation import format_valuation_range
from saas_pricer.demo.sample_data import sample_pricing_model

logger = logging.getLogger(__name__)

app = typer.Typer()
console = Console()
err_console = Console(stderr=True)

# Exit codes - WARN is non-failing (0)
EXIT_CODE_PASS = 0
EXIT_CODE_WARN = 0  # Non-failing warning
EXIT_CODE_FAIL = 1  # Failing error

_HEALTH_STYLES = {
    MarginHealth.HEALTHY: "green",
    MarginHealth.ACCEPTABLE: "yellow",
    MarginHealth.LOW: "red",
    UnitEconomicsHealth.HEALTHY: "green",
    UnitEconomicsHealth.ACCEPTABLE: "yellow",
    UnitEconomicsHealth.CONCERNING: "red",
}

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help="YAML pricing model file (defaults to the bundled sample)"
)
JsonOption = typer.Option(False, "--json", help="Print machine-readable JSON")


def _verdict_to_exit_code(verdict: SimulationVerdict) -> int:
    """Convert simulation verdict to CLI exit code."""
    return {
        SimulationVerdict.PASS: EXIT_CODE_PASS,
        SimulationVerdict.WARN: EXIT_CODE_WARN,
        SimulationVerdict.FAIL: EXIT_CODE_FAIL,
    }[verdict]


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    package_logger = logging.getLogger("saas_pricer")
    package_logger.setLevel(logging.DEBUG)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(RichHandler(console=err_console, show_path=False))


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")
):
    """saas-pricer CLI."""
    _configure_logging(verbose)
    if ctx.invoked_subcommand is None:
        console.print("saas-pricer - Use --help to see available commands")


def _load_model(config: Optional[str], quiet: bool) -> PricingModel:
    if config is None:
        if not quiet:
            console.print("[dim]Using sample pricing model. Use --config to provide your own.[/]\n")
        return sample_pricing_model()
    model = load_pricing_model(config)
    logger.debug("Loaded pricing model from %s with %d tiers", config, len(model.tiers))
    return model


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/] {str(error)}")
    sys.exit(EXIT_CODE_FAIL)


@app.command()
def cogs(
    config: Optional[str] = ConfigOption,
    customers: Optional[int] = typer.Option(
        None, "--customers", "-n", min=1, help="Number of customers"
    ),
    price: Optional[float] = typer.Option(
        None, "--price", "-p", min=0, help="Price per customer for margin calculation"
    ),
    utilization: float = typer.Option(
        1.0, "--utilization", "-u", min=0, max=1, help="Share of usage actually consumed"
    ),
    json_output: bool = JsonOption
):
    """Calculate COGS per customer and, with --price, the resulting margin."""
    try:
        model = _load_model(config, quiet=json_output)
    except (OSError, ValueError, yaml.YAMLError) as e:
        _fail(e)

    customer_count = customers or model.customers
    breakdown = calculate_cogs_breakdown(
        model.variable_costs, model.fixed_costs, customer_count, utilization
    )
    margin = get_margin_info(price, breakdown.total_cogs) if price is not None else None
    break_even = None
    if price is not None:
        break_even = calculate_break_even_customers(
            breakdown.fixed_total, price, breakdown.variable_total
        )

    if json_output:
        data = {
            "customers": customer_count,
            "currency": model.currency,
            "variable_costs": cost_items_to_dicts(model.variable_costs),
            "breakdown": breakdown.to_dict(),
        }
        if margin is not None:
            data["price"] = price
            data["margin"] = margin.to_dict()
            data["break_even_customers"] = break_even
        console.print_json(data=data)
        sys.exit(EXIT_CODE_PASS)

    table = Table(title=f"Variable costs per customer ({model.currency})")
    table.add_column("Item")
    table.add_column("Unit")
    table.add_column("Cost/unit", justify="right")
    table.add_column("Usage", justify="right")
    table.add_column("Per customer", justify="right")
    for item in model.variable_costs:
        table.add_row(
            item.name,
            item.unit,
            f"{item.cost_per_unit:,.4f}",
            f"{item.usage_per_customer * utilization:,.1f}",
            _format_currency(calculate_item_cost_per_customer(item, utilization), model.currency)
        )
    console.print(table)

    console.print(f"\n[bold]COGS for {customer_count:,} customers[/bold]")
    console.print("-" * 40)
    console.print(f"Variable cost/customer: {_format_currency(breakdown.variable_total, model.currency)}")
    console.print(f"Fixed costs (monthly): {_format_currency(breakdown.fixed_total, model.currency)}")
    console.print(f"Fixed cost/customer: {_format_currency(breakdown.fixed_per_customer, model.currency)}")
    console.print(f"Total COGS/customer: {_format_currency(breakdown.total_cogs, model.currency)}")

    if margin is not None:
        console.print(f"\nPrice: {_format_currency(price, model.currency)}")
        console.print(f"Profit/customer: {_format_currency(margin.profit, model.currency)}")
        console.print(f"Gross margin: {_format_health(margin.margin, margin.health)}")
        console.print(f"Break-even customers: {break_even if break_even is not None else 'never'}")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def tiers(
    config: Optional[str] = ConfigOption,
    utilization: Optional[float] = typer.Option(
        None, "--utilization", "-u", min=0, max=1, help="Override the model's utilization rate"
    ),
    json_output: bool = JsonOption
):
    """Project variable cost and margin for every tier."""
    try:
        model = _load_model(config, quiet=json_output)
    except (OSError, ValueError, yaml.YAMLError) as e:
        _fail(e)

    rate = model.utilization_rate if utilization is None else utilization
    breakdowns = project_tier_costs(model.tiers, rate, model.cost_rates())

    if json_output:
        console.print_json(data={
            "utilization_rate": rate,
            "tiers": [
                {
                    "id": tier.id,
                    "name": tier.name,
                    "monthly_price": tier.monthly_price,
                    "cost": breakdowns[tier.id].to_dict(),
                    "margin": tier_margin(tier, breakdowns[tier.id]),
                    "health": tier_margin_health(tier, breakdowns[tier.id]).value,
                }
                for tier in model.tiers
            ],
        })
        sys.exit(EXIT_CODE_PASS)

    table = Table(title=f"Tier costs at {rate:.0%} utilization ({model.currency})")
    table.add_column("Tier")
    table.add_column("Price", justify="right")
    table.add_column("Variable cost", justify="right")
    table.add_column("Margin", justify="right")
    for tier in model.tiers:
        breakdown = breakdowns[tier.id]
        table.add_row(
            tier.name,
            _format_currency(tier.monthly_price, model.currency),
            _format_currency(breakdown.total, model.currency),
            _format_health(tier_margin(tier, breakdown), tier_margin_health(tier, breakdown))
        )
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


def _run_simulation(
    model: PricingModel,
    scenario: Optional[str],
    customers: Optional[int],
    growth: Optional[float],
    cac: Optional[float]
) -> ScenarioResult:
    return simulate_scenario(
        scenario=model.get_scenario(scenario),
        tiers=model.tiers,
        total_customers=customers or model.customers,
        fixed_costs=model.fixed_costs,
        cost_rates=model.cost_rates(),
        utilization_rate=model.utilization_rate,
        monthly_growth_rate=model.monthly_growth_rate if growth is None else growth,
        estimated_cac=model.estimated_cac if cac is None else cac,
        free_tier_ids=model.free_tier_ids(),
        currency=model.currency
    )


@app.command()
def simulate(
    config: Optional[str] = ConfigOption,
    scenario: Optional[str] = typer.Option(
        None, "--scenario", "-s", help="Scenario name (defaults to the first)"
    ),
    customers: Optional[int] = typer.Option(
        None, "--customers", "-n", min=0, help="Total customers, free tiers included"
    ),
    growth: Optional[float] = typer.Option(
        None, "--growth", "-g", min=0, help="Monthly customer growth as a decimal, e.g. 0.05"
    ),
    cac: Optional[float] = typer.Option(
        None, "--cac", min=0, help="Customer acquisition cost"
    ),
    enforced: bool = typer.Option(
        False, "--enforced", "-e", help="Exit with error code if the verdict is FAIL"
    ),
    json_output: bool = JsonOption
):
    """
    Simulate a customer-mix scenario.

    Reports revenue, costs, margins, unit economics and investor metrics for
    one month. With --enforced, a FAIL verdict (low gross or operating margin)
    exits with a non-zero code; WARN still exits 0.
    """
    try:
        model = _load_model(config, quiet=json_output)
        result = _run_simulation(model, scenario, customers, growth, cac)
    except (OSError, ValueError, yaml.YAMLError) as e:
        _fail(e)

    if json_output:
        console.print_json(data=result.to_dict())
    else:
        _display_simulation_result(result, model.currency)

    if enforced:
        sys.exit(_verdict_to_exit_code(result.verdict))
    sys.exit(EXIT_CODE_PASS)


@app.command()
def sensitivity(
    config: Optional[str] = ConfigOption,
    tier: str = typer.Option("basic", "--tier", "-t", help="Tier to re-price"),
    scenario: Optional[str] = typer.Option(None, "--scenario", "-s", help="Scenario name"),
    customers: Optional[int] = typer.Option(None, "--customers", "-n", min=0),
    json_output: bool = JsonOption
):
    """Show how re-pricing one tier changes revenue and margins."""
    try:
        model = _load_model(config, quiet=json_output)
        model.get_tier(tier)
        result = _run_simulation(model, scenario, customers, None, None)
    except (OSError, ValueError, yaml.YAMLError) as e:
        _fail(e)

    rows = simulate_price_sensitivity(result, tier)

    if json_output:
        console.print_json(data={
            "tier": tier,
            "scenario": result.scenario.name,
            "rows": [row.to_dict() for row in rows],
        })
        sys.exit(EXIT_CODE_PASS)

    table = Table(title=f"{tier} price sensitivity ({result.scenario.name})")
    table.add_column("Price", justify="right")
    table.add_column("MRR", justify="right")
    table.add_column("Gross profit", justify="right")
    table.add_column("Operating profit", justify="right")
    table.add_column("Gross margin", justify="right")
    for row in rows:
        label = _format_currency(row.price, model.currency)
        if row.is_current:
            label += " (current)"
        table.add_row(
            label,
            _format_currency(row.revenue, model.currency),
            _format_currency(row.gross_profit, model.currency),
            _format_currency(row.operating_profit, model.currency),
            _format_health(row.gross_margin, row.health)
        )
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def investor(
    mrr: float = typer.Option(..., "--mrr", min=0, help="Monthly recurring revenue"),
    customers: int = typer.Option(..., "--customers", "-n", min=0, help="Paying customers"),
    arpu: float = typer.Option(..., "--arpu", min=0, help="Average revenue per paying customer"),
    gross_margin: float = typer.Option(..., "--gross-margin", help="Gross margin percentage"),
    break_even: int = typer.Option(
        0, "--break-even", min=0, help="Paying customers needed to break even"
    ),
    growth: float = typer.Option(
        0.05, "--growth", "-g", min=0, help="Monthly customer growth as a decimal"
    ),
    ltv: Optional[float] = typer.Option(
        None,
        "--ltv",
        min=0,
        help=f"Customer lifetime value (defaults to ARPU x {LTV_FALLBACK_LIFETIME_MONTHS} months)"
    ),
    cac: float = typer.Option(0.0, "--cac", min=0, help="Customer acquisition cost"),
    currency: str = typer.Option("MYR", "--currency", help="Currency label"),
    json_output: bool = JsonOption
):
    """Calculate investor metrics from headline numbers."""
    metrics = calculate_investor_metrics(
        mrr=mrr,
        paid_customers=customers,
        arpu=arpu,
        gross_margin=gross_margin,
        break_even_customers=break_even,
        monthly_growth_rate=growth,
        ltv=ltv if ltv is not None else calculate_ltv_from_churn(arpu, 0),
        estimated_cac=cac,
        currency=currency.upper()
    )

    if json_output:
        console.print_json(data=metrics.to_dict())
    else:
        _display_investor_metrics(metrics, currency.upper())
    sys.exit(EXIT_CODE_PASS)


def _format_currency(amount: float, currency: str) -> str:
    """Format currency with sign and thousands separators."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency} {abs(amount):,.2f}"


def _format_months(months: Optional[int]) -> str:
    if months is None:
        return "not reachable"
    if months == 0:
        return "achieved"
    return f"{months} months"


def _format_health(value: float, health) -> str:
    style = _HEALTH_STYLES[health]
    return f"[{style}]{value:,.1f}% ({health.value})[/]"


def _display_simulation_result(result: ScenarioResult, currency: str) -> None:
    """Display scenario results in a clean, financial format."""
    console.print(f"\n[bold]Scenario Simulation: {result.scenario.name}[/bold]")
    console.print("-" * 40)

    table = Table()
    table.add_column("Tier")
    table.add_column("Customers", justify="right")
    table.add_column("Revenue", justify="right")
    table.add_column("Variable cost", justify="right")
    for tier_id, revenue in result.revenue_by_tier.items():
        table.add_row(
            tier_id,
            f"{result.customer_counts.get(tier_id, 0):,}",
            _format_currency(revenue, currency),
            _format_currency(result.variable_costs_by_tier[tier_id], currency)
        )
    console.print(table)

    console.print(f"MRR: {_format_currency(result.mrr, currency)}")
    console.print(f"Total costs: {_format_currency(result.total_costs, currency)}")
    console.print(f"Gross margin: {_format_health(result.gross_margin, result.gross_margin_health)}")
    console.print(
        f"Operating margin: {_format_health(result.operating_margin, result.operating_margin_health)}"
    )
    console.print(f"ARPU: {_format_currency(result.arpu, currency)}")
    console.print(f"LTV: {_format_currency(result.ltv, currency)}")
    console.print(f"Break-even paid customers: {result.break_even_customers:,}")
    console.print(
        f"Freemium subsidy: {_format_currency(result.freemium_costs, currency)} "
        f"({_format_currency(result.freemium_cost_per_user, currency)}/user)"
    )
    console.print(
        f"Monthly conversions: ~{result.monthly_conversions:,.0f} "
        f"(+{_format_currency(result.projected_mrr_growth, currency)} MRR)"
    )

    _display_investor_metrics(result.investor_metrics, currency)
    console.print(f"\n[bold]Verdict:[/bold] {result.verdict.name}")


def _display_investor_metrics(metrics: InvestorMetrics, currency: str) -> None:
    console.print("\n[bold]Investor Metrics[/bold]")
    console.print("-" * 40)
    console.print(f"ARR: {_format_currency(metrics.arr, currency)}")
    console.print(f"Valuation range: {format_valuation_range(metrics.valuation, currency)}")
    console.print(f"Gross margin health: {metrics.gross_margin_health.value}")
    console.print(f"Customers to break-even: {metrics.customers_to_break_even:,}")
    console.print(f"Months to break-even: {_format_months(metrics.months_to_break_even)}")

    ratio = metrics.ltv_cac_ratio
    console.print(
        f"LTV:CAC: {'n/a' if ratio is None else f'{ratio:.1f}:1'} ({metrics.ltv_cac_health.value})"
    )
    console.print(
        f"Payback: {_format_months(metrics.payback_period_months)} ({metrics.payback_health.value})"
    )

    table = Table(title="ARR milestones")
    table.add_column("Milestone")
    table.add_column("Customers needed", justify="right")
    table.add_column("Time to reach", justify="right")
    for milestone in metrics.milestones:
        table.add_row(
            milestone.label,
            f"{milestone.customers_needed:,}",
            _format_months(milestone.months_to_reach)
        )
    console.print(table)


if __name__ == "__main__":
    app()
