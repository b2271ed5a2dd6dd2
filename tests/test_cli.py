"""
Tests for the CLI interface.
"""
import json
import os
import tempfile
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from saas_pricer.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from saas_pricer.core.scenario import SimulationVerdict

runner = CliRunner()

LOSS_MAKING_MODEL = {
    "fixed_costs": [{"id": "hosting", "name": "Hosting", "monthly_cost": 500}],
    "tiers": [
        {"id": "cheap", "name": "Cheap", "monthly_price": 5,
         "limits": {"ocr_extraction": 100}},
    ],
    "scenarios": [
        {"name": "All cheap", "distribution": {"cheap": 100},
         "monthly_churn_rate": 5, "conversion_rate": 0},
    ],
}


@pytest.fixture
def config_file():
    """Write a pricing model file and return its path."""
    temp_dir = tempfile.mkdtemp()

    def _write(data: dict) -> str:
        path = os.path.join(temp_dir, "pricing.yaml")
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f)
        return path

    yield _write

    import shutil
    shutil.rmtree(temp_dir, ignore_errors=True)


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_hint(self):
        result = runner.invoke(app, [])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Use --help" in result.output

    def test_cogs_command(self):
        """Test COGS breakdown on the sample model."""
        result = runner.invoke(app, ["cogs", "--customers", "100", "--price", "25"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Using sample pricing model" in result.output
        assert "Total COGS/customer: MYR 8.60" in result.output
        assert "Break-even customers: 6" in result.output

    def test_cogs_json(self):
        """Test machine-readable COGS output."""
        result = runner.invoke(app, ["cogs", "--customers", "100", "--price", "25", "--json"])

        assert result.exit_code == EXIT_CODE_PASS
        data = json.loads(result.stdout)
        assert data["breakdown"]["total_cogs"] == pytest.approx(8.6)
        assert data["margin"]["health"] == "acceptable"
        # 95 / (25 - 7.65) = 5.48
        assert data["break_even_customers"] == 6

    def test_tiers_json(self):
        """Test tier projection uses the model utilization rate."""
        result = runner.invoke(app, ["tiers", "--json"])

        assert result.exit_code == EXIT_CODE_PASS
        data = json.loads(result.stdout)
        assert data["utilization_rate"] == 0.7
        basic = next(t for t in data["tiers"] if t["id"] == "basic")
        assert basic["cost"]["total"] == pytest.approx(7.9 * 0.7)

    def test_tiers_table(self):
        result = runner.invoke(app, ["tiers", "--utilization", "1"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Enterprise" in result.output

    def test_simulate_command_basic(self):
        """Test basic simulate command."""
        result = runner.invoke(app, ["simulate"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Scenario Simulation: Early Stage" in result.output
        assert "Investor Metrics" in result.output
        assert "Verdict: PASS" in result.output

    def test_simulate_json(self):
        result = runner.invoke(app, ["simulate", "--scenario", "growth", "--json"])

        assert result.exit_code == EXIT_CODE_PASS
        data = json.loads(result.stdout)
        assert data["scenario"]["name"] == "Growth"
        assert data["customer_counts"]["basic"] == 200
        assert data["investor_metrics"]["arr"] == pytest.approx(data["mrr"] * 12)

    def test_simulate_overrides(self):
        """Test customer and CAC options override the model."""
        result = runner.invoke(
            app, ["simulate", "--customers", "2000", "--cac", "100", "--json"]
        )

        data = json.loads(result.stdout)
        assert data["paid_customers"] == 400
        assert data["investor_metrics"]["ltv_cac_ratio"] is not None

    def test_simulate_enforced_flag_failure(self, config_file):
        """Test enforced flag with failure."""
        path = config_file(LOSS_MAKING_MODEL)

        result = runner.invoke(app, ["simulate", "--config", path, "--enforced"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Verdict: FAIL" in result.output

    def test_simulate_failure_without_enforced(self, config_file):
        """Test that FAIL only changes the exit code when enforced."""
        path = config_file(LOSS_MAKING_MODEL)

        result = runner.invoke(app, ["simulate", "--config", path])

        assert result.exit_code == EXIT_CODE_PASS

    def test_simulate_enforced_warn_exits_zero(self):
        """Test that WARN is non-failing."""
        with patch('saas_pricer.core.scenario._determine_verdict',
                   return_value=SimulationVerdict.WARN):
            result = runner.invoke(app, ["simulate", "--enforced"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Verdict: WARN" in result.output

    def test_simulate_unknown_scenario(self):
        result = runner.invoke(app, ["simulate", "--scenario", "Hypergrowth"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown scenario" in result.output

    def test_missing_config_file(self):
        result = runner.invoke(app, ["tiers", "--config", "/nonexistent.yaml"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error:" in result.output
        assert "not found" in result.output

    def test_invalid_config_file(self, config_file):
        path = config_file({"tiers": []})

        result = runner.invoke(app, ["cogs", "--config", path])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "at least one tier" in result.output

    def test_sensitivity_json(self):
        """Test price sensitivity for one tier."""
        result = runner.invoke(app, ["sensitivity", "--tier", "pro", "--json"])

        assert result.exit_code == EXIT_CODE_PASS
        data = json.loads(result.stdout)
        assert [row["price"] for row in data["rows"]] == [47, 62, 78, 94, 117, 156]
        assert [row["is_current"] for row in data["rows"]].count(True) == 1

    def test_sensitivity_table(self):
        result = runner.invoke(app, ["sensitivity"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "current" in result.output

    def test_sensitivity_unknown_tier(self):
        result = runner.invoke(app, ["sensitivity", "--tier", "gold"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown tier: gold" in result.output

    def test_investor_command(self):
        """Test investor metrics from headline numbers."""
        result = runner.invoke(app, [
            "investor", "--mrr", "10000", "--customers", "100", "--arpu", "100",
            "--gross-margin", "75", "--break-even", "50", "--ltv", "2000", "--json"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        data = json.loads(result.stdout)
        assert data["arr"] == 120000
        assert data["valuation"]["valuation_mid"] == 1200000
        assert data["gross_margin_health"] == "healthy"
        assert data["customers_to_break_even"] == 0

    def test_investor_table(self):
        result = runner.invoke(app, [
            "investor", "--mrr", "10000", "--customers", "100", "--arpu", "100",
            "--gross-margin", "75"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "MYR 600K - MYR 1.8M" in result.output
        assert "ARR milestones" in result.output

    def test_investor_default_ltv(self):
        """Test LTV falls back to the assumed customer lifetime."""
        result = runner.invoke(app, [
            "investor", "--mrr", "10000", "--customers", "100", "--arpu", "100",
            "--gross-margin", "75", "--json"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert json.loads(result.stdout)["ltv"] == 2400

    def test_investor_tiny_growth(self):
        """Test a growth rate below float resolution still reports."""
        result = runner.invoke(app, [
            "investor", "--mrr", "1000", "--customers", "10", "--arpu", "100",
            "--gross-margin", "75", "--break-even", "50", "-g", "1e-17", "--json"
        ])

        assert result.exit_code == EXIT_CODE_PASS
        data = json.loads(result.stdout)
        assert data["customers_to_break_even"] == 40

    def test_investor_requires_inputs(self):
        result = runner.invoke(app, ["investor", "--mrr", "10000"])
        assert result.exit_code != EXIT_CODE_PASS

    def test_verbose_flag(self):
        result = runner.invoke(app, ["--verbose", "tiers"])
        assert result.exit_code == EXIT_CODE_PASS
