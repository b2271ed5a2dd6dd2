"""
Unit tests for the investor metrics snapshot.
"""

import json

import pytest

from saas_pricer.core.investor import calculate_investor_metrics
from saas_pricer.core.margin import MarginHealth
from saas_pricer.core.unit_economics import UnitEconomicsHealth


def _metrics(**overrides):
    inputs = dict(
        mrr=10000,
        paid_customers=100,
        arpu=100,
        gross_margin=75,
        break_even_customers=50,
        monthly_growth_rate=0.05,
        ltv=2000
    )
    inputs.update(overrides)
    return calculate_investor_metrics(**inputs)


class TestInvestorMetrics:
    """Test investor metrics aggregation."""

    def test_end_to_end(self):
        """Verify the headline numbers of a profitable company."""
        metrics = _metrics()
        assert metrics.arr == 120000
        assert metrics.valuation.valuation_mid == 1200000
        assert metrics.gross_margin_health == MarginHealth.HEALTHY
        assert metrics.customers_to_break_even == 0
        assert metrics.months_to_break_even == 0

    def test_milestones_included(self):
        metrics = _metrics()
        assert len(metrics.milestones) == 4
        # 120K ARR already passes the first milestone
        assert metrics.milestones[0].achieved

    def test_customers_to_break_even(self):
        metrics = _metrics(paid_customers=20, break_even_customers=50)
        assert metrics.customers_to_break_even == 30
        assert metrics.months_to_break_even == 19

    def test_without_cac(self):
        """Verify unknown CAC leaves ratio and payback undefined."""
        metrics = _metrics()
        assert metrics.ltv_cac_ratio is None
        assert metrics.payback_period_months is None
        assert metrics.ltv_cac_health == UnitEconomicsHealth.CONCERNING
        assert metrics.payback_health == UnitEconomicsHealth.CONCERNING

    def test_with_cac(self):
        metrics = _metrics(estimated_cac=500)
        assert metrics.ltv_cac_ratio == pytest.approx(4.0)
        assert metrics.ltv_cac_health == UnitEconomicsHealth.HEALTHY
        # 500 / 75 = 6.67 months
        assert metrics.payback_period_months == 7
        assert metrics.payback_health == UnitEconomicsHealth.HEALTHY

    def test_currency_label(self):
        assert _metrics(currency="USD").milestones[0].label == "USD 100K ARR"

    def test_same_inputs_same_result(self):
        assert _metrics() == _metrics()

    def test_snapshot_is_immutable(self):
        """Verify milestones are frozen with the snapshot."""
        metrics = _metrics()
        assert isinstance(metrics.milestones, tuple)
        assert hash(metrics) == hash(_metrics())

    def test_to_dict_is_plain_data(self):
        """Verify the snapshot serializes without custom encoders."""
        data = _metrics(estimated_cac=500).to_dict()
        decoded = json.loads(json.dumps(data))
        assert decoded["arr"] == 120000
        assert decoded["gross_margin_health"] == "healthy"
        assert decoded["valuation"]["valuation_high"] == 1800000
        assert decoded["milestones"][0]["months_to_reach"] == 0
