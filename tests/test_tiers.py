"""
Unit tests for tier cost projection.
"""

import pytest

from saas_pricer.core.costs import CostCategory, CostRates, derive_cost_rates
from saas_pricer.core.margin import MarginHealth
from saas_pricer.core.tiers import (
    UNLIMITED,
    Tier,
    TierLimit,
    effective_limit,
    project_tier_cost,
    project_tier_costs,
    tier_margin,
    tier_margin_health,
)
from saas_pricer.demo.sample_data import SAMPLE_TIERS

TIERS = {tier.id: tier for tier in SAMPLE_TIERS}


class TestEffectiveLimit:
    """Test numeric usage ceilings."""

    def test_numeric_limit(self):
        assert effective_limit(TierLimit("ocr_extraction", 30)) == 30.0

    def test_boolean_limit_has_no_usage(self):
        """Verify on/off features contribute no usage."""
        assert effective_limit(TierLimit("api_access", True)) == 0.0

    def test_unlimited_uses_assumed_ceiling(self):
        """Verify unlimited limits use the assumed usage table."""
        assert effective_limit(TierLimit("ocr_extraction", UNLIMITED)) == 500.0
        assert effective_limit(TierLimit("invoice_emails", UNLIMITED)) == 5000.0

    def test_unlimited_without_ceiling_is_zero(self):
        """Verify unlimited features without a ceiling contribute nothing."""
        assert effective_limit(TierLimit("team_members", UNLIMITED)) == 0.0

    def test_custom_unlimited_table(self):
        limit = TierLimit("ocr_extraction", UNLIMITED)
        assert effective_limit(limit, {"ocr_extraction": 50}) == 50.0


class TestProjectTierCost:
    """Test variable cost projection for a single tier."""

    def test_basic_tier_full_utilization(self):
        """Verify every cost-mapped limit contributes limit * rate."""
        breakdown = project_tier_cost(TIERS["basic"])
        assert breakdown.category_totals[CostCategory.OCR] == pytest.approx(4.5)
        assert breakdown.category_totals[CostCategory.AI_PROCESSING] == pytest.approx(1.8)
        # invoice_emails and invoice_reminders share the email rate
        assert breakdown.category_totals[CostCategory.EMAIL] == pytest.approx(1.25)
        assert breakdown.category_totals[CostCategory.STORAGE] == pytest.approx(0.35)
        assert breakdown.total == pytest.approx(7.9)

    def test_utilization_applies_to_every_category(self):
        """Verify utilization scales all categories, storage included."""
        breakdown = project_tier_cost(TIERS["basic"], utilization_rate=0.5)
        assert breakdown.category_totals[CostCategory.STORAGE] == pytest.approx(0.175)
        assert breakdown.total == pytest.approx(3.95)

    def test_unlimited_enterprise_tier(self):
        """Verify unlimited limits are costed at their assumed ceiling."""
        breakdown = project_tier_cost(TIERS["enterprise"])
        # storage 100*0.07 + ocr 500*0.15 + emails 5000*0.005
        assert breakdown.total == pytest.approx(107.0)
        assert CostCategory.AI_PROCESSING not in breakdown.category_totals

    def test_custom_cost_rates(self):
        """Verify supplied rates replace the defaults."""
        rates = CostRates(rates={CostCategory.OCR: 0.1})
        breakdown = project_tier_cost(TIERS["basic"], cost_rates=rates)
        assert breakdown.category_totals[CostCategory.OCR] == pytest.approx(3.0)
        # No rate for the other categories
        assert breakdown.total == pytest.approx(3.0)

    def test_tier_without_limits(self):
        """Verify a tier with no limits costs nothing."""
        breakdown = project_tier_cost(Tier(id="empty", name="Empty", monthly_price=10))
        assert breakdown.total == 0.0
        assert breakdown.category_totals == {}

    def test_unknown_features_are_ignored(self):
        """Verify features without a cost category contribute nothing."""
        tier = Tier(
            id="x",
            name="X",
            monthly_price=10,
            limits=(TierLimit("team_members", 10), TierLimit("custom_reports", 5))
        )
        assert project_tier_cost(tier).total == 0.0

    def test_zero_utilization(self):
        assert project_tier_cost(TIERS["pro"], utilization_rate=0).total == 0.0

    def test_project_all_tiers(self):
        """Verify projection is keyed by tier id."""
        breakdowns = project_tier_costs(SAMPLE_TIERS, cost_rates=derive_cost_rates([]))
        assert set(breakdowns) == {"freemium", "basic", "pro", "enterprise"}
        assert breakdowns["pro"].total == pytest.approx(39.5)

    def test_to_dict(self):
        data = project_tier_cost(TIERS["basic"]).to_dict()
        assert data["category_totals"]["ocr"] == pytest.approx(4.5)
        assert data["total"] == pytest.approx(7.9)


class TestTierMargin:
    """Test tier margin and health."""

    def test_basic_tier_margin(self):
        """Verify (price - cost) / price."""
        breakdown = project_tier_cost(TIERS["basic"])
        # (25 - 7.9) / 25
        assert tier_margin(TIERS["basic"], breakdown) == pytest.approx(68.4)
        assert tier_margin_health(TIERS["basic"], breakdown) == MarginHealth.HEALTHY

    def test_free_tier_margin_is_zero(self):
        """Verify a zero price reports 0% instead of dividing by zero."""
        breakdown = project_tier_cost(TIERS["freemium"])
        assert tier_margin(TIERS["freemium"], breakdown) == 0.0
        assert tier_margin_health(TIERS["freemium"], breakdown) == MarginHealth.LOW

    def test_limit_lookup(self):
        assert TIERS["enterprise"].limit_for("ocr_extraction").is_unlimited
        assert TIERS["basic"].limit_for("api_access") is None
