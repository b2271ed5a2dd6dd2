# saas_pricer/demo/sample_data.py
"""
Sample pricing model used when no pricing model file is given.

Four tiers of an invoicing/bookkeeping SaaS with OCR, AI line-item
extraction, email and storage as variable cost drivers.
"""

from saas_pricer.config.loader import PricingModel
from saas_pricer.core.costs import FixedCostItem, VariableCostItem
from saas_pricer.core.scenario import DEFAULT_SCENARIOS
from saas_pricer.core.tiers import UNLIMITED, Tier, TierLimit

SAMPLE_VARIABLE_COSTS = (
    VariableCostItem(
        id="ocr",
        name="OCR Extraction",
        unit="document",
        cost_per_unit=0.15,
        usage_per_customer=30,
        description="Receipt and invoice OCR"
    ),
    VariableCostItem(
        id="ai-processing",
        name="AI Line Item Extraction",
        unit="line item",
        cost_per_unit=0.006,
        usage_per_customer=300,
        description="LLM line item parsing"
    ),
    VariableCostItem(
        id="email",
        name="Email Service",
        unit="email",
        cost_per_unit=0.005,
        usage_per_customer=200,
        description="Transactional emails"
    ),
    VariableCostItem(
        id="storage",
        name="Cloud Storage",
        unit="GB",
        cost_per_unit=0.07,
        usage_per_customer=5,
        description="Document storage"
    ),
)

SAMPLE_FIXED_COSTS = (
    FixedCostItem(id="hosting", name="Hosting", monthly_cost=50, description="Application hosting"),
    FixedCostItem(id="database", name="Database", monthly_cost=25, description="Managed Postgres"),
    FixedCostItem(id="monitoring", name="Monitoring", monthly_cost=20, description="Error tracking"),
)

SAMPLE_TIERS = (
    Tier(
        id="freemium",
        name="Freemium",
        monthly_price=0,
        limits=(
            TierLimit("dataroom_storage", 0.5, "GB"),
            TierLimit("ocr_extraction", 5, "extractions/month"),
            TierLimit("line_item_extraction", 50, "line items/month"),
            TierLimit("invoice_emails", 20, "emails/month"),
            TierLimit("team_members", 1, "user"),
        )
    ),
    Tier(
        id="basic",
        name="Basic",
        monthly_price=25,
        limits=(
            TierLimit("dataroom_storage", 5, "GB"),
            TierLimit("ocr_extraction", 30, "extractions/month"),
            TierLimit("line_item_extraction", 300, "line items/month"),
            TierLimit("invoice_emails", 200, "emails/month"),
            TierLimit("invoice_reminders", 50, "reminders/month"),
            TierLimit("team_members", 2, "users"),
        )
    ),
    Tier(
        id="pro",
        name="Pro",
        monthly_price=78,
        limits=(
            TierLimit("dataroom_storage", 25, "GB"),
            TierLimit("ocr_extraction", 150, "extractions/month"),
            TierLimit("line_item_extraction", 1500, "line items/month"),
            TierLimit("invoice_emails", 1000, "emails/month"),
            TierLimit("invoice_reminders", 250, "reminders/month"),
            TierLimit("team_members", 5, "users"),
        )
    ),
    Tier(
        id="enterprise",
        name="Enterprise",
        monthly_price=500,
        limits=(
            TierLimit("dataroom_storage", 100, "GB"),
            TierLimit("ocr_extraction", UNLIMITED),
            TierLimit("invoice_emails", UNLIMITED),
            TierLimit("team_members", UNLIMITED),
            TierLimit("api_access", True),
        )
    ),
)


def sample_pricing_model() -> PricingModel:
    """Sample model with default assumptions."""
    return PricingModel(
        tiers=SAMPLE_TIERS,
        variable_costs=SAMPLE_VARIABLE_COSTS,
        fixed_costs=SAMPLE_FIXED_COSTS,
        scenarios=DEFAULT_SCENARIOS
    )
