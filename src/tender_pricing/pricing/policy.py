"""
Pricing Policy - Tunable parameters of the pricing engine

The PricingPolicy holds the numbers that are business decisions rather than
rule structure: how fast each item category is discounted, which price to
fall back to when nobody answers a price choice, how long to wait, and which
tender cases start from a fixed reference price regardless of the user's choice.

The default values reproduce the category rates the tender team has always
used; pass a modified policy to experiment without touching rule trees.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from tender_pricing.pricing.models import ItemType, PriceSource


def default_forced_start_sources() -> dict[str, PriceSource]:
    """Tender cases whose starting price is fixed, whatever the user chose"""
    return {
        "TH2.1": PriceSource.MIN,
        "TH2.1.1": PriceSource.MIN,
    }


def default_reduction_steps() -> dict[ItemType, Decimal]:
    """Per-category discount applied at each reduction step"""
    return {
        ItemType.GENERAL_GOODS: Decimal("0.01"),  # 1%
        ItemType.CONSUMABLE_TOOL: Decimal("0.015"),  # 1.5%
        ItemType.CONTROL_REAGENT: Decimal("0.02"),  # 2%
        ItemType.CALIBRATION_REAGENT: Decimal("0.02"),  # 2%
        ItemType.PRIMARY_REAGENT: Decimal("0.025"),  # 2.5%
    }


class PricingPolicy(BaseModel):
    """
    Engine parameters

    A policy is read-only during a run. Build a new one (model_copy with
    update=...) to compare alternatives against the same items.
    """

    policy_version: str = Field(
        default="1.0",
        description="Policy version for tracking changes over time",
    )

    reduction_steps: dict[ItemType, Decimal] = Field(
        default_factory=default_reduction_steps,
        description="Discount fraction per reduction step, by item type",
    )

    forced_start_sources: dict[str, PriceSource] = Field(
        default_factory=default_forced_start_sources,
        description=(
            "Starting price source imposed by the selected tender case, "
            "overriding the context's user_choice"
        ),
    )

    default_choice_source: PriceSource = Field(
        default=PriceSource.MIN,
        description="Price used when an external choice is unavailable or invalid",
    )

    choice_timeout_seconds: int | None = Field(
        default=None,
        ge=1,
        description="Upper bound on one external price choice (None = unbounded)",
    )

    previous_winning_factor: Decimal | None = Field(
        default=None,
        gt=0,
        description=(
            "If set, the tender previous-winning total is derived as "
            "total_min × factor instead of summed from items"
        ),
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "description": "Tunable parameters of the tender pricing engine"
        },
    }

    def step_for(self, item_type: ItemType) -> Decimal | None:
        """Get the reduction step for an item type, None if not configured"""
        return self.reduction_steps.get(item_type)

    def forced_start_source(self, case_code: str | None) -> PriceSource | None:
        """Get the starting price a tender case imposes, None if the choice is open"""
        if case_code is None:
            return None
        return self.forced_start_sources.get(case_code)


default_pricing_policy = PricingPolicy()
