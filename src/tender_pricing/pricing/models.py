"""
Price Reference Models - Tender line items and tender-level totals

These models carry the reference prices the rule engine reads and the
adjusted prices it writes. They hold no pricing behaviour beyond simple
derived values.

Key concepts:
- Reference prices: plan (KH), min, max, previous-winning (TD), ceiling (NY),
  floor threshold (TTTN)
- Working copy: the engine prices deep copies, never the caller's items
- Unset prices are None, never zero, so an unpriced item cannot pass as free
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from tender_pricing.kernel.errors import UnknownPriceSource
from tender_pricing.kernel.ids import generate_id


class ItemType(str, Enum):
    """
    Tender line item category

    The category selects the per-step discount rate used by sequential
    reduction (see PricingPolicy.reduction_steps).
    """

    GENERAL_GOODS = "GENERAL_GOODS"  # VATTU
    CONSUMABLE_TOOL = "CONSUMABLE_TOOL"  # VTTH
    CONTROL_REAGENT = "CONTROL_REAGENT"  # HOACHAT_CONTROL
    CALIBRATION_REAGENT = "CALIBRATION_REAGENT"  # HOACHAT_CALIB
    PRIMARY_REAGENT = "PRIMARY_REAGENT"  # HOACHAT_CHINH


class PriceSource(str, Enum):
    """Which reference price an action or a user choice refers to"""

    PLAN = "PLAN"  # KH - buyer's planned unit price
    MIN = "MIN"  # lowest comparable contract price
    MAX = "MAX"  # highest comparable contract price
    CEILING = "CEILING"  # NY - upper reference bound
    PREVIOUS_WINNING = "PREVIOUS_WINNING"  # TD
    FLOOR = "FLOOR"  # TTTN - reduction floor threshold

    @classmethod
    def parse(cls, value: "str | PriceSource") -> "PriceSource":
        """Parse a source name case-insensitively, raising UnknownPriceSource"""
        if isinstance(value, PriceSource):
            return value
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise UnknownPriceSource(value) from None


class ResolutionStatus(str, Enum):
    """
    Outcome of evaluating the rule tree for one item

    PENDING → RESOLVED (some action fired) | UNRESOLVED (none did)
    """

    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    UNRESOLVED = "UNRESOLVED"


class Item(BaseModel):
    """
    One tender line

    Attributes:
        item_id: Unique identifier
        name: Human-readable name (e.g. "VT A")
        item_type: Category, drives the reduction step
        quantity: Units requested
        price_min / price_max: Comparable contract price range
        price_previous_winning: Previous winning price (TD)
        price_ceiling: Upper reference bound (NY)
        price_plan: Planned unit price (KH)
        price_floor: Floor threshold for sequential reduction (TTTN)
        price_before_adjust: Starting price chosen from the tender's user_choice
        price_after_adjust: Price produced by the last applied action
        price_proposal: Submitted price (price_after_adjust, then rounded)
        matched_rule_id: Rule node whose action produced the final price
        resolution: Whether any action fired for this item
    """

    item_id: str = Field(default_factory=generate_id)
    name: str
    item_type: ItemType
    quantity: Decimal = Field(default=Decimal("1"), ge=0)

    price_min: Decimal = Field(default=Decimal("0"), ge=0)
    price_max: Decimal = Field(default=Decimal("0"), ge=0)
    price_previous_winning: Decimal = Field(default=Decimal("0"), ge=0)
    price_ceiling: Decimal = Field(default=Decimal("0"), ge=0)
    price_plan: Decimal = Field(default=Decimal("0"), ge=0)
    price_floor: Decimal = Field(default=Decimal("0"), ge=0)

    price_before_adjust: Decimal | None = Field(default=None, ge=0)
    price_after_adjust: Decimal | None = Field(default=None, ge=0)
    price_proposal: Decimal | None = Field(default=None, ge=0)
    matched_rule_id: str | None = None
    resolution: ResolutionStatus = ResolutionStatus.PENDING

    @property
    def total_value(self) -> Decimal:
        """Planned value of the line (plan price × quantity)"""
        return self.price_plan * self.quantity

    def reference_price(self, source: PriceSource) -> Decimal:
        """Get the reference price for a source"""
        return {
            PriceSource.PLAN: self.price_plan,
            PriceSource.MIN: self.price_min,
            PriceSource.MAX: self.price_max,
            PriceSource.CEILING: self.price_ceiling,
            PriceSource.PREVIOUS_WINNING: self.price_previous_winning,
            PriceSource.FLOOR: self.price_floor,
        }[source]

    def should_reduce_price(self, base_value: Decimal) -> bool:
        """Check if a price is at or above both the max price and the floor"""
        return base_value >= max(self.price_max, self.price_floor)

    def set_adjusted_price(self, price: Decimal, rule_id: str | None) -> None:
        """Set adjusted and proposal price together and mark the item resolved"""
        self.price_after_adjust = price
        self.price_proposal = price
        self.matched_rule_id = rule_id
        self.resolution = ResolutionStatus.RESOLVED

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "item_id": "vt-a",
                    "name": "VT A",
                    "item_type": "GENERAL_GOODS",
                    "quantity": "5",
                    "price_min": "900000",
                    "price_max": "880000",
                    "price_previous_winning": "855000",
                    "price_ceiling": "950000",
                    "price_plan": "920000",
                    "price_floor": "870000",
                }
            ]
        }
    }


class TenderContext(BaseModel):
    """
    Tender-level aggregate totals and choices

    Computed once from the item list before rule evaluation and frozen
    while rules run. Tender-level conditions only ever read this.

    Attributes:
        total_plan: Σ plan price × quantity (Tổng KH)
        total_min: Σ min price × quantity (Tổng MIN)
        total_previous_winning: Σ previous-winning price × quantity (Tổng TĐ)
        total_ceiling: Σ ceiling price × quantity (Tổng NY)
        user_choice: Reference price every item starts adjustment from
        selected_rule_code: Tender case chosen before pricing (e.g. "TH2.1")
    """

    total_plan: Decimal = Field(default=Decimal("0"), ge=0)
    total_min: Decimal = Field(default=Decimal("0"), ge=0)
    total_previous_winning: Decimal = Field(default=Decimal("0"), ge=0)
    total_ceiling: Decimal = Field(default=Decimal("0"), ge=0)
    user_choice: PriceSource = PriceSource.MIN
    selected_rule_code: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_items(
        cls,
        items: list[Item],
        user_choice: PriceSource = PriceSource.MIN,
        previous_winning_factor: Decimal | None = None,
    ) -> "TenderContext":
        """
        Aggregate reference totals across all items

        Args:
            items: Tender line items
            user_choice: Starting reference price for every item
            previous_winning_factor: If given, the previous-winning total is
                derived as total_min × factor instead of summed from items

        Returns:
            Frozen TenderContext
        """
        total_min = sum((i.price_min * i.quantity for i in items), Decimal("0"))
        if previous_winning_factor is not None:
            total_previous_winning = total_min * previous_winning_factor
        else:
            total_previous_winning = sum(
                (i.price_previous_winning * i.quantity for i in items), Decimal("0")
            )

        return cls(
            total_plan=sum((i.total_value for i in items), Decimal("0")),
            total_min=total_min,
            total_previous_winning=total_previous_winning,
            total_ceiling=sum(
                (i.price_ceiling * i.quantity for i in items), Decimal("0")
            ),
            user_choice=user_choice,
        )


class ReductionLogEntry(BaseModel):
    """
    Audit record of one sequential reduction

    Produced only when a SEQUENTIAL_REDUCE action fires; consumed by
    reporting, never fed back into pricing.
    """

    item_id: str
    item_name: str
    item_type: ItemType
    original_price: Decimal
    threshold_price: Decimal
    step_percent: Decimal
    price_steps: list[Decimal] = Field(default_factory=list)

    @property
    def final_price(self) -> Decimal:
        """Last price reached (the original price if no step was taken)"""
        return self.price_steps[-1] if self.price_steps else self.original_price
