"""
Tender Pricing - Rule-driven bid price adjustment for procurement tenders

Computes the proposal price of every line item in a tender from its
reference prices (plan, min, max, previous-winning, ceiling, floor) and a
configurable tree of business rules: keep a reference price, reduce step by
step toward a floor, ask the bid manager, or leave the price alone. A
rounding pass then snaps the proposals to the tender's granularity.
"""

from tender_pricing.engine import PricingRun, TenderPricingEngine, process_tender
from tender_pricing.pricing.models import (
    Item,
    ItemType,
    PriceSource,
    ReductionLogEntry,
    ResolutionStatus,
    TenderContext,
)
from tender_pricing.pricing.policy import PricingPolicy
from tender_pricing.rules.models import RuleConfig

__version__ = "0.1.0"
__all__ = [
    "TenderPricingEngine",
    "PricingRun",
    "process_tender",
    "Item",
    "ItemType",
    "PriceSource",
    "ReductionLogEntry",
    "ResolutionStatus",
    "TenderContext",
    "PricingPolicy",
    "RuleConfig",
    "__version__",
]
