"""
Pytest configuration and shared fixtures

pytest loads conftest.py as a local, per-directory plugin before collecting
the tests next to it, so these fixtures are available to every test module
under tests/ without an import.
"""

from decimal import Decimal

import pytest

from tender_pricing.kernel.ids import SequentialIdFactory
from tender_pricing.pricing.models import Item, PriceSource, TenderContext
from tender_pricing.pricing.policy import PricingPolicy
from tender_pricing.rules.defaults import default_rule_config
from tender_pricing.rules.diagnostics import WarningCollector
from tender_pricing.rules.models import RuleConfig
from tests.helpers import demo_items


@pytest.fixture
def pricing_policy() -> PricingPolicy:
    """Provide the default pricing policy (category steps 1% to 2.5%)"""
    return PricingPolicy()


@pytest.fixture
def warnings() -> WarningCollector:
    """Provide an empty warning collector for a single run"""
    return WarningCollector()


@pytest.fixture
def items() -> list[Item]:
    """
    Provide the five demo tender lines

    Two general goods, one consumable tool and two reagents - the same
    sample the tender team uses to walk new staff through the case table.
    """
    return demo_items()


@pytest.fixture
def tender_context(items: list[Item]) -> TenderContext:
    """
    Provide totals for the demo items

    Previous-winning total is derived as 95% of the min total, which puts
    the demo tender in case TH2.1.
    """
    return TenderContext.from_items(
        items, user_choice=PriceSource.MIN, previous_winning_factor=Decimal("0.95")
    )


@pytest.fixture
def default_config() -> RuleConfig:
    """Provide the standard case tree with reproducible rule ids"""
    return default_rule_config(SequentialIdFactory("rule"))


@pytest.fixture
def vt_a() -> Item:
    """
    Provide the "VT A" line used in the reduction walkthrough

    Starting from its plan price 920,000 with a 1% step, five steps fit
    above the 870,000 floor.
    """
    return Item(
        item_id="vt-a",
        name="VT A",
        item_type="GENERAL_GOODS",
        quantity=Decimal("5"),
        price_min=Decimal("900000"),
        price_max=Decimal("880000"),
        price_floor=Decimal("870000"),
        price_ceiling=Decimal("950000"),
        price_plan=Decimal("920000"),
    )
