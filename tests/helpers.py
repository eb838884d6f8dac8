"""
Test Helper Functions - Builders for items and rule trees

Keeps tests readable: a rule tree in a test should look like a rule tree,
not like a page of keyword arguments.
"""

from decimal import Decimal
from typing import Any

from tender_pricing.pricing.models import Item, ItemType, PriceSource
from tender_pricing.rules.models import (
    ActionKind,
    RoundingMode,
    RoundingPolicy,
    RuleAction,
    RuleConfig,
    RuleNode,
)


def make_item(
    name: str = "Item",
    item_type: ItemType = ItemType.GENERAL_GOODS,
    quantity: str = "1",
    **prices: str,
) -> Item:
    """
    Builder for test items

    Args:
        name: Item name (also used as item_id, lowercased)
        item_type: Item category
        quantity: Units
        **prices: Reference prices by short name (min, max, plan, ceiling,
            previous_winning, floor), as strings

    Example:
        >>> make_item("HC C", ItemType.CONTROL_REAGENT, min="1200000", plan="1220000")
    """
    return Item(
        item_id=name.lower().replace(" ", "-"),
        name=name,
        item_type=item_type,
        quantity=Decimal(quantity),
        **{f"price_{key}": Decimal(value) for key, value in prices.items()},
    )


def demo_items() -> list[Item]:
    """The five-line sample tender"""
    return [
        make_item("VT A", ItemType.GENERAL_GOODS, "5",
                  min="900000", max="880000", floor="870000", ceiling="950000", plan="920000"),
        make_item("VT B", ItemType.GENERAL_GOODS, "4",
                  min="850000", max="830000", floor="810000", ceiling="890000", plan="860000"),
        make_item("TT A", ItemType.CONSUMABLE_TOOL, "6",
                  min="760000", max="780000", floor="770000", ceiling="800000", plan="780000"),
        make_item("HC C", ItemType.CONTROL_REAGENT, "3",
                  min="1200000", max="1180000", floor="1170000", ceiling="1250000", plan="1220000"),
        make_item("HC Main", ItemType.PRIMARY_REAGENT, "2",
                  min="1400000", max="1350000", floor="1300000", ceiling="1450000", plan="1420000"),
    ]


def node(
    rule_id: str,
    condition: str | None = None,
    action_id: str | None = None,
    children: list[RuleNode] | None = None,
    **extra: Any,
) -> RuleNode:
    """Builder for rule nodes (case_code defaults to the rule id)"""
    return RuleNode(
        rule_id=rule_id,
        case_code=extra.pop("case_code", rule_id),
        condition=condition,
        action_id=action_id,
        children=children or [],
        **extra,
    )


def keep(action_id: str, source: PriceSource) -> RuleAction:
    return RuleAction(
        action_id=action_id, kind=ActionKind.KEEP_INPUT_PRICE, input_price_source=source
    )


def standard_actions() -> list[RuleAction]:
    """One action of each kind, with short ids"""
    return [
        keep("keep-min", PriceSource.MIN),
        keep("keep-plan", PriceSource.PLAN),
        RuleAction(action_id="reduce", kind=ActionKind.SEQUENTIAL_REDUCE),
        RuleAction(action_id="ask", kind=ActionKind.REQUEST_EXTERNAL_CHOICE),
        RuleAction(action_id="disable", kind=ActionKind.DISABLE_REDUCTION),
    ]


def config_of(
    root: RuleNode,
    actions: list[RuleAction] | None = None,
    rounding: list[RoundingPolicy] | None = None,
) -> RuleConfig:
    """Builder for a RuleConfig using standard_actions() by default"""
    return RuleConfig(
        root=root,
        actions=standard_actions() if actions is None else actions,
        rounding_policies=rounding or [],
        name="test",
    )


def round_up(rule_id: str, round_to: str = "1000") -> RoundingPolicy:
    return RoundingPolicy(
        policy_id=f"round-{rule_id}",
        rule_id=rule_id,
        round_to=Decimal(round_to),
        mode=RoundingMode.UP,
    )
