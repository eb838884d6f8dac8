"""
Tests for the rule tree walker and tender case selection

Fun fact: Decision trees were used for medical triage long before computers -
the 1980s Goldman algorithm for chest pain is a hand-drawn tree of yes/no
questions, and it beat physicians' unaided judgement!
"""

from decimal import Decimal

from tender_pricing.pricing.actions import ActionExecutor
from tender_pricing.pricing.models import Item, ItemType, PriceSource, TenderContext
from tender_pricing.pricing.policy import PricingPolicy
from tender_pricing.rules.diagnostics import WarningCode, WarningCollector
from tender_pricing.rules.models import RuleConfig
from tender_pricing.rules.walker import RuleTreeWalker, select_case
from tests.helpers import config_of, make_item, node


def widget() -> Item:
    item = make_item("Widget", min="95000", max="100000", plan="120000", floor="90000")
    item.price_before_adjust = item.price_plan
    return item


def walk(config: RuleConfig, item: Item, context: TenderContext | None = None):
    warnings = WarningCollector()
    executor = ActionExecutor(PricingPolicy(), warnings)
    applied = RuleTreeWalker(config, executor, warnings).walk(item, context or TenderContext())
    return applied, warnings, executor


# ==============================================================================
# Walking
# ==============================================================================


def test_deepest_matching_action_wins() -> None:
    config = config_of(
        node(
            "root",
            action_id="keep-plan",
            children=[node("child", condition="MIN_BELOW_MAX", action_id="keep-min")],
        )
    )
    item = widget()

    applied, _, _ = walk(config, item)

    assert applied == 2
    assert item.price_proposal == Decimal("95000")
    assert item.matched_rule_id == "child"


def test_false_condition_prunes_subtree() -> None:
    config = config_of(
        node(
            "root",
            condition="PLAN_BELOW_MIN",
            children=[node("child", action_id="keep-min")],
        )
    )
    item = widget()

    applied, _, _ = walk(config, item)

    assert applied == 0
    assert item.price_proposal is None
    assert item.matched_rule_id is None


def test_siblings_visit_in_declaration_order() -> None:
    config = config_of(
        node(
            "root",
            children=[
                node("first", action_id="keep-min"),
                node("second", action_id="keep-plan"),
            ],
        )
    )
    item = widget()

    walk(config, item)

    assert item.matched_rule_id == "second"
    assert item.price_proposal == Decimal("120000")


def test_inactive_node_prunes_subtree() -> None:
    config = config_of(
        node(
            "root",
            children=[
                node("off", is_active=False, action_id="keep-plan",
                     children=[node("deep", action_id="keep-min")]),
            ],
        )
    )
    item = widget()

    applied, _, _ = walk(config, item)

    assert applied == 0


def test_type_filter_skips_other_item_types() -> None:
    config = config_of(
        node(
            "root",
            children=[
                node("reagents", applies_to_types=[ItemType.PRIMARY_REAGENT],
                     action_id="keep-plan"),
                node("goods", applies_to_types=[ItemType.GENERAL_GOODS],
                     action_id="keep-min"),
            ],
        )
    )
    item = widget()

    walk(config, item)

    assert item.matched_rule_id == "goods"


def test_tender_condition_gates_item_rules() -> None:
    config = config_of(
        node(
            "root",
            children=[
                node("case", condition="TOTAL_PLAN_GTE_TOTAL_MIN",
                     children=[node("leaf", condition="MIN_BELOW_MAX", action_id="keep-min")]),
            ],
        )
    )
    below = TenderContext(total_plan=Decimal("90"), total_min=Decimal("100"))
    above = TenderContext(total_plan=Decimal("110"), total_min=Decimal("100"))

    assert walk(config, widget(), below)[0] == 0
    assert walk(config, widget(), above)[0] == 1


def test_missing_action_warns_and_continues() -> None:
    config = config_of(
        node(
            "root",
            action_id="ghost",
            children=[node("child", action_id="keep-min")],
        )
    )
    item = widget()

    applied, warnings, _ = walk(config, item)

    assert applied == 1
    assert item.matched_rule_id == "child"
    [warning] = warnings.warnings
    assert warning.code == WarningCode.MISSING_ACTION
    assert warning.rule_id == "root"
    assert warning.item_id is None


def test_unknown_condition_prunes_and_warns() -> None:
    config = config_of(
        node("root", children=[node("odd", condition="FULL_MOON", action_id="keep-min")])
    )
    item = widget()

    applied, warnings, _ = walk(config, item)

    assert applied == 0
    assert warnings.warnings[0].code == WarningCode.UNKNOWN_CONDITION


def test_walker_does_not_touch_other_items() -> None:
    config = config_of(node("root", action_id="keep-min"))
    priced, bystander = widget(), widget()

    walk(config, priced)

    assert priced.price_proposal == Decimal("95000")
    assert bystander.price_proposal is None


# ==============================================================================
# Case selection
# ==============================================================================


def test_select_case_default_tree(default_config: RuleConfig, tender_context: TenderContext) -> None:
    assert select_case(tender_context, default_config.root) == "TH2.1"


def test_select_case_takes_first_matching_child() -> None:
    root = node(
        "root",
        children=[
            node("a", condition="TOTAL_PLAN_GTE_TOTAL_MIN", case_code="A",
                 children=[node("a1", condition="MIN_BELOW_MAX", case_code="A.1")]),
            node("b", condition="TOTAL_PLAN_GTE_TOTAL_MIN", case_code="B"),
        ],
    )
    context = TenderContext(total_plan=Decimal("10"), total_min=Decimal("5"))

    # Item-level child never matches without an item
    assert select_case(context, root) == "A"


def test_select_case_none_when_nothing_matches() -> None:
    root = node(
        "root",
        children=[
            node("a", condition="TOTAL_PLAN_GTE_TOTAL_MIN", case_code="A"),
            node("typed", applies_to_types=[ItemType.GENERAL_GOODS], case_code="GOODS"),
        ],
    )
    context = TenderContext(total_plan=Decimal("1"), total_min=Decimal("5"))

    assert select_case(context, root) is None


def test_select_case_passes_through_grouping_nodes() -> None:
    root = node(
        "root",
        children=[
            node("group", case_code="", children=[
                node("a", condition="TOTAL_PLAN_GTE_TOTAL_MIN", case_code="A"),
            ]),
        ],
    )
    context = TenderContext(total_plan=Decimal("10"), total_min=Decimal("5"))

    assert select_case(context, root) == "A"


def test_select_case_th3(default_config: RuleConfig) -> None:
    context = TenderContext(
        total_plan=Decimal("100"),
        total_min=Decimal("90"),
        total_previous_winning=Decimal("130"),
        total_ceiling=Decimal("120"),
        user_choice=PriceSource.PLAN,
    )

    assert select_case(context, default_config.root) == "TH3"
