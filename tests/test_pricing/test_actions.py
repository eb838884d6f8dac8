"""
Tests for the action executor

Each action kind sets the adjusted and proposal price together; external
choices fall back to the policy default whenever the chooser misbehaves.
"""

import time
from decimal import Decimal

import pytest

from tender_pricing.pricing.actions import ActionExecutor, fixed_chooser
from tender_pricing.pricing.models import Item, ItemType, PriceSource, ResolutionStatus
from tender_pricing.pricing.policy import PricingPolicy
from tender_pricing.rules.diagnostics import WarningCode, WarningCollector
from tender_pricing.rules.models import ActionKind, RuleAction
from tests.helpers import keep, make_item


ASK = RuleAction(
    action_id="ask",
    kind=ActionKind.REQUEST_EXTERNAL_CHOICE,
    choice_sources=(PriceSource.PLAN, PriceSource.MIN),
)


@pytest.fixture
def item() -> Item:
    item = make_item("Widget", min="95000", max="100000", plan="120000", floor="90000")
    item.price_before_adjust = item.price_plan
    return item


# ==============================================================================
# KEEP_INPUT_PRICE / DISABLE_REDUCTION
# ==============================================================================


def test_keep_input_price_copies_reference(
    item: Item, pricing_policy: PricingPolicy, warnings: WarningCollector
) -> None:
    executor = ActionExecutor(pricing_policy, warnings)

    executor.apply(item, keep("keep-min", PriceSource.MIN), "rule-1")

    assert item.price_after_adjust == Decimal("95000")
    assert item.price_proposal == Decimal("95000")
    assert item.matched_rule_id == "rule-1"
    assert item.resolution == ResolutionStatus.RESOLVED
    assert len(warnings) == 0


def test_keep_input_price_without_source_uses_plan(
    item: Item, pricing_policy: PricingPolicy, warnings: WarningCollector
) -> None:
    executor = ActionExecutor(pricing_policy, warnings)
    action = RuleAction(action_id="keep", kind=ActionKind.KEEP_INPUT_PRICE)

    executor.apply(item, action, "rule-1")

    assert item.price_proposal == Decimal("120000")
    assert [w.code for w in warnings.warnings] == [WarningCode.INCOMPLETE_ACTION]


def test_disable_reduction_keeps_starting_price(
    item: Item, pricing_policy: PricingPolicy, warnings: WarningCollector
) -> None:
    item.price_before_adjust = item.price_min
    executor = ActionExecutor(pricing_policy, warnings)

    executor.apply(
        item, RuleAction(action_id="off", kind=ActionKind.DISABLE_REDUCTION), "rule-1"
    )

    assert item.price_after_adjust == Decimal("95000")
    assert item.resolution == ResolutionStatus.RESOLVED
    assert executor.reduction_log == []


# ==============================================================================
# SEQUENTIAL_REDUCE
# ==============================================================================


def test_sequential_reduce_logs_every_step(
    vt_a: Item, pricing_policy: PricingPolicy, warnings: WarningCollector
) -> None:
    vt_a.price_before_adjust = vt_a.price_plan
    executor = ActionExecutor(pricing_policy, warnings)

    executor.apply(
        vt_a, RuleAction(action_id="reduce", kind=ActionKind.SEQUENTIAL_REDUCE), "rule-r"
    )

    assert vt_a.price_after_adjust == Decimal("874910.845908")
    assert vt_a.price_proposal == vt_a.price_after_adjust

    [entry] = executor.reduction_log
    assert entry.item_id == "vt-a"
    assert entry.original_price == Decimal("920000")
    assert entry.threshold_price == Decimal("870000")
    assert entry.step_percent == Decimal("0.01")
    assert len(entry.price_steps) == 5
    assert entry.final_price == vt_a.price_after_adjust


def test_sequential_reduce_uses_category_step(
    pricing_policy: PricingPolicy, warnings: WarningCollector
) -> None:
    reagent = make_item(
        "HC Main", ItemType.PRIMARY_REAGENT, plan="1420000", floor="1300000"
    )
    reagent.price_before_adjust = reagent.price_plan
    executor = ActionExecutor(pricing_policy, warnings)

    executor.apply(
        reagent, RuleAction(action_id="r", kind=ActionKind.SEQUENTIAL_REDUCE), "rule-r"
    )

    # 1420000 → 1384500 → 1349887.5 → 1316140.3125 (next would be < 1300000)
    assert reagent.price_after_adjust == Decimal("1316140.3125")
    assert executor.reduction_log[0].step_percent == Decimal("0.025")


def test_sequential_reduce_without_step_keeps_price(
    item: Item, warnings: WarningCollector
) -> None:
    policy = PricingPolicy(reduction_steps={ItemType.PRIMARY_REAGENT: Decimal("0.025")})
    executor = ActionExecutor(policy, warnings)

    executor.apply(
        item, RuleAction(action_id="r", kind=ActionKind.SEQUENTIAL_REDUCE), "rule-r"
    )

    assert item.price_after_adjust == Decimal("120000")
    [warning] = warnings.warnings
    assert warning.code == WarningCode.MISSING_REDUCTION_STEP
    assert warning.item_id == item.item_id
    assert executor.reduction_log[0].price_steps == []


def test_sequential_reduce_falls_back_to_plan_without_starting_price(
    pricing_policy: PricingPolicy, warnings: WarningCollector
) -> None:
    item = make_item("Widget", plan="100", floor="99")
    executor = ActionExecutor(pricing_policy, warnings)

    executor.apply(
        item, RuleAction(action_id="r", kind=ActionKind.SEQUENTIAL_REDUCE), "rule-r"
    )

    assert item.price_after_adjust == Decimal("99.00")


# ==============================================================================
# REQUEST_EXTERNAL_CHOICE
# ==============================================================================


def test_external_choice_defaults_to_policy_source(
    item: Item, pricing_policy: PricingPolicy, warnings: WarningCollector
) -> None:
    executor = ActionExecutor(pricing_policy, warnings)

    executor.apply(item, ASK, "rule-ask")

    assert item.price_proposal == Decimal("95000")
    assert len(warnings) == 0


def test_external_choice_uses_chooser_answer(
    item: Item, pricing_policy: PricingPolicy, warnings: WarningCollector
) -> None:
    offered = []

    def chooser(chosen_item: Item, sources: tuple[PriceSource, PriceSource]) -> PriceSource:
        offered.append((chosen_item.item_id, sources))
        return PriceSource.PLAN

    executor = ActionExecutor(pricing_policy, warnings, chooser)

    executor.apply(item, ASK, "rule-ask")

    assert item.price_proposal == Decimal("120000")
    assert offered == [(item.item_id, (PriceSource.PLAN, PriceSource.MIN))]


def test_external_choice_outside_offered_sources_falls_back(
    item: Item, pricing_policy: PricingPolicy, warnings: WarningCollector
) -> None:
    executor = ActionExecutor(pricing_policy, warnings, fixed_chooser(PriceSource.MAX))

    executor.apply(item, ASK, "rule-ask")

    assert item.price_proposal == Decimal("95000")
    [warning] = warnings.warnings
    assert warning.code == WarningCode.CHOICE_FALLBACK
    assert warning.rule_id == "rule-ask"
    assert warning.item_id == item.item_id


def test_external_choice_failure_falls_back(
    item: Item, warnings: WarningCollector
) -> None:
    def broken(chosen_item: Item, sources: tuple[PriceSource, PriceSource]) -> PriceSource:
        raise RuntimeError("terminal closed")

    policy = PricingPolicy(default_choice_source=PriceSource.PLAN)
    executor = ActionExecutor(policy, warnings, broken)

    executor.apply(item, ASK, "rule-ask")

    assert item.price_proposal == Decimal("120000")
    assert "terminal closed" in warnings.warnings[0].message


def test_external_choice_timeout_falls_back(
    item: Item, warnings: WarningCollector
) -> None:
    def silent(chosen_item: Item, sources: tuple[PriceSource, PriceSource]) -> PriceSource:
        time.sleep(5)
        return PriceSource.PLAN

    policy = PricingPolicy(choice_timeout_seconds=1)
    executor = ActionExecutor(policy, warnings, silent)

    executor.apply(item, ASK, "rule-ask")

    assert item.price_proposal == Decimal("95000")
    assert "timed out" in warnings.warnings[0].message
