"""
Default rule configuration - the tender team's standard case table

Written as a flat, parent-linked table (the way the cases are kept in the
team's spreadsheet) and turned into a tree by RuleConfig.from_flat_rules.

Case overview:

    TH2      previous-winning total < min total
      TH2.1    min ≤ plan ≤ ceiling (totals)
        TH2.1.1  item min ≥ max        → keep MIN
        TH2.1.2  item min < max        → reduce to floor, round up to 1000
      TH2.2    previous-winning ≤ plan < min (totals)   → ask KH or MIN
      TH2.3    plan < previous-winning (totals)         → ask KH or MIN
      TH2.4    ceiling < plan (totals)                  → no reduction, unless
        TH2.4.1  item ceiling < plan   → keep CEILING
        TH2.4.2  item min ≤ plan ≤ max → reduce to floor, round up to 1000
    TH3      previous-winning total > ceiling total    → ask KH or MIN
"""

from decimal import Decimal

from tender_pricing.kernel.ids import IdFactory, default_id_factory
from tender_pricing.pricing.models import PriceSource
from tender_pricing.rules.conditions import ConditionId
from tender_pricing.rules.models import (
    ActionKind,
    FlatRule,
    RoundingMode,
    RoundingPolicy,
    RuleAction,
    RuleConfig,
)

KEEP_MIN = "keep-min"
KEEP_CEILING = "keep-ceiling"
REDUCE = "sequential-reduce"
ASK_PLAN_OR_MIN = "ask-plan-or-min"
NO_REDUCTION = "no-reduction"

DEFAULT_ROUND_TO = Decimal("1000")


def default_actions() -> list[RuleAction]:
    """Action table shared by the default cases"""
    return [
        RuleAction(
            action_id=KEEP_MIN,
            kind=ActionKind.KEEP_INPUT_PRICE,
            input_price_source=PriceSource.MIN,
            description="Bid the lowest comparable price",
        ),
        RuleAction(
            action_id=KEEP_CEILING,
            kind=ActionKind.KEEP_INPUT_PRICE,
            input_price_source=PriceSource.CEILING,
            description="Bid the ceiling price",
        ),
        RuleAction(
            action_id=REDUCE,
            kind=ActionKind.SEQUENTIAL_REDUCE,
            description="Reduce by the category step down to the floor threshold",
        ),
        RuleAction(
            action_id=ASK_PLAN_OR_MIN,
            kind=ActionKind.REQUEST_EXTERNAL_CHOICE,
            choice_sources=(PriceSource.PLAN, PriceSource.MIN),
            description="Ask the bid manager to pick the plan or the min price",
        ),
        RuleAction(
            action_id=NO_REDUCTION,
            kind=ActionKind.DISABLE_REDUCTION,
            description="Keep the starting price",
        ),
    ]


def default_rule_config(id_factory: IdFactory | None = None) -> RuleConfig:
    """
    Build the standard case tree

    Args:
        id_factory: Rule id generator (UUIDv7-like ids by default; pass a
            SequentialIdFactory for reproducible ids)

    Returns:
        RuleConfig with the TH2/TH3 case tree, actions and rounding
    """
    ids = id_factory or default_id_factory

    th2 = ids.generate()
    th2_1 = ids.generate()
    th2_1_2 = ids.generate()
    th2_4 = ids.generate()
    th2_4_2 = ids.generate()

    rules = [
        FlatRule(
            rule_id=th2,
            case_code="TH2",
            rule_name="Previous-winning total below min total",
            level=1,
            condition=ConditionId.TOTAL_PREVIOUS_WINNING_BELOW_TOTAL_MIN.value,
        ),
        FlatRule(
            rule_id=th2_1,
            case_code="TH2.1",
            rule_name="Min total ≤ plan total ≤ ceiling total",
            level=2,
            parent_id=th2,
            condition=ConditionId.TOTAL_PLAN_WITHIN_MIN_CEILING.value,
        ),
        FlatRule(
            rule_id=ids.generate(),
            case_code="TH2.1.1",
            rule_name="Min price not below max price - keep min",
            level=3,
            parent_id=th2_1,
            condition=ConditionId.MIN_GTE_MAX.value,
            action_id=KEEP_MIN,
        ),
        FlatRule(
            rule_id=th2_1_2,
            case_code="TH2.1.2",
            rule_name="Min price below max price - reduce",
            level=3,
            parent_id=th2_1,
            condition=ConditionId.MIN_BELOW_MAX.value,
            action_id=REDUCE,
        ),
        FlatRule(
            rule_id=ids.generate(),
            case_code="TH2.2",
            rule_name="Previous-winning total ≤ plan total < min total",
            level=2,
            parent_id=th2,
            condition=ConditionId.TOTAL_PLAN_BETWEEN_PREVIOUS_WINNING_AND_MIN.value,
            action_id=ASK_PLAN_OR_MIN,
        ),
        FlatRule(
            rule_id=ids.generate(),
            case_code="TH2.3",
            rule_name="Plan total below previous-winning total",
            level=2,
            parent_id=th2,
            condition=ConditionId.TOTAL_PLAN_BELOW_PREVIOUS_WINNING.value,
            action_id=ASK_PLAN_OR_MIN,
        ),
        FlatRule(
            rule_id=th2_4,
            case_code="TH2.4",
            rule_name="Ceiling total below plan total",
            level=2,
            parent_id=th2,
            condition=ConditionId.TOTAL_CEILING_BELOW_TOTAL_PLAN.value,
            action_id=NO_REDUCTION,
        ),
        FlatRule(
            rule_id=ids.generate(),
            case_code="TH2.4.1",
            rule_name="Ceiling price below plan price - keep ceiling",
            level=3,
            parent_id=th2_4,
            condition=ConditionId.CEILING_BELOW_PLAN.value,
            action_id=KEEP_CEILING,
        ),
        FlatRule(
            rule_id=th2_4_2,
            case_code="TH2.4.2",
            rule_name="Plan price within min-max - reduce",
            level=3,
            parent_id=th2_4,
            condition=ConditionId.PLAN_WITHIN_MIN_MAX.value,
            action_id=REDUCE,
        ),
        FlatRule(
            rule_id=ids.generate(),
            case_code="TH3",
            rule_name="Previous-winning total above ceiling total",
            level=1,
            condition=ConditionId.TOTAL_PREVIOUS_WINNING_ABOVE_CEILING.value,
            action_id=ASK_PLAN_OR_MIN,
        ),
    ]

    rounding = [
        RoundingPolicy(
            policy_id=ids.generate(),
            rule_id=rule_id,
            round_to=DEFAULT_ROUND_TO,
            mode=RoundingMode.UP,
        )
        for rule_id in (th2_1_2, th2_4_2)
    ]

    return RuleConfig.from_flat_rules(
        rules,
        actions=default_actions(),
        rounding_policies=rounding,
        name="default",
        id_factory=ids,
    )
