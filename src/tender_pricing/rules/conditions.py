"""
Condition Evaluator - Closed set of named price predicates

Rule conditions are identifiers from a fixed enumeration, each bound to one
boolean test over tender totals or item prices. There is no expression
parser: an identifier outside the enumeration simply never matches.

Fail-closed: unknown identifiers evaluate to False and are reported as
UNKNOWN_CONDITION warnings; they never abort the run.
"""

from collections.abc import Callable
from enum import Enum

from tender_pricing.pricing.models import Item, TenderContext
from tender_pricing.rules.diagnostics import WarningCode, WarningCollector


class ConditionId(str, Enum):
    """Every condition a rule node may reference"""

    # Tender level (context totals only)
    TOTAL_PLAN_GTE_TOTAL_MIN = "TOTAL_PLAN_GTE_TOTAL_MIN"
    TOTAL_PLAN_WITHIN_MIN_CEILING = "TOTAL_PLAN_WITHIN_MIN_CEILING"
    TOTAL_PREVIOUS_WINNING_BELOW_TOTAL_MIN = "TOTAL_PREVIOUS_WINNING_BELOW_TOTAL_MIN"
    TOTAL_PLAN_BETWEEN_PREVIOUS_WINNING_AND_MIN = (
        "TOTAL_PLAN_BETWEEN_PREVIOUS_WINNING_AND_MIN"
    )
    TOTAL_PLAN_BELOW_PREVIOUS_WINNING = "TOTAL_PLAN_BELOW_PREVIOUS_WINNING"
    TOTAL_CEILING_BELOW_TOTAL_PLAN = "TOTAL_CEILING_BELOW_TOTAL_PLAN"
    TOTAL_PREVIOUS_WINNING_ABOVE_CEILING = "TOTAL_PREVIOUS_WINNING_ABOVE_CEILING"

    # Item level
    MIN_BELOW_MAX = "MIN_BELOW_MAX"
    MIN_GTE_MAX = "MIN_GTE_MAX"
    PLAN_BELOW_MIN = "PLAN_BELOW_MIN"
    CEILING_BELOW_PLAN = "CEILING_BELOW_PLAN"
    PLAN_WITHIN_MIN_MAX = "PLAN_WITHIN_MIN_MAX"
    PLAN_ABOVE_MAX_WITHIN_CEILING = "PLAN_ABOVE_MAX_WITHIN_CEILING"

    @property
    def is_tender_level(self) -> bool:
        return self in _TENDER_PREDICATES


TenderPredicate = Callable[[TenderContext], bool]
ItemPredicate = Callable[[Item], bool]

_TENDER_PREDICATES: dict[ConditionId, TenderPredicate] = {
    ConditionId.TOTAL_PLAN_GTE_TOTAL_MIN: lambda c: c.total_plan >= c.total_min,
    ConditionId.TOTAL_PLAN_WITHIN_MIN_CEILING: (
        lambda c: c.total_min <= c.total_plan <= c.total_ceiling
    ),
    ConditionId.TOTAL_PREVIOUS_WINNING_BELOW_TOTAL_MIN: (
        lambda c: c.total_previous_winning < c.total_min
    ),
    ConditionId.TOTAL_PLAN_BETWEEN_PREVIOUS_WINNING_AND_MIN: (
        lambda c: c.total_previous_winning <= c.total_plan < c.total_min
    ),
    ConditionId.TOTAL_PLAN_BELOW_PREVIOUS_WINNING: (
        lambda c: c.total_plan < c.total_previous_winning
    ),
    ConditionId.TOTAL_CEILING_BELOW_TOTAL_PLAN: (
        lambda c: c.total_ceiling < c.total_plan
    ),
    ConditionId.TOTAL_PREVIOUS_WINNING_ABOVE_CEILING: (
        lambda c: c.total_previous_winning > c.total_ceiling
    ),
}

_ITEM_PREDICATES: dict[ConditionId, ItemPredicate] = {
    ConditionId.MIN_BELOW_MAX: lambda i: i.price_min < i.price_max,
    ConditionId.MIN_GTE_MAX: lambda i: i.price_min >= i.price_max,
    ConditionId.PLAN_BELOW_MIN: lambda i: i.price_plan < i.price_min,
    ConditionId.CEILING_BELOW_PLAN: lambda i: i.price_ceiling < i.price_plan,
    ConditionId.PLAN_WITHIN_MIN_MAX: (
        lambda i: i.price_min <= i.price_plan <= i.price_max
    ),
    ConditionId.PLAN_ABOVE_MAX_WITHIN_CEILING: (
        lambda i: i.price_max < i.price_plan <= i.price_ceiling
    ),
}


def parse_condition(condition: "str | ConditionId") -> ConditionId | None:
    """Resolve a condition identifier, None if it is not in the enumeration"""
    if isinstance(condition, ConditionId):
        return condition
    try:
        return ConditionId(condition.strip().upper())
    except ValueError:
        return None


def evaluate_condition(
    condition: "str | ConditionId",
    item: Item | None,
    context: TenderContext,
    *,
    warnings: WarningCollector | None = None,
    rule_id: str | None = None,
) -> bool:
    """
    Evaluate a named condition

    Args:
        condition: Condition identifier
        item: Item under evaluation; None when selecting a tender case,
            in which case item-level conditions never match
        context: Tender totals
        warnings: Collector for UNKNOWN_CONDITION warnings
        rule_id: Rule node carrying the condition (for the warning)

    Returns:
        True if the predicate holds; False for unknown identifiers
    """
    condition_id = parse_condition(condition)
    if condition_id is None:
        if warnings is not None:
            warnings.warn(
                WarningCode.UNKNOWN_CONDITION,
                f"Unknown condition {condition!r} treated as not matching",
                rule_id=rule_id,
            )
        return False

    tender_predicate = _TENDER_PREDICATES.get(condition_id)
    if tender_predicate is not None:
        return tender_predicate(context)

    if item is None:
        return False
    return _ITEM_PREDICATES[condition_id](item)
