"""
Rules - Rule configuration, condition evaluation and tree walking

Fun fact: MYCIN, a 1970s Stanford expert system, chose antibiotics with a
few hundred if-then rules - a tender case table is the same idea in a spreadsheet!
"""

from tender_pricing.rules.conditions import ConditionId, evaluate_condition
from tender_pricing.rules.diagnostics import ConfigWarning, WarningCode
from tender_pricing.rules.models import (
    ActionKind,
    FlatRule,
    RoundingMode,
    RoundingPolicy,
    RuleAction,
    RuleConfig,
    RuleNode,
)

__all__ = [
    "ActionKind",
    "ConditionId",
    "ConfigWarning",
    "FlatRule",
    "RoundingMode",
    "RoundingPolicy",
    "RuleAction",
    "RuleConfig",
    "RuleNode",
    "WarningCode",
    "evaluate_condition",
]
