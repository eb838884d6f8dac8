"""
Rule Diagnostics - Structured warnings for configuration and resolution problems

Nothing that goes wrong while pricing a single item aborts the tender.
Problems are collected as ConfigWarning records, logged, counted, and handed
back to the caller, who decides whether they block submission.
"""

from enum import Enum

from pydantic import BaseModel

from tender_pricing.kernel.logging import get_logger
from tender_pricing.kernel.metrics import config_warnings_total

logger = get_logger(__name__)


class WarningCode(str, Enum):
    """Kinds of non-fatal problems reported by a pricing run"""

    UNKNOWN_CONDITION = "UNKNOWN_CONDITION"  # condition id not in ConditionId
    MISSING_ACTION = "MISSING_ACTION"  # node references an unknown action_id
    INCOMPLETE_ACTION = "INCOMPLETE_ACTION"  # action lacks a required field
    ORPHAN_ROUNDING_POLICY = "ORPHAN_ROUNDING_POLICY"  # policy for unknown rule
    UNRESOLVED_ITEM = "UNRESOLVED_ITEM"  # no action fired for an item
    CHOICE_FALLBACK = "CHOICE_FALLBACK"  # external choice replaced by default
    MISSING_REDUCTION_STEP = "MISSING_REDUCTION_STEP"  # no step for item type


class ConfigWarning(BaseModel):
    """
    One reported problem

    Attributes:
        code: Warning kind
        message: Human-readable explanation
        rule_id: Rule node involved, if any
        item_id: Item involved, if any
        action_id: Action involved, if any
    """

    code: WarningCode
    message: str
    rule_id: str | None = None
    item_id: str | None = None
    action_id: str | None = None

    model_config = {"frozen": True}


class WarningCollector:
    """
    Accumulates warnings for one pricing run

    Identical warnings (same code, rule, item and action) are recorded once.
    Rule configuration problems carry no item id, so an unknown condition on
    a node visited for every item is reported once for the whole run.
    """

    def __init__(self) -> None:
        self._warnings: list[ConfigWarning] = []
        self._seen: set[tuple[WarningCode, str | None, str | None, str | None]] = set()

    def warn(
        self,
        code: WarningCode,
        message: str,
        *,
        rule_id: str | None = None,
        item_id: str | None = None,
        action_id: str | None = None,
    ) -> None:
        key = (code, rule_id, item_id, action_id)
        if key in self._seen:
            return
        self._seen.add(key)

        self._warnings.append(
            ConfigWarning(
                code=code,
                message=message,
                rule_id=rule_id,
                item_id=item_id,
                action_id=action_id,
            )
        )
        config_warnings_total.labels(code=code.value).inc()
        logger.warning(
            message,
            code=code.value,
            rule_id=rule_id,
            item_id=item_id,
            action_id=action_id,
        )

    def extend(self, warnings: list[ConfigWarning]) -> None:
        for w in warnings:
            self.warn(
                w.code,
                w.message,
                rule_id=w.rule_id,
                item_id=w.item_id,
                action_id=w.action_id,
            )

    @property
    def warnings(self) -> list[ConfigWarning]:
        return list(self._warnings)

    def __len__(self) -> int:
        return len(self._warnings)
