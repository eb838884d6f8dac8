"""
Action Executor - Apply a rule's action to one item

Each ActionKind sets price_after_adjust and price_proposal together, so the
two only ever differ after the rounding pass.

| Kind                    | Effect                                          |
|-------------------------|-------------------------------------------------|
| KEEP_INPUT_PRICE        | copy reference_price(input_price_source)        |
| SEQUENTIAL_REDUCE       | reduce starting price step by step to the floor |
| REQUEST_EXTERNAL_CHOICE | ask the chooser which of two prices to use      |
| DISABLE_REDUCTION       | keep the starting price, deliberately           |
"""

from collections.abc import Callable
from decimal import Decimal

from tender_pricing.kernel.logging import get_logger
from tender_pricing.kernel.metrics import actions_applied_total, reduction_steps
from tender_pricing.kernel.timeout import TimeoutError, timeout_context
from tender_pricing.pricing.models import Item, PriceSource, ReductionLogEntry
from tender_pricing.pricing.policy import PricingPolicy
from tender_pricing.pricing.reduction import reduce_to_threshold
from tender_pricing.rules.diagnostics import WarningCode, WarningCollector
from tender_pricing.rules.models import ActionKind, RuleAction

logger = get_logger(__name__)

PriceChooser = Callable[[Item, tuple[PriceSource, PriceSource]], PriceSource]


def fixed_chooser(source: PriceSource) -> PriceChooser:
    """
    Build a chooser that always answers with the same source

    Used for headless runs and tests, and as the engine default
    (with the policy's default_choice_source).
    """

    def choose(item: Item, sources: tuple[PriceSource, PriceSource]) -> PriceSource:
        return source

    return choose


class ActionExecutor:
    """
    Applies rule actions to working copies of items

    One executor serves one pricing run: it owns the run's reduction log and
    writes problems to the run's warning collector.
    """

    def __init__(
        self,
        policy: PricingPolicy,
        warnings: WarningCollector,
        chooser: PriceChooser | None = None,
    ) -> None:
        self.policy = policy
        self.warnings = warnings
        self.chooser = chooser or fixed_chooser(policy.default_choice_source)
        self.reduction_log: list[ReductionLogEntry] = []

    def apply(self, item: Item, action: RuleAction, rule_id: str) -> None:
        """
        Apply one action to an item in place

        Args:
            item: Working copy being priced
            action: Action to apply
            rule_id: Node that bound the action (recorded as matched_rule_id)
        """
        if action.kind == ActionKind.KEEP_INPUT_PRICE:
            price = self._keep_input_price(item, action, rule_id)
        elif action.kind == ActionKind.SEQUENTIAL_REDUCE:
            price = self._sequential_reduce(item, rule_id)
        elif action.kind == ActionKind.REQUEST_EXTERNAL_CHOICE:
            price = self._external_choice(item, action, rule_id)
        else:
            price = _starting_price(item)

        item.set_adjusted_price(price, rule_id)
        actions_applied_total.labels(kind=action.kind.value).inc()
        logger.debug(
            "Action applied",
            action_id=action.action_id,
            kind=action.kind.value,
            rule_id=rule_id,
            item_id=item.item_id,
        )

    def _keep_input_price(self, item: Item, action: RuleAction, rule_id: str) -> Decimal:
        source = action.input_price_source
        if source is None:
            self.warnings.warn(
                WarningCode.INCOMPLETE_ACTION,
                f"Action {action.action_id} keeps an input price but names no "
                "source - using PLAN",
                action_id=action.action_id,
            )
            source = PriceSource.PLAN
        return item.reference_price(source)

    def _sequential_reduce(self, item: Item, rule_id: str) -> Decimal:
        start = _starting_price(item)
        step = self.policy.step_for(item.item_type)
        if step is None:
            self.warnings.warn(
                WarningCode.MISSING_REDUCTION_STEP,
                f"No reduction step configured for {item.item_type.value} - "
                "price kept unreduced",
                rule_id=rule_id,
                item_id=item.item_id,
            )
            step = Decimal("0")

        result = reduce_to_threshold(start, step, item.price_floor)
        reduction_steps.labels(item_type=item.item_type.value).observe(result.step_count)

        self.reduction_log.append(
            ReductionLogEntry(
                item_id=item.item_id,
                item_name=item.name,
                item_type=item.item_type,
                original_price=start,
                threshold_price=item.price_floor,
                step_percent=step,
                price_steps=result.steps,
            )
        )
        return result.final_price

    def _external_choice(self, item: Item, action: RuleAction, rule_id: str) -> Decimal:
        sources = action.choice_sources
        fallback = self.policy.default_choice_source
        reason: str | None = None

        try:
            with timeout_context(
                self.policy.choice_timeout_seconds, "choose_reference_price"
            ):
                chosen = self.chooser(item, sources)
        except TimeoutError:
            reason = "price choice timed out"
        except Exception as exc:
            logger.warning(
                "Price chooser failed",
                item_id=item.item_id,
                error=str(exc),
                exc_info=True,
            )
            reason = f"price chooser failed ({exc})"
        else:
            if chosen not in sources:
                reason = f"chooser returned {chosen!r}, not one of the offered prices"

        if reason is not None:
            self.warnings.warn(
                WarningCode.CHOICE_FALLBACK,
                f"{reason} - using {fallback.value}",
                rule_id=rule_id,
                item_id=item.item_id,
            )
            chosen = fallback

        return item.reference_price(PriceSource(chosen))


def _starting_price(item: Item) -> Decimal:
    if item.price_before_adjust is not None:
        return item.price_before_adjust
    return item.price_plan
