"""
TenderPricingEngine - Main façade

The single entry point for pricing a tender. It hides the rule walker,
action executor and rounding pass behind one call and returns the priced
items together with everything a reviewer needs before submission: the
reduction audit log, configuration warnings and unresolved items.

Example:
    >>> from tender_pricing import TenderPricingEngine, TenderContext
    >>> from tender_pricing.rules.defaults import default_rule_config
    >>> engine = TenderPricingEngine(default_rule_config())
    >>> context = TenderContext.from_items(items)
    >>> run = engine.evaluate(items, context)
    >>> run.blocks_submission  # any item left unpriced?
    False
    >>> [i.price_proposal for i in run.items]
"""

from tender_pricing.kernel.logging import (
    LogOperation,
    generate_correlation_id,
    get_logger,
    set_correlation_id,
)
from tender_pricing.kernel.metrics import record_run
from tender_pricing.pricing.actions import ActionExecutor, PriceChooser
from tender_pricing.pricing.models import (
    Item,
    ReductionLogEntry,
    ResolutionStatus,
    TenderContext,
)
from tender_pricing.pricing.policy import PricingPolicy
from tender_pricing.pricing.rounding import apply_rounding
from tender_pricing.rules.diagnostics import ConfigWarning, WarningCode, WarningCollector
from tender_pricing.rules.models import RuleConfig
from tender_pricing.rules.validation import check_config
from tender_pricing.rules.walker import RuleTreeWalker, select_case

logger = get_logger(__name__)


class PricingRun:
    """
    Result of one pricing run

    Holds priced working copies; the caller's items are never touched.
    """

    def __init__(
        self,
        items: list[Item],
        context: TenderContext,
        reduction_log: list[ReductionLogEntry],
        warnings: list[ConfigWarning],
        correlation_id: str = "",
    ):
        self.items = items
        self.context = context
        self.reduction_log = reduction_log
        self.warnings = warnings
        self.correlation_id = correlation_id

    @property
    def selected_rule_code(self) -> str | None:
        return self.context.selected_rule_code

    @property
    def unresolved_items(self) -> list[Item]:
        """Items no rule action priced"""
        return [i for i in self.items if i.resolution == ResolutionStatus.UNRESOLVED]

    @property
    def blocks_submission(self) -> bool:
        """Check if any item is left without a price"""
        return bool(self.unresolved_items)

    def warnings_by_code(self, code: WarningCode) -> list[ConfigWarning]:
        return [w for w in self.warnings if w.code == code]


class TenderPricingEngine:
    """
    Tender pricing engine façade

    One engine binds a rule configuration, a pricing policy and an optional
    price chooser; it can price any number of tenders. Runs share nothing,
    so the same base items can be priced under different configurations
    by building several engines.
    """

    def __init__(
        self,
        config: RuleConfig,
        policy: PricingPolicy | None = None,
        chooser: PriceChooser | None = None,
    ) -> None:
        """
        Initialize engine

        Args:
            config: Rule tree, action table and rounding table
            policy: Pricing parameters (uses defaults if None)
            chooser: Answers REQUEST_EXTERNAL_CHOICE actions (always the
                policy's default_choice_source if None)
        """
        self.config = config
        self.policy = policy or PricingPolicy()
        self.chooser = chooser

    def select_case(self, context: TenderContext) -> TenderContext:
        """
        Record the tender-level case on a copy of the context

        Returns:
            New frozen context with selected_rule_code set (None if no case matches)
        """
        return context.model_copy(
            update={"selected_rule_code": select_case(context, self.config.root)}
        )

    def evaluate(self, items: list[Item], context: TenderContext) -> PricingRun:
        """
        Price every item of a tender

        Steps: select the tender case, let the case override
        context.user_choice where the policy forces a starting price,
        deep-copy the items, set each starting price, walk the rule tree
        per item, mark items no action reached as UNRESOLVED, then round.

        Each run gets a fresh correlation id, carried by every log line of
        the run and returned on the PricingRun.

        Args:
            items: Tender items (not modified)
            context: Tender totals, computed once by the caller

        Returns:
            PricingRun with priced copies, reduction log and warnings
        """
        correlation_id = generate_correlation_id()
        set_correlation_id(correlation_id)

        warnings = WarningCollector()
        executor = ActionExecutor(self.policy, warnings, self.chooser)
        walker = RuleTreeWalker(self.config, executor, warnings)

        with LogOperation(
            logger,
            "pricing_run",
            config=self.config.name,
            policy_version=self.policy.policy_version,
            item_count=len(items),
        ) as op:
            warnings.extend(check_config(self.config))
            context = self.select_case(context)
            if context.selected_rule_code is not None:
                logger.info("Tender case selected", case_code=context.selected_rule_code)

            forced = self.policy.forced_start_source(context.selected_rule_code)
            if forced is not None and forced != context.user_choice:
                logger.info(
                    "Starting price imposed by tender case",
                    case_code=context.selected_rule_code,
                    requested=context.user_choice.value,
                    applied=forced.value,
                )
                context = context.model_copy(update={"user_choice": forced})

            working = [item.model_copy(deep=True) for item in items]
            for item in working:
                item.price_before_adjust = item.reference_price(context.user_choice)
                if walker.walk(item, context) == 0:
                    item.resolution = ResolutionStatus.UNRESOLVED
                    warnings.warn(
                        WarningCode.UNRESOLVED_ITEM,
                        f"No rule priced item {item.name!r}",
                        item_id=item.item_id,
                    )

            apply_rounding(working, self.config)
            record_run(op.elapsed_seconds, [i.resolution.value for i in working])

        return PricingRun(
            items=working,
            context=context,
            reduction_log=executor.reduction_log,
            warnings=warnings.warnings,
            correlation_id=correlation_id,
        )

    def process_tender(self, items: list[Item], context: TenderContext) -> list[Item]:
        """Price a tender and return only the priced items"""
        return self.evaluate(items, context).items

    def reduction_log(
        self, items: list[Item], context: TenderContext
    ) -> list[ReductionLogEntry]:
        """Price a tender and return only the reduction audit log"""
        return self.evaluate(items, context).reduction_log


def process_tender(
    items: list[Item],
    context: TenderContext,
    config: RuleConfig,
    *,
    policy: PricingPolicy | None = None,
    chooser: PriceChooser | None = None,
) -> list[Item]:
    """
    Price a tender in one call

    Args:
        items: Tender items (not modified)
        context: Tender totals
        config: Rule configuration
        policy: Pricing parameters (defaults if None)
        chooser: External price chooser (policy default source if None)

    Returns:
        Priced copies of the items, in input order
    """
    return TenderPricingEngine(config, policy, chooser).process_tender(items, context)
