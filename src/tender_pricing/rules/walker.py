"""
Rule Tree Walker - Depth-first evaluation of the rule hierarchy per item

For every node, in pre-order:

1. Inactive → prune the node and its subtree
2. Condition present and false → prune (rules AND down the tree)
3. Type filter present and excluding the item → prune
4. Action bound → apply it; a deeper action runs later and overwrites
5. Visit children in declaration order

Also selects the tender-level case before any item is priced: the first
matching child at each level, judged on tender totals alone.
"""

from tender_pricing.pricing.actions import ActionExecutor
from tender_pricing.pricing.models import Item, TenderContext
from tender_pricing.rules.conditions import evaluate_condition
from tender_pricing.rules.diagnostics import WarningCode, WarningCollector
from tender_pricing.rules.models import RuleConfig, RuleNode


class RuleTreeWalker:
    """
    Walks one RuleConfig for many items

    Stateless apart from its collaborators; the executor and collector
    carry the per-run results.
    """

    def __init__(
        self,
        config: RuleConfig,
        executor: ActionExecutor,
        warnings: WarningCollector,
    ) -> None:
        self.config = config
        self.executor = executor
        self.warnings = warnings

    def walk(self, item: Item, context: TenderContext) -> int:
        """
        Evaluate the whole tree for one item, mutating it in place

        Args:
            item: Working copy to price
            context: Frozen tender totals

        Returns:
            Number of actions applied (0 means the item is unresolved)
        """
        return self._visit(item, context, self.config.root)

    def _visit(self, item: Item, context: TenderContext, node: RuleNode) -> int:
        if not node.is_active:
            return 0

        if node.condition and not evaluate_condition(
            node.condition,
            item,
            context,
            warnings=self.warnings,
            rule_id=node.rule_id,
        ):
            return 0

        if not node.applies_to(item.item_type):
            return 0

        applied = 0
        if node.action_id is not None:
            action = self.config.get_action(node.action_id)
            if action is None:
                self.warnings.warn(
                    WarningCode.MISSING_ACTION,
                    f"Rule {node.case_code or node.rule_id} references unknown "
                    f"action {node.action_id!r} - skipped",
                    rule_id=node.rule_id,
                )
            else:
                self.executor.apply(item, action, node.rule_id)
                applied += 1

        for child in node.children:
            applied += self._visit(item, context, child)

        return applied


def select_case(context: TenderContext, root: RuleNode) -> str | None:
    """
    Pick the tender-level case code from tender totals

    Starting below the root, take the first active child whose condition
    holds on the context alone (item-level conditions never hold here),
    and keep descending. A child without a condition always matches, so
    grouping nodes are passed through. Nodes restricted to item types are
    skipped since no item is involved.

    Args:
        context: Tender totals
        root: Root of the rule tree

    Returns:
        Deepest matching case code, or None if no case matches

    Example:
        TH2 (TĐ < MIN) → TH2.1 (MIN ≤ KH ≤ NY) gives "TH2.1"
    """
    selected: str | None = None
    node = root

    while True:
        match = next(
            (
                child
                for child in node.children
                if child.is_active
                and not child.applies_to_types
                and (
                    not child.condition
                    or evaluate_condition(child.condition, None, context)
                )
            ),
            None,
        )
        if match is None:
            return selected
        if match.case_code:
            selected = match.case_code
        node = match
