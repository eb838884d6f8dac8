"""
Rule Configuration Models - Rule tree, action table, rounding table

A RuleConfig is everything the engine needs to price a tender besides the
items themselves: a hierarchy of conditional rule nodes, the actions those
nodes bind to, and the rounding applied to each rule's result.

Key concepts:
- Rules compose AND down the tree: a child is only reached through a
  matching parent
- Actions are referenced by id, so several nodes can share one action
- The configuration is immutable for the duration of a run and passed
  explicitly, never held as module state
"""

from collections import Counter
from collections.abc import Iterator
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from tender_pricing.kernel.errors import ConfigurationError
from tender_pricing.kernel.ids import IdFactory, default_id_factory
from tender_pricing.pricing.models import ItemType, PriceSource


class ActionKind(str, Enum):
    """
    What a rule does to an item's price once it matches

    KEEP_INPUT_PRICE: copy one reference price
    SEQUENTIAL_REDUCE: discount step by step down to the floor threshold
    REQUEST_EXTERNAL_CHOICE: ask a collaborator which of two prices to use
    DISABLE_REDUCTION: keep the starting price, recorded as a deliberate outcome
    """

    KEEP_INPUT_PRICE = "KEEP_INPUT_PRICE"
    SEQUENTIAL_REDUCE = "SEQUENTIAL_REDUCE"
    REQUEST_EXTERNAL_CHOICE = "REQUEST_EXTERNAL_CHOICE"
    DISABLE_REDUCTION = "DISABLE_REDUCTION"


class RoundingMode(str, Enum):
    """How a proposal price is snapped to its rounding granularity"""

    NEAREST = "NEAREST"  # closest multiple, ties to even
    UP = "UP"  # smallest multiple ≥ price
    DOWN = "DOWN"  # largest multiple ≤ price


class RuleNode(BaseModel):
    """
    One node of the rule hierarchy

    A node without a condition always matches and just passes through to
    its children. A node restricted to some item types is skipped, with
    its whole subtree, for every other type.

    Attributes:
        rule_id: Unique identifier (referenced by rounding policies)
        case_code: Human-readable case identifier (e.g. "TH2.1")
        rule_name: Short description
        level: Depth in the tree (root = 1)
        parent_id: Parent rule id, None for the root
        condition: Condition identifier (see ConditionId), None = always
        action_id: Action applied when this node matches
        applies_to_types: Item types this node is limited to (empty = all)
        is_active: Inactive nodes are pruned with their subtree
        children: Child nodes, evaluated in declaration order
    """

    rule_id: str
    case_code: str = ""
    rule_name: str = ""
    level: int = Field(default=1, ge=1)
    parent_id: str | None = None
    condition: str | None = None
    action_id: str | None = None
    applies_to_types: list[ItemType] = Field(default_factory=list)
    is_active: bool = True
    children: list["RuleNode"] = Field(default_factory=list)

    def iter_nodes(self) -> Iterator["RuleNode"]:
        """Yield this node and all descendants in pre-order"""
        yield self
        for child in self.children:
            yield from child.iter_nodes()

    def applies_to(self, item_type: ItemType) -> bool:
        """Check if this node's type filter admits an item type"""
        return not self.applies_to_types or item_type in self.applies_to_types


class RuleAction(BaseModel):
    """
    Action bound to one or more rule nodes

    Attributes:
        action_id: Unique identifier
        kind: What the action does
        input_price_source: Reference price copied by KEEP_INPUT_PRICE
        choice_sources: The two prices offered by REQUEST_EXTERNAL_CHOICE
        description: Free text shown in reports
    """

    action_id: str
    kind: ActionKind
    input_price_source: PriceSource | None = None
    choice_sources: tuple[PriceSource, PriceSource] = (PriceSource.PLAN, PriceSource.MIN)
    description: str = ""


class RoundingPolicy(BaseModel):
    """
    Rounding applied to the proposal price of items resolved by one rule

    Attributes:
        policy_id: Unique identifier
        rule_id: Rule node whose results this policy rounds
        round_to: Granularity (e.g. 1000)
        mode: NEAREST, UP or DOWN
    """

    policy_id: str
    rule_id: str
    round_to: Decimal = Field(gt=0)
    mode: RoundingMode = RoundingMode.NEAREST


class FlatRule(BaseModel):
    """
    Rule row as stored in flat tables (parent-linked, no nesting)

    The flat if/else style of rule list is a degenerate tree: each row
    becomes a node and parent_id links rebuild the hierarchy.
    """

    rule_id: str
    case_code: str = ""
    rule_name: str = ""
    level: int = Field(default=1, ge=1)
    parent_id: str | None = None
    condition: str | None = None
    action_id: str | None = None
    applies_to_types: list[ItemType] = Field(default_factory=list)
    is_active: bool = True


class RuleConfig(BaseModel):
    """
    Complete rule configuration for one pricing run

    Attributes:
        root: Root of the rule tree
        actions: Action table (keyed by action_id)
        rounding_policies: Rounding table (keyed by rule_id)
        name: Label for logs and reports
    """

    root: RuleNode
    actions: list[RuleAction] = Field(default_factory=list)
    rounding_policies: list[RoundingPolicy] = Field(default_factory=list)
    name: str = "default"

    model_config = {"frozen": True}

    def iter_nodes(self) -> Iterator[RuleNode]:
        """Yield every rule node in pre-order"""
        return self.root.iter_nodes()

    def find_node(self, rule_id: str) -> RuleNode | None:
        """Get rule node by ID"""
        return next((n for n in self.iter_nodes() if n.rule_id == rule_id), None)

    def find_by_case_code(self, case_code: str) -> RuleNode | None:
        """Get the first rule node with a case code"""
        return next((n for n in self.iter_nodes() if n.case_code == case_code), None)

    def get_action(self, action_id: str) -> RuleAction | None:
        """Get action by ID"""
        return next((a for a in self.actions if a.action_id == action_id), None)

    def rounding_for_rule(self, rule_id: str | None) -> RoundingPolicy | None:
        """Get the first rounding policy registered for a rule"""
        if rule_id is None:
            return None
        return next((r for r in self.rounding_policies if r.rule_id == rule_id), None)

    @classmethod
    def from_flat_rules(
        cls,
        rules: list[FlatRule],
        actions: list[RuleAction] | None = None,
        rounding_policies: list[RoundingPolicy] | None = None,
        name: str = "default",
        id_factory: IdFactory | None = None,
    ) -> "RuleConfig":
        """
        Build a rule tree from a flat, parent-linked rule list

        Rows keep their declaration order among siblings. Rows without a
        parent (or whose parent is unknown) hang under a synthetic root with
        no condition, so several level-1 cases can coexist.

        Args:
            rules: Flat rule rows
            actions: Action table
            rounding_policies: Rounding table
            name: Configuration label
            id_factory: Generates the synthetic root id

        Returns:
            RuleConfig with a synthetic root

        Raises:
            ConfigurationError: If two rows share a rule_id, or parent links
                form a cycle that never reaches the root
        """
        duplicates = [
            rule_id
            for rule_id, count in Counter(rule.rule_id for rule in rules).items()
            if count > 1
        ]
        if duplicates:
            raise ConfigurationError(
                name, f"duplicate rule ids: {', '.join(duplicates)}"
            )

        ids = id_factory or default_id_factory
        nodes: dict[str, dict[str, Any]] = {
            rule.rule_id: {**rule.model_dump(), "children": []} for rule in rules
        }

        root_id = ids.generate()
        top_level: list[dict[str, Any]] = []
        for rule in rules:
            node = nodes[rule.rule_id]
            parent = nodes.get(rule.parent_id) if rule.parent_id else None
            if parent is None:
                node["parent_id"] = root_id
                top_level.append(node)
            else:
                parent["children"].append(node)

        # Rows whose parent chain loops back never hang under the root
        reachable: set[str] = set()
        pending = list(top_level)
        while pending:
            node = pending.pop()
            reachable.add(node["rule_id"])
            pending.extend(node["children"])
        cyclic = [rule.rule_id for rule in rules if rule.rule_id not in reachable]
        if cyclic:
            raise ConfigurationError(
                name, f"rules form a parent cycle: {', '.join(cyclic)}"
            )

        root = RuleNode.model_validate(
            {
                "rule_id": root_id,
                "case_code": "ROOT",
                "rule_name": "All tenders",
                "level": 1,
                "children": top_level,
            }
        )
        # Synthetic root shifts every original level down by one
        root = _relevel(root, 1)

        return cls(
            root=root,
            actions=actions or [],
            rounding_policies=rounding_policies or [],
            name=name,
        )


def _relevel(node: RuleNode, level: int) -> RuleNode:
    return node.model_copy(
        update={
            "level": level,
            "children": [_relevel(child, level + 1) for child in node.children],
        }
    )
