"""
Tender Pricing Examples - Walkthrough of the rule engine

This example demonstrates:
- Pricing a five-line tender with the standard case table
- Sequential reduction toward the floor, rounded up to thousands
- Comparing two pricing policies on the same items
- Answering REQUEST_EXTERNAL_CHOICE actions with a chooser
- Reporting unresolved items and configuration warnings
"""

from decimal import Decimal

from tender_pricing import (
    Item,
    ItemType,
    PriceSource,
    PricingPolicy,
    TenderContext,
    TenderPricingEngine,
)
from tender_pricing.rules.defaults import default_rule_config
from tender_pricing.rules.models import (
    ActionKind,
    RoundingMode,
    RoundingPolicy,
    RuleAction,
    RuleConfig,
    RuleNode,
)


def sample_items() -> list[Item]:
    def item(name, item_type, quantity, minimum, maximum, floor, ceiling, plan):
        return Item(
            name=name,
            item_type=item_type,
            quantity=Decimal(quantity),
            price_min=Decimal(minimum),
            price_max=Decimal(maximum),
            price_floor=Decimal(floor),
            price_ceiling=Decimal(ceiling),
            price_plan=Decimal(plan),
        )

    return [
        item("VT A", ItemType.GENERAL_GOODS, 5, 900000, 880000, 870000, 950000, 920000),
        item("VT B", ItemType.GENERAL_GOODS, 4, 850000, 830000, 810000, 890000, 860000),
        item("TT A", ItemType.CONSUMABLE_TOOL, 6, 760000, 780000, 770000, 800000, 780000),
        item("HC C", ItemType.CONTROL_REAGENT, 3, 1200000, 1180000, 1170000, 1250000, 1220000),
        item("HC Main", ItemType.PRIMARY_REAGENT, 2, 1400000, 1350000, 1300000, 1450000, 1420000),
    ]


def print_items(items: list[Item]) -> None:
    for item in items:
        proposal = "-" if item.price_proposal is None else f"{item.price_proposal:,.0f}"
        print(f"  {item.name:<8} {item.item_type.value:<20} proposal = {proposal}")


def example_1_default_case_table():
    """
    Example 1: Standard case table

    Demonstrates:
    - Computing tender totals once
    - Selecting the tender case (TH2.1 here)
    - Per-item pricing by the deepest matching rule
    """
    print("\n=== Example 1: Standard Case Table ===\n")

    items = sample_items()
    context = TenderContext.from_items(
        items, user_choice=PriceSource.MIN, previous_winning_factor=Decimal("0.95")
    )
    print(f"Total plan:    {context.total_plan:,}")
    print(f"Total min:     {context.total_min:,}")
    print(f"Total ceiling: {context.total_ceiling:,}")

    run = TenderPricingEngine(default_rule_config()).evaluate(items, context)

    print(f"\n✓ Tender case: {run.selected_rule_code}")
    print_items(run.items)
    print(f"  Blocks submission: {run.blocks_submission}")


def example_2_reduction_and_rounding():
    """
    Example 2: Sequential reduction

    Demonstrates:
    - 1% steps from the plan price down to the floor threshold
    - The audit log of every intermediate price
    - Rounding UP to 1000 on the proposal only
    """
    print("\n=== Example 2: Reduction and Rounding ===\n")

    config = RuleConfig(
        root=RuleNode(
            rule_id="root",
            case_code="ROOT",
            children=[RuleNode(rule_id="reduce", case_code="R", level=2, action_id="reduce")],
        ),
        actions=[RuleAction(action_id="reduce", kind=ActionKind.SEQUENTIAL_REDUCE)],
        rounding_policies=[
            RoundingPolicy(
                policy_id="thousands",
                rule_id="reduce",
                round_to=Decimal("1000"),
                mode=RoundingMode.UP,
            )
        ],
        name="reduce-only",
    )
    items = sample_items()[:1]
    context = TenderContext.from_items(items, user_choice=PriceSource.PLAN)

    run = TenderPricingEngine(config).evaluate(items, context)

    [entry] = run.reduction_log
    print(f"{entry.item_name}: start {entry.original_price:,}, floor {entry.threshold_price:,}")
    for i, price in enumerate(entry.price_steps, start=1):
        print(f"  step {i}: {price:,.2f}")
    [item] = run.items
    print(f"✓ Adjusted: {item.price_after_adjust:,.2f}")
    print(f"✓ Proposal: {item.price_proposal:,}")


def example_3_compare_policies():
    """
    Example 3: Same items, two policies

    Demonstrates:
    - Runs never modify the caller's items
    - A steeper reagent step changes only reagent prices
    """
    print("\n=== Example 3: Comparing Policies ===\n")

    config = RuleConfig(
        root=RuleNode(rule_id="root", case_code="ALL", action_id="reduce"),
        actions=[RuleAction(action_id="reduce", kind=ActionKind.SEQUENTIAL_REDUCE)],
        name="reduce-everything",
    )
    items = sample_items()
    context = TenderContext.from_items(items, user_choice=PriceSource.PLAN)

    standard = PricingPolicy()
    aggressive = standard.model_copy(
        update={
            "policy_version": "aggressive",
            "reduction_steps": {
                **standard.reduction_steps,
                ItemType.PRIMARY_REAGENT: Decimal("0.005"),
            },
        }
    )

    for policy in (standard, aggressive):
        run = TenderPricingEngine(config, policy).evaluate(items, context)
        print(f"Policy {policy.policy_version}:")
        print_items(run.items)


def example_4_external_choice():
    """
    Example 4: Asking the bid manager

    Demonstrates:
    - A chooser deciding between PLAN and MIN per item
    - Fallback to the policy default when the chooser answers badly
    """
    print("\n=== Example 4: External Choice ===\n")

    config = RuleConfig(
        root=RuleNode(rule_id="root", case_code="ASK", action_id="ask"),
        actions=[RuleAction(action_id="ask", kind=ActionKind.REQUEST_EXTERNAL_CHOICE)],
        name="ask-everything",
    )

    def prefer_plan_for_reagents(item, sources):
        if item.item_type == ItemType.GENERAL_GOODS:
            return PriceSource.CEILING  # not offered - falls back to MIN
        return PriceSource.PLAN if item.item_type != ItemType.CONSUMABLE_TOOL else PriceSource.MIN

    items = sample_items()
    run = TenderPricingEngine(config, chooser=prefer_plan_for_reagents).evaluate(
        items, TenderContext.from_items(items)
    )

    print_items(run.items)
    print(f"\nWarnings ({len(run.warnings)}):")
    for warning in run.warnings:
        print(f"  [{warning.code.value}] {warning.message}")


if __name__ == "__main__":
    example_1_default_case_table()
    example_2_reduction_and_rounding()
    example_3_compare_policies()
    example_4_external_choice()
