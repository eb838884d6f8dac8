"""
Tender Pricing CLI

Command-line interface for pricing tenders from JSON files.

Usage:
    tender-pricing run --items items.json
    tender-pricing run --items items.json --config rules.json --choice PLAN --show-log
    tender-pricing run --items items.json --interactive
    tender-pricing validate-config --config rules.json
    tender-pricing show-tree
    tender-pricing reduce --price 920000 --floor 870000 --step 0.01
"""

import json
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from tender_pricing.engine import PricingRun, TenderPricingEngine
from tender_pricing.kernel.errors import TenderPricingError
from tender_pricing.kernel.logging import configure_logging
from tender_pricing.pricing.models import Item, PriceSource, TenderContext
from tender_pricing.pricing.policy import PricingPolicy
from tender_pricing.pricing.reduction import reduce_to_threshold
from tender_pricing.rules.conditions import parse_condition
from tender_pricing.rules.defaults import default_rule_config
from tender_pricing.rules.loader import load_items, load_rule_config
from tender_pricing.rules.models import RuleConfig, RuleNode
from tender_pricing.rules.validation import check_config

# Logs go to stderr; stdout stays clean for --json output
configure_logging(
    json_output=False, log_level=os.getenv("TENDER_PRICING_LOG_LEVEL", "WARNING")
)

app = typer.Typer(
    name="tender-pricing",
    help="Tender Pricing - Rule-driven bid price adjustment",
    add_completion=False,
)


def get_config(config: Optional[Path]) -> RuleConfig:
    """Load the rule configuration, or the built-in case table if no file is given"""
    if config is None:
        return default_rule_config()
    try:
        return load_rule_config(config)
    except TenderPricingError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)


def parse_decimal(value: str, name: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        typer.echo(f"Error: {name} must be a number, got {value!r}", err=True)
        raise typer.Exit(1)


def prompt_chooser(item: Item, sources: tuple[PriceSource, PriceSource]) -> PriceSource:
    """Ask the operator which reference price to bid for an item"""
    offered = ", ".join(f"{s.value}: {item.reference_price(s):,}" for s in sources)
    answer = typer.prompt(f"Choose price for {item.name} ({offered})", default=sources[-1].value)
    return PriceSource.parse(answer)


def fmt(value: Optional[Decimal]) -> str:
    return "-" if value is None else f"{value:,.0f}"


def echo_run(run: PricingRun, config: RuleConfig, show_log: bool) -> None:
    """Print a pricing run as a human-readable report"""
    typer.echo(f"Tender case: {run.selected_rule_code or 'none'}")
    typer.echo("Results:")
    for item in run.items:
        node = config.find_node(item.matched_rule_id) if item.matched_rule_id else None
        rule = node.case_code if node is not None else item.resolution.value
        typer.echo(
            f"  {item.name} ({item.item_type.value}): "
            f"start = {fmt(item.price_before_adjust)}, "
            f"adjusted = {fmt(item.price_after_adjust)}, "
            f"proposal = {fmt(item.price_proposal)} [{rule}]"
        )

    if show_log and run.reduction_log:
        typer.echo("\nReduction log:")
        for entry in run.reduction_log:
            typer.echo(f"  {entry.item_name} ({entry.item_type.value})")
            typer.echo(
                f"    start: {fmt(entry.original_price)}, "
                f"floor: {fmt(entry.threshold_price)}, "
                f"step: {entry.step_percent:.2%}"
            )
            for step in entry.price_steps:
                typer.echo(f"      → {step:,.2f}")

    if run.warnings:
        typer.echo(f"\nWarnings ({len(run.warnings)}):")
        for warning in run.warnings:
            typer.echo(f"  [{warning.code.value}] {warning.message}")


def run_to_dict(run: PricingRun) -> dict:
    return {
        "correlation_id": run.correlation_id,
        "selected_rule_code": run.selected_rule_code,
        "context": run.context.model_dump(mode="json"),
        "items": [item.model_dump(mode="json") for item in run.items],
        "reduction_log": [entry.model_dump(mode="json") for entry in run.reduction_log],
        "warnings": [w.model_dump(mode="json") for w in run.warnings],
        "blocks_submission": run.blocks_submission,
    }


@app.command()
def run(
    items: Annotated[Path, typer.Option("--items", help="Tender items (JSON list)")],
    config: Annotated[
        Optional[Path],
        typer.Option("--config", help="Rule configuration (JSON); built-in cases if omitted"),
    ] = None,
    choice: Annotated[
        PriceSource,
        typer.Option("--choice", help="Reference price items start from, unless the tender case fixes it"),
    ] = PriceSource.MIN,
    previous_winning_factor: Annotated[
        Optional[str],
        typer.Option(
            "--previous-winning-factor",
            help="Derive the previous-winning total as min total × factor",
        ),
    ] = None,
    interactive: Annotated[
        bool,
        typer.Option("--interactive", help="Prompt for prices on REQUEST_EXTERNAL_CHOICE rules"),
    ] = False,
    choice_timeout: Annotated[
        Optional[int],
        typer.Option("--choice-timeout", help="Seconds to wait for each prompt"),
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON output")] = False,
    show_log: Annotated[bool, typer.Option("--show-log", help="Print the reduction log")] = False,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit with code 2 if any item is left unpriced"),
    ] = False,
) -> None:
    """Price every item of a tender"""
    rule_config = get_config(config)
    try:
        tender_items = load_items(items)
    except TenderPricingError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    factor = (
        parse_decimal(previous_winning_factor, "--previous-winning-factor")
        if previous_winning_factor is not None
        else None
    )
    policy = PricingPolicy(previous_winning_factor=factor, choice_timeout_seconds=choice_timeout)
    context = TenderContext.from_items(
        tender_items, user_choice=choice, previous_winning_factor=policy.previous_winning_factor
    )

    engine = TenderPricingEngine(
        rule_config, policy, chooser=prompt_chooser if interactive else None
    )
    pricing_run = engine.evaluate(tender_items, context)

    if as_json:
        typer.echo(json.dumps(run_to_dict(pricing_run), indent=2))
    else:
        echo_run(pricing_run, rule_config, show_log)

    if strict and pricing_run.blocks_submission:
        raise typer.Exit(2)


@app.command("validate-config")
def validate_config(
    config: Annotated[
        Optional[Path],
        typer.Option("--config", help="Rule configuration (JSON); built-in cases if omitted"),
    ] = None,
) -> None:
    """Check a rule configuration for unknown conditions and dangling references"""
    rule_config = get_config(config)
    warnings = check_config(rule_config)

    if not warnings:
        node_count = sum(1 for _ in rule_config.iter_nodes())
        typer.echo(f"✓ Configuration {rule_config.name!r} is valid ({node_count} rules)")
        return

    typer.echo(f"Configuration {rule_config.name!r} has {len(warnings)} problem(s):")
    for warning in warnings:
        typer.echo(f"  [{warning.code.value}] {warning.message}")
    raise typer.Exit(1)


def _echo_node(node: RuleNode, config: RuleConfig, depth: int) -> None:
    parts = [node.case_code or node.rule_id]
    if node.condition:
        condition_id = parse_condition(node.condition)
        if condition_id is None:
            scope = "unknown"
        else:
            scope = "tender" if condition_id.is_tender_level else "item"
        parts.append(f"if {node.condition} ({scope})")
    if node.applies_to_types:
        parts.append("types=" + ",".join(t.value for t in node.applies_to_types))
    if node.action_id:
        action = config.get_action(node.action_id)
        parts.append(f"→ {action.kind.value if action else '?' + node.action_id}")
    rounding = config.rounding_for_rule(node.rule_id)
    if rounding is not None:
        parts.append(f"round {rounding.mode.value} {rounding.round_to}")
    if not node.is_active:
        parts.append("(inactive)")

    typer.echo("  " * depth + " ".join(parts))
    for child in node.children:
        _echo_node(child, config, depth + 1)


@app.command("show-tree")
def show_tree(
    config: Annotated[
        Optional[Path],
        typer.Option("--config", help="Rule configuration (JSON); built-in cases if omitted"),
    ] = None,
) -> None:
    """Print the rule tree"""
    rule_config = get_config(config)
    _echo_node(rule_config.root, rule_config, 0)


@app.command()
def reduce(
    price: Annotated[str, typer.Option("--price", help="Starting price")],
    floor: Annotated[str, typer.Option("--floor", help="Floor threshold")],
    step: Annotated[str, typer.Option("--step", help="Discount per step (0.01 = 1%)")],
) -> None:
    """Show a sequential reduction step by step"""
    result = reduce_to_threshold(
        parse_decimal(price, "--price"),
        parse_decimal(step, "--step"),
        parse_decimal(floor, "--floor"),
    )
    for i, value in enumerate(result.steps, start=1):
        typer.echo(f"  {i:>3}: {value:,.2f}")
    typer.echo(f"Final: {result.final_price:,.2f} after {result.step_count} step(s)")


def main() -> None:
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    main()
