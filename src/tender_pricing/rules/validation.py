"""
Static checks of a rule configuration

Finds the same problems evaluation would stumble over (unknown conditions,
dangling action references, rounding policies for rules that do not exist)
without pricing anything. The engine runs these checks at the start of every
run so orphan rounding policies, which evaluation alone never touches, are
still reported.
"""

from tender_pricing.rules.conditions import parse_condition
from tender_pricing.rules.diagnostics import ConfigWarning, WarningCode
from tender_pricing.rules.models import ActionKind, RuleConfig


def check_config(config: RuleConfig) -> list[ConfigWarning]:
    """
    Check a rule configuration for reference problems

    Args:
        config: Rule configuration

    Returns:
        Warnings, in tree order, then action table order, then rounding order
    """
    warnings: list[ConfigWarning] = []
    rule_ids: set[str] = set()
    action_ids = {a.action_id for a in config.actions}

    for node in config.iter_nodes():
        rule_ids.add(node.rule_id)
        label = node.case_code or node.rule_id

        if node.condition and parse_condition(node.condition) is None:
            warnings.append(
                ConfigWarning(
                    code=WarningCode.UNKNOWN_CONDITION,
                    message=f"Rule {label} uses unknown condition {node.condition!r}",
                    rule_id=node.rule_id,
                )
            )

        if node.action_id is not None and node.action_id not in action_ids:
            warnings.append(
                ConfigWarning(
                    code=WarningCode.MISSING_ACTION,
                    message=f"Rule {label} references unknown action {node.action_id!r}",
                    rule_id=node.rule_id,
                )
            )

    for action in config.actions:
        if action.kind == ActionKind.KEEP_INPUT_PRICE and action.input_price_source is None:
            warnings.append(
                ConfigWarning(
                    code=WarningCode.INCOMPLETE_ACTION,
                    message=f"Action {action.action_id} keeps an input price but names no source",
                    action_id=action.action_id,
                )
            )

    for policy in config.rounding_policies:
        if policy.rule_id not in rule_ids:
            warnings.append(
                ConfigWarning(
                    code=WarningCode.ORPHAN_ROUNDING_POLICY,
                    message=(
                        f"Rounding policy {policy.policy_id} references unknown "
                        f"rule {policy.rule_id!r}"
                    ),
                    rule_id=policy.rule_id,
                )
            )

    return warnings
