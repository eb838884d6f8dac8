"""
Rounding Pass - Snap proposal prices to a granularity

Runs once after every rule action has produced its final price. Rounding
never feeds back into reduction or condition evaluation, and only the
proposal price is touched: price_after_adjust keeps the exact result.
"""

from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_EVEN, Decimal

from tender_pricing.pricing.models import Item
from tender_pricing.rules.models import RoundingMode, RoundingPolicy, RuleConfig

_MODE_TO_DECIMAL = {
    RoundingMode.NEAREST: ROUND_HALF_EVEN,
    RoundingMode.UP: ROUND_CEILING,
    RoundingMode.DOWN: ROUND_FLOOR,
}


def round_price(price: Decimal, policy: RoundingPolicy) -> Decimal:
    """
    Round a price to a multiple of policy.round_to

    NEAREST: closest multiple (exact halves go to the even multiple)
    UP: smallest multiple ≥ price
    DOWN: largest multiple ≤ price

    Example:
        >>> policy = RoundingPolicy(policy_id="p", rule_id="r", round_to=1000, mode="UP")
        >>> round_price(Decimal("874910.84"), policy)
        Decimal('875000')
    """
    units = (price / policy.round_to).to_integral_value(
        rounding=_MODE_TO_DECIMAL[policy.mode]
    )
    return units * policy.round_to


def apply_rounding(items: list[Item], config: RuleConfig) -> None:
    """
    Round proposal prices in place by each item's matched rule

    Items without a proposal price or without a policy for their
    matched rule pass through unchanged.
    """
    for item in items:
        if item.price_proposal is None:
            continue
        policy = config.rounding_for_rule(item.matched_rule_id)
        if policy is not None:
            item.price_proposal = round_price(item.price_proposal, policy)
