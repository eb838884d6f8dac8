"""
Threshold Reduction - Sequential percentage discounting toward a floor

The price is discounted by a fixed step again and again while the next value
would still be at or above the floor threshold. Every intermediate price is
kept for the audit log.

All arithmetic is exact Decimal; nothing is quantized between steps, so a
long run of small discounts does not drift.

Fun fact: A 1% step needs about 69 iterations to halve a price, because
0.99^69 ≈ 0.4998 - the same "rule of 69" bankers use for continuous doubling!
"""

from dataclasses import dataclass, field
from decimal import Decimal

ONE = Decimal("1")


@dataclass(frozen=True)
class ReductionResult:
    """Final price plus every intermediate price, in order"""

    final_price: Decimal
    steps: list[Decimal] = field(default_factory=list)

    @property
    def step_count(self) -> int:
        return len(self.steps)


def reduce_to_threshold(
    start_price: Decimal, step_percent: Decimal, floor_threshold: Decimal
) -> ReductionResult:
    """
    Discount start_price by step_percent until one more step would cross the floor

    p₀ = start_price; while p_n × (1 − step) ≥ floor: p_{n+1} = p_n × (1 − step)

    Boundaries (not errors): a step ≤ 0 or ≥ 1, a floor above the start
    price, or a floor ≤ 0 (no threshold known) takes zero steps and returns
    start_price unchanged.

    Args:
        start_price: Price to start from
        step_percent: Discount per step as a fraction (0.01 = 1%)
        floor_threshold: Lowest acceptable price

    Returns:
        ReductionResult with the last price still ≥ floor and all steps

    Example:
        >>> result = reduce_to_threshold(Decimal("920000"), Decimal("0.01"), Decimal("870000"))
        >>> result.step_count
        5
        >>> result.steps[0]
        Decimal('910800.00')
    """
    if (
        step_percent <= 0
        or step_percent >= ONE
        or floor_threshold <= 0
        or floor_threshold > start_price
    ):
        return ReductionResult(final_price=start_price)

    factor = ONE - step_percent
    current = start_price
    steps: list[Decimal] = []

    while current * factor >= floor_threshold:
        current = current * factor
        steps.append(current)

    return ReductionResult(final_price=current, steps=steps)
