"""
Order math -- checkout line validation and total recomputation.

Responsibility:
    Pure functions that validate a checkout request and recompute the
    amount that should be charged, so the order engine can refuse a
    caller-supplied total that does not add up.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - An order has at least one line, and every line quantity is > 0.
    - total = max(0, sum(subtotals) - discount)  (when verified); tax is
      stored as given and is not part of the charged total.

Failure modes:
    - EmptyOrderError, InvalidOrderLineError, OrderTotalMismatchError.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from pos_kernel.domain.policies import TotalsPolicy
from pos_kernel.exceptions import (
    EmptyOrderError,
    InvalidOrderLineError,
    OrderTotalMismatchError,
)

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_money(value) -> Decimal:
    """Coerce a number to a 2-place Decimal (half-up)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderLineInput:
    """One checkout line as submitted by the till."""

    product_id: int
    quantity: int
    price: Decimal
    subtotal: Decimal


def validate_lines(lines: Sequence[OrderLineInput]) -> None:
    if not lines:
        raise EmptyOrderError()
    for line in lines:
        if line.quantity <= 0:
            raise InvalidOrderLineError(line.product_id, f"quantity must be positive, got {line.quantity}")
        if line.price < 0:
            raise InvalidOrderLineError(line.product_id, f"price must not be negative, got {line.price}")


def compute_order_total(subtotals: Sequence[Decimal], discount: Decimal = ZERO) -> Decimal:
    """Final charged amount; a discount never drives it below zero."""
    return to_money(max(ZERO, sum(subtotals, ZERO) - discount))


def verify_totals(
    lines: Sequence[OrderLineInput],
    total_amount: Decimal,
    discount: Decimal,
    policy: TotalsPolicy,
) -> None:
    """
    Check caller-supplied subtotals and total against the recomputed values.

    No-op when ``policy.verify`` is False.
    """
    if not policy.verify:
        return

    for line in lines:
        expected = to_money(line.price * line.quantity)
        if abs(expected - line.subtotal) > policy.tolerance:
            raise OrderTotalMismatchError(
                expected=str(expected),
                received=str(line.subtotal),
                field=f"subtotal (product {line.product_id})",
            )

    expected_total = compute_order_total([l.subtotal for l in lines], discount)
    if abs(expected_total - total_amount) > policy.tolerance:
        raise OrderTotalMismatchError(
            expected=str(expected_total), received=str(total_amount)
        )
