"""
Refund planning -- pure validation of a refund request against an order.

Responsibility:
    Turns a refund request into refund line drafts, or rejects it, given the
    order's lines and what has already been refunded.  Also classifies the
    order's status from refunded quantities.  No I/O: the refund service
    loads the inputs under a row lock and writes the result.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - For every order line: already_refunded + requested <= original quantity.
    - A repeated order line id within one request counts cumulatively.
    - Refund price is the sale-time line price, never the live product price.
    - Lines with quantity <= 0 are skipped, not rejected.

Failure modes:
    - OrderItemNotFoundError if a line id does not belong to the order.
    - RefundQuantityExceededError if a line asks for more than is available.
    - EmptyRefundError if no line survives filtering.

Audit relevance:
    Every check happens here before any write, so a rejected request never
    leaves a partial refund behind.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from pos_kernel.domain.orders import ZERO, to_money
from pos_kernel.domain.values import OrderStatus
from pos_kernel.exceptions import (
    EmptyRefundError,
    OrderItemNotFoundError,
    RefundQuantityExceededError,
)


@dataclass(frozen=True)
class RefundLineRequest:
    order_item_id: int
    quantity: int


@dataclass(frozen=True)
class SoldLine:
    """The immutable facts of one order line needed to plan a refund."""

    order_item_id: int
    product_id: int
    quantity: int
    price: Decimal


@dataclass(frozen=True)
class PlannedRefundLine:
    order_item_id: int
    product_id: int
    quantity: int
    price: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class RefundPlan:
    order_id: int
    lines: tuple[PlannedRefundLine, ...]
    total_amount: Decimal


def plan_refund(
    order_id: int,
    sold_lines: Sequence[SoldLine],
    already_refunded: Mapping[int, int],
    requested: Sequence[RefundLineRequest],
) -> RefundPlan:
    """
    Validate ``requested`` against the order and build the refund drafts.

    Lines are checked in the order given.  The first failing line aborts
    the whole plan.

    Args:
        order_id: Order being refunded (for error messages).
        sold_lines: Every line of the order.
        already_refunded: order_item_id -> quantity refunded by prior refunds.
        requested: Lines the caller wants to refund.

    Returns:
        RefundPlan with one draft per accepted request line.

    Raises:
        OrderItemNotFoundError, RefundQuantityExceededError, EmptyRefundError.
    """
    by_id = {line.order_item_id: line for line in sold_lines}
    consumed = {item_id: already_refunded.get(item_id, 0) for item_id in by_id}

    drafts: list[PlannedRefundLine] = []
    for req in requested:
        sold = by_id.get(req.order_item_id)
        if sold is None:
            raise OrderItemNotFoundError(order_id, req.order_item_id)

        refunded_so_far = consumed[sold.order_item_id]
        available = sold.quantity - refunded_so_far
        if req.quantity > available:
            raise RefundQuantityExceededError(
                order_item_id=sold.order_item_id,
                requested=req.quantity,
                available=available,
                already_refunded=refunded_so_far,
                original=sold.quantity,
            )
        if req.quantity <= 0:
            continue

        consumed[sold.order_item_id] = refunded_so_far + req.quantity
        drafts.append(
            PlannedRefundLine(
                order_item_id=sold.order_item_id,
                product_id=sold.product_id,
                quantity=req.quantity,
                price=sold.price,
                subtotal=to_money(sold.price * req.quantity),
            )
        )

    if not drafts:
        raise EmptyRefundError(order_id)

    return RefundPlan(
        order_id=order_id,
        lines=tuple(drafts),
        total_amount=to_money(sum((d.subtotal for d in drafts), ZERO)),
    )


def derive_order_status(
    current: OrderStatus | str,
    line_quantities: Mapping[int, int],
    refunded: Mapping[int, int],
) -> OrderStatus:
    """
    Classify an order from refunded quantity per line.

    REFUNDED when every line is fully refunded, PARTIALLY_REFUNDED when any
    line has a refund, otherwise ``current`` unchanged.
    """
    fully = all(refunded.get(item_id, 0) >= qty for item_id, qty in line_quantities.items())
    any_refund = any(refunded.get(item_id, 0) > 0 for item_id in line_quantities)

    if line_quantities and fully:
        return OrderStatus.REFUNDED
    if any_refund:
        return OrderStatus.PARTIALLY_REFUNDED
    return OrderStatus(current)
