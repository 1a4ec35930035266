"""
RefundService -- partial and full refunds against a completed order.

Responsibility:
    Locks the order, validates the request against what is still
    refundable, writes the Refund and its RefundItems, returns stock, and
    re-derives the order status -- all inside the caller's transaction.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes StockLedger and the
    pure planning functions in domain/refunds.py.

Invariants enforced:
    - No over-refund: for every order line, the sum of refunded quantity
      across all refunds never exceeds the sold quantity.  The order row
      is locked (SELECT ... FOR UPDATE) before prior refunds are read, so
      two concurrent refunds of one order are validated one after the
      other.  On SQLite the transaction itself is BEGIN IMMEDIATE.
    - All validation happens before the first write.
    - Refund line price is the sale-time order line price.
    - Order status only moves forward and is re-derived from the stored
      refund rows after every refund.

Failure modes:
    - OrderNotFoundError: no such order.
    - UserNotFoundError: the cashier in the token no longer exists.
    - OrderItemNotFoundError: a line id is not part of the order.
    - RefundQuantityExceededError: a line asks for more than remains.
    - EmptyRefundError: no line with a positive quantity.

Audit relevance:
    Logs ``refund_created`` and, when the status moves,
    ``order_status_changed``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pos_kernel.domain.clock import Clock
from pos_kernel.domain.policies import StockPolicy
from pos_kernel.domain.refunds import (
    PlannedRefundLine,
    RefundLineRequest,
    SoldLine,
    derive_order_status,
    plan_refund,
)
from pos_kernel.domain.values import OrderStatus, RefundStatus
from pos_kernel.exceptions import OrderNotFoundError, UserNotFoundError
from pos_kernel.logging_config import LogContext, get_logger
from pos_kernel.models.order import Order
from pos_kernel.models.refund import Refund, RefundItem
from pos_kernel.models.user import User
from pos_kernel.services.base import BaseService
from pos_kernel.services.stock_ledger import StockLedger

logger = get_logger("services.refund")


@dataclass(frozen=True)
class RefundResult:
    """Immutable result of a successful refund."""

    refund_id: int
    order_id: int
    total_amount: Decimal
    previous_status: OrderStatus
    order_status: OrderStatus
    lines: tuple[PlannedRefundLine, ...]


class RefundService(BaseService):
    """
    Creates refunds.

    Contract:
        create_refund() either writes a complete refund (rows, stock,
        status) or raises before writing anything.

    Non-goals:
        - Does NOT call session.commit().
        - Does NOT refund money through a payment provider.
        - Does NOT support cancelling a refund; refunds are append-only.
    """

    def __init__(
        self,
        session: Session,
        stock_ledger: StockLedger | None = None,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._stock = stock_ledger or StockLedger(session, StockPolicy())

    def create_refund(
        self,
        order_id: int,
        user_id: int,
        lines: Sequence[RefundLineRequest],
        reason: str | None = None,
    ) -> RefundResult:
        """
        Refund some quantity of one or more lines of an order.

        Lines are validated in the order given; a repeated order line id
        counts cumulatively.  Lines with quantity <= 0 are ignored.

        Returns:
            RefundResult with the new refund id and resulting order status.

        Raises:
            OrderNotFoundError, UserNotFoundError, OrderItemNotFoundError,
            RefundQuantityExceededError, EmptyRefundError.
        """
        order = self._lock_order(order_id)

        with LogContext.bind(order_id=order_id):
            if self.session.get(User, user_id) is None:
                raise UserNotFoundError(user_id)

            sold = [
                SoldLine(
                    order_item_id=item.id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    price=item.price,
                )
                for item in order.items
            ]
            plan = plan_refund(
                order_id=order_id,
                sold_lines=sold,
                already_refunded=self._refunded_quantities(order_id),
                requested=lines,
            )

            refund = Refund(
                order_id=order_id,
                user_id=user_id,
                total_amount=plan.total_amount,
                reason=reason,
                status=RefundStatus.COMPLETED,
                created_at=self.clock.now(),
            )
            refund.items = [
                RefundItem(
                    order_item_id=line.order_item_id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    price=line.price,
                    subtotal=line.subtotal,
                )
                for line in plan.lines
            ]
            self.session.add(refund)
            self.session.flush()

            with LogContext.bind(refund_id=refund.id):
                for line in plan.lines:
                    self._stock.adjust_stock(line.product_id, line.quantity)

                previous = OrderStatus(order.status)
                new_status = derive_order_status(
                    previous,
                    {item.id: item.quantity for item in order.items},
                    self._refunded_quantities(order_id),
                )
                if new_status is not previous:
                    order.status = new_status
                    self.session.flush()
                    logger.info(
                        "order_status_changed",
                        extra={"from_status": previous, "to_status": new_status},
                    )

                logger.info(
                    "refund_created",
                    extra={
                        "user_id": user_id,
                        "total_amount": plan.total_amount,
                        "line_count": len(plan.lines),
                        "order_status": new_status,
                    },
                )

        return RefundResult(
            refund_id=refund.id,
            order_id=order_id,
            total_amount=plan.total_amount,
            previous_status=previous,
            order_status=new_status,
            lines=plan.lines,
        )

    def _lock_order(self, order_id: int) -> Order:
        order = self.session.execute(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if order is None:
            logger.warning("refund_order_missing", extra={"order_id": order_id})
            raise OrderNotFoundError(order_id)
        return order

    def _refunded_quantities(self, order_id: int) -> dict[int, int]:
        """order_item_id -> total refunded quantity, from the stored rows."""
        rows = self.session.execute(
            select(RefundItem.order_item_id, func.sum(RefundItem.quantity))
            .join(Refund, Refund.id == RefundItem.refund_id)
            .where(Refund.order_id == order_id)
            .group_by(RefundItem.order_item_id)
        ).all()
        return {item_id: int(qty) for item_id, qty in rows}
