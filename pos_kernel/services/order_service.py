"""
OrderService -- checkout: one order, its lines and the stock it consumes.

Responsibility:
    Validates a checkout request, persists the Order and all OrderItems,
    and decrements stock for every line, all inside the caller's
    transaction.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes StockLedger and the
    pure checkout math in domain/orders.py.

Invariants enforced:
    - Every line references an existing product; Order and OrderItems are
      inserted together and stock is adjusted only after the rows exist.
    - Every line quantity is > 0 and the order has at least one line.
    - With totals verification on, the caller's subtotals and total must
      match the recomputed values.
    - Status starts at COMPLETED.

Failure modes:
    - UserNotFoundError: the cashier in the token no longer exists.
    - EmptyOrderError / InvalidOrderLineError: malformed request or
      unknown product.
    - OrderTotalMismatchError: caller totals do not add up.
    - InsufficientStockError: oversell while negative stock is disallowed.

Audit relevance:
    Logs ``order_placed`` with order id, cashier, total and line count.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from pos_kernel.domain.clock import Clock
from pos_kernel.domain.orders import (
    ZERO,
    OrderLineInput,
    to_money,
    validate_lines,
    verify_totals,
)
from pos_kernel.domain.policies import StockPolicy, TotalsPolicy
from pos_kernel.domain.values import OrderStatus
from pos_kernel.exceptions import InvalidOrderLineError, UserNotFoundError
from pos_kernel.logging_config import LogContext, get_logger
from pos_kernel.models.order import Order, OrderItem
from pos_kernel.models.product import Product
from pos_kernel.models.user import User
from pos_kernel.services.base import BaseService
from pos_kernel.services.stock_ledger import StockLedger

logger = get_logger("services.order")


@dataclass(frozen=True)
class OrderPlacement:
    """Immutable result of a successful checkout."""

    order_id: int
    user_id: int
    total_amount: Decimal
    line_count: int
    created_at: datetime


class OrderService(BaseService):
    """
    Places orders.

    Contract:
        place_order() writes the order, its lines and the stock movements
        atomically within the caller's transaction and returns an
        OrderPlacement.  Read the full view back through OrderSelector.

    Non-goals:
        - Does NOT call session.commit().
        - Does NOT compute tax; tax is a pass-through field.
        - Does NOT print receipts.
    """

    def __init__(
        self,
        session: Session,
        stock_ledger: StockLedger | None = None,
        totals_policy: TotalsPolicy | None = None,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._stock = stock_ledger or StockLedger(session, StockPolicy())
        self._totals = totals_policy or TotalsPolicy()

    def place_order(
        self,
        user_id: int,
        lines: Sequence[OrderLineInput],
        payment_method: str,
        total_amount: Decimal,
        discount: Decimal = ZERO,
        tax: Decimal = ZERO,
    ) -> OrderPlacement:
        """
        Record a sale.

        Args:
            user_id: Cashier ringing up the sale.
            lines: Products, quantities and sale-time prices.
            payment_method: e.g. CASH or CARD.
            total_amount: Final charged amount, net of discount.
            discount: Order-level discount.
            tax: Pass-through tax amount.

        Returns:
            OrderPlacement for the new order.

        Raises:
            UserNotFoundError, EmptyOrderError, InvalidOrderLineError,
            OrderTotalMismatchError, InsufficientStockError.
        """
        validate_lines(lines)

        total_amount = to_money(total_amount)
        discount = to_money(discount or ZERO)
        tax = to_money(tax or ZERO)
        verify_totals(lines, total_amount, discount, self._totals)

        if self.session.get(User, user_id) is None:
            logger.warning("checkout_user_missing", extra={"user_id": user_id})
            raise UserNotFoundError(user_id)

        requested_ids = {line.product_id for line in lines}
        known_ids = set(
            self.session.execute(select(Product.id).where(Product.id.in_(requested_ids))).scalars()
        )
        for line in lines:
            if line.product_id not in known_ids:
                raise InvalidOrderLineError(line.product_id, "unknown product")

        order = Order(
            user_id=user_id,
            total_amount=total_amount,
            discount=discount,
            tax=tax,
            payment_method=payment_method,
            status=OrderStatus.COMPLETED,
            created_at=self.clock.now(),
        )
        order.items = [
            OrderItem(
                product_id=line.product_id,
                quantity=line.quantity,
                price=to_money(line.price),
                subtotal=to_money(line.subtotal),
            )
            for line in lines
        ]
        self.session.add(order)
        self.session.flush()

        with LogContext.bind(order_id=order.id):
            for line in lines:
                self._stock.adjust_stock(line.product_id, -line.quantity)

            logger.info(
                "order_placed",
                extra={
                    "user_id": user_id,
                    "total_amount": total_amount,
                    "discount": discount,
                    "payment_method": payment_method,
                    "line_count": len(lines),
                },
            )

        return OrderPlacement(
            order_id=order.id,
            user_id=user_id,
            total_amount=total_amount,
            line_count=len(lines),
            created_at=order.created_at,
        )
