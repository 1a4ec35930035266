"""
OrderSelector -- single-order read path.

Responsibility:
    Loads one order with cashier, lines (with product), and refunds, and
    derives per-line refunded/available quantities and the order's total
    refunded amount.

Architecture position:
    Kernel > Selectors -- read-only.  The view builders here are reused by
    the report selector for paged listings.
"""

from collections import defaultdict
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from pos_kernel.domain.dtos import (
    CashierView,
    OrderLineView,
    OrderView,
    ProductRef,
    RefundSummaryView,
)
from pos_kernel.domain.orders import ZERO, to_money
from pos_kernel.domain.values import OrderStatus, RefundStatus, UserRole
from pos_kernel.exceptions import OrderNotFoundError
from pos_kernel.models.order import Order, OrderItem
from pos_kernel.models.product import Product
from pos_kernel.models.refund import Refund
from pos_kernel.models.user import User
from pos_kernel.selectors.base import BaseSelector

# Eager-load everything order_view() touches.
ORDER_VIEW_OPTIONS = (
    selectinload(Order.user),
    selectinload(Order.items).selectinload(OrderItem.product),
    selectinload(Order.refunds).selectinload(Refund.items),
)


def cashier_view(user: User | None) -> CashierView | None:
    if user is None:
        return None
    return CashierView(id=user.id, name=user.name, email=user.email, role=UserRole(user.role))


def product_ref(product: Product | None) -> ProductRef | None:
    if product is None:
        return None
    return ProductRef(id=product.id, name=product.name, barcode=product.barcode, price=product.price)


def order_view(order: Order) -> OrderView:
    """Build an OrderView from an order loaded with ORDER_VIEW_OPTIONS."""
    refunded: dict[int, int] = defaultdict(int)
    for refund in order.refunds:
        for item in refund.items:
            refunded[item.order_item_id] += item.quantity

    lines = tuple(
        OrderLineView(
            id=item.id,
            order_id=item.order_id,
            product_id=item.product_id,
            quantity=item.quantity,
            price=item.price,
            subtotal=item.subtotal,
            product=product_ref(item.product),
            refunded_quantity=refunded[item.id],
            available_quantity=item.quantity - refunded[item.id],
        )
        for item in order.items
    )
    refunds = tuple(
        RefundSummaryView(
            id=r.id,
            total_amount=r.total_amount,
            status=RefundStatus(r.status),
            created_at=r.created_at,
            reason=r.reason,
        )
        for r in sorted(order.refunds, key=lambda r: (r.created_at, r.id), reverse=True)
    )
    total_refunded: Decimal = sum((r.total_amount for r in order.refunds), ZERO)

    return OrderView(
        id=order.id,
        user_id=order.user_id,
        total_amount=order.total_amount,
        discount=order.discount,
        tax=order.tax,
        payment_method=order.payment_method,
        status=OrderStatus(order.status),
        created_at=order.created_at,
        user=cashier_view(order.user),
        items=lines,
        refunds=refunds,
        total_refunded=to_money(total_refunded),
    )


class OrderSelector(BaseSelector[Order]):
    """Read-only access to individual orders."""

    def get_order(self, order_id: int) -> OrderView:
        """
        Raises:
            OrderNotFoundError: no order with this id.
        """
        order = self.session.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(*ORDER_VIEW_OPTIONS)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if order is None:
            raise OrderNotFoundError(order_id)
        return order_view(order)
