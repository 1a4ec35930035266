"""
ReceiptSelector -- receipt data for one order.

Responsibility:
    Produces the printer-independent content of a customer receipt: store
    header, cashier, local timestamp, lines and money totals.  Rendering
    and sending it to a printer happen outside the kernel.

Architecture position:
    Kernel > Selectors -- read-only.
"""

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from pos_kernel.domain.dtos import ReceiptData, ReceiptLine
from pos_kernel.domain.orders import ZERO, to_money
from pos_kernel.domain.policies import StoreInfo
from pos_kernel.exceptions import OrderNotFoundError
from pos_kernel.models.order import Order, OrderItem
from pos_kernel.selectors.base import BaseSelector

RECEIPT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ReceiptSelector(BaseSelector[Order]):

    def receipt_for_order(self, order_id: int, store: StoreInfo | None = None) -> ReceiptData:
        """
        Raises:
            OrderNotFoundError: no order with this id.
        """
        store = store or StoreInfo()
        order = self.session.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(
                selectinload(Order.user),
                selectinload(Order.items).selectinload(OrderItem.product),
            )
        ).scalar_one_or_none()
        if order is None:
            raise OrderNotFoundError(order_id)

        lines = tuple(
            ReceiptLine(
                name=item.product.name if item.product is not None else "Unknown Product",
                quantity=item.quantity,
                price=item.price,
                subtotal=item.subtotal,
            )
            for item in order.items
        )
        return ReceiptData(
            store_name=store.name,
            address=store.address,
            order_id=order.id,
            date=order.created_at.astimezone(store.tz).strftime(RECEIPT_DATE_FORMAT),
            cashier=order.user.name if order.user is not None else "Unknown",
            items=lines,
            subtotal=to_money(sum((line.subtotal for line in lines), ZERO)),
            discount=order.discount,
            tax=order.tax,
            total=order.total_amount,
            payment_method=order.payment_method,
        )
