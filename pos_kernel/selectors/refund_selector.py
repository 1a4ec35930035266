"""
RefundSelector -- refund read paths.

Responsibility:
    Lists and loads refunds with cashier, order summary and refunded
    products, newest first.

Architecture position:
    Kernel > Selectors -- read-only.
"""

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from pos_kernel.domain.dtos import OrderSummaryView, RefundLineView, RefundView
from pos_kernel.domain.values import RefundStatus
from pos_kernel.exceptions import RefundNotFoundError
from pos_kernel.models.refund import Refund, RefundItem
from pos_kernel.selectors.base import BaseSelector
from pos_kernel.selectors.order_selector import cashier_view, product_ref

REFUND_VIEW_OPTIONS = (
    selectinload(Refund.user),
    selectinload(Refund.order),
    selectinload(Refund.items).selectinload(RefundItem.product),
)


def refund_view(refund: Refund) -> RefundView:
    order = refund.order
    return RefundView(
        id=refund.id,
        order_id=refund.order_id,
        user_id=refund.user_id,
        total_amount=refund.total_amount,
        reason=refund.reason,
        status=RefundStatus(refund.status),
        created_at=refund.created_at,
        user=cashier_view(refund.user),
        order=OrderSummaryView(
            id=order.id,
            total_amount=order.total_amount,
            payment_method=order.payment_method,
            created_at=order.created_at,
        )
        if order is not None
        else None,
        items=tuple(
            RefundLineView(
                id=item.id,
                order_item_id=item.order_item_id,
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.price,
                subtotal=item.subtotal,
                product=product_ref(item.product),
            )
            for item in refund.items
        ),
    )


class RefundSelector(BaseSelector[Refund]):
    """Read-only access to refunds."""

    def _query(self):
        return (
            select(Refund)
            .options(*REFUND_VIEW_OPTIONS)
            .order_by(Refund.created_at.desc(), Refund.id.desc())
            .execution_options(populate_existing=True)
        )

    def list_refunds(self) -> list[RefundView]:
        return [refund_view(r) for r in self.session.execute(self._query()).scalars()]

    def get_refund(self, refund_id: int) -> RefundView:
        """
        Raises:
            RefundNotFoundError: no refund with this id.
        """
        refund = self.session.execute(
            self._query().where(Refund.id == refund_id)
        ).scalar_one_or_none()
        if refund is None:
            raise RefundNotFoundError(refund_id)
        return refund_view(refund)

    def refunds_for_order(self, order_id: int) -> list[RefundView]:
        """Refunds of one order, newest first. Unknown orders have none."""
        rows = self.session.execute(self._query().where(Refund.order_id == order_id)).scalars()
        return [refund_view(r) for r in rows]
