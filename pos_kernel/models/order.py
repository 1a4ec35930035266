"""
Module: pos_kernel.models.order
Responsibility: ORM persistence for completed sales (Order) and their lines
    (OrderItem).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.
    MUST NOT import from services/, selectors/, or outer layers.

Invariants enforced:
    - An Order is written once, in the same transaction as all of its
      OrderItems, and never deleted.
    - After creation the only mutable column on Order is status, and it only
      moves forward: COMPLETED -> PARTIALLY_REFUNDED -> REFUNDED
      (db/immutability.py).
    - OrderItem rows are fully immutable (db/immutability.py).
    - OrderItem.quantity > 0 (CHECK constraint).
    - total_amount is the final charged amount, already net of discount.

Failure modes:
    - ImmutabilityViolationError on any UPDATE of an OrderItem or a non-status
      field of an Order.
    - OrderStatusTransitionError on a backward status move.
    - IntegrityError on an unknown user_id/product_id or a non-positive line
      quantity.

Audit relevance:
    Orders and their lines are the base against which every refund is
    validated; refundable quantity is always derived from them, never stored.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pos_kernel.db.base import Base, IdType
from pos_kernel.domain.values import OrderStatus

if TYPE_CHECKING:
    from pos_kernel.models.product import Product
    from pos_kernel.models.refund import Refund
    from pos_kernel.models.user import User


class Order(Base):
    """
    A completed sale.

    Contract:
        Created by OrderService.place_order() together with its items.
        status is derived from refunds and written only by RefundService.

    Guarantees:
        - items are loaded eagerly (selectin).
        - Deletion is restricted at the database level.
    """

    __tablename__ = "orders"

    __table_args__ = (
        Index("idx_order_created_at", "created_at"),
        Index("idx_order_status", "status"),
        Index("idx_order_user", "user_id"),
        CheckConstraint(
            "status IN ('COMPLETED', 'PARTIALLY_REFUNDED', 'REFUNDED')",
            name="ck_order_status",
        ),
    )

    user_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Final charged amount: max(0, sum(subtotals) - discount); tax is not added
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    discount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    tax: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)

    status: Mapped[OrderStatus] = mapped_column(
        String(20),
        default=OrderStatus.COMPLETED,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        lazy="selectin",
        passive_deletes="all",
        order_by="OrderItem.id",
    )

    user: Mapped["User"] = relationship()

    refunds: Mapped[list["Refund"]] = relationship(
        back_populates="order",
        passive_deletes="all",
        order_by="Refund.id",
    )

    def __repr__(self) -> str:
        return f"<Order {self.id} total={self.total_amount} status={self.status}>"


class OrderItem(Base):
    """
    One line of an order: a product, the quantity sold and the unit price
    charged at the time of sale.

    Guarantees:
        - Immutable from creation.
        - subtotal == price * quantity when totals verification is on.
    """

    __tablename__ = "order_items"

    __table_args__ = (
        Index("idx_order_item_order", "order_id"),
        Index("idx_order_item_product", "product_id"),
        CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),
    )

    order_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("orders.id", ondelete="RESTRICT"),
        nullable=False,
    )

    product_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(nullable=False)

    # Unit price at time of sale
    price: Mapped[Decimal] = mapped_column(nullable=False)

    subtotal: Mapped[Decimal] = mapped_column(nullable=False)

    order: Mapped["Order"] = relationship(back_populates="items")

    product: Mapped["Product"] = relationship()

    def __repr__(self) -> str:
        return f"<OrderItem {self.id}: product={self.product_id} qty={self.quantity}>"
