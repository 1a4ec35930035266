"""
Module: pos_kernel.models.refund
Responsibility: ORM persistence for refunds (Refund) and their lines
    (RefundItem).  A refund reverses some quantity of one or more lines of a
    single order.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.

Invariants enforced:
    - Refund and RefundItem rows are append-only (db/immutability.py).
    - For every OrderItem, the sum of RefundItem.quantity over all refunds
      never exceeds OrderItem.quantity.  Enforced by RefundService under a
      row lock on the parent order.
    - RefundItem.price is copied from the OrderItem, never from the
      product's current price.
    - RefundItem.quantity > 0 (CHECK constraint).

Failure modes:
    - ImmutabilityViolationError on any UPDATE or DELETE.
    - IntegrityError on unknown order/order item/product references.

Audit relevance:
    Refunded quantity per line is always derived by summing these rows, so
    they are the sole record of what has been returned.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pos_kernel.db.base import Base, IdType
from pos_kernel.domain.values import RefundStatus

if TYPE_CHECKING:
    from pos_kernel.models.order import Order, OrderItem
    from pos_kernel.models.product import Product
    from pos_kernel.models.user import User


class Refund(Base):
    """
    One refund transaction against an order.

    Guarantees:
        - total_amount == sum of its items' subtotals.
        - items are loaded eagerly (selectin).
    """

    __tablename__ = "refunds"

    __table_args__ = (
        Index("idx_refund_order", "order_id"),
        Index("idx_refund_created_at", "created_at"),
    )

    order_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("orders.id", ondelete="RESTRICT"),
        nullable=False,
    )

    user_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[RefundStatus] = mapped_column(
        String(20),
        default=RefundStatus.COMPLETED,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    items: Mapped[list["RefundItem"]] = relationship(
        back_populates="refund",
        lazy="selectin",
        passive_deletes="all",
        order_by="RefundItem.id",
    )

    order: Mapped["Order"] = relationship(back_populates="refunds")

    user: Mapped["User"] = relationship()

    def __repr__(self) -> str:
        return f"<Refund {self.id}: order={self.order_id} total={self.total_amount}>"


class RefundItem(Base):
    """One refunded line: which order line, how many units, at what price."""

    __tablename__ = "refund_items"

    __table_args__ = (
        Index("idx_refund_item_refund", "refund_id"),
        Index("idx_refund_item_order_item", "order_item_id"),
        CheckConstraint("quantity > 0", name="ck_refund_item_quantity_positive"),
    )

    refund_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("refunds.id", ondelete="RESTRICT"),
        nullable=False,
    )

    order_item_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("order_items.id", ondelete="RESTRICT"),
        nullable=False,
    )

    product_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(nullable=False)

    # Copied from the order line at refund time
    price: Mapped[Decimal] = mapped_column(nullable=False)

    subtotal: Mapped[Decimal] = mapped_column(nullable=False)

    refund: Mapped["Refund"] = relationship(back_populates="items")

    order_item: Mapped["OrderItem"] = relationship()

    product: Mapped["Product"] = relationship()

    def __repr__(self) -> str:
        return f"<RefundItem {self.id}: order_item={self.order_item_id} qty={self.quantity}>"
