"""
Module: pos_kernel.models.product
Responsibility: ORM persistence for sellable products and their on-hand stock.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.

Invariants enforced:
    - quantity is mutated ONLY through StockLedger.adjust_stock(), as a
      relative UPDATE.  Never read-modify-write it from the ORM object.
    - quantity may go negative (oversell) unless the stock policy forbids it.

Audit relevance:
    Stock level is the only mutable quantity the order and refund engines
    touch; sales decrement it and refunds restore it.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from pos_kernel.db.base import Base


class Product(Base):
    """
    A catalogue product with its current stock level.

    Guarantees:
        - barcode is unique when present.
        - price and cost_price are Decimal with 2 places.

    Non-goals:
        - Category, supplier and image metadata are not modelled.
    """

    __tablename__ = "products"

    __table_args__ = (
        Index("idx_product_name", "name"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    barcode: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)

    price: Mapped[Decimal] = mapped_column(nullable=False)

    cost_price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # Mutated only via StockLedger.adjust_stock()
    quantity: Mapped[int] = mapped_column(nullable=False, default=0)

    # Low-stock threshold for the dashboard
    min_quantity: Mapped[int] = mapped_column(nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<Product {self.id}: {self.name} qty={self.quantity}>"
