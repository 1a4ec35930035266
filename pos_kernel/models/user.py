"""
Module: pos_kernel.models.user
Responsibility: ORM persistence for store staff.  Only the fields the order
    and refund engines need; credentials and account management live in the
    external auth service.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from pos_kernel.db.base import Base
from pos_kernel.domain.values import UserRole


class User(Base):
    """A cashier or administrator who rings up orders and refunds."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    role: Mapped[UserRole] = mapped_column(
        String(20),
        default=UserRole.CASHIER,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} ({self.role})>"
