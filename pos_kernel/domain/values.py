"""
Values -- enumerations shared by the domain, the models and the API.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Models import these; these never
    import models.
"""

from enum import Enum


class UserRole(str, Enum):
    """Staff role carried in the bearer token."""

    ADMIN = "ADMIN"
    CASHIER = "CASHIER"


class OrderStatus(str, Enum):
    """Refund-derived lifecycle status of an order.

    Contract: Transitions are one-way: COMPLETED -> PARTIALLY_REFUNDED -> REFUNDED.
    Guarantees: Set only by the refund engine after each refund.
    """

    COMPLETED = "COMPLETED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"
    REFUNDED = "REFUNDED"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {
    OrderStatus.COMPLETED: 0,
    OrderStatus.PARTIALLY_REFUNDED: 1,
    OrderStatus.REFUNDED: 2,
}

REFUND_STATES = frozenset({OrderStatus.PARTIALLY_REFUNDED, OrderStatus.REFUNDED})


class RefundStatus(str, Enum):
    COMPLETED = "COMPLETED"
