"""Domain models for the POS kernel."""

from pos_kernel.domain.values import REFUND_STATES, OrderStatus, RefundStatus, UserRole
from pos_kernel.models.order import Order, OrderItem
from pos_kernel.models.product import Product
from pos_kernel.models.refund import Refund, RefundItem
from pos_kernel.models.user import User

__all__ = [
    "User",
    "UserRole",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatus",
    "REFUND_STATES",
    "Refund",
    "RefundItem",
    "RefundStatus",
]
