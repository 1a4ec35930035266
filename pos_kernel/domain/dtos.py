"""
DTOs -- read-side views returned by the selectors.

Responsibility:
    Immutable shapes for orders, refunds, receipts and reports as the HTTP
    layer presents them.  Selectors build them from ORM rows; nothing
    outside the selectors ever sees an ORM entity on the read side.

Architecture position:
    Kernel > Domain -- pure data, zero I/O, no ORM imports.

Data flow:
    ORM rows -> selectors -> DTOs -> pos_api.serializers -> JSON
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from pos_kernel.domain.reporting import Pagination, ReportMode, ReportTotals, ReportWindow
from pos_kernel.domain.values import OrderStatus, RefundStatus, UserRole


@dataclass(frozen=True)
class CashierView:
    id: int
    name: str
    email: str
    role: UserRole


@dataclass(frozen=True)
class ProductRef:
    id: int
    name: str
    barcode: str | None
    price: Decimal


@dataclass(frozen=True)
class OrderLineView:
    """An order line with what has been refunded from it so far."""

    id: int
    order_id: int
    product_id: int
    quantity: int
    price: Decimal
    subtotal: Decimal
    product: ProductRef | None
    refunded_quantity: int
    available_quantity: int


@dataclass(frozen=True)
class RefundSummaryView:
    id: int
    total_amount: Decimal
    status: RefundStatus
    created_at: datetime
    reason: str | None


@dataclass(frozen=True)
class OrderView:
    """
    An order with its lines, refunds and cashier.

    total_refunded is the sum of all refund totals for the order.
    """

    id: int
    user_id: int
    total_amount: Decimal
    discount: Decimal
    tax: Decimal
    payment_method: str
    status: OrderStatus
    created_at: datetime
    user: CashierView | None
    items: tuple[OrderLineView, ...] = ()
    refunds: tuple[RefundSummaryView, ...] = ()
    total_refunded: Decimal = Decimal("0")


@dataclass(frozen=True)
class OrderSummaryView:
    id: int
    total_amount: Decimal
    payment_method: str
    created_at: datetime


@dataclass(frozen=True)
class RefundLineView:
    id: int
    order_item_id: int
    product_id: int
    quantity: int
    price: Decimal
    subtotal: Decimal
    product: ProductRef | None


@dataclass(frozen=True)
class RefundView:
    id: int
    order_id: int
    user_id: int
    total_amount: Decimal
    reason: str | None
    status: RefundStatus
    created_at: datetime
    user: CashierView | None
    order: OrderSummaryView | None
    items: tuple[RefundLineView, ...] = ()


@dataclass(frozen=True)
class ReceiptLine:
    name: str
    quantity: int
    price: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class ReceiptData:
    """Everything a thermal printer template needs for one order."""

    store_name: str
    address: str
    order_id: int
    date: str
    cashier: str
    items: tuple[ReceiptLine, ...]
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    payment_method: str


@dataclass(frozen=True)
class OrderFilter:
    """Filters for the order listing. Empty fields do not filter."""

    window: ReportWindow | None = None
    cashier_id: int | None = None
    order_id: int | None = None
    statuses: tuple[OrderStatus, ...] = field(default_factory=tuple)
    with_discount: bool = False


@dataclass(frozen=True)
class OrderReport:
    orders: tuple[OrderView, ...]
    totals: ReportTotals
    mode: ReportMode
    pagination: Pagination


@dataclass(frozen=True)
class DailyReport:
    window: ReportWindow
    orders: tuple[OrderView, ...]
    totals: ReportTotals
    pagination: Pagination


@dataclass(frozen=True)
class DashboardStats:
    daily_sales: Decimal
    total_orders: int
    low_stock_count: int
    active_cashiers: int
