"""Read-only selectors returning DTOs from pos_kernel.domain.dtos."""

from pos_kernel.selectors.order_selector import OrderSelector
from pos_kernel.selectors.receipt_selector import ReceiptSelector
from pos_kernel.selectors.refund_selector import RefundSelector
from pos_kernel.selectors.report_selector import ReportSelector

__all__ = [
    "OrderSelector",
    "ReceiptSelector",
    "RefundSelector",
    "ReportSelector",
]
