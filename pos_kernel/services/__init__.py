"""Write-side services. Each flushes within the caller's transaction."""

from pos_kernel.services.order_service import OrderPlacement, OrderService
from pos_kernel.services.refund_service import RefundResult, RefundService
from pos_kernel.services.stock_ledger import StockLedger

__all__ = [
    "OrderPlacement",
    "OrderService",
    "RefundResult",
    "RefundService",
    "StockLedger",
]
