"""Per-request kernel wiring from ``app.state``."""

from fastapi import Request
from sqlalchemy.orm import Session

from pos_kernel.selectors.report_selector import ReportSelector
from pos_kernel.services.order_service import OrderService
from pos_kernel.services.refund_service import RefundService
from pos_kernel.services.stock_ledger import StockLedger


def order_service(request: Request, session: Session) -> OrderService:
    state = request.app.state
    return OrderService(
        session,
        stock_ledger=StockLedger(session, state.stock_policy),
        totals_policy=state.totals_policy,
        clock=state.clock,
    )


def refund_service(request: Request, session: Session) -> RefundService:
    state = request.app.state
    return RefundService(
        session,
        stock_ledger=StockLedger(session, state.stock_policy),
        clock=state.clock,
    )


def report_selector(request: Request, session: Session) -> ReportSelector:
    state = request.app.state
    return ReportSelector(session, store=state.store, clock=state.clock)


def page_limit(request: Request, limit: int) -> int:
    """Clamp a requested page size to the configured maximum."""
    return min(limit, request.app.state.config.reporting.max_page_size)
