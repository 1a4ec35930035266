"""
Order lookup and reporting.

Static paths (daily-report, dashboard-stats) are declared before
``/{order_id}`` so they are matched first.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from pos_api.auth import Caller, current_user, require_admin
from pos_api.deps import page_limit, report_selector
from pos_api.serializers import daily_report_json, order_report_json, to_json
from pos_kernel.db.engine import session_scope
from pos_kernel.domain.dtos import OrderFilter
from pos_kernel.domain.reporting import parse_statuses, resolve_report_window
from pos_kernel.selectors.order_selector import OrderSelector
from pos_kernel.selectors.receipt_selector import ReceiptSelector

router = APIRouter(prefix="/orders", tags=["orders"])


def _limit(request: Request, limit: Optional[int]) -> int:
    if limit is None:
        return request.app.state.config.reporting.default_page_size
    return page_limit(request, limit)


@router.get("")
def list_orders(
    request: Request,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    cashier_id: Optional[int] = Query(None, alias="cashierId"),
    order_id: Optional[int] = Query(None, alias="orderId"),
    status: Optional[str] = Query(None),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    caller: Caller = Depends(require_admin),
):
    """
    Paged order history with totals over the whole filtered set.

    ``status`` takes a comma-separated list.  When every listed status is a
    refund state the totals report refunded amounts instead of net sales.
    """
    state = request.app.state
    window = None
    if start_date and end_date:
        window = resolve_report_window(
            state.store.tz, state.clock.now(), start_date=start_date, end_date=end_date
        )
    order_filter = OrderFilter(
        window=window,
        cashier_id=cashier_id,
        order_id=order_id,
        statuses=parse_statuses(status),
    )
    with session_scope(state.session_factory) as session:
        report = report_selector(request, session).list_orders(
            order_filter, page=page, limit=_limit(request, limit)
        )
    return order_report_json(report)


@router.get("/daily-report")
def daily_report(
    request: Request,
    date: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    with_discount: bool = Query(False, alias="withDiscount"),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    caller: Caller = Depends(require_admin),
):
    """Sales report for one day, a range, or a set of days (default: today)."""
    state = request.app.state
    dates = request.query_params.getlist("dates") + request.query_params.getlist("dates[]")
    window = resolve_report_window(
        state.store.tz,
        state.clock.now(),
        date_param=date,
        dates=dates or None,
        start_date=start_date,
        end_date=end_date,
    )
    with session_scope(state.session_factory) as session:
        report = report_selector(request, session).daily_report(
            window, with_discount=with_discount, page=page, limit=_limit(request, limit)
        )
    return daily_report_json(report)


@router.get("/dashboard-stats")
def dashboard_stats(request: Request, caller: Caller = Depends(require_admin)):
    with session_scope(request.app.state.session_factory) as session:
        stats = report_selector(request, session).dashboard_stats()
    return to_json(stats)


@router.get("/{order_id}")
def get_order(order_id: int, request: Request, caller: Caller = Depends(current_user)):
    with session_scope(request.app.state.session_factory) as session:
        view = OrderSelector(session).get_order(order_id)
    return to_json(view)


@router.get("/{order_id}/receipt")
def get_receipt(order_id: int, request: Request, caller: Caller = Depends(current_user)):
    """Data for a printed receipt; printing happens elsewhere."""
    state = request.app.state
    with session_scope(state.session_factory) as session:
        receipt = ReceiptSelector(session).receipt_for_order(order_id, state.store)
    return to_json(receipt)
