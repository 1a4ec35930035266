"""
ReportSelector -- sales and refund reporting over committed orders.

Responsibility:
    Paged order listings with totals over the whole filtered set, the daily
    sales report, and the dashboard's same-day figures.

Architecture position:
    Kernel > Selectors -- read-only.  Aggregation rules live in
    domain/reporting.py; this module only fetches the facts.

Invariants enforced:
    - Aggregates (sales, order count, discount) are computed over every
      matching order, independent of page and limit: one paged query for
      the rows, one unpaged scan for the totals.
    - Net sales per order = total_amount - sum(refund totals); fully
      REFUNDED orders are excluded in sales mode.
    - Business days are local to the store timezone.

Failure modes:
    - InvalidReportFilterError from domain/reporting.py on bad paging.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, distinct, func, or_, select

from pos_kernel.domain.clock import Clock, SystemClock
from pos_kernel.domain.dtos import DailyReport, DashboardStats, OrderFilter, OrderReport, OrderView
from pos_kernel.domain.policies import StoreInfo
from pos_kernel.domain.reporting import (
    OrderFacts,
    Pagination,
    ReportMode,
    ReportWindow,
    aggregate_orders,
    paginate,
    resolve_report_window,
    select_mode,
)
from pos_kernel.domain.values import OrderStatus, UserRole
from pos_kernel.logging_config import get_logger
from pos_kernel.models.order import Order
from pos_kernel.models.product import Product
from pos_kernel.models.refund import Refund
from pos_kernel.models.user import User
from pos_kernel.selectors.base import BaseSelector
from pos_kernel.selectors.order_selector import ORDER_VIEW_OPTIONS, order_view

logger = get_logger("selectors.report")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def _money(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


class ReportSelector(BaseSelector[Order]):
    """
    Read-only reporting queries.

    Contract:
        ``store`` supplies the timezone that defines a business day;
        ``clock`` supplies "now" for the dashboard and for reports with no
        date parameters.
    """

    def __init__(self, session, store: StoreInfo | None = None, clock: Clock | None = None):
        super().__init__(session)
        self._store = store or StoreInfo()
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Query building
    # ------------------------------------------------------------------

    @staticmethod
    def _window_condition(window: ReportWindow):
        return or_(
            *[
                and_(Order.created_at >= r.start, Order.created_at < r.end)
                for r in window.ranges
            ]
        )

    def _conditions(self, order_filter: OrderFilter) -> list:
        conditions = []
        if order_filter.window is not None:
            conditions.append(self._window_condition(order_filter.window))
        if order_filter.cashier_id is not None:
            conditions.append(Order.user_id == order_filter.cashier_id)
        if order_filter.order_id is not None:
            conditions.append(Order.id == order_filter.order_id)
        if order_filter.statuses:
            conditions.append(Order.status.in_([OrderStatus(s).value for s in order_filter.statuses]))
        if order_filter.with_discount:
            conditions.append(Order.discount > 0)
        return conditions

    def _facts(self, conditions: list) -> list[OrderFacts]:
        refunded = (
            select(
                Refund.order_id.label("order_id"),
                func.sum(Refund.total_amount).label("refunded"),
            )
            .group_by(Refund.order_id)
            .subquery()
        )
        rows = self.session.execute(
            select(Order.status, Order.total_amount, Order.discount, refunded.c.refunded)
            .outerjoin(refunded, refunded.c.order_id == Order.id)
            .where(*conditions)
        ).all()
        return [
            OrderFacts(
                status=OrderStatus(status),
                total_amount=_money(total),
                discount=_money(discount),
                refunded_amount=_money(refunded_amount),
            )
            for status, total, discount, refunded_amount in rows
        ]

    def _page(self, conditions: list, pagination: Pagination) -> tuple[OrderView, ...]:
        orders = self.session.execute(
            select(Order)
            .where(*conditions)
            .options(*ORDER_VIEW_OPTIONS)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
            .execution_options(populate_existing=True)
        ).scalars()
        return tuple(order_view(o) for o in orders)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def list_orders(
        self,
        order_filter: OrderFilter | None = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> OrderReport:
        """
        One page of matching orders (newest first) plus totals over all of them.

        The status filter picks the mode: refund mode when every requested
        status is a refund state, sales mode otherwise.
        """
        order_filter = order_filter or OrderFilter()
        conditions = self._conditions(order_filter)
        mode = select_mode(order_filter.statuses)

        facts = self._facts(conditions)
        pagination = paginate(page, limit, len(facts))
        totals = aggregate_orders(facts, mode)

        logger.debug(
            "orders_listed",
            extra={"mode": mode, "total_count": len(facts), "page": page, "limit": limit},
        )
        return OrderReport(
            orders=self._page(conditions, pagination),
            totals=totals,
            mode=mode,
            pagination=pagination,
        )

    def daily_report(
        self,
        window: ReportWindow | None = None,
        with_discount: bool = False,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> DailyReport:
        """Sales-mode report over the given business days (default: today)."""
        window = window or self.today()
        conditions = self._conditions(OrderFilter(window=window, with_discount=with_discount))

        facts = self._facts(conditions)
        pagination = paginate(page, limit, len(facts))
        return DailyReport(
            window=window,
            orders=self._page(conditions, pagination),
            totals=aggregate_orders(facts, ReportMode.SALES),
            pagination=pagination,
        )

    def dashboard_stats(self, now: datetime | None = None) -> DashboardStats:
        """
        Today's net sales and order count, low-stock products and cashiers
        who have rung up at least one order today.
        """
        window = self.today(now)
        day_condition = self._window_condition(window)

        totals = aggregate_orders(self._facts([day_condition]), ReportMode.SALES)

        # Two-column predicate evaluated in memory.
        stock_rows = self.session.execute(select(Product.quantity, Product.min_quantity)).all()
        low_stock = sum(1 for quantity, minimum in stock_rows if quantity <= minimum)

        active_cashiers = self.session.execute(
            select(func.count(distinct(Order.user_id)))
            .join(User, User.id == Order.user_id)
            .where(User.role == UserRole.CASHIER.value, day_condition)
        ).scalar_one()

        return DashboardStats(
            daily_sales=totals.total_sales,
            total_orders=totals.total_orders,
            low_stock_count=low_stock,
            active_cashiers=int(active_cashiers),
        )

    def today(self, now: datetime | None = None) -> ReportWindow:
        return resolve_report_window(self._store.tz, now or self._clock.now())
