"""
Reporting -- report mode selection, business-day windows and aggregation.

Responsibility:
    Pure helpers behind the report selector:
      - parse_statuses / select_mode: which aggregation applies to a filter.
      - resolve_report_window: turn date query parameters into UTC intervals
        that cover whole local business days.
      - aggregate_orders: sales-mode or refund-mode totals over order facts.
      - paginate: page bookkeeping.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Sales mode: fully REFUNDED orders are excluded from the sales sum, the
      order count and the discount sum; every other order contributes
      total_amount minus its refunds.
    - Refund mode: "sales" is the refunded amount; every matching order is
      counted and its discount summed.
    - Totals are computed over the whole filtered set, never one page.

Failure modes:
    - InvalidReportFilterError on an unknown status or an unparsable date.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from enum import Enum
from math import ceil

from pos_kernel.domain.orders import ZERO, to_money
from pos_kernel.domain.values import REFUND_STATES, OrderStatus
from pos_kernel.exceptions import InvalidReportFilterError


class ReportMode(str, Enum):
    SALES = "sales"
    REFUNDS = "refunds"


def parse_statuses(raw: str | None) -> tuple[OrderStatus, ...]:
    """Parse a comma-separated status filter. Blank entries are ignored."""
    if not raw:
        return ()
    statuses: list[OrderStatus] = []
    for token in raw.split(","):
        token = token.strip().upper()
        if not token:
            continue
        try:
            status = OrderStatus(token)
        except ValueError:
            raise InvalidReportFilterError("status", token) from None
        if status not in statuses:
            statuses.append(status)
    return tuple(statuses)


def select_mode(statuses: Sequence[OrderStatus]) -> ReportMode:
    """
    Refund mode only when a filter is given and every status in it is a
    refund state; otherwise sales mode.

    A mixed filter such as COMPLETED,PARTIALLY_REFUNDED reports net sales.
    One listed refund state is not enough to switch to refund mode, unlike
    the earlier till reports.
    """
    if statuses and all(OrderStatus(s) in REFUND_STATES for s in statuses):
        return ReportMode.REFUNDS
    return ReportMode.SALES


# ---------------------------------------------------------------------------
# Date windows
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateRange:
    """Half-open UTC interval [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(f"DateRange end {self.end} must be after start {self.start}")


@dataclass(frozen=True)
class ReportWindow:
    """
    The business days a report covers.

    ranges are the UTC intervals to query; first_day/last_day are the local
    calendar days they span; days is set when the caller picked individual
    days.
    """

    ranges: tuple[DateRange, ...]
    first_day: date
    last_day: date
    days: tuple[date, ...] | None = None


def parse_date(value: str, parameter: str) -> date:
    """Accept YYYY-MM-DD or a full ISO timestamp (only the date part is used)."""
    try:
        return date.fromisoformat(value[:10])
    except (TypeError, ValueError):
        raise InvalidReportFilterError(parameter, str(value)) from None


def local_day_range(first: date, last: date, tz: tzinfo) -> DateRange:
    """UTC interval covering local midnight of ``first`` to local midnight after ``last``."""
    start = datetime.combine(first, time.min, tzinfo=tz)
    end = datetime.combine(last + timedelta(days=1), time.min, tzinfo=tz)
    return DateRange(start=start.astimezone(UTC), end=end.astimezone(UTC))


def resolve_report_window(
    tz: tzinfo,
    now: datetime,
    *,
    date_param: str | None = None,
    dates: Sequence[str] | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> ReportWindow:
    """
    Resolve report date parameters, first match wins:

      1. ``dates`` with exactly two entries: inclusive range between them.
      2. ``dates`` otherwise: one window per distinct day.
      3. ``start_date`` and ``end_date``: inclusive range.
      4. ``date_param``: that single day.
      5. nothing: the local day containing ``now``.
    """
    if dates:
        days = sorted({parse_date(d, "dates") for d in dates})
        if len(dates) == 2:
            first, last = days[0], days[-1]
            return ReportWindow(
                ranges=(local_day_range(first, last, tz),),
                first_day=first,
                last_day=last,
                days=tuple(days),
            )
        return ReportWindow(
            ranges=tuple(local_day_range(d, d, tz) for d in days),
            first_day=days[0],
            last_day=days[-1],
            days=tuple(days),
        )

    if start_date and end_date:
        first = parse_date(start_date, "startDate")
        last = parse_date(end_date, "endDate")
        if last < first:
            first, last = last, first
        return ReportWindow(
            ranges=(local_day_range(first, last, tz),), first_day=first, last_day=last
        )

    if date_param:
        day = parse_date(date_param, "date")
        return ReportWindow(ranges=(local_day_range(day, day, tz),), first_day=day, last_day=day)

    today = now.astimezone(tz).date()
    return ReportWindow(ranges=(local_day_range(today, today, tz),), first_day=today, last_day=today)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrderFacts:
    """What aggregation needs to know about one order."""

    status: OrderStatus
    total_amount: Decimal
    discount: Decimal
    refunded_amount: Decimal


@dataclass(frozen=True)
class ReportTotals:
    total_sales: Decimal
    total_orders: int
    total_discount: Decimal


def aggregate_orders(facts: Iterable[OrderFacts], mode: ReportMode) -> ReportTotals:
    sales = ZERO
    discount = ZERO
    count = 0
    for f in facts:
        if mode is ReportMode.REFUNDS:
            sales += f.refunded_amount
        else:
            if OrderStatus(f.status) is OrderStatus.REFUNDED:
                continue
            sales += f.total_amount - f.refunded_amount
        discount += f.discount
        count += 1
    return ReportTotals(total_sales=to_money(sales), total_orders=count, total_discount=to_money(discount))


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def paginate(page: int, limit: int, total_count: int) -> Pagination:
    if page < 1:
        raise InvalidReportFilterError("page", str(page))
    if limit < 1:
        raise InvalidReportFilterError("limit", str(limit))
    total_pages = ceil(total_count / limit)
    return Pagination(
        page=page,
        limit=limit,
        total_count=total_count,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_previous_page=page > 1,
    )
