"""
Property-based tests (hypothesis) for the pure refund and reporting rules.

Properties:
- Refunded quantity per line never exceeds the sold quantity, whatever
  sequence of refund requests arrives.
- A refund's total is the sum of sale price x quantity over its lines.
- Status is REFUNDED exactly when every line is fully refunded.
- Aggregation is additive, so totals do not depend on how rows are paged.
- Report windows cover whole days without gaps.
"""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from pos_kernel.domain.refunds import (
    RefundLineRequest,
    SoldLine,
    derive_order_status,
    plan_refund,
)
from pos_kernel.domain.reporting import (
    OrderFacts,
    ReportMode,
    aggregate_orders,
    resolve_report_window,
)
from pos_kernel.domain.values import OrderStatus
from pos_kernel.exceptions import (
    EmptyRefundError,
    RefundQuantityExceededError,
)

prices = st.decimals(min_value=Decimal("0.01"), max_value=Decimal("999.99"), places=2)

sold_lines = st.lists(
    st.tuples(st.integers(min_value=1, max_value=10), prices),
    min_size=1,
    max_size=5,
).map(
    lambda rows: [
        SoldLine(order_item_id=i + 1, product_id=100 + i, quantity=qty, price=price)
        for i, (qty, price) in enumerate(rows)
    ]
)


@st.composite
def sale_and_requests(draw):
    lines = draw(sold_lines)
    ids = [l.order_item_id for l in lines]
    request_batches = draw(
        st.lists(
            st.lists(
                st.tuples(st.sampled_from(ids), st.integers(min_value=0, max_value=12)),
                min_size=1,
                max_size=4,
            ),
            min_size=1,
            max_size=6,
        )
    )
    return lines, request_batches


@settings(max_examples=200, deadline=None)
@given(sale_and_requests())
def test_refunds_never_exceed_sold_quantity(case):
    lines, batches = case
    sold = {l.order_item_id: l for l in lines}
    refunded: dict[int, int] = {}

    for batch in batches:
        requests = [RefundLineRequest(item_id, qty) for item_id, qty in batch]
        try:
            plan = plan_refund(1, lines, refunded, requests)
        except (RefundQuantityExceededError, EmptyRefundError):
            continue

        assert plan.total_amount == sum(
            (sold[l.order_item_id].price * l.quantity for l in plan.lines), Decimal("0")
        )
        for line in plan.lines:
            refunded[line.order_item_id] = refunded.get(line.order_item_id, 0) + line.quantity

        for item_id, qty in refunded.items():
            assert qty <= sold[item_id].quantity


@settings(max_examples=200, deadline=None)
@given(sold_lines, st.data())
def test_status_matches_refunded_quantities(lines, data):
    quantities = {l.order_item_id: l.quantity for l in lines}
    refunded = {
        item_id: data.draw(st.integers(min_value=0, max_value=qty)) for item_id, qty in quantities.items()
    }

    status = derive_order_status(OrderStatus.COMPLETED, quantities, refunded)

    if all(refunded[i] == q for i, q in quantities.items()):
        assert status is OrderStatus.REFUNDED
    elif any(refunded.values()):
        assert status is OrderStatus.PARTIALLY_REFUNDED
    else:
        assert status is OrderStatus.COMPLETED


order_facts = st.builds(
    lambda status, total, discount, refund_share: OrderFacts(
        status=status,
        total_amount=total,
        discount=discount,
        refunded_amount=total if status is OrderStatus.REFUNDED else (total * refund_share).quantize(Decimal("0.01")),
    ),
    st.sampled_from(list(OrderStatus)),
    prices,
    st.decimals(min_value=Decimal("0"), max_value=Decimal("50"), places=2),
    st.sampled_from([Decimal("0"), Decimal("0.25"), Decimal("0.5")]),
)


@settings(max_examples=200, deadline=None)
@given(st.lists(order_facts, max_size=30), st.integers(min_value=1, max_value=7), st.sampled_from(list(ReportMode)))
def test_totals_do_not_depend_on_paging(facts, page_size, mode):
    whole = aggregate_orders(facts, mode)
    pages = [aggregate_orders(facts[i : i + page_size], mode) for i in range(0, len(facts), page_size)]

    assert sum((p.total_sales for p in pages), Decimal("0")) == whole.total_sales
    assert sum(p.total_orders for p in pages) == whole.total_orders
    assert sum((p.total_discount for p in pages), Decimal("0")) == whole.total_discount


@settings(max_examples=100, deadline=None)
@given(
    st.dates(min_value=date(2020, 1, 1), max_value=date(2030, 12, 31)),
    st.integers(min_value=0, max_value=40),
)
def test_range_window_covers_whole_days(first, span):
    last = first + timedelta(days=span)
    window = resolve_report_window(
        UTC, datetime(2024, 1, 1, tzinfo=UTC), start_date=last.isoformat(), end_date=first.isoformat()
    )
    (rng,) = window.ranges
    assert rng.start == datetime(first.year, first.month, first.day, tzinfo=UTC)
    assert rng.end - rng.start == timedelta(days=span + 1)
