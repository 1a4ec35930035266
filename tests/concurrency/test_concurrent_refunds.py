"""
Concurrent refunds and checkouts against real commits.

Each worker opens its own session through ``session_scope`` and all
workers are released together by a barrier.

Covers:
- Concurrent refunds of the same line never exceed the sold quantity
- Final status and stock agree with the refunds that committed
- Concurrent checkouts of the same product lose no stock decrement
"""

import threading
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from pos_kernel.db.engine import session_scope
from pos_kernel.domain.orders import OrderLineInput
from pos_kernel.domain.refunds import RefundLineRequest
from pos_kernel.exceptions import RefundQuantityExceededError
from pos_kernel.models import Order, OrderItem, OrderStatus, Product, RefundItem, User, UserRole
from pos_kernel.services.order_service import OrderService
from pos_kernel.services.refund_service import RefundService

WORKERS = 6


def _run_together(target, count):
    barrier = threading.Barrier(count)
    results: list = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        try:
            outcome = target()
        except Exception as exc:  # collected for assertions
            outcome = exc
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results


@pytest.fixture
def committed_sale(session_factory):
    """A committed order: one line of 3 units at 4.00."""
    with session_scope(session_factory) as s:
        user = User(name="Threaded Cashier", email="threads@example.com", role=UserRole.CASHIER.value)
        product = Product(name="Juice", price=Decimal("4.00"), quantity=20, min_quantity=0)
        s.add_all([user, product])
        s.flush()
        placement = OrderService(s).place_order(
            user.id,
            [OrderLineInput(product.id, 3, Decimal("4.00"), Decimal("12.00"))],
            "CASH",
            Decimal("12.00"),
        )
        line_id = s.execute(
            select(OrderItem.id).where(OrderItem.order_id == placement.order_id)
        ).scalar_one()
        return placement.order_id, line_id, user.id, product.id


@pytest.mark.slow_locks
class TestConcurrentRefunds:
    def test_never_over_refund(self, session_factory, committed_sale):
        order_id, line_id, user_id, product_id = committed_sale

        def refund_one():
            with session_scope(session_factory) as s:
                return RefundService(s).create_refund(order_id, user_id, [RefundLineRequest(line_id, 1)])

        results = _run_together(refund_one, WORKERS)

        succeeded = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, RefundQuantityExceededError)]
        assert len(succeeded) == 3
        assert len(rejected) == WORKERS - 3

        with session_scope(session_factory) as s:
            refunded = s.execute(
                select(func.sum(RefundItem.quantity)).where(RefundItem.order_item_id == line_id)
            ).scalar_one()
            status = s.execute(select(Order.status).where(Order.id == order_id)).scalar_one()
            stock = s.execute(select(Product.quantity).where(Product.id == product_id)).scalar_one()

        assert refunded == 3
        assert OrderStatus(status) is OrderStatus.REFUNDED
        assert stock == 20

    def test_two_full_refunds_only_one_wins(self, session_factory, committed_sale):
        order_id, line_id, user_id, product_id = committed_sale

        def refund_everything():
            with session_scope(session_factory) as s:
                return RefundService(s).create_refund(order_id, user_id, [RefundLineRequest(line_id, 3)])

        results = _run_together(refund_everything, 2)

        succeeded = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, RefundQuantityExceededError)]
        assert len(succeeded) == 1
        assert len(rejected) == 1
        assert succeeded[0].order_status is OrderStatus.REFUNDED

        with session_scope(session_factory) as s:
            refunded = s.execute(
                select(func.sum(RefundItem.quantity)).where(RefundItem.order_item_id == line_id)
            ).scalar_one()
            stock = s.execute(select(Product.quantity).where(Product.id == product_id)).scalar_one()

        assert refunded == 3
        assert stock == 20

    def test_concurrent_checkouts_keep_every_decrement(self, session_factory, committed_sale):
        _, _, user_id, product_id = committed_sale

        def buy_one():
            with session_scope(session_factory) as s:
                return OrderService(s).place_order(
                    user_id,
                    [OrderLineInput(product_id, 1, Decimal("4.00"), Decimal("4.00"))],
                    "CARD",
                    Decimal("4.00"),
                )

        results = _run_together(buy_one, WORKERS)
        assert not [r for r in results if isinstance(r, Exception)]

        with session_scope(session_factory) as s:
            stock = s.execute(select(Product.quantity).where(Product.id == product_id)).scalar_one()
        assert stock == 17 - WORKERS
