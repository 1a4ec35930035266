"""
OrderService.place_order.

Covers:
- Order and lines persisted, status COMPLETED, timestamp from the clock
- Stock decremented per line (stock conservation on sale)
- Validation failures write nothing
- Unknown cashier and unknown product
- Oversell policy
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from pos_kernel.domain.orders import OrderLineInput
from pos_kernel.domain.policies import StockPolicy, TotalsPolicy
from pos_kernel.exceptions import (
    EmptyOrderError,
    InsufficientStockError,
    InvalidOrderLineError,
    OrderTotalMismatchError,
    UserNotFoundError,
)
from pos_kernel.models import Order, OrderStatus
from pos_kernel.services.order_service import OrderService
from pos_kernel.services.stock_ledger import StockLedger


def _order_count(session) -> int:
    return session.execute(select(func.count(Order.id))).scalar_one()


class TestPlaceOrder:
    def test_persists_order_and_lines(
        self, session, place_order, order_lines, coffee, bagel, cashier, deterministic_clock
    ):
        placement = place_order([(coffee, 2), (bagel, 1)], discount="5.00", tax="1.50")

        order = session.get(Order, placement.order_id)
        assert order.status == OrderStatus.COMPLETED
        assert order.user_id == cashier.id
        assert order.total_amount == Decimal("20.00")
        assert order.discount == Decimal("5.00")
        assert order.tax == Decimal("1.50")
        assert order.created_at == deterministic_clock.now()

        lines = order_lines(placement.order_id)
        assert [(l.product_id, l.quantity, l.subtotal) for l in lines] == [
            (coffee.id, 2, Decimal("20.00")),
            (bagel.id, 1, Decimal("5.00")),
        ]
        assert placement.line_count == 2

    def test_decrements_stock(self, place_order, stock_of, coffee, bagel):
        place_order([(coffee, 3), (bagel, 2)])
        assert stock_of(coffee.id) == 97
        assert stock_of(bagel.id) == 48

    def test_same_product_on_two_lines(self, place_order, stock_of, coffee):
        place_order([(coffee, 1), (coffee, 2)])
        assert stock_of(coffee.id) == 97

    def test_empty_order(self, session, order_service, cashier):
        with pytest.raises(EmptyOrderError):
            order_service.place_order(cashier.id, [], "CASH", Decimal("0"))
        assert _order_count(session) == 0

    def test_zero_quantity_line(self, session, order_service, cashier, coffee):
        line = OrderLineInput(coffee.id, 0, coffee.price, Decimal("0"))
        with pytest.raises(InvalidOrderLineError):
            order_service.place_order(cashier.id, [line], "CASH", Decimal("0"))
        assert _order_count(session) == 0

    def test_tax_is_stored_but_not_added_to_total(self, session, order_service, cashier, coffee, make_line):
        placement = order_service.place_order(
            cashier.id,
            [make_line(coffee, 2)],
            "CASH",
            Decimal("19.00"),
            discount=Decimal("1.00"),
            tax=Decimal("0.50"),
        )

        order = session.get(Order, placement.order_id)
        assert order.total_amount == Decimal("19.00")
        assert order.tax == Decimal("0.50")

    def test_total_including_tax_rejected(self, session, order_service, cashier, coffee, make_line):
        with pytest.raises(OrderTotalMismatchError) as exc_info:
            order_service.place_order(
                cashier.id,
                [make_line(coffee, 2)],
                "CASH",
                Decimal("19.50"),
                discount=Decimal("1.00"),
                tax=Decimal("0.50"),
            )
        assert exc_info.value.expected == "19.00"
        assert _order_count(session) == 0

    def test_total_mismatch_writes_nothing(self, session, order_service, cashier, coffee, stock_of, make_line):
        with pytest.raises(OrderTotalMismatchError):
            order_service.place_order(cashier.id, [make_line(coffee, 2)], "CASH", Decimal("1.00"))
        assert _order_count(session) == 0
        assert stock_of(coffee.id) == 100

    def test_trusted_totals_when_verification_disabled(
        self, session, stock_ledger, cashier, coffee, make_line, deterministic_clock
    ):
        service = OrderService(
            session,
            stock_ledger=stock_ledger,
            totals_policy=TotalsPolicy(verify=False),
            clock=deterministic_clock,
        )
        placement = service.place_order(cashier.id, [make_line(coffee, 2)], "CARD", Decimal("1.00"))
        assert placement.total_amount == Decimal("1.00")

    def test_unknown_cashier(self, session, order_service, coffee, make_line):
        with pytest.raises(UserNotFoundError) as exc_info:
            order_service.place_order(999_999, [make_line(coffee, 1)], "CASH", Decimal("10.00"))
        assert "log out and log back in" in str(exc_info.value)
        assert _order_count(session) == 0

    def test_unknown_product(self, session, order_service, cashier):
        line = OrderLineInput(424_242, 1, Decimal("1.00"), Decimal("1.00"))
        with pytest.raises(InvalidOrderLineError) as exc_info:
            order_service.place_order(cashier.id, [line], "CASH", Decimal("1.00"))
        assert exc_info.value.product_id == 424_242
        assert _order_count(session) == 0

    def test_oversell_disallowed_rolls_back_with_caller(
        self, session, cashier, create_product, make_line, stock_of, deterministic_clock
    ):
        tea = create_product("Tea", "2.00", quantity=1)
        service = OrderService(
            session,
            stock_ledger=StockLedger(session, StockPolicy(allow_negative_stock=False)),
            clock=deterministic_clock,
        )

        savepoint = session.begin_nested()
        with pytest.raises(InsufficientStockError):
            service.place_order(cashier.id, [make_line(tea, 2)], "CASH", Decimal("4.00"))
        savepoint.rollback()

        assert _order_count(session) == 0
        assert stock_of(tea.id) == 1
