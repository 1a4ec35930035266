"""
OrderSelector / RefundSelector / ReceiptSelector read paths.

Covers:
- Order view: per-line refunded and available quantities, refund
  summaries newest first, total refunded, cashier
- Refund views: cashier, order summary, items with product
- Receipt data in the store timezone
- Not-found behaviour
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from pos_kernel.domain.policies import StoreInfo
from pos_kernel.domain.refunds import RefundLineRequest
from pos_kernel.exceptions import OrderNotFoundError, RefundNotFoundError
from pos_kernel.models import OrderStatus, UserRole
from pos_kernel.selectors.order_selector import OrderSelector
from pos_kernel.selectors.receipt_selector import ReceiptSelector
from pos_kernel.selectors.refund_selector import RefundSelector


@pytest.fixture
def refunded_sale(place_order, order_lines, refund_service, deterministic_clock, cashier, coffee, bagel):
    placement = place_order([(coffee, 3), (bagel, 2)], discount="2.00", tax="1.00")
    coffee_line, bagel_line = order_lines(placement.order_id)

    deterministic_clock.advance(minutes=5)
    first = refund_service.create_refund(
        placement.order_id, cashier.id, [RefundLineRequest(coffee_line.id, 1)], reason="Spilled"
    )
    deterministic_clock.advance(minutes=5)
    second = refund_service.create_refund(
        placement.order_id, cashier.id, [RefundLineRequest(bagel_line.id, 2)]
    )
    return placement, first, second, coffee_line, bagel_line


class TestOrderSelector:
    def test_order_view(self, session, refunded_sale, cashier, coffee):
        placement, first, second, coffee_line, bagel_line = refunded_sale

        view = OrderSelector(session).get_order(placement.order_id)

        assert view.status is OrderStatus.PARTIALLY_REFUNDED
        assert view.user.name == cashier.name
        assert view.user.role is UserRole.CASHIER
        assert view.total_amount == Decimal("38.00")

        by_id = {line.id: line for line in view.items}
        assert (by_id[coffee_line.id].refunded_quantity, by_id[coffee_line.id].available_quantity) == (1, 2)
        assert (by_id[bagel_line.id].refunded_quantity, by_id[bagel_line.id].available_quantity) == (2, 0)
        assert by_id[coffee_line.id].product.name == coffee.name

        assert [r.id for r in view.refunds] == [second.refund_id, first.refund_id]
        assert view.total_refunded == Decimal("20.00")

    def test_order_without_refunds(self, session, place_order, coffee):
        placement = place_order([(coffee, 1)])
        view = OrderSelector(session).get_order(placement.order_id)
        assert view.refunds == ()
        assert view.total_refunded == Decimal("0.00")
        assert view.items[0].available_quantity == 1

    def test_not_found(self, session):
        with pytest.raises(OrderNotFoundError):
            OrderSelector(session).get_order(123_456)


class TestRefundSelector:
    def test_get_refund(self, session, refunded_sale, cashier, coffee):
        placement, first, _, coffee_line, _ = refunded_sale

        view = RefundSelector(session).get_refund(first.refund_id)

        assert view.order_id == placement.order_id
        assert view.reason == "Spilled"
        assert view.user.email == cashier.email
        assert view.order.total_amount == Decimal("38.00")
        assert [(i.order_item_id, i.quantity, i.product.name) for i in view.items] == [
            (coffee_line.id, 1, coffee.name)
        ]

    def test_list_newest_first(self, session, refunded_sale):
        _, first, second, _, _ = refunded_sale
        ids = [r.id for r in RefundSelector(session).list_refunds()]
        assert ids == [second.refund_id, first.refund_id]

    def test_refunds_for_order(self, session, refunded_sale):
        placement, first, second, _, _ = refunded_sale
        ids = [r.id for r in RefundSelector(session).refunds_for_order(placement.order_id)]
        assert ids == [second.refund_id, first.refund_id]

    def test_refunds_for_unknown_order_is_empty(self, session):
        assert RefundSelector(session).refunds_for_order(999_999) == []

    def test_not_found(self, session):
        with pytest.raises(RefundNotFoundError):
            RefundSelector(session).get_refund(999_999)


class TestReceiptSelector:
    def test_receipt_data(self, session, place_order, deterministic_clock, cashier, coffee, bagel):
        deterministic_clock.set_time(datetime(2024, 7, 1, 23, 30, tzinfo=UTC))
        placement = place_order([(coffee, 2), (bagel, 1)], discount="5.00", tax="2.00", payment_method="CARD")
        store = StoreInfo(name="Corner Shop", address="1 High Street", timezone="Europe/London")

        receipt = ReceiptSelector(session).receipt_for_order(placement.order_id, store)

        assert receipt.store_name == "Corner Shop"
        assert receipt.address == "1 High Street"
        assert receipt.date == "2024-07-02 00:30:00"
        assert receipt.cashier == cashier.name
        assert [(l.name, l.quantity, l.subtotal) for l in receipt.items] == [
            ("Coffee", 2, Decimal("20.00")),
            ("Bagel", 1, Decimal("5.00")),
        ]
        assert receipt.subtotal == Decimal("25.00")
        assert receipt.discount == Decimal("5.00")
        assert receipt.tax == Decimal("2.00")
        assert receipt.total == Decimal("20.00")
        assert receipt.payment_method == "CARD"

    def test_not_found(self, session):
        with pytest.raises(OrderNotFoundError):
            ReceiptSelector(session).receipt_for_order(424_242)
