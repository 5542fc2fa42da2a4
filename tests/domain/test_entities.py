"""Tests for domain entities."""

from datetime import timedelta

import pytest

from backoffice.domain import Actor, LineItem, Money, Order, OrderStatus, PaymentStatus, Payout, PayoutStatus
from backoffice.domain.events import OrderStatusChanged, PaymentStatusChanged, PayoutRequested
from backoffice.domain.exceptions import (
    CancellationReasonRequiredError,
    InvalidLineItemError,
    InvalidStateTransitionError,
    PayoutNotPendingError,
    UnauthorizedOrderAccessError,
)

ADMIN = Actor.admin()


class TestLineItem:
    def test_line_total_is_fixed_at_creation(self) -> None:
        item = LineItem.create("prod-1", "seller-a", quantity=3, unit_price=Money(2500))
        assert item.line_total == Money(7500)

    def test_non_positive_quantity_is_rejected(self) -> None:
        with pytest.raises(InvalidLineItemError):
            LineItem.create("prod-1", "seller-a", quantity=0, unit_price=Money(2500))


class TestOrderCreate:
    def test_total_includes_shipping_and_tax(self, address) -> None:
        items = [
            LineItem.create("prod-1", "seller-a", quantity=2, unit_price=Money(10000)),
            LineItem.create("prod-2", "seller-b", quantity=1, unit_price=Money(30000)),
        ]
        order = Order.create("ORD-1", items, address, shipping_cents=4000, tax_cents=1000)

        assert order.total_amount == Money(55000)
        assert order.order_status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.seller_ids == {"seller-a", "seller-b"}
        assert order.version == 1

    def test_order_without_items_is_rejected(self, address) -> None:
        with pytest.raises(ValueError):
            Order.create("ORD-1", [], address)


class TestOrderAuthorization:
    def test_seller_with_items_is_authorized(self, make_order) -> None:
        order = make_order(("seller-a", 1, 1000), ("seller-b", 1, 1000))
        order.authorize(Actor.seller("seller-b"))

    def test_seller_without_items_is_rejected(self, make_order) -> None:
        order = make_order(("seller-a", 1, 1000))
        with pytest.raises(UnauthorizedOrderAccessError) as exc_info:
            order.authorize(Actor.seller("seller-z"))
        assert exc_info.value.details == {"order_id": order.id, "seller_id": "seller-z"}

    def test_admin_is_unrestricted(self, make_order) -> None:
        order = make_order(("seller-a", 1, 1000))
        order.authorize(ADMIN)


class TestOrderTransitions:
    """Tests for Order.transition_to side effects."""

    def test_confirm_stamps_confirmed_at_once(self, make_order, now) -> None:
        order = make_order(("seller-a", 1, 1000))
        order.transition_to(OrderStatus.CONFIRMED, ADMIN, now=now)
        assert order.confirmed_at == now

        with pytest.raises(InvalidStateTransitionError):
            order.transition_to(OrderStatus.CONFIRMED, ADMIN, now=now + timedelta(hours=1))
        assert order.confirmed_at == now

    def test_every_write_bumps_the_version(self, make_order, now) -> None:
        order = make_order(("seller-a", 1, 1000))
        order.transition_to(OrderStatus.CONFIRMED, ADMIN, now=now)
        order.transition_to(OrderStatus.PROCESSING, ADMIN, now=now)
        assert order.version == 3
        assert order.updated_at == now

    def test_delivering_unpaid_order_marks_it_paid(self, make_order, now) -> None:
        order = make_order(("seller-a", 1, 1000), order_status=OrderStatus.SHIPPED)

        transition = order.transition_to(OrderStatus.DELIVERED, ADMIN, now=now)

        assert transition.from_state == OrderStatus.SHIPPED
        assert order.order_status == OrderStatus.DELIVERED
        assert order.payment_status == PaymentStatus.PAID
        assert order.delivered_at == now

        events = order.collect_events()
        assert [type(e) for e in events] == [PaymentStatusChanged, OrderStatusChanged]
        assert events[0].implicit is True

    def test_delivery_never_resurrects_a_refunded_payment(self, make_order, now) -> None:
        order = make_order(
            ("seller-a", 1, 1000),
            order_status=OrderStatus.SHIPPED,
            payment_status=PaymentStatus.REFUNDED,
        )
        order.transition_to(OrderStatus.DELIVERED, ADMIN, now=now)
        assert order.payment_status == PaymentStatus.REFUNDED
        assert order.delivered_at == now

    def test_ship_stores_tracking_and_notes(self, make_order, now) -> None:
        order = make_order(("seller-a", 1, 1000), order_status=OrderStatus.PROCESSING)
        order.transition_to(
            OrderStatus.SHIPPED,
            Actor.seller("seller-a"),
            tracking_number="TRK123",
            notes="Left via BlueDart",
            now=now,
        )
        assert order.shipped_at == now
        assert order.tracking_number == "TRK123"
        assert order.notes == "Left via BlueDart"

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_cancel_requires_a_reason(self, make_order, reason) -> None:
        order = make_order(("seller-a", 1, 1000))
        with pytest.raises(CancellationReasonRequiredError):
            order.transition_to(OrderStatus.CANCELLED, ADMIN, reason=reason)
        assert order.order_status == OrderStatus.PENDING
        assert order.version == 1

    def test_cancel_stores_reason_and_timestamp(self, make_order, now) -> None:
        order = make_order(("seller-a", 1, 1000), order_status=OrderStatus.CONFIRMED)
        order.transition_to(OrderStatus.CANCELLED, ADMIN, reason="  Out of stock ", now=now)

        assert order.cancelled_at == now
        assert order.cancellation_reason == "Out of stock"
        assert order.order_status.is_terminal()

    def test_shipped_order_cannot_be_cancelled(self, make_order) -> None:
        order = make_order(("seller-a", 1, 1000), order_status=OrderStatus.SHIPPED)
        with pytest.raises(InvalidStateTransitionError):
            order.transition_to(OrderStatus.CANCELLED, ADMIN, reason="Too late")

    def test_payment_transition_is_validated(self, make_order) -> None:
        order = make_order(("seller-a", 1, 1000), payment_status=PaymentStatus.PAID)
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            order.transition_payment_to(PaymentStatus.PENDING, ADMIN)
        assert exc_info.value.details["entity_type"] == "Payment"

    def test_update_tracking_keeps_status(self, make_order, now) -> None:
        order = make_order(("seller-a", 1, 1000), order_status=OrderStatus.SHIPPED)
        order.update_tracking("TRK999", "Delhivery", ADMIN, now=now)
        assert order.order_status == OrderStatus.SHIPPED
        assert (order.tracking_number, order.carrier) == ("TRK999", "Delhivery")
        assert order.version == 2


class TestPayout:
    def test_request_creates_pending_payout(self, bank_details, now) -> None:
        payout = Payout.request("seller-a", Money(10000), bank_details, now=now)

        assert payout.status == PayoutStatus.PENDING
        assert payout.requested_at == now
        events = payout.collect_events()
        assert isinstance(events[0], PayoutRequested)
        assert events[0].to_dict()["payload"]["amount_cents"] == 10000

    def test_cancel_only_while_pending(self, bank_details, now) -> None:
        payout = Payout.request("seller-a", Money(10000), bank_details, now=now)
        payout.transition_to(PayoutStatus.PROCESSING, ADMIN, now=now)

        with pytest.raises(PayoutNotPendingError) as exc_info:
            payout.cancel(Actor.seller("seller-a"), now=now)
        assert exc_info.value.message.startswith("Only pending payouts can be cancelled")

    def test_cancel_stamps_cancelled_at(self, bank_details, now) -> None:
        payout = Payout.request("seller-a", Money(10000), bank_details, now=now)
        payout.cancel(Actor.seller("seller-a"), now=now)
        assert payout.status == PayoutStatus.CANCELLED
        assert payout.cancelled_at == now
        assert payout.processed_at is None

    def test_completion_stamps_processed_at(self, bank_details, now) -> None:
        payout = Payout.request("seller-a", Money(10000), bank_details, now=now)
        payout.transition_to(PayoutStatus.PROCESSING, ADMIN, now=now)
        payout.transition_to(PayoutStatus.COMPLETED, ADMIN, notes="UTR 4411", now=now + timedelta(days=1))
        assert payout.processed_at == now + timedelta(days=1)
        assert payout.notes == "UTR 4411"

    def test_completed_payout_is_terminal(self, bank_details, now) -> None:
        payout = Payout.request("seller-a", Money(10000), bank_details, now=now)
        payout.transition_to(PayoutStatus.COMPLETED, ADMIN, now=now)
        with pytest.raises(InvalidStateTransitionError):
            payout.transition_to(PayoutStatus.FAILED, ADMIN, now=now)
