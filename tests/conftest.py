"""Shared fixtures for back office tests."""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from backoffice.application.earnings_service import EarningsService
from backoffice.application.finance_service import FinanceReporter
from backoffice.application.order_service import OrderLifecycleService
from backoffice.application.payout_service import PayoutLedger
from backoffice.domain.base import utcnow
from backoffice.domain.entities import LineItem, Order
from backoffice.domain.state_machines import OrderStatus, PaymentStatus
from backoffice.domain.value_objects import Address, BankDetails, Money
from backoffice.infrastructure.memory_store import InMemoryOrderStore, InMemoryPayoutStore

NOW = utcnow().replace(microsecond=0)
FEE_RATE = Decimal("0.05")
COMMISSION_RATE = Decimal("0.10")


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def address() -> Address:
    return Address(
        name="Asha Rao",
        line1="12 MG Road",
        city="Bengaluru",
        state="KA",
        postal_code="560001",
        country="IN",
    )


@pytest.fixture
def bank_details() -> BankDetails:
    return BankDetails(
        account_number="123456789012",
        ifsc_code="HDFC0001234",
        account_holder_name="Seller A Traders",
        bank_name="HDFC Bank",
    )


@pytest.fixture
def make_order(address):
    """Factory for orders built from ``(seller_id, quantity, unit_price_paise)`` tuples."""

    def _make(
        *items: tuple[str, int, int],
        order_number: str | None = None,
        order_status: OrderStatus = OrderStatus.PENDING,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        created_at: datetime | None = None,
        delivered_at: datetime | None = None,
        **kwargs,
    ) -> Order:
        created_at = created_at or NOW - timedelta(days=1)
        line_items = [
            LineItem.create(
                product_id=f"prod-{index}",
                seller_id=seller_id,
                quantity=quantity,
                unit_price=Money(unit_price),
                product_name=f"Product {index}",
            )
            for index, (seller_id, quantity, unit_price) in enumerate(items, start=1)
        ]
        return Order.create(
            order_number or f"ORD-{uuid4().hex[:8].upper()}",
            line_items,
            address,
            order_status=order_status,
            payment_status=payment_status,
            delivered_at=delivered_at,
            created_at=created_at,
            updated_at=created_at,
            customer_name="Asha Rao",
            customer_email="asha@example.com",
            **kwargs,
        )

    return _make


@pytest.fixture
def completed_order(make_order):
    """Factory for a paid order delivered past the hold window."""

    def _make(seller_id: str, subtotal: int, **kwargs) -> Order:
        return make_order(
            (seller_id, 1, subtotal),
            order_status=OrderStatus.DELIVERED,
            payment_status=PaymentStatus.PAID,
            created_at=kwargs.pop("created_at", NOW - timedelta(days=10)),
            delivered_at=kwargs.pop("delivered_at", NOW - timedelta(days=8)),
            **kwargs,
        )

    return _make


# ============================================================================
# Stores and Services
# ============================================================================


@pytest.fixture
def order_store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def payout_store() -> InMemoryPayoutStore:
    return InMemoryPayoutStore()


@pytest.fixture
def order_service(order_store) -> OrderLifecycleService:
    return OrderLifecycleService(order_store, max_retries=3, clock=lambda: NOW)


@pytest.fixture
def earnings_service(order_store, payout_store) -> EarningsService:
    return EarningsService(
        order_store,
        payout_store,
        fee_rate=FEE_RATE,
        hold_duration_days=7,
        clock=lambda: NOW,
    )


@pytest.fixture
def ledger(payout_store, earnings_service) -> PayoutLedger:
    return PayoutLedger(payout_store, earnings_service, clock=lambda: NOW)


@pytest.fixture
def finance_reporter(order_store, payout_store) -> FinanceReporter:
    return FinanceReporter(order_store, payout_store, commission_rate=COMMISSION_RATE, clock=lambda: NOW)
