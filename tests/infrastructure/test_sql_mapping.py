"""Tests for row mapping and query building of the SQL stores."""

from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from backoffice.domain.entities import Payout
from backoffice.domain.state_machines import OrderStatus, PaymentStatus
from backoffice.domain.value_objects import Money
from backoffice.infrastructure.models import OrderModel
from backoffice.infrastructure.repositories import OrderQuery
from backoffice.infrastructure.sql_store import (
    apply_order_query,
    order_from_model,
    order_to_model,
    payout_from_model,
    payout_to_model,
)


def test_order_survives_mapping(make_order, now) -> None:
    order = make_order(
        ("seller-a", 2, 1000),
        ("seller-b", 1, 2500),
        order_status=OrderStatus.DELIVERED,
        payment_status=PaymentStatus.PAID,
        delivered_at=now,
        shipping_cents=99,
    )

    model = order_to_model(order)
    restored = order_from_model(model)

    assert [item.position for item in model.items] == [0, 1]
    assert model.shipping_address["city"] == "Bengaluru"
    assert restored.items == order.items
    assert restored.total_amount == Money(4599)
    assert restored.delivered_at == now
    assert restored.version == order.version


def test_payout_survives_mapping(bank_details, now) -> None:
    payout = Payout.request("seller-a", Money(1500), bank_details, now=now)

    restored = payout_from_model(payout_to_model(payout))

    assert restored.bank_details == bank_details
    assert restored.amount == Money(1500)
    assert restored.requested_at == now


def test_order_query_filters(now) -> None:
    query = OrderQuery(
        payment_status=PaymentStatus.PAID,
        created_from=now - timedelta(days=30),
        created_to=now,
        search="ORD",
    )

    stmt = apply_order_query(select(OrderModel.id), query)
    sql = str(stmt.compile(dialect=postgresql.dialect()))

    assert "orders.payment_status =" in sql
    assert "orders.created_at >=" in sql
    assert "orders.created_at <" in sql
    assert "ILIKE" in sql
