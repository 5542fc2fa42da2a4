"""PostgreSQL-backed order and payout stores."""

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime
from typing import Any

from sqlalchemy import Select, and_, desc, distinct, func, or_, select, update

from backoffice.domain.earnings import SellerOrderSlice
from backoffice.domain.entities import LineItem, Order, Payout
from backoffice.domain.state_machines import OrderStatus, PaymentStatus, PayoutStatus
from backoffice.domain.value_objects import Address, BankDetails, Money
from backoffice.infrastructure.database import Database
from backoffice.infrastructure.models import OrderItemModel, OrderModel, PayoutModel
from backoffice.infrastructure.repositories import OrderQuery, SellerRevenue, WriteGuard


# ============================================================================
# Mapping
# ============================================================================


def _address_from_json(data: dict[str, Any] | None) -> Address | None:
    return Address(**data) if data else None


def order_to_model(order: Order) -> OrderModel:
    """Build a new row for an order created by checkout."""
    return OrderModel(
        id=order.id,
        order_number=order.order_number,
        order_status=order.order_status.value,
        payment_status=order.payment_status.value,
        version=order.version,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        shipping_address=asdict(order.shipping_address),
        billing_address=asdict(order.billing_address) if order.billing_address else None,
        total_cents=order.total_amount.amount_cents,
        currency=order.currency,
        tracking_number=order.tracking_number,
        carrier=order.carrier,
        notes=order.notes,
        cancellation_reason=order.cancellation_reason,
        created_at=order.created_at,
        updated_at=order.updated_at,
        confirmed_at=order.confirmed_at,
        shipped_at=order.shipped_at,
        delivered_at=order.delivered_at,
        cancelled_at=order.cancelled_at,
        items=[
            OrderItemModel(
                position=position,
                product_id=item.product_id,
                seller_id=item.seller_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price_cents=item.unit_price.amount_cents,
                line_total_cents=item.line_total.amount_cents,
                currency=item.line_total.currency,
            )
            for position, item in enumerate(order.items)
        ],
    )


def order_from_model(model: OrderModel) -> Order:
    items = tuple(
        LineItem(
            product_id=item.product_id,
            seller_id=item.seller_id,
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=Money(item.unit_price_cents, item.currency),
            line_total=Money(item.line_total_cents, item.currency),
        )
        for item in model.items
    )
    return Order(
        id=model.id,
        order_number=model.order_number,
        items=items,
        shipping_address=_address_from_json(model.shipping_address),
        billing_address=_address_from_json(model.billing_address),
        total_amount=Money(model.total_cents, model.currency),
        customer_name=model.customer_name,
        customer_email=model.customer_email,
        order_status=OrderStatus(model.order_status),
        payment_status=PaymentStatus(model.payment_status),
        tracking_number=model.tracking_number,
        carrier=model.carrier,
        notes=model.notes,
        cancellation_reason=model.cancellation_reason,
        confirmed_at=model.confirmed_at,
        shipped_at=model.shipped_at,
        delivered_at=model.delivered_at,
        cancelled_at=model.cancelled_at,
        version=model.version,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _order_mutable_columns(order: Order) -> dict[str, Any]:
    # Line items and totals never change after checkout
    return {
        "order_status": order.order_status.value,
        "payment_status": order.payment_status.value,
        "version": order.version,
        "tracking_number": order.tracking_number,
        "carrier": order.carrier,
        "notes": order.notes,
        "cancellation_reason": order.cancellation_reason,
        "updated_at": order.updated_at,
        "confirmed_at": order.confirmed_at,
        "shipped_at": order.shipped_at,
        "delivered_at": order.delivered_at,
        "cancelled_at": order.cancelled_at,
    }


def payout_to_model(payout: Payout) -> PayoutModel:
    return PayoutModel(
        id=payout.id,
        seller_id=payout.seller_id,
        amount_cents=payout.amount.amount_cents,
        currency=payout.amount.currency,
        status=payout.status.value,
        bank_details=asdict(payout.bank_details),
        notes=payout.notes,
        version=payout.version,
        requested_at=payout.requested_at,
        processed_at=payout.processed_at,
        cancelled_at=payout.cancelled_at,
        created_at=payout.created_at,
        updated_at=payout.updated_at,
    )


def payout_from_model(model: PayoutModel) -> Payout:
    return Payout(
        id=model.id,
        seller_id=model.seller_id,
        amount=Money(model.amount_cents, model.currency),
        bank_details=BankDetails(**model.bank_details),
        status=PayoutStatus(model.status),
        notes=model.notes,
        requested_at=model.requested_at,
        processed_at=model.processed_at,
        cancelled_at=model.cancelled_at,
        version=model.version,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def apply_order_query(stmt: Select, query: OrderQuery) -> Select:
    """Add the non-seller filters of ``query`` to a statement over orders."""
    if query.order_status is not None:
        stmt = stmt.where(OrderModel.order_status == query.order_status.value)
    if query.payment_status is not None:
        stmt = stmt.where(OrderModel.payment_status == query.payment_status.value)
    if query.created_from is not None:
        stmt = stmt.where(OrderModel.created_at >= query.created_from)
    if query.created_to is not None:
        stmt = stmt.where(OrderModel.created_at < query.created_to)
    if query.search:
        pattern = f"%{query.search}%"
        stmt = stmt.where(
            or_(
                OrderModel.order_number.ilike(pattern),
                OrderModel.customer_name.ilike(pattern),
                OrderModel.customer_email.ilike(pattern),
            )
        )
    return stmt


# ============================================================================
# Orders
# ============================================================================


class SqlOrderStore:
    """Order store over the ``orders`` and ``order_items`` tables."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, order_id: str) -> Order | None:
        async with self._db.session() as session:
            model = await session.get(OrderModel, order_id)
            return order_from_model(model) if model is not None else None

    async def add(self, order: Order) -> None:
        async with self._db.session() as session:
            session.add(order_to_model(order))
            await session.flush()

    async def compare_and_swap(self, order: Order, expected: WriteGuard) -> bool:
        stmt = (
            update(OrderModel)
            .where(
                and_(
                    OrderModel.id == order.id,
                    OrderModel.version == expected.version,
                    OrderModel.order_status == expected.order_status.value,
                    OrderModel.payment_status == expected.payment_status.value,
                )
            )
            .values(**_order_mutable_columns(order))
            .execution_options(synchronize_session=False)
        )
        async with self._db.session() as session:
            result = await session.execute(stmt)
            return result.rowcount == 1

    async def seller_slices(
        self, seller_id: str, query: OrderQuery | None = None
    ) -> list[SellerOrderSlice]:
        """Seller subtotals per order from one grouped query."""
        query = query or OrderQuery()
        stmt = (
            select(
                OrderModel.id,
                OrderModel.order_number,
                OrderModel.order_status,
                OrderModel.payment_status,
                OrderModel.created_at,
                OrderModel.delivered_at,
                OrderModel.currency,
                func.coalesce(OrderModel.customer_name, OrderModel.shipping_address["name"].astext),
                OrderModel.customer_email,
                func.sum(OrderItemModel.line_total_cents),
                func.array_agg(OrderItemModel.product_name),
            )
            .join(OrderItemModel, OrderItemModel.order_id == OrderModel.id)
            .where(OrderItemModel.seller_id == seller_id)
            .group_by(OrderModel.id)
            .order_by(OrderModel.created_at.desc())
        )
        stmt = apply_order_query(stmt, query)
        async with self._db.session() as session:
            rows = (await session.execute(stmt)).all()
        return [
            SellerOrderSlice(
                order_id=order_id,
                order_number=order_number,
                order_status=OrderStatus(order_status),
                payment_status=PaymentStatus(payment_status),
                created_at=created_at,
                delivered_at=delivered_at,
                seller_subtotal=Money(int(subtotal), currency),
                customer_name=customer_name,
                customer_email=customer_email,
                product_names=tuple(product_names or ()),
            )
            for (
                order_id,
                order_number,
                order_status,
                payment_status,
                created_at,
                delivered_at,
                currency,
                customer_name,
                customer_email,
                subtotal,
                product_names,
            ) in rows
        ]

    async def seller_revenue(self, query: OrderQuery | None = None) -> list[SellerRevenue]:
        query = query or OrderQuery()
        revenue = func.sum(OrderItemModel.line_total_cents).label("revenue")
        stmt = (
            select(
                OrderItemModel.seller_id,
                revenue,
                func.count(distinct(OrderItemModel.order_id)),
            )
            .join(OrderModel, OrderItemModel.order_id == OrderModel.id)
            .where(OrderModel.payment_status == PaymentStatus.PAID.value)
            .group_by(OrderItemModel.seller_id)
            .order_by(desc(revenue), OrderItemModel.seller_id)
        )
        if query.seller_id is not None:
            stmt = stmt.where(OrderItemModel.seller_id == query.seller_id)
        stmt = apply_order_query(stmt, query)
        async with self._db.session() as session:
            rows = (await session.execute(stmt)).all()
        return [
            SellerRevenue(seller_id=seller_id, revenue_cents=int(cents), order_count=count)
            for seller_id, cents, count in rows
        ]


# ============================================================================
# Payouts
# ============================================================================


class SqlPayoutStore:
    """Payout store over the ``payouts`` table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, payout_id: str) -> Payout | None:
        async with self._db.session() as session:
            model = await session.get(PayoutModel, payout_id)
            return payout_from_model(model) if model is not None else None

    async def add(self, payout: Payout) -> None:
        async with self._db.session() as session:
            session.add(payout_to_model(payout))
            await session.flush()

    async def compare_and_swap(self, payout: Payout, expected_version: int) -> bool:
        stmt = (
            update(PayoutModel)
            .where(PayoutModel.id == payout.id, PayoutModel.version == expected_version)
            .values(
                status=payout.status.value,
                notes=payout.notes,
                version=payout.version,
                processed_at=payout.processed_at,
                cancelled_at=payout.cancelled_at,
                updated_at=payout.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._db.session() as session:
            result = await session.execute(stmt)
            return result.rowcount == 1

    @staticmethod
    def _filtered(stmt: Select, seller_id: str | None, status: PayoutStatus | None) -> Select:
        if seller_id is not None:
            stmt = stmt.where(PayoutModel.seller_id == seller_id)
        if status is not None:
            stmt = stmt.where(PayoutModel.status == status.value)
        return stmt

    async def find(
        self,
        seller_id: str | None = None,
        status: PayoutStatus | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Payout]:
        stmt = self._filtered(select(PayoutModel), seller_id, status)
        stmt = stmt.order_by(PayoutModel.requested_at.desc()).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._db.session() as session:
            models = (await session.execute(stmt)).scalars().all()
        return [payout_from_model(model) for model in models]

    async def count(self, seller_id: str | None = None, status: PayoutStatus | None = None) -> int:
        stmt = self._filtered(select(func.count(PayoutModel.id)), seller_id, status)
        async with self._db.session() as session:
            return (await session.execute(stmt)).scalar_one()

    async def sum_amounts(
        self,
        statuses: Iterable[PayoutStatus],
        seller_id: str | None = None,
        requested_from: datetime | None = None,
        requested_to: datetime | None = None,
    ) -> int:
        stmt = select(func.coalesce(func.sum(PayoutModel.amount_cents), 0)).where(
            PayoutModel.status.in_([status.value for status in statuses])
        )
        if seller_id is not None:
            stmt = stmt.where(PayoutModel.seller_id == seller_id)
        if requested_from is not None:
            stmt = stmt.where(PayoutModel.requested_at >= requested_from)
        if requested_to is not None:
            stmt = stmt.where(PayoutModel.requested_at < requested_to)
        async with self._db.session() as session:
            return int((await session.execute(stmt)).scalar_one())

    @asynccontextmanager
    async def seller_guard(self, seller_id: str) -> AsyncIterator[None]:
        """Hold a transaction-scoped advisory lock for ``seller_id``.

        Store calls made inside the block join its transaction, so the
        balance read and the payout insert commit together.
        """
        async with self._db.session() as session:
            if self._db.dialect == "postgresql":
                await session.execute(
                    select(func.pg_advisory_xact_lock(func.hashtext(f"payout:{seller_id}")))
                )
            yield
