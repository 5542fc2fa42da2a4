"""In-memory order and payout stores.

Used by tests and by the default ``memory`` storage backend. Stored
aggregates are copied on every read and write so callers never alias
the stored state, which keeps compare-and-swap semantics honest.
"""

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from copy import deepcopy
from datetime import datetime

from backoffice.domain.earnings import SellerOrderSlice
from backoffice.domain.entities import Order, Payout
from backoffice.domain.state_machines import PaymentStatus, PayoutStatus
from backoffice.infrastructure.repositories import OrderQuery, SellerRevenue, WriteGuard


# ============================================================================
# Orders
# ============================================================================


class InMemoryOrderStore:
    """Dict-backed order store."""

    def __init__(self) -> None:
        self._orders: dict[str, Order] = {}
        self._lock = asyncio.Lock()

    async def get(self, order_id: str) -> Order | None:
        order = self._orders.get(order_id)
        return deepcopy(order) if order is not None else None

    async def add(self, order: Order) -> None:
        """Insert an order as checkout would."""
        if order.id in self._orders:
            raise ValueError(f"Order {order.id} already exists")
        stored = deepcopy(order)
        stored.collect_events()
        self._orders[order.id] = stored

    async def compare_and_swap(self, order: Order, expected: WriteGuard) -> bool:
        async with self._lock:
            current = self._orders.get(order.id)
            if current is None or WriteGuard.of(current) != expected:
                return False
            stored = deepcopy(order)
            stored.collect_events()
            self._orders[order.id] = stored
            return True

    async def seller_slices(
        self, seller_id: str, query: OrderQuery | None = None
    ) -> list[SellerOrderSlice]:
        query = query or OrderQuery()
        slices = [
            SellerOrderSlice.from_order(order, seller_id)
            for order in self._orders.values()
            if order.has_seller(seller_id) and query.matches(order)
        ]
        slices.sort(key=lambda s: s.created_at, reverse=True)
        return slices

    async def seller_revenue(self, query: OrderQuery | None = None) -> list[SellerRevenue]:
        query = query or OrderQuery()
        revenue: dict[str, int] = defaultdict(int)
        orders: dict[str, set[str]] = defaultdict(set)
        for order in self._orders.values():
            if order.payment_status != PaymentStatus.PAID or not query.matches(order):
                continue
            for item in order.items:
                revenue[item.seller_id] += item.line_total.amount_cents
                orders[item.seller_id].add(order.id)
        rows = [
            SellerRevenue(seller_id=seller_id, revenue_cents=cents, order_count=len(orders[seller_id]))
            for seller_id, cents in revenue.items()
        ]
        rows.sort(key=lambda row: (-row.revenue_cents, row.seller_id))
        return rows


# ============================================================================
# Payouts
# ============================================================================


class InMemoryPayoutStore:
    """Dict-backed payout store with per-seller admission locks."""

    def __init__(self) -> None:
        self._payouts: dict[str, Payout] = {}
        self._lock = asyncio.Lock()
        self._seller_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def get(self, payout_id: str) -> Payout | None:
        payout = self._payouts.get(payout_id)
        return deepcopy(payout) if payout is not None else None

    async def add(self, payout: Payout) -> None:
        if payout.id in self._payouts:
            raise ValueError(f"Payout {payout.id} already exists")
        stored = deepcopy(payout)
        stored.collect_events()
        self._payouts[payout.id] = stored

    async def compare_and_swap(self, payout: Payout, expected_version: int) -> bool:
        async with self._lock:
            current = self._payouts.get(payout.id)
            if current is None or current.version != expected_version:
                return False
            stored = deepcopy(payout)
            stored.collect_events()
            self._payouts[payout.id] = stored
            return True

    def _matching(self, seller_id: str | None, status: PayoutStatus | None) -> list[Payout]:
        return [
            payout
            for payout in self._payouts.values()
            if (seller_id is None or payout.seller_id == seller_id)
            and (status is None or payout.status == status)
        ]

    async def find(
        self,
        seller_id: str | None = None,
        status: PayoutStatus | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Payout]:
        payouts = sorted(self._matching(seller_id, status), key=lambda p: p.requested_at, reverse=True)
        end = None if limit is None else offset + limit
        return [deepcopy(payout) for payout in payouts[offset:end]]

    async def count(self, seller_id: str | None = None, status: PayoutStatus | None = None) -> int:
        return len(self._matching(seller_id, status))

    async def sum_amounts(
        self,
        statuses: Iterable[PayoutStatus],
        seller_id: str | None = None,
        requested_from: datetime | None = None,
        requested_to: datetime | None = None,
    ) -> int:
        wanted = set(statuses)
        return sum(
            payout.amount.amount_cents
            for payout in self._payouts.values()
            if payout.status in wanted
            and (seller_id is None or payout.seller_id == seller_id)
            and (requested_from is None or payout.requested_at >= requested_from)
            and (requested_to is None or payout.requested_at < requested_to)
        )

    @asynccontextmanager
    async def seller_guard(self, seller_id: str) -> AsyncIterator[None]:
        async with self._seller_locks[seller_id]:
            yield
