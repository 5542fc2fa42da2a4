"""Store interfaces shared by the in-memory and SQL backends.

Services depend on these protocols only. Both backends honour the same
contract: reads return detached copies, writes are conditional on the
version that was read, and aggregate queries are answered in one pass.
"""

from collections.abc import Iterable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Self

from backoffice.domain.earnings import SellerOrderSlice
from backoffice.domain.entities import Order, Payout
from backoffice.domain.state_machines import OrderStatus, PaymentStatus, PayoutStatus


class StoreUnavailableError(Exception):
    """Raised when the backing store cannot be reached or fails a query."""

    def __init__(self, message: str = "Store unavailable") -> None:
        super().__init__(message)
        self.message = message


# ============================================================================
# Query Types
# ============================================================================


@dataclass(frozen=True)
class OrderQuery:
    """Filter for order reads.

    Attributes:
        seller_id: Only orders with at least one item from this seller.
        order_status: Only orders in this fulfillment status.
        payment_status: Only orders in this payment status.
        created_from: Inclusive lower bound on ``created_at``.
        created_to: Exclusive upper bound on ``created_at``.
        search: Case-insensitive match on order number or customer.
    """

    seller_id: str | None = None
    order_status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    search: str | None = None

    def matches(self, order: Order) -> bool:
        if self.seller_id is not None and not order.has_seller(self.seller_id):
            return False
        if self.order_status is not None and order.order_status != self.order_status:
            return False
        if self.payment_status is not None and order.payment_status != self.payment_status:
            return False
        if self.created_from is not None and order.created_at < self.created_from:
            return False
        if self.created_to is not None and order.created_at >= self.created_to:
            return False
        if self.search:
            term = self.search.lower()
            haystack = (order.order_number, order.customer_name or "", order.customer_email or "")
            if not any(term in value.lower() for value in haystack):
                return False
        return True


@dataclass(frozen=True)
class WriteGuard:
    """Values a conditional write expects to still be stored."""

    version: int
    order_status: OrderStatus
    payment_status: PaymentStatus

    @classmethod
    def of(cls, order: Order) -> Self:
        return cls(
            version=order.version,
            order_status=order.order_status,
            payment_status=order.payment_status,
        )


@dataclass(frozen=True)
class SellerRevenue:
    """Paid line-item revenue of one seller."""

    seller_id: str
    revenue_cents: int
    order_count: int


# ============================================================================
# Store Protocols
# ============================================================================


class OrderStore(Protocol):
    """Persistence for order aggregates."""

    async def get(self, order_id: str) -> Order | None: ...

    async def add(self, order: Order) -> None: ...

    async def compare_and_swap(self, order: Order, expected: WriteGuard) -> bool:
        """Persist ``order`` only if the stored row still matches ``expected``.

        Returns:
            False if another writer got there first.
        """
        ...

    async def seller_slices(
        self, seller_id: str, query: OrderQuery | None = None
    ) -> list[SellerOrderSlice]:
        """Per-order seller subtotals for every matching order, newest first."""
        ...

    async def seller_revenue(self, query: OrderQuery | None = None) -> list[SellerRevenue]:
        """Paid line-item revenue grouped by seller, largest first."""
        ...


class PayoutStore(Protocol):
    """Persistence for payout requests."""

    async def get(self, payout_id: str) -> Payout | None: ...

    async def add(self, payout: Payout) -> None: ...

    async def compare_and_swap(self, payout: Payout, expected_version: int) -> bool: ...

    async def find(
        self,
        seller_id: str | None = None,
        status: PayoutStatus | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Payout]:
        """Payouts, newest request first."""
        ...

    async def count(self, seller_id: str | None = None, status: PayoutStatus | None = None) -> int: ...

    async def sum_amounts(
        self,
        statuses: Iterable[PayoutStatus],
        seller_id: str | None = None,
        requested_from: datetime | None = None,
        requested_to: datetime | None = None,
    ) -> int:
        """Total amount in minor units of the matching payouts."""
        ...

    def seller_guard(self, seller_id: str) -> AbstractAsyncContextManager[None]:
        """Serialize balance-check-then-insert for one seller."""
        ...
