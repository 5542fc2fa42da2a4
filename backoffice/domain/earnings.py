"""Seller revenue attribution, hold-window classification and rollups.

Everything here is pure: callers pass in the orders (or per-seller order
slices loaded in bulk by a store) and the clock, and get amounts back.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Self

from backoffice.domain.base import utcnow
from backoffice.domain.entities import Order
from backoffice.domain.state_machines import OrderStatus, PaymentStatus
from backoffice.domain.value_objects import DEFAULT_CURRENCY, Money


class EarningStatus(str, Enum):
    """Payout eligibility of a seller's share of an order."""

    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"


# ============================================================================
# Revenue Attribution
# ============================================================================


@dataclass(frozen=True)
class SellerAttribution:
    """A seller's share of one order.

    Attributes:
        subtotal: Sum of the seller's line totals.
        platform_fee: ``subtotal × fee_rate``, rounded half up.
        net_amount: ``subtotal − platform_fee``.
    """

    subtotal: Money
    platform_fee: Money
    net_amount: Money

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Self:
        nothing = Money.zero(currency)
        return cls(subtotal=nothing, platform_fee=nothing, net_amount=nothing)


def split_fee(subtotal: Money, fee_rate: Decimal) -> SellerAttribution:
    """Split a seller subtotal into platform fee and net amount."""
    fee = subtotal.percentage(fee_rate)
    return SellerAttribution(subtotal=subtotal, platform_fee=fee, net_amount=subtotal - fee)


def attribute_seller_amount(order: Order, seller_id: str, fee_rate: Decimal) -> SellerAttribution:
    """Compute what ``seller_id`` earns from ``order``.

    Only the seller's own line items count, never the order's grand total
    (which carries other sellers' items, shipping and tax). Orders that
    are not paid contribute zero.

    Args:
        order: Order to attribute.
        seller_id: Seller whose share is computed.
        fee_rate: Platform fee as a fraction.

    Returns:
        The seller's subtotal, fee and net amount.
    """
    if order.payment_status != PaymentStatus.PAID:
        return SellerAttribution.zero(order.currency)
    subtotal = sum(
        (item.line_total for item in order.items_for_seller(seller_id)),
        Money.zero(order.currency),
    )
    return split_fee(subtotal, fee_rate)


# ============================================================================
# Hold-Window Classification
# ============================================================================


def classify_settlement(
    order_status: OrderStatus,
    delivered_at: datetime | None,
    hold_duration_days: int,
    now: datetime | None = None,
) -> EarningStatus:
    """Classify revenue as completed, pending or failed.

    Cancelled orders fail. Delivered orders complete once ``delivered_at``
    is at least ``hold_duration_days`` in the past; exactly on the
    boundary counts as completed. Everything else is still held.
    """
    if order_status == OrderStatus.CANCELLED:
        return EarningStatus.FAILED
    now = now or utcnow()
    if (
        order_status == OrderStatus.DELIVERED
        and delivered_at is not None
        and delivered_at <= now - timedelta(days=hold_duration_days)
    ):
        return EarningStatus.COMPLETED
    return EarningStatus.PENDING


def classify(order: Order, hold_duration_days: int, now: datetime | None = None) -> EarningStatus:
    """Classify an order's revenue against the hold window."""
    return classify_settlement(order.order_status, order.delivered_at, hold_duration_days, now)


# ============================================================================
# Seller Order Slices
# ============================================================================


@dataclass(frozen=True)
class SellerOrderSlice:
    """One order as seen by one seller.

    Stores return these from a single bulk query so that the aggregator
    never loads orders one by one.
    """

    order_id: str
    order_number: str
    order_status: OrderStatus
    payment_status: PaymentStatus
    created_at: datetime
    delivered_at: datetime | None
    seller_subtotal: Money
    customer_name: str | None = None
    customer_email: str | None = None
    product_names: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_order(cls, order: Order, seller_id: str) -> Self:
        items = order.items_for_seller(seller_id)
        return cls(
            order_id=order.id,
            order_number=order.order_number,
            order_status=order.order_status,
            payment_status=order.payment_status,
            created_at=order.created_at,
            delivered_at=order.delivered_at,
            seller_subtotal=sum((item.line_total for item in items), Money.zero(order.currency)),
            customer_name=order.customer_name or order.shipping_address.name,
            customer_email=order.customer_email,
            product_names=tuple(item.product_name for item in items),
        )

    def attribute(self, fee_rate: Decimal) -> SellerAttribution:
        if self.payment_status != PaymentStatus.PAID:
            return SellerAttribution.zero(self.seller_subtotal.currency)
        return split_fee(self.seller_subtotal, fee_rate)

    def classify(self, hold_duration_days: int, now: datetime | None = None) -> EarningStatus:
        return classify_settlement(self.order_status, self.delivered_at, hold_duration_days, now)


# ============================================================================
# Aggregation
# ============================================================================


@dataclass
class PeriodTotals:
    """Running totals for one seller over one period.

    ``completed_revenue`` and ``pending_revenue`` are net of fee. Revenue of
    cancelled orders counts towards ``total_revenue`` only.
    """

    currency: str = DEFAULT_CURRENCY
    total_cents: int = 0
    completed_cents: int = 0
    pending_cents: int = 0
    fee_cents: int = 0
    order_count: int = 0

    @property
    def total_revenue(self) -> Money:
        return Money(self.total_cents, self.currency)

    @property
    def completed_revenue(self) -> Money:
        return Money(self.completed_cents, self.currency)

    @property
    def pending_revenue(self) -> Money:
        return Money(self.pending_cents, self.currency)

    @property
    def platform_fees(self) -> Money:
        return Money(self.fee_cents, self.currency)

    def add(self, attribution: SellerAttribution, status: EarningStatus) -> None:
        self.total_cents += attribution.subtotal.amount_cents
        self.fee_cents += attribution.platform_fee.amount_cents
        if status == EarningStatus.COMPLETED:
            self.completed_cents += attribution.net_amount.amount_cents
        elif status == EarningStatus.PENDING:
            self.pending_cents += attribution.net_amount.amount_cents
        self.order_count += 1


def aggregate(
    slices: Iterable[SellerOrderSlice],
    fee_rate: Decimal,
    hold_duration_days: int,
    now: datetime | None = None,
    currency: str = DEFAULT_CURRENCY,
) -> PeriodTotals:
    """Roll seller slices up into period totals in a single pass."""
    now = now or utcnow()
    totals = PeriodTotals(currency=currency)
    for order_slice in slices:
        if order_slice.payment_status != PaymentStatus.PAID:
            continue
        totals.add(order_slice.attribute(fee_rate), order_slice.classify(hold_duration_days, now))
    return totals


def compute_growth(current: Money, previous: Money) -> float:
    """Percent change against the previous period, to two decimals.

    Defined as 0 when the previous period had no revenue.
    """
    if previous.amount_cents == 0:
        return 0.0
    change = Decimal(current.amount_cents - previous.amount_cents) / Decimal(previous.amount_cents) * 100
    return float(change.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


# ============================================================================
# Reporting Periods
# ============================================================================


PERIOD_DAYS: dict[str, int] = {
    "7days": 7,
    "30days": 30,
    "90days": 90,
}
DEFAULT_PERIOD = "30days"
PERIOD_NAMES = (*PERIOD_DAYS, "1year", "all")


@dataclass(frozen=True)
class ReportingPeriod:
    """Half-open window ``[start, end)``; ``start`` is None for all time."""

    start: datetime | None
    end: datetime
    name: str = "custom"

    @classmethod
    def named(cls, name: str, now: datetime | None = None) -> Self:
        """Resolve a period name such as ``30days`` against ``now``.

        Unknown names fall back to ``30days``.
        """
        now = now or utcnow()
        if name == "all":
            return cls(start=None, end=now, name=name)
        if name == "1year":
            try:
                start = now.replace(year=now.year - 1)
            except ValueError:
                # Feb 29 has no counterpart in the previous year
                start = now.replace(year=now.year - 1, day=28)
            return cls(start=start, end=now, name=name)
        if name not in PERIOD_DAYS:
            name = DEFAULT_PERIOD
        return cls(start=now - timedelta(days=PERIOD_DAYS[name]), end=now, name=name)

    @property
    def duration(self) -> timedelta | None:
        if self.start is None:
            return None
        return self.end - self.start

    def previous(self) -> "ReportingPeriod | None":
        """The immediately preceding period of identical duration."""
        if self.start is None:
            return None
        return ReportingPeriod(start=self.start - self.duration, end=self.start, name=f"previous-{self.name}")


@dataclass(frozen=True)
class EarningsSummary:
    """Seller earnings for one period.

    Attributes:
        total_revenue: Sum of seller subtotals of paid orders.
        completed_revenue: Net amount past the hold window.
        pending_revenue: Net amount still inside the hold window.
        platform_fees: Sum of fees at the seller earnings rate.
        growth: Percent change of total revenue against the prior period.
        total_payouts: Completed payouts requested in the period.
        pending_payouts: Pending or processing payouts requested in the period.
    """

    period: ReportingPeriod
    total_revenue: Money
    completed_revenue: Money
    pending_revenue: Money
    platform_fees: Money
    growth: float
    total_payouts: Money
    pending_payouts: Money
    order_count: int = 0
