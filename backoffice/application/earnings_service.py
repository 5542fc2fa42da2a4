"""Seller earnings: period summaries, transaction history and exports."""

import csv
import io
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

import structlog

from backoffice.domain.base import utcnow
from backoffice.domain.earnings import (
    EarningStatus,
    EarningsSummary,
    PeriodTotals,
    ReportingPeriod,
    SellerOrderSlice,
    aggregate,
    compute_growth,
)
from backoffice.domain.state_machines import PaymentStatus, PayoutStatus
from backoffice.domain.value_objects import Money
from backoffice.infrastructure.repositories import OrderQuery, OrderStore, PayoutStore

logger = structlog.get_logger()

EXPORT_COLUMNS = (
    "Order Number",
    "Customer Name",
    "Customer Email",
    "Product Names",
    "Order Amount",
    "Platform Fee",
    "Seller Amount",
    "Status",
    "Order Date",
)

EXPORT_CONTENT_TYPES = {
    "csv": "text/csv",
    "json": "application/json",
}


# ============================================================================
# Result Types
# ============================================================================


@dataclass(frozen=True)
class EarningTransaction:
    """One order from a seller's point of view."""

    order_id: str
    order_number: str
    customer_name: str | None
    customer_email: str | None
    product_names: tuple[str, ...]
    order_amount: Money
    platform_fee: Money
    seller_amount: Money
    status: EarningStatus
    order_date: datetime


@dataclass
class TransactionPage:
    """A page of earning transactions."""

    transactions: list[EarningTransaction] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0


@dataclass(frozen=True)
class EarningsExport:
    """Rendered export file."""

    filename: str
    content_type: str
    content: str


# ============================================================================
# Earnings Service
# ============================================================================


class EarningsService:
    """Read-side service computing seller earnings from the order store.

    Each period is answered from one bulk store query; nothing is cached
    between calls, so every summary reflects the current order state.
    """

    def __init__(
        self,
        order_store: OrderStore,
        payout_store: PayoutStore,
        fee_rate: Decimal,
        hold_duration_days: int = 7,
        currency: str = "INR",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.order_store = order_store
        self.payout_store = payout_store
        self.fee_rate = fee_rate
        self.hold_duration_days = hold_duration_days
        self.currency = currency
        self.clock = clock

    async def get_earnings_summary(self, seller_id: str, period: str = "30days") -> EarningsSummary:
        """Summarize a named period such as ``7days`` or ``all``."""
        return await self._summarize(seller_id, ReportingPeriod.named(period, self.clock()))

    async def summarize(
        self,
        seller_id: str,
        period_start: datetime,
        period_end: datetime | None = None,
    ) -> EarningsSummary:
        """Summarize ``[period_start, period_end)``, growth against the prior window."""
        period = ReportingPeriod(start=period_start, end=period_end or self.clock())
        return await self._summarize(seller_id, period)

    async def completed_net_revenue(self, seller_id: str) -> Money:
        """Net revenue past the hold window, over all time."""
        query = OrderQuery(seller_id=seller_id, payment_status=PaymentStatus.PAID)
        slices = await self.order_store.seller_slices(seller_id, query)
        totals = aggregate(slices, self.fee_rate, self.hold_duration_days, self.clock(), self.currency)
        return totals.completed_revenue

    async def list_transactions(
        self,
        seller_id: str,
        page: int = 1,
        limit: int = 10,
        status: EarningStatus | None = None,
        search: str | None = None,
    ) -> TransactionPage:
        """Paid orders of the seller, newest first."""
        query = OrderQuery(seller_id=seller_id, payment_status=PaymentStatus.PAID, search=search)
        rows = self._transactions(await self.order_store.seller_slices(seller_id, query))
        if status is not None:
            rows = [row for row in rows if row.status == status]
        start = (page - 1) * limit
        return TransactionPage(transactions=rows[start : start + limit], total=len(rows), page=page, limit=limit)

    async def export_earnings(
        self,
        seller_id: str,
        period: str = "30days",
        export_format: str = "csv",
    ) -> EarningsExport:
        """Render the seller's transactions in a period as CSV or JSON.

        Raises:
            ValueError: If ``export_format`` is not ``csv`` or ``json``.
        """
        if export_format not in EXPORT_CONTENT_TYPES:
            raise ValueError(f"Unsupported export format: {export_format}")

        resolved = ReportingPeriod.named(period, self.clock())
        slices = await self.order_store.seller_slices(seller_id, self._query(seller_id, resolved))
        rows = self._transactions(slices)
        content = _render_csv(rows) if export_format == "csv" else _render_json(rows)

        logger.info(
            "Earnings exported",
            seller_id=seller_id,
            period=resolved.name,
            format=export_format,
            rows=len(rows),
        )
        return EarningsExport(
            filename=f"seller-earnings-{resolved.name}.{export_format}",
            content_type=EXPORT_CONTENT_TYPES[export_format],
            content=content,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _query(self, seller_id: str, period: ReportingPeriod) -> OrderQuery:
        return OrderQuery(
            seller_id=seller_id,
            payment_status=PaymentStatus.PAID,
            created_from=period.start,
            created_to=period.end,
        )

    async def _totals(self, seller_id: str, period: ReportingPeriod) -> PeriodTotals:
        slices = await self.order_store.seller_slices(seller_id, self._query(seller_id, period))
        return aggregate(slices, self.fee_rate, self.hold_duration_days, self.clock(), self.currency)

    async def _summarize(self, seller_id: str, period: ReportingPeriod) -> EarningsSummary:
        current = await self._totals(seller_id, period)
        previous_period = period.previous()
        if previous_period is None:
            growth = 0.0
        else:
            previous = await self._totals(seller_id, previous_period)
            growth = compute_growth(current.total_revenue, previous.total_revenue)

        total_payouts = await self.payout_store.sum_amounts(
            [PayoutStatus.COMPLETED],
            seller_id=seller_id,
            requested_from=period.start,
            requested_to=period.end,
        )
        pending_payouts = await self.payout_store.sum_amounts(
            [PayoutStatus.PENDING, PayoutStatus.PROCESSING],
            seller_id=seller_id,
            requested_from=period.start,
            requested_to=period.end,
        )

        return EarningsSummary(
            period=period,
            total_revenue=current.total_revenue,
            completed_revenue=current.completed_revenue,
            pending_revenue=current.pending_revenue,
            platform_fees=current.platform_fees,
            growth=growth,
            total_payouts=Money(total_payouts, self.currency),
            pending_payouts=Money(pending_payouts, self.currency),
            order_count=current.order_count,
        )

    def _transactions(self, slices: list[SellerOrderSlice]) -> list[EarningTransaction]:
        now = self.clock()
        rows = []
        for order_slice in slices:
            attribution = order_slice.attribute(self.fee_rate)
            rows.append(
                EarningTransaction(
                    order_id=order_slice.order_id,
                    order_number=order_slice.order_number,
                    customer_name=order_slice.customer_name,
                    customer_email=order_slice.customer_email,
                    product_names=order_slice.product_names,
                    order_amount=attribution.subtotal,
                    platform_fee=attribution.platform_fee,
                    seller_amount=attribution.net_amount,
                    status=order_slice.classify(self.hold_duration_days, now),
                    order_date=order_slice.created_at,
                )
            )
        return rows


# ============================================================================
# Rendering
# ============================================================================


def _amount(money: Money) -> str:
    return f"{money.to_decimal():.2f}"


def _render_csv(rows: list[EarningTransaction]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for row in rows:
        writer.writerow(
            [
                row.order_number,
                row.customer_name or "",
                row.customer_email or "",
                ", ".join(row.product_names),
                _amount(row.order_amount),
                _amount(row.platform_fee),
                _amount(row.seller_amount),
                row.status.value,
                row.order_date.date().isoformat(),
            ]
        )
    return buffer.getvalue()


def _render_json(rows: list[EarningTransaction]) -> str:
    return json.dumps(
        [
            {
                "order_number": row.order_number,
                "customer_name": row.customer_name,
                "customer_email": row.customer_email,
                "product_names": list(row.product_names),
                "order_amount": row.order_amount.amount_cents,
                "platform_fee": row.platform_fee.amount_cents,
                "seller_amount": row.seller_amount.amount_cents,
                "currency": row.order_amount.currency,
                "status": row.status.value,
                "order_date": row.order_date.isoformat(),
            }
            for row in rows
        ],
        indent=2,
    )
