"""Marketplace-wide finance reporting at the commission rate."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from backoffice.domain.base import utcnow
from backoffice.domain.earnings import ReportingPeriod
from backoffice.domain.state_machines import PaymentStatus, PayoutStatus
from backoffice.domain.value_objects import Money
from backoffice.infrastructure.repositories import OrderQuery, OrderStore, PayoutStore


@dataclass(frozen=True)
class FinanceOverview:
    """Platform totals for one period.

    ``net_profit_cents`` is commission minus completed payouts and may be
    negative, so it is kept as a signed integer.
    """

    period: ReportingPeriod
    total_revenue: Money
    total_commission: Money
    total_payouts: Money
    pending_payouts: Money
    net_profit_cents: int
    commission_rate: Decimal


@dataclass(frozen=True)
class TopSeller:
    seller_id: str
    revenue: Money
    commission: Money
    order_count: int


class FinanceReporter:
    """Admin finance figures computed from paid line items and payouts."""

    def __init__(
        self,
        order_store: OrderStore,
        payout_store: PayoutStore,
        commission_rate: Decimal,
        currency: str = "INR",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.order_store = order_store
        self.payout_store = payout_store
        self.commission_rate = commission_rate
        self.currency = currency
        self.clock = clock

    async def finance_overview(self, period: str = "30days") -> FinanceOverview:
        resolved = ReportingPeriod.named(period, self.clock())
        query = OrderQuery(
            payment_status=PaymentStatus.PAID,
            created_from=resolved.start,
            created_to=resolved.end,
        )
        rows = await self.order_store.seller_revenue(query)
        revenue = Money(sum(row.revenue_cents for row in rows), self.currency)
        commission = revenue.percentage(self.commission_rate)

        total_payouts = await self.payout_store.sum_amounts(
            [PayoutStatus.COMPLETED], requested_from=resolved.start, requested_to=resolved.end
        )
        pending_payouts = await self.payout_store.sum_amounts(
            [PayoutStatus.PENDING], requested_from=resolved.start, requested_to=resolved.end
        )

        return FinanceOverview(
            period=resolved,
            total_revenue=revenue,
            total_commission=commission,
            total_payouts=Money(total_payouts, self.currency),
            pending_payouts=Money(pending_payouts, self.currency),
            net_profit_cents=commission.amount_cents - total_payouts,
            commission_rate=self.commission_rate,
        )

    async def top_sellers(self, limit: int = 10) -> list[TopSeller]:
        """Sellers ranked by paid line-item revenue over all time."""
        rows = await self.order_store.seller_revenue(OrderQuery(payment_status=PaymentStatus.PAID))
        sellers = []
        for row in rows[:limit]:
            revenue = Money(row.revenue_cents, self.currency)
            sellers.append(
                TopSeller(
                    seller_id=row.seller_id,
                    revenue=revenue,
                    commission=revenue.percentage(self.commission_rate),
                    order_count=row.order_count,
                )
            )
        return sellers
