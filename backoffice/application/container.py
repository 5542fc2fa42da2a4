"""Service wiring.

The container owns the store handles for the lifetime of the app and is
kept on ``app.state``; routers reach services through it.
"""

from dataclasses import dataclass

import structlog

from backoffice.application.earnings_service import EarningsService
from backoffice.application.finance_service import FinanceReporter
from backoffice.application.order_service import OrderLifecycleService
from backoffice.application.payout_service import PayoutLedger
from backoffice.infrastructure.config import Settings
from backoffice.infrastructure.database import Database
from backoffice.infrastructure.memory_store import InMemoryOrderStore, InMemoryPayoutStore
from backoffice.infrastructure.repositories import OrderStore, PayoutStore
from backoffice.infrastructure.sql_store import SqlOrderStore, SqlPayoutStore

logger = structlog.get_logger()


@dataclass
class ServiceContainer:
    """Stores and the services built on them."""

    settings: Settings
    order_store: OrderStore
    payout_store: PayoutStore
    orders: OrderLifecycleService
    earnings: EarningsService
    payouts: PayoutLedger
    finance: FinanceReporter
    database: Database | None = None

    async def is_ready(self) -> bool:
        if self.database is None:
            return True
        return await self.database.ping()

    async def close(self) -> None:
        if self.database is not None:
            await self.database.dispose()
            logger.info("Database connections closed")


def build_container(
    settings: Settings,
    order_store: OrderStore | None = None,
    payout_store: PayoutStore | None = None,
) -> ServiceContainer:
    """Create stores for the configured backend and wire the services.

    Args:
        settings: Application settings.
        order_store: Store to use instead of the configured one.
        payout_store: Store to use instead of the configured one.
    """
    database = None
    if settings.storage_backend == "sql":
        database = Database(settings.database_url, echo=settings.debug)
        order_store = order_store or SqlOrderStore(database)
        payout_store = payout_store or SqlPayoutStore(database)
    else:
        order_store = order_store or InMemoryOrderStore()
        payout_store = payout_store or InMemoryPayoutStore()

    earnings = EarningsService(
        order_store,
        payout_store,
        fee_rate=settings.seller_earnings_fee_rate,
        hold_duration_days=settings.hold_duration_days,
        currency=settings.currency,
    )
    return ServiceContainer(
        settings=settings,
        order_store=order_store,
        payout_store=payout_store,
        orders=OrderLifecycleService(order_store, max_retries=settings.status_update_max_retries),
        earnings=earnings,
        payouts=PayoutLedger(
            payout_store,
            earnings,
            currency=settings.currency,
            max_retries=settings.status_update_max_retries,
        ),
        finance=FinanceReporter(
            order_store,
            payout_store,
            commission_rate=settings.marketplace_commission_rate,
            currency=settings.currency,
        ),
        database=database,
    )
