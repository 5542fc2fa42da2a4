"""Application layer module.

Contains application services (use cases) that orchestrate
domain logic and infrastructure.
"""

from backoffice.application.container import ServiceContainer, build_container
from backoffice.application.earnings_service import EarningsService
from backoffice.application.finance_service import FinanceReporter
from backoffice.application.order_service import OrderLifecycleService
from backoffice.application.payout_service import PayoutLedger

__all__ = [
    "ServiceContainer",
    "build_container",
    "EarningsService",
    "FinanceReporter",
    "OrderLifecycleService",
    "PayoutLedger",
]
