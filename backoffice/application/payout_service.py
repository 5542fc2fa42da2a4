"""Payout ledger.

Admits seller payout requests against the available balance and moves
payouts through their admin lifecycle. The money-safety rule is that
the sum of a seller's pending, processing and completed payouts never
exceeds their completed net revenue; the balance check and the insert
run under a per-seller guard so concurrent requests cannot both pass.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from backoffice.application.earnings_service import EarningsService
from backoffice.domain.base import utcnow
from backoffice.domain.entities import Payout
from backoffice.domain.exceptions import (
    ConcurrentModificationError,
    DomainError,
    InsufficientBalanceError,
    InvalidPayoutAmountError,
    PayoutNotFoundError,
)
from backoffice.domain.state_machines import BALANCE_CONSUMING_PAYOUT_STATUSES, PayoutStatus
from backoffice.domain.value_objects import Actor, BankDetails, Money
from backoffice.infrastructure.repositories import PayoutStore

logger = structlog.get_logger()


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class PayoutResult:
    """Result of a payout operation."""

    payout: Payout | None = None
    success: bool = True
    error: str | None = None
    error_code: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, exc: DomainError) -> "PayoutResult":
        return cls(success=False, error=exc.message, error_code=exc.code, details=exc.details)


@dataclass
class ListPayoutsResult:
    """Result of listing payouts."""

    payouts: list[Payout] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10


# ============================================================================
# Payout Ledger
# ============================================================================


class PayoutLedger:
    """Application service for seller payouts."""

    def __init__(
        self,
        payout_store: PayoutStore,
        earnings: EarningsService,
        currency: str = "INR",
        max_retries: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.payout_store = payout_store
        self.earnings = earnings
        self.currency = currency
        self.max_retries = max_retries
        self.clock = clock

    async def available_balance(self, seller_id: str) -> Money:
        """Completed net revenue minus committed payouts, never below zero."""
        completed = await self.earnings.completed_net_revenue(seller_id)
        committed = await self.payout_store.sum_amounts(BALANCE_CONSUMING_PAYOUT_STATUSES, seller_id=seller_id)
        return Money(max(completed.amount_cents - committed, 0), self.currency)

    async def request_payout(
        self,
        seller_id: str,
        amount_cents: int,
        bank_details: BankDetails,
    ) -> PayoutResult:
        """Create a pending payout if the seller can cover it.

        Args:
            seller_id: Requesting seller.
            amount_cents: Requested amount in minor units.
            bank_details: Destination account.

        Returns:
            PayoutResult with the new payout, or ``INVALID_PAYOUT_AMOUNT`` /
            ``INSUFFICIENT_BALANCE``.
        """
        try:
            if amount_cents <= 0:
                raise InvalidPayoutAmountError(amount_cents)

            async with self.payout_store.seller_guard(seller_id):
                available = await self.available_balance(seller_id)
                if amount_cents > available.amount_cents:
                    raise InsufficientBalanceError(available.amount_cents, amount_cents, self.currency)

                payout = Payout.request(
                    seller_id=seller_id,
                    amount=Money(amount_cents, self.currency),
                    bank_details=bank_details,
                    now=self.clock(),
                )
                await self.payout_store.add(payout)
        except DomainError as e:
            logger.info(
                "Payout request rejected",
                seller_id=seller_id,
                amount_cents=amount_cents,
                error_code=e.code,
                **e.details,
            )
            return PayoutResult.failure(e)

        logger.info(
            "Payout requested",
            payout_id=payout.id,
            seller_id=seller_id,
            amount_cents=amount_cents,
            available_cents=available.amount_cents,
        )
        self._publish(payout)
        return PayoutResult(payout=payout)

    async def cancel_payout(self, seller_id: str, payout_id: str) -> PayoutResult:
        """Cancel one of the seller's own pending payouts."""
        actor = Actor.seller(seller_id)
        return await self._mutate(
            payout_id,
            lambda payout: payout.cancel(actor, now=self.clock()),
            owner_id=seller_id,
            action="cancel",
        )

    # -------------------------------------------------------------------------
    # Admin Actions
    # -------------------------------------------------------------------------

    async def approve_payout(self, payout_id: str, actor: Actor, notes: str | None = None) -> PayoutResult:
        """Approve a pending payout, completing it directly."""
        return await self._transition(payout_id, PayoutStatus.COMPLETED, actor, notes, action="approve")

    async def mark_processing(self, payout_id: str, actor: Actor, notes: str | None = None) -> PayoutResult:
        return await self._transition(payout_id, PayoutStatus.PROCESSING, actor, notes, action="process")

    async def complete_payout(self, payout_id: str, actor: Actor, notes: str | None = None) -> PayoutResult:
        return await self._transition(payout_id, PayoutStatus.COMPLETED, actor, notes, action="complete")

    async def reject_payout(self, payout_id: str, reason: str, actor: Actor) -> PayoutResult:
        """Fail a payout, keeping the reason in its notes."""
        return await self._transition(payout_id, PayoutStatus.FAILED, actor, reason, action="reject")

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get_payout(self, payout_id: str, actor: Actor) -> PayoutResult:
        try:
            payout = await self._load(payout_id, None if actor.is_privileged else actor.seller_id)
        except DomainError as e:
            return PayoutResult.failure(e)
        return PayoutResult(payout=payout)

    async def list_payouts(
        self,
        seller_id: str | None = None,
        status: PayoutStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> ListPayoutsResult:
        """Payout history, newest first."""
        payouts = await self.payout_store.find(
            seller_id=seller_id,
            status=status,
            offset=(page - 1) * limit,
            limit=limit,
        )
        total = await self.payout_store.count(seller_id=seller_id, status=status)
        return ListPayoutsResult(payouts=payouts, total=total, page=page, limit=limit)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _load(self, payout_id: str, owner_id: str | None) -> Payout:
        payout = await self.payout_store.get(payout_id)
        # Another seller's payout is reported as missing
        if payout is None or (owner_id is not None and payout.seller_id != owner_id):
            raise PayoutNotFoundError(payout_id)
        return payout

    async def _transition(
        self,
        payout_id: str,
        target: PayoutStatus,
        actor: Actor,
        notes: str | None,
        action: str,
    ) -> PayoutResult:
        return await self._mutate(
            payout_id,
            lambda payout: payout.transition_to(target, actor, notes=notes, now=self.clock()),
            owner_id=None,
            action=action,
        )

    async def _mutate(
        self,
        payout_id: str,
        apply: Callable[[Payout], Any],
        owner_id: str | None,
        action: str,
    ) -> PayoutResult:
        try:
            for attempt in range(1, self.max_retries + 1):
                payout = await self._load(payout_id, owner_id)
                expected_version = payout.version
                apply(payout)
                if await self.payout_store.compare_and_swap(payout, expected_version):
                    logger.info(
                        "Payout updated",
                        payout_id=payout_id,
                        seller_id=payout.seller_id,
                        action=action,
                        status=payout.status.value,
                    )
                    self._publish(payout)
                    return PayoutResult(payout=payout)
                logger.warning("Payout changed during update, retrying", payout_id=payout_id, attempt=attempt)
            raise ConcurrentModificationError("Payout", payout_id, self.max_retries)
        except DomainError as e:
            logger.info("Payout update rejected", payout_id=payout_id, action=action, error_code=e.code)
            return PayoutResult.failure(e)

    def _publish(self, payout: Payout) -> None:
        for event in payout.collect_events():
            logger.info("Payout event", version=payout.version, **event.to_dict())
