"""Order lifecycle service.

Validates and applies order and payment status transitions and detail
updates. Every write is a compare-and-swap against the version that was
read; a lost race re-reads the order and re-validates from scratch.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from backoffice.domain.base import utcnow
from backoffice.domain.entities import Order
from backoffice.domain.exceptions import (
    ConcurrentModificationError,
    DomainError,
    OrderNotFoundError,
    UnauthorizedOrderAccessError,
)
from backoffice.domain.state_machines import OrderStatus, PaymentStatus
from backoffice.domain.value_objects import Actor
from backoffice.infrastructure.repositories import OrderStore, WriteGuard

logger = structlog.get_logger()


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class GetOrderResult:
    """Result of getting an order."""

    order: Order | None = None
    success: bool = True
    error: str | None = None
    error_code: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class UpdateOrderResult:
    """Result of updating an order."""

    order: Order | None = None
    success: bool = True
    error: str | None = None
    error_code: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, exc: DomainError) -> "UpdateOrderResult":
        return cls(success=False, error=exc.message, error_code=exc.code, details=exc.details)


# ============================================================================
# Order Lifecycle Service
# ============================================================================


class OrderLifecycleService:
    """Application service for order status changes and detail updates."""

    def __init__(
        self,
        order_store: OrderStore,
        max_retries: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.order_store = order_store
        self.max_retries = max_retries
        self.clock = clock

    async def get_order(self, order_id: str, actor: Actor) -> GetOrderResult:
        """Get an order the actor is allowed to see."""
        try:
            order = await self._load(order_id)
            order.authorize(actor)
        except DomainError as e:
            return GetOrderResult(success=False, error=e.message, error_code=e.code, details=e.details)
        return GetOrderResult(order=order)

    async def update_status(
        self,
        order_id: str,
        target_status: OrderStatus,
        actor: Actor,
        notes: str | None = None,
        tracking_number: str | None = None,
        reason: str | None = None,
    ) -> UpdateOrderResult:
        """Move an order along its fulfillment graph.

        Args:
            order_id: Order identifier.
            target_status: Requested status.
            actor: Admin, system, or a seller owning at least one item.
            notes: Stored on the order when given.
            tracking_number: Stored on the order when given.
            reason: Required when cancelling.

        Returns:
            UpdateOrderResult with the stored order, or the error code.
        """

        def apply(order: Order) -> None:
            order.transition_to(
                target_status,
                actor,
                reason=reason,
                notes=notes,
                tracking_number=tracking_number,
                now=self.clock(),
            )

        return await self._mutate(order_id, actor, apply, action="status_update")

    async def cancel_order(self, order_id: str, reason: str, actor: Actor) -> UpdateOrderResult:
        return await self.update_status(order_id, OrderStatus.CANCELLED, actor, reason=reason)

    async def update_payment_status(
        self,
        order_id: str,
        target_status: PaymentStatus,
        actor: Actor,
    ) -> UpdateOrderResult:
        """Move an order along its payment graph. Admins only."""
        if not actor.is_privileged:
            error = UnauthorizedOrderAccessError(order_id, actor.seller_id)
            return UpdateOrderResult.failure(error)

        def apply(order: Order) -> None:
            order.transition_payment_to(target_status, actor, now=self.clock())

        return await self._mutate(order_id, actor, apply, action="payment_status_update")

    async def update_tracking(
        self,
        order_id: str,
        tracking_number: str,
        carrier: str,
        actor: Actor,
    ) -> UpdateOrderResult:
        def apply(order: Order) -> None:
            order.update_tracking(tracking_number, carrier, actor, now=self.clock())

        return await self._mutate(order_id, actor, apply, action="tracking_update")

    async def add_notes(self, order_id: str, notes: str, actor: Actor) -> UpdateOrderResult:
        def apply(order: Order) -> None:
            order.set_notes(notes, actor, now=self.clock())

        return await self._mutate(order_id, actor, apply, action="notes_update")

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _load(self, order_id: str) -> Order:
        order = await self.order_store.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def _mutate(
        self,
        order_id: str,
        actor: Actor,
        apply: Callable[[Order], None],
        action: str,
    ) -> UpdateOrderResult:
        """Read, authorize, apply and conditionally write, retrying lost races."""
        try:
            for attempt in range(1, self.max_retries + 1):
                order = await self._load(order_id)
                order.authorize(actor)
                expected = WriteGuard.of(order)
                apply(order)

                if await self.order_store.compare_and_swap(order, expected):
                    self._publish(order)
                    return UpdateOrderResult(order=order)

                logger.warning(
                    "Order changed during update, retrying",
                    order_id=order_id,
                    action=action,
                    attempt=attempt,
                    expected_version=expected.version,
                )
            raise ConcurrentModificationError("Order", order_id, self.max_retries)
        except DomainError as e:
            logger.info(
                "Order update rejected",
                order_id=order_id,
                action=action,
                actor=str(actor),
                error_code=e.code,
            )
            return UpdateOrderResult.failure(e)

    def _publish(self, order: Order) -> None:
        for event in order.collect_events():
            logger.info("Order event", version=order.version, **event.to_dict())
