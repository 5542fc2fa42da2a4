"""Domain events emitted by orders and payouts.

Events are recorded on the aggregate during a mutation and published by
the application service only after the conditional write succeeded.
"""

from dataclasses import dataclass, field
from typing import Any

from backoffice.domain.base import DomainEvent


# ============================================================================
# Order Events
# ============================================================================


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Order moved along its fulfillment graph."""

    event_type = "order.status_changed"

    order_number: str = ""
    from_status: str = ""
    to_status: str = ""
    actor: str = ""
    reason: str | None = None

    def _payload(self) -> dict[str, Any]:
        return {
            "order_number": self.order_number,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "actor": self.actor,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class PaymentStatusChanged(DomainEvent):
    """Order moved along its payment graph.

    ``implicit`` is set when the change was a side effect of delivery.
    """

    event_type = "order.payment_status_changed"

    order_number: str = ""
    from_status: str = ""
    to_status: str = ""
    actor: str = ""
    implicit: bool = False

    def _payload(self) -> dict[str, Any]:
        return {
            "order_number": self.order_number,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "actor": self.actor,
            "implicit": self.implicit,
        }


@dataclass(frozen=True)
class OrderDetailsUpdated(DomainEvent):
    """Tracking or notes changed without a status change."""

    event_type = "order.details_updated"

    order_number: str = ""
    fields: tuple[str, ...] = field(default_factory=tuple)
    actor: str = ""

    def _payload(self) -> dict[str, Any]:
        return {
            "order_number": self.order_number,
            "fields": list(self.fields),
            "actor": self.actor,
        }


# ============================================================================
# Payout Events
# ============================================================================


@dataclass(frozen=True)
class PayoutRequested(DomainEvent):
    """Seller asked for a withdrawal."""

    event_type = "payout.requested"

    seller_id: str = ""
    amount_cents: int = 0
    currency: str = ""

    def _payload(self) -> dict[str, Any]:
        return {
            "seller_id": self.seller_id,
            "amount_cents": self.amount_cents,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class PayoutStatusChanged(DomainEvent):
    """Payout moved along its lifecycle."""

    event_type = "payout.status_changed"

    seller_id: str = ""
    from_status: str = ""
    to_status: str = ""
    actor: str = ""
    notes: str | None = None

    def _payload(self) -> dict[str, Any]:
        return {
            "seller_id": self.seller_id,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "actor": self.actor,
            "notes": self.notes,
        }
