"""State machines for orders, payments and payouts.

Each status enum owns an adjacency list. A transition is valid only if
the target appears in the current status' list; there are no implicit
self-loops, so re-entering the current status is rejected. All checks
are pure and safe to call concurrently.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from backoffice.domain.exceptions import InvalidStateTransitionError

S = TypeVar("S", bound=Enum)


# ============================================================================
# Order State Machine
# ============================================================================


class OrderStatus(str, Enum):
    """Fulfillment state of an order.

    State diagram:
        PENDING ──► CONFIRMED ──► PROCESSING ──► SHIPPED ──► DELIVERED
          │             │             │             │            │
          └─────────────┴─────────────┴──► CANCELLED└──► RETURNED◄┘
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"

    def can_transition_to(self, target: "OrderStatus") -> bool:
        return target in _ORDER_TRANSITIONS.get(self, frozenset())

    def allowed_transitions(self) -> list["OrderStatus"]:
        return [s for s in OrderStatus if s in _ORDER_TRANSITIONS.get(self, frozenset())]

    def is_terminal(self) -> bool:
        return not _ORDER_TRANSITIONS.get(self, frozenset())

    def is_cancellable(self) -> bool:
        """Check if the order has not shipped yet."""
        return OrderStatus.CANCELLED in _ORDER_TRANSITIONS.get(self, frozenset())


_ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.RETURNED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.RETURNED}),
    OrderStatus.CANCELLED: frozenset(),  # Terminal state
    OrderStatus.RETURNED: frozenset(),  # Terminal state
}


# ============================================================================
# Payment State Machine
# ============================================================================


class PaymentStatus(str, Enum):
    """Financial settlement state of an order, independent of fulfillment.

    State diagram:
        PENDING ──► PAID ──► REFUNDED
          │          ▲
          ▼          │
        FAILED ──────┘
    """

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"

    def can_transition_to(self, target: "PaymentStatus") -> bool:
        return target in _PAYMENT_TRANSITIONS.get(self, frozenset())

    def allowed_transitions(self) -> list["PaymentStatus"]:
        return [s for s in PaymentStatus if s in _PAYMENT_TRANSITIONS.get(self, frozenset())]

    def is_terminal(self) -> bool:
        return not _PAYMENT_TRANSITIONS.get(self, frozenset())


_PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PAID}),  # Retried payment
    PaymentStatus.REFUNDED: frozenset(),  # Terminal state
}


# ============================================================================
# Payout State Machine
# ============================================================================


class PayoutStatus(str, Enum):
    """Payout request lifecycle states.

    State diagram:
        PENDING ──► PROCESSING ──► COMPLETED
          │  │  │        │
          │  │  │        └──────► FAILED
          │  │  └───────────────► COMPLETED (direct approval)
          │  └──────────────────► FAILED
          └─────────────────────► CANCELLED (seller, only while pending)
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    def can_transition_to(self, target: "PayoutStatus") -> bool:
        return target in _PAYOUT_TRANSITIONS.get(self, frozenset())

    def allowed_transitions(self) -> list["PayoutStatus"]:
        return [s for s in PayoutStatus if s in _PAYOUT_TRANSITIONS.get(self, frozenset())]

    def is_terminal(self) -> bool:
        return not _PAYOUT_TRANSITIONS.get(self, frozenset())

    def consumes_balance(self) -> bool:
        """Check if a payout in this state counts against available balance.

        In-flight payouts (pending, processing) count as well as
        completed ones.
        """
        return self in BALANCE_CONSUMING_PAYOUT_STATUSES


_PAYOUT_TRANSITIONS: dict[PayoutStatus, frozenset[PayoutStatus]] = {
    PayoutStatus.PENDING: frozenset(
        {
            PayoutStatus.PROCESSING,
            PayoutStatus.COMPLETED,
            PayoutStatus.FAILED,
            PayoutStatus.CANCELLED,
        }
    ),
    PayoutStatus.PROCESSING: frozenset({PayoutStatus.COMPLETED, PayoutStatus.FAILED}),
    PayoutStatus.COMPLETED: frozenset(),  # Terminal state
    PayoutStatus.FAILED: frozenset(),  # Terminal state
    PayoutStatus.CANCELLED: frozenset(),  # Terminal state
}

BALANCE_CONSUMING_PAYOUT_STATUSES: frozenset[PayoutStatus] = frozenset(
    {PayoutStatus.PENDING, PayoutStatus.PROCESSING, PayoutStatus.COMPLETED}
)


# ============================================================================
# Validator
# ============================================================================


_GRAPHS: dict[type[Enum], dict] = {
    OrderStatus: _ORDER_TRANSITIONS,
    PaymentStatus: _PAYMENT_TRANSITIONS,
    PayoutStatus: _PAYOUT_TRANSITIONS,
}


def can_transition(current: S, target: S) -> bool:
    """Check a status change against the graph of the status' domain.

    The domain (order, payment or payout) is the enum type of the
    statuses. Mixing domains is never a valid transition.

    Args:
        current: Current status.
        target: Requested status.

    Returns:
        True if ``target`` is an edge out of ``current``.
    """
    if type(current) is not type(target):
        return False
    graph = _GRAPHS.get(type(current))
    if graph is None:
        raise TypeError(f"No transition graph for {type(current).__name__}")
    return target in graph.get(current, frozenset())


def validate_transition(entity_type: str, entity_id: str, current: S, target: S) -> None:
    """Raise if ``current -> target`` is not a valid transition.

    Raises:
        InvalidStateTransitionError: Naming both statuses and the allowed targets.
    """
    if not can_transition(current, target):
        graph = _GRAPHS.get(type(current), {})
        allowed = [s.value for s in type(current) if s in graph.get(current, frozenset())]
        raise InvalidStateTransitionError(
            entity_type=entity_type,
            entity_id=entity_id,
            current_state=current.value,
            target_state=target.value,
            allowed_transitions=allowed,
        )


@dataclass(frozen=True)
class StateTransition(Generic[S]):
    """Record of an applied status change.

    Attributes:
        from_state: Status before the change.
        to_state: Status after the change.
    """

    from_state: S
    to_state: S
