"""Domain layer - Entities, value objects, state machines, earnings rules.

Example usage:
    from backoffice.domain import Actor, LineItem, Money, Order, OrderStatus

    item = LineItem.create("prod-1", "seller-a", quantity=2, unit_price=Money(25000))
    order = Order.create("ORD-1001", [item], shipping_address=address)
    order.transition_to(OrderStatus.CONFIRMED, Actor.seller("seller-a"))
"""

# Base classes
from backoffice.domain.base import AggregateRoot, DomainEvent, Entity, ValueObject, utcnow

# Earnings
from backoffice.domain.earnings import (
    EarningStatus,
    EarningsSummary,
    ReportingPeriod,
    SellerAttribution,
    SellerOrderSlice,
    attribute_seller_amount,
    classify,
    compute_growth,
)

# Entities
from backoffice.domain.entities import LineItem, Order, Payout

# Exceptions
from backoffice.domain.exceptions import (
    CancellationReasonRequiredError,
    ConcurrentModificationError,
    DomainError,
    InsufficientBalanceError,
    InvalidPayoutAmountError,
    InvalidStateTransitionError,
    OrderNotFoundError,
    PayoutNotFoundError,
    PayoutNotPendingError,
    UnauthorizedOrderAccessError,
)

# State Machines
from backoffice.domain.state_machines import (
    OrderStatus,
    PaymentStatus,
    PayoutStatus,
    can_transition,
    validate_transition,
)

# Value Objects
from backoffice.domain.value_objects import Actor, ActorRole, Address, BankDetails, Money

__all__ = [
    # Base
    "AggregateRoot",
    "DomainEvent",
    "Entity",
    "ValueObject",
    "utcnow",
    # Earnings
    "EarningStatus",
    "EarningsSummary",
    "ReportingPeriod",
    "SellerAttribution",
    "SellerOrderSlice",
    "attribute_seller_amount",
    "classify",
    "compute_growth",
    # Entities
    "LineItem",
    "Order",
    "Payout",
    # Exceptions
    "CancellationReasonRequiredError",
    "ConcurrentModificationError",
    "DomainError",
    "InsufficientBalanceError",
    "InvalidPayoutAmountError",
    "InvalidStateTransitionError",
    "OrderNotFoundError",
    "PayoutNotFoundError",
    "PayoutNotPendingError",
    "UnauthorizedOrderAccessError",
    # State Machines
    "OrderStatus",
    "PaymentStatus",
    "PayoutStatus",
    "can_transition",
    "validate_transition",
    # Value Objects
    "Actor",
    "ActorRole",
    "Address",
    "BankDetails",
    "Money",
]
