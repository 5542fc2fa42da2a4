"""Domain exceptions.

Every business rule violation is a ``DomainError`` with a stable
machine-readable ``code`` and a ``details`` dict holding the concrete
values involved, so callers can explain a rejection without re-reading
state. Infrastructure failures are deliberately not ``DomainError``.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    Attributes:
        code: Stable error code surfaced to API clients.
        message: Human-readable message.
        details: Values involved in the violation.
    """

    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


def format_amount(amount_minor: int, currency: str = "INR") -> str:
    """Render a minor-unit amount for error messages (e.g. ``₹300.00``)."""
    symbol = {"INR": "₹", "USD": "$", "EUR": "€", "GBP": "£"}.get(currency, "")
    return f"{symbol}{amount_minor / 100:.2f}"


# ============================================================================
# Not Found
# ============================================================================


class NotFoundError(DomainError):
    """Base class for missing entities."""

    code = "NOT_FOUND"


class OrderNotFoundError(NotFoundError):
    """Raised when an order does not exist."""

    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str) -> None:
        super().__init__(
            f"Order with ID {order_id} not found",
            details={"order_id": order_id},
        )


class PayoutNotFoundError(NotFoundError):
    """Raised when a payout does not exist or belongs to another seller."""

    code = "PAYOUT_NOT_FOUND"

    def __init__(self, payout_id: str) -> None:
        super().__init__(
            f"Payout with ID {payout_id} not found",
            details={"payout_id": payout_id},
        )


# ============================================================================
# State Machine Errors
# ============================================================================


class InvalidStateTransitionError(DomainError):
    """Raised when a status change is not an edge of its transition graph."""

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        allowed = allowed_transitions or []
        super().__init__(
            f"Cannot transition {entity_type}({entity_id}) "
            f"from '{current_state}' to '{target_state}'. "
            f"Allowed transitions: {allowed}",
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )


class ConcurrentModificationError(DomainError):
    """Raised when an entity kept changing underneath a conditional write."""

    code = "CONCURRENT_MODIFICATION"

    def __init__(self, entity_type: str, entity_id: str, attempts: int) -> None:
        super().__init__(
            f"{entity_type}({entity_id}) was modified concurrently; "
            f"gave up after {attempts} attempts",
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "attempts": attempts,
            },
        )


# ============================================================================
# Order Errors
# ============================================================================


class OrderError(DomainError):
    """Base class for order-related errors."""

    pass


class UnauthorizedOrderAccessError(OrderError):
    """Raised when a seller acts on an order holding none of their items."""

    code = "UNAUTHORIZED_ORDER_ACCESS"

    def __init__(self, order_id: str, seller_id: str | None) -> None:
        super().__init__(
            f"Seller {seller_id} is not authorized to access order {order_id}",
            details={"order_id": order_id, "seller_id": seller_id},
        )


class CancellationReasonRequiredError(OrderError):
    """Raised when an order is cancelled without a reason."""

    code = "CANCELLATION_REASON_REQUIRED"

    def __init__(self, order_id: str) -> None:
        super().__init__(
            f"A cancellation reason is required to cancel order {order_id}",
            details={"order_id": order_id},
        )


class InvalidLineItemError(OrderError):
    """Raised when a line item has a non-positive quantity."""

    code = "INVALID_LINE_ITEM"

    def __init__(self, product_id: str, quantity: int) -> None:
        super().__init__(
            f"Invalid quantity {quantity} for product {product_id}",
            details={"product_id": product_id, "quantity": quantity},
        )


# ============================================================================
# Payout Errors
# ============================================================================


class PayoutError(DomainError):
    """Base class for payout-related errors."""

    pass


class InvalidPayoutAmountError(PayoutError):
    """Raised when a payout amount is zero or negative."""

    code = "INVALID_PAYOUT_AMOUNT"

    def __init__(self, amount: int) -> None:
        super().__init__(
            f"Valid payout amount is required, got {amount}",
            details={"requested": amount},
        )


class InsufficientBalanceError(PayoutError):
    """Raised when a payout exceeds the seller's available balance."""

    code = "INSUFFICIENT_BALANCE"

    def __init__(self, available: int, requested: int, currency: str = "INR") -> None:
        super().__init__(
            f"Insufficient balance. Available: {format_amount(available, currency)}, "
            f"Requested: {format_amount(requested, currency)}",
            details={"available": available, "requested": requested},
        )


class PayoutNotPendingError(PayoutError):
    """Raised when cancelling a payout that already left ``pending``."""

    code = "PAYOUT_NOT_PENDING"

    def __init__(self, payout_id: str, current_status: str) -> None:
        super().__init__(
            f"Only pending payouts can be cancelled; payout {payout_id} is '{current_status}'",
            details={"payout_id": payout_id, "current_status": current_status},
        )


# ============================================================================
# Money Errors
# ============================================================================


class MoneyError(DomainError):
    """Base class for money-related errors."""

    pass


class CurrencyMismatchError(MoneyError):
    """Raised when combining amounts in different currencies."""

    code = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str) -> None:
        super().__init__(
            f"Cannot combine money with different currencies: {currency1} and {currency2}",
            details={"currency1": currency1, "currency2": currency2},
        )


class NegativeMoneyError(MoneyError):
    """Raised when an amount would drop below zero."""

    code = "NEGATIVE_MONEY"

    def __init__(self, amount: int) -> None:
        super().__init__(
            f"Money amount cannot be negative: {amount}",
            details={"amount": amount},
        )
