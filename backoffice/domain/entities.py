"""Domain entities: orders with per-seller line items, and payouts.

Orders are created by checkout (outside this service) and from then on
only their status, tracking and notes fields change. Line items are
frozen snapshots: a catalog price change never rewrites history.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Self
from uuid import uuid4

from backoffice.domain.base import AggregateRoot, ValueObject, utcnow
from backoffice.domain.events import (
    OrderDetailsUpdated,
    OrderStatusChanged,
    PaymentStatusChanged,
    PayoutRequested,
    PayoutStatusChanged,
)
from backoffice.domain.exceptions import (
    CancellationReasonRequiredError,
    InvalidLineItemError,
    PayoutNotPendingError,
    UnauthorizedOrderAccessError,
)
from backoffice.domain.state_machines import (
    OrderStatus,
    PaymentStatus,
    PayoutStatus,
    StateTransition,
    validate_transition,
)
from backoffice.domain.value_objects import Actor, Address, BankDetails, Money


# ============================================================================
# Line Item
# ============================================================================


@dataclass(frozen=True)
class LineItem(ValueObject):
    """One product entry in an order, owned by a single seller.

    Attributes:
        product_id: Catalog product reference.
        seller_id: Seller who fulfils and earns from this item.
        product_name: Product name at purchase time.
        quantity: Units ordered.
        unit_price: Price per unit at purchase time.
        line_total: ``quantity × unit_price``, fixed at creation.
    """

    product_id: str
    seller_id: str
    product_name: str
    quantity: int
    unit_price: Money
    line_total: Money

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise InvalidLineItemError(self.product_id, self.quantity)

    @classmethod
    def create(
        cls,
        product_id: str,
        seller_id: str,
        quantity: int,
        unit_price: Money,
        product_name: str = "",
    ) -> Self:
        """Build a line item, computing its total once."""
        return cls(
            product_id=product_id,
            seller_id=seller_id,
            product_name=product_name,
            quantity=quantity,
            unit_price=unit_price,
            line_total=unit_price * quantity,
        )


# ============================================================================
# Order Aggregate
# ============================================================================


@dataclass(kw_only=True)
class Order(AggregateRoot[str]):
    """Order aggregate root.

    An order may aggregate items from several sellers. Its fulfillment
    status and payment status each move forward along their own graph.

    Attributes:
        id: Internal identifier.
        order_number: Unique human-facing reference.
        items: Line items, immutable after creation.
        shipping_address: Where the order ships to.
        billing_address: Billing address, if different.
        total_amount: Grand total including shipping and tax.
        order_status: Fulfillment status.
        payment_status: Settlement status.
    """

    id: str
    order_number: str
    items: tuple[LineItem, ...]
    shipping_address: Address
    total_amount: Money
    billing_address: Address | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    order_status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    tracking_number: str | None = None
    carrier: str | None = None
    notes: str | None = None
    cancellation_reason: str | None = None
    confirmed_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None

    @classmethod
    def create(
        cls,
        order_number: str,
        items: list[LineItem],
        shipping_address: Address,
        shipping_cents: int = 0,
        tax_cents: int = 0,
        order_id: str | None = None,
        **kwargs,
    ) -> "Order":
        """Create an order the way checkout does.

        The grand total is the sum of line totals plus shipping and tax.

        Raises:
            ValueError: If the order has no items.
        """
        if not items:
            raise ValueError("Cannot create an order without items")
        currency = items[0].line_total.currency
        total = sum((item.line_total for item in items), Money.zero(currency))
        total = total + Money(shipping_cents + tax_cents, currency)
        return cls(
            id=order_id or str(uuid4()),
            order_number=order_number,
            items=tuple(items),
            shipping_address=shipping_address,
            total_amount=total,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    @property
    def currency(self) -> str:
        return self.total_amount.currency

    @property
    def seller_ids(self) -> set[str]:
        return {item.seller_id for item in self.items}

    def has_seller(self, seller_id: str | None) -> bool:
        return seller_id is not None and any(item.seller_id == seller_id for item in self.items)

    def items_for_seller(self, seller_id: str) -> list[LineItem]:
        return [item for item in self.items if item.seller_id == seller_id]

    def authorize(self, actor: Actor) -> None:
        """Check that ``actor`` may act on this order.

        Raises:
            UnauthorizedOrderAccessError: If a seller owns none of the items.
        """
        if actor.is_privileged:
            return
        if not self.has_seller(actor.seller_id):
            raise UnauthorizedOrderAccessError(self.id, actor.seller_id)

    # -------------------------------------------------------------------------
    # State Transitions
    # -------------------------------------------------------------------------

    def transition_to(
        self,
        target: OrderStatus,
        actor: Actor,
        reason: str | None = None,
        notes: str | None = None,
        tracking_number: str | None = None,
        now: datetime | None = None,
    ) -> StateTransition[OrderStatus]:
        """Move the order to ``target`` and apply its side effects.

        Side effects:
            - delivered: payment becomes paid unless it already is (or was
              refunded); ``delivered_at`` is stamped.
            - confirmed / shipped: the matching timestamp is stamped once.
            - cancelled: ``cancelled_at`` and the reason are stored.

        Raises:
            InvalidStateTransitionError: If ``target`` is not reachable.
            CancellationReasonRequiredError: If cancelling without a reason.
        """
        validate_transition("Order", self.id, self.order_status, target)
        if target == OrderStatus.CANCELLED and not (reason and reason.strip()):
            raise CancellationReasonRequiredError(self.id)

        now = now or utcnow()
        from_status = self.order_status

        if target == OrderStatus.CONFIRMED and self.confirmed_at is None:
            self.confirmed_at = now
        elif target == OrderStatus.SHIPPED and self.shipped_at is None:
            self.shipped_at = now
        elif target == OrderStatus.DELIVERED:
            if self.delivered_at is None:
                self.delivered_at = now
            if self.payment_status.can_transition_to(PaymentStatus.PAID):
                self._set_payment_status(PaymentStatus.PAID, actor, implicit=True)
        elif target == OrderStatus.CANCELLED:
            self.cancelled_at = now
            self.cancellation_reason = reason.strip()

        if tracking_number:
            self.tracking_number = tracking_number
        if notes:
            self.notes = notes

        self.order_status = target
        self._touch(now)
        self._record_event(
            OrderStatusChanged(
                aggregate_id=self.id,
                aggregate_type="Order",
                order_number=self.order_number,
                from_status=from_status.value,
                to_status=target.value,
                actor=str(actor),
                reason=reason,
            )
        )
        return StateTransition(from_state=from_status, to_state=target)

    def transition_payment_to(
        self,
        target: PaymentStatus,
        actor: Actor,
        now: datetime | None = None,
    ) -> StateTransition[PaymentStatus]:
        """Move the payment status to ``target``.

        Raises:
            InvalidStateTransitionError: If ``target`` is not reachable.
        """
        validate_transition("Payment", self.id, self.payment_status, target)
        from_status = self.payment_status
        self._set_payment_status(target, actor)
        self._touch(now)
        return StateTransition(from_state=from_status, to_state=target)

    def _set_payment_status(self, target: PaymentStatus, actor: Actor, implicit: bool = False) -> None:
        from_status = self.payment_status
        self.payment_status = target
        self._record_event(
            PaymentStatusChanged(
                aggregate_id=self.id,
                aggregate_type="Order",
                order_number=self.order_number,
                from_status=from_status.value,
                to_status=target.value,
                actor=str(actor),
                implicit=implicit,
            )
        )

    # -------------------------------------------------------------------------
    # Detail Updates
    # -------------------------------------------------------------------------

    def update_tracking(
        self,
        tracking_number: str,
        carrier: str,
        actor: Actor,
        now: datetime | None = None,
    ) -> None:
        self.tracking_number = tracking_number
        self.carrier = carrier
        self._touch(now)
        self._record_event(
            OrderDetailsUpdated(
                aggregate_id=self.id,
                aggregate_type="Order",
                order_number=self.order_number,
                fields=("tracking_number", "carrier"),
                actor=str(actor),
            )
        )

    def set_notes(self, notes: str, actor: Actor, now: datetime | None = None) -> None:
        self.notes = notes
        self._touch(now)
        self._record_event(
            OrderDetailsUpdated(
                aggregate_id=self.id,
                aggregate_type="Order",
                order_number=self.order_number,
                fields=("notes",),
                actor=str(actor),
            )
        )


# ============================================================================
# Payout Aggregate
# ============================================================================


@dataclass(kw_only=True)
class Payout(AggregateRoot[str]):
    """Seller withdrawal request.

    Payouts are never deleted; they form the financial audit trail.

    Attributes:
        id: Payout identifier.
        seller_id: Requesting seller.
        amount: Requested amount.
        bank_details: Destination account.
        status: Lifecycle status.
        notes: Admin notes, e.g. a rejection reason.
    """

    id: str
    seller_id: str
    amount: Money
    bank_details: BankDetails
    status: PayoutStatus = PayoutStatus.PENDING
    notes: str | None = None
    requested_at: datetime = field(default_factory=utcnow)
    processed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @classmethod
    def request(
        cls,
        seller_id: str,
        amount: Money,
        bank_details: BankDetails,
        now: datetime | None = None,
    ) -> "Payout":
        """Create a pending payout request."""
        now = now or utcnow()
        payout = cls(
            id=str(uuid4()),
            seller_id=seller_id,
            amount=amount,
            bank_details=bank_details,
            requested_at=now,
            created_at=now,
            updated_at=now,
        )
        payout._record_event(
            PayoutRequested(
                aggregate_id=payout.id,
                aggregate_type="Payout",
                seller_id=seller_id,
                amount_cents=amount.amount_cents,
                currency=amount.currency,
            )
        )
        return payout

    def transition_to(
        self,
        target: PayoutStatus,
        actor: Actor,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> StateTransition[PayoutStatus]:
        """Move the payout along its lifecycle.

        Completion and failure stamp ``processed_at``; cancellation stamps
        ``cancelled_at``.

        Raises:
            InvalidStateTransitionError: If ``target`` is not reachable.
        """
        validate_transition("Payout", self.id, self.status, target)
        now = now or utcnow()
        from_status = self.status

        if target in {PayoutStatus.COMPLETED, PayoutStatus.FAILED}:
            self.processed_at = now
        elif target == PayoutStatus.CANCELLED:
            self.cancelled_at = now
        if notes:
            self.notes = notes

        self.status = target
        self._touch(now)
        self._record_event(
            PayoutStatusChanged(
                aggregate_id=self.id,
                aggregate_type="Payout",
                seller_id=self.seller_id,
                from_status=from_status.value,
                to_status=target.value,
                actor=str(actor),
                notes=notes,
            )
        )
        return StateTransition(from_state=from_status, to_state=target)

    def cancel(self, actor: Actor, now: datetime | None = None) -> StateTransition[PayoutStatus]:
        """Cancel a payout on the seller's behalf.

        Raises:
            PayoutNotPendingError: If the payout already left ``pending``.
        """
        if self.status != PayoutStatus.PENDING:
            raise PayoutNotPendingError(self.id, self.status.value)
        return self.transition_to(PayoutStatus.CANCELLED, actor, now=now)
