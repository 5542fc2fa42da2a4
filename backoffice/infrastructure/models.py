"""SQLAlchemy models for database tables.

Provides ORM models for orders, their line items, and payouts.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from backoffice.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Order Models
# ============================================================================


class OrderModel(Base):
    """Order model for database persistence.

    ``version`` is the optimistic concurrency token checked by every
    conditional status write.
    """

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_number = Column(String(50), nullable=False, unique=True, index=True)
    order_status = Column(String(20), nullable=False, default="pending", index=True)
    payment_status = Column(String(20), nullable=False, default="pending", index=True)
    version = Column(Integer, nullable=False, default=1)

    # Customer info
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)

    # Addresses
    shipping_address = Column(JSONB, nullable=False)
    billing_address = Column(JSONB, nullable=True)

    # Totals
    total_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="INR")

    # Fulfillment
    tracking_number = Column(String(100), nullable=True)
    carrier = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.position",
        lazy="selectin",
    )


class OrderItemModel(Base):
    """Line item snapshot, attributed to exactly one seller."""

    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    product_id = Column(String(100), nullable=False)
    seller_id = Column(String(100), nullable=False, index=True)
    product_name = Column(String(500), nullable=False, default="")
    quantity = Column(Integer, nullable=False)
    unit_price_cents = Column(Integer, nullable=False)
    line_total_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="INR")

    order = relationship("OrderModel", back_populates="items")


# ============================================================================
# Payout Models
# ============================================================================


class PayoutModel(Base):
    """Seller payout request. Rows are never deleted."""

    __tablename__ = "payouts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    seller_id = Column(String(100), nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    status = Column(String(20), nullable=False, default="pending", index=True)
    bank_details = Column(JSONB, nullable=False)
    notes = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    requested_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
