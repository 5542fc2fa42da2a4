"""API schemas for the back office API.

Pydantic models for request/response validation and serialization.
Amounts are always integers in the smallest currency unit.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# ============================================================================
# Common Schemas
# ============================================================================


class PriceSchema(BaseModel):
    """Price representation."""

    amount: int = Field(..., description="Amount in smallest currency unit (paise)")
    currency: str = Field(default="INR", description="Currency code")


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | list[Any] = Field(default_factory=dict, description="Values involved in the error")
    request_id: str | None = Field(default=None, description="Request ID for correlation")


class PaginatedResponse(BaseModel):
    """Base for paginated responses."""

    total: int = Field(..., description="Total number of items")
    page: int = Field(..., description="Current page number")
    limit: int = Field(..., description="Items per page")
    has_more: bool = Field(..., description="Whether there are more pages")


# ============================================================================
# Order Schemas
# ============================================================================


class OrderStatusEnum(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PaymentStatusEnum(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class OrderItemSchema(BaseModel):
    """Line item in an order."""

    product_id: str
    seller_id: str
    product_name: str
    quantity: int
    unit_price: PriceSchema
    line_total: PriceSchema


class OrderAddressSchema(BaseModel):
    name: str
    line1: str
    line2: str | None = None
    city: str
    state: str | None = None
    postal_code: str
    country: str
    phone: str | None = None


class OrderResponse(BaseModel):
    """Full order details."""

    id: str
    order_number: str
    order_status: OrderStatusEnum
    payment_status: PaymentStatusEnum
    items: list[OrderItemSchema]
    shipping_address: OrderAddressSchema
    billing_address: OrderAddressSchema | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    total: PriceSchema
    tracking_number: str | None = None
    carrier: str | None = None
    notes: str | None = None
    cancellation_reason: str | None = None
    version: int
    created_at: datetime
    updated_at: datetime
    confirmed_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None


class OrderStatusUpdateRequest(BaseModel):
    """Request to move an order to a new status."""

    status: OrderStatusEnum = Field(..., description="Target order status")
    notes: str | None = Field(default=None, max_length=2000)
    tracking_number: str | None = Field(default=None, max_length=100)
    reason: str | None = Field(default=None, max_length=500, description="Required when cancelling")


class PaymentStatusUpdateRequest(BaseModel):
    payment_status: PaymentStatusEnum = Field(..., description="Target payment status")


class OrderCancelRequest(BaseModel):
    reason: str = Field(..., max_length=500, description="Reason for cancellation")


class TrackingUpdateRequest(BaseModel):
    tracking_number: str = Field(..., min_length=1, max_length=100)
    carrier: str = Field(..., min_length=1, max_length=100)


class NotesUpdateRequest(BaseModel):
    notes: str = Field(..., max_length=2000)


# ============================================================================
# Earnings Schemas
# ============================================================================


class EarningsSummaryResponse(BaseModel):
    """Seller earnings for a period."""

    period: str
    period_start: datetime | None
    period_end: datetime
    total_revenue: PriceSchema
    completed_revenue: PriceSchema
    pending_revenue: PriceSchema
    platform_fees: PriceSchema
    growth: float = Field(..., description="Percent change of total revenue against the previous period")
    total_payouts: PriceSchema
    pending_payouts: PriceSchema
    order_count: int


class EarningStatusEnum(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"


class EarningTransactionSchema(BaseModel):
    order_id: str
    order_number: str
    customer_name: str | None
    customer_email: str | None
    product_names: list[str]
    order_amount: PriceSchema
    platform_fee: PriceSchema
    seller_amount: PriceSchema
    status: EarningStatusEnum
    order_date: datetime


class EarningTransactionsResponse(PaginatedResponse):
    items: list[EarningTransactionSchema]


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"


# ============================================================================
# Payout Schemas
# ============================================================================


class PayoutStatusEnum(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class BankDetailsSchema(BaseModel):
    """Destination account for a payout."""

    account_number: str = Field(..., min_length=4, max_length=34)
    ifsc_code: str = Field(..., min_length=11, max_length=11, description="Indian Financial System Code")
    account_holder_name: str = Field(..., min_length=1, max_length=255)
    bank_name: str = Field(..., min_length=1, max_length=255)


class PayoutCreateRequest(BaseModel):
    """Seller payout request."""

    amount: int = Field(..., description="Requested amount in paise")
    bank_details: BankDetailsSchema


class PayoutActionRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=1000)


class PayoutRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class PayoutResponse(BaseModel):
    id: str
    seller_id: str
    amount: PriceSchema
    status: PayoutStatusEnum
    account_number: str = Field(..., description="Masked destination account number")
    ifsc_code: str
    account_holder_name: str
    bank_name: str
    notes: str | None = None
    requested_at: datetime
    processed_at: datetime | None = None
    cancelled_at: datetime | None = None


class PayoutsListResponse(PaginatedResponse):
    items: list[PayoutResponse]


class BalanceResponse(BaseModel):
    seller_id: str
    available_balance: PriceSchema


# ============================================================================
# Finance Schemas
# ============================================================================


class FinanceOverviewResponse(BaseModel):
    """Marketplace totals at the commission rate."""

    period: str
    total_revenue: PriceSchema
    total_commission: PriceSchema
    total_payouts: PriceSchema
    pending_payouts: PriceSchema
    net_profit: int = Field(..., description="Commission minus completed payouts, may be negative")
    commission_rate: float


class TopSellerSchema(BaseModel):
    seller_id: str
    revenue: PriceSchema
    commission: PriceSchema
    order_count: int


class TopSellersResponse(BaseModel):
    items: list[TopSellerSchema]
