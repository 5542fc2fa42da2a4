"""Domain object to response schema converters."""

from backoffice.api.schemas import (
    OrderAddressSchema,
    OrderItemSchema,
    OrderResponse,
    OrderStatusEnum,
    PaymentStatusEnum,
    PayoutResponse,
    PayoutStatusEnum,
    PriceSchema,
)
from backoffice.domain.entities import Order, Payout
from backoffice.domain.value_objects import Address, Money


def price(money: Money) -> PriceSchema:
    return PriceSchema(amount=money.amount_cents, currency=money.currency)


def address_to_schema(address: Address) -> OrderAddressSchema:
    return OrderAddressSchema(
        name=address.name,
        line1=address.line1,
        line2=address.line2,
        city=address.city,
        state=address.state,
        postal_code=address.postal_code,
        country=address.country,
        phone=address.phone,
    )


def order_to_response(order: Order) -> OrderResponse:
    """Convert an Order aggregate to OrderResponse."""
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        order_status=OrderStatusEnum(order.order_status.value),
        payment_status=PaymentStatusEnum(order.payment_status.value),
        items=[
            OrderItemSchema(
                product_id=item.product_id,
                seller_id=item.seller_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=price(item.unit_price),
                line_total=price(item.line_total),
            )
            for item in order.items
        ],
        shipping_address=address_to_schema(order.shipping_address),
        billing_address=address_to_schema(order.billing_address) if order.billing_address else None,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        total=price(order.total_amount),
        tracking_number=order.tracking_number,
        carrier=order.carrier,
        notes=order.notes,
        cancellation_reason=order.cancellation_reason,
        version=order.version,
        created_at=order.created_at,
        updated_at=order.updated_at,
        confirmed_at=order.confirmed_at,
        shipped_at=order.shipped_at,
        delivered_at=order.delivered_at,
        cancelled_at=order.cancelled_at,
    )


def payout_to_response(payout: Payout) -> PayoutResponse:
    """Convert a Payout aggregate to PayoutResponse with a masked account."""
    return PayoutResponse(
        id=payout.id,
        seller_id=payout.seller_id,
        amount=price(payout.amount),
        status=PayoutStatusEnum(payout.status.value),
        account_number=payout.bank_details.masked_account_number(),
        ifsc_code=payout.bank_details.ifsc_code,
        account_holder_name=payout.bank_details.account_holder_name,
        bank_name=payout.bank_details.bank_name,
        notes=payout.notes,
        requested_at=payout.requested_at,
        processed_at=payout.processed_at,
        cancelled_at=payout.cancelled_at,
    )
