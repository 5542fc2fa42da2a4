"""Order API endpoints.

Provides endpoints for order lifecycle management:
- GET /orders/{id} - order details
- PATCH /orders/{id}/status - move along the fulfillment graph
- PATCH /orders/{id}/payment-status - move along the payment graph (admin)
- POST /orders/{id}/cancel - cancel with a reason
- PUT /orders/{id}/tracking - set tracking number and carrier
- PUT /orders/{id}/notes - set order notes
"""

from fastapi import APIRouter

from backoffice.api.converters import order_to_response
from backoffice.api.dependencies import AdminActor, Container, CurrentActor
from backoffice.api.errors import raise_for_error
from backoffice.api.schemas import (
    ErrorResponse,
    NotesUpdateRequest,
    OrderCancelRequest,
    OrderResponse,
    OrderStatusUpdateRequest,
    PaymentStatusUpdateRequest,
    TrackingUpdateRequest,
)
from backoffice.application.order_service import UpdateOrderResult
from backoffice.domain.state_machines import OrderStatus, PaymentStatus

router = APIRouter(prefix="/orders", tags=["Orders"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def _respond(result: UpdateOrderResult) -> OrderResponse:
    if not result.success or result.order is None:
        raise_for_error(result.error_code, result.error, result.details)
    return order_to_response(result.order)


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    summary="Get order details",
)
async def get_order(order_id: str, container: Container, actor: CurrentActor) -> OrderResponse:
    """Get an order by ID.

    Sellers only see orders holding at least one of their items.
    """
    result = await container.orders.get_order(order_id, actor)
    if not result.success or result.order is None:
        raise_for_error(result.error_code, result.error, result.details)
    return order_to_response(result.order)


@router.patch(
    "/{order_id}/status",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    summary="Update order status",
    description="Move an order to the next status of its fulfillment graph.",
)
async def update_order_status(
    order_id: str,
    request: OrderStatusUpdateRequest,
    container: Container,
    actor: CurrentActor,
) -> OrderResponse:
    """Update an order's status.

    Args:
        order_id: Order identifier.
        request: Target status with optional notes, tracking number and reason.
        container: Service container.
        actor: Acting admin or seller.

    Returns:
        Updated order.

    Raises:
        HTTPException: 404 if missing, 403 if not the seller's order,
            409 if the transition is not allowed.
    """
    result = await container.orders.update_status(
        order_id,
        OrderStatus(request.status.value),
        actor,
        notes=request.notes,
        tracking_number=request.tracking_number,
        reason=request.reason,
    )
    return _respond(result)


@router.patch(
    "/{order_id}/payment-status",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    summary="Update payment status",
)
async def update_payment_status(
    order_id: str,
    request: PaymentStatusUpdateRequest,
    container: Container,
    actor: AdminActor,
) -> OrderResponse:
    result = await container.orders.update_payment_status(
        order_id, PaymentStatus(request.payment_status.value), actor
    )
    return _respond(result)


@router.post(
    "/{order_id}/cancel",
    response_model=OrderResponse,
    responses={**ERROR_RESPONSES, 422: {"model": ErrorResponse}},
    summary="Cancel order",
    description="Cancel an order that has not shipped yet. A reason is required.",
)
async def cancel_order(
    order_id: str,
    request: OrderCancelRequest,
    container: Container,
    actor: CurrentActor,
) -> OrderResponse:
    result = await container.orders.cancel_order(order_id, request.reason, actor)
    return _respond(result)


@router.put(
    "/{order_id}/tracking",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    summary="Update tracking information",
)
async def update_tracking(
    order_id: str,
    request: TrackingUpdateRequest,
    container: Container,
    actor: CurrentActor,
) -> OrderResponse:
    result = await container.orders.update_tracking(order_id, request.tracking_number, request.carrier, actor)
    return _respond(result)


@router.put(
    "/{order_id}/notes",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    summary="Update order notes",
)
async def update_notes(
    order_id: str,
    request: NotesUpdateRequest,
    container: Container,
    actor: CurrentActor,
) -> OrderResponse:
    result = await container.orders.add_notes(order_id, request.notes, actor)
    return _respond(result)
