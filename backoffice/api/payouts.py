"""Payout endpoints.

Sellers request, list and cancel their own payouts; admins move
payouts through processing to completion or rejection.
"""

from fastapi import APIRouter, Query, status

from backoffice.api.converters import payout_to_response, price
from backoffice.api.dependencies import AdminActor, Container, CurrentActor, SellerActor
from backoffice.api.errors import raise_for_error
from backoffice.api.schemas import (
    BalanceResponse,
    ErrorResponse,
    PayoutActionRequest,
    PayoutCreateRequest,
    PayoutRejectRequest,
    PayoutResponse,
    PayoutsListResponse,
    PayoutStatusEnum,
)
from backoffice.application.payout_service import PayoutResult
from backoffice.domain.state_machines import PayoutStatus
from backoffice.domain.value_objects import BankDetails

router = APIRouter(prefix="/payouts", tags=["Payouts"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def _respond(result: PayoutResult) -> PayoutResponse:
    if not result.success or result.payout is None:
        raise_for_error(result.error_code, result.error, result.details)
    return payout_to_response(result.payout)


# ============================================================================
# Seller Endpoints
# ============================================================================


@router.get(
    "",
    response_model=PayoutsListResponse,
    responses=ERROR_RESPONSES,
    summary="List payouts",
)
async def list_payouts(
    container: Container,
    actor: CurrentActor,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: PayoutStatusEnum | None = Query(default=None, description="Filter by status"),
    seller_id: str | None = Query(default=None, description="Filter by seller (admins only)"),
) -> PayoutsListResponse:
    """Payout history, newest first. Sellers only see their own."""
    if not actor.is_privileged:
        seller_id = actor.seller_id
    result = await container.payouts.list_payouts(
        seller_id=seller_id,
        status=PayoutStatus(status.value) if status else None,
        page=page,
        limit=limit,
    )
    return PayoutsListResponse(
        items=[payout_to_response(payout) for payout in result.payouts],
        total=result.total,
        page=result.page,
        limit=result.limit,
        has_more=result.page * result.limit < result.total,
    )


@router.post(
    "",
    response_model=PayoutResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**ERROR_RESPONSES, 422: {"model": ErrorResponse}},
    summary="Request payout",
)
async def request_payout(
    request: PayoutCreateRequest,
    container: Container,
    actor: SellerActor,
) -> PayoutResponse:
    """Request a payout of part of the available balance.

    Raises:
        HTTPException: 422 for a non-positive amount, 400 with
            ``available`` and ``requested`` details when the balance is short.
    """
    bank = request.bank_details
    result = await container.payouts.request_payout(
        actor.seller_id,
        request.amount,
        BankDetails(
            account_number=bank.account_number,
            ifsc_code=bank.ifsc_code.upper(),
            account_holder_name=bank.account_holder_name,
            bank_name=bank.bank_name,
        ),
    )
    return _respond(result)


@router.get(
    "/balance",
    response_model=BalanceResponse,
    responses=ERROR_RESPONSES,
    summary="Get available balance",
)
async def get_balance(container: Container, actor: SellerActor) -> BalanceResponse:
    balance = await container.payouts.available_balance(actor.seller_id)
    return BalanceResponse(seller_id=actor.seller_id, available_balance=price(balance))


@router.get(
    "/{payout_id}",
    response_model=PayoutResponse,
    responses=ERROR_RESPONSES,
    summary="Get payout",
)
async def get_payout(payout_id: str, container: Container, actor: CurrentActor) -> PayoutResponse:
    return _respond(await container.payouts.get_payout(payout_id, actor))


@router.post(
    "/{payout_id}/cancel",
    response_model=PayoutResponse,
    responses=ERROR_RESPONSES,
    summary="Cancel payout",
    description="Cancel one of your payouts while it is still pending.",
)
async def cancel_payout(payout_id: str, container: Container, actor: SellerActor) -> PayoutResponse:
    return _respond(await container.payouts.cancel_payout(actor.seller_id, payout_id))


# ============================================================================
# Admin Endpoints
# ============================================================================


@router.post(
    "/{payout_id}/approve",
    response_model=PayoutResponse,
    responses=ERROR_RESPONSES,
    summary="Approve payout",
)
async def approve_payout(
    payout_id: str,
    container: Container,
    actor: AdminActor,
    request: PayoutActionRequest | None = None,
) -> PayoutResponse:
    notes = request.notes if request else None
    return _respond(await container.payouts.approve_payout(payout_id, actor, notes))


@router.post(
    "/{payout_id}/process",
    response_model=PayoutResponse,
    responses=ERROR_RESPONSES,
    summary="Mark payout as processing",
)
async def process_payout(
    payout_id: str,
    container: Container,
    actor: AdminActor,
    request: PayoutActionRequest | None = None,
) -> PayoutResponse:
    notes = request.notes if request else None
    return _respond(await container.payouts.mark_processing(payout_id, actor, notes))


@router.post(
    "/{payout_id}/complete",
    response_model=PayoutResponse,
    responses=ERROR_RESPONSES,
    summary="Complete payout",
)
async def complete_payout(
    payout_id: str,
    container: Container,
    actor: AdminActor,
    request: PayoutActionRequest | None = None,
) -> PayoutResponse:
    notes = request.notes if request else None
    return _respond(await container.payouts.complete_payout(payout_id, actor, notes))


@router.post(
    "/{payout_id}/reject",
    response_model=PayoutResponse,
    responses=ERROR_RESPONSES,
    summary="Reject payout",
)
async def reject_payout(
    payout_id: str,
    request: PayoutRejectRequest,
    container: Container,
    actor: AdminActor,
) -> PayoutResponse:
    return _respond(await container.payouts.reject_payout(payout_id, request.reason, actor))
