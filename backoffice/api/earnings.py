"""Seller earnings endpoints."""

from fastapi import APIRouter, Query, Response

from backoffice.api.converters import price
from backoffice.api.dependencies import Container, SellerActor
from backoffice.api.schemas import (
    EarningStatusEnum,
    EarningsSummaryResponse,
    EarningTransactionSchema,
    EarningTransactionsResponse,
    ErrorResponse,
    ExportFormat,
)
from backoffice.domain.earnings import EarningStatus

router = APIRouter(prefix="/earnings", tags=["Earnings"])


@router.get(
    "/summary",
    response_model=EarningsSummaryResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Get earnings summary",
)
async def get_earnings_summary(
    container: Container,
    actor: SellerActor,
    period: str = Query(default="30days", description="7days, 30days, 90days, 1year or all"),
) -> EarningsSummaryResponse:
    """Revenue, fees and payouts for the calling seller over a period.

    Unknown periods fall back to ``30days``.
    """
    summary = await container.earnings.get_earnings_summary(actor.seller_id, period)
    return EarningsSummaryResponse(
        period=summary.period.name,
        period_start=summary.period.start,
        period_end=summary.period.end,
        total_revenue=price(summary.total_revenue),
        completed_revenue=price(summary.completed_revenue),
        pending_revenue=price(summary.pending_revenue),
        platform_fees=price(summary.platform_fees),
        growth=summary.growth,
        total_payouts=price(summary.total_payouts),
        pending_payouts=price(summary.pending_payouts),
        order_count=summary.order_count,
    )


@router.get(
    "/transactions",
    response_model=EarningTransactionsResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="List earning transactions",
)
async def list_transactions(
    container: Container,
    actor: SellerActor,
    page: int = Query(default=1, ge=1, description="Page number"),
    limit: int = Query(default=10, ge=1, le=100, description="Items per page"),
    status: EarningStatusEnum | None = Query(default=None, description="Filter by classification"),
    search: str | None = Query(default=None, max_length=100, description="Order number or customer"),
) -> EarningTransactionsResponse:
    result = await container.earnings.list_transactions(
        actor.seller_id,
        page=page,
        limit=limit,
        status=EarningStatus(status.value) if status else None,
        search=search,
    )
    return EarningTransactionsResponse(
        items=[
            EarningTransactionSchema(
                order_id=row.order_id,
                order_number=row.order_number,
                customer_name=row.customer_name,
                customer_email=row.customer_email,
                product_names=list(row.product_names),
                order_amount=price(row.order_amount),
                platform_fee=price(row.platform_fee),
                seller_amount=price(row.seller_amount),
                status=EarningStatusEnum(row.status.value),
                order_date=row.order_date,
            )
            for row in result.transactions
        ],
        total=result.total,
        page=result.page,
        limit=result.limit,
        has_more=result.page < result.total_pages,
    )


@router.get(
    "/export",
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Export earnings",
)
async def export_earnings(
    container: Container,
    actor: SellerActor,
    period: str = Query(default="30days"),
    format: ExportFormat = Query(default=ExportFormat.CSV),
) -> Response:
    """Download the seller's transactions as CSV or JSON."""
    export = await container.earnings.export_earnings(actor.seller_id, period, format.value)
    return Response(
        content=export.content,
        media_type=export.content_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
