"""Admin finance endpoints."""

from fastapi import APIRouter, Query

from backoffice.api.converters import price
from backoffice.api.dependencies import AdminActor, Container
from backoffice.api.schemas import (
    ErrorResponse,
    FinanceOverviewResponse,
    TopSellerSchema,
    TopSellersResponse,
)

router = APIRouter(prefix="/finance", tags=["Finance"])


@router.get(
    "/overview",
    response_model=FinanceOverviewResponse,
    responses={403: {"model": ErrorResponse}},
    summary="Marketplace finance overview",
)
async def finance_overview(
    container: Container,
    actor: AdminActor,
    period: str = Query(default="30days", description="7days, 30days, 90days, 1year or all"),
) -> FinanceOverviewResponse:
    overview = await container.finance.finance_overview(period)
    return FinanceOverviewResponse(
        period=overview.period.name,
        total_revenue=price(overview.total_revenue),
        total_commission=price(overview.total_commission),
        total_payouts=price(overview.total_payouts),
        pending_payouts=price(overview.pending_payouts),
        net_profit=overview.net_profit_cents,
        commission_rate=float(overview.commission_rate),
    )


@router.get(
    "/top-sellers",
    response_model=TopSellersResponse,
    responses={403: {"model": ErrorResponse}},
    summary="Top sellers by revenue",
)
async def top_sellers(
    container: Container,
    actor: AdminActor,
    limit: int = Query(default=10, ge=1, le=100),
) -> TopSellersResponse:
    sellers = await container.finance.top_sellers(limit)
    return TopSellersResponse(
        items=[
            TopSellerSchema(
                seller_id=seller.seller_id,
                revenue=price(seller.revenue),
                commission=price(seller.commission),
                order_count=seller.order_count,
            )
            for seller in sellers
        ]
    )
