"""FastAPI route definitions for the coinfolio API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

import coinfolio
from coinfolio.analytics.service import PortfolioService, PortfolioSnapshot
from coinfolio.api.deps import get_client, get_service
from coinfolio.api.schemas import AnalyzeRequest, ErrorResponse, HealthResponse
from coinfolio.core.models import Asset, PriceSeries, SearchResult, TimeRange, time_range_days
from coinfolio.providers.failover import FailoverClient

router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse, "description": "All providers failed"},
    }
)


# -- Health --


@router.get("/health", response_model=HealthResponse)
async def health_check(client: FailoverClient = Depends(get_client)):
    """Service status and which providers are currently marked failed."""
    return HealthResponse(
        status="ok",
        version=coinfolio.__version__,
        providers=client.health(),
    )


# -- Assets --


@router.get("/assets/top", response_model=list[Asset])
async def top_assets(
    limit: int = Query(100, ge=1, le=250),
    client: FailoverClient = Depends(get_client),
):
    """Top assets by market cap."""
    return await client.get_top_assets(limit)


@router.get("/assets/search", response_model=list[SearchResult])
async def search_assets(
    q: str = Query(..., min_length=1, description="Search text"),
    client: FailoverClient = Depends(get_client),
):
    """Search assets by name or symbol."""
    return await client.search_assets(q)


@router.get("/assets", response_model=list[Asset])
async def assets_by_ids(
    ids: str = Query("", description="Comma-separated asset ids"),
    client: FailoverClient = Depends(get_client),
):
    """Market snapshots for specific asset ids."""
    id_list = [i.strip().lower() for i in ids.split(",") if i.strip()]
    return await client.get_assets_by_ids(id_list)


@router.get("/assets/{asset_id}/history", response_model=PriceSeries)
async def price_history(
    asset_id: str,
    time_range: TimeRange = Query(TimeRange.ONE_WEEK, alias="range"),
    days: int | None = Query(None, ge=1, description="Overrides range"),
    client: FailoverClient = Depends(get_client),
):
    """USD price history for one asset."""
    return await client.get_price_history(
        asset_id.lower(), days if days is not None else time_range_days(time_range)
    )


# -- Portfolio --


@router.post("/portfolio/analyze", response_model=PortfolioSnapshot)
async def analyze_portfolio(
    body: AnalyzeRequest,
    service: PortfolioService = Depends(get_service),
):
    """Valuation, return, volatility and chart rows for an allocation set."""
    return await service.analyze(body.allocations, body.total_value, body.time_range)
