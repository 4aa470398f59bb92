"""API-specific request/response schemas (Pydantic v2)."""

from __future__ import annotations

from pydantic import BaseModel, Field

from coinfolio.core.models import TimeRange


# -- Error --


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    error: str
    detail: str | None = None


# -- Health --


class HealthResponse(BaseModel):
    """Service health with per-provider failure flags."""

    status: str
    version: str
    providers: dict[str, bool]


# -- Portfolio --


class AnalyzeRequest(BaseModel):
    """Request body for POST /portfolio/analyze."""

    allocations: dict[str, float] = Field(
        ..., description="Asset id -> allocation percent", min_length=1
    )
    total_value: float = Field(10_000.0, ge=0)
    time_range: TimeRange = TimeRange.ONE_WEEK
