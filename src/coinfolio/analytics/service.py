"""Portfolio analysis orchestration: fetch → combine → compute."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict

from coinfolio.analytics.chart import combine_series
from coinfolio.analytics.metrics import compute_metrics, risk_level
from coinfolio.analytics.portfolio import (
    create_portfolio_assets,
    is_allocation_balanced,
    total_allocation,
)
from coinfolio.core.exceptions import AllProvidersFailedError
from coinfolio.core.models import (
    ChartPoint,
    PortfolioAsset,
    PortfolioMetrics,
    RiskLevel,
    TimeRange,
    time_range_days,
)
from coinfolio.providers.failover import FailoverClient

logger = logging.getLogger(__name__)


class PortfolioSnapshot(BaseModel):
    """Everything a dashboard needs to render one portfolio view."""

    model_config = ConfigDict(frozen=True)

    time_range: TimeRange
    total_value: float
    assets: list[PortfolioAsset]
    metrics: PortfolioMetrics
    risk_level: RiskLevel
    total_allocation: float
    allocation_balanced: bool
    chart: list[ChartPoint]


class PortfolioService:
    """Builds portfolio snapshots from a FailoverClient.

    Parameters
    ----------
    client : FailoverClient
        Market-data client. Not closed by this service.
    """

    def __init__(self, client: FailoverClient) -> None:
        self._client = client

    async def analyze(
        self,
        allocations: Mapping[str, float],
        total_value: float,
        time_range: TimeRange = TimeRange.ONE_WEEK,
    ) -> PortfolioSnapshot:
        """Fetch assets and history for ``allocations`` and compute metrics.

        A failed asset lookup raises ``AllProvidersFailedError``. A failed
        history lookup is logged and leaves the chart empty; metrics then
        fall back to 24h changes.
        """
        ids = [asset_id.lower() for asset_id in allocations]
        normalized = {k.lower(): v for k, v in allocations.items()}

        assets = await self._client.get_assets_by_ids(ids)
        portfolio_assets = create_portfolio_assets(assets, normalized, total_value)

        chart: list[ChartPoint] = []
        if portfolio_assets:
            days = time_range_days(time_range)
            try:
                series = await self._client.get_price_histories(ids, days)
                chart = combine_series(series, portfolio_assets)
            except AllProvidersFailedError as e:
                logger.warning("Price history unavailable for %s: %s", ids, e)

        metrics = compute_metrics(portfolio_assets, total_value, chart, time_range)
        return PortfolioSnapshot(
            time_range=time_range,
            total_value=total_value,
            assets=portfolio_assets,
            metrics=metrics,
            risk_level=risk_level(metrics.volatility),
            total_allocation=total_allocation(portfolio_assets),
            allocation_balanced=is_allocation_balanced(portfolio_assets),
            chart=chart,
        )
