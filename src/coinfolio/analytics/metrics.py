"""Portfolio metrics: valuation, weighted return, volatility.

All functions here are pure and total: they never raise on well-typed
input, and degrade to zeros when data is missing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from coinfolio.core.models import (
    ChartPoint,
    PortfolioAsset,
    PortfolioMetrics,
    RiskLevel,
    TimeRange,
)

logger = logging.getLogger(__name__)

LOW_RISK_THRESHOLD = 20.0
MEDIUM_RISK_THRESHOLD = 40.0


def compute_metrics(
    assets: Sequence[PortfolioAsset],
    total_value: float,
    history: Sequence[ChartPoint] | None = None,
    time_range: TimeRange | None = None,
) -> PortfolioMetrics:
    """Compute portfolio metrics from allocations and optional price history.

    Parameters
    ----------
    assets : Sequence[PortfolioAsset]
        Assets with allocations in percent. Allocations need not sum to 100
        and are not normalized.
    total_value : float
        Portfolio value in USD. Passed through to the result.
    history : Sequence[ChartPoint] | None
        Combined chart rows. With at least two rows, each asset's return is
        measured from the first to the last row; otherwise the 24h change is
        used.
    time_range : TimeRange | None
        Range the history covers. Informational only.

    Returns
    -------
    PortfolioMetrics
        All zeros for an empty asset list.
    """
    if not assets:
        return PortfolioMetrics()

    if history is not None and len(history) >= 2:
        returns = _history_returns(assets, history[0], history[-1])
        logger.debug(
            "Using %s history returns for %d/%d assets",
            time_range or "custom", len(returns), len(assets),
        )
    else:
        returns = {a.id: a.price_change_24h or 0.0 for a in assets}

    weighted_return = 0.0
    for asset in assets:
        weighted_return += returns.get(asset.id, 0.0) * (asset.allocation / 100)

    sample = np.asarray(list(returns.values()), dtype=np.float64)
    volatility = float(np.std(sample)) if sample.size else 0.0

    return PortfolioMetrics(
        total_value=total_value,
        total_return=(weighted_return / 100) * total_value,
        total_return_percentage=weighted_return,
        volatility=volatility,
    )


def _history_returns(
    assets: Sequence[PortfolioAsset],
    first: ChartPoint,
    last: ChartPoint,
) -> dict[str, float]:
    """Percentage return per asset between two chart rows.

    Assets whose first price is missing or zero, or whose last price is
    missing, are left out.
    """
    returns: dict[str, float] = {}
    for asset in assets:
        start = first.prices.get(asset.id)
        end = last.prices.get(asset.id)
        if not start or end is None:
            continue
        returns[asset.id] = (end - start) / start * 100
    return returns


def risk_level(volatility: float) -> RiskLevel:
    """Classify volatility (percent) into display bands."""
    if volatility < LOW_RISK_THRESHOLD:
        return RiskLevel.LOW
    if volatility < MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH
