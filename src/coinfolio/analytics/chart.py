"""Combine per-asset price series into joint chart rows."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from coinfolio.core.models import ChartPoint, PortfolioAsset, PriceSeries


def combine_series(
    series: Sequence[PriceSeries],
    portfolio_assets: Sequence[PortfolioAsset] | None = None,
) -> list[ChartPoint]:
    """Align price series on the first series' timestamps.

    Parameters
    ----------
    series : Sequence[PriceSeries]
        One series per asset. The first one defines the row timestamps.
    portfolio_assets : Sequence[PortfolioAsset] | None
        When given, each row also gets a ``portfolio_value``.

    Returns
    -------
    list[ChartPoint]
        One row per distinct timestamp of the first series, in order. An
        asset appears in a row only if it has an observation at exactly
        that timestamp; nothing is interpolated.
    """
    if not series or series[0].is_empty:
        return []

    timestamps = list(dict.fromkeys(series[0].timestamps()))
    lookups = [(s.asset_id, _first_price_by_timestamp(s)) for s in series]

    rows: list[ChartPoint] = []
    for ts in timestamps:
        prices: dict[str, float] = {}
        for asset_id, by_ts in lookups:
            if ts in by_ts:
                prices[asset_id] = by_ts[ts]

        rows.append(
            ChartPoint(
                timestamp=ts,
                date=_iso_date(ts),
                prices=prices,
                portfolio_value=(
                    portfolio_value(prices, portfolio_assets)
                    if portfolio_assets is not None
                    else None
                ),
            )
        )
    return rows


def portfolio_value(
    prices: dict[str, float], portfolio_assets: Sequence[PortfolioAsset]
) -> float:
    """Share-count-implied portfolio value at one timestamp.

    Sums ``price * allocation/100 * (value / current_price)`` over assets
    with a positive allocation and a price at this timestamp.
    """
    total = 0.0
    for asset in portfolio_assets:
        if asset.allocation <= 0 or asset.id not in prices:
            continue
        if asset.current_price == 0:
            continue
        total += prices[asset.id] * (asset.allocation / 100) * (asset.value / asset.current_price)
    return total


def _first_price_by_timestamp(series: PriceSeries) -> dict[int, float]:
    by_ts: dict[int, float] = {}
    for point in series.points:
        by_ts.setdefault(point.timestamp, point.price)
    return by_ts


def _iso_date(timestamp_ms: int) -> str:
    """Epoch milliseconds -> ``2024-01-01T00:00:00.000Z``."""
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")
