"""Pydantic data models — the system's type contracts."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator

# --- Type Aliases ---

AssetId = str
Timestamp = int

# --- Enumerations ---


class TimeRange(StrEnum):
    """Chart time ranges offered to portfolio consumers."""

    ONE_DAY = "1D"
    ONE_WEEK = "7D"
    ONE_MONTH = "30D"
    THREE_MONTHS = "90D"
    ONE_YEAR = "1Y"


class ProviderName(StrEnum):
    """Built-in market-data providers."""

    COINGECKO = "coingecko"
    CRYPTOCOMPARE = "cryptocompare"
    COINMARKETCAP = "coinmarketcap"


class RiskLevel(StrEnum):
    """Volatility bands used for display."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AssetSortKey(StrEnum):
    """Columns a portfolio asset list can be sorted by."""

    NAME = "name"
    PRICE = "price"
    CHANGE_24H = "change_24h"
    CHANGE_7D = "change_7d"
    MARKET_CAP = "market_cap"


_TIME_RANGE_DAYS: dict[str, int] = {
    TimeRange.ONE_DAY: 1,
    TimeRange.ONE_WEEK: 7,
    TimeRange.ONE_MONTH: 30,
    TimeRange.THREE_MONTHS: 90,
    TimeRange.ONE_YEAR: 365,
}

DEFAULT_DAYS = 7


def time_range_days(label: TimeRange | str) -> int:
    """Map a time-range label to a day count. Unknown labels map to 7."""
    return _TIME_RANGE_DAYS.get(str(label), DEFAULT_DAYS)


# --- Market Data Models ---


class Asset(BaseModel):
    """Market snapshot for a single asset, normalized across providers."""

    model_config = ConfigDict(frozen=True)

    id: AssetId
    symbol: str
    name: str
    current_price: float
    price_change_24h: float | None = None
    price_change_7d: float | None = None
    market_cap: float = 0.0
    image: str = ""
    sparkline_7d: list[float] | None = None

    @field_validator("id")
    @classmethod
    def id_is_slug(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("asset id must not be empty")
        return v

    @field_validator("current_price", "market_cap")
    @classmethod
    def non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"must be >= 0, got {v}")
        return v


class SearchResult(BaseModel):
    """Lightweight match record returned by asset search."""

    model_config = ConfigDict(frozen=True)

    id: AssetId
    name: str
    symbol: str
    thumb: str = ""


class PricePoint(BaseModel):
    """A single (timestamp, price) observation. Timestamp is epoch ms."""

    model_config = ConfigDict(frozen=True)

    timestamp: Timestamp
    price: float


class PriceSeries(BaseModel):
    """Ordered price observations for one asset over one time range."""

    model_config = ConfigDict(frozen=True)

    asset_id: AssetId
    points: list[PricePoint] = []

    @field_validator("points")
    @classmethod
    def timestamps_non_decreasing(cls, v: list[PricePoint]) -> list[PricePoint]:
        for prev, cur in zip(v, v[1:]):
            if cur.timestamp < prev.timestamp:
                raise ValueError(
                    f"timestamps must be non-decreasing: {cur.timestamp} < {prev.timestamp}"
                )
        return v

    @classmethod
    def from_pairs(
        cls, asset_id: AssetId, pairs: list[tuple[int, float]] | list[list[float]]
    ) -> PriceSeries:
        """Build a series from raw ``[timestamp_ms, price]`` pairs, sorted by time."""
        points = [PricePoint(timestamp=int(ts), price=float(p)) for ts, p in pairs]
        points.sort(key=lambda pt: pt.timestamp)
        return cls(asset_id=asset_id, points=points)

    @property
    def is_empty(self) -> bool:
        return not self.points

    def timestamps(self) -> list[Timestamp]:
        return [p.timestamp for p in self.points]


# --- Portfolio Models ---


class PortfolioAsset(Asset):
    """An asset with a user allocation and its derived value."""

    allocation: float = 0.0
    value: float = 0.0


class PortfolioMetrics(BaseModel):
    """Valuation, return and volatility for a portfolio."""

    model_config = ConfigDict(frozen=True)

    total_value: float = 0.0
    total_return: float = 0.0
    total_return_percentage: float = 0.0
    volatility: float = 0.0


class ChartPoint(BaseModel):
    """One row of a combined multi-asset chart.

    ``prices`` holds one entry per asset id that has an observation at
    exactly this timestamp; missing assets are absent, not zero.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: Timestamp
    date: str
    prices: dict[AssetId, float] = {}
    portfolio_value: float | None = None
