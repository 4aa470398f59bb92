"""coinfolio.core — Foundation types, config, and exceptions."""

from coinfolio.core.config import (
    APIConfig,
    CoinfolioConfig,
    FailoverConfig,
    HttpConfig,
    ProviderConfig,
    ProvidersConfig,
    load_config,
)
from coinfolio.core.exceptions import (
    AllProvidersFailedError,
    CoinfolioError,
    ConfigError,
    ProviderError,
    UnsupportedOperation,
    UpstreamError,
)
from coinfolio.core.models import (
    Asset,
    AssetId,
    AssetSortKey,
    ChartPoint,
    PortfolioAsset,
    PortfolioMetrics,
    PricePoint,
    PriceSeries,
    ProviderName,
    RiskLevel,
    SearchResult,
    TimeRange,
    Timestamp,
    time_range_days,
)

__all__ = [
    # Type aliases
    "AssetId",
    "Timestamp",
    # Enums
    "TimeRange",
    "ProviderName",
    "RiskLevel",
    "AssetSortKey",
    # Market data models
    "Asset",
    "SearchResult",
    "PricePoint",
    "PriceSeries",
    # Portfolio models
    "PortfolioAsset",
    "PortfolioMetrics",
    "ChartPoint",
    "time_range_days",
    # Config
    "CoinfolioConfig",
    "ProvidersConfig",
    "ProviderConfig",
    "FailoverConfig",
    "HttpConfig",
    "APIConfig",
    "load_config",
    # Exceptions
    "CoinfolioError",
    "ConfigError",
    "ProviderError",
    "UpstreamError",
    "UnsupportedOperation",
    "AllProvidersFailedError",
]
