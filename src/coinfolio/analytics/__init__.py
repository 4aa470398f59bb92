"""Portfolio analytics: metrics, chart combination, and orchestration."""

from coinfolio.analytics.chart import combine_series, portfolio_value
from coinfolio.analytics.metrics import compute_metrics, risk_level
from coinfolio.analytics.portfolio import (
    create_portfolio_assets,
    is_allocation_balanced,
    sort_assets,
    total_allocation,
)
from coinfolio.analytics.service import PortfolioService, PortfolioSnapshot

__all__ = [
    "compute_metrics",
    "risk_level",
    "combine_series",
    "portfolio_value",
    "create_portfolio_assets",
    "total_allocation",
    "is_allocation_balanced",
    "sort_assets",
    "PortfolioService",
    "PortfolioSnapshot",
]
