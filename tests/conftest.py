"""Shared pytest fixtures for coinfolio."""

from __future__ import annotations

from typing import Any

import pytest

from coinfolio.core.exceptions import UnsupportedOperation, UpstreamError
from coinfolio.core.models import Asset, PortfolioAsset, PriceSeries


class FakeProvider:
    """In-memory MarketDataProvider.

    ``responses`` maps an operation name to either a return value or an
    exception instance to raise. Operations not in the mapping raise
    ``UnsupportedOperation``.
    """

    def __init__(self, name: str, responses: dict[str, Any] | None = None):
        self.name = name
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, tuple]] = []
        self.closed = False

    async def _respond(self, operation: str, *args: Any) -> Any:
        self.calls.append((operation, args))
        if operation not in self.responses:
            raise UnsupportedOperation(f"{self.name} {operation} not implemented")
        outcome = self.responses[operation]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome(*args)
        return outcome

    async def get_top_assets(self, limit: int) -> list[Asset]:
        return await self._respond("get_top_assets", limit)

    async def search_assets(self, query: str):
        return await self._respond("search_assets", query)

    async def get_price_history(self, asset_id: str, days: int) -> PriceSeries:
        return await self._respond("get_price_history", asset_id, days)

    async def get_assets_by_ids(self, ids: list[str]) -> list[Asset]:
        return await self._respond("get_assets_by_ids", ids)

    async def aclose(self) -> None:
        self.closed = True

    def call_names(self) -> list[str]:
        return [op for op, _ in self.calls]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider


@pytest.fixture
def upstream_error():
    def _make(status: int = 500) -> UpstreamError:
        return UpstreamError(f"API error: {status}", context={"status_code": status})

    return _make


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def bitcoin() -> Asset:
    return Asset(
        id="bitcoin",
        symbol="btc",
        name="Bitcoin",
        current_price=45000.0,
        price_change_24h=10.0,
        price_change_7d=5.2,
        market_cap=850_000_000_000.0,
        image="https://assets.coingecko.com/coins/images/1/large/bitcoin.png",
    )


@pytest.fixture
def ethereum() -> Asset:
    return Asset(
        id="ethereum",
        symbol="eth",
        name="Ethereum",
        current_price=3000.0,
        price_change_24h=-10.0,
        price_change_7d=3.1,
        market_cap=360_000_000_000.0,
        image="https://assets.coingecko.com/coins/images/279/large/ethereum.png",
    )


@pytest.fixture
def sample_portfolio(bitcoin, ethereum) -> list[PortfolioAsset]:
    """50/50 BTC/ETH on a $10,000 portfolio."""
    return [
        PortfolioAsset(**bitcoin.model_dump(), allocation=50.0, value=5000.0),
        PortfolioAsset(**ethereum.model_dump(), allocation=50.0, value=5000.0),
    ]
