"""Market-data provider protocol and the shared HTTP plumbing.

Architecture
------------
Every upstream is wrapped in an adapter that speaks the canonical models:

    Upstream REST API → HttpProvider subclass → Asset / PriceSeries → FailoverClient

- **MarketDataProvider** is the consumer-facing protocol. The failover
  client depends only on this interface.

- **HttpProvider** owns one ``httpx.AsyncClient`` and a token-bucket rate
  limiter. Subclasses only build URLs and normalize wire shapes.

A provider that cannot serve a capability raises ``UnsupportedOperation``;
any transport or status problem surfaces as ``UpstreamError``.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import httpx
from aiolimiter import AsyncLimiter

from coinfolio.core.config import HttpConfig, ProviderConfig
from coinfolio.core.exceptions import UnsupportedOperation, UpstreamError
from coinfolio.core.models import Asset, PriceSeries, SearchResult

logger = logging.getLogger(__name__)


@runtime_checkable
class MarketDataProvider(Protocol):
    """Uniform capability interface over one named upstream."""

    name: str

    async def get_top_assets(self, limit: int) -> list[Asset]:
        """Top assets by market cap, descending, at most ``limit`` long."""
        ...

    async def search_assets(self, query: str) -> list[SearchResult]:
        """Free-text asset search."""
        ...

    async def get_price_history(self, asset_id: str, days: int) -> PriceSeries:
        """USD prices covering roughly ``days`` days.

        Hourly granularity when ``days <= 1``, daily otherwise.
        """
        ...

    async def get_assets_by_ids(self, ids: list[str]) -> list[Asset]:
        """Snapshots for the given ids, market cap descending."""
        ...

    async def aclose(self) -> None: ...


class HttpProvider:
    """Base class for providers backed by a JSON REST API.

    Parameters
    ----------
    config : ProviderConfig
        Base URL, rate limit and optional API key for this upstream.
    http : HttpConfig | None
        Shared transport settings (timeout, user agent).
    client : httpx.AsyncClient | None
        Injected client, mainly for tests. Closed by ``aclose`` only when
        the provider created it.
    """

    name: str = "http"

    def __init__(
        self,
        config: ProviderConfig,
        http: HttpConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        http = http or HttpConfig()
        self._config = config
        self._base_url = config.base_url
        self._limiter = AsyncLimiter(max_rate=config.rate_limit, time_period=1.0)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": http.user_agent, "Accept": "application/json"},
            timeout=httpx.Timeout(http.request_timeout),
            follow_redirects=True,
        )

    async def __aenter__(self) -> HttpProvider:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this provider owns it."""
        if self._owns_client:
            await self._client.aclose()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self._base_url!r})"

    # --- Capabilities (refused unless a subclass overrides) ---

    async def get_top_assets(self, limit: int) -> list[Asset]:
        raise self._unsupported("get_top_assets")

    async def search_assets(self, query: str) -> list[SearchResult]:
        raise self._unsupported("search_assets")

    async def get_price_history(self, asset_id: str, days: int) -> PriceSeries:
        raise self._unsupported("get_price_history")

    async def get_assets_by_ids(self, ids: list[str]) -> list[Asset]:
        raise self._unsupported("get_assets_by_ids")

    # --- Helpers ---

    def _unsupported(self, operation: str, reason: str = "not implemented") -> UnsupportedOperation:
        return UnsupportedOperation(
            f"{self.name} {operation} {reason}",
            context={"provider": self.name, "operation": operation},
        )

    async def _get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET ``base_url + path`` and decode the JSON body.

        Raises
        ------
        UpstreamError
            On a non-2xx status, a transport failure, or a body that is not
            valid JSON.
        """
        url = f"{self._base_url}{path}"
        await self._limiter.acquire()
        try:
            response = await self._client.get(url, params=params, headers=headers)
        except httpx.RequestError as e:
            raise UpstreamError(
                f"{self.name} request failed: {e}",
                context={"provider": self.name, "url": url, "status_code": None},
            ) from e

        if not response.is_success:
            logger.debug(
                "%s returned HTTP %d for %s: %s",
                self.name, response.status_code, url, response.text[:200],
            )
            raise UpstreamError(
                f"{self.name} API error: {response.status_code}",
                context={
                    "provider": self.name,
                    "url": url,
                    "status_code": response.status_code,
                },
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"{self.name} returned a non-JSON body",
                context={
                    "provider": self.name,
                    "url": url,
                    "status_code": response.status_code,
                },
            ) from e


def rank_by_market_cap(assets: list[Asset], limit: int | None = None) -> list[Asset]:
    """Sort assets by market cap descending (stable) and truncate to ``limit``."""
    ranked = sorted(assets, key=lambda a: a.market_cap, reverse=True)
    if limit is not None:
        ranked = ranked[: max(limit, 0)]
    return ranked


def as_float(value: Any, default: float | None = 0.0) -> float | None:
    """Coerce an upstream numeric field, tolerating nulls and strings."""
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
