"""CoinMarketCap provider — last-resort upstream.

The pro API rejects every request without an ``X-CMC_PRO_API_KEY`` header.
With no key configured (the default) each capability raises
``UnsupportedOperation`` straight away, so the failover client moves on
without spending a request. Search and price history need a paid plan and
are always refused.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import httpx

from coinfolio.core.config import HttpConfig, ProviderConfig
from coinfolio.core.models import Asset
from coinfolio.providers.base import HttpProvider, as_float, rank_by_market_cap

_IMAGE_URL = "https://s2.coinmarketcap.com/static/img/coins/64x64/{id}.png"


class CoinMarketCapProvider(HttpProvider):
    """Listings and quotes from CoinMarketCap, only when a key is set."""

    name = "CoinMarketCap"

    def __init__(
        self,
        config: ProviderConfig,
        http: HttpConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(config, http=http, client=client)
        self._api_key = config.api_key

    async def get_top_assets(self, limit: int = 100) -> list[Asset]:
        raw = await self._get_authenticated(
            "get_top_assets",
            "/cryptocurrency/listings/latest",
            {"start": "1", "limit": str(limit), "convert": "USD"},
        )
        data = raw.get("data") or []
        return rank_by_market_cap(self._adapt_all(data), limit)

    async def get_assets_by_ids(self, ids: list[str]) -> list[Asset]:
        if not ids:
            return []
        raw = await self._get_authenticated(
            "get_assets_by_ids",
            "/cryptocurrency/quotes/latest",
            {"slug": ",".join(ids), "convert": "USD"},
        )
        data = raw.get("data") or {}
        return rank_by_market_cap(self._adapt_all(data.values()))

    async def _get_authenticated(
        self, operation: str, path: str, params: dict[str, str]
    ) -> dict[str, Any]:
        if not self._api_key:
            raise self._unsupported(operation, "requires an API key")
        raw = await self._get_json(
            path, params=params, headers={"X-CMC_PRO_API_KEY": self._api_key}
        )
        return raw if isinstance(raw, dict) else {}

    def _adapt_all(self, items: Iterable[dict[str, Any]]) -> list[Asset]:
        """Convert listing/quote entries, skipping those with no usable id."""
        assets: list[Asset] = []
        for item in items:
            asset_id = (item.get("slug") or str(item.get("name") or "")).strip().lower()
            if not asset_id:
                continue
            usd = (item.get("quote") or {}).get("USD") or {}
            assets.append(
                Asset(
                    id=asset_id,
                    symbol=str(item.get("symbol", "")).lower(),
                    name=item.get("name") or "",
                    current_price=as_float(usd.get("price")),
                    price_change_24h=as_float(usd.get("percent_change_24h"), None),
                    price_change_7d=as_float(usd.get("percent_change_7d"), None),
                    market_cap=as_float(usd.get("market_cap")),
                    image=_IMAGE_URL.format(id=item["id"]) if item.get("id") is not None else "",
                )
            )
        return assets
