"""CoinGecko provider — the primary upstream.

Uses the public ``/api/v3`` endpoints, which need no key. Query parameters
are kept exactly as the dashboard has always sent them (USD quotes, first
page, 7-day sparkline, 1h/24h/7d change windows).
"""

from __future__ import annotations

from typing import Any

from coinfolio.core.models import Asset, PriceSeries, SearchResult
from coinfolio.providers.base import HttpProvider, as_float, rank_by_market_cap

_MARKET_PARAMS: dict[str, str] = {
    "vs_currency": "usd",
    "order": "market_cap_desc",
    "sparkline": "true",
    "price_change_percentage": "1h,24h,7d",
}


class CoinGeckoProvider(HttpProvider):
    """Implements all four capabilities against CoinGecko."""

    name = "CoinGecko"

    async def get_top_assets(self, limit: int = 100) -> list[Asset]:
        params = {**_MARKET_PARAMS, "per_page": str(limit), "page": "1"}
        raw = await self._get_json("/coins/markets", params=params)
        return rank_by_market_cap(self._adapt_markets(raw), limit)

    async def search_assets(self, query: str) -> list[SearchResult]:
        raw = await self._get_json("/search", params={"query": query})
        coins = raw.get("coins", []) if isinstance(raw, dict) else []
        return [
            SearchResult(
                id=c["id"],
                name=c.get("name", ""),
                symbol=c.get("symbol", ""),
                thumb=c.get("thumb") or "",
            )
            for c in coins
            if c.get("id")
        ]

    async def get_price_history(self, asset_id: str, days: int) -> PriceSeries:
        params = {
            "vs_currency": "usd",
            "days": str(days),
            "interval": "hourly" if days <= 1 else "daily",
        }
        raw = await self._get_json(f"/coins/{asset_id}/market_chart", params=params)
        pairs = raw.get("prices", []) if isinstance(raw, dict) else []
        return PriceSeries.from_pairs(
            asset_id,
            [(ts, price) for ts, price in pairs if ts is not None and price is not None],
        )

    async def get_assets_by_ids(self, ids: list[str]) -> list[Asset]:
        if not ids:
            return []
        params = {"ids": ",".join(ids), **_MARKET_PARAMS}
        raw = await self._get_json("/coins/markets", params=params)
        return rank_by_market_cap(self._adapt_markets(raw))

    def _adapt_markets(self, raw: Any) -> list[Asset]:
        """Convert a ``/coins/markets`` array into Asset records."""
        if not isinstance(raw, list):
            return []

        assets: list[Asset] = []
        for item in raw:
            if not item.get("id"):
                continue
            sparkline = (item.get("sparkline_in_7d") or {}).get("price")
            assets.append(
                Asset(
                    id=item["id"],
                    symbol=item.get("symbol", ""),
                    name=item.get("name", ""),
                    current_price=as_float(item.get("current_price")),
                    price_change_24h=as_float(item.get("price_change_percentage_24h"), None),
                    price_change_7d=as_float(
                        item.get("price_change_percentage_7d_in_currency"), None
                    ),
                    market_cap=as_float(item.get("market_cap")),
                    image=item.get("image") or "",
                    sparkline_7d=[float(p) for p in sparkline if p is not None]
                    if sparkline
                    else None,
                )
            )
        return assets
