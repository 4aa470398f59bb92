"""CryptoCompare provider — secondary upstream.

Serves top assets and price history from ``min-api.cryptocompare.com``.
Search and id lookup are not offered by the free endpoints and are refused.

Known lossy mapping: CryptoCompare reports a per-day change
(``CHANGEPCTDAY``, since 00:00 UTC) rather than a 7-day change. It is mapped
onto ``Asset.price_change_7d`` as the nearest canonical field.
"""

from __future__ import annotations

import logging
from typing import Any

from coinfolio.core.exceptions import UpstreamError
from coinfolio.core.models import Asset, PriceSeries
from coinfolio.providers.base import HttpProvider, as_float, rank_by_market_cap

logger = logging.getLogger(__name__)

_IMAGE_BASE = "https://www.cryptocompare.com"
_HOURS_PER_DAY = 24


class CryptoCompareProvider(HttpProvider):
    """Top assets and history from CryptoCompare. No search, no id lookup."""

    name = "CryptoCompare"

    async def get_top_assets(self, limit: int = 100) -> list[Asset]:
        raw = await self._get_json(
            "/top/mktcapfull", params={"limit": str(limit), "tsym": "USD"}
        )
        self._check_response(raw, "/top/mktcapfull")
        return rank_by_market_cap(self._adapt_top(raw), limit)

    async def get_price_history(self, asset_id: str, days: int) -> PriceSeries:
        # fsym is the uppercased id; CryptoCompare keys by ticker, so slugs
        # that are not tickers come back as an error body and fail over.
        if days <= 1:
            path = "/v2/histohour"
            limit = _HOURS_PER_DAY * max(days, 1)
        else:
            path = "/v2/histoday"
            limit = days

        raw = await self._get_json(
            path,
            params={"fsym": asset_id.upper(), "tsym": "USD", "limit": str(limit)},
        )
        self._check_response(raw, path)

        rows = (raw.get("Data") or {}).get("Data") or []
        pairs = [
            (int(row["time"]) * 1000, float(row["close"]))
            for row in rows
            if row.get("time") is not None and row.get("close") is not None
        ]
        return PriceSeries.from_pairs(asset_id, pairs)

    def _check_response(self, raw: Any, path: str) -> None:
        """CryptoCompare reports API errors with HTTP 200 and ``Response: Error``."""
        if isinstance(raw, dict) and raw.get("Response") == "Error":
            raise UpstreamError(
                f"{self.name} API error: {raw.get('Message', 'unknown error')}",
                context={
                    "provider": self.name,
                    "url": f"{self._base_url}{path}",
                    "status_code": 200,
                },
            )

    def _adapt_top(self, raw: Any) -> list[Asset]:
        """Convert a ``/top/mktcapfull`` payload into Asset records."""
        items = raw.get("Data") if isinstance(raw, dict) else None
        if not items:
            return []

        assets: list[Asset] = []
        for item in items:
            info = item.get("CoinInfo") or {}
            ticker = info.get("Name")
            if not ticker:
                continue
            usd = (item.get("RAW") or {}).get("USD") or {}
            image_path = info.get("ImageUrl")

            change_day = as_float(usd.get("CHANGEPCTDAY"))
            logger.debug(
                "Mapping %s CHANGEPCTDAY=%s onto price_change_7d", ticker, change_day
            )
            assets.append(
                Asset(
                    id=ticker.lower(),
                    symbol=ticker.lower(),
                    name=info.get("FullName") or ticker,
                    current_price=as_float(usd.get("PRICE")),
                    price_change_24h=as_float(usd.get("CHANGEPCT24HOUR")),
                    price_change_7d=change_day,
                    market_cap=as_float(usd.get("MKTCAP")),
                    image=f"{_IMAGE_BASE}{image_path}" if image_path else "",
                )
            )
        return assets
