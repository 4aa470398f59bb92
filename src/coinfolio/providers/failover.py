"""Multi-provider market-data client with automatic failover.

Each logical operation runs against the providers in fixed priority order,
skipping any that are currently marked failed, and returns the first
success. Failure flags are operation-agnostic: a provider that failed a
search is skipped for every other operation until the next reset.

Flags clear collectively when ``reset_interval`` seconds have passed since
the last reset, or when every provider is marked failed at once (so the
client never locks itself out permanently).
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from coinfolio.core.config import CoinfolioConfig
from coinfolio.core.exceptions import AllProvidersFailedError, UnsupportedOperation
from coinfolio.core.models import (
    Asset,
    PriceSeries,
    ProviderName,
    SearchResult,
    TimeRange,
    time_range_days,
)
from coinfolio.providers.base import HttpProvider, MarketDataProvider
from coinfolio.providers.coingecko import CoinGeckoProvider
from coinfolio.providers.coinmarketcap import CoinMarketCapProvider
from coinfolio.providers.cryptocompare import CryptoCompareProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RESET_INTERVAL = 5 * 60.0
DEFAULT_FAILOVER_DELAY = 0.1

_PROVIDER_CLASSES: dict[ProviderName, type[HttpProvider]] = {
    ProviderName.COINGECKO: CoinGeckoProvider,
    ProviderName.CRYPTOCOMPARE: CryptoCompareProvider,
    ProviderName.COINMARKETCAP: CoinMarketCapProvider,
}


class ProviderHealth:
    """Per-provider failed flags with a shared reset timer.

    Parameters
    ----------
    reset_interval : float
        Seconds after which all flags are cleared.
    clock : Callable[[], float]
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        reset_interval: float = DEFAULT_RESET_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._reset_interval = reset_interval
        self._clock = clock
        self._failed: set[str] = set()
        self._last_reset = clock()

    @property
    def failed(self) -> frozenset[str]:
        return frozenset(self._failed)

    def is_failed(self, name: str) -> bool:
        return name in self._failed

    def mark_failed(self, name: str) -> None:
        self._failed.add(name)

    def clear(self) -> None:
        self._failed.clear()

    def reset_if_expired(self) -> bool:
        """Clear all flags if the reset interval has elapsed. Returns True on reset."""
        now = self._clock()
        if now - self._last_reset > self._reset_interval:
            self._failed.clear()
            self._last_reset = now
            return True
        return False


class FailoverClient:
    """Runs market-data operations across providers with failover.

    Parameters
    ----------
    providers : Sequence[MarketDataProvider]
        Providers in priority order. Names must be unique.
    reset_interval : float
        Seconds before failure flags are cleared. Default: 300.
    failover_delay : float
        Pause after a provider fails before the next one is tried.
        Skipped for ``UnsupportedOperation``. Default: 0.1.
    clock, sleep
        Time source and sleep coroutine, injectable for tests.

    Use via ``async with FailoverClient(...) as client:`` to close provider
    HTTP clients on exit.
    """

    def __init__(
        self,
        providers: Sequence[MarketDataProvider],
        reset_interval: float = DEFAULT_RESET_INTERVAL,
        failover_delay: float = DEFAULT_FAILOVER_DELAY,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        names = [p.name for p in providers]
        if len(set(names)) != len(names):
            raise ValueError(f"provider names must be unique, got {names}")
        self._providers = list(providers)
        self._failover_delay = failover_delay
        self._sleep = sleep
        self._health = ProviderHealth(reset_interval=reset_interval, clock=clock)

    @classmethod
    def from_config(cls, config: CoinfolioConfig) -> FailoverClient:
        """Build the enabled providers in configured priority order."""
        providers: list[MarketDataProvider] = []
        for name in config.providers.order:
            provider_config = config.providers.get(name)
            if not provider_config.enabled:
                logger.info("Provider %s disabled in config, skipping", name)
                continue
            providers.append(_PROVIDER_CLASSES[name](provider_config, http=config.http))

        return cls(
            providers,
            reset_interval=config.failover.reset_interval,
            failover_delay=config.failover.delay,
        )

    async def __aenter__(self) -> FailoverClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close every provider's HTTP client."""
        for provider in self._providers:
            await provider.aclose()

    @property
    def providers(self) -> list[MarketDataProvider]:
        return list(self._providers)

    @property
    def provider_health(self) -> ProviderHealth:
        return self._health

    def health(self) -> dict[str, bool]:
        """Return ``{provider name: failed}`` in priority order."""
        return {p.name: self._health.is_failed(p.name) for p in self._providers}

    # --- Operations ---

    async def get_top_assets(self, limit: int = 100) -> list[Asset]:
        return await self._with_failover(
            lambda p: p.get_top_assets(limit), "get_top_assets"
        )

    async def search_assets(self, query: str) -> list[SearchResult]:
        return await self._with_failover(
            lambda p: p.search_assets(query), "search_assets"
        )

    async def get_price_history(self, asset_id: str, days: int) -> PriceSeries:
        return await self._with_failover(
            lambda p: p.get_price_history(asset_id, days), "get_price_history"
        )

    async def get_assets_by_ids(self, ids: Sequence[str]) -> list[Asset]:
        ids = list(ids)
        if not ids:
            return []
        return await self._with_failover(
            lambda p: p.get_assets_by_ids(ids), "get_assets_by_ids"
        )

    async def get_price_histories(
        self, asset_ids: Sequence[str], days: int
    ) -> list[PriceSeries]:
        """Fetch several histories concurrently, one failover sequence each.

        Results are in the order of ``asset_ids``. The first terminal
        failure propagates.
        """
        return list(
            await asyncio.gather(
                *(self.get_price_history(asset_id, days) for asset_id in asset_ids)
            )
        )

    @staticmethod
    def time_range_days(label: TimeRange | str) -> int:
        return time_range_days(label)

    # --- Failover core ---

    async def _with_failover(
        self,
        operation: Callable[[MarketDataProvider], Awaitable[T]],
        operation_name: str,
    ) -> T:
        if self._health.reset_if_expired():
            logger.info("Provider failure flags reset after interval")

        candidates = [p for p in self._providers if not self._health.is_failed(p.name)]
        if not candidates:
            logger.warning(
                "All providers marked failed; retrying full list for %s", operation_name
            )
            self._health.clear()
            candidates = list(self._providers)

        errors: dict[str, str] = {}
        last_error: Exception | None = None

        for provider in candidates:
            try:
                logger.debug("Trying %s for %s", provider.name, operation_name)
                result = await operation(provider)
            except Exception as e:
                logger.warning("%s failed for %s: %s", provider.name, operation_name, e)
                self._health.mark_failed(provider.name)
                errors[provider.name] = str(e)
                last_error = e
                if not isinstance(e, UnsupportedOperation) and self._failover_delay > 0:
                    await self._sleep(self._failover_delay)
                continue

            logger.info("%s succeeded for %s", provider.name, operation_name)
            return result

        raise AllProvidersFailedError(
            f"All providers failed for {operation_name}"
            + (f": {last_error}" if last_error is not None else ""),
            last_error=last_error,
            context={"operation": operation_name, "errors": errors},
        ) from last_error
