"""Market-data providers and the failover client.

Architecture
------------
    Upstream REST API → provider adapter → canonical models → FailoverClient → consumer

Key abstractions:

- ``MarketDataProvider``: the four-operation capability protocol.
- ``HttpProvider``: shared httpx + rate-limit plumbing for REST upstreams.
- ``FailoverClient``: priority-ordered failover with per-provider health.

Built-in providers, in default priority order:

- ``CoinGeckoProvider``: all four operations, no key required.
- ``CryptoCompareProvider``: top assets and price history.
- ``CoinMarketCapProvider``: top assets and id lookup, only with an API key.
"""

from coinfolio.providers.base import HttpProvider, MarketDataProvider
from coinfolio.providers.coingecko import CoinGeckoProvider
from coinfolio.providers.coinmarketcap import CoinMarketCapProvider
from coinfolio.providers.cryptocompare import CryptoCompareProvider
from coinfolio.providers.failover import FailoverClient, ProviderHealth

__all__ = [
    # Protocols
    "MarketDataProvider",
    "HttpProvider",
    # Providers
    "CoinGeckoProvider",
    "CryptoCompareProvider",
    "CoinMarketCapProvider",
    # Failover
    "FailoverClient",
    "ProviderHealth",
]
