"""Configuration loading, validation, and access."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from coinfolio.core.exceptions import ConfigError
from coinfolio.core.models import ProviderName


class ProviderConfig(BaseModel):
    """Access settings for one upstream market-data API."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    enabled: bool = True
    api_key: str | None = None
    rate_limit: float = 5.0

    @field_validator("base_url")
    @classmethod
    def base_url_must_be_https(cls, v: str) -> str:
        if not v.startswith("https://"):
            raise ValueError("base_url must use HTTPS")
        return v.rstrip("/")

    @field_validator("rate_limit")
    @classmethod
    def rate_limit_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("rate_limit must be > 0")
        return v


class CoinGeckoConfig(ProviderConfig):
    base_url: str = "https://api.coingecko.com/api/v3"


class CryptoCompareConfig(ProviderConfig):
    base_url: str = "https://min-api.cryptocompare.com/data"


class CoinMarketCapConfig(ProviderConfig):
    """Requires an API key; without one every operation is unsupported."""

    base_url: str = "https://pro-api.coinmarketcap.com/v1"


class ProvidersConfig(BaseModel):
    """Provider priority order and per-provider settings."""

    model_config = ConfigDict(frozen=True)

    order: list[ProviderName] = [
        ProviderName.COINGECKO,
        ProviderName.CRYPTOCOMPARE,
        ProviderName.COINMARKETCAP,
    ]
    coingecko: CoinGeckoConfig = CoinGeckoConfig()
    cryptocompare: CryptoCompareConfig = CryptoCompareConfig()
    coinmarketcap: CoinMarketCapConfig = CoinMarketCapConfig()

    @field_validator("order")
    @classmethod
    def order_valid(cls, v: list[ProviderName]) -> list[ProviderName]:
        if not v:
            raise ValueError("providers.order must not be empty")
        if len(set(v)) != len(v):
            raise ValueError("providers.order must not contain duplicates")
        return v

    def get(self, name: ProviderName) -> ProviderConfig:
        """Return the settings block for a provider."""
        return getattr(self, name.value)


class FailoverConfig(BaseModel):
    """Provider health and failover timing."""

    model_config = ConfigDict(frozen=True)

    reset_interval: float = 300.0
    delay: float = 0.1

    @field_validator("reset_interval")
    @classmethod
    def reset_interval_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("reset_interval must be > 0")
        return v

    @field_validator("delay")
    @classmethod
    def delay_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("delay must be >= 0")
        return v


class HttpConfig(BaseModel):
    """Transport settings shared by all providers."""

    model_config = ConfigDict(frozen=True)

    request_timeout: float = 30.0
    user_agent: str = "coinfolio/0.1"


class APIConfig(BaseModel):
    """FastAPI server configuration."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]


class CoinfolioConfig(BaseModel):
    """Root configuration for coinfolio."""

    model_config = ConfigDict(frozen=True)

    providers: ProvidersConfig = ProvidersConfig()
    failover: FailoverConfig = FailoverConfig()
    http: HttpConfig = HttpConfig()
    api: APIConfig = APIConfig()


def load_config(
    config_path: str | None = None,
    env_prefix: str = "COINFOLIO_",
) -> CoinfolioConfig:
    """Load configuration from environment + YAML file + defaults.

    Resolution order (highest priority first):
    1. Environment variables (COINFOLIO_PROVIDERS__COINGECKO__BASE_URL, etc.)
    2. YAML file at config_path
    3. Built-in defaults

    Nested keys use double-underscore in env vars:
        COINFOLIO_FAILOVER__DELAY=0.5  ->  failover.delay = 0.5
    """
    try:
        yaml_path = _resolve_config_path(config_path)
        base: dict = {}
        if yaml_path is not None:
            base = _load_yaml(yaml_path)

        merged = _merge_env_vars(base, env_prefix)
        return CoinfolioConfig.model_validate(merged)
    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(str(e), context={"source": "load_config"}) from e


def _resolve_config_path(explicit: str | None) -> Path | None:
    """Determine config file path."""
    if explicit is not None:
        p = Path(explicit)
        if not p.exists():
            raise ConfigError(
                f"Config file not found: {explicit}",
                context={"field": "config_path", "value": explicit},
            )
        return p

    env_path = os.environ.get("COINFOLIO_CONFIG")
    if env_path:
        p = Path(env_path)
        if not p.exists():
            raise ConfigError(
                f"Config file from COINFOLIO_CONFIG not found: {env_path}",
                context={"field": "COINFOLIO_CONFIG", "value": env_path},
            )
        return p

    default = Path("coinfolio.yml")
    if default.exists():
        return default

    return None


def _load_yaml(path: Path) -> dict:
    """Load and parse YAML file."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"YAML config must be a mapping, got {type(data).__name__}",
                context={"field": "config_file", "value": str(path)},
            )
        return data
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse YAML config: {e}",
            context={"field": "config_file", "value": str(path)},
        ) from e


def _merge_env_vars(base: dict, prefix: str) -> dict:
    """Overlay environment variables onto base config dict.

    Double-underscore separates nesting levels.
    Values are auto-cast: "true"/"false" -> bool, numeric strings -> int/float.
    Comma-separated values are split into lists for ``order`` and
    ``cors_origins``.
    """
    result = dict(base)

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        remainder = key[len(prefix) :]
        parts = [p.lower() for p in remainder.split("__")]

        # Skip the CONFIG env var itself
        if parts == ["config"]:
            continue

        if parts[-1] in _LIST_FIELDS:
            cast_value: object = [item.strip() for item in value.split(",") if item.strip()]
        elif parts[-1] in _STRING_FIELDS:
            cast_value = value
        else:
            cast_value = _auto_cast(value)

        target = result
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        target[parts[-1]] = cast_value

    return result


_LIST_FIELDS = frozenset({"order", "cors_origins"})
_STRING_FIELDS = frozenset({"api_key", "base_url", "user_agent", "host"})


def _auto_cast(value: str) -> str | int | float | bool:
    """Auto-cast string values from environment variables."""
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value
