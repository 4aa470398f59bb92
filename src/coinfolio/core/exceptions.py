"""Custom exception hierarchy for coinfolio."""

from typing import Any


class CoinfolioError(Exception):
    """Base exception for all coinfolio errors.

    All exceptions carry an optional `context` dict for structured error
    metadata that can be logged or serialized without parsing the message.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigError(CoinfolioError):
    """Invalid or missing configuration.

    Raised by load_config() during startup. Should be treated as fatal.

    Context keys:
        field: str — the config field that failed validation
        value: Any — the invalid value (redacted for secrets)
    """


class ProviderError(CoinfolioError):
    """A single market-data provider could not serve a request.

    Policy: the failover client marks the provider failed and moves on to
    the next one. Never surfaced to callers of FailoverClient directly.

    Context keys:
        provider: str — provider name
    """


class UpstreamError(ProviderError):
    """Upstream returned a non-2xx status, an error body, or no response.

    Policy: mark failed, back off briefly, try the next provider.

    Context keys:
        url: str — the URL that was being fetched
        status_code: int | None — HTTP status if a response was received
    """


class UnsupportedOperation(ProviderError):
    """Provider deliberately does not implement this capability.

    Policy: skip to the next provider immediately (no backoff).

    Context keys:
        operation: str — the operation that was requested
    """


class AllProvidersFailedError(CoinfolioError):
    """Every candidate provider failed for one logical operation.

    Policy: terminal. Propagated to the caller, who owns user-facing
    messaging.

    Context keys:
        operation: str — the operation name
        errors: dict[str, str] — provider name -> error message
    """

    def __init__(
        self,
        message: str,
        last_error: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context)
        self.last_error = last_error
