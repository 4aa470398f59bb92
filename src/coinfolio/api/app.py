"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coinfolio.analytics.service import PortfolioService
from coinfolio.api.deps import AppState
from coinfolio.api.routes import router
from coinfolio.api.schemas import ErrorResponse
from coinfolio.core.config import CoinfolioConfig, load_config
from coinfolio.core.exceptions import (
    AllProvidersFailedError,
    CoinfolioError,
    ConfigError,
    ProviderError,
)
from coinfolio.providers.failover import FailoverClient


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    config = app.state._pending_config or load_config()
    client = app.state._pending_client or FailoverClient.from_config(config)

    app.state.app_state = AppState(
        config=config,
        client=client,
        service=PortfolioService(client),
    )

    yield

    await client.aclose()


def create_app(
    config: CoinfolioConfig | None = None,
    client: FailoverClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    import coinfolio

    app = FastAPI(
        title="coinfolio API",
        description="Crypto market data with provider failover and portfolio analytics",
        version=coinfolio.__version__,
        lifespan=lifespan,
    )

    # Stash config and client so lifespan can retrieve them
    app.state._pending_config = config
    app.state._pending_client = client

    origins = config.api.cors_origins if config else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api")

    @app.exception_handler(CoinfolioError)
    async def coinfolio_exception_handler(request: Request, exc: CoinfolioError):
        if isinstance(exc, (AllProvidersFailedError, ProviderError)):
            status = 502
        elif isinstance(exc, ConfigError):
            status = 400
        else:
            status = 500
        return JSONResponse(
            status_code=status,
            content=ErrorResponse(error=type(exc).__name__, detail=str(exc)).model_dump(),
        )

    return app
