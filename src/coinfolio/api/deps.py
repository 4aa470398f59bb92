"""Dependency injection for FastAPI routes."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from coinfolio.analytics.service import PortfolioService
from coinfolio.core.config import CoinfolioConfig
from coinfolio.providers.failover import FailoverClient


@dataclass
class AppState:
    """Shared application state, attached to app.state during lifespan."""

    config: CoinfolioConfig
    client: FailoverClient
    service: PortfolioService


def get_app_state(request: Request) -> AppState:
    """Dependency: retrieve AppState from the request."""
    return request.app.state.app_state


def get_client(request: Request) -> FailoverClient:
    """Dependency: retrieve the failover market-data client."""
    return request.app.state.app_state.client


def get_service(request: Request) -> PortfolioService:
    """Dependency: retrieve the portfolio service."""
    return request.app.state.app_state.service
