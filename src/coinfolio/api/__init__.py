"""FastAPI JSON service exposing market data and portfolio analysis."""

from coinfolio.api.app import create_app

__all__ = ["create_app"]
