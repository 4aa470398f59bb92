"""coinfolio: multi-provider crypto market data with portfolio analytics."""

__version__ = "0.1.0"
