"""
Yahoo Finance Infrastructure

Async upstream client, provider protocol and upstream exceptions.
"""

from .client import YahooFinanceClient
from .exceptions import (
    SymbolNotFoundException,
    UpstreamConnectionException,
    UpstreamException,
    UpstreamRateLimitException,
    UpstreamResponseException,
    UpstreamTimeoutException,
)
from .protocol import MarketDataProvider

__all__ = [
    "YahooFinanceClient",
    "MarketDataProvider",
    "UpstreamException",
    "UpstreamConnectionException",
    "UpstreamTimeoutException",
    "UpstreamRateLimitException",
    "UpstreamResponseException",
    "SymbolNotFoundException",
]
