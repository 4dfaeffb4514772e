"""
Main pytest configuration for all backend tests.

Shared fixtures: a controllable clock, a mocked upstream provider, and the
cache/service pair built on top of them.
"""

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["OTEL_CONSOLE_EXPORT"] = "false"

from market_cache.services.cache import ResourceCache
from market_cache.services.market_data import MarketDataService

FIXED_NOW = datetime(2024, 3, 31, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_quote(symbol: str, price: float = 100.0, change_percent: float = 1.5):
    """Minimal upstream quote payload."""
    return {
        "symbol": symbol,
        "shortName": f"{symbol} Inc.",
        "regularMarketPrice": price,
        "regularMarketChange": price * change_percent / 100,
        "regularMarketChangePercent": change_percent,
    }


@pytest.fixture
def clock():
    """Fake clock starting at t=1000."""
    return FakeClock()


@pytest.fixture
def provider():
    """Upstream provider mock with one AsyncMock per protocol method."""
    mock = AsyncMock()
    mock.quote = AsyncMock(side_effect=lambda symbol: make_quote(symbol))
    mock.quote_summary = AsyncMock(return_value={"price": {"regularMarketPrice": 1}})
    mock.chart = AsyncMock(return_value={"meta": {}, "quotes": []})
    mock.search = AsyncMock(return_value={"quotes": [], "news": []})
    mock.screener = AsyncMock(return_value={"quotes": []})
    mock.trending_symbols = AsyncMock(return_value={"quotes": []})
    return mock


@pytest.fixture
def cache(clock):
    """Resource cache driven by the fake clock."""
    return ResourceCache(clock=clock)


@pytest.fixture
def service(provider, cache):
    """Market data service over the mocked provider."""
    return MarketDataService(provider, cache, now=lambda: FIXED_NOW)
