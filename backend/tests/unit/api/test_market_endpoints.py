"""
Unit tests for the HTTP endpoints.

Each test builds a fresh application and installs a service over the
mocked provider in ``app.state``; the lifespan (and its real upstream
client) is never started.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from conftest import make_quote
from market_cache.main import create_app

BASE = "/api/yahoo-finance"


@pytest.fixture
def app(service):
    application = create_app()
    application.state.market_data_service = service
    return application


@pytest.fixture
def http(app):
    return TestClient(app)


class TestQuoteEndpoints:
    """Test single-resource routes."""

    def test_quote(self, http, provider):
        response = http.get(f"{BASE}/quote", params={"symbol": "aapl"})

        assert response.status_code == 200
        assert response.json()["symbol"] == "AAPL"
        provider.quote.assert_awaited_once_with("AAPL")

    def test_missing_symbol(self, http, provider):
        response = http.get(f"{BASE}/quote")

        assert response.status_code == 400
        assert response.json() == {"error": "Symbol parameter is required"}
        provider.quote.assert_not_awaited()

    def test_upstream_failure(self, http, provider):
        provider.quote.side_effect = RuntimeError("upstream down")

        response = http.get(f"{BASE}/quote", params={"symbol": "AAPL"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch quote"}

    def test_quote_summary_modules(self, http, provider):
        response = http.get(
            f"{BASE}/quote-summary",
            params={"symbol": "AAPL", "modules": "price,assetProfile"},
        )

        assert response.status_code == 200
        provider.quote_summary.assert_awaited_once_with(
            "AAPL", ["assetProfile", "price"]
        )

    def test_quote_summary_empty_modules(self, http):
        response = http.get(
            f"{BASE}/quote-summary", params={"symbol": "AAPL", "modules": ","}
        )

        assert response.status_code == 400

    def test_stock_details_degraded_is_ok(self, http, provider):
        provider.quote_summary.side_effect = RuntimeError("no profile")

        response = http.get(f"{BASE}/stock-details", params={"symbol": "AAPL"})

        assert response.status_code == 200
        assert response.json()["profile"] is None

    def test_stock_news(self, http, provider):
        provider.search.return_value = {"news": [{"title": "Earnings beat"}]}

        response = http.get(f"{BASE}/stock-news", params={"symbol": "AAPL"})

        assert response.status_code == 200
        assert response.json()[0]["impact"] == "medium"


class TestChartEndpoint:
    """Test chart parameter passing."""

    def test_chart(self, http, provider):
        response = http.get(
            f"{BASE}/chart", params={"symbol": "AAPL", "range": "1y", "interval": "1wk"}
        )

        assert response.status_code == 200
        assert provider.chart.await_args.args[3] == "1wk"

    def test_unknown_range_uses_default_window(self, http, provider):
        response = http.get(f"{BASE}/chart", params={"symbol": "AAPL", "range": "7y"})

        assert response.status_code == 200
        period1 = provider.chart.await_args.args[1]
        assert period1 == datetime(2023, 12, 31, 12, 0, tzinfo=timezone.utc)

    def test_interval_passed_through(self, http, provider):
        response = http.get(
            f"{BASE}/chart", params={"symbol": "AAPL", "range": "max", "interval": "1m"}
        )

        assert response.status_code == 200
        assert provider.chart.await_args.args[3] == "1m"

    def test_provider_value_error_is_server_error(self, http, provider):
        provider.chart.side_effect = ValueError("malformed timestamp")

        response = http.get(f"{BASE}/chart", params={"symbol": "AAPL"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch chart data"}


class TestSearchEndpoint:
    """Test category search."""

    def test_search_filters_by_category(self, http, provider):
        provider.search.return_value = {
            "quotes": [
                {"symbol": "AAPL", "shortname": "Apple", "quoteType": "EQUITY"},
                {"symbol": "^GSPC", "shortname": "S&P 500", "quoteType": "INDEX"},
            ]
        }

        response = http.get(f"{BASE}/search", params={"query": "a", "category": "markets"})

        assert response.status_code == 200
        assert response.json() == [{"symbol": "^GSPC", "name": "S&P 500", "type": "INDEX"}]

    def test_missing_query(self, http):
        response = http.get(f"{BASE}/search")

        assert response.status_code == 400
        assert response.json() == {"error": "Query parameter is required"}


class TestScreenerEndpoint:
    """Test the screener route."""

    def test_favorites(self, http, provider):
        response = http.post(
            BASE, json={"screenerId": "favorites", "favorites": ["AAPL", "MSFT"]}
        )

        assert response.status_code == 200
        assert [q["symbol"] for q in response.json()["quotes"]] == ["AAPL", "MSFT"]
        provider.screener.assert_not_awaited()

    def test_default_screener_without_body(self, http, provider):
        provider.screener.return_value = {"quotes": [make_quote("AMD")]}

        response = http.post(BASE)

        assert response.status_code == 200
        provider.screener.assert_awaited_once_with(
            "most_actives", 40, "US", "en-US", validate_result=False
        )

    def test_screener_failure(self, http, provider):
        provider.screener.side_effect = RuntimeError("screener down")

        response = http.post(BASE, json={"screenerId": "day_gainers"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch stock data"}

    def test_list_screeners(self, http):
        response = http.get(f"{BASE}/screeners")

        assert response.status_code == 200
        assert {"label": "Most Actives", "value": "most_actives"} in response.json()


class TestSnapshotEndpoints:
    """Test composite snapshot routes."""

    def test_market(self, http):
        response = http.get(f"{BASE}/market")

        assert response.status_code == 200
        assert set(response.json()) == {"indices", "trending", "news"}

    def test_trending(self, http):
        response = http.get(f"{BASE}/trending")

        assert response.status_code == 200
        assert len(response.json()["trending"]) == 6

    def test_indices(self, http):
        response = http.get(f"{BASE}/indices")

        assert response.status_code == 200
        assert len(response.json()["quotes"]) == 8


class TestCacheEndpoints:
    """Test cache administration routes."""

    def test_invalidate_symbol(self, http, provider):
        http.get(f"{BASE}/quote", params={"symbol": "AAPL"})
        http.get(f"{BASE}/quote", params={"symbol": "MSFT"})

        response = http.delete(f"{BASE}/cache/aapl")

        assert response.status_code == 200
        assert response.json() == {"symbol": "AAPL", "invalidated": 1}

        http.get(f"{BASE}/quote", params={"symbol": "AAPL"})
        http.get(f"{BASE}/quote", params={"symbol": "MSFT"})
        assert provider.quote.await_count == 3

    def test_invalidate_all(self, http):
        http.get(f"{BASE}/quote", params={"symbol": "AAPL"})
        http.get(f"{BASE}/quote", params={"symbol": "MSFT"})

        response = http.delete(f"{BASE}/cache")

        assert response.status_code == 200
        assert response.json() == {"invalidated": 2}


class TestHealthEndpoints:
    """Test health routes."""

    def test_health(self, http):
        response = http.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "test"

    def test_cache_health(self, http):
        http.get(f"{BASE}/quote", params={"symbol": "AAPL"})
        http.get(f"{BASE}/quote", params={"symbol": "AAPL"})

        data = http.get("/health/cache").json()

        assert data["cache"]["hits"] == 1
        assert data["cache"]["misses"] == 1
        assert data["cache"]["entries"] == 1
        assert data["ttl_seconds"]["QUOTE"] == 5

    def test_service_not_initialized(self):
        http = TestClient(create_app())

        response = http.get(f"{BASE}/quote", params={"symbol": "AAPL"})

        assert response.status_code == 503
        assert response.json() == {"error": "Market data service is not initialized"}
