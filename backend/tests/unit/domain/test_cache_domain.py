"""
Unit tests for Cache Domain Models.

Tests cache keys, TTLs, the TTL policy table and cache entries.
"""

import pytest

from market_cache.domain.cache.entities import CacheEntry, CacheStats
from market_cache.domain.cache.value_objects import (
    DEFAULT_TTLS,
    TTL,
    CacheKey,
    ResourceCategory,
    TTLPolicy,
    normalize_modules,
    normalize_symbol,
)


class TestCacheKey:
    """Test CacheKey value object."""

    def test_quote_key(self):
        """Test quote key creation."""
        key = CacheKey.quote("aapl")

        assert key.value == "QUOTE_AAPL"
        assert str(key) == "QUOTE_AAPL"

    def test_symbol_case_and_whitespace_do_not_fragment_keys(self):
        """Test that symbol case produces equal keys."""
        assert CacheKey.quote(" msft ") == CacheKey.quote("MSFT")
        assert hash(CacheKey.quote("msft")) == hash(CacheKey.quote("MSFT"))

    def test_quote_summary_modules_sorted(self):
        """Test module order and duplicates are irrelevant."""
        first = CacheKey.quote_summary("AAPL", ["price", "assetProfile"])
        second = CacheKey.quote_summary("aapl", ["assetProfile", "price", "price"])

        assert first == second
        assert first.value == "QUOTE_SUMMARY_AAPL_assetProfile,price"

    def test_quote_summary_different_subsets_differ(self):
        """Test different module subsets are cached independently."""
        assert CacheKey.quote_summary("AAPL", ["price"]) != CacheKey.quote_summary(
            "AAPL", ["price", "summaryDetail"]
        )

    def test_chart_key(self):
        """Test chart key keeps range and interval as given."""
        key = CacheKey.chart("tsla", "1y", "1wk")
        assert key.value == "CHART_TSLA_1y_1wk"

    def test_search_key_lowercases_query(self):
        """Test search key uses the lowercased query."""
        key = CacheKey.search("BTC-USD", "crypto", 5)
        assert key.value == "SEARCH_btc-usd_crypto_5"

    def test_screener_key_with_favorites(self):
        """Test favorites are appended in request order."""
        key = CacheKey.screener("favorites", 40, ["msft", "aapl"])

        assert key.value == "SCREENER_favorites_40_MSFT_AAPL"
        assert key != CacheKey.screener("favorites", 40, ["aapl", "msft"])

    def test_parameterless_keys(self):
        """Test snapshot keys."""
        assert CacheKey.market_data().value == "MARKET_DATA"
        assert CacheKey.trending_data().value == "TRENDING_DATA"
        assert CacheKey.indices().value == "INDICES"

    def test_mentions_symbol_matches_tokens_case_insensitively(self):
        """Test symbol matching against parameter tokens."""
        assert CacheKey.quote("AAPL").mentions_symbol("aapl")
        assert CacheKey.search("aapl", "stocks", 5).mentions_symbol("AAPL")
        assert CacheKey.screener("favorites", 40, ["MSFT", "AAPL"]).mentions_symbol(
            "AAPL"
        )

    def test_mentions_symbol_is_not_substring_match(self):
        """Test that a symbol does not match a longer symbol containing it."""
        assert not CacheKey.quote("AAPLX").mentions_symbol("AAPL")
        assert not CacheKey.market_data().mentions_symbol("AAPL")
        assert not CacheKey.quote("AAPL").mentions_symbol("")

    def test_empty_namespace_rejected(self):
        """Test validation of the namespace."""
        with pytest.raises(ValueError, match="cannot be empty"):
            CacheKey("")

        with pytest.raises(ValueError, match="whitespace"):
            CacheKey("BAD KEY")

    def test_non_string_params_rejected(self):
        """Test validation of parameter tokens."""
        with pytest.raises(ValueError, match="must be strings"):
            CacheKey("QUOTE", (1,))

    def test_list_params_coerced_to_tuple(self):
        """Test params given as a list still produce a hashable key."""
        key = CacheKey("QUOTE", ["AAPL"])
        assert key.params == ("AAPL",)
        assert {key: 1}[CacheKey.quote("AAPL")] == 1


class TestNormalization:
    """Test parameter normalization helpers."""

    def test_normalize_symbol(self):
        assert normalize_symbol(" brk-b ") == "BRK-B"
        assert normalize_symbol("") == ""

    def test_normalize_modules(self):
        assert normalize_modules(["price", " assetProfile", "", "price"]) == (
            "assetProfile",
            "price",
        )


class TestTTL:
    """Test TTL value object."""

    def test_ttl_creation(self):
        """Test TTL creation methods."""
        assert TTL.of_seconds(30).seconds == 30
        assert TTL.of_minutes(2).seconds == 120

    def test_zero_ttl_allowed(self):
        """Test zero TTL is valid."""
        assert TTL.of_seconds(0).seconds == 0

    def test_ttl_validation(self):
        """Test TTL validation."""
        with pytest.raises(ValueError, match="cannot be negative"):
            TTL(-1)

        with pytest.raises(ValueError, match="too large"):
            TTL(86400 * 366)

    def test_ttl_str(self):
        assert str(TTL.of_seconds(5)) == "5s"


class TestTTLPolicy:
    """Test per-category TTL table."""

    def test_defaults(self):
        """Test the default table in seconds."""
        policy = TTLPolicy()

        assert policy.as_dict() == {
            "QUOTE": 5,
            "CHART": 60,
            "SEARCH": 60,
            "MARKET_DATA": 5,
            "TRENDING": 10,
            "STOCK_DETAILS": 15,
            "NEWS": 60,
            "SCREENER": 15,
            "QUOTE_SUMMARY": 30,
            "HISTORICAL": 300,
            "INSIGHTS": 120,
            "OPTIONS": 60,
        }

    def test_every_category_has_a_ttl(self):
        assert set(DEFAULT_TTLS) == set(ResourceCategory)

    def test_overrides(self):
        """Test overrides replace only the named categories."""
        policy = TTLPolicy({"quote": 10, "CHART": 0})

        assert policy[ResourceCategory.QUOTE].seconds == 10
        assert policy.ttl_for(ResourceCategory.CHART).seconds == 0
        assert policy[ResourceCategory.SEARCH].seconds == 60

    def test_unknown_override_rejected(self):
        with pytest.raises(ValueError, match="Unknown resource category"):
            TTLPolicy({"FUTURES": 5})

    def test_defaults_are_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_TTLS[ResourceCategory.QUOTE] = TTL(1)


class TestCacheEntry:
    """Test CacheEntry entity."""

    def test_create(self):
        """Test entry expiry is computed from the given time."""
        entry = CacheEntry.create({"price": 1}, TTL.of_seconds(5), now=100.0)

        assert entry.value == {"price": 1}
        assert entry.stored_at == 100.0
        assert entry.expires_at == 105.0

    def test_liveness_boundary(self):
        """Test entries are live strictly before expiry."""
        entry = CacheEntry.create("v", TTL.of_seconds(5), now=100.0)

        assert entry.is_live(104.999)
        assert not entry.is_live(105.0)

    def test_zero_ttl_never_live(self):
        entry = CacheEntry.create("v", TTL.of_seconds(0), now=100.0)
        assert not entry.is_live(100.0)

    def test_entry_is_immutable(self):
        entry = CacheEntry.create("v", TTL.of_seconds(5), now=100.0)
        with pytest.raises(AttributeError):
            entry.value = "other"


class TestCacheStats:
    """Test cache traffic counters."""

    def test_hit_rate(self):
        stats = CacheStats(hits=3, misses=1)
        assert stats.hit_rate == 0.75
        assert stats.to_dict()["hit_rate"] == 0.75

    def test_empty_hit_rate(self):
        assert CacheStats().hit_rate == 0.0
