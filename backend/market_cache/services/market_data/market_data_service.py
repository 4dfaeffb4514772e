"""
Market Data Service

Cached accessors over the upstream market data provider. Each accessor
normalizes its parameters, derives a structured cache key, and hands the
upstream call to the resource cache with its category TTL.

Composite accessors isolate every sub-fetch: a failing basket item or
optional sub-resource is logged and dropped instead of failing the whole
result. Single-resource accessors let upstream failures propagate.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from opentelemetry import trace

from ...constants import (
    CRYPTO_LIMIT,
    CRYPTO_SYMBOLS,
    DEFAULT_INTERVAL,
    DEFAULT_NEWS_COUNT,
    DEFAULT_RANGE,
    DEFAULT_SCREENER,
    DEFAULT_SCREENER_COUNT,
    DEFAULT_SEARCH_CATEGORY,
    DETAILS_NEWS_COUNT,
    FALLBACK_TRENDING_SYMBOLS,
    FAVORITES_SCREENER,
    INDICES_BY_REGION,
    MARKET_INDICES,
    MARKET_NEWS_QUERY,
    MARKET_TRENDING_STOCKS,
    PROFILE_MODULE,
    TRENDING_LIMIT,
    WORLD_INDICES,
    get_current_timestamp,
)
from ...core.telemetry import add_span_attribute
from ...domain.cache.value_objects import (
    CacheKey,
    ResourceCategory,
    TTLPolicy,
    normalize_modules,
    normalize_symbol,
)
from ...infrastructure.yahoo.protocol import MarketDataProvider
from ..cache.resource_cache import ResourceCache
from .exceptions import InvalidMarketRequestException
from .formatting import (
    chart_window,
    classify_news_impact,
    market_item,
    news_item,
    publish_date,
    trending_item,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

T = TypeVar("T")

QuoteProjection = Callable[[Dict[str, Any]], Dict[str, Any]]


def crypto_search_query(query: str) -> str:
    """Append ``-USD`` unless the query already names a USD pair."""
    upper = query.upper()
    if "-USD" in upper or upper.endswith("USD"):
        return query
    return f"{query}-USD"


class MarketDataService:
    """
    Cached market data accessors.

    Args:
        provider: Upstream client implementing ``MarketDataProvider``
        cache: Resource cache owning the entry store
        ttl_policy: Category TTL table; defaults when omitted
        region: Market region for screeners, trending list and index basket
        lang: Market language for screeners
        now: Wall-clock source used for chart windows
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        cache: ResourceCache,
        ttl_policy: Optional[TTLPolicy] = None,
        region: str = "US",
        lang: str = "en-US",
        now: Callable[[], datetime] = get_current_timestamp,
    ):
        self._provider = provider
        self._cache = cache
        self._ttl_policy = ttl_policy or TTLPolicy()
        self._region = region
        self._lang = lang
        self._now = now

    @property
    def cache(self) -> ResourceCache:
        return self._cache

    @property
    def ttl_policy(self) -> TTLPolicy:
        return self._ttl_policy

    async def _cached(
        self,
        key: CacheKey,
        category: ResourceCategory,
        fetch_fn: Callable[[], Awaitable[T]],
    ) -> T:
        return await self._cache.cached_fetch(
            key, fetch_fn, self._ttl_policy.ttl_for(category)
        )

    @staticmethod
    def _require_symbol(symbol: str) -> str:
        normalized = normalize_symbol(symbol)
        if not normalized:
            raise InvalidMarketRequestException("Symbol is required", field="symbol")
        return normalized

    # Failure boundaries

    @staticmethod
    async def _isolated(
        label: str, fetch_fn: Callable[[], Awaitable[T]], default: T
    ) -> T:
        """Run an optional sub-fetch, degrading to default on failure."""
        try:
            return await fetch_fn()
        except Exception as e:
            logger.error(
                f"Error fetching {label}",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            return default

    async def _fetch_basket(
        self,
        kind: str,
        symbols: Iterable[str],
        project: Optional[QuoteProjection] = None,
    ) -> List[Dict[str, Any]]:
        """Quote every symbol concurrently, dropping the ones that fail."""

        async def fetch_one(symbol: str) -> Optional[Dict[str, Any]]:
            try:
                quote = await self._provider.quote(symbol)
            except Exception as e:
                logger.error(
                    f"Error fetching {kind} {symbol}",
                    extra={
                        "symbol": symbol,
                        "basket": kind,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                return None
            return project(quote) if project else quote

        results = await asyncio.gather(*(fetch_one(symbol) for symbol in symbols))
        return [item for item in results if item is not None]

    # Single-resource accessors

    async def get_quote(self, symbol: str) -> Dict[str, Any]:
        """Real-time quote for one symbol."""
        symbol = self._require_symbol(symbol)
        with tracer.start_as_current_span("market_data.get_quote") as span:
            span.set_attribute("market.symbol", symbol)
            return await self._cached(
                CacheKey.quote(symbol),
                ResourceCategory.QUOTE,
                lambda: self._provider.quote(symbol),
            )

    async def get_quote_summary(
        self, symbol: str, modules: Sequence[str]
    ) -> Dict[str, Any]:
        """Quote summary restricted to modules; module order is irrelevant."""
        symbol = self._require_symbol(symbol)
        normalized = normalize_modules(modules)
        if not normalized:
            raise InvalidMarketRequestException(
                "At least one quote summary module is required", field="modules"
            )

        with tracer.start_as_current_span("market_data.get_quote_summary") as span:
            span.set_attribute("market.symbol", symbol)
            span.set_attribute("market.modules", ",".join(normalized))
            return await self._cached(
                CacheKey.quote_summary(symbol, normalized),
                ResourceCategory.QUOTE_SUMMARY,
                lambda: self._provider.quote_summary(symbol, list(normalized)),
            )

    async def get_chart_data(
        self,
        symbol: str,
        range_: Optional[str] = DEFAULT_RANGE,
        interval: Optional[str] = DEFAULT_INTERVAL,
    ) -> Dict[str, Any]:
        """OHLCV series for the window ending now."""
        symbol = self._require_symbol(symbol)
        range_ = range_ or DEFAULT_RANGE
        interval = interval or DEFAULT_INTERVAL

        async def fetch() -> Dict[str, Any]:
            period1, period2 = chart_window(range_, self._now())
            return await self._provider.chart(symbol, period1, period2, interval)

        with tracer.start_as_current_span("market_data.get_chart_data") as span:
            span.set_attribute("market.symbol", symbol)
            span.set_attribute("market.range", range_)
            span.set_attribute("market.interval", interval)
            return await self._cached(
                CacheKey.chart(symbol, range_, interval), ResourceCategory.CHART, fetch
            )

    async def get_search(
        self,
        query: str,
        category: Optional[str] = DEFAULT_SEARCH_CATEGORY,
        news_count: int = DEFAULT_NEWS_COUNT,
    ) -> Dict[str, Any]:
        """
        Provider search results.

        Crypto queries are rewritten to their ``-USD`` pair first and the
        rewritten query is what the cache key is built from.
        """
        query = (query or "").strip()
        if not query:
            raise InvalidMarketRequestException("Query is required", field="query")
        category = category or DEFAULT_SEARCH_CATEGORY

        search_query = crypto_search_query(query) if category == "crypto" else query
        upstream_news_count = news_count if category == "news" else None

        with tracer.start_as_current_span("market_data.get_search") as span:
            span.set_attribute("market.query", search_query)
            span.set_attribute("market.search_category", category)
            return await self._cached(
                CacheKey.search(search_query, category, news_count),
                ResourceCategory.SEARCH,
                lambda: self._provider.search(search_query, upstream_news_count),
            )

    async def get_screener(
        self,
        screener_id: Optional[str] = DEFAULT_SCREENER,
        count: int = DEFAULT_SCREENER_COUNT,
        favorites: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        """
        Screener results as ``{"quotes": [...]}``.

        The ``favorites`` pseudo-screener quotes each favorite symbol instead
        of calling the provider's screener; without favorites it falls back to
        the default screener.
        """
        screener_id = screener_id or DEFAULT_SCREENER
        symbols = [normalize_symbol(s) for s in favorites or [] if normalize_symbol(s)]

        with tracer.start_as_current_span("market_data.get_screener") as span:
            span.set_attribute("market.screener_id", screener_id)

            if screener_id == FAVORITES_SCREENER and symbols:

                async def fetch_favorites() -> Dict[str, Any]:
                    quotes = await self._fetch_basket("favorite", symbols)
                    dropped = len(symbols) - len(quotes)
                    add_span_attribute("market.favorites_dropped", dropped)
                    if dropped:
                        logger.warning(
                            f"Dropped {dropped} of {len(symbols)} favorite quotes",
                            extra={"dropped": dropped, "requested": len(symbols)},
                        )
                    return {"quotes": quotes}

                return await self._cached(
                    CacheKey.screener(FAVORITES_SCREENER, count, symbols),
                    ResourceCategory.SCREENER,
                    fetch_favorites,
                )

            if screener_id == FAVORITES_SCREENER:
                screener_id = DEFAULT_SCREENER

            return await self._cached(
                CacheKey.screener(screener_id, count),
                ResourceCategory.SCREENER,
                lambda: self._provider.screener(
                    screener_id,
                    count,
                    self._region,
                    self._lang,
                    validate_result=False,
                ),
            )

    # Composite accessors

    async def get_stock_details(self, symbol: str) -> Dict[str, Any]:
        """
        Quote, company profile and recent news for one symbol.

        The quote is mandatory; profile degrades to None and news to an
        empty list when their fetches fail.
        """
        symbol = self._require_symbol(symbol)

        async def fetch_profile() -> Optional[Dict[str, Any]]:
            summary = await self._provider.quote_summary(symbol, [PROFILE_MODULE])
            return (summary or {}).get(PROFILE_MODULE) or None

        async def fetch_news() -> List[Dict[str, Any]]:
            results = await self._provider.search(symbol, DETAILS_NEWS_COUNT)
            return (results or {}).get("news") or []

        async def fetch() -> Dict[str, Any]:
            quote, profile, news = await asyncio.gather(
                self._provider.quote(symbol),
                self._isolated(f"profile for {symbol}", fetch_profile, None),
                self._isolated(f"news for {symbol}", fetch_news, []),
            )
            return {"quote": quote, "profile": profile, "news": news}

        with tracer.start_as_current_span("market_data.get_stock_details") as span:
            span.set_attribute("market.symbol", symbol)
            return await self._cached(
                CacheKey.stock_details(symbol), ResourceCategory.STOCK_DETAILS, fetch
            )

    async def get_stock_news(
        self, symbol: str, count: int = DETAILS_NEWS_COUNT
    ) -> List[Dict[str, Any]]:
        """Headlines from the stock details composite, tagged with impact."""
        details = await self.get_stock_details(symbol)
        return [
            {
                "title": item.get("title"),
                "time": publish_date(item.get("providerPublishTime")),
                "url": item.get("link"),
                "publisher": item.get("publisher"),
                "impact": classify_news_impact(item.get("title")),
            }
            for item in details["news"][:count]
        ]

    async def get_market_data(self) -> Dict[str, Any]:
        """Index basket, popular stocks basket and market headlines."""

        async def fetch_news() -> List[Dict[str, Any]]:
            results = await self._provider.search(MARKET_NEWS_QUERY, DEFAULT_NEWS_COUNT)
            return [news_item(item) for item in (results or {}).get("news") or []]

        async def fetch() -> Dict[str, Any]:
            indices, trending, news = await asyncio.gather(
                self._fetch_basket("index", MARKET_INDICES, market_item),
                self._fetch_basket("stock", MARKET_TRENDING_STOCKS, market_item),
                self._isolated("market news", fetch_news, []),
            )
            return {"indices": indices, "trending": trending, "news": news}

        with tracer.start_as_current_span("market_data.get_market_data"):
            return await self._cached(
                CacheKey.market_data(), ResourceCategory.MARKET_DATA, fetch
            )

    async def _trending_symbols(self) -> List[str]:
        """Live trending list, or the fallback list when unavailable."""
        try:
            results = await self._provider.trending_symbols(self._region)
            symbols = [
                quote["symbol"]
                for quote in (results or {}).get("quotes") or []
                if quote.get("symbol")
            ][:TRENDING_LIMIT]
        except Exception as e:
            logger.warning(
                "Could not fetch dynamic trending symbols, using default list",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            symbols = []
        return symbols or list(FALLBACK_TRENDING_SYMBOLS)

    async def get_trending_data(self) -> Dict[str, Any]:
        """Trending stocks, regional indices and top cryptocurrencies."""

        async def fetch() -> Dict[str, Any]:
            symbols = await self._trending_symbols()
            indices_symbols = INDICES_BY_REGION.get(self._region, INDICES_BY_REGION["US"])
            trending, indices, crypto = await asyncio.gather(
                self._fetch_basket(
                    "stock", symbols, lambda quote: trending_item(quote, trending=True)
                ),
                self._fetch_basket("index", indices_symbols, trending_item),
                self._fetch_basket("crypto", CRYPTO_SYMBOLS[:CRYPTO_LIMIT], trending_item),
            )
            return {"trending": trending, "indices": indices, "crypto": crypto}

        with tracer.start_as_current_span("market_data.get_trending_data"):
            return await self._cached(
                CacheKey.trending_data(), ResourceCategory.TRENDING, fetch
            )

    async def get_indices(self) -> Dict[str, Any]:
        """Raw quotes for the world indices basket."""

        async def fetch() -> Dict[str, Any]:
            return {"quotes": await self._fetch_basket("index", WORLD_INDICES)}

        with tracer.start_as_current_span("market_data.get_indices"):
            return await self._cached(
                CacheKey.indices(), ResourceCategory.MARKET_DATA, fetch
            )

    # Invalidation

    def invalidate_symbol_cache(self, symbol: str) -> int:
        """Drop every cached resource that refers to symbol."""
        return self._cache.invalidate(symbol)

    def invalidate_all_cache(self) -> int:
        """Drop every cached resource."""
        return self._cache.invalidate_all()
