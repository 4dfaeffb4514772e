"""
Category filtering for search results.

Turns raw provider search payloads into the flat result lists the search
endpoint returns, one rule per search category.
"""

import logging
from typing import Any, Dict, List

from .market_data_service import MarketDataService

logger = logging.getLogger(__name__)

NEWS_SEARCH_COUNT = 30
CRYPTO_FALLBACK_QUERY = "crypto"
CRYPTO_FALLBACK_LIMIT = 10

_QUOTE_TYPES = {
    "stocks": {"EQUITY", "ETF"},
    "markets": {"INDEX", "MUTUALFUND"},
    "crypto": {"CRYPTOCURRENCY"},
}


def _quotes_of_type(results: Dict[str, Any], quote_types: set) -> List[Dict[str, Any]]:
    return [
        quote
        for quote in (results or {}).get("quotes") or []
        if quote.get("quoteType") in quote_types
    ]


def format_quote_result(quote: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "symbol": quote.get("symbol") or "",
        "name": quote.get("shortname")
        or quote.get("longname")
        or quote.get("name")
        or "Unknown",
        "type": quote.get("quoteType") or quote.get("type") or "Unknown",
    }


def format_news_result(item: Dict[str, Any]) -> Dict[str, Any]:
    publish_time = item.get("providerPublishTime")
    return {
        "symbol": item.get("publisher") or "",
        "name": item.get("title") or "Unknown",
        "type": "News",
        "url": item.get("link") or "",
        # milliseconds, as browsers expect
        "time": publish_time * 1000 if isinstance(publish_time, (int, float)) else None,
    }


async def search_by_category(
    service: MarketDataService, query: str, category: str
) -> List[Dict[str, Any]]:
    """
    Search and filter results for one category.

    Upstream failures propagate, except inside the crypto path where the
    result degrades to an empty list.
    """
    if category == "news":
        results = await service.get_search(query, "news", NEWS_SEARCH_COUNT)
        return [format_news_result(item) for item in results.get("news") or []]

    if category == "crypto":
        try:
            results = await service.get_search(query, "crypto")
            quotes = _quotes_of_type(results, _QUOTE_TYPES["crypto"])
            if not quotes:
                general = await service.get_search(CRYPTO_FALLBACK_QUERY)
                quotes = _quotes_of_type(general, _QUOTE_TYPES["crypto"])[
                    :CRYPTO_FALLBACK_LIMIT
                ]
        except Exception as e:
            logger.error(
                "Crypto search error",
                extra={"query": query, "error": str(e), "error_type": type(e).__name__},
            )
            quotes = []
        return [format_quote_result(quote) for quote in quotes]

    results = await service.get_search(query, category)
    if category in _QUOTE_TYPES:
        quotes = _quotes_of_type(results, _QUOTE_TYPES[category])
    else:
        quotes = (results or {}).get("quotes") or []
    return [format_quote_result(quote) for quote in quotes]
