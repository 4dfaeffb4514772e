"""
Market Data Services

Cached accessors over the upstream provider and the helpers shaping their
payloads.
"""

from .exceptions import InvalidMarketRequestException
from .market_data_service import MarketDataService, crypto_search_query
from .search_filters import search_by_category

__all__ = [
    "InvalidMarketRequestException",
    "MarketDataService",
    "crypto_search_query",
    "search_by_category",
]
