"""
Market Data Constants

Symbol baskets, screener ids and chart defaults shared by the accessors
and the API layer.
"""

from datetime import datetime, timezone
from typing import Dict, Tuple


# Timestamp Functions
def get_current_timestamp() -> datetime:
    """Get current timestamp with UTC timezone."""
    return datetime.now(timezone.utc)


# Application Constants
APP_NAME = "Market Data Cache"
APP_VERSION = "0.1.0"

# Screeners
DEFAULT_SCREENER = "most_actives"
FAVORITES_SCREENER = "favorites"
DEFAULT_SCREENER_COUNT = 40

SCREENER_OPTIONS: Tuple[Dict[str, str], ...] = (
    {"label": "Most Actives", "value": "most_actives"},
    {"label": "Day Gainers", "value": "day_gainers"},
    {"label": "Day Losers", "value": "day_losers"},
    {"label": "Growth Technology Stocks", "value": "growth_technology_stocks"},
    {"label": "The Most Shorted Stocks", "value": "most_shorted_stocks"},
    {"label": "Undervalued Growth Stocks", "value": "undervalued_growth_stocks"},
    {"label": "Aggressive Small Caps", "value": "aggressive_small_caps"},
    {"label": "Conservative Foreign Funds", "value": "conservative_foreign_funds"},
    {"label": "High Yield Bond", "value": "high_yield_bond"},
    {"label": "Portfolio Anchors", "value": "portfolio_anchors"},
    {"label": "Small Cap Gainers", "value": "small_cap_gainers"},
    {"label": "Solid Large Growth Funds", "value": "solid_large_growth_funds"},
    {"label": "Solid Midcap Growth Funds", "value": "solid_midcap_growth_funds"},
    {"label": "Top Mutual Funds", "value": "top_mutual_funds"},
    {"label": "Undervalued Large Caps", "value": "undervalued_large_caps"},
)

# Chart ranges
DEFAULT_RANGE = "3mo"
DEFAULT_INTERVAL = "1d"

# Search
SEARCH_CATEGORIES = ("stocks", "news", "markets", "crypto")
DEFAULT_SEARCH_CATEGORY = "stocks"
DEFAULT_NEWS_COUNT = 5

# Market snapshot baskets
MARKET_INDICES = ("^GSPC", "^DJI", "^IXIC", "^RUT")  # S&P 500, Dow, NASDAQ, Russell 2000
MARKET_TRENDING_STOCKS = ("AAPL", "MSFT", "GOOGL", "AMZN", "META", "NVDA", "TSLA")
MARKET_NEWS_QUERY = "market"

# Trending snapshot baskets
TRENDING_LIMIT = 6
FALLBACK_TRENDING_SYMBOLS = ("AAPL", "MSFT", "GOOGL", "AMZN", "META", "NVDA")
INDICES_BY_REGION: Dict[str, Tuple[str, ...]] = {
    "US": ("^GSPC", "^DJI", "^IXIC"),
    "EU": ("^STOXX50E", "^GDAXI", "^FTSE"),
    "ASIA": ("^N225", "^HSI", "^SSEC"),
}
CRYPTO_SYMBOLS = ("BTC-USD", "ETH-USD", "SOL-USD", "XRP-USD")
CRYPTO_LIMIT = 3

# World indices basket
WORLD_INDICES = (
    "^GSPC",  # S&P 500
    "^DJI",  # Dow Jones Industrial Average
    "^IXIC",  # NASDAQ Composite
    "^RUT",  # Russell 2000
    "^FTSE",  # FTSE 100
    "^N225",  # Nikkei 225
    "^HSI",  # Hang Seng
    "^GDAXI",  # DAX
)

# Stock details
PROFILE_MODULE = "assetProfile"
DETAILS_NEWS_COUNT = 5

# Headline impact keywords
HIGH_IMPACT_KEYWORDS = (
    "crash",
    "surge",
    "plunge",
    "soars",
    "tumbles",
    "bankruptcy",
    "scandal",
    "investigation",
    "lawsuit",
)
MEDIUM_IMPACT_KEYWORDS = (
    "earnings",
    "reports",
    "announces",
    "dividend",
    "guidance",
    "forecast",
    "outlook",
    "acquisition",
)
