"""
Shaping helpers for market data payloads: chart windows, display
formatting, basket item projections and headline impact.
"""

import calendar
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from ...constants import (
    DEFAULT_RANGE,
    HIGH_IMPACT_KEYWORDS,
    MEDIUM_IMPACT_KEYWORDS,
)

_RANGE_DAYS = {"1d": 1, "5d": 5}
_RANGE_MONTHS = {"1mo": 1, "3mo": 3, "6mo": 6, "1y": 12, "2y": 24, "5y": 60}


def subtract_months(moment: datetime, months: int) -> datetime:
    """Calendar-aware month subtraction, clamping to the target month's end."""
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def chart_window(range_: str, now: datetime) -> Tuple[datetime, datetime]:
    """Start and end of the chart window for a range token.

    Unknown tokens, ``max`` included, get the default three-month window.
    """
    if range_ in _RANGE_DAYS:
        return now - timedelta(days=_RANGE_DAYS[range_]), now
    months = _RANGE_MONTHS.get(range_, _RANGE_MONTHS[DEFAULT_RANGE])
    return subtract_months(now, months), now


def format_percentage(value: Optional[float]) -> str:
    """``1.2345`` -> ``"1.23%"``."""
    return f"{(value or 0):.2f}%"


def format_number_with_commas(value: Optional[float]) -> str:
    """``1234567.5`` -> ``"1,234,567.5"``."""
    return f"{(value or 0):,}"


def market_item(quote: Dict[str, Any]) -> Dict[str, Any]:
    """Compact quote projection used by the market snapshot."""
    return {
        "symbol": quote.get("symbol"),
        "shortName": quote.get("shortName") or quote.get("symbol"),
        "price": quote.get("regularMarketPrice") or 0,
        "change": quote.get("regularMarketChange") or 0,
        "changePercent": quote.get("regularMarketChangePercent") or 0,
    }


def trending_item(quote: Dict[str, Any], trending: bool = False) -> Dict[str, Any]:
    """Quote projection with display strings used by the trending snapshot."""
    price = quote.get("regularMarketPrice") or 0
    change_percent = quote.get("regularMarketChangePercent") or 0
    item = {
        "symbol": quote.get("symbol"),
        "shortName": quote.get("shortName") or quote.get("symbol"),
        "regularMarketPrice": price,
        "formattedPrice": format_number_with_commas(price),
        "regularMarketChange": quote.get("regularMarketChange") or 0,
        "regularMarketChangePercent": change_percent,
        "formattedChangePercent": format_percentage(change_percent),
    }
    if trending:
        item["trending"] = True
    return item


def publish_date(timestamp: Any) -> Optional[str]:
    """ISO date of a provider publish time (epoch seconds or ISO string)."""
    if timestamp is None:
        return None
    if isinstance(timestamp, (int, float)):
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).date().isoformat()
    try:
        return datetime.fromisoformat(str(timestamp).replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return None


def news_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """Market snapshot news projection."""
    return {
        "title": item.get("title"),
        "publisher": item.get("publisher"),
        "link": item.get("link"),
        "time": publish_date(item.get("providerPublishTime")),
    }


def classify_news_impact(title: Optional[str]) -> str:
    """Rough headline impact: ``high``, ``medium`` or ``low``."""
    lowered = (title or "").lower()
    if any(keyword in lowered for keyword in HIGH_IMPACT_KEYWORDS):
        return "high"
    if any(keyword in lowered for keyword in MEDIUM_IMPACT_KEYWORDS):
        return "medium"
    return "low"
