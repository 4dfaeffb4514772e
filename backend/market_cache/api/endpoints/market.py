"""
Market data API endpoints.

Thin HTTP layer over the cached accessors. Missing or invalid parameters
answer 400; any accessor failure answers 500; a degraded composite is
still a 200.
"""

from typing import Any, Awaitable, Dict, List, Optional, TypeVar

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ...constants import (
    DEFAULT_INTERVAL,
    DEFAULT_RANGE,
    DEFAULT_SCREENER_COUNT,
    DEFAULT_SEARCH_CATEGORY,
    DETAILS_NEWS_COUNT,
    SCREENER_OPTIONS,
)
from ...services.market_data import (
    InvalidMarketRequestException,
    MarketDataService,
    search_by_category,
)
from ..dependencies import get_market_data_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/yahoo-finance", tags=["market-data"])

T = TypeVar("T")


class ScreenerRequest(BaseModel):
    """Screener request body."""

    screenerId: Optional[str] = Field(None, description="Predefined screener id")
    favorites: List[str] = Field(
        default_factory=list, description="Symbols for the favorites screener"
    )
    count: int = Field(
        DEFAULT_SCREENER_COUNT, ge=1, le=250, description="Maximum results"
    )


def _require(value: Optional[str], name: str) -> str:
    if not value or not value.strip():
        raise HTTPException(status_code=400, detail=f"{name} parameter is required")
    return value.strip()


async def _serve(operation: str, failure_message: str, call: Awaitable[T]) -> T:
    """Await an accessor, mapping failures to HTTP errors."""
    try:
        return await call
    except InvalidMarketRequestException as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.exception("Market data request failed", operation=operation, error=str(e))
        raise HTTPException(status_code=500, detail=failure_message) from e


@router.get("/quote")
async def get_quote(
    symbol: Optional[str] = Query(None, description="Ticker symbol"),
    service: MarketDataService = Depends(get_market_data_service),
) -> Dict[str, Any]:
    symbol = _require(symbol, "Symbol")
    return await _serve("quote", "Failed to fetch quote", service.get_quote(symbol))


@router.get("/stock-details")
async def get_stock_details(
    symbol: Optional[str] = Query(None, description="Ticker symbol"),
    service: MarketDataService = Depends(get_market_data_service),
) -> Dict[str, Any]:
    symbol = _require(symbol, "Symbol")
    return await _serve(
        "stock_details",
        "Failed to fetch stock details",
        service.get_stock_details(symbol),
    )


@router.get("/stock-news")
async def get_stock_news(
    symbol: Optional[str] = Query(None, description="Ticker symbol"),
    count: int = Query(DETAILS_NEWS_COUNT, ge=1, le=DETAILS_NEWS_COUNT),
    service: MarketDataService = Depends(get_market_data_service),
) -> List[Dict[str, Any]]:
    symbol = _require(symbol, "Symbol")
    return await _serve(
        "stock_news", "Failed to fetch stock news", service.get_stock_news(symbol, count)
    )


@router.get("/quote-summary")
async def get_quote_summary(
    symbol: Optional[str] = Query(None, description="Ticker symbol"),
    modules: str = Query("price", description="Comma-separated module names"),
    service: MarketDataService = Depends(get_market_data_service),
) -> Dict[str, Any]:
    symbol = _require(symbol, "Symbol")
    module_list = [module.strip() for module in modules.split(",")]
    return await _serve(
        "quote_summary",
        "Failed to fetch quote summary",
        service.get_quote_summary(symbol, module_list),
    )


@router.get("/chart")
async def get_chart(
    symbol: Optional[str] = Query(None, description="Ticker symbol"),
    range_: str = Query(DEFAULT_RANGE, alias="range", description="Range token"),
    interval: str = Query(DEFAULT_INTERVAL, description="Bar interval"),
    service: MarketDataService = Depends(get_market_data_service),
) -> Dict[str, Any]:
    symbol = _require(symbol, "Symbol")
    return await _serve(
        "chart",
        "Failed to fetch chart data",
        service.get_chart_data(symbol, range_, interval),
    )


@router.get("/search")
async def search(
    query: Optional[str] = Query(None, description="Free-text query"),
    category: str = Query(DEFAULT_SEARCH_CATEGORY, description="Result category"),
    service: MarketDataService = Depends(get_market_data_service),
) -> List[Dict[str, Any]]:
    query = _require(query, "Query")
    return await _serve(
        "search",
        "Failed to fetch search results",
        search_by_category(service, query, category),
    )


@router.get("/screeners")
async def list_screeners() -> List[Dict[str, str]]:
    """Predefined screeners offered to clients."""
    return list(SCREENER_OPTIONS)


@router.post("")
async def run_screener(
    request: Optional[ScreenerRequest] = Body(None),
    service: MarketDataService = Depends(get_market_data_service),
) -> Dict[str, Any]:
    request = request or ScreenerRequest()
    return await _serve(
        "screener",
        "Failed to fetch stock data",
        service.get_screener(request.screenerId, request.count, request.favorites),
    )


@router.get("/market")
async def get_market(
    service: MarketDataService = Depends(get_market_data_service),
) -> Dict[str, Any]:
    return await _serve(
        "market", "Failed to fetch market data", service.get_market_data()
    )


@router.get("/trending")
async def get_trending(
    service: MarketDataService = Depends(get_market_data_service),
) -> Dict[str, Any]:
    return await _serve(
        "trending", "Failed to fetch trending data", service.get_trending_data()
    )


@router.get("/indices")
async def get_indices(
    service: MarketDataService = Depends(get_market_data_service),
) -> Dict[str, Any]:
    return await _serve(
        "indices", "Failed to fetch market indices", service.get_indices()
    )
