"""
Cache administration endpoints.

Lets operators drop cached market data for one symbol or for everything,
e.g. after a corporate action makes cached quotes misleading.
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, HTTPException

from ...domain.cache.value_objects import normalize_symbol
from ...services.market_data import MarketDataService
from ..dependencies import get_market_data_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/yahoo-finance/cache", tags=["cache"])


@router.delete("/{symbol}")
async def invalidate_symbol(
    symbol: str,
    service: MarketDataService = Depends(get_market_data_service),
) -> Dict[str, Any]:
    """Drop every cached resource that refers to symbol."""
    normalized = normalize_symbol(symbol)
    if not normalized:
        raise HTTPException(status_code=400, detail="Symbol parameter is required")

    removed = service.invalidate_symbol_cache(normalized)
    logger.info("Symbol cache invalidated", symbol=normalized, invalidated=removed)
    return {"symbol": normalized, "invalidated": removed}


@router.delete("")
async def invalidate_all(
    service: MarketDataService = Depends(get_market_data_service),
) -> Dict[str, Any]:
    removed = service.invalidate_all_cache()
    logger.info("Full cache invalidated", invalidated=removed)
    return {"invalidated": removed}
