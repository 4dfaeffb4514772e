"""
Health check endpoints for the market data cache API.

Reports process liveness and the state of the resource cache.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...core.config import get_settings
from ...services.market_data import MarketDataService
from ..dependencies import get_market_data_service

# Track process start time for uptime calculation
PROCESS_START_TIME = time.time()

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns a simple health status for load balancers and monitoring systems.
    """
    settings = get_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.OTEL_SERVICE_NAME,
        "version": settings.OTEL_SERVICE_VERSION,
        "environment": settings.ENVIRONMENT,
        "uptime_seconds": round(time.time() - PROCESS_START_TIME, 3),
    }


@router.get("/cache")
async def cache_health(
    service: MarketDataService = Depends(get_market_data_service),
) -> Dict[str, Any]:
    """Cache counters, entry counts and the effective TTL table in seconds."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "cache": service.cache.stats(),
        "ttl_seconds": service.ttl_policy.as_dict(),
    }
