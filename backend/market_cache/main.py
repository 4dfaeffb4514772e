"""
Market Data Cache - Main FastAPI Application

Serves cached Yahoo Finance data:
- Per-category TTL caching with symbol-scoped invalidation
- Concurrent-miss coalescing per cache key
- Degrading composite snapshots (market, trending, stock details)
- OpenTelemetry tracing and structured logging
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .api.endpoints.cache import router as cache_router
from .api.endpoints.health import router as health_router
from .api.endpoints.market import router as market_router
from .constants import APP_NAME, APP_VERSION
from .core.config import get_settings
from .core.logging import configure_logging
from .core.telemetry import configure_tracing, shutdown_tracing
from .domain.cache.value_objects import TTLPolicy
from .infrastructure.yahoo import YahooFinanceClient
from .services.cache import ResourceCache
from .services.market_data import MarketDataService

logger = structlog.get_logger()
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager wiring the provider, cache and service."""
    configure_logging(settings)

    try:
        configure_tracing(settings)
    except Exception as e:
        logger.warning(
            "OpenTelemetry initialization failed, continuing without telemetry",
            error=str(e),
        )

    client = YahooFinanceClient(settings)
    cache = ResourceCache(coalesce_misses=settings.CACHE_COALESCE_MISSES)
    ttl_policy = TTLPolicy(settings.CACHE_TTL_OVERRIDES)

    app.state.yahoo_client = client
    app.state.market_data_service = MarketDataService(
        client,
        cache,
        ttl_policy=ttl_policy,
        region=settings.MARKET_REGION,
        lang=settings.MARKET_LANG,
    )

    logger.info(
        "Market data cache API started",
        version=APP_VERSION,
        environment=settings.ENVIRONMENT,
        region=settings.MARKET_REGION,
        coalesce_misses=settings.CACHE_COALESCE_MISSES,
        ttl_seconds=ttl_policy.as_dict(),
    )

    yield

    logger.info("Shutting down market data cache API")
    try:
        await client.close()
    except Exception as e:
        logger.error("Error closing upstream client", error=str(e))
    finally:
        shutdown_tracing()


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTP errors as ``{"error": message}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def create_app() -> FastAPI:
    """Build the application with middleware and routers."""
    application = FastAPI(
        title=f"{APP_NAME} API",
        description="Cached Yahoo Finance market data",
        version=APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(HTTPException, http_exception_handler)

    application.include_router(health_router)
    application.include_router(cache_router)
    application.include_router(market_router)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "market_cache.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.is_development,
        log_config=None,
    )
