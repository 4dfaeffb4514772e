"""
FastAPI dependencies shared by the endpoint modules.
"""

from fastapi import HTTPException, Request

from ..services.market_data import MarketDataService


def get_market_data_service(request: Request) -> MarketDataService:
    """Service instance built by the application lifespan."""
    service = getattr(request.app.state, "market_data_service", None)
    if service is None:
        raise HTTPException(
            status_code=503, detail="Market data service is not initialized"
        )
    return service
