"""
Market Data Service Exceptions

Raised by the accessors when a request is rejected before any upstream call.
"""

from typing import Any, Dict, Optional


class InvalidMarketRequestException(ValueError):
    """Raised when accessor parameters are missing or empty."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = "INVALID_REQUEST"
        self.details = details or {}
        if field:
            self.details["field"] = field
        super().__init__(self.message)
