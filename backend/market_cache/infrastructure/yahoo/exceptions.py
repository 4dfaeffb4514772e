"""
Upstream Provider Exceptions

Domain-specific exceptions for Yahoo Finance calls.
Every failed provider call raises this base class or one of its subclasses,
with the original error chained.
"""

from typing import Any, Dict, Optional


class UpstreamException(Exception):
    """Base exception for upstream provider errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or "UPSTREAM_ERROR"
        self.details = details or {}
        super().__init__(self.message)


class UpstreamConnectionException(UpstreamException):
    """Raised when the provider cannot be reached."""

    def __init__(
        self,
        message: str = "Upstream provider connection failed",
        url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if url:
            details["url"] = url
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="UPSTREAM_CONNECTION_ERROR", details=details
        )
        if original_error:
            self.__cause__ = original_error


class UpstreamTimeoutException(UpstreamException):
    """Raised when a provider request exceeds its timeout."""

    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(
            message=f"Upstream operation '{operation}' timed out after {timeout_seconds}s",
            error_code="UPSTREAM_TIMEOUT_ERROR",
            details={"operation": operation, "timeout_seconds": timeout_seconds},
        )


class UpstreamRateLimitException(UpstreamException):
    """Raised when the provider answers 429 Too Many Requests."""

    def __init__(self, operation: str, retry_after: Optional[str] = None):
        details: Dict[str, Any] = {"operation": operation}
        if retry_after:
            details["retry_after"] = retry_after

        super().__init__(
            message=f"Upstream rate limit hit during '{operation}'",
            error_code="UPSTREAM_RATE_LIMITED",
            details=details,
        )


class UpstreamResponseException(UpstreamException):
    """Raised on a non-success status or an unusable payload."""

    def __init__(
        self,
        operation: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        details: Dict[str, Any] = {"operation": operation}
        if status_code is not None:
            details["status_code"] = status_code
        if reason:
            details["reason"] = reason

        message = f"Upstream operation '{operation}' failed"
        if status_code is not None:
            message += f" with status {status_code}"
        if reason:
            message += f": {reason}"

        super().__init__(
            message=message, error_code="UPSTREAM_RESPONSE_ERROR", details=details
        )

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get("status_code")


class SymbolNotFoundException(UpstreamException):
    """Raised when the provider knows nothing about a symbol."""

    def __init__(self, symbol: str):
        super().__init__(
            message=f"No data found for symbol: {symbol}",
            error_code="SYMBOL_NOT_FOUND",
            details={"symbol": symbol},
        )
