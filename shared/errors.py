"""
Shared error handling for the ladder viewer service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class ViewerException(Exception):
    """Base exception for viewer services."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(ViewerException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class UpstreamFailure(ViewerException):
    """Ladder API call failed: network, timeout, bad status or malformed payload."""

    def __init__(self, operation: str, message: str = "Upstream call failed", details: Optional[Dict[str, Any]] = None):
        self.operation = operation
        super().__init__("UPSTREAM_FAILURE", f"{operation}: {message}", details)


class UpstreamRateLimited(UpstreamFailure):
    """Ladder API rejected the call for exceeding its rate ceiling."""

    def __init__(self, operation: str, retry_after: float = 1.0, details: Optional[Dict[str, Any]] = None):
        self.retry_after = retry_after
        super().__init__(operation, f"rate limited, retry after {retry_after}s", details)
        self.code = "UPSTREAM_RATE_LIMITED"


class CacheUnavailable(ViewerException):
    """Cache backend is not configured or cannot be reached."""

    def __init__(self, message: str = "Cache unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_UNAVAILABLE", message, details)


class CacheWriteFailure(ViewerException):
    """Writing or expiring a cache entry failed."""

    def __init__(self, key: str, message: str = "Cache write failed", details: Optional[Dict[str, Any]] = None):
        self.key = key
        super().__init__("CACHE_WRITE_FAILURE", f"{key}: {message}", details)


class StoreFailure(ViewerException):
    """Persistent channel configuration store errors."""

    def __init__(self, message: str = "Store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_FAILURE", message, details)
