"""
Shared error handling for the content relay gateway.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class RelayException(Exception):
    """Base exception for relay services."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class InvalidFormat(RelayException, ValueError):
    """Malformed size or duration literal."""

    def __init__(self, message: str = "Invalid format", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_FORMAT", message, details)


class NoRouteMatch(RelayException):
    """No configured proxy rule matches the request path."""

    status_code = 404

    def __init__(self, path: str):
        super().__init__("NO_ROUTE_MATCH", "Not Found", {"path": path})
        self.path = path


class UpstreamError(RelayException):
    """Upstream answered with a non-success status."""

    def __init__(self, status_code: int, reason: str, url: str):
        super().__init__(
            "UPSTREAM_ERROR",
            reason,
            {"status_code": status_code, "url": url}
        )
        self.status_code = status_code
        self.reason = reason
        self.url = url


class TransportFailure(RelayException):
    """Network-level failure reaching an upstream."""

    status_code = 500

    def __init__(self, url: str, message: str = "Upstream transport failure"):
        super().__init__("TRANSPORT_FAILURE", message, {"url": url})
        self.url = url
