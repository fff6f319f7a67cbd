"""
Shared error handling for the cache proxy.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import get_request_id


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    error: str
    message: str
    details: Dict[str, Any] = {}


class ProxyException(Exception):
    """Base exception for cache proxy services."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=get_request_id(),
            code=self.code,
            error=self.error,
            message=self.message,
            details=self.details
        )


class AuthenticationError(ProxyException):
    """Authentication-related errors."""

    status_code = 401
    error = "Unauthorized"

    def __init__(self, code: str = "AUTHENTICATION_ERROR", message: str = "Authentication failed",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(code, message, details)


class AuthCredentialMissing(AuthenticationError):
    """No credential was supplied to a guarded endpoint."""

    def __init__(self, message: str = "Missing Authorization header", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTH_CREDENTIAL_MISSING", message, details)


class AuthCredentialInvalid(AuthenticationError):
    """The session validation endpoint rejected the credential."""

    def __init__(self, message: str = "Invalid credential", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTH_CREDENTIAL_INVALID", message, details)


class AuthServiceUnavailable(ProxyException):
    """The session validation endpoint could not be reached or answered garbage."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str = "Unable to reach session validation service",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTH_SERVICE_UNAVAILABLE", message, details)


class ExternalServiceError(ProxyException):
    """External service errors."""

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)


class UpstreamFetchError(ProxyException):
    """Upstream API answered with a non-2xx status or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        self.upstream_status = status_code
        details = dict(details or {})
        if status_code is not None:
            details["upstream_status"] = status_code
        super().__init__("UPSTREAM_FETCH_FAILED", message, details)


class StoreUnavailableError(ProxyException):
    """Key-value store call failed."""

    def __init__(self, message: str = "Key-value store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_UNAVAILABLE", message, details)
