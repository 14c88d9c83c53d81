"""
Error taxonomy shared by all SessionGate modules.

Every failure a public operation can produce is one of these exceptions.
Each carries a stable machine-readable code, the HTTP status it maps to,
a short message and (for upstream failures only) the raw upstream details.
"""

from http import HTTPStatus
from typing import Any, Dict, Optional


class SessionGateError(Exception):
    """Base class for all structured SessionGate failures."""

    code = "internal_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Render the structured error body returned to callers."""
        body: Dict[str, Any] = {
            "success": False,
            "error": HTTPStatus(self.status_code).phrase,
            "code": self.code,
            "message": self.message,
        }
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(SessionGateError):
    """Required input is missing or malformed."""

    code = "validation_error"
    status_code = 400


class AuthError(SessionGateError):
    """The provider answered but issued no credential."""

    code = "auth_error"
    status_code = 401


class Unauthorized(SessionGateError):
    """Access denied by the session gate."""

    code = "unauthorized"
    status_code = 401


class NotFoundError(SessionGateError):
    code = "not_found"
    status_code = 404


class ExpiredError(SessionGateError):
    code = "expired"
    status_code = 401


class UpstreamError(SessionGateError):
    """The credential exchange failed in transport or was rejected."""

    code = "upstream_error"
    status_code = 502


class StoreUnavailable(SessionGateError):
    """The session store connection is not ready."""

    code = "store_unavailable"
    status_code = 503


__all__ = [
    "SessionGateError",
    "ValidationError",
    "AuthError",
    "Unauthorized",
    "NotFoundError",
    "ExpiredError",
    "UpstreamError",
    "StoreUnavailable",
]
