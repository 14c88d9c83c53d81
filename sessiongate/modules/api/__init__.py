"""
API Module - Black Box Interface

Purpose: HTTP request/response contracts
Interface: Pydantic models for every endpoint
Hidden: Wire naming (camelCase aliases)

The API layer only orchestrates - it contains no business logic.
All logic is delegated to the session module and gate.
"""

from .models import (
    CreateSessionRequest,
    CreateSessionResponse,
    EndSessionResponse,
    ErrorResponse,
    HealthResponse,
    ProtectedResponse,
    ProtectedUser,
    SessionData,
    ValidateSessionRequest,
    ValidateSessionResponse,
)

__all__ = [
    "CreateSessionRequest",
    "CreateSessionResponse",
    "EndSessionResponse",
    "ErrorResponse",
    "HealthResponse",
    "ProtectedResponse",
    "ProtectedUser",
    "SessionData",
    "ValidateSessionRequest",
    "ValidateSessionResponse",
]
