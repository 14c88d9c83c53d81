"""
SessionGate HTTP data models.

Wire field names are camelCase; Python attributes are snake_case.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Request Models (API Input)


class CreateSessionRequest(WireModel):
    """Request to exchange an API key for a session."""

    api_key: Optional[str] = Field(None, description="Client API key for the identity provider")


class ValidateSessionRequest(WireModel):
    """Request to check a session."""

    session_id: Optional[str] = Field(None, description="Session identifier")


# Response Models (API Output)


class CreateSessionResponse(WireModel):
    """Response after creating a session."""

    success: bool = True
    session_id: str
    expires_at: str = Field(..., description="ISO-8601 UTC expiry")
    message: str = "Session created successfully"


class SessionData(WireModel):
    """Client-safe session view. Never carries the credential."""

    style_config: Any = None
    expires_at: str


class ValidateSessionResponse(WireModel):
    """Response after validating a session."""

    success: bool = True
    valid: bool = True
    session_data: SessionData
    message: str = "Session is valid"


class ProtectedUser(WireModel):
    jwt: str = Field(..., description="Masked credential prefix")
    style_config: Any = None


class ProtectedResponse(WireModel):
    success: bool = True
    message: str = "You have access to protected resource"
    user: ProtectedUser


class EndSessionResponse(WireModel):
    success: bool = True
    message: str


class ErrorResponse(WireModel):
    """Structured failure body shared by every endpoint."""

    success: bool = False
    error: str
    code: str
    message: str
    details: Optional[str] = None


class HealthResponse(WireModel):
    status: str
    redis: str
