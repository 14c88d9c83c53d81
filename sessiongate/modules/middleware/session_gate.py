"""
Session Gate Middleware

Re-validates the caller's session id on every protected request and
attaches the resolved session to ``request.state.session``.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from ..errors import ExpiredError, NotFoundError, SessionGateError, Unauthorized
from ..session import SessionModule

logger = logging.getLogger(__name__)

DEFAULT_MASK_LENGTH = 10


@dataclass(frozen=True)
class SessionContext:
    """Session data available to protected handlers."""

    session_id: str
    credential: str = field(repr=False)
    style_config: Any
    expires_at: datetime
    mask_length: int = DEFAULT_MASK_LENGTH

    def masked_credential(self) -> str:
        """Display form of the credential; the full value is never rendered."""
        return f"{self.credential[:self.mask_length]}..."


class SessionGate:
    """
    Session middleware for FastAPI applications.

    Only routes listed in ``protected_paths`` are gated; everything else
    passes straight through.
    """

    def __init__(
        self,
        session_module: SessionModule,
        protected_paths: Optional[Dict[str, list]] = None,
        header_name: str = "X-Session-ID",
        mask_length: int = DEFAULT_MASK_LENGTH,
        log_attempts: bool = True,
    ):
        """
        Initialize session gate.

        Args:
            session_module: SessionModule used to resolve sessions
            protected_paths: Dict of {path: [methods]} requiring a session
            header_name: Header carrying the session id
            mask_length: Credential characters shown by masked_credential()
            log_attempts: Whether to log denied requests
        """
        self.session_module = session_module
        self.protected_paths = protected_paths or {}
        self.header_name = header_name
        self.mask_length = mask_length
        self.log_attempts = log_attempts

    def requires_session(self, request: Request) -> bool:
        """Check if this request targets a protected route."""
        methods = self.protected_paths.get(str(request.url.path))
        if methods is None:
            return False
        return "*" in methods or request.method.upper() in methods

    def extract_session_id(self, request: Request) -> Optional[str]:
        return request.headers.get(self.header_name) or None

    async def authorize(self, session_id: Optional[str]) -> SessionContext:
        """
        Resolve a session id into a SessionContext.

        Never-existed and expired sessions are both reported as
        Unauthorized. Store readiness is checked first, so StoreUnavailable
        wins over a missing header and propagates unchanged.
        """
        self.session_module.ensure_ready()
        if not session_id:
            raise Unauthorized("Session ID is required")

        try:
            record = await self.session_module.resolve_session(session_id)
        except NotFoundError:
            if self.log_attempts:
                logger.warning(f"Unknown session {session_id} denied")
            raise Unauthorized("Invalid or expired session") from None
        except ExpiredError:
            if self.log_attempts:
                logger.warning(f"Expired session {session_id} denied")
            raise Unauthorized("Invalid or expired session") from None

        return SessionContext(
            session_id=session_id,
            credential=record.credential,
            style_config=record.style_config,
            expires_at=record.expires_at,
            mask_length=self.mask_length,
        )

    async def __call__(self, request: Request, call_next):
        """Process the request through the session gate."""
        if not self.requires_session(request):
            return await call_next(request)

        try:
            context = await self.authorize(self.extract_session_id(request))
        except SessionGateError as e:
            if self.log_attempts and not isinstance(e, Unauthorized):
                logger.warning(f"Session gate rejected {request.url.path}: {e.message}")
            return JSONResponse(status_code=e.status_code, content=e.to_dict())
        except Exception as e:
            logger.error(f"Session gate error: {e}")
            error = SessionGateError("Error in session validation middleware")
            return JSONResponse(status_code=error.status_code, content=error.to_dict())

        request.state.session = context
        return await call_next(request)


def create_session_gate(
    session_module: SessionModule,
    protected_paths: Optional[Dict[str, list]] = None,
    header_name: str = "X-Session-ID",
    mask_length: int = DEFAULT_MASK_LENGTH,
) -> SessionGate:
    """
    Factory function to create the session gate.

    Args:
        session_module: SessionModule instance
        protected_paths: Extra paths to gate {"/path": ["GET", "POST"]}
        header_name: Header carrying the session id
        mask_length: Credential display prefix length

    Returns:
        Configured SessionGate instance
    """
    default_protected_paths = {
        "/api/protected": ["GET"],
        "/api/session": ["DELETE"],
    }

    if protected_paths:
        default_protected_paths.update(protected_paths)

    return SessionGate(
        session_module=session_module,
        protected_paths=default_protected_paths,
        header_name=header_name,
        mask_length=mask_length,
    )
