#!/usr/bin/env python3
"""
SessionGate - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Runs the API server

All business logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

import uvicorn
from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sessiongate.config.provider import ConfigProvider, EnvConfigProvider
from sessiongate.logging_config import get_logging_config
from sessiongate.modules.api import (
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
from sessiongate.modules.errors import SessionGateError, ValidationError
from sessiongate.modules.exchange import CredentialExchangeClient
from sessiongate.modules.middleware import SessionContext, create_session_gate
from sessiongate.modules.session import SessionModule
from sessiongate.modules.storage import SessionStore, StorageModule

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - connect and release the session store.
    """
    storage: StorageModule = app.state.storage

    logger.info("Starting SessionGate API...")
    if not await storage.start():
        logger.warning(
            f"Redis not ready at startup, retrying every {storage.retry_interval}s in background"
        )
    logger.info("SessionGate API started")

    yield

    logger.info("Shutting down SessionGate API...")
    await storage.close()
    logger.info("SessionGate API shutdown complete")


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    storage: Optional[StorageModule] = None,
    exchange_client: Optional[CredentialExchangeClient] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """
    Build the FastAPI application and wire all modules together.

    Args:
        config_provider: Configuration source (environment by default)
        storage: Pre-built storage handle, e.g. for tests
        exchange_client: Pre-built identity provider client, e.g. for tests
        clock: Clock override for the session module

    Returns:
        Configured FastAPI application
    """
    config_provider = config_provider or EnvConfigProvider()
    redis_config = config_provider.get_redis_config()
    exchange_config = config_provider.get_exchange_config()
    session_config = config_provider.get_session_config()
    api_config = config_provider.get_api_config()

    storage = storage or StorageModule(
        redis_config.url,
        password=redis_config.password,
        retry_interval=redis_config.retry_interval,
        socket_timeout=redis_config.socket_timeout,
    )
    exchange_client = exchange_client or CredentialExchangeClient(
        exchange_config.url, timeout=exchange_config.timeout
    )
    session_module = SessionModule(
        SessionStore(storage),
        exchange_client,
        default_ttl=session_config.ttl_seconds,
        clock=clock,
    )
    session_gate = create_session_gate(
        session_module,
        header_name=session_config.header_name,
        mask_length=session_config.credential_mask_length,
    )

    app = FastAPI(
        title="SessionGate API",
        description="SessionGate - short-lived session handles over an external identity provider",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.storage = storage
    app.state.session_module = session_module
    app.state.session_gate = session_gate

    @app.middleware("http")
    async def gate_protected_routes(request: Request, call_next):
        return await session_gate(request, call_next)

    # Added last so it wraps the gate and decorates its denials too
    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_routes(app)
    _register_error_handlers(app)
    return app


def _register_routes(app: FastAPI) -> None:
    @app.post(
        "/api/session",
        response_model=CreateSessionResponse,
        status_code=201,
        responses={**ERROR_RESPONSES, 502: {"model": ErrorResponse}},
    )
    async def create_session(
        request: Request, payload: Optional[CreateSessionRequest] = Body(None)
    ):
        """
        Exchange an API key for a session id.

        Returns:
            201: Session created
            400: API key missing
            401: Provider issued no credential
            502: Provider unreachable or rejected the exchange
            503: Session store unavailable
        """
        session_module: SessionModule = request.app.state.session_module
        session = await session_module.create_session(payload.api_key if payload else None)
        return CreateSessionResponse(
            session_id=session.session_id, expires_at=session.expires_at_iso
        )

    @app.post(
        "/api/validate",
        response_model=ValidateSessionResponse,
        responses={**ERROR_RESPONSES, 404: {"model": ErrorResponse}},
    )
    async def validate_session(
        request: Request, payload: Optional[ValidateSessionRequest] = Body(None)
    ):
        """
        Check a session id.

        Returns:
            200: Session valid (style configuration and expiry, no credential)
            400: Session id missing
            401: Session expired
            404: Session not found
            503: Session store unavailable
        """
        session_module: SessionModule = request.app.state.session_module
        session = await session_module.validate_session(payload.session_id if payload else None)
        return ValidateSessionResponse(
            session_data=SessionData(
                style_config=session.style_config, expires_at=session.expires_at_iso
            )
        )

    @app.get("/api/protected", response_model=ProtectedResponse, responses=ERROR_RESPONSES)
    async def protected_resource(request: Request):
        """Example resource behind the session gate."""
        context: SessionContext = request.state.session
        return ProtectedResponse(
            user=ProtectedUser(jwt=context.masked_credential(), style_config=context.style_config)
        )

    @app.delete("/api/session", response_model=EndSessionResponse, responses=ERROR_RESPONSES)
    async def end_session(request: Request):
        """Invalidate the caller's session."""
        context: SessionContext = request.state.session
        session_module: SessionModule = request.app.state.session_module
        await session_module.end_session(context.session_id)
        return EndSessionResponse(message="Session ended")

    @app.get("/health", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
    async def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            200: Session store connected
            503: Session store unavailable
        """
        storage: StorageModule = request.app.state.storage
        if storage.is_ready:
            return HealthResponse(status="healthy", redis=storage.status.value)
        return JSONResponse(
            status_code=503,
            content=HealthResponse(status="unhealthy", redis=storage.status.value).model_dump(),
        )


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SessionGateError)
    async def session_gate_error_handler(request: Request, exc: SessionGateError):
        """Convert domain failures into structured responses."""
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message} {exc.details or ''}".rstrip())
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.code}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies are input errors like any other."""
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
        error = ValidationError(message)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unexpected error handling {request.method} {request.url.path}: {exc}")
        error = SessionGateError("Internal error")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())


config_provider: ConfigProvider = EnvConfigProvider()
api_config = config_provider.get_api_config()

# Configure logging with health check suppression
log_config.dictConfig(get_logging_config(api_config.log_level))

app = create_app(config_provider)


if __name__ == "__main__":
    uvicorn.run(
        "sessiongate.main:app",
        host=api_config.host,
        port=api_config.port,
        log_level=api_config.log_level.lower(),
        reload=api_config.debug,
        log_config=get_logging_config(api_config.log_level),
    )
