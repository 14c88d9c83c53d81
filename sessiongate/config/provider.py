"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import List, Optional, Protocol


@dataclass
class RedisConfig:
    """Session store connection configuration."""
    url: str
    password: Optional[str]
    retry_interval: float
    socket_timeout: float


@dataclass
class ExchangeConfig:
    """External identity provider configuration."""
    url: str
    timeout: float


@dataclass
class SessionConfig:
    """Session lifecycle configuration."""
    ttl_seconds: int
    credential_mask_length: int
    header_name: str


@dataclass
class APIConfig:
    """API configuration."""
    port: int
    host: str
    debug: bool
    cors_origins: List[str]
    log_level: str


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_redis_config(self) -> RedisConfig:
        """Get session store configuration."""
        ...

    def get_exchange_config(self) -> ExchangeConfig:
        """Get identity provider configuration."""
        ...

    def get_session_config(self) -> SessionConfig:
        """Get session lifecycle configuration."""
        ...

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...


def _positive_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _int(name: str, default: str, minimum: int = 0) -> int:
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {raw!r}")
    return value


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_redis_config(self) -> RedisConfig:
        """Get session store configuration from environment variables."""
        return RedisConfig(
            url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            password=os.getenv("REDIS_PASSWORD") or None,
            retry_interval=_positive_float("REDIS_RETRY_INTERVAL", "5"),
            socket_timeout=_positive_float("REDIS_SOCKET_TIMEOUT", "5"),
        )

    def get_exchange_config(self) -> ExchangeConfig:
        """Get identity provider configuration from environment variables."""
        return ExchangeConfig(
            url=os.getenv("AUTH_PROVIDER_URL", "https://api.example.com/auth"),
            timeout=_positive_float("AUTH_PROVIDER_TIMEOUT", "10"),
        )

    def get_session_config(self) -> SessionConfig:
        """Get session lifecycle configuration from environment variables."""
        return SessionConfig(
            ttl_seconds=_int("SESSION_TTL", "3600", minimum=1),
            credential_mask_length=_int("CREDENTIAL_MASK_LENGTH", "10"),
            header_name=os.getenv("SESSION_HEADER", "X-Session-ID"),
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=_int("PORT", "3000", minimum=1),
            host=os.getenv("API_HOST", "0.0.0.0"),
            debug=os.getenv("API_DEBUG", "false").lower() == "true",
            cors_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
