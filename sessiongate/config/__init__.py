"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: ConfigProvider protocol, EnvConfigProvider
Hidden: Environment parsing and validation

Can be replaced with different config systems without affecting other modules.
"""

from .provider import (
    APIConfig,
    ConfigProvider,
    EnvConfigProvider,
    ExchangeConfig,
    RedisConfig,
    SessionConfig,
)

__all__ = [
    "APIConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "ExchangeConfig",
    "RedisConfig",
    "SessionConfig",
]
