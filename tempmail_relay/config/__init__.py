"""Configuration for Tempmail Relay."""

from .provider import (
    APIConfig,
    ConfigProvider,
    EnvConfigProvider,
    SessionConfig,
    UpstreamConfig,
    default_headers,
)

__all__ = [
    "APIConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "SessionConfig",
    "UpstreamConfig",
    "default_headers",
]
