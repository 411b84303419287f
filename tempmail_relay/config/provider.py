"""Configuration provider following Black Box Design principles."""
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Protocol

logger = logging.getLogger(__name__)

DEFAULT_HOMEPAGE_URL = "https://tempmail.so/"
DEFAULT_INBOX_URL = "https://tempmail.so/us/api/inbox"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36"
)


def default_headers(user_agent: str = DEFAULT_USER_AGENT) -> Dict[str, str]:
    """Browser-like headers the provider's anti-bot checks expect."""
    return {
        "authority": "tempmail.so",
        "accept": "application/json",
        "accept-language": "en-US,en;q=0.9",
        "content-type": "application/json",
        "dnt": "1",
        "referer": "https://tempmail.so/",
        "sec-fetch-dest": "empty",
        "sec-fetch-mode": "cors",
        "sec-fetch-site": "same-origin",
        "user-agent": user_agent,
    }


@dataclass
class APIConfig:
    """API configuration."""
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    log_level: str = "INFO"


@dataclass
class UpstreamConfig:
    """Upstream mail provider configuration."""
    homepage_url: str = DEFAULT_HOMEPAGE_URL
    inbox_url: str = DEFAULT_INBOX_URL
    lang: str = "us"
    headers: Dict[str, str] = field(default_factory=default_headers)
    timeout: float = 30.0


@dataclass
class SessionConfig:
    """Session lifecycle and cache policy."""
    ttl_seconds: int = 3600
    sweep_interval_seconds: int = 300
    cache_window_seconds: int = 600
    retry_attempts: int = 2
    retry_backoff_seconds: float = 0.0


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...

    def get_upstream_config(self) -> UpstreamConfig:
        """Get upstream provider configuration."""
        ...

    def get_session_config(self) -> SessionConfig:
        """Get session configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            host=os.getenv("API_HOST", "0.0.0.0"),
            port=int(os.getenv("API_PORT", "3000")),
            debug=os.getenv("API_DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def get_upstream_config(self) -> UpstreamConfig:
        """
        Get upstream configuration from environment variables.

        TEMPMAIL_EXTRA_HEADERS is a JSON object merged over the default
        header set. A broken value is logged and ignored so a provider
        change never stops the service from starting.
        """
        headers = default_headers(os.getenv("TEMPMAIL_USER_AGENT", DEFAULT_USER_AGENT))

        extra = os.getenv("TEMPMAIL_EXTRA_HEADERS")
        if extra:
            try:
                overrides = json.loads(extra)
            except json.JSONDecodeError as e:
                logger.warning(f"Ignoring invalid TEMPMAIL_EXTRA_HEADERS: {e}")
            else:
                if isinstance(overrides, dict):
                    headers.update({str(k).lower(): str(v) for k, v in overrides.items()})
                else:
                    logger.warning("Ignoring TEMPMAIL_EXTRA_HEADERS: expected a JSON object")

        return UpstreamConfig(
            homepage_url=os.getenv("TEMPMAIL_HOMEPAGE_URL", DEFAULT_HOMEPAGE_URL),
            inbox_url=os.getenv("TEMPMAIL_INBOX_URL", DEFAULT_INBOX_URL),
            lang=os.getenv("TEMPMAIL_LANG", "us"),
            headers=headers,
            timeout=float(os.getenv("UPSTREAM_TIMEOUT", "30")),
        )

    def get_session_config(self) -> SessionConfig:
        """Get session configuration from environment variables."""
        return SessionConfig(
            ttl_seconds=int(os.getenv("SESSION_TTL", "3600")),
            sweep_interval_seconds=int(os.getenv("SESSION_SWEEP_INTERVAL", "300")),
            cache_window_seconds=int(os.getenv("CACHE_WINDOW", "600")),
            retry_attempts=max(1, int(os.getenv("ADDRESS_RETRY_ATTEMPTS", "2"))),
            retry_backoff_seconds=float(os.getenv("RETRY_BACKOFF", "0")),
        )
