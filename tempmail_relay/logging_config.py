"""
Logging configuration for the relay and uvicorn.

The relay writes one line per inbound request to the
``tempmail_relay.requests`` logger; that line has its own format built
from the caller IP and path. Health probes are dropped from both the
request log and the uvicorn access log.
"""

import logging
import logging.config
from typing import Dict, Any

REQUEST_LOGGER = "tempmail_relay.requests"
QUIET_PATHS = ("/health",)


class ProbeFilter(logging.Filter):
    """Drop health probe lines from the request and access logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == REQUEST_LOGGER:
            return getattr(record, "path", "") not in QUIET_PATHS
        if record.name == "uvicorn.access":
            message = record.getMessage()
            return not ("GET" in message and any(p in message for p in QUIET_PATHS))
        return True


class RequestFieldsFilter(logging.Filter):
    """Fill request fields so the request formatter never fails on a bare record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in ("client_ip", "method", "path"):
            if not hasattr(record, name):
                setattr(record, name, "-")
        return True


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Get logging configuration with request lines and probe suppression."""
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "probe_filter": {"()": ProbeFilter},
            "request_fields": {"()": RequestFieldsFilter},
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "request": {
                "format": "%(asctime)s - request - %(client_ip)s %(method)s %(path)s"
            },
            "access": {
                "format": "%(message)s"
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "request": {
                "class": "logging.StreamHandler",
                "formatter": "request",
                "stream": "ext://sys.stdout",
                "filters": ["request_fields", "probe_filter"],
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["probe_filter"],
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            "tempmail_relay": {"handlers": ["default"], "level": level, "propagate": False},
            REQUEST_LOGGER: {"handlers": ["request"], "level": "INFO", "propagate": False},
        },
        "root": {"level": level, "handlers": ["default"]},
    }
