"""
API Module - Black Box Interface

Purpose: HTTP response shapes
Interface: Pydantic response models
Hidden: Field aliasing and serialization details

The API layer only orchestrates - it contains no business logic.
"""

from .models import (
    EmailResponse,
    ErrorResponse,
    HealthResponse,
    InboxMessage,
    InboxResponse,
    ServiceInfo,
)

__all__ = [
    "EmailResponse",
    "ErrorResponse",
    "HealthResponse",
    "InboxMessage",
    "InboxResponse",
    "ServiceInfo",
]
