"""
Tempmail Relay response models.

These models define the JSON shape of every HTTP route.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..inbox import ParsedMessage

# Response Models (API Output)


class InboxMessage(BaseModel):
    """A single inbox entry as returned to callers."""

    model_config = ConfigDict(populate_by_name=True)

    sender: str = Field("", alias="from", description="Sender as reported by the provider")
    subject: str = ""
    otp: str = Field(..., description='Six-digit code from the subject, or "Not Found"')
    body: str = ""

    @classmethod
    def from_parsed(cls, message: ParsedMessage) -> "InboxMessage":
        return cls(sender=message.sender, subject=message.subject, otp=message.otp, body=message.body)


class EmailResponse(BaseModel):
    """Mailbox address for the caller."""

    real_ip: Optional[str] = None
    email: str
    expires_at: int = Field(..., description="Provider expiry in epoch millis")
    cached: bool


class InboxResponse(BaseModel):
    """Inbox contents, or the no-message marker when the inbox is empty."""

    real_ip: Optional[str] = None
    email: Optional[str] = None
    inbox: Optional[List[InboxMessage]] = None
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str


class ServiceInfo(BaseModel):
    """Service metadata for the root route."""

    real_ip: str
    message: str
    description: str
    endpoints: Dict[str, str]
    note: str


class HealthResponse(BaseModel):
    status: str
    sessions: int
    version: str
