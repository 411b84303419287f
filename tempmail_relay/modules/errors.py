"""
Error taxonomy for Tempmail Relay.

Every failure carries a human-readable message plus the context needed
for logging. All of them are recovered at the HTTP boundary and rendered
as ``{"error": <message>}``.
"""

from typing import Any, Optional


class TempMailError(Exception):
    """Base exception for the relay."""

    status_code = 502

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class SessionInitError(TempMailError):
    """Cookie warm-up failed while building a session."""

    status_code = 503

    def __init__(self, identity: str, cause: Optional[Exception] = None) -> None:
        self.identity = identity
        self.cause = cause
        super().__init__(
            "Failed to initialize mail session.",
            identity=identity,
            cause=str(cause) if cause else None,
        )


class UpstreamUnavailable(TempMailError):
    """Network error or non-2xx status from the provider."""

    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.upstream_status = status_code
        self.reason = reason
        super().__init__(
            "Mail provider is unavailable.",
            url=url,
            status=status_code,
            reason=reason,
        )


class UpstreamMalformedResponse(TempMailError):
    """Provider answered 200 but the payload lacks the expected shape."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__("Mail provider returned an unexpected response.", url=url, reason=reason)


class EmailRetrievalFailed(TempMailError):
    """Address fetch failed after the bounded retry."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__("Failed to retrieve email address.", cause=str(cause))


class InboxRetrievalFailed(TempMailError):
    """Inbox fetch failed. Not retried."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__("Failed to check inbox.", cause=str(cause))
