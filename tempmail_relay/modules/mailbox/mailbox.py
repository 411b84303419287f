"""
Mailbox cache.

Decides per session whether the cached address can be served, refreshes
it from the provider otherwise, and reads the inbox. Address acquisition
retries once with fresh cookies; inbox polling never retries because
callers poll again on their own.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..errors import EmailRetrievalFailed, InboxRetrievalFailed, TempMailError
from ..inbox import InboxParser, ParsedMessage
from ..provider import NO_RETRY, RetryPolicy
from ..session import Session, now_ms

logger = logging.getLogger("tempmail_relay.mailbox")

CACHE_WINDOW_SECONDS = 600
NO_MESSAGES = "No new emails yet."


@dataclass(frozen=True)
class AddressResult:
    email: str
    expires_at: int
    cached: bool

    def to_dict(self) -> dict:
        return {"email": self.email, "expires_at": self.expires_at, "cached": self.cached}


@dataclass(frozen=True)
class InboxResult:
    email: Optional[str]
    messages: List[ParsedMessage] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.messages


class MailboxCache:
    def __init__(
        self,
        parser: Optional[InboxParser] = None,
        cache_window_seconds: int = CACHE_WINDOW_SECONDS,
        retry_policy: RetryPolicy = RetryPolicy(max_attempts=2),
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize mailbox cache.

        Args:
            parser: Inbox parser (default InboxParser())
            cache_window_seconds: How long a fetched address is reused
            retry_policy: Policy for address acquisition
            clock: Returns the current time in epoch millis
        """
        self.parser = parser or InboxParser()
        self.cache_window_ms = cache_window_seconds * 1000
        self.retry_policy = retry_policy
        self.clock = clock

    def is_fresh(self, session: Session, now: int) -> bool:
        """True when the cached address may be served without a provider call."""
        return (
            bool(session.mailbox_address)
            and now - session.last_fetch_time < self.cache_window_ms
            and now < session.mailbox_expiry
        )

    async def get_address(self, session: Session, force_new: bool = False) -> AddressResult:
        """
        Return the session's mailbox address, refreshing it when needed.

        Raises:
            EmailRetrievalFailed: Provider failed twice in a row
        """
        if not force_new and self.is_fresh(session, self.clock()):
            return self._cached(session)

        async with session.refresh_lock:
            now = self.clock()
            # A concurrent caller may have refreshed while we waited
            if not force_new and self.is_fresh(session, now):
                return self._cached(session)

            provider = session.provider
            try:
                mailbox = await provider.call_with_retry(
                    lambda: provider.fetch_mailbox(self.clock()),
                    self.retry_policy,
                )
            except TempMailError as e:
                logger.error(f"Address refresh failed for {session.identity}: {e}")
                raise EmailRetrievalFailed(e) from e

            session.assign_mailbox(mailbox, now)
            logger.info(f"New address {mailbox.address} for {session.identity}")

        return AddressResult(email=mailbox.address, expires_at=mailbox.expires_at, cached=False)

    async def get_inbox_messages(self, session: Session) -> InboxResult:
        """
        Read the session's inbox, refreshing an absent or expired address first.

        Raises:
            EmailRetrievalFailed: The preliminary address refresh failed
            InboxRetrievalFailed: The inbox read failed
        """
        if not session.mailbox_address or self.clock() > session.mailbox_expiry:
            await self.get_address(session, force_new=True)

        provider = session.provider
        try:
            raw = await provider.call_with_retry(
                lambda: provider.fetch_inbox_messages(self.clock()),
                NO_RETRY,
            )
        except TempMailError as e:
            logger.warning(f"Inbox read failed for {session.identity}: {e}")
            raise InboxRetrievalFailed(e) from e

        return InboxResult(email=session.mailbox_address, messages=self.parser.parse(raw))

    @staticmethod
    def _cached(session: Session) -> AddressResult:
        return AddressResult(
            email=session.mailbox_address,
            expires_at=session.mailbox_expiry,
            cached=True,
        )
