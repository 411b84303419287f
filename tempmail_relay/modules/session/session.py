import asyncio
import contextlib
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Dict, Optional

from ..errors import SessionInitError, TempMailError
from ..provider import MailboxInfo, ProviderClient

logger = logging.getLogger("tempmail_relay.session")


def now_ms() -> int:
    """Current time in epoch millis."""
    return int(time.time() * 1000)


@dataclass(eq=False)
class Session:
    """Per-caller state: the provider client (and its cookie jar) plus mailbox cache."""

    identity: str
    provider: ProviderClient
    created_at: int
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    mailbox_address: Optional[str] = None
    mailbox_expiry: int = 0
    last_fetch_time: int = 0
    refresh_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    _in_flight: int = field(default=0, repr=False)
    _retired: bool = field(default=False, repr=False)

    @property
    def cookie_store(self):
        return self.provider.cookie_store

    @property
    def retired(self) -> bool:
        return self._retired

    def assign_mailbox(self, mailbox: MailboxInfo, fetched_at: int) -> None:
        """Set address, expiry and fetch time together."""
        self.mailbox_address, self.mailbox_expiry, self.last_fetch_time = (
            mailbox.address,
            mailbox.expires_at,
            fetched_at,
        )

    @contextlib.asynccontextmanager
    async def use(self) -> AsyncIterator["Session"]:
        """
        Hold the session for the length of one operation.

        A session retired while held keeps its client open until the
        last holder releases it.
        """
        self._in_flight += 1
        try:
            yield self
        finally:
            self._in_flight -= 1
            if self._retired and self._in_flight == 0:
                await self.provider.close()

    async def retire(self) -> None:
        """Mark the session as removed and close its client once idle."""
        if self._retired:
            return
        self._retired = True
        if self._in_flight == 0:
            await self.provider.close()


class SessionStore:
    def __init__(
        self,
        client_factory: Callable[[], ProviderClient],
        ttl_seconds: int = 3600,
        sweep_interval_seconds: int = 300,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize session store.

        Args:
            client_factory: Builds a ProviderClient with a fresh cookie jar
            ttl_seconds: Session time-to-live measured from creation
            sweep_interval_seconds: Delay between background sweeps
            clock: Returns the current time in epoch millis
        """
        self.client_factory = client_factory
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self.clock = clock
        self._sessions: Dict[str, Session] = {}
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, identity: str) -> Optional[Session]:
        return self._sessions.get(identity)

    async def get_or_create(self, identity: str) -> Session:
        """
        Return the session for an identity, creating it on first access.

        Raises:
            SessionInitError: If the provider warm-up fails
        """
        session = self._sessions.get(identity)
        if session is not None:
            return session

        session = await self._build(identity)

        # Another request for this identity may have registered one while
        # we were warming up. Keep the registered one.
        existing = self._sessions.get(identity)
        if existing is not None:
            await session.retire()
            return existing

        self._sessions[identity] = session
        logger.info(f"Session {session.session_id} created for {identity}")
        return session

    async def reset(self, identity: str) -> Session:
        """
        Replace the session for an identity with a brand-new one.

        Raises:
            SessionInitError: If the provider warm-up fails; the old
                session has already been discarded in that case
        """
        old = self._sessions.pop(identity, None)
        if old is not None:
            logger.info(f"Session {old.session_id} discarded for {identity}")
            await old.retire()

        session = await self._build(identity)

        replaced = self._sessions.get(identity)
        self._sessions[identity] = session
        if replaced is not None:
            await replaced.retire()

        logger.info(f"Session {session.session_id} created for {identity} (reset)")
        return session

    async def sweep_expired(self, ttl_seconds: Optional[int] = None, now: Optional[int] = None) -> int:
        """
        Remove every session older than the TTL.

        Args:
            ttl_seconds: Override of the store TTL
            now: Override of the current time in epoch millis

        Returns:
            Number of sessions removed
        """
        ttl_ms = (self.ttl_seconds if ttl_seconds is None else ttl_seconds) * 1000
        now = self.clock() if now is None else now

        expired = [
            identity
            for identity, session in self._sessions.items()
            if now - session.created_at > ttl_ms
        ]

        for identity in expired:
            session = self._sessions.pop(identity)
            await session.retire()

        if expired:
            logger.info(f"Swept {len(expired)} expired sessions, {len(self._sessions)} remain")
        return len(expired)

    def start(self) -> None:
        """Launch the periodic sweeper in the background."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop())

    async def close(self) -> None:
        """Stop the sweeper and close every session client."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper
            self._sweeper = None

        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            await session.retire()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            try:
                await self.sweep_expired()
            except Exception as e:
                logger.error(f"Session sweep failed: {e}")

    async def _build(self, identity: str) -> Session:
        provider = self.client_factory()
        try:
            await provider.warm_up()
        except TempMailError as e:
            await provider.close()
            logger.error(f"Warm-up failed for {identity}: {e}")
            raise SessionInitError(identity, e) from e
        except Exception:
            await provider.close()
            raise

        return Session(identity=identity, provider=provider, created_at=self.clock())
