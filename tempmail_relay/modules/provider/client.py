"""
Provider client for the tempmail.so inbox endpoint.

One client per session. It owns the session's cookie jar and sends the
fixed browser-like header set on every data call. The endpoint is
undocumented and scraped, so responses are validated defensively and
every failure is mapped onto the relay's error taxonomy.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import httpx

from ...config.provider import UpstreamConfig
from ..errors import UpstreamMalformedResponse, UpstreamUnavailable

logger = logging.getLogger("tempmail_relay.provider")

T = TypeVar("T")

RETRYABLE_ERRORS = (UpstreamUnavailable, UpstreamMalformedResponse)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry policy applied by ProviderClient.call_with_retry.

    max_attempts counts the first call, so 1 means no retry. Each retry
    is preceded by a fresh warm-up.
    """

    max_attempts: int = 2
    backoff: float = 0.0


NO_RETRY = RetryPolicy(max_attempts=1)


@dataclass(frozen=True)
class MailboxInfo:
    """Address issued by the provider and its expiry in epoch millis."""

    address: str
    expires_at: int


class ProviderClient:
    """Outbound calls to the mail provider for a single session."""

    def __init__(
        self,
        config: UpstreamConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize provider client.

        Args:
            config: Upstream URLs, headers and timeout
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.config = config
        self._client = httpx.AsyncClient(
            cookies=httpx.Cookies(),
            timeout=config.timeout,
            follow_redirects=True,
            transport=transport,
        )

    @property
    def cookie_store(self) -> httpx.Cookies:
        """The session-owned cookie jar."""
        return self._client.cookies

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def warm_up(self) -> None:
        """
        Load the landing page to receive session cookies.

        Starts from an empty jar so a retry never reuses stale cookies.

        Raises:
            UpstreamUnavailable: On network error or non-2xx status
        """
        self._client.cookies.clear()
        await self._get(self.config.homepage_url)
        logger.debug(f"Warm-up complete, {len(self._client.cookies)} cookies stored")

    async def fetch_mailbox(self, now: int) -> MailboxInfo:
        """
        Request the current mailbox address.

        Args:
            now: Request timestamp in epoch millis

        Returns:
            MailboxInfo with address and expiry

        Raises:
            UpstreamUnavailable: Network error or non-2xx status
            UpstreamMalformedResponse: Missing name/expires fields
        """
        data = await self._fetch_inbox_envelope(now)

        name = data.get("name")
        expires = data.get("expires")
        if not isinstance(name, str) or not name:
            raise UpstreamMalformedResponse(self.config.inbox_url, "missing mailbox name")
        if isinstance(expires, bool) or not isinstance(expires, (int, float)):
            raise UpstreamMalformedResponse(self.config.inbox_url, "missing mailbox expiry")

        return MailboxInfo(address=name, expires_at=int(expires))

    async def fetch_inbox_messages(self, now: int) -> List[Dict[str, Any]]:
        """
        Request the raw inbox entries.

        Returns:
            List of raw message dicts, empty when the inbox is empty

        Raises:
            UpstreamUnavailable: Network error or non-2xx status
            UpstreamMalformedResponse: Envelope or inbox has the wrong shape
        """
        data = await self._fetch_inbox_envelope(now)

        inbox = data.get("inbox")
        if inbox is None:
            return []
        if not isinstance(inbox, list):
            raise UpstreamMalformedResponse(self.config.inbox_url, "inbox is not a list")
        return inbox

    async def call_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy,
    ) -> T:
        """
        Run an upstream operation under a bounded retry policy.

        Only provider errors are retried. Before every retry the cookie
        jar is refreshed with a new warm-up; a failed warm-up counts as
        the failure of that attempt.

        Raises:
            The last provider error once attempts are exhausted
        """
        attempts = max(1, policy.max_attempts)
        attempt = 1

        while True:
            try:
                if attempt > 1:
                    if policy.backoff > 0:
                        await asyncio.sleep(policy.backoff)
                    await self.warm_up()
                return await operation()
            except RETRYABLE_ERRORS as e:
                if attempt >= attempts:
                    raise
                logger.warning(f"Upstream call failed (attempt {attempt}/{attempts}), retrying: {e}")
            attempt += 1

    async def close(self) -> None:
        await self._client.aclose()

    async def _fetch_inbox_envelope(self, now: int) -> Dict[str, Any]:
        """GET the inbox endpoint and return its ``data`` object."""
        response = await self._get(
            self.config.inbox_url,
            params={"requestTime": now, "lang": self.config.lang},
            headers=self.config.headers,
        )

        try:
            payload = response.json()
        except ValueError:
            raise UpstreamMalformedResponse(self.config.inbox_url, "body is not JSON") from None

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise UpstreamMalformedResponse(self.config.inbox_url, "missing data envelope")
        return data

    async def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.get(url, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(url, reason=str(e) or type(e).__name__) from e

        if not response.is_success:
            raise UpstreamUnavailable(url, status_code=response.status_code)
        return response
