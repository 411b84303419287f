"""
Shared pytest fixtures for Tempmail Relay tests.

This module provides common fixtures including:
- UpstreamMocker: Fake tempmail provider behind an httpx.MockTransport
- FakeClock: Controllable epoch-millis clock
- Session store / mailbox cache wired to the fake provider
"""

import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tempmail_relay.config.provider import UpstreamConfig
from tempmail_relay.modules.mailbox import MailboxCache
from tempmail_relay.modules.provider import ProviderClient, RetryPolicy
from tempmail_relay.modules.session import SessionStore

START_MS = 1_700_000_000_000
HOUR_MS = 3_600_000


# =============================================================================
# Upstream Mocking Infrastructure
# =============================================================================

@dataclass
class UpstreamResponse:
    """A scripted inbox endpoint response."""
    status_code: int = 200
    json_body: Any = None
    text: Optional[str] = None
    connect_error: bool = False

    def to_response(self, request: httpx.Request) -> httpx.Response:
        if self.connect_error:
            raise httpx.ConnectError("connection refused", request=request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body)


@dataclass
class UpstreamMocker:
    """
    Fake tempmail provider.

    The landing page sets a cookie; the inbox endpoint answers with the
    current ``address``/``expires``/``inbox`` unless a scripted response
    is queued.

    Usage:
        def test_retry(upstream, provider):
            upstream.queue(UpstreamResponse(status_code=500))
            ...
            assert upstream.inbox_calls == 2
    """
    address: str = "abc123@tempmail.so"
    expires: int = START_MS + HOUR_MS
    inbox: Optional[List[Dict[str, Any]]] = field(default_factory=list)
    homepage_failures: int = 0
    warmups: int = 0
    inbox_calls: int = 0
    requests: List[httpx.Request] = field(default_factory=list)
    _scripted: List[UpstreamResponse] = field(default_factory=list)

    def queue(self, *responses: UpstreamResponse) -> "UpstreamMocker":
        self._scripted.extend(responses)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/":
            self.warmups += 1
            if self.homepage_failures > 0:
                self.homepage_failures -= 1
                return httpx.Response(503, text="unavailable")
            return httpx.Response(
                200,
                text="<html></html>",
                headers={"set-cookie": f"sid=session-{self.warmups}; Path=/"},
            )

        self.inbox_calls += 1
        if self._scripted:
            return self._scripted.pop(0).to_response(request)
        return httpx.Response(
            200,
            json={"data": {"name": self.address, "expires": self.expires, "inbox": self.inbox}},
        )

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakeClock:
    """Epoch-millis clock advanced by hand."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def upstream():
    return UpstreamMocker()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream_config():
    return UpstreamConfig()


@pytest.fixture
def client_factory(upstream, upstream_config):
    def factory() -> ProviderClient:
        return ProviderClient(upstream_config, transport=upstream.transport())
    return factory


@pytest.fixture
def provider(client_factory):
    return client_factory()


@pytest.fixture
def session_store(client_factory, clock):
    return SessionStore(client_factory, ttl_seconds=3600, sweep_interval_seconds=300, clock=clock)


@pytest.fixture
def mailbox_cache(clock):
    return MailboxCache(retry_policy=RetryPolicy(max_attempts=2), clock=clock)
