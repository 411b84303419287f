import asyncio

import httpx
import pytest

from conftest import START_MS
from tempmail_relay.modules.errors import SessionInitError
from tempmail_relay.modules.provider import MailboxInfo, ProviderClient
from tempmail_relay.modules.session import Session, SessionStore


@pytest.mark.asyncio
async def test_get_or_create_builds_warm_session(session_store, upstream):
    """First access creates a session and warms its cookie jar."""
    session = await session_store.get_or_create("user-1")

    assert session.identity == "user-1"
    assert session.created_at == START_MS
    assert session.mailbox_address is None
    assert session.cookie_store.get("sid") == "session-1"
    assert upstream.warmups == 1
    assert len(session_store) == 1


@pytest.mark.asyncio
async def test_get_or_create_reuses_session(session_store, upstream):
    first = await session_store.get_or_create("user-1")
    second = await session_store.get_or_create("user-1")

    assert first is second
    assert upstream.warmups == 1


@pytest.mark.asyncio
async def test_sessions_do_not_share_cookie_jars(session_store):
    a = await session_store.get_or_create("a")
    b = await session_store.get_or_create("b")

    assert a.cookie_store is not b.cookie_store
    assert a.cookie_store.get("sid") == "session-1"
    assert b.cookie_store.get("sid") == "session-2"


@pytest.mark.asyncio
async def test_get_or_create_warm_up_failure(session_store, upstream):
    """A failed warm-up raises and leaves nothing registered."""
    upstream.homepage_failures = 1

    with pytest.raises(SessionInitError) as exc_info:
        await session_store.get_or_create("user-1")

    assert exc_info.value.identity == "user-1"
    assert session_store.get("user-1") is None
    assert len(session_store) == 0


@pytest.mark.asyncio
async def test_concurrent_get_or_create_keeps_one_session(session_store):
    first, second = await asyncio.gather(
        session_store.get_or_create("user-1"),
        session_store.get_or_create("user-1"),
    )

    assert first is second
    assert len(session_store) == 1


@pytest.mark.asyncio
async def test_reset_replaces_session(session_store, upstream):
    old = await session_store.get_or_create("user-1")
    old.assign_mailbox(MailboxInfo("old@tempmail.so", START_MS + 1000), START_MS)

    new = await session_store.reset("user-1")

    assert new is not old
    assert new.session_id != old.session_id
    assert new.mailbox_address is None
    assert session_store.get("user-1") is new
    assert old.retired
    assert old.provider.is_closed
    assert upstream.warmups == 2


@pytest.mark.asyncio
async def test_reset_without_existing_session(session_store):
    session = await session_store.reset("fresh")

    assert session_store.get("fresh") is session


@pytest.mark.asyncio
async def test_reset_warm_up_failure_drops_old_session(session_store, upstream):
    await session_store.get_or_create("user-1")
    upstream.homepage_failures = 1

    with pytest.raises(SessionInitError):
        await session_store.reset("user-1")

    assert session_store.get("user-1") is None


@pytest.mark.asyncio
async def test_sweep_expired(session_store, clock):
    """Sessions older than the TTL go, younger ones stay."""
    old = await session_store.get_or_create("old")
    clock.advance(1800)
    young = await session_store.get_or_create("young")
    clock.advance(1801)

    removed = await session_store.sweep_expired()

    assert removed == 1
    assert session_store.get("old") is None
    assert session_store.get("young") is young
    assert old.provider.is_closed
    assert not young.provider.is_closed


@pytest.mark.asyncio
async def test_sweep_expired_explicit_ttl_and_now(session_store):
    await session_store.get_or_create("a")

    assert await session_store.sweep_expired(ttl_seconds=60, now=START_MS + 60_000) == 0
    assert await session_store.sweep_expired(ttl_seconds=60, now=START_MS + 60_001) == 1
    assert len(session_store) == 0


@pytest.mark.asyncio
async def test_swept_session_in_use_closes_after_release(session_store, clock):
    """An operation holding a swept session finishes before its client closes."""
    session = await session_store.get_or_create("busy")
    clock.advance(7200)

    async with session.use():
        await session_store.sweep_expired()
        assert session_store.get("busy") is None
        assert not session.provider.is_closed
        await session.provider.fetch_mailbox(clock())

    assert session.provider.is_closed


@pytest.mark.asyncio
async def test_assign_mailbox_sets_all_fields(provider):
    session = Session(identity="x", provider=provider, created_at=START_MS)

    session.assign_mailbox(MailboxInfo("x@tempmail.so", START_MS + 5000), START_MS + 10)

    assert (session.mailbox_address, session.mailbox_expiry, session.last_fetch_time) == (
        "x@tempmail.so",
        START_MS + 5000,
        START_MS + 10,
    )


@pytest.mark.asyncio
async def test_start_and_close(client_factory, clock):
    store = SessionStore(client_factory, sweep_interval_seconds=3600, clock=clock)
    session = await store.get_or_create("user-1")

    store.start()
    assert store._sweeper is not None and not store._sweeper.done()

    await store.close()

    assert store._sweeper is None
    assert len(store) == 0
    assert session.provider.is_closed


@pytest.mark.asyncio
async def test_background_sweeper_evicts(client_factory, clock):
    store = SessionStore(client_factory, ttl_seconds=1, sweep_interval_seconds=0, clock=clock)
    await store.get_or_create("user-1")
    clock.advance(5)

    store.start()
    for _ in range(10):
        await asyncio.sleep(0)
        if len(store) == 0:
            break

    assert len(store) == 0
    await store.close()


@pytest.mark.asyncio
async def test_unexpected_warm_up_error_closes_client(upstream_config, clock):
    """Errors outside the relay taxonomy still close the new client and propagate."""
    def handler(request):
        raise RuntimeError("transport bug")

    created = []

    def factory():
        client = ProviderClient(upstream_config, transport=httpx.MockTransport(handler))
        created.append(client)
        return client

    store = SessionStore(factory, clock=clock)

    with pytest.raises(RuntimeError):
        await store.get_or_create("user-1")

    assert len(created) == 1
    assert created[0].is_closed
    assert store.get("user-1") is None
