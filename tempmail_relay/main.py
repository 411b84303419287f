#!/usr/bin/env python3
"""
Tempmail Relay - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Runs the API server

All business logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from typing import Callable, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from tempmail_relay import __version__
from tempmail_relay.config.provider import ConfigProvider, EnvConfigProvider
from tempmail_relay.logging_config import REQUEST_LOGGER, get_logging_config
from tempmail_relay.modules.api import (
    EmailResponse,
    ErrorResponse,
    HealthResponse,
    InboxMessage,
    InboxResponse,
    ServiceInfo,
)
from tempmail_relay.modules.errors import TempMailError
from tempmail_relay.modules.identity import IdentityResolver
from tempmail_relay.modules.mailbox import NO_MESSAGES, MailboxCache
from tempmail_relay.modules.provider import ProviderClient, RetryPolicy
from tempmail_relay.modules.session import SessionStore, now_ms

logger = logging.getLogger("tempmail_relay.main")
request_logger = logging.getLogger(REQUEST_LOGGER)

ERROR_RESPONSES = {502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - start the sweeper and close sessions.
    """
    logger.info("Starting Tempmail Relay...")
    app.state.session_store.start()
    logger.info("Tempmail Relay started successfully")

    yield

    logger.info("Shutting down Tempmail Relay...")
    await app.state.session_store.close()
    logger.info("Tempmail Relay shutdown complete")


# Dependency injection helpers


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_mailbox_cache(request: Request) -> MailboxCache:
    return request.app.state.mailbox_cache


def get_identity(request: Request) -> str:
    return request.app.state.identity_resolver.resolve(request)


def get_client_ip(request: Request) -> str:
    return request.app.state.identity_resolver.client_ip(request)


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    client_factory: Optional[Callable[[], ProviderClient]] = None,
    clock: Callable[[], int] = now_ms,
) -> FastAPI:
    """
    Build the FastAPI application and its modules.

    Args:
        config_provider: Configuration source (default: environment)
        client_factory: Builds a ProviderClient per session (default: from upstream config)
        clock: Returns the current time in epoch millis
    """
    config_provider = config_provider or EnvConfigProvider()
    upstream_config = config_provider.get_upstream_config()
    session_config = config_provider.get_session_config()

    if client_factory is None:
        def client_factory() -> ProviderClient:
            return ProviderClient(upstream_config)

    app = FastAPI(
        title="Tempmail Relay",
        description="Temporary email addresses and OTP extraction over a scraped provider",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.session_store = SessionStore(
        client_factory,
        ttl_seconds=session_config.ttl_seconds,
        sweep_interval_seconds=session_config.sweep_interval_seconds,
        clock=clock,
    )
    app.state.mailbox_cache = MailboxCache(
        cache_window_seconds=session_config.cache_window_seconds,
        retry_policy=RetryPolicy(
            max_attempts=session_config.retry_attempts,
            backoff=session_config.retry_backoff_seconds,
        ),
        clock=clock,
    )
    app.state.identity_resolver = IdentityResolver()

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log caller IP and path for every request."""
        client_ip = app.state.identity_resolver.client_ip(request)
        request_logger.info(
            f"Request from IP: {client_ip} | Path: {request.url.path}",
            extra={"client_ip": client_ip, "method": request.method, "path": request.url.path},
        )
        return await call_next(request)

    @app.get("/", response_model=ServiceInfo)
    async def index(real_ip: str = Depends(get_client_ip)):
        """Service metadata and endpoint list."""
        return ServiceInfo(
            real_ip=real_ip,
            message="Welcome to the Temp Mail API",
            description=(
                "This API allows you to generate temporary emails and fetch emails "
                "received in the inbox."
            ),
            endpoints={
                "/get_email?user_id=YOUR_ID": "Get a temporary email address",
                "/get_inbox?user_id=YOUR_ID": "Retrieve all emails in the inbox",
                "/reset_email?user_id=YOUR_ID": "Reset and generate a new email",
            },
            note="This is an unofficial API wrapper for TempMail. Use responsibly.",
        )

    @app.get(
        "/get_email",
        response_model=EmailResponse,
        response_model_exclude_none=True,
        responses=ERROR_RESPONSES,
    )
    async def get_email(
        identity: str = Depends(get_identity),
        real_ip: str = Depends(get_client_ip),
        store: SessionStore = Depends(get_session_store),
        cache: MailboxCache = Depends(get_mailbox_cache),
    ):
        """
        Get the caller's temporary email address.

        Returns:
            200: Address, expiry and whether it came from the cache
            502: Provider failed after one retry
            503: Session warm-up failed
        """
        session = await store.get_or_create(identity)
        async with session.use():
            result = await cache.get_address(session)
        return EmailResponse(real_ip=real_ip, **result.to_dict())

    @app.get(
        "/get_inbox",
        response_model=InboxResponse,
        response_model_exclude_none=True,
        responses=ERROR_RESPONSES,
    )
    async def get_inbox(
        identity: str = Depends(get_identity),
        real_ip: str = Depends(get_client_ip),
        store: SessionStore = Depends(get_session_store),
        cache: MailboxCache = Depends(get_mailbox_cache),
    ):
        """
        Read the caller's inbox.

        Returns:
            200: Parsed messages, or the no-message marker when empty
            502: Address refresh or inbox read failed
            503: Session warm-up failed
        """
        session = await store.get_or_create(identity)
        async with session.use():
            result = await cache.get_inbox_messages(session)

        if result.is_empty:
            return InboxResponse(real_ip=real_ip, email=result.email, message=NO_MESSAGES)
        return InboxResponse(
            real_ip=real_ip,
            email=result.email,
            inbox=[InboxMessage.from_parsed(m) for m in result.messages],
        )

    @app.get(
        "/reset_email",
        response_model=EmailResponse,
        response_model_exclude_none=True,
        responses=ERROR_RESPONSES,
    )
    async def reset_email(
        identity: str = Depends(get_identity),
        store: SessionStore = Depends(get_session_store),
        cache: MailboxCache = Depends(get_mailbox_cache),
    ):
        """
        Discard the caller's session and issue a brand-new address.

        Returns:
            200: New address with cached=false
            502: Provider failed after one retry
            503: Session warm-up failed
        """
        session = await store.reset(identity)
        async with session.use():
            result = await cache.get_address(session, force_new=True)
        return EmailResponse(**result.to_dict())

    @app.get("/health", response_model=HealthResponse)
    async def health_check(store: SessionStore = Depends(get_session_store)):
        """Health check endpoint for container probes."""
        return HealthResponse(status="healthy", sessions=len(store), version=__version__)

    # Error handlers

    @app.exception_handler(TempMailError)
    async def tempmail_error_handler(request: Request, exc: TempMailError):
        """Render relay errors as {"error": message}."""
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    return app


config_provider: ConfigProvider = EnvConfigProvider()
api_config = config_provider.get_api_config()

log_config.dictConfig(get_logging_config(api_config.log_level))

app = create_app(config_provider)


def run() -> None:
    """Console entry point."""
    uvicorn.run(
        "tempmail_relay.main:app",
        host=api_config.host,
        port=api_config.port,
        log_level=api_config.log_level.lower(),
        reload=api_config.debug,
        log_config=get_logging_config(api_config.log_level),
    )


if __name__ == "__main__":
    run()
