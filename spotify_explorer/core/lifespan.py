"""Application lifespan management."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI

from spotify_explorer import __version__
from spotify_explorer.config import Settings, get_settings
from spotify_explorer.exceptions import ConfigurationException
from spotify_explorer.logging_config import get_logger, log_with_context
from spotify_explorer.middleware.logging_middleware import redact_sensitive_data
from spotify_explorer.services.api_client import SpotifyApiClient
from spotify_explorer.services.connect_player import ConnectPlayerFactory
from spotify_explorer.services.pkce_authorizer import PkceAuthorizer
from spotify_explorer.services.playback_controller import PlaybackController
from spotify_explorer.services.session_controller import SessionController
from spotify_explorer.services.token_store import TokenStore
from spotify_explorer.state_managers import DeviceBinding, SessionManager
from spotify_explorer.storage import JsonFileStore, KeyValueStore, MemoryStore

logger = get_logger(__name__)


async def log_request(request: httpx.Request) -> None:
    """Event hook to log requests with redacted sensitive data."""
    log_with_context(
        logger,
        "info",
        "HTTP Request",
        method=request.method,
        url=redact_sensitive_data(str(request.url)),
        event_type="http_request",
    )


async def log_response(response: httpx.Response) -> None:
    """Event hook to log responses with redacted sensitive data."""
    await response.aread()
    log_with_context(
        logger,
        "info",
        "HTTP Response",
        status_code=response.status_code,
        url=redact_sensitive_data(str(response.request.url)),
        event_type="http_response",
    )


def create_http_client() -> httpx.AsyncClient:
    event_hooks: dict[str, list[Callable[..., Any]]] = {
        "request": [log_request],
        "response": [log_response],
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=5.0,  # Connection establishment timeout
            read=10.0,  # Read response timeout
            write=5.0,  # Write operation timeout
            pool=5.0,  # Pool checkout timeout
        ),
        limits=httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,
        ),
        event_hooks=event_hooks,
    )


def create_storage(settings: Settings) -> KeyValueStore:
    if settings.storage_backend == "memory":
        return MemoryStore()
    if settings.storage_path.is_dir():
        raise ConfigurationException(
            "storage_path must point to a file, not a directory",
            details={"storage_path": str(settings.storage_path)},
        )
    return JsonFileStore(settings.storage_path)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the shared HTTP client and session components, tear them down on shutdown.

    Exceptions after yield are re-raised so cleanup still runs and the
    error is not swallowed.
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()

    log_with_context(
        logger,
        "info",
        "Starting Spotify API Explorer",
        version=__version__,
        storage_backend=settings.storage_backend,
        player_backend=settings.player_backend,
        event_type="app_startup",
    )

    client = create_http_client()
    app.state.http_client = client

    storage = create_storage(settings)
    session_manager = SessionManager(TokenStore(storage, default_expires_in=settings.default_token_ttl_seconds))
    await session_manager.initialize()

    api_client = SpotifyApiClient(client, session_manager, settings)
    playback_controller = PlaybackController(api_client, DeviceBinding(), settings)
    session_controller = SessionController(
        settings,
        session_manager,
        PkceAuthorizer(client, storage, settings),
        api_client,
        playback_controller,
    )

    app.state.session_manager = session_manager
    app.state.api_client = api_client
    app.state.playback_controller = playback_controller
    app.state.session_controller = session_controller

    if settings.player_backend == "connect":
        session_controller.sdk_loaded(ConnectPlayerFactory(api_client))
    await session_controller.on_page_load()
    log_with_context(
        logger,
        "info",
        "Session components initialized",
        authenticated=session_manager.authenticated,
        event_type="state_managers_ready",
    )

    try:
        yield
    except Exception as e:
        log_with_context(
            logger,
            "error",
            "Application error during lifespan",
            error=str(e),
            error_type=type(e).__name__,
            event_type="app_error",
        )
        raise
    finally:
        log_with_context(
            logger,
            "info",
            "Shutting down Spotify API Explorer",
            event_type="app_shutdown",
        )

        # Stop background work but keep the persisted token for the next start
        session_controller.shutdown()
        await session_manager.cleanup()

        await client.aclose()
        log_with_context(
            logger,
            "info",
            "HTTP client closed",
            event_type="http_client_cleanup",
        )
