"""FastAPI dependencies for dependency injection."""

from fastapi import Request

from spotify_explorer.services.api_client import SpotifyApiClient
from spotify_explorer.services.playback_controller import PlaybackController
from spotify_explorer.services.session_controller import SessionController
from spotify_explorer.state_managers import SessionManager


def _from_state(request: Request, attribute: str):
    value = getattr(request.app.state, attribute, None)
    if value is None:
        raise RuntimeError(f"{attribute} not initialized. This should never happen.")
    return value


async def get_session_manager(request: Request) -> SessionManager:
    """Get the process-wide session manager from app state."""
    return _from_state(request, "session_manager")


async def get_api_client(request: Request) -> SpotifyApiClient:
    """Get the Spotify Web API client from app state."""
    return _from_state(request, "api_client")


async def get_playback_controller(request: Request) -> PlaybackController:
    """Get the playback device controller from app state."""
    return _from_state(request, "playback_controller")


async def get_session_controller(request: Request) -> SessionController:
    """Get the session controller from app state."""
    return _from_state(request, "session_controller")
