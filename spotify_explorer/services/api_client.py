"""Spotify Web API client.

Every call re-reads the session, attaches the bearer token, and maps the
HTTP status onto a typed outcome.
"""

from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from spotify_explorer.config import Settings
from spotify_explorer.exceptions import (
    BadRequest,
    DeviceLost,
    Forbidden,
    NetworkError,
    NotAuthenticated,
    NotFound,
    RateLimited,
    SearchValidationError,
    ServerError,
    Unauthorized,
    UnexpectedStatus,
)
from spotify_explorer.logging_config import get_logger, log_with_context
from spotify_explorer.models import Device
from spotify_explorer.state_managers import SessionManager

logger = get_logger(__name__)

SEARCH_TYPES = ("track", "artist", "album")
MIN_QUERY_LENGTH = 2

UnauthorizedHandler = Callable[[], Awaitable[None]]


def validate_search_query(query: str | None, search_type: str) -> str:
    """Validate search input before any request is made.

    Returns:
        The stripped query

    Raises:
        SearchValidationError: Empty or one-character query, or unknown type
    """
    query = (query or "").strip()
    if not query:
        raise SearchValidationError("Please enter a search term")
    if len(query) < MIN_QUERY_LENGTH:
        raise SearchValidationError("Search term must be at least 2 characters")
    if search_type not in SEARCH_TYPES:
        raise SearchValidationError(
            f"Search type must be one of: {', '.join(SEARCH_TYPES)}",
            details={"type": search_type},
        )
    return query


def _error_message(response: httpx.Response) -> str | None:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            return error.get("message")
        if isinstance(error, str):
            return data.get("error_description") or error
    return None


def classify_response(response: httpx.Response) -> Any:
    """Map a Web API response onto its outcome.

    Returns the decoded JSON body for 200/201 (None when empty) and None for
    204. Every other status raises the matching exception.
    """
    status = response.status_code
    if status in (200, 201):
        if not response.content:
            return None
        return response.json()
    if status == 204:
        return None
    if status == 400:
        raise BadRequest(_error_message(response) or "Bad request")
    if status == 401:
        raise Unauthorized()
    if status == 403:
        raise Forbidden()
    if status == 404:
        raise NotFound()
    if status == 429:
        raise RateLimited(retry_after=response.headers.get("Retry-After"))
    if status == 500:
        raise ServerError()
    raise UnexpectedStatus(status, response.reason_phrase)


def pick_device(devices: list[Device]) -> Device | None:
    """First device flagged active, else the first device listed."""
    if not devices:
        return None
    return next((d for d in devices if d.is_active), devices[0])


class SpotifyApiClient:
    """Thin wrapper over the Web API bound to the process-wide session.

    Args:
        client: Shared HTTP client
        session_manager: Owner of the current session
        settings: Application settings
        on_unauthorized: Awaited on any 401 before ``Unauthorized`` is raised
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        session_manager: SessionManager,
        settings: Settings,
        on_unauthorized: UnauthorizedHandler | None = None,
    ):
        self._client = client
        self._session_manager = session_manager
        self._settings = settings
        self._on_unauthorized = on_unauthorized

    def set_unauthorized_handler(self, handler: UnauthorizedHandler | None) -> None:
        self._on_unauthorized = handler

    async def send(self, method: str, path_and_query: str, body: Any | None = None) -> httpx.Response:
        """Send an authenticated request and return the raw response.

        Raises:
            NotAuthenticated: No fresh session at the time of sending
            NetworkError: No HTTP response was received
        """
        session = self._session_manager.current()
        if not session.authenticated or not session.access_token:
            raise NotAuthenticated()

        url = f"{self._settings.spotify_api_base_url}{path_and_query}"
        try:
            response = await self._client.request(
                method,
                url,
                headers={
                    "Authorization": f"Bearer {session.access_token}",
                    "Content-Type": "application/json",
                },
                json=body,
            )
        except httpx.HTTPError as e:
            log_with_context(
                logger,
                "warning",
                "Spotify API request failed",
                method=method,
                path=path_and_query.split("?")[0],
                error=str(e),
                error_type=type(e).__name__,
                event_type="spotify_network_error",
            )
            raise NetworkError(f"Could not reach Spotify: {e}") from e

        if response.status_code == 401:
            await self._handle_unauthorized()
        return response

    async def request(self, method: str, path_and_query: str, body: Any | None = None) -> Any:
        """Send an authenticated request and classify the outcome (see ``classify_response``)."""
        response = await self.send(method, path_and_query, body)
        return classify_response(response)

    async def _handle_unauthorized(self) -> None:
        log_with_context(
            logger,
            "warning",
            "Spotify rejected the access token, forcing logout",
            event_type="spotify_unauthorized",
        )
        if self._on_unauthorized is not None:
            await self._on_unauthorized()

    # Endpoints

    async def search(self, query: str, search_type: str) -> dict:
        query = validate_search_query(query, search_type)
        params = urlencode({"q": query, "type": search_type, "limit": self._settings.search_limit})
        return await self.request("GET", f"/search?{params}") or {}

    async def get_profile(self) -> dict:
        return await self.request("GET", "/me") or {}

    async def get_playlists(self) -> dict:
        params = urlencode({"limit": self._settings.playlist_limit})
        return await self.request("GET", f"/me/playlists?{params}") or {}

    async def get_artist(self, artist_id: str) -> dict:
        return await self.request("GET", f"/artists/{quote(artist_id, safe='')}") or {}

    async def get_track(self, track_id: str) -> dict:
        return await self.request("GET", f"/tracks/{quote(track_id, safe='')}") or {}

    async def list_devices(self) -> list[Device]:
        data = await self.request("GET", "/me/player/devices") or {}
        return [Device.model_validate(d) for d in data.get("devices") or [] if d.get("id")]

    async def play(self, device_id: str, track_uri: str) -> None:
        """Start ``track_uri`` on ``device_id``.

        Any 2xx is success. 404 means the device went away.

        Raises:
            DeviceLost: 404 from the play endpoint
            Unauthorized: 401 (logout already forced)
        """
        response = await self.send("PUT", "/me/player/play", {"device_id": device_id, "uris": [track_uri]})
        if response.is_success:
            return
        if response.status_code == 404:
            raise DeviceLost(device_id)
        classify_response(response)

    async def get_playback_state(self) -> dict | None:
        """Current playback on the user's account, or None when nothing is playing."""
        return await self.request("GET", "/me/player")

    async def pause_playback(self) -> None:
        await self.request("PUT", "/me/player/pause")

    async def resume_playback(self) -> None:
        await self.request("PUT", "/me/player/play")

    async def skip_next(self) -> None:
        await self.request("POST", "/me/player/next")

    async def skip_previous(self) -> None:
        await self.request("POST", "/me/player/previous")
