"""Playback component backed by the Spotify Connect Web API.

Implements the ``PlayerHandle`` contract without a browser SDK: the device
is whatever Spotify Connect endpoint the user's account is currently using
(phone, desktop app, speaker), and state comes from ``GET /me/player``.
"""

from typing import Any

from spotify_explorer.exceptions import ExplorerException, Unauthorized
from spotify_explorer.logging_config import get_logger, log_with_context
from spotify_explorer.models import PlaybackState
from spotify_explorer.protocols import (
    AUTHENTICATION_ERROR,
    INITIALIZATION_ERROR,
    PLAYBACK_ERROR,
    PLAYER_EVENTS,
    PLAYER_STATE_CHANGED,
    READY,
    Listener,
    TokenSupplier,
)
from spotify_explorer.services.api_client import SpotifyApiClient

logger = get_logger(__name__)


def playback_state_from_api(data: dict[str, Any] | None) -> PlaybackState | None:
    """Map a ``/me/player`` payload onto PlaybackState."""
    if not data:
        return None

    device = data.get("device") or {}
    item = data.get("item") or None
    track = None
    if item and item.get("type", "track") == "track":
        album = item.get("album") or {}
        track = {
            "name": item.get("name") or "Unknown",
            "uri": item.get("uri"),
            "artists": [{"name": a.get("name")} for a in item.get("artists") or [] if a.get("name")],
            "album": {"name": album.get("name") or "", "images": album.get("images") or []},
            "duration_ms": item.get("duration_ms") or 0,
        }

    return PlaybackState.model_validate(
        {
            "is_paused": not data.get("is_playing", False),
            "position_ms": data.get("progress_ms") or 0,
            "device_id": device.get("id"),
            "track": track,
        }
    )


class ConnectPlayer:
    """``PlayerHandle`` implementation driving the account's Connect device."""

    def __init__(self, api: SpotifyApiClient, name: str, token_supplier: TokenSupplier, volume: float):
        self._api = api
        self.name = name
        self.volume = volume
        self._token_supplier = token_supplier
        self._listeners: dict[str, list[Listener]] = {event: [] for event in PLAYER_EVENTS}

    def add_listener(self, event: str, callback: Listener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown player event: {event}")
        self._listeners[event].append(callback)

    def _emit(self, event: str, payload: Any) -> None:
        for callback in list(self._listeners[event]):
            callback(payload)

    async def connect(self) -> bool:
        """Check the token and announce the active device, if any."""
        if not self._token_supplier():
            self._emit(AUTHENTICATION_ERROR, {"message": "No access token available"})
            return False

        try:
            state = await self.get_current_state()
        except Unauthorized as e:
            self._emit(AUTHENTICATION_ERROR, {"message": e.message})
            return False
        except ExplorerException as e:
            self._emit(INITIALIZATION_ERROR, {"message": e.message})
            return False

        if state is not None and state.device_id:
            self._emit(READY, {"device_id": state.device_id})
        self._emit(PLAYER_STATE_CHANGED, state)
        log_with_context(
            logger,
            "info",
            "Connect player attached",
            player_name=self.name,
            device_id=state.device_id if state else None,
            event_type="connect_player_ready",
        )
        return True

    async def get_current_state(self) -> PlaybackState | None:
        return playback_state_from_api(await self._api.get_playback_state())

    async def toggle_play(self) -> None:
        state = await self.get_current_state()
        if state is not None and not state.is_paused:
            await self._command(self._api.pause_playback)
        else:
            await self._command(self._api.resume_playback)

    async def previous_track(self) -> None:
        await self._command(self._api.skip_previous)

    async def next_track(self) -> None:
        await self._command(self._api.skip_next)

    async def _command(self, send) -> None:
        try:
            await send()
        except ExplorerException as e:
            self._emit(PLAYBACK_ERROR, {"message": e.message})
            raise
        self._emit(PLAYER_STATE_CHANGED, await self.get_current_state())


class ConnectPlayerFactory:
    """``PlayerFactory`` binding ConnectPlayer to the shared API client."""

    def __init__(self, api: SpotifyApiClient):
        self._api = api

    def __call__(self, name: str, token_supplier: TokenSupplier, volume: float) -> ConnectPlayer:
        return ConnectPlayer(self._api, name, token_supplier, volume)
