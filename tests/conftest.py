"""Pytest configuration and shared fixtures."""

from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from spotify_explorer.config import Settings
from spotify_explorer.models import PlaybackState, TokenGrant
from spotify_explorer.protocols import PLAYER_EVENTS
from spotify_explorer.services.api_client import SpotifyApiClient
from spotify_explorer.services.playback_controller import PlaybackController
from spotify_explorer.services.token_store import TokenStore
from spotify_explorer.state_managers import DeviceBinding, SessionManager
from spotify_explorer.storage import MemoryStore

API_BASE = "https://api.spotify.com/v1"
NOW_MS = 1_700_000_000_000


def build_response(
    status_code: int,
    json: Any = None,
    method: str = "GET",
    url: str = f"{API_BASE}/me",
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Build a real httpx.Response bound to a request, as the client would return it."""
    return httpx.Response(
        status_code,
        json=json,
        headers=headers,
        request=httpx.Request(method, url),
    )


class FakeClock:
    """Epoch-milliseconds clock that only moves when told to."""

    def __init__(self, now_ms: int = NOW_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class FakePlayer:
    """In-memory stand-in for the playback component."""

    def __init__(
        self,
        name: str = "Test Player",
        token_supplier=None,
        volume: float = 0.5,
        connect_result: bool = True,
        state: PlaybackState | None = None,
    ):
        self.name = name
        self.token_supplier = token_supplier
        self.volume = volume
        self.connect_result = connect_result
        self.state = state
        self.listeners: dict[str, list] = {event: [] for event in PLAYER_EVENTS}
        self.connect_calls = 0
        self.state_calls = 0
        self.commands: list[str] = []

    def add_listener(self, event, callback):
        self.listeners[event].append(callback)

    def emit(self, event, payload=None):
        for callback in self.listeners[event]:
            callback(payload)

    async def connect(self) -> bool:
        self.connect_calls += 1
        if isinstance(self.connect_result, Exception):
            raise self.connect_result
        return self.connect_result

    async def get_current_state(self):
        self.state_calls += 1
        return self.state

    async def toggle_play(self):
        self.commands.append("toggle_play")

    async def previous_track(self):
        self.commands.append("previous_track")

    async def next_track(self):
        self.commands.append("next_track")


class FakePlayerFactory:
    """Records every player it builds."""

    def __init__(self, **player_kwargs):
        self.player_kwargs = player_kwargs
        self.players: list[FakePlayer] = []

    def __call__(self, name, token_supplier, volume):
        player = FakePlayer(name, token_supplier, volume, **self.player_kwargs)
        self.players.append(player)
        return player

    @property
    def player(self) -> FakePlayer:
        return self.players[-1]


@pytest.fixture
def mock_settings(tmp_path):
    """Settings with in-memory storage, no real player and tiny timers."""
    return Settings(
        spotify_client_id="test-client-id",
        spotify_client_secret="",
        spotify_redirect_uri="http://127.0.0.1:5501/auth/callback",
        storage_backend="memory",
        storage_path=tmp_path / "session.json",
        player_backend="none",
        log_dir=tmp_path / "logs",
        device_state_probe_delay=0.0,
        device_fallback_delay=0.05,
        sdk_poll_interval=0.01,
        sdk_poll_max_attempts=20,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def token_store(memory_store, clock):
    return TokenStore(memory_store, clock=clock)


@pytest.fixture
def session_manager(token_store):
    return SessionManager(token_store)


@pytest.fixture
def authenticated_session(session_manager):
    """Session manager holding a fresh token ``tok``."""
    session_manager.establish(TokenGrant(access_token="tok", expires_in_seconds=3600))
    return session_manager


@pytest.fixture
def mock_http_client():
    """Mock httpx.AsyncClient for external API calls."""
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.request = AsyncMock()
    mock_client.post = AsyncMock()
    mock_client.aclose = AsyncMock()
    return mock_client


@pytest.fixture
def api_client(mock_http_client, session_manager, mock_settings):
    return SpotifyApiClient(mock_http_client, session_manager, mock_settings)


@pytest.fixture
def device_binding():
    return DeviceBinding()


@pytest.fixture
def mock_api():
    """Mock SpotifyApiClient for controller tests."""
    api = AsyncMock(spec=SpotifyApiClient)
    api.list_devices = AsyncMock(return_value=[])
    api.play = AsyncMock(return_value=None)
    return api


@pytest.fixture
def playback_controller(mock_api, device_binding, mock_settings):
    return PlaybackController(mock_api, device_binding, mock_settings)


@pytest.fixture
def player_factory():
    return FakePlayerFactory()


@pytest.fixture
def mock_spotify_playback_response():
    """Mock Spotify playback state response."""
    return {
        "device": {"id": "test-device-id", "is_active": True, "name": "Desktop", "type": "Computer"},
        "is_playing": True,
        "item": {
            "type": "track",
            "name": "Test Song",
            "artists": [{"name": "Test Artist"}],
            "album": {"name": "Test Album", "images": [{"url": "https://example.com/image.jpg"}]},
            "duration_ms": 240000,
            "uri": "spotify:track:test123",
        },
        "progress_ms": 60000,
    }


@pytest.fixture
def mock_spotify_devices_response():
    """Mock Spotify devices list with an inactive and an active device."""
    return {
        "devices": [
            {"id": "phone-id", "is_active": False, "name": "Phone", "type": "Smartphone"},
            {"id": "desktop-id", "is_active": True, "name": "Desktop", "type": "Computer"},
        ]
    }


@pytest.fixture
def make_response():
    """Factory for real httpx responses: ``make_response(status, json=..., headers=...)``."""
    return build_response


@pytest.fixture
def make_player_factory():
    """Factory for player factories: ``make_player_factory(connect_result=False, state=...)``."""
    return FakePlayerFactory
