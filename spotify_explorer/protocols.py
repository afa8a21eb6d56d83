"""Protocol definitions for the external playback component.

The playback component renders audio and is consumed, not implemented, by
the controller. Anything with this shape can be plugged in: the Web API
backed ``ConnectPlayer``, or a fake in tests.
"""

from collections.abc import Callable
from typing import Any, Protocol

from spotify_explorer.models import PlaybackState

INITIALIZATION_ERROR = "initialization_error"
AUTHENTICATION_ERROR = "authentication_error"
ACCOUNT_ERROR = "account_error"
PLAYBACK_ERROR = "playback_error"
PLAYER_STATE_CHANGED = "player_state_changed"
READY = "ready"
NOT_READY = "not_ready"

PLAYER_EVENTS = (
    INITIALIZATION_ERROR,
    AUTHENTICATION_ERROR,
    ACCOUNT_ERROR,
    PLAYBACK_ERROR,
    PLAYER_STATE_CHANGED,
    READY,
    NOT_READY,
)

TokenSupplier = Callable[[], str | None]
Listener = Callable[[Any], None]


class PlayerHandle(Protocol):
    """A constructed playback component instance.

    Error events carry ``{"message": str}``, ``ready``/``not_ready`` carry
    ``{"device_id": str}`` and ``player_state_changed`` carries a
    ``PlaybackState`` or None.
    """

    def add_listener(self, event: str, callback: Listener) -> None: ...

    async def connect(self) -> bool: ...

    async def get_current_state(self) -> PlaybackState | None: ...

    async def toggle_play(self) -> None: ...

    async def previous_track(self) -> None: ...

    async def next_track(self) -> None: ...


class PlayerFactory(Protocol):
    """Constructs a player: ``factory(name, token_supplier, volume)``."""

    def __call__(self, name: str, token_supplier: TokenSupplier, volume: float) -> PlayerHandle: ...
