"""Playback device controller.

Owns the playback component instance and the device binding, and runs the
device state machine::

    UNINITIALIZED -> CONNECTING -> READY(device_id) -> ACTIVE
                          any  -> FAILED(reason)

The device id is discovered from, in priority order, the component's
``ready`` event, a single state query shortly after connecting, and the Web
API device listing. None of these is guaranteed to deliver, so a missing
device id leaves the controller in CONNECTING instead of failing it.
"""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from spotify_explorer.config import Settings
from spotify_explorer.exceptions import DeviceLost, ExplorerException, NoDeviceAvailable, SdkInitializationFailed
from spotify_explorer.logging_config import get_logger, log_with_context
from spotify_explorer.models import ControllerState, ControllerStatus, PlaybackState, PlayerView
from spotify_explorer.protocols import (
    ACCOUNT_ERROR,
    AUTHENTICATION_ERROR,
    INITIALIZATION_ERROR,
    NOT_READY,
    PLAYBACK_ERROR,
    PLAYER_STATE_CHANGED,
    READY,
    Listener,
    PlayerFactory,
    PlayerHandle,
    TokenSupplier,
)
from spotify_explorer.services.api_client import SpotifyApiClient, pick_device
from spotify_explorer.services.polling import InvalidationToken, TaskGroup
from spotify_explorer.state_managers import DeviceBinding
from spotify_explorer.views.presenters import project_player

logger = get_logger(__name__)


class ControllerEvent(str, Enum):
    START = "start"
    DEVICE_RESOLVED = "device_resolved"
    PLAY_STARTED = "play_started"
    DEVICE_LOST = "device_lost"
    FATAL_ERROR = "fatal_error"
    RESET = "reset"


_TRANSITIONS: dict[tuple[ControllerState, ControllerEvent], ControllerState] = {
    (ControllerState.UNINITIALIZED, ControllerEvent.START): ControllerState.CONNECTING,
    (ControllerState.CONNECTING, ControllerEvent.DEVICE_RESOLVED): ControllerState.READY,
    (ControllerState.READY, ControllerEvent.DEVICE_RESOLVED): ControllerState.READY,
    (ControllerState.ACTIVE, ControllerEvent.DEVICE_RESOLVED): ControllerState.ACTIVE,
    (ControllerState.READY, ControllerEvent.PLAY_STARTED): ControllerState.ACTIVE,
    (ControllerState.ACTIVE, ControllerEvent.PLAY_STARTED): ControllerState.ACTIVE,
    (ControllerState.READY, ControllerEvent.DEVICE_LOST): ControllerState.CONNECTING,
    (ControllerState.ACTIVE, ControllerEvent.DEVICE_LOST): ControllerState.CONNECTING,
}


def next_state(state: ControllerState, event: ControllerEvent) -> ControllerState | None:
    """The state ``event`` leads to from ``state``, or None if it does not apply."""
    if event is ControllerEvent.RESET:
        return ControllerState.UNINITIALIZED
    if event is ControllerEvent.FATAL_ERROR:
        return None if state is ControllerState.FAILED else ControllerState.FAILED
    return _TRANSITIONS.get((state, event))


AuthFailureHandler = Callable[[], Awaitable[None]]


class PlaybackController:
    """Drives the external playback component and the device binding.

    Args:
        api: Web API client, used as the fallback device source and for play
        binding: The process-wide device binding (written only here)
        settings: Player name/volume and discovery delays
        on_authentication_error: Awaited when the component rejects the token
    """

    def __init__(
        self,
        api: SpotifyApiClient,
        binding: DeviceBinding,
        settings: Settings,
        on_authentication_error: AuthFailureHandler | None = None,
    ):
        self._api = api
        self._binding = binding
        self._settings = settings
        self._on_authentication_error = on_authentication_error

        self.state = ControllerState.UNINITIALIZED
        self.failure: SdkInitializationFailed | None = None
        self.last_error: str | None = None
        self.playback_state: PlaybackState | None = None
        self.player_view: PlayerView | None = None

        self._player: PlayerHandle | None = None
        self._token = InvalidationToken()
        self._tasks = TaskGroup()

    def set_authentication_error_handler(self, handler: AuthFailureHandler | None) -> None:
        self._on_authentication_error = handler

    @property
    def device_id(self) -> str | None:
        return self._binding.device_id

    @property
    def has_player(self) -> bool:
        return self._player is not None

    def status(self) -> ControllerStatus:
        return ControllerStatus(
            state=self.state,
            device_id=self._binding.device_id,
            device_source=self._binding.source,
            failure_reason=self.failure.message if self.failure else None,
            has_player=self.has_player,
            player=self.player_view,
            message=self.last_error,
        )

    def _transition(self, event: ControllerEvent) -> ControllerState:
        new_state = next_state(self.state, event)
        if new_state is None:
            log_with_context(
                logger,
                "debug",
                "Ignoring controller event",
                state=self.state.value,
                controller_event=event.value,
                event_type="controller_event_ignored",
            )
            return self.state
        if new_state is not self.state:
            log_with_context(
                logger,
                "info",
                "Playback controller state change",
                old_state=self.state.value,
                new_state=new_state.value,
                controller_event=event.value,
                event_type="controller_transition",
            )
        self.state = new_state
        return new_state

    # Lifecycle

    async def start(self, player_factory: PlayerFactory, token_supplier: TokenSupplier) -> None:
        """Construct and connect the playback component.

        Callers guarantee a valid session and an available component. Device
        discovery continues in the background; see ``wait_for_resolution``.
        """
        if self.state is not ControllerState.UNINITIALIZED:
            log_with_context(
                logger,
                "debug",
                "Player already started",
                state=self.state.value,
                event_type="player_start_skipped",
            )
            return

        token = InvalidationToken()
        self._token = token
        player = player_factory(self._settings.player_name, token_supplier, self._settings.player_volume)
        self._player = player
        self._subscribe(player, token)
        self._transition(ControllerEvent.START)

        self._tasks.schedule(
            self._settings.device_fallback_delay,
            lambda: self._second_chance_fallback(token),
            token,
            name="device-fallback",
        )
        self._tasks.spawn(self._connect(player, token), name="player-connect")

    async def wait_for_resolution(self) -> None:
        """Wait for connect, state probe and fallback timers to finish."""
        await self._tasks.join()

    def teardown(self) -> None:
        """Stop timers, drop the player and forget the device. Idempotent."""
        self._token.invalidate()
        self._tasks.cancel_all()
        self._player = None
        self._binding.clear()
        self.playback_state = None
        self.player_view = None
        self.failure = None
        self.last_error = None
        self._transition(ControllerEvent.RESET)

    # Component events

    def _subscribe(self, player: PlayerHandle, token: InvalidationToken) -> None:
        handlers: dict[str, Listener] = {
            INITIALIZATION_ERROR: lambda p: self._fail(INITIALIZATION_ERROR, p),
            ACCOUNT_ERROR: lambda p: self._fail(ACCOUNT_ERROR, p),
            AUTHENTICATION_ERROR: self._on_authentication_failure,
            PLAYBACK_ERROR: self._on_playback_error,
            PLAYER_STATE_CHANGED: self._on_state_changed,
            READY: self._on_ready,
            NOT_READY: self._on_not_ready,
        }
        for event, handler in handlers.items():
            player.add_listener(event, self._guarded(handler, token))

    @staticmethod
    def _guarded(handler: Listener, token: InvalidationToken) -> Listener:
        def listener(payload: Any) -> None:
            if token.invalidated:
                return
            handler(payload)

        return listener

    @staticmethod
    def _message(payload: Any) -> str:
        if isinstance(payload, dict):
            return str(payload.get("message") or "unknown error")
        return str(payload or "unknown error")

    def _fail(self, kind: str, payload: Any) -> None:
        message = self._message(payload)
        self.failure = SdkInitializationFailed(kind, message)
        self.last_error = self.failure.message
        log_with_context(
            logger,
            "error",
            "Playback component reported a fatal error",
            kind=kind,
            error=message,
            event_type="player_fatal_error",
        )
        self._transition(ControllerEvent.FATAL_ERROR)

    def _on_authentication_failure(self, payload: Any) -> None:
        self._fail(AUTHENTICATION_ERROR, payload)
        if self._on_authentication_error is not None:
            self._tasks.spawn(self._on_authentication_error(), name="forced-logout")

    def _on_playback_error(self, payload: Any) -> None:
        self.last_error = f"Playback error: {self._message(payload)}"
        log_with_context(logger, "warning", self.last_error, event_type="player_playback_error")

    def _on_state_changed(self, state: PlaybackState | None) -> None:
        if state is None:
            return
        self.playback_state = state
        self.player_view = project_player(state)

    def _on_ready(self, payload: Any) -> None:
        device_id = payload.get("device_id") if isinstance(payload, dict) else None
        if device_id:
            self._bind(device_id, "ready_event")

    def _on_not_ready(self, payload: Any) -> None:
        device_id = payload.get("device_id") if isinstance(payload, dict) else None
        log_with_context(
            logger,
            "warning",
            "Player not ready - connection lost",
            device_id=device_id,
            event_type="player_not_ready",
        )

    # Device discovery

    def _bind(self, device_id: str, source: str) -> None:
        self._binding.bind(device_id, source)
        self.last_error = None
        log_with_context(
            logger,
            "info",
            "Playback device resolved",
            device_id=device_id,
            source=source,
            event_type="device_resolved",
        )
        self._transition(ControllerEvent.DEVICE_RESOLVED)

    async def _connect(self, player: PlayerHandle, token: InvalidationToken) -> None:
        try:
            connected = await player.connect()
        except Exception as e:
            # Third-party component: any failure here just means "use the API"
            log_with_context(
                logger,
                "warning",
                "Player connect raised, falling back to device listing",
                error=str(e),
                error_type=type(e).__name__,
                event_type="player_connect_error",
            )
            connected = False

        if token.invalidated:
            return
        if connected:
            log_with_context(logger, "info", "Player connected", event_type="player_connected")
            self._tasks.schedule(
                self._settings.device_state_probe_delay,
                lambda: self._probe_state(player, token),
                token,
                name="device-state-probe",
            )
        else:
            await self._resolve_from_api(token, "connect_fallback")

    async def _probe_state(self, player: PlayerHandle, token: InvalidationToken) -> None:
        if self._binding.device_id:
            return
        if await self._resolve_from_player(player, token):
            return
        await self._resolve_from_api(token, "state_probe_fallback")

    async def _second_chance_fallback(self, token: InvalidationToken) -> None:
        if self._binding.device_id:
            return
        log_with_context(
            logger,
            "info",
            "Still no device id, fetching devices from API",
            event_type="device_fallback_timeout",
        )
        await self._resolve_from_api(token, "timeout_fallback")

    async def _resolve_from_player(self, player: PlayerHandle, token: InvalidationToken) -> str | None:
        try:
            state = await player.get_current_state()
        except Exception as e:
            log_with_context(
                logger,
                "warning",
                "Player state query failed",
                error=str(e),
                error_type=type(e).__name__,
                event_type="player_state_error",
            )
            return None
        if token.invalidated or state is None or not state.device_id:
            return None
        self._bind(state.device_id, "player_state")
        return state.device_id

    async def _resolve_from_api(self, token: InvalidationToken, source: str) -> str | None:
        try:
            devices = await self._api.list_devices()
        except ExplorerException as e:
            if token.invalidated:
                return None
            self.last_error = f"Could not fetch available devices: {e.message}"
            log_with_context(
                logger,
                "warning",
                "Device listing failed",
                error=e.message,
                error_code=e.code.value,
                event_type="device_listing_failed",
            )
            return None
        if token.invalidated:
            return None

        device = pick_device(devices)
        if device is None:
            self.last_error = (
                "No active Spotify devices found. Open Spotify on your phone, desktop, or in another browser tab."
            )
            log_with_context(logger, "warning", "No devices available from API", event_type="device_listing_empty")
            return None

        self._bind(device.id, source)
        return device.id

    async def resolve_device(self) -> str | None:
        """Run discovery inline: state query on the player, then the device listing."""
        token = self._token
        if self._player is not None:
            device_id = await self._resolve_from_player(self._player, token)
            if device_id:
                return device_id
        return await self._resolve_from_api(token, "on_demand")

    # Commands

    async def play(self, track_uri: str) -> str:
        """Play ``track_uri`` on the bound device, resolving one first if needed.

        Returns:
            The device id playback was started on

        Raises:
            NoDeviceAvailable: No device could be resolved
            DeviceLost: The device disappeared (404); the binding is dropped
            Unauthorized: The token was rejected; logout has been forced
        """
        device_id = self._binding.device_id or await self.resolve_device()
        if not device_id:
            raise NoDeviceAvailable()

        log_with_context(
            logger,
            "info",
            "Sending play request",
            device_id=device_id,
            track_uri=track_uri,
            event_type="play_request",
        )
        try:
            await self._api.play(device_id, track_uri)
        except DeviceLost:
            if self._binding.device_id == device_id:
                self._binding.clear()
                self._transition(ControllerEvent.DEVICE_LOST)
            raise

        self._transition(ControllerEvent.PLAY_STARTED)
        return device_id

    async def toggle_play(self) -> bool:
        return await self._transport("toggle_play")

    async def previous(self) -> bool:
        return await self._transport("previous_track")

    async def next(self) -> bool:
        return await self._transport("next_track")

    async def _transport(self, command: str) -> bool:
        """Pass a transport command to the player. Returns False when there is none."""
        if self._player is None:
            log_with_context(
                logger,
                "warning",
                "Player not initialized, ignoring command",
                command=command,
                event_type="player_command_ignored",
            )
            return False
        await getattr(self._player, command)()
        return True
