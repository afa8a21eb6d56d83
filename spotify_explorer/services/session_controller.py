"""Session orchestration.

Reacts to page loads, the OAuth callback and logout, and starts the
playback component once both the session and the component are available.
"""

from spotify_explorer.config import Settings
from spotify_explorer.exceptions import ExplorerException
from spotify_explorer.logging_config import get_logger, log_with_context
from spotify_explorer.models import ControllerState, ProfileResponse, Session
from spotify_explorer.protocols import PlayerFactory
from spotify_explorer.services.api_client import SpotifyApiClient
from spotify_explorer.services.pkce_authorizer import PkceAuthorizer
from spotify_explorer.services.playback_controller import PlaybackController
from spotify_explorer.services.polling import InvalidationToken, PollingTask, TaskGroup
from spotify_explorer.state_managers import SessionManager
from spotify_explorer.views.presenters import build_playlist_cards, build_profile

logger = get_logger(__name__)


class SessionController:
    """Orders authorization, token persistence and dependent initialization.

    Registers itself as the forced-logout handler of the API client (any
    401) and the playback controller (component authentication errors).
    """

    def __init__(
        self,
        settings: Settings,
        session_manager: SessionManager,
        authorizer: PkceAuthorizer,
        api: SpotifyApiClient,
        playback: PlaybackController,
    ):
        self._settings = settings
        self._session_manager = session_manager
        self._authorizer = authorizer
        self._api = api
        self._playback = playback

        self._player_factory: PlayerFactory | None = None
        self._token = InvalidationToken()
        self._tasks = TaskGroup()
        self._rendezvous: PollingTask | None = None

        api.set_unauthorized_handler(self.logout)
        playback.set_authentication_error_handler(self.logout)

    @property
    def session(self) -> Session:
        return self._session_manager.current()

    @property
    def sdk_available(self) -> bool:
        return self._player_factory is not None

    @property
    def rendezvous_pending(self) -> bool:
        return self._rendezvous is not None and self._rendezvous.running

    # Page lifecycle

    async def on_page_load(self) -> Session:
        """Restore any stored session and kick off dependent initialization."""
        session = self._session_manager.current()
        if not session.authenticated:
            session = self._session_manager.restore()
        if session.authenticated:
            self._ensure_player()
        return session

    def begin_login(self) -> str:
        """Provider URL the user agent should be redirected to."""
        return self._authorizer.begin_authorization()

    async def complete_login(
        self,
        code: str | None = None,
        state: str | None = None,
        error: str | None = None,
    ) -> Session:
        """Finish the OAuth redirect.

        Without ``code`` and ``error`` this is a plain page load.

        Raises:
            AuthorizationDenied, TokenExchangeFailed, NetworkError
        """
        grant = await self._authorizer.complete_authorization(code=code, state=state, error=error)
        if grant is None:
            return await self.on_page_load()

        # A new login replaces whatever was running for the previous token
        self._reset_background_work()
        session = self._session_manager.establish(grant)
        log_with_context(
            logger,
            "info",
            "Successfully connected to Spotify",
            expires_at_epoch_ms=session.expires_at_epoch_ms,
            event_type="session_established",
        )
        self._ensure_player()
        return session

    async def logout(self) -> None:
        """Tear down the session, the player and every pending poll. Idempotent."""
        was_authenticated = self._session_manager.current().authenticated
        self._reset_background_work()
        self._session_manager.destroy()
        if was_authenticated:
            log_with_context(logger, "info", "Logged out", event_type="session_logout")

    def shutdown(self) -> None:
        """Stop background work without touching the persisted token."""
        self._reset_background_work()

    def _reset_background_work(self) -> None:
        self._token.invalidate()
        self._token = InvalidationToken()
        if self._rendezvous is not None:
            self._rendezvous.stop()
            self._rendezvous = None
        self._tasks.cancel_all()
        self._playback.teardown()

    # Playback component rendezvous

    def sdk_loaded(self, player_factory: PlayerFactory) -> None:
        """Record that the playback component can be constructed."""
        self._player_factory = player_factory
        log_with_context(logger, "info", "Playback component available", event_type="sdk_loaded")
        if self._session_manager.current().authenticated:
            self._ensure_player()

    def _player_prerequisites_met(self) -> bool:
        return self._player_factory is not None and self._session_manager.current().authenticated

    def _ensure_player(self) -> None:
        """Start the player now if possible, otherwise poll until it is."""
        if self._playback.state is not ControllerState.UNINITIALIZED:
            return
        if self._player_prerequisites_met():
            self._tasks.spawn(self._start_player(), name="player-start")
            return
        if self.rendezvous_pending:
            return

        log_with_context(
            logger,
            "debug",
            "Waiting for playback component and session",
            sdk_available=self.sdk_available,
            event_type="sdk_rendezvous_wait",
        )
        self._rendezvous = PollingTask(
            condition=self._player_prerequisites_met,
            on_ready=self._start_player,
            token=self._token,
            interval=self._settings.sdk_poll_interval,
            max_attempts=self._settings.sdk_poll_max_attempts,
            name="sdk-rendezvous",
        )
        self._rendezvous.start(self._tasks)

    async def _start_player(self) -> None:
        if not self._player_prerequisites_met():
            return
        await self._playback.start(self._player_factory, self._session_manager.access_token)

    async def wait_for_player(self) -> None:
        """Wait for the rendezvous and device discovery to settle."""
        await self._tasks.join()
        await self._playback.wait_for_resolution()

    # Optional enrichment

    async def load_profile(self) -> ProfileResponse:
        """Profile and playlists. Failures are logged and never surfaced."""
        result = ProfileResponse()
        try:
            result.profile = build_profile(await self._api.get_profile())
            result.playlists = build_playlist_cards(await self._api.get_playlists())
        except ExplorerException as e:
            log_with_context(
                logger,
                "warning",
                "Error loading profile",
                error=e.message,
                error_code=e.code.value,
                event_type="profile_load_failed",
            )
        return result
