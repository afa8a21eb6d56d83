"""State managers for the process-wide session and device binding.

Everything runs on one asyncio event loop, so these hold plain attributes
without locks. The session is still re-validated on every read because a
logout can land between scheduling a call and running it.
"""

from abc import ABC, abstractmethod

from spotify_explorer.logging_config import get_logger, log_with_context
from spotify_explorer.models import Session, TokenGrant
from spotify_explorer.services.token_store import TokenStore

logger = get_logger(__name__)


class StateManager(ABC):
    """Base class for all state managers with lifecycle hooks."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the state manager (called during app startup)."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Cleanup resources (called during app shutdown)."""
        pass


class SessionManager(StateManager):
    """Owns the single Session and its persistence through the TokenStore."""

    def __init__(self, token_store: TokenStore):
        self._token_store = token_store
        self._session = Session.anonymous()

    async def initialize(self) -> None:
        """Restore a persisted session, if any."""
        self.restore()

    async def cleanup(self) -> None:
        """Forget the in-memory session. The persisted token survives restarts."""
        self._session = Session.anonymous()

    def restore(self) -> Session:
        self._session = self._token_store.load()
        log_with_context(
            logger,
            "info",
            "Session restored" if self._session.authenticated else "No stored session",
            authenticated=self._session.authenticated,
            event_type="session_restore",
        )
        return self._session

    def establish(self, grant: TokenGrant) -> Session:
        """Persist a freshly exchanged token and make it the current session."""
        self._session = self._token_store.save(grant.access_token, grant.expires_in_seconds)
        return self._session

    def current(self) -> Session:
        """Return the session, tearing it down if it has expired since last read."""
        if self._session.authenticated and not self._session.is_fresh(self._token_store.now()):
            log_with_context(
                logger,
                "info",
                "Access token expired",
                expires_at_epoch_ms=self._session.expires_at_epoch_ms,
                event_type="session_expired",
            )
            self.destroy()
        return self._session

    @property
    def authenticated(self) -> bool:
        return self.current().authenticated

    def access_token(self) -> str | None:
        """Token supplier handed to the playback component."""
        return self.current().access_token

    def destroy(self) -> None:
        """Erase the session and the persisted token. Safe to call repeatedly."""
        self._token_store.clear()
        self._session = Session.anonymous()


class DeviceBinding:
    """The device id playback commands target. Never persisted."""

    def __init__(self):
        self._device_id: str | None = None
        self.source: str | None = None

    @property
    def device_id(self) -> str | None:
        return self._device_id

    def bind(self, device_id: str, source: str) -> None:
        self._device_id = device_id
        self.source = source

    def clear(self) -> None:
        self._device_id = None
        self.source = None
