"""Persistence of the bearer token and its absolute expiry."""

import time
from collections.abc import Callable

from spotify_explorer.logging_config import get_logger, log_with_context
from spotify_explorer.models import Session
from spotify_explorer.storage import ACCESS_TOKEN_KEY, TOKEN_EXPIRY_KEY, KeyValueStore

logger = get_logger(__name__)

DEFAULT_EXPIRES_IN_SECONDS = 3600


def epoch_ms() -> int:
    return int(time.time() * 1000)


class TokenStore:
    """Saves, loads and clears the access token.

    Args:
        storage: Key-value store holding ``accessToken`` and ``tokenExpiry``
        clock: Returns the current time in epoch milliseconds
        default_expires_in: Lifetime used when the grant carries none
    """

    def __init__(
        self,
        storage: KeyValueStore,
        clock: Callable[[], int] = epoch_ms,
        default_expires_in: int = DEFAULT_EXPIRES_IN_SECONDS,
    ):
        self._storage = storage
        self._clock = clock
        self._default_expires_in = default_expires_in

    def now(self) -> int:
        return self._clock()

    def save(self, access_token: str, expires_in_seconds: int | None = None) -> Session:
        """Persist the token with an absolute expiry and return the new session."""
        expires_in = self._default_expires_in if expires_in_seconds is None else expires_in_seconds
        now = self._clock()
        expires_at = now + expires_in * 1000
        self._storage.set(ACCESS_TOKEN_KEY, access_token)
        self._storage.set(TOKEN_EXPIRY_KEY, str(expires_at))
        log_with_context(
            logger,
            "info",
            "Access token stored",
            expires_at_epoch_ms=expires_at,
            event_type="token_saved",
        )
        return Session.from_token(access_token, expires_at, now)

    def load(self) -> Session:
        """Rebuild the session from storage.

        Returns an unauthenticated session when nothing is stored, the expiry
        is unparsable, or ``now >= expiry``.
        """
        token = self._storage.get(ACCESS_TOKEN_KEY)
        raw_expiry = self._storage.get(TOKEN_EXPIRY_KEY)
        if not token or not raw_expiry:
            return Session.anonymous()
        try:
            expires_at = int(raw_expiry)
        except ValueError:
            log_with_context(
                logger,
                "warning",
                "Stored token expiry is not an integer",
                event_type="token_expiry_invalid",
            )
            return Session.anonymous()
        return Session.from_token(token, expires_at, self._clock())

    def clear(self) -> None:
        self._storage.remove(ACCESS_TOKEN_KEY)
        self._storage.remove(TOKEN_EXPIRY_KEY)
