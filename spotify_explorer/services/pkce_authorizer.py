"""OAuth 2.0 authorization code flow with PKCE (S256)."""

import base64
import hashlib
import secrets
import string
from urllib.parse import urlencode

import httpx

from spotify_explorer.config import Settings
from spotify_explorer.exceptions import AuthorizationDenied, NetworkError, TokenExchangeFailed
from spotify_explorer.logging_config import get_logger, log_with_context
from spotify_explorer.models import PkceMaterial, TokenGrant
from spotify_explorer.storage import OAUTH_STATE_KEY, PKCE_VERIFIER_KEY, KeyValueStore

logger = get_logger(__name__)

PKCE_ALPHABET = string.ascii_letters + string.digits
VERIFIER_LENGTH = 128
STATE_LENGTH = 16


def generate_random_string(length: int) -> str:
    """Random string over [A-Za-z0-9] from a CSPRNG."""
    return "".join(secrets.choice(PKCE_ALPHABET) for _ in range(length))


def code_challenge_from_verifier(verifier: str) -> str:
    """Compute the S256 code challenge: base64url(SHA-256(verifier)) without padding."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def generate_pkce_material() -> PkceMaterial:
    verifier = generate_random_string(VERIFIER_LENGTH)
    return PkceMaterial(
        verifier=verifier,
        challenge=code_challenge_from_verifier(verifier),
        state=generate_random_string(STATE_LENGTH),
    )


class PkceAuthorizer:
    """Builds the authorization redirect and exchanges the returned code.

    The verifier and state are persisted between the two halves of the flow
    and erased once a callback consumes them.
    """

    def __init__(self, client: httpx.AsyncClient, storage: KeyValueStore, settings: Settings):
        self._client = client
        self._storage = storage
        self._settings = settings

    def begin_authorization(self) -> str:
        """Generate and persist PKCE material, then return the provider URL to redirect to."""
        material = generate_pkce_material()
        self._storage.set(PKCE_VERIFIER_KEY, material.verifier)
        self._storage.set(OAUTH_STATE_KEY, material.state)

        params = {
            "client_id": self._settings.spotify_client_id,
            "response_type": "code",
            "redirect_uri": self._settings.spotify_redirect_uri,
            "scope": " ".join(self._settings.spotify_scopes),
            "state": material.state,
            "code_challenge_method": "S256",
            "code_challenge": material.challenge,
        }
        log_with_context(
            logger,
            "info",
            "Starting Spotify authorization",
            scopes=self._settings.spotify_scopes,
            event_type="oauth_begin",
        )
        return f"{self._settings.spotify_auth_url}?{urlencode(params)}"

    async def complete_authorization(
        self,
        code: str | None = None,
        state: str | None = None,
        error: str | None = None,
    ) -> TokenGrant | None:
        """Handle the provider redirect.

        Returns:
            The token grant, or None when the query carries neither a code
            nor an error (a plain page load).

        Raises:
            AuthorizationDenied: Provider reported an error or state mismatch
            TokenExchangeFailed: Token endpoint rejected the code
            NetworkError: Token endpoint unreachable
        """
        if error:
            self._erase_material()
            log_with_context(logger, "warning", "Authorization denied", error=error, event_type="oauth_denied")
            raise AuthorizationDenied(error)

        if not code:
            return None

        try:
            expected_state = self._storage.get(OAUTH_STATE_KEY)
            if expected_state is not None and state != expected_state:
                log_with_context(logger, "warning", "OAuth state mismatch", event_type="oauth_state_mismatch")
                raise AuthorizationDenied("state_mismatch")

            verifier = self._storage.get(PKCE_VERIFIER_KEY)
            if not verifier:
                raise TokenExchangeFailed("missing PKCE code verifier")

            return await self._exchange_code(code, verifier)
        finally:
            self._erase_material()

    async def _exchange_code(self, code: str, verifier: str) -> TokenGrant:
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._settings.spotify_redirect_uri,
            "code_verifier": verifier,
        }
        auth: tuple[str, str] | None = None
        if self._settings.uses_client_secret:
            auth = (self._settings.spotify_client_id, self._settings.spotify_client_secret)
        else:
            form["client_id"] = self._settings.spotify_client_id

        try:
            response = await self._client.post(
                self._settings.spotify_token_url,
                data=form,
                auth=auth,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            log_with_context(
                logger,
                "error",
                "Token exchange request failed",
                error=str(e),
                error_type=type(e).__name__,
                event_type="oauth_network_error",
            )
            raise NetworkError("Failed to exchange code for token") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not isinstance(data, dict):
            data = {}

        if data.get("error"):
            provider_message = data.get("error_description") or data["error"]
            log_with_context(
                logger,
                "warning",
                "Token exchange rejected",
                provider_error=data["error"],
                status_code=response.status_code,
                event_type="oauth_exchange_rejected",
            )
            raise TokenExchangeFailed(provider_message, details={"error": data["error"]})

        access_token = data.get("access_token")
        if response.status_code >= 400 or not access_token:
            raise TokenExchangeFailed(
                f"unexpected token response (HTTP {response.status_code})",
                details={"status_code": response.status_code},
            )

        log_with_context(logger, "info", "Token exchange succeeded", event_type="oauth_exchange_success")
        return TokenGrant(access_token=access_token, expires_in_seconds=data.get("expires_in"))

    def _erase_material(self) -> None:
        self._storage.remove(PKCE_VERIFIER_KEY)
        self._storage.remove(OAUTH_STATE_KEY)
