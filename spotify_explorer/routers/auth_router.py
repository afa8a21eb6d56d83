"""OAuth routes: login redirect, provider callback, logout and status."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from spotify_explorer.dependencies import get_session_controller
from spotify_explorer.models import AuthStatus
from spotify_explorer.services.session_controller import SessionController

router = APIRouter()


@router.get("/login")
async def login(session_controller: SessionController = Depends(get_session_controller)):
    """Redirect to the Spotify authorization page (PKCE, S256)."""
    return RedirectResponse(url=session_controller.begin_login())


@router.get(
    "/callback",
    response_model=AuthStatus,
    responses={
        400: {"description": "Authorization denied or state mismatch"},
        502: {"description": "Token exchange rejected by Spotify"},
        503: {"description": "Token endpoint unreachable"},
    },
)
async def callback(
    code: str | None = Query(default=None, description="Authorization code"),
    state: str | None = Query(default=None, description="OAuth state echoed by the provider"),
    error: str | None = Query(default=None, description="Provider error, e.g. access_denied"),
    session_controller: SessionController = Depends(get_session_controller),
):
    """Complete the authorization code flow.

    Without ``code`` or ``error`` this behaves like a plain page load and
    reports the restored session.
    """
    exchanged = bool(code) and not error
    session = await session_controller.complete_login(code=code, state=state, error=error)
    message = None
    if exchanged:
        message = "Successfully connected to Spotify!"
    return AuthStatus(
        authenticated=session.authenticated,
        expires_at_epoch_ms=session.expires_at_epoch_ms if session.authenticated else None,
        message=message,
    )


@router.post("/logout", response_model=AuthStatus)
async def logout(session_controller: SessionController = Depends(get_session_controller)):
    """Clear the session, the player and the device binding. Safe to repeat."""
    await session_controller.logout()
    return AuthStatus(authenticated=False, message="Logged out")


@router.get("/status", response_model=AuthStatus)
async def auth_status(session_controller: SessionController = Depends(get_session_controller)):
    """Check if a fresh session exists."""
    session = session_controller.session
    return AuthStatus(
        authenticated=session.authenticated,
        expires_at_epoch_ms=session.expires_at_epoch_ms if session.authenticated else None,
    )
