"""Health endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from spotify_explorer import __version__
from spotify_explorer.dependencies import get_playback_controller, get_session_manager
from spotify_explorer.models import ControllerState, DetailedHealthResponse, HealthResponse
from spotify_explorer.services.playback_controller import PlaybackController
from spotify_explorer.state_managers import SessionManager

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Basic health check endpoint.

    For dependency status, use `/health/ready`.
    """
    return HealthResponse(status="ok", version=__version__)


@router.get("/health/ready", response_model=DetailedHealthResponse)
async def readiness_check(
    request: Request,
    session_manager: SessionManager = Depends(get_session_manager),
    playback: PlaybackController = Depends(get_playback_controller),
):
    """Readiness probe - can the application serve traffic?

    **Returns:**
    - 200: HTTP client up and the playback controller has not failed
    - 503: Otherwise. An anonymous session alone does not make it unready.
    """
    checks = {}
    all_healthy = True

    client = getattr(request.app.state, "http_client", None)
    checks["http_client"] = "ok" if client is not None and not client.is_closed else "failed"
    if checks["http_client"] != "ok":
        all_healthy = False

    checks["session"] = "authenticated" if session_manager.authenticated else "not_authenticated"

    checks["playback"] = playback.state.value
    if playback.state is ControllerState.FAILED:
        all_healthy = False

    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content=DetailedHealthResponse(
            status="healthy" if all_healthy else "unhealthy",
            version=__version__,
            timestamp=datetime.now(UTC),
            checks=checks,
        ).model_dump(mode="json"),
    )
