"""Playback routes: controller status, devices, play and transport controls."""

from fastapi import APIRouter, Depends, Request

from spotify_explorer.core.middleware import limiter
from spotify_explorer.dependencies import get_api_client, get_playback_controller
from spotify_explorer.logging_config import get_logger, log_with_context
from spotify_explorer.models import CommandResult, ControllerStatus, Device, PlayRequest
from spotify_explorer.services.api_client import SpotifyApiClient
from spotify_explorer.services.playback_controller import PlaybackController

router = APIRouter()
logger = get_logger(__name__)


@router.get("", response_model=ControllerStatus)
async def player_status(playback: PlaybackController = Depends(get_playback_controller)):
    """Controller state, bound device and what the player widget shows."""
    return playback.status()


@router.get("/devices", response_model=list[Device])
async def devices(api: SpotifyApiClient = Depends(get_api_client)):
    """Devices visible to the account's Spotify Connect."""
    return await api.list_devices()


@router.post(
    "/play",
    response_model=CommandResult,
    responses={
        401: {"description": "Session expired - logout was forced"},
        409: {"description": "No device available, or the device went away"},
    },
)
@limiter.limit("30/minute")
async def play(
    request: Request,
    body: PlayRequest,
    playback: PlaybackController = Depends(get_playback_controller),
):
    """Play a track on the bound device, resolving one first if needed."""
    device_id = await playback.play(body.track_uri)
    log_with_context(
        logger,
        "info",
        "Playback started",
        device_id=device_id,
        track_uri=body.track_uri,
        event_type="play_started",
    )
    return CommandResult(status="playing", sent=True)


async def _transport(playback: PlaybackController, command: str) -> CommandResult:
    sent = await getattr(playback, command)()
    return CommandResult(status=command if sent else "player_not_initialized", sent=sent)


@router.post("/toggle", response_model=CommandResult)
@limiter.limit("30/minute")
async def toggle(request: Request, playback: PlaybackController = Depends(get_playback_controller)):
    return await _transport(playback, "toggle_play")


@router.post("/previous", response_model=CommandResult)
@limiter.limit("30/minute")
async def previous(request: Request, playback: PlaybackController = Depends(get_playback_controller)):
    return await _transport(playback, "previous")


@router.post("/next", response_model=CommandResult)
@limiter.limit("30/minute")
async def next_track(request: Request, playback: PlaybackController = Depends(get_playback_controller)):
    return await _transport(playback, "next")
