"""Page routes: the JSON page state a client renders from."""

from fastapi import APIRouter, Depends

from spotify_explorer.dependencies import get_playback_controller, get_session_controller
from spotify_explorer.models import PageState
from spotify_explorer.services.playback_controller import PlaybackController
from spotify_explorer.services.session_controller import SessionController

router = APIRouter()


@router.get("/", response_model=PageState)
async def index(
    session_controller: SessionController = Depends(get_session_controller),
    playback: PlaybackController = Depends(get_playback_controller),
):
    """Page load: restore any stored session and report what to show."""
    session = await session_controller.on_page_load()
    return PageState(authenticated=session.authenticated, controller=playback.status())
