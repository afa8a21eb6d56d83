"""Catalog routes: search, profile, playlists, artist and track details."""

from fastapi import APIRouter, Depends, Query, Request

from spotify_explorer.core.middleware import limiter
from spotify_explorer.dependencies import get_api_client, get_session_controller
from spotify_explorer.models import ArtistCard, PlaylistCard, ProfileResponse, SearchResponse, TrackCard
from spotify_explorer.services.api_client import SpotifyApiClient, validate_search_query
from spotify_explorer.services.session_controller import SessionController
from spotify_explorer.views.presenters import (
    build_artist_card,
    build_playlist_cards,
    build_result_cards,
    build_track_card,
)

router = APIRouter()


@router.get(
    "/search",
    response_model=SearchResponse,
    responses={
        401: {"description": "Not authenticated - visit /auth/login"},
        422: {"description": "Empty or one-character query, or unknown type"},
    },
)
@limiter.limit("30/minute")
async def search(
    request: Request,
    q: str = Query(default="", description="Search term, at least 2 characters"),
    search_type: str = Query(default="track", alias="type", description="track, artist or album"),
    api: SpotifyApiClient = Depends(get_api_client),
):
    """Search the catalog and return result cards.

    An empty ``items`` list means no results.
    """
    query = validate_search_query(q, search_type)
    data = await api.search(query, search_type)
    return SearchResponse(query=query, type=search_type, items=build_result_cards(data, search_type))


@router.get("/me", response_model=ProfileResponse)
async def profile(session_controller: SessionController = Depends(get_session_controller)):
    """Profile and playlists. Failures leave the fields empty instead of erroring."""
    return await session_controller.load_profile()


@router.get("/me/playlists", response_model=list[PlaylistCard])
async def playlists(api: SpotifyApiClient = Depends(get_api_client)):
    return build_playlist_cards(await api.get_playlists())


@router.get("/artists/{artist_id}", response_model=ArtistCard)
async def artist(artist_id: str, api: SpotifyApiClient = Depends(get_api_client)):
    return build_artist_card(await api.get_artist(artist_id))


@router.get("/tracks/{track_id}", response_model=TrackCard)
async def track(track_id: str, api: SpotifyApiClient = Depends(get_api_client)):
    return build_track_card(await api.get_track(track_id))
