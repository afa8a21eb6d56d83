"""Spotify API Explorer models"""

from spotify_explorer.models.base_models import DetailedHealthResponse, ErrorResponse, HealthResponse
from spotify_explorer.models.spotify import (
    AlbumCard,
    ArtistCard,
    AuthStatus,
    CommandResult,
    ControllerState,
    ControllerStatus,
    Device,
    PageState,
    PkceMaterial,
    PlaybackState,
    PlaybackTrack,
    PlayerView,
    PlaylistCard,
    PlayRequest,
    ProfileCard,
    ProfileResponse,
    SearchResponse,
    SearchType,
    Session,
    TokenGrant,
    TrackCard,
)

__all__ = [
    "AlbumCard",
    "ArtistCard",
    "AuthStatus",
    "CommandResult",
    "ControllerState",
    "ControllerStatus",
    "DetailedHealthResponse",
    "Device",
    "ErrorResponse",
    "HealthResponse",
    "PageState",
    "PkceMaterial",
    "PlaybackState",
    "PlaybackTrack",
    "PlayerView",
    "PlaylistCard",
    "PlayRequest",
    "ProfileCard",
    "ProfileResponse",
    "SearchResponse",
    "SearchType",
    "Session",
    "TokenGrant",
    "TrackCard",
]
