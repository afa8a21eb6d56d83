"""View projections consumed by the external view layer."""

from spotify_explorer.views.presenters import (
    build_playlist_cards,
    build_profile,
    build_result_cards,
    format_duration,
    project_player,
)

__all__ = [
    "build_playlist_cards",
    "build_profile",
    "build_result_cards",
    "format_duration",
    "project_player",
]
