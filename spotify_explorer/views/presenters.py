"""Projections from raw Web API payloads into plain view data.

The view layer renders these; nothing here knows about presentation.
"""

from typing import Any

from spotify_explorer.models import (
    AlbumCard,
    ArtistCard,
    PlaybackState,
    PlayerView,
    PlaylistCard,
    ProfileCard,
    TrackCard,
)

PLAY_GLYPH = "▶"
PAUSE_GLYPH = "⏸"

_RESULT_KEYS = {"track": "tracks", "artist": "artists", "album": "albums"}


def format_duration(ms: int | None) -> str:
    """Format milliseconds as ``m:ss``."""
    total_seconds = max(int(ms or 0), 0) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def _first_image(item: dict[str, Any]) -> str | None:
    images = item.get("images") or []
    if images and isinstance(images[0], dict):
        return images[0].get("url")
    return None


def _external_url(item: dict[str, Any]) -> str:
    return (item.get("external_urls") or {}).get("spotify") or "#"


def _artist_names(item: dict[str, Any]) -> str:
    names = [a.get("name") for a in item.get("artists") or [] if a.get("name")]
    return ", ".join(names) or "Unknown"


def build_track_card(item: dict[str, Any]) -> TrackCard:
    return TrackCard(
        name=item.get("name") or "Unknown",
        image_url=_first_image(item) or _first_image(item.get("album") or {}),
        external_url=_external_url(item),
        artists=_artist_names(item),
        album=(item.get("album") or {}).get("name") or "Unknown",
        duration=format_duration(item.get("duration_ms")),
        uri=item.get("uri"),
        playable=item.get("is_playable", True) is not False,
    )


def build_artist_card(item: dict[str, Any]) -> ArtistCard:
    genres = item.get("genres") or []
    return ArtistCard(
        name=item.get("name") or "Unknown",
        image_url=_first_image(item),
        external_url=_external_url(item),
        genres=", ".join(genres[:2]) or "No genre info",
        followers=(item.get("followers") or {}).get("total") or 0,
    )


def build_album_card(item: dict[str, Any]) -> AlbumCard:
    return AlbumCard(
        name=item.get("name") or "Unknown",
        image_url=_first_image(item),
        external_url=_external_url(item),
        artists=_artist_names(item),
        release_date=item.get("release_date") or "Unknown",
        total_tracks=item.get("total_tracks"),
    )


_CARD_BUILDERS = {
    "track": build_track_card,
    "artist": build_artist_card,
    "album": build_album_card,
}


def build_result_cards(data: dict[str, Any], search_type: str) -> list[TrackCard | ArtistCard | AlbumCard]:
    """Cards for a search response. Empty list means "no results"."""
    key = _RESULT_KEYS.get(search_type)
    builder = _CARD_BUILDERS.get(search_type)
    if key is None or builder is None:
        return []
    items = (data.get(key) or {}).get("items") or []
    return [builder(item) for item in items if item]


def build_playlist_cards(data: dict[str, Any]) -> list[PlaylistCard]:
    cards = []
    for playlist in data.get("items") or []:
        if not playlist:
            continue
        tracks = (playlist.get("tracks") or {}).get("total") or 0
        cards.append(
            PlaylistCard(
                name=playlist.get("name") or "Untitled",
                image_url=_first_image(playlist),
                external_url=_external_url(playlist),
                owner=(playlist.get("owner") or {}).get("display_name") or "Unknown",
                track_count=tracks,
                track_label=f"{tracks} track{'' if tracks == 1 else 's'}",
            )
        )
    return cards


def build_profile(data: dict[str, Any]) -> ProfileCard:
    return ProfileCard(
        display_name=data.get("display_name") or "Spotify User",
        email=data.get("email") or "-",
        image_url=_first_image(data),
        followers=(data.get("followers") or {}).get("total") or 0,
        plan=data.get("product") or "Free",
    )


def project_player(state: PlaybackState | None) -> PlayerView | None:
    """Player widget data, or None when there is no current track (hide the player)."""
    if state is None or state.track is None:
        return None

    track = state.track
    duration = track.duration_ms
    position = state.position_ms
    progress = (position / duration) * 100 if duration > 0 else 0.0
    artwork = track.album.images[0].url if track.album.images else ""

    return PlayerView(
        track_name=track.name,
        artist_name=", ".join(a.name for a in track.artists),
        artwork_url=artwork,
        play_glyph=PLAY_GLYPH if state.is_paused else PAUSE_GLYPH,
        progress_percent=min(max(progress, 0.0), 100.0),
        elapsed=format_duration(position),
        total=format_duration(duration),
    )
