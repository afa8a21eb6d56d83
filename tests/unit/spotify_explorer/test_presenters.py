"""Unit tests for view projections."""

import pytest

from spotify_explorer.models import PlaybackState, PlaybackTrack
from spotify_explorer.views.presenters import (
    build_album_card,
    build_artist_card,
    build_playlist_cards,
    build_profile,
    build_result_cards,
    build_track_card,
    format_duration,
    project_player,
)


@pytest.mark.parametrize(
    "ms,expected",
    [(0, "0:00"), (None, "0:00"), (999, "0:00"), (61_000, "1:01"), (240_000, "4:00"), (3_725_000, "62:05")],
)
def test_format_duration(ms, expected):
    assert format_duration(ms) == expected


def test_track_card():
    card = build_track_card(
        {
            "name": "One More Time",
            "uri": "spotify:track:0DiWol3AO6WpXZgp0goxAV",
            "duration_ms": 320_357,
            "artists": [{"name": "Daft Punk"}],
            "album": {"name": "Discovery", "images": [{"url": "https://i.scdn.co/cover.jpg"}]},
            "external_urls": {"spotify": "https://open.spotify.com/track/0DiWol3AO6WpXZgp0goxAV"},
        }
    )

    assert card.name == "One More Time"
    assert card.artists == "Daft Punk"
    assert card.album == "Discovery"
    assert card.duration == "5:20"
    assert card.image_url == "https://i.scdn.co/cover.jpg"
    assert card.playable is True


def test_track_card_defaults_for_sparse_payload():
    card = build_track_card({"name": "Untitled", "is_playable": False})

    assert card.artists == "Unknown"
    assert card.album == "Unknown"
    assert card.external_url == "#"
    assert card.image_url is None
    assert card.playable is False


def test_artist_card_keeps_two_genres():
    card = build_artist_card(
        {"name": "Daft Punk", "genres": ["filter house", "french house", "electro"], "followers": {"total": 9_000_000}}
    )

    assert card.genres == "filter house, french house"
    assert card.followers == 9_000_000


def test_artist_card_without_genres():
    assert build_artist_card({"name": "New Artist"}).genres == "No genre info"


def test_album_card():
    card = build_album_card(
        {"name": "Discovery", "artists": [{"name": "Daft Punk"}], "release_date": "2001-03-12", "total_tracks": 14}
    )

    assert card.artists == "Daft Punk"
    assert card.release_date == "2001-03-12"
    assert card.total_tracks == 14


@pytest.mark.parametrize("search_type,key", [("track", "tracks"), ("artist", "artists"), ("album", "albums")])
def test_result_cards_pick_matching_section(search_type, key):
    cards = build_result_cards({key: {"items": [{"name": "A"}, None, {"name": "B"}]}}, search_type)

    assert [c.name for c in cards] == ["A", "B"]
    assert all(c.kind == search_type for c in cards)


def test_result_cards_empty_means_no_results():
    assert build_result_cards({"tracks": {"items": []}}, "track") == []
    assert build_result_cards({}, "artist") == []


def test_playlist_cards_pluralize_track_count():
    cards = build_playlist_cards(
        {
            "items": [
                {"name": "One", "tracks": {"total": 1}, "owner": {"display_name": "Ada"}},
                {"name": "Many", "tracks": {"total": 12}},
            ]
        }
    )

    assert cards[0].track_label == "1 track"
    assert cards[0].owner == "Ada"
    assert cards[1].track_label == "12 tracks"
    assert cards[1].owner == "Unknown"


def test_profile_defaults():
    profile = build_profile({})

    assert profile.display_name == "Spotify User"
    assert profile.email == "-"
    assert profile.plan == "Free"


def make_state(position_ms=60_000, duration_ms=240_000, is_paused=False):
    return PlaybackState(
        is_paused=is_paused,
        position_ms=position_ms,
        device_id="d",
        track=PlaybackTrack(
            name="Test Song",
            duration_ms=duration_ms,
            artists=[{"name": "A"}, {"name": "B"}],
            album={"name": "Test Album", "images": [{"url": "https://example.com/image.jpg"}]},
        ),
    )


def test_project_player():
    view = project_player(make_state())

    assert view.track_name == "Test Song"
    assert view.artist_name == "A, B"
    assert view.artwork_url == "https://example.com/image.jpg"
    assert view.play_glyph == "⏸"
    assert view.progress_percent == 25.0
    assert view.elapsed == "1:00"
    assert view.total == "4:00"


def test_project_player_paused_shows_play_glyph():
    assert project_player(make_state(is_paused=True)).play_glyph == "▶"


def test_project_player_zero_duration():
    assert project_player(make_state(position_ms=5_000, duration_ms=0)).progress_percent == 0.0


def test_project_player_clamps_progress():
    assert project_player(make_state(position_ms=300_000, duration_ms=240_000)).progress_percent == 100.0


def test_project_player_hides_without_track():
    assert project_player(None) is None
    assert project_player(PlaybackState(device_id="d")) is None
