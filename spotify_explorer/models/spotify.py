"""Pydantic models for sessions, playback state and view projections."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SearchType = Literal["track", "artist", "album"]


# Session / authorization


class Session(BaseModel):
    """The single authenticated session.

    ``authenticated`` is true iff ``access_token`` is set and the expiry lies
    strictly in the future at the time the session was checked.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str | None = None
    expires_at_epoch_ms: int = 0
    authenticated: bool = False

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()

    @classmethod
    def from_token(cls, access_token: str | None, expires_at_epoch_ms: int, now_ms: int) -> "Session":
        fresh = bool(access_token) and now_ms < expires_at_epoch_ms
        if not fresh:
            return cls.anonymous()
        return cls(access_token=access_token, expires_at_epoch_ms=expires_at_epoch_ms, authenticated=True)

    def is_fresh(self, now_ms: int) -> bool:
        return self.authenticated and bool(self.access_token) and now_ms < self.expires_at_epoch_ms


class PkceMaterial(BaseModel):
    """Verifier/challenge/state for one authorization attempt."""

    model_config = ConfigDict(frozen=True)

    verifier: str
    challenge: str
    state: str


class TokenGrant(BaseModel):
    """Successful token exchange result."""

    access_token: str
    expires_in_seconds: int | None = None


class AuthStatus(BaseModel):
    authenticated: bool
    expires_at_epoch_ms: int | None = None
    message: str | None = None


# Devices and playback state


class Device(BaseModel):
    id: str
    name: str = "Unknown device"
    is_active: bool = False
    type: str | None = None
    volume_percent: int | None = None


class Image(BaseModel):
    url: str
    width: int | None = None
    height: int | None = None


class PlaybackAlbum(BaseModel):
    name: str = ""
    images: list[Image] = Field(default_factory=list)


class PlaybackArtist(BaseModel):
    name: str


class PlaybackTrack(BaseModel):
    name: str
    uri: str | None = None
    artists: list[PlaybackArtist] = Field(default_factory=list)
    album: PlaybackAlbum = Field(default_factory=PlaybackAlbum)
    duration_ms: int = 0


class PlaybackState(BaseModel):
    """Playback state as reported by the external playback component."""

    is_paused: bool = True
    position_ms: int = 0
    device_id: str | None = None
    track: PlaybackTrack | None = None


class ControllerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    READY = "ready"
    ACTIVE = "active"
    FAILED = "failed"


# View projections


class PlayerView(BaseModel):
    """What the player widget shows."""

    track_name: str
    artist_name: str
    artwork_url: str
    play_glyph: str
    progress_percent: float
    elapsed: str
    total: str


class ControllerStatus(BaseModel):
    state: ControllerState
    device_id: str | None = None
    device_source: str | None = None
    failure_reason: str | None = None
    has_player: bool = False
    player: PlayerView | None = None
    message: str | None = None


class TrackCard(BaseModel):
    kind: Literal["track"] = "track"
    name: str
    image_url: str | None = None
    external_url: str = "#"
    artists: str = "Unknown"
    album: str = "Unknown"
    duration: str = "0:00"
    uri: str | None = None
    playable: bool = True


class ArtistCard(BaseModel):
    kind: Literal["artist"] = "artist"
    name: str
    image_url: str | None = None
    external_url: str = "#"
    genres: str = "No genre info"
    followers: int = 0


class AlbumCard(BaseModel):
    kind: Literal["album"] = "album"
    name: str
    image_url: str | None = None
    external_url: str = "#"
    artists: str = "Unknown"
    release_date: str = "Unknown"
    total_tracks: int | None = None


class PlaylistCard(BaseModel):
    name: str
    image_url: str | None = None
    external_url: str = "#"
    owner: str = "Unknown"
    track_count: int = 0
    track_label: str = "0 tracks"


class ProfileCard(BaseModel):
    display_name: str = "Spotify User"
    email: str = "-"
    image_url: str | None = None
    followers: int = 0
    plan: str = "Free"


class SearchResponse(BaseModel):
    query: str
    type: SearchType
    items: list[TrackCard | ArtistCard | AlbumCard] = Field(default_factory=list)


class ProfileResponse(BaseModel):
    profile: ProfileCard | None = None
    playlists: list[PlaylistCard] = Field(default_factory=list)


class PageState(BaseModel):
    authenticated: bool
    controller: ControllerStatus
    login_url: str = "/auth/login"


class PlayRequest(BaseModel):
    track_uri: str = Field(min_length=1, pattern=r"^spotify:track:")


class CommandResult(BaseModel):
    status: str
    sent: bool
