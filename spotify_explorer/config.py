from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_SCOPES = [
    "user-read-private",
    "user-read-email",
    "streaming",
    "user-read-playback-state",
    "user-modify-playback-state",
]


class Settings(BaseSettings):
    """Application settings with validation.

    Only the client id is required. Everything else has a default that
    matches a local development setup on 127.0.0.1:5501.
    """

    # Server
    api_host: str = Field(default="127.0.0.1", min_length=1, description="Bind address")
    api_port: int = Field(default=5501, ge=1, le=65535, description="Bind port")
    cors_origins: str = Field(
        default="http://127.0.0.1:5501,http://localhost:5501",
        description="Comma-separated list of allowed CORS origins",
    )
    log_level: str = Field(default="INFO", description="Root log level")
    log_dir: Path = Field(default=BASE_DIR / "logs", description="Directory for the JSON log file")

    # OAuth / Web API
    spotify_client_id: str = Field(min_length=1, description="Spotify OAuth client ID")
    spotify_client_secret: str = Field(
        default="",
        description="Only set when running as a confidential backend; PKCE alone is used otherwise",
    )
    spotify_redirect_uri: str = Field(
        default="http://127.0.0.1:5501/auth/callback",
        description="OAuth redirect URI registered with Spotify",
    )
    spotify_scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))
    spotify_auth_url: str = "https://accounts.spotify.com/authorize"
    spotify_token_url: str = "https://accounts.spotify.com/api/token"
    spotify_api_base_url: str = "https://api.spotify.com/v1"
    default_token_ttl_seconds: int = Field(default=3600, gt=0)
    search_limit: int = Field(default=20, ge=1, le=50)
    playlist_limit: int = Field(default=50, ge=1, le=50)

    # Persistence (local-storage analogue)
    storage_backend: Literal["file", "memory"] = "file"
    storage_path: Path = Field(default=Path.home() / ".spotify_explorer_session.json")

    # Playback component
    player_backend: Literal["connect", "none"] = "connect"
    player_name: str = Field(default="Spotify API Explorer", min_length=1)
    player_volume: float = Field(default=0.5, ge=0.0, le=1.0)

    # Device discovery timers (seconds)
    device_state_probe_delay: float = Field(default=0.5, ge=0)
    device_fallback_delay: float = Field(default=2.0, ge=0)
    sdk_poll_interval: float = Field(default=0.5, gt=0)
    sdk_poll_max_attempts: int = Field(default=120, ge=1)

    model_config = SettingsConfigDict(
        env_file=Path(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    @field_validator("spotify_client_id", mode="after")
    @classmethod
    def validate_client_id(cls, v: str) -> str:
        """Ensure the client id is not just whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("spotify_client_id cannot be empty")
        return v

    @field_validator("spotify_redirect_uri", mode="after")
    @classmethod
    def validate_spotify_redirect_uri(cls, v: str) -> str:
        """Ensure redirect URI is an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("spotify_redirect_uri must be a valid http:// or https:// URL")
        return v

    @field_validator("spotify_api_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def uses_client_secret(self) -> bool:
        """Whether the token exchange authenticates with client credentials."""
        return bool(self.spotify_client_secret)


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get singleton Settings instance for dependency injection.

    Example:
        @router.get("/")
        async def route(settings: Settings = Depends(get_settings)):
            return {"redirect_uri": settings.spotify_redirect_uri}
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
