"""Configuration management for SetlistBot."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ResolutionOptions


class SpotifySettings(BaseSettings):
    """Spotify API configuration."""

    model_config = SettingsConfigDict(env_prefix="SPOTIFY_")

    client_id: str = Field(default="", description="Spotify App Client ID")
    client_secret: str = Field(default="", description="Spotify App Client Secret")
    redirect_uri: str = Field(
        default="http://localhost:8189/callback",
        description="OAuth redirect URI",
    )
    cache_path: str = Field(
        default=".spotify_cache",
        description="Where spotipy stores the OAuth token",
    )


class SetlistFmSettings(BaseSettings):
    """setlist.fm API configuration."""

    model_config = SettingsConfigDict(env_prefix="SETLISTFM_")

    api_key: str = Field(default="", description="setlist.fm API key")
    base_url: str = Field(
        default="https://api.setlist.fm/rest/1.0",
        description="setlist.fm REST base URL",
    )
    timeout_seconds: float = Field(default=15.0, description="HTTP timeout")


class ResolutionSettings(BaseSettings):
    """Track resolution behavior and the default inclusion flags."""

    model_config = SettingsConfigDict(env_prefix="RESOLVE_")

    include_tapes_main: bool = Field(
        default=False,
        description="Include tapes of songs by the setlist's own artist",
    )
    include_tapes_other: bool = Field(
        default=False,
        description="Include tapes of songs by other artists (intros, outros)",
    )
    include_cover_originals: bool = Field(
        default=True,
        description="Fall back to the original recording of unmatched covers",
    )
    include_medley_parts: bool = Field(
        default=True,
        description="Search each part of a medley entry",
    )
    attach_cover_image: bool = Field(
        default=True,
        description="Use the artist's picture as playlist image",
    )
    strict_search_only: bool = Field(
        default=False,
        description="Only issue field-scoped queries",
    )

    # Results requested per catalog query
    search_limit: int = Field(default=20, description="Candidates per query")

    # Below this share of resolved songs the whole request is rejected
    min_resolved_ratio: float = Field(
        default=1 / 3,
        description="Minimum share of songs that must resolve",
    )

    # Unset keeps the approximate title tier out of the ranking
    fuzzy_threshold: Optional[float] = Field(
        default=None,
        description="difflib similarity needed for the fuzzy tie-break tier",
    )

    playlist_public: bool = Field(
        default=True, description="Create playlists as public"
    )

    def default_options(self) -> ResolutionOptions:
        """Build the ResolutionOptions used when a request names none."""
        return ResolutionOptions(
            include_tapes_main=self.include_tapes_main,
            include_tapes_other=self.include_tapes_other,
            include_cover_originals=self.include_cover_originals,
            include_medley_parts=self.include_medley_parts,
            attach_cover_image=self.attach_cover_image,
            strict_search_only=self.strict_search_only,
        )


class HousekeepingSettings(BaseSettings):
    """Housekeeping schedule and playlist quota."""

    model_config = SettingsConfigDict(env_prefix="HOUSEKEEPING_")

    # Spotify stops accepting new playlists at this count (undocumented)
    platform_limit: int = Field(
        default=11000,
        description="Hard playlist limit of a single account",
    )
    quota_margin: int = Field(
        default=1000,
        description="Distance to keep from the hard limit",
    )
    interval_hours: float = Field(
        default=24.0,
        description="Hours between two housekeeping cycles",
    )
    eviction_workers: int = Field(
        default=2,
        description="Concurrent delete calls during eviction",
    )
    run_on_startup: bool = Field(
        default=True,
        description="Run a cycle immediately when the scheduler starts",
    )

    @property
    def target_quota(self) -> int:
        return self.platform_limit - self.quota_margin

    @property
    def interval_seconds(self) -> float:
        return self.interval_hours * 3600


class RetrySettings(BaseSettings):
    """Retry policy for playlist mutation calls."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_attempts: int = Field(default=10, description="Attempts per call")
    delay_seconds: float = Field(
        default=0.5,
        description="Fixed delay between two attempts",
    )


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    setlistfm: SetlistFmSettings = Field(default_factory=SetlistFmSettings)
    resolution: ResolutionSettings = Field(default_factory=ResolutionSettings)
    housekeeping: HousekeepingSettings = Field(default_factory=HousekeepingSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)

    # Debug logging
    debug: bool = Field(default=False, description="Enable debug logging")

    # Created playlists are deleted again and never cached
    debug_mode: bool = Field(
        default=False,
        description="Delete every created playlist right after creation",
    )

    counter_file: str = Field(
        default="counter.txt",
        description="File holding the number of created playlists",
    )


def load_settings() -> AppSettings:
    """Load application settings from environment."""
    return AppSettings()
