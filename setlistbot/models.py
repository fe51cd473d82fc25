"""Data models for SetlistBot."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from . import naming


@dataclass
class Artist:
    """Represents a catalog artist as attached to a track or album."""

    id: str
    name: str
    uri: str = ""


@dataclass
class Album:
    """Album a candidate track was released on."""

    id: str
    name: str
    album_type: str
    release_date: str
    artists: list[Artist] = field(default_factory=list)

    @property
    def is_full_length(self) -> bool:
        """Singles and compilations are not full-length albums."""
        return self.album_type == "album"

    @property
    def first_artist_name(self) -> str:
        return self.artists[0].name if self.artists else ""


@dataclass
class CandidateTrack:
    """A track returned by a catalog search."""

    id: str
    name: str
    uri: str
    artists: list[Artist]
    album: Album

    @property
    def first_artist_name(self) -> str:
        return self.artists[0].name if self.artists else ""

    @property
    def artist_names(self) -> list[str]:
        return [artist.name for artist in self.artists]


@dataclass
class Image:
    url: str
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass
class CandidateArtist:
    """An artist returned by a catalog artist search (used for artwork)."""

    id: str
    name: str
    images: list[Image] = field(default_factory=list)


@dataclass(frozen=True)
class Song:
    """One entry of a setlist.

    The three flags are independent: a song may be a tape, a cover and a
    medley part at the same time.
    """

    index: int
    name: str
    artist_name: str
    original_artist_name: str
    tape: bool = False
    cover: bool = False
    medley_part: bool = False


@dataclass(frozen=True)
class Setlist:
    """A parsed concert setlist."""

    artist_name: str
    event_date: date
    venue: str
    city: str
    tour_name: Optional[str] = None
    songs: tuple[Song, ...] = ()

    @property
    def has_tour(self) -> bool:
        return bool(self.tour_name and self.tour_name.strip())

    @property
    def venue_and_city(self) -> str:
        return f"{self.venue}, {self.city}"

    @property
    def playlist_name(self) -> str:
        """Name of the playlist generated for this setlist."""
        return naming.assemble_playlist_name(self)


@dataclass(frozen=True)
class ResolutionOptions:
    """Policy flags controlling which songs get resolved."""

    include_tapes_main: bool = False
    include_tapes_other: bool = False
    include_cover_originals: bool = True
    include_medley_parts: bool = True
    attach_cover_image: bool = True
    strict_search_only: bool = False


class ResultKind(str, Enum):
    """How a setlist song was (or was not) matched."""

    EXACT_MATCH = "exact_match"
    CLOSE_MATCH = "close_match"
    COVER_ORIGINAL = "cover_original"
    SKIPPED = "skipped"
    NOT_FOUND = "not_found"


@dataclass
class MatchOutcome:
    """Resolution result of exactly one setlist song."""

    song: Song
    kind: ResultKind
    track: Optional[CandidateTrack] = None

    @property
    def has_result(self) -> bool:
        return self.kind not in (ResultKind.SKIPPED, ResultKind.NOT_FOUND)

    @classmethod
    def cover_original(cls, song: Song, track: CandidateTrack) -> "MatchOutcome":
        return cls(song, ResultKind.COVER_ORIGINAL, track)

    @classmethod
    def skipped(cls, song: Song) -> "MatchOutcome":
        return cls(song, ResultKind.SKIPPED)

    @classmethod
    def not_found(cls, song: Song) -> "MatchOutcome":
        return cls(song, ResultKind.NOT_FOUND)


@dataclass
class OwnedCollection:
    """A playlist owned by the bot account.

    follower_count is None when the listing endpoint did not provide it.
    """

    id: str
    name: str
    track_count: int
    follower_count: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.track_count == 0


@dataclass
class CreationResult:
    """Result of converting one setlist into a playlist."""

    setlist: Setlist
    options: ResolutionOptions
    collection_id: str
    outcomes: list[MatchOutcome]
    elapsed_seconds: float
    reused: bool

    @property
    def collection_url(self) -> str:
        return f"https://open.spotify.com/playlist/{self.collection_id}"

    @property
    def resolved_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.has_result)
