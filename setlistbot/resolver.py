"""Track resolution: from setlist songs to catalog tracks.

Songs are resolved one after another, in setlist order.
"""

import logging
import threading
from typing import Callable, Optional

from .base_client import MusicCatalog
from .errors import CatalogError, InsufficientMatches, ResolutionCancelled, SourceNotFound
from .models import CandidateTrack, MatchOutcome, ResolutionOptions, Setlist, Song
from .query_builder import build_queries, title_variants
from .ranker import CandidateRanker

logger = logging.getLogger(__name__)

DEFAULT_MIN_RESOLVED_RATIO = 1 / 3


def should_skip(song: Song, options: ResolutionOptions) -> bool:
    """Decide, before any search, whether a song is left out.

    A song is kept if it is a standalone live performance, a tape whose
    inclusion flag is enabled (main artist or other artist, by its cover
    flag), or a medley part while medley parts are enabled.
    """
    standalone = not song.tape and not song.medley_part
    if standalone:
        return False
    if song.tape:
        include_tape = options.include_tapes_other if song.cover else options.include_tapes_main
        if include_tape:
            return False
    if song.medley_part and options.include_medley_parts:
        return False
    return True


class TrackResolver:
    """Resolves every song of a setlist to at most one catalog track.

    Holds no per-request state, so one instance can serve concurrent
    requests.
    """

    def __init__(
        self,
        catalog: MusicCatalog,
        ranker: Optional[CandidateRanker] = None,
        search_limit: int = 20,
        min_resolved_ratio: float = DEFAULT_MIN_RESOLVED_RATIO,
    ):
        """Initialize the resolver.

        Args:
            catalog: Catalog used for track searches.
            ranker: Candidate ranker; a default one is created if omitted.
            search_limit: Candidates requested per query.
            min_resolved_ratio: Share of songs that must resolve.
        """
        self.catalog = catalog
        self.ranker = ranker or CandidateRanker()
        self.search_limit = search_limit
        self.min_resolved_ratio = min_resolved_ratio

    def resolve(
        self,
        setlist: Setlist,
        options: ResolutionOptions,
        cancel_event: Optional[threading.Event] = None,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> list[MatchOutcome]:
        """Resolve a setlist.

        Args:
            setlist: The setlist to resolve.
            options: Inclusion policy.
            cancel_event: When set, no further song is started.
            on_progress: Called with (position, total) before each song.

        Returns:
            One outcome per song, in setlist order.

        Raises:
            SourceNotFound: If the setlist has no songs.
            InsufficientMatches: If too few songs resolved.
            ResolutionCancelled: If cancel_event was set mid-way.
        """
        songs = setlist.songs
        if not songs:
            raise SourceNotFound(f"Setlist of {setlist.artist_name} has no songs")

        logger.info(f"Resolving {len(songs)} songs of {setlist.artist_name}")
        outcomes: list[MatchOutcome] = []
        for position, song in enumerate(songs, start=1):
            if cancel_event is not None and cancel_event.is_set():
                raise ResolutionCancelled(outcomes)
            if on_progress:
                on_progress(position, len(songs))
            outcomes.append(self.resolve_song(song, options))

        resolved = sum(1 for outcome in outcomes if outcome.has_result)
        logger.info(f"Resolved {resolved} of {len(songs)} songs")
        if resolved < len(songs) * self.min_resolved_ratio:
            raise InsufficientMatches(resolved, len(songs))
        return outcomes

    def resolve_song(self, song: Song, options: ResolutionOptions) -> MatchOutcome:
        """Resolve a single song, honoring the skip policy."""
        if should_skip(song, options):
            logger.debug(f"  #{song.index} '{song.name}' → skipped")
            return MatchOutcome.skipped(song)

        # Tapes are recordings by the original artist, not the performer
        query_artist = song.original_artist_name if song.tape else song.artist_name
        outcome = self._resolve_for_artist(song, query_artist, options)

        if (
            not outcome.has_result
            and song.cover
            and options.include_cover_originals
            and song.original_artist_name
            and song.original_artist_name != query_artist
        ):
            logger.debug(
                f"  #{song.index} '{song.name}' → trying original by {song.original_artist_name}"
            )
            fallback = self._resolve_for_artist(song, song.original_artist_name, options)
            if fallback.has_result:
                outcome = MatchOutcome.cover_original(song, fallback.track)

        logger.debug(f"  #{song.index} '{song.name}' → {outcome.kind.value}")
        return outcome

    def _resolve_for_artist(
        self, song: Song, artist_name: str, options: ResolutionOptions
    ) -> MatchOutcome:
        outcome = MatchOutcome.not_found(song)
        for song_name in title_variants(song.name):
            candidates = self._search_candidates(song_name, artist_name, options)
            if not candidates:
                continue
            outcome = self.ranker.rank(
                song,
                candidates,
                artist_name,
                song_name=song_name,
                allow_substring=not options.strict_search_only,
            )
            if outcome.has_result:
                break
        return outcome

    def _search_candidates(
        self, song_name: str, artist_name: str, options: ResolutionOptions
    ) -> list[CandidateTrack]:
        """Run every query for a song and merge the results by track id."""
        merged: dict[str, CandidateTrack] = {}
        for query in build_queries(song_name, artist_name, options.strict_search_only):
            try:
                results = self.catalog.search(query, limit=self.search_limit)
            except CatalogError as e:
                logger.warning(f"Search failed for {query!r}: {e}")
                continue
            for track in results:
                merged.setdefault(track.id, track)
        return list(merged.values())
