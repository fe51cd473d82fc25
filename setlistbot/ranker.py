"""Candidate ranking for setlist songs.

A ranking pass narrows the catalog candidates down to the right artist and
title, orders them oldest release first, and then asks a list of tie-break
rules, in priority order, which candidate to take. The first rule that
accepts a candidate decides the match kind.

Rules are small objects so the priority order can be inspected and extended.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from .models import CandidateTrack, MatchOutcome, ResultKind, Song
from .normalizer import (
    contains_normalized,
    equals_ignore_case,
    is_alternate_version_marker,
    similarity,
    starts_contained_normalized,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankingTarget:
    """What a ranking pass is looking for."""

    song_name: str
    query_artist: str
    # Plain substring title matches are disabled in strict-only mode
    allow_substring: bool = True


def _album_artist_name(track: CandidateTrack) -> str:
    return track.album.first_artist_name or track.first_artist_name


def _release_sort_key(track: CandidateTrack) -> tuple[int, str]:
    # Undated releases sort after every dated one
    release_date = track.album.release_date or ""
    return (0 if release_date else 1, release_date)


class TieBreakRule(ABC):
    """Base class for tie-break rules."""

    #: Whether the rule only sees candidates that passed the title filter
    title_filtered: bool = True

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this rule."""
        pass

    @property
    @abstractmethod
    def kind(self) -> ResultKind:
        """Match kind produced when this rule accepts a candidate."""
        pass

    @abstractmethod
    def applies(self, track: CandidateTrack, target: RankingTarget) -> bool:
        """Check whether the rule accepts the candidate."""
        pass


class AlbumExactMatchRule(TieBreakRule):
    """Full-length album by exactly the query artist, with exactly the title."""

    name = "AlbumExactMatch"
    kind = ResultKind.EXACT_MATCH

    def applies(self, track: CandidateTrack, target: RankingTarget) -> bool:
        return (
            track.album.is_full_length
            and equals_ignore_case(target.query_artist, _album_artist_name(track))
            and equals_ignore_case(track.name, target.song_name)
        )


class ExactTitleRule(TieBreakRule):
    """Exactly the title, on any kind of release."""

    name = "ExactTitle"
    kind = ResultKind.EXACT_MATCH

    def applies(self, track: CandidateTrack, target: RankingTarget) -> bool:
        return equals_ignore_case(track.name, target.song_name)


class AlbumCloseMatchRule(TieBreakRule):
    """Full-length album where artist and title start-contain the target."""

    name = "AlbumCloseMatch"
    kind = ResultKind.CLOSE_MATCH

    def applies(self, track: CandidateTrack, target: RankingTarget) -> bool:
        return (
            track.album.is_full_length
            and starts_contained_normalized(target.query_artist, _album_artist_name(track))
            and starts_contained_normalized(track.name, target.song_name)
        )


class StartContainedTitleRule(TieBreakRule):
    name = "StartContainedTitle"
    kind = ResultKind.CLOSE_MATCH

    def applies(self, track: CandidateTrack, target: RankingTarget) -> bool:
        return starts_contained_normalized(track.name, target.song_name)


class ContainedTitleRule(TieBreakRule):
    name = "ContainedTitle"
    kind = ResultKind.CLOSE_MATCH

    def applies(self, track: CandidateTrack, target: RankingTarget) -> bool:
        return target.allow_substring and contains_normalized(track.name, target.song_name)


class FuzzyTitleRule(TieBreakRule):
    """Approximate title match, for typos in user-maintained setlists.

    Sees every candidate of the right artist, not only the title-filtered
    ones, since those would already have been accepted by an earlier rule.
    """

    title_filtered = False
    kind = ResultKind.CLOSE_MATCH

    def __init__(self, threshold: float):
        self.threshold = threshold

    @property
    def name(self) -> str:
        return f"FuzzyTitle(>={self.threshold:.2f})"

    def applies(self, track: CandidateTrack, target: RankingTarget) -> bool:
        return similarity(track.name, target.song_name) >= self.threshold


def default_rules() -> list[TieBreakRule]:
    """Tie-break rules in priority order."""
    return [
        AlbumExactMatchRule(),
        ExactTitleRule(),
        AlbumCloseMatchRule(),
        StartContainedTitleRule(),
        ContainedTitleRule(),
    ]


class CandidateRanker:
    """Picks the best catalog candidate for a setlist song."""

    def __init__(
        self,
        rules: Optional[list[TieBreakRule]] = None,
        fuzzy_threshold: Optional[float] = None,
    ):
        """Initialize the ranker.

        Args:
            rules: Tie-break rules in priority order; defaults to default_rules().
            fuzzy_threshold: Enables the approximate title tier when set.
        """
        self._rules: list[TieBreakRule] = list(rules) if rules is not None else default_rules()
        if fuzzy_threshold is not None:
            self.add_rule(FuzzyTitleRule(fuzzy_threshold))

    def add_rule(self, rule: TieBreakRule) -> None:
        """Append a rule with the lowest priority."""
        self._rules.append(rule)
        logger.debug(f"Added tie-break rule: {rule.name}")

    def list_rules(self) -> list[str]:
        return [rule.name for rule in self._rules]

    def rank(
        self,
        song: Song,
        candidates: Sequence[CandidateTrack],
        query_artist: str,
        song_name: Optional[str] = None,
        allow_substring: bool = True,
    ) -> MatchOutcome:
        """Rank the candidates for a song.

        Args:
            song: The setlist song being resolved.
            candidates: Catalog results, in catalog order.
            query_artist: Artist the candidates must belong to.
            song_name: Title to match, if it differs from song.name.
            allow_substring: Whether plain substring title matches count.

        Returns:
            An EXACT_MATCH, CLOSE_MATCH or NOT_FOUND outcome.
        """
        target = RankingTarget(
            song_name=song_name or song.name,
            query_artist=query_artist,
            allow_substring=allow_substring,
        )
        artist_pool = [
            track
            for track in candidates
            if starts_contained_normalized(query_artist, track.first_artist_name)
        ]

        # A live or alternate recording is better than nothing
        for allow_alternate_versions in (False, True):
            hit = self._rank_pass(artist_pool, target, allow_alternate_versions)
            if hit is not None:
                kind, track = hit
                return MatchOutcome(song, kind, track)

        return MatchOutcome.not_found(song)

    def _rank_pass(
        self,
        artist_pool: list[CandidateTrack],
        target: RankingTarget,
        allow_alternate_versions: bool,
    ) -> Optional[tuple[ResultKind, CandidateTrack]]:
        pool = [
            track
            for track in artist_pool
            if allow_alternate_versions
            or not is_alternate_version_marker(track.name, target.song_name)
        ]
        # Oldest first favors original albums over re-issues and compilations
        pool.sort(key=_release_sort_key)
        title_pool = [
            track for track in pool if contains_normalized(track.name, target.song_name)
        ]

        for rule in self._rules:
            for track in title_pool if rule.title_filtered else pool:
                if rule.applies(track, target):
                    logger.debug(
                        f"  Rule '{rule.name}' picked '{track.name}' "
                        f"by {track.first_artist_name} ({track.album.release_date})"
                    )
                    return rule.kind, track
        return None
