import pytest

from setlistbot.models import ResultKind
from setlistbot.ranker import CandidateRanker, RankingTarget, TieBreakRule

from .fakes import make_song, make_track

ARTIST = "Metallica"


@pytest.fixture
def ranker() -> CandidateRanker:
    return CandidateRanker()


@pytest.fixture
def song():
    return make_song(1, "One", artist=ARTIST)


def test_album_exact_match_beats_older_compilation(ranker, song):
    compilation = make_track("c1", "One", ARTIST, album_type="compilation", release_date="1985-01-01")
    album = make_track("a1", "One", ARTIST, release_date="1988-09-07")

    outcome = ranker.rank(song, [compilation, album], ARTIST)

    assert outcome.kind == ResultKind.EXACT_MATCH
    assert outcome.track.id == "a1"


def test_exact_title_on_compilation_beats_close_title_on_album(ranker, song):
    studio = make_track("a1", "One (Remastered)", ARTIST, release_date="1988-09-07")
    compilation = make_track("c1", "One", ARTIST, album_type="compilation", release_date="1998-01-01")

    outcome = ranker.rank(song, [studio, compilation], ARTIST)

    assert outcome.kind == ResultKind.EXACT_MATCH
    assert outcome.track.id == "c1"


def test_album_exact_needs_album_by_query_artist(ranker, song):
    sampler = make_track("s1", "One", ARTIST, album_artist="Various Artists", release_date="1990-01-01")
    own = make_track("a1", "One", ARTIST, release_date="2000-01-01")

    outcome = ranker.rank(song, [sampler, own], ARTIST)

    assert outcome.track.id == "a1"


def test_close_match_on_album(ranker, song):
    remaster = make_track("a1", "One - 2017 Remaster", ARTIST)

    outcome = ranker.rank(song, [remaster], ARTIST)

    assert outcome.kind == ResultKind.CLOSE_MATCH
    assert outcome.track.id == "a1"


def test_oldest_release_wins(ranker, song):
    reissue = make_track("new", "One", ARTIST, release_date="2008-01-01")
    original = make_track("old", "One", ARTIST, release_date="1988-09-07")

    assert ranker.rank(song, [reissue, original], ARTIST).track.id == "old"


def test_undated_release_sorts_last(ranker, song):
    undated = make_track("undated", "One", ARTIST, release_date="")
    dated = make_track("dated", "One", ARTIST, release_date="2008-01-01")

    assert ranker.rank(song, [undated, dated], ARTIST).track.id == "dated"


def test_studio_recording_preferred_over_live(ranker, song):
    live = make_track("live", "One - Live", ARTIST, release_date="1980-01-01")
    studio = make_track("studio", "One", ARTIST, release_date="2008-01-01")

    assert ranker.rank(song, [live, studio], ARTIST).track.id == "studio"


def test_live_recording_used_when_nothing_else(ranker, song):
    live = make_track("live", "One (Live at Wembley)", ARTIST)

    outcome = ranker.rank(song, [live], ARTIST)

    assert outcome.kind == ResultKind.CLOSE_MATCH
    assert outcome.track.id == "live"


def test_other_artists_are_filtered_out(ranker, song):
    cover = make_track("x1", "One", "Apocalyptica")

    outcome = ranker.rank(song, [cover], ARTIST)

    assert outcome.kind == ResultKind.NOT_FOUND
    assert outcome.track is None


def test_unrelated_titles_are_not_found(ranker, song):
    assert ranker.rank(song, [make_track("b1", "Battery", ARTIST)], ARTIST).kind == ResultKind.NOT_FOUND


def test_substring_title_match(ranker, song):
    track = make_track("t1", "The One", ARTIST)

    assert ranker.rank(song, [track], ARTIST).kind == ResultKind.CLOSE_MATCH
    assert ranker.rank(song, [track], ARTIST, allow_substring=False).kind == ResultKind.NOT_FOUND


def test_song_name_overrides_title(ranker):
    song = make_song(1, "The Unforgiven", artist=ARTIST)
    track = make_track("u1", "Unforgiven", ARTIST)

    outcome = ranker.rank(song, [track], ARTIST, song_name="Unforgiven")

    assert outcome.kind == ResultKind.EXACT_MATCH
    assert outcome.song is song


def test_fuzzy_tier_is_off_by_default(ranker):
    song = make_song(1, "Nothing Else Maters", artist=ARTIST)
    track = make_track("n1", "Nothing Else Matters", ARTIST)

    assert ranker.rank(song, [track], ARTIST).kind == ResultKind.NOT_FOUND


def test_fuzzy_tier_matches_typos():
    ranker = CandidateRanker(fuzzy_threshold=0.85)
    song = make_song(1, "Nothing Else Maters", artist=ARTIST)
    track = make_track("n1", "Nothing Else Matters", ARTIST)

    outcome = ranker.rank(song, [track], ARTIST)

    assert outcome.kind == ResultKind.CLOSE_MATCH
    assert outcome.track.id == "n1"


def test_ranking_is_deterministic(ranker, song):
    candidates = [
        make_track("a", "One - Live", ARTIST, release_date="1990-01-01"),
        make_track("b", "One (Remastered)", ARTIST, release_date="1989-01-01"),
        make_track("c", "One", ARTIST, album_type="single", release_date="1988-01-01"),
        make_track("d", "One", ARTIST, release_date="1988-09-07"),
    ]

    first = ranker.rank(song, candidates, ARTIST)
    second = ranker.rank(song, list(reversed(candidates)), ARTIST)

    assert first.track.id == second.track.id == "d"
    assert first.kind == second.kind == ResultKind.EXACT_MATCH


def test_rule_order():
    assert CandidateRanker().list_rules() == [
        "AlbumExactMatch",
        "ExactTitle",
        "AlbumCloseMatch",
        "StartContainedTitle",
        "ContainedTitle",
    ]
    assert CandidateRanker(fuzzy_threshold=0.8).list_rules()[-1] == "FuzzyTitle(>=0.80)"


def test_custom_rule(song):
    class SingleRule(TieBreakRule):
        name = "Single"
        kind = ResultKind.CLOSE_MATCH

        def applies(self, track, target: RankingTarget) -> bool:
            return track.album.album_type == "single"

    ranker = CandidateRanker(rules=[SingleRule()])
    single = make_track("s1", "One", ARTIST, album_type="single", release_date="2010-01-01")
    album = make_track("a1", "One", ARTIST, release_date="1988-01-01")

    outcome = ranker.rank(song, [album, single], ARTIST)

    assert outcome.track.id == "s1"
    assert ranker.list_rules() == ["Single"]


def test_styled_catalog_title_is_matched(ranker):
    song = make_song(1, "Love Hurts", artist="Nazareth")
    styled = make_track("lh", "𝐋𝐨𝐯𝐞 ℍurts", "Nazareth")

    outcome = ranker.rank(song, [styled], "Nazareth")

    assert outcome.kind == ResultKind.CLOSE_MATCH
    assert outcome.track.id == "lh"
