"""Catalog search query construction."""

from .normalizer import purify

LEADING_ARTICLE = "the "


def build_query(song_name: str, artist_name: str, strict: bool) -> str:
    """Build a single catalog query.

    Strict queries purify both names (the catalog struggles with apostrophes
    and quotes inside field filters) and scope them to the artist and track
    fields. Loose queries are plain free text.

    Args:
        song_name: Title as written in the setlist.
        artist_name: Artist expected to have recorded the song.
        strict: Whether to build a field-scoped query.

    Returns:
        The query string.
    """
    if strict:
        return f'artist:"{purify(artist_name)}" track:"{purify(song_name)}"'
    return f"{artist_name} {song_name}"


def build_queries(song_name: str, artist_name: str, strict_only: bool = False) -> list[str]:
    """Build every query issued for one song, strict first.

    Both recall modes feed the same ranking pass; they are not a fallback
    chain.
    """
    queries = [build_query(song_name, artist_name, strict=True)]
    if not strict_only:
        loose = build_query(song_name, artist_name, strict=False)
        if loose not in queries:
            queries.append(loose)
    return queries


def title_variants(song_name: str) -> list[str]:
    """Titles worth searching for, in order.

    The catalog sometimes lists songs without their leading "The".
    """
    variants = [song_name]
    stripped = song_name.strip()
    if stripped.lower().startswith(LEADING_ARTICLE):
        remainder = stripped[len(LEADING_ARTICLE):].strip()
        if remainder:
            variants.append(remainder)
    return variants
