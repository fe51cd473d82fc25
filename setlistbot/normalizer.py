"""String purification and equivalence checks for song and artist names.

All comparisons try a plain case-insensitive check first and only fall back
to the purified forms when that fails, so that well-formed names are never
compared in their lossy representation.
"""

import re
import unicodedata
from difflib import SequenceMatcher

# Letters whose ASCII approximation is not what stripping the accent gives
LETTER_REPLACEMENTS = {
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "ß": "ss",
    "æ": "ae",
    "œ": "oe",
    "ø": "o",
    "ł": "l",
    "đ": "d",
    "ð": "d",
    "þ": "th",
    "ı": "i",
    "ĳ": "ij",
}

# Words that mark a non-studio rendition of a song
ALTERNATE_VERSION_MARKERS = frozenset(
    {
        "live",
        "instrumental",
        "demo",
        "acoustic",
        "orchestral",
        "session",
        "sessions",
        "unplugged",
        "rehearsal",
        "karaoke",
        "remix",
        "remixed",
        "cappella",
    }
)

_NON_WORD = re.compile(r"[\W_]+")
_VARIANT_SECTION = re.compile(r"\s[-–—]\s|[(\[]")


def purify(text: str) -> str:
    """Reduce a name to lower-case ASCII-ish words separated by single spaces.

    Examples:
        >>> purify("Über sieben Brücken musst du gehn'")
        'ueber sieben bruecken musst du gehn'
        >>> purify("Déjà vu – strasse")
        'deja vu strasse'
    """
    s = unicodedata.normalize("NFC", text or "").lower()
    for letter, replacement in LETTER_REPLACEMENTS.items():
        s = s.replace(letter, replacement)
    s = unicodedata.normalize("NFKD", s)
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    # Compatibility letters (𝐋, ℍ) decompose to upper-case ASCII
    s = s.lower()
    s = _NON_WORD.sub(" ", s)
    return " ".join(s.split())


def equals_ignore_case(a: str, b: str) -> bool:
    return (a or "").casefold() == (b or "").casefold()


def contains_normalized(text: str, fragment: str) -> bool:
    """Check whether ``fragment`` occurs in ``text``."""
    if not text or not fragment:
        return False
    if fragment.casefold() in text.casefold():
        return True
    purified_fragment = purify(fragment)
    return bool(purified_fragment) and purified_fragment in purify(text)


def _either_starts_with(a: str, b: str) -> bool:
    return bool(a) and bool(b) and (a.startswith(b) or b.startswith(a))


def starts_contained_normalized(a: str, b: str) -> bool:
    """Check whether one of the two names starts with the other."""
    if _either_starts_with((a or "").casefold(), (b or "").casefold()):
        return True
    return _either_starts_with(purify(a), purify(b))


def is_alternate_version_marker(candidate_title: str, source_title: str) -> bool:
    """Detect live/demo/instrumental/... renditions in a candidate title.

    Only the part after a hyphen, parenthesis or bracket is inspected, and a
    marker is ignored when the source title itself asks for that rendition.
    """
    match = _VARIANT_SECTION.search(candidate_title or "")
    if not match:
        return False
    variant_words = set(purify(candidate_title[match.end():]).split())
    source_words = set(purify(source_title).split())
    return any(
        word in variant_words and word not in source_words
        for word in ALTERNATE_VERSION_MARKERS
    )


def similarity(a: str, b: str) -> float:
    """0..1 similarity of the purified forms."""
    return SequenceMatcher(None, purify(a), purify(b)).ratio()
