"""Playlist naming, descriptions and artwork selection."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import Image, Setlist

PLAYLIST_NAME_TAG = "[Setlist]"


def ordinal_suffix(day: int) -> str:
    """Return the English ordinal suffix for a day of the month."""
    if 11 <= day <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_date(event_date: date) -> str:
    """Format a date verbosely, e.g. ``May 1st, 2024``."""
    day = event_date.day
    return f"{event_date.strftime('%B')} {day}{ordinal_suffix(day)}, {event_date.year}"


def assemble_playlist_name(setlist: Setlist) -> str:
    """Build the playlist name, e.g. ``Band X [Setlist] // Tour Y (2024)``.

    Setlists without a tour use the venue and city instead.
    """
    if setlist.has_tour:
        location = setlist.tour_name.strip()
    else:
        location = setlist.venue_and_city
    return f"{setlist.artist_name} {PLAYLIST_NAME_TAG} // {location} ({setlist.event_date.year})"


def assemble_description(setlist: Setlist) -> str:
    parts = [
        f"Setlist of {setlist.artist_name}",
        f"at {setlist.venue_and_city}",
        f"on {format_date(setlist.event_date)}.",
    ]
    if setlist.has_tour:
        parts.insert(1, f"({setlist.tour_name.strip()})")
    return " ".join(parts) + " Generated by SetlistBot from setlist.fm"


def find_largest_image(images: list[Image]) -> Optional[str]:
    """Pick the URL of the image with the biggest area.

    Images without dimensions count as zero-sized but are still eligible.
    """
    if not images:
        return None
    largest = max(images, key=lambda img: (img.width or 0) * (img.height or 0))
    return largest.url
