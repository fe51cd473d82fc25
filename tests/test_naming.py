from datetime import date

import pytest

from setlistbot.models import Image
from setlistbot.naming import (
    assemble_description,
    assemble_playlist_name,
    find_largest_image,
    format_date,
    ordinal_suffix,
)

from .fakes import make_setlist, make_song


@pytest.mark.parametrize(
    "day, suffix",
    [(1, "st"), (2, "nd"), (3, "rd"), (4, "th"), (11, "th"), (12, "th"), (13, "th"),
     (21, "st"), (22, "nd"), (23, "rd"), (30, "th"), (31, "st")],
)
def test_ordinal_suffix(day, suffix):
    assert ordinal_suffix(day) == suffix


def test_format_date():
    assert format_date(date(2024, 5, 1)) == "May 1st, 2024"
    assert format_date(date(2023, 11, 12)) == "November 12th, 2023"


def test_name_with_tour():
    assert assemble_playlist_name(make_setlist([make_song(1, "A")])) == (
        "Band X [Setlist] // Tour Y (2024)"
    )


@pytest.mark.parametrize("tour", [None, "", "   "])
def test_name_without_tour(tour):
    assert assemble_playlist_name(make_setlist([make_song(1, "A")], tour=tour)) == (
        "Band X [Setlist] // Arena, Berlin, Germany (2024)"
    )


def test_description():
    assert assemble_description(make_setlist([])) == (
        "Setlist of Band X (Tour Y) at Arena, Berlin, Germany on May 1st, 2024. "
        "Generated by SetlistBot from setlist.fm"
    )
    assert assemble_description(make_setlist([], tour=None)) == (
        "Setlist of Band X at Arena, Berlin, Germany on May 1st, 2024. "
        "Generated by SetlistBot from setlist.fm"
    )


def test_find_largest_image():
    images = [
        Image("https://img/medium.jpg", 300, 300),
        Image("https://img/big.jpg", 640, 640),
        Image("https://img/unsized.jpg"),
    ]
    assert find_largest_image(images) == "https://img/big.jpg"
    assert find_largest_image([Image("https://img/unsized.jpg")]) == "https://img/unsized.jpg"
    assert find_largest_image([]) is None
