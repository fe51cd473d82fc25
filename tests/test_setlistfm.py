from datetime import date
from unittest.mock import Mock

import pytest
import requests

from setlistbot.config import SetlistFmSettings
from setlistbot.errors import SourceNotFound
from setlistbot.setlistfm import SetlistFmClient, extract_setlist_id, parse_setlist


def setlist_json(**overrides) -> dict:
    data = {
        "id": "63de4613",
        "eventDate": "01-05-2024",
        "artist": {"name": "Band X"},
        "venue": {
            "name": "Arena",
            "city": {"name": "Berlin", "country": {"name": "Germany"}},
        },
        "tour": {"name": "Tour Y"},
        "sets": {
            "set": [
                {
                    "song": [
                        {"name": "Intro", "tape": True, "cover": {"name": "DJ Z"}},
                        {"name": "Song A"},
                        {"name": "Part 1 / Part 2"},
                        {"name": ""},
                        {"name": "Hit Song", "cover": {"name": "Original Y"}},
                    ]
                },
                {"encore": 1, "song": [{"name": "Song B"}]},
            ]
        },
    }
    data.update(overrides)
    return data


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        if self.error:
            raise self.error
        return self.response


def response(status_code=200, payload=None):
    resp = Mock(status_code=status_code)
    resp.json.return_value = payload
    return resp


class TestParseSetlist:
    def test_metadata(self):
        setlist = parse_setlist(setlist_json())

        assert setlist.artist_name == "Band X"
        assert setlist.event_date == date(2024, 5, 1)
        assert setlist.venue == "Arena"
        assert setlist.city == "Berlin, Germany"
        assert setlist.tour_name == "Tour Y"
        assert setlist.playlist_name == "Band X [Setlist] // Tour Y (2024)"

    def test_songs(self):
        songs = parse_setlist(setlist_json()).songs

        assert [(s.index, s.name) for s in songs] == [
            (1, "Intro"),
            (2, "Song A"),
            (3, "Part 1"),
            (3, "Part 2"),
            (4, "Hit Song"),
            (5, "Song B"),
        ]
        intro, song_a, part_1, part_2, hit, _ = songs
        assert intro.tape and intro.cover and intro.original_artist_name == "DJ Z"
        assert not song_a.tape and not song_a.cover and song_a.original_artist_name == "Band X"
        assert part_1.medley_part and part_2.medley_part and not song_a.medley_part
        assert hit.cover and hit.original_artist_name == "Original Y"
        assert all(s.artist_name == "Band X" for s in songs)

    def test_without_tour(self):
        setlist = parse_setlist(setlist_json(tour=None))

        assert setlist.tour_name is None
        assert setlist.playlist_name == "Band X [Setlist] // Arena, Berlin, Germany (2024)"

    def test_without_songs(self):
        with pytest.raises(SourceNotFound):
            parse_setlist(setlist_json(sets={"set": []}))

    @pytest.mark.parametrize("field", ["artist", "eventDate", "venue"])
    def test_missing_field(self, field):
        data = setlist_json()
        del data[field]
        with pytest.raises(SourceNotFound):
            parse_setlist(data)

    def test_bad_date(self):
        with pytest.raises(SourceNotFound):
            parse_setlist(setlist_json(eventDate="2024-05-01"))


class TestExtractSetlistId:
    def test_url(self):
        url = "https://www.setlist.fm/setlist/band-x/2024/arena-berlin-germany-63de4613.html"
        assert extract_setlist_id(url) == "63de4613"

    def test_bare_id(self):
        assert extract_setlist_id(" 63de4613 ") == "63de4613"

    @pytest.mark.parametrize("value", ["", "https://example.com/setlist/x.html", "not an id"])
    def test_rejects_anything_else(self, value):
        with pytest.raises(SourceNotFound):
            extract_setlist_id(value)


class TestSetlistFmClient:
    def settings(self) -> SetlistFmSettings:
        return SetlistFmSettings(api_key="secret", base_url="https://api.example/rest/1.0/")

    def test_fetch(self):
        session = FakeSession(response(payload=setlist_json()))
        client = SetlistFmClient(self.settings(), session=session)

        setlist = client.fetch("https://www.setlist.fm/setlist/band-x/2024/arena-63de4613.html")

        assert setlist.artist_name == "Band X"
        assert session.urls == ["https://api.example/rest/1.0/setlist/63de4613"]
        assert session.headers["x-api-key"] == "secret"
        assert session.headers["Accept"] == "application/json"

    def test_not_found(self):
        client = SetlistFmClient(self.settings(), session=FakeSession(response(404)))

        with pytest.raises(SourceNotFound):
            client.fetch("63de4613")

    def test_network_error(self):
        session = FakeSession(error=requests.ConnectionError("offline"))
        client = SetlistFmClient(self.settings(), session=session)

        with pytest.raises(SourceNotFound):
            client.fetch("63de4613")

    def test_invalid_json(self):
        resp = response()
        resp.json.side_effect = ValueError("not json")
        client = SetlistFmClient(self.settings(), session=FakeSession(resp))

        with pytest.raises(SourceNotFound):
            client.fetch("63de4613")
