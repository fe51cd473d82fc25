"""setlist.fm API client."""

import logging
import re
from datetime import datetime
from typing import Optional

import requests

from .base_client import SetlistSource
from .config import SetlistFmSettings
from .errors import SourceNotFound
from .models import Setlist, Song

logger = logging.getLogger(__name__)

MEDLEY_SEPARATOR = " / "
EVENT_DATE_FORMAT = "%d-%m-%Y"

_SETLIST_URL = re.compile(
    r"^https?://(www\.)?setlist\.fm/setlist/[\w+\-]+/\d+/[\w+\-]*-(?P<id>[0-9a-f]+)\.html$",
    re.IGNORECASE,
)
_RAW_ID = re.compile(r"^[0-9a-zA-Z]+$")


def extract_setlist_id(url_or_id: str) -> str:
    """Accept either a setlist.fm setlist URL or a bare setlist id.

    Raises:
        SourceNotFound: If the input is neither.
    """
    value = (url_or_id or "").strip()
    match = _SETLIST_URL.match(value)
    if match:
        return match.group("id")
    if _RAW_ID.match(value):
        return value
    raise SourceNotFound(f"Not a setlist.fm setlist URL or id: {url_or_id!r}")


def parse_setlist(data: dict) -> Setlist:
    """Parse the JSON of a setlist.fm setlist.

    Medley entries ("A / B") turn into one song per part, all sharing the
    entry's index.

    Raises:
        SourceNotFound: If required fields are missing or there are no songs.
    """
    try:
        artist_name = data["artist"]["name"]
        event_date = datetime.strptime(data["eventDate"], EVENT_DATE_FORMAT).date()
        venue = data["venue"]
        city_data = venue["city"]
        city = f"{city_data['name']}, {city_data['country']['name']}"
        tour_name = (data.get("tour") or {}).get("name")
        sets = (data.get("sets") or {}).get("set") or []
    except (KeyError, TypeError, ValueError) as e:
        raise SourceNotFound(f"Setlist isn't valid: {e}") from e

    songs: list[Song] = []
    index = 0
    for set_data in sets:
        for song_data in set_data.get("song") or []:
            raw_name = (song_data.get("name") or "").strip()
            if not raw_name:
                continue
            index += 1
            cover = song_data.get("cover")
            original_artist = cover["name"] if cover and cover.get("name") else artist_name
            parts = [part.strip() for part in raw_name.split(MEDLEY_SEPARATOR) if part.strip()]
            for part in parts:
                songs.append(
                    Song(
                        index=index,
                        name=part,
                        artist_name=artist_name,
                        original_artist_name=original_artist,
                        tape=bool(song_data.get("tape")),
                        cover=bool(cover),
                        medley_part=len(parts) > 1,
                    )
                )

    if not songs:
        raise SourceNotFound("Setlist mustn't be empty")

    return Setlist(
        artist_name=artist_name,
        event_date=event_date,
        venue=venue.get("name") or "",
        city=city,
        tour_name=tour_name or None,
        songs=tuple(songs),
    )


class SetlistFmClient(SetlistSource):
    """Fetches setlists from the setlist.fm REST API."""

    def __init__(
        self,
        settings: SetlistFmSettings,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings
        self._session = session or requests.Session()
        self._session.headers.update(
            {"Accept": "application/json", "x-api-key": settings.api_key}
        )

    @property
    def session(self) -> requests.Session:
        return self._session

    def fetch(self, setlist_id: str) -> Setlist:
        setlist_id = extract_setlist_id(setlist_id)
        url = f"{self.settings.base_url.rstrip('/')}/setlist/{setlist_id}"
        try:
            response = self._session.get(url, timeout=self.settings.timeout_seconds)
        except requests.RequestException as e:
            raise SourceNotFound(f"Couldn't reach setlist.fm: {e}") from e

        if response.status_code != 200:
            logger.info(f"setlist.fm returned {response.status_code} for {setlist_id}")
            raise SourceNotFound(f"Setlist {setlist_id} not found ({response.status_code})")

        try:
            data = response.json()
        except ValueError as e:
            raise SourceNotFound(f"Setlist {setlist_id} isn't valid JSON") from e

        setlist = parse_setlist(data)
        logger.info(
            f"Fetched setlist {setlist_id}: {setlist.artist_name} at "
            f"{setlist.venue_and_city}, {len(setlist.songs)} songs"
        )
        return setlist
