"""Spotify API client wrapper for SetlistBot."""

import base64
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import requests
import spotipy
from spotipy.cache_handler import CacheHandler
from spotipy.oauth2 import SpotifyOAuth

from .base_client import CollectionStore, MusicCatalog
from .config import SpotifySettings
from .errors import CatalogError, TransientCatalogError
from .models import Album, Artist, CandidateArtist, CandidateTrack, Image, OwnedCollection

logger = logging.getLogger(__name__)

# Required Spotify scopes for the application
REQUIRED_SCOPES = [
    "playlist-modify-private",  # Create and fill playlists
    "playlist-modify-public",
    "playlist-read-private",  # List the bot's playlists
    "playlist-read-collaborative",
    "user-read-private",
    "ugc-image-upload",  # Attach artist images
]

# Statuses that tend to go away on retry. 401/403/404 show up intermittently
# on image uploads and track additions despite a valid token and scope.
TRANSIENT_STATUSES = {401, 403, 404, 429, 500, 502, 503, 504}

ADD_TRACKS_BATCH_SIZE = 100
IMAGE_DOWNLOAD_TIMEOUT = 15


@contextmanager
def catalog_call(action: str) -> Iterator[None]:
    """Translate spotipy and requests errors into CatalogError."""
    try:
        yield
    except spotipy.SpotifyException as e:
        error_type = TransientCatalogError if e.http_status in TRANSIENT_STATUSES else CatalogError
        raise error_type(f"{action} failed ({e.http_status}): {e.msg}") from e
    except requests.RequestException as e:
        raise TransientCatalogError(f"{action} failed: {e}") from e


class SpotifyClient(MusicCatalog, CollectionStore):
    """Wrapper around spotipy implementing the catalog and the playlist store."""

    def __init__(
        self,
        settings: SpotifySettings,
        cache_path: Optional[Path] = None,
        cache_handler: Optional[CacheHandler] = None,
        open_browser: bool = True,
        http_logging: bool = False,
    ):
        """Initialize the Spotify client.

        Args:
            settings: Spotify API configuration.
            cache_path: Path to store OAuth token cache.
            cache_handler: Custom token storage, overrides cache_path.
            open_browser: Open a browser for the first OAuth login.
            http_logging: Log all HTTP traffic to a separate file.
        """
        self.settings = settings
        self._cache_path = cache_path or Path(settings.cache_path)

        auth_kwargs = {}
        if cache_handler is not None:
            auth_kwargs["cache_handler"] = cache_handler
        else:
            auth_kwargs["cache_path"] = str(self._cache_path)

        auth_manager = SpotifyOAuth(
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            redirect_uri=settings.redirect_uri,
            scope=" ".join(REQUIRED_SCOPES),
            open_browser=open_browser,
            **auth_kwargs,
        )

        self._client = spotipy.Spotify(auth_manager=auth_manager)
        self._user_id: Optional[str] = None

        if http_logging:
            from .http_logging import patch_spotipy_client

            patch_spotipy_client(self._client)

    @property
    def user_id(self) -> str:
        """Get the bot account's Spotify ID."""
        if self._user_id is None:
            with catalog_call("Fetching current user"):
                self._user_id = self._client.current_user()["id"]
        return self._user_id

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def search(self, query: str, limit: int = 20) -> list[CandidateTrack]:
        with catalog_call(f"Searching {query!r}"):
            results = self._client.search(q=query, type="track", limit=limit)
        items = (results.get("tracks") or {}).get("items") or []
        return [self._parse_track(item) for item in items if item and item.get("id")]

    def search_artist(self, name: str, limit: int = 5) -> list[CandidateArtist]:
        with catalog_call(f"Searching artist {name!r}"):
            results = self._client.search(q=name, type="artist", limit=limit)
        items = (results.get("artists") or {}).get("items") or []
        return [self._parse_candidate_artist(item) for item in items if item]

    def download_image(self, url: str) -> bytes:
        with catalog_call(f"Downloading image {url}"):
            response = requests.get(url, timeout=IMAGE_DOWNLOAD_TIMEOUT)
            response.raise_for_status()
        return response.content

    # ------------------------------------------------------------------
    # Playlist store
    # ------------------------------------------------------------------

    def create(self, name: str, description: str, public: bool = True) -> str:
        with catalog_call(f"Creating playlist '{name}'"):
            playlist = self._client.user_playlist_create(
                self.user_id, name, public=public, description=description
            )
        logger.info(f"Created playlist: {name} ({playlist['id']})")
        return playlist["id"]

    def add_tracks(self, collection_id: str, track_ids: list[str]) -> None:
        """Add tracks to a playlist, in batches of 100.

        Args:
            collection_id: Spotify playlist ID.
            track_ids: Spotify track IDs, in playlist order.
        """
        uris = [f"spotify:track:{track_id}" for track_id in track_ids]
        for start in range(0, len(uris), ADD_TRACKS_BATCH_SIZE):
            batch = uris[start:start + ADD_TRACKS_BATCH_SIZE]
            with catalog_call(f"Adding {len(batch)} tracks to {collection_id}"):
                self._client.playlist_add_items(collection_id, batch)

    def attach_image(self, collection_id: str, image_bytes: bytes) -> None:
        encoded = base64.b64encode(image_bytes).decode("ascii")
        with catalog_call(f"Uploading image to {collection_id}"):
            self._client.playlist_upload_cover_image(collection_id, encoded)

    def list_owned(self) -> list[OwnedCollection]:
        """List every playlist owned by the bot account, newest first.

        Returns:
            List of OwnedCollection objects without follower counts.
        """
        collections: list[OwnedCollection] = []
        with catalog_call("Listing playlists"):
            results = self._client.current_user_playlists(limit=50)
            while results:
                for item in results.get("items") or []:
                    if not item or (item.get("owner") or {}).get("id") != self.user_id:
                        continue
                    collections.append(self._parse_owned(item))
                results = self._client.next(results) if results.get("next") else None
        logger.debug(f"Listed {len(collections)} owned playlists")
        return collections

    def get_track_ids(self, collection_id: str) -> list[str]:
        track_ids: list[str] = []
        with catalog_call(f"Reading playlist {collection_id}"):
            results = self._client.playlist_items(
                collection_id,
                fields="items(track(id)),next",
                additional_types=("track",),
            )
            while results:
                for item in results.get("items") or []:
                    track = (item or {}).get("track") or {}
                    track_ids.append(track.get("id"))
                results = self._client.next(results) if results.get("next") else None
        return track_ids

    def get_follower_count(self, collection_id: str) -> int:
        with catalog_call(f"Reading followers of {collection_id}"):
            playlist = self._client.playlist(collection_id, fields="followers.total")
        return int((playlist.get("followers") or {}).get("total") or 0)

    def delete(self, collection_id: str) -> None:
        # Spotify has no real delete; unfollowing your own playlist removes it
        with catalog_call(f"Deleting playlist {collection_id}"):
            self._client.current_user_unfollow_playlist(collection_id)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def _parse_track(self, track_data: dict) -> CandidateTrack:
        """Parse a track from Spotify API response.

        Args:
            track_data: Raw API track data.

        Returns:
            Parsed CandidateTrack object.
        """
        album_data = track_data.get("album") or {}
        return CandidateTrack(
            id=track_data["id"],
            name=track_data.get("name") or "",
            uri=track_data.get("uri") or f"spotify:track:{track_data['id']}",
            artists=[self._parse_artist(a) for a in track_data.get("artists") or []],
            album=Album(
                id=album_data.get("id") or "",
                name=album_data.get("name") or "",
                album_type=(album_data.get("album_type") or "").lower(),
                release_date=album_data.get("release_date") or "",
                artists=[self._parse_artist(a) for a in album_data.get("artists") or []],
            ),
        )

    def _parse_artist(self, artist_data: dict) -> Artist:
        return Artist(
            id=artist_data.get("id") or "",
            name=artist_data.get("name") or "",
            uri=artist_data.get("uri") or "",
        )

    def _parse_candidate_artist(self, artist_data: dict) -> CandidateArtist:
        return CandidateArtist(
            id=artist_data.get("id") or "",
            name=artist_data.get("name") or "",
            images=[
                Image(url=img["url"], width=img.get("width"), height=img.get("height"))
                for img in artist_data.get("images") or []
                if img.get("url")
            ],
        )

    def _parse_owned(self, playlist_data: dict) -> OwnedCollection:
        followers = playlist_data.get("followers")
        return OwnedCollection(
            id=playlist_data["id"],
            name=playlist_data.get("name") or "",
            track_count=int((playlist_data.get("tracks") or {}).get("total") or 0),
            follower_count=followers.get("total") if isinstance(followers, dict) else None,
        )
