"""Index of playlists created earlier, so identical setlists are reused."""

import logging
import threading
from typing import Iterable, Optional, Sequence

from .base_client import CollectionStore
from .errors import CatalogError
from .models import OwnedCollection

logger = logging.getLogger(__name__)


class DedupCache:
    """Maps playlist names to the ids of every playlist with that name.

    One name can belong to several playlists (e.g. different nights of the
    same tour). Writers replace the per-name tuple under a lock; readers
    only take a reference to the current tuple, so lookups never block.
    """

    def __init__(self, store: CollectionStore):
        self.store = store
        self._entries: dict[str, tuple[str, ...]] = {}
        self._write_lock = threading.Lock()

    def register(self, name: str, collection_id: str) -> None:
        """Append a playlist id to the ids known under ``name``."""
        with self._write_lock:
            self._entries[name] = self._entries.get(name, ()) + (collection_id,)

    def rebuild(self, collections: Iterable[OwnedCollection]) -> None:
        """Replace the whole index with the given playlists."""
        entries: dict[str, tuple[str, ...]] = {}
        for collection in collections:
            entries[collection.name] = entries.get(collection.name, ()) + (collection.id,)
        with self._write_lock:
            self._entries = entries
        logger.info(f"Dedup cache rebuilt: {self.count()} playlists, {len(entries)} names")

    def ids_for(self, name: str) -> tuple[str, ...]:
        return self._entries.get(name, ())

    def names(self) -> list[str]:
        return list(self._entries)

    def count(self) -> int:
        """Number of registered playlists."""
        return sum(len(ids) for ids in list(self._entries.values()))

    def find_existing(self, name: str, track_ids: Sequence[str]) -> Optional[str]:
        """Find a playlist with this name holding exactly these tracks.

        Tracks must match position by position; the same tracks in another
        order do not count.

        Args:
            name: Playlist name.
            track_ids: Resolved track ids, in setlist order.

        Returns:
            The id of the matching playlist, or None.
        """
        wanted = list(track_ids)
        for collection_id in self.ids_for(name):
            try:
                existing = self.store.get_track_ids(collection_id)
            except CatalogError as e:
                logger.warning(f"Could not read playlist {collection_id}: {e}")
                continue
            if list(existing) == wanted:
                logger.debug(f"Found existing playlist {collection_id} for '{name}'")
                return collection_id
        return None
