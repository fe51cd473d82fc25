"""Scheduled housekeeping of the bot account's playlists.

A cycle lists every playlist of the account, evicts old dead playlists when
the account approaches Spotify's (undocumented) playlist limit, and rebuilds
the dedup cache from what is left.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .base_client import CollectionStore
from .dedup_cache import DedupCache
from .errors import CatalogError, HousekeepingEvictionError
from .models import OwnedCollection

logger = logging.getLogger(__name__)


class HousekeepingState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    EVICTING = "evicting"
    REBUILT = "rebuilt"


@dataclass
class HousekeepingReport:
    """Summary of one housekeeping cycle."""

    started_at: datetime = field(default_factory=datetime.now)
    scanned: int = 0
    evicted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    cached: int = 0
    aborted: bool = False


class Housekeeper:
    """Runs housekeeping cycles against a collection store."""

    def __init__(
        self,
        store: CollectionStore,
        cache: DedupCache,
        target_quota: int = 10000,
        eviction_workers: int = 2,
    ):
        """Initialize the housekeeper.

        Args:
            store: The bot account's playlists.
            cache: Dedup cache rebuilt at the end of every cycle.
            target_quota: Playlist count to stay at or below.
            eviction_workers: Concurrent delete calls.
        """
        self.store = store
        self.cache = cache
        self.target_quota = target_quota
        self.eviction_workers = max(1, eviction_workers)
        self._state = HousekeepingState.IDLE
        self._cycle_lock = threading.Lock()

    @property
    def state(self) -> HousekeepingState:
        return self._state

    def run_housekeeping_cycle(self) -> HousekeepingReport:
        """Run one full cycle: scan, evict if over quota, rebuild the cache.

        A failed listing aborts the cycle and leaves the cache untouched.
        """
        report = HousekeepingReport()
        with self._cycle_lock:
            try:
                self._state = HousekeepingState.SCANNING
                try:
                    collections = self.store.list_owned()
                except CatalogError as e:
                    logger.error(f"Housekeeping aborted, could not list playlists: {e}")
                    report.aborted = True
                    return report
                report.scanned = len(collections)
                logger.info(f"Housekeeping: {len(collections)} playlists on the account")

                overflow = len(collections) - self.target_quota
                if overflow > 0:
                    self._state = HousekeepingState.EVICTING
                    logger.warning(
                        f"Playlist count {len(collections)} exceeds quota "
                        f"{self.target_quota}, evicting up to {overflow} playlists"
                    )
                    victims = self.select_evictions(collections, overflow)
                    report.evicted, report.failed = self._evict(victims)
                    logger.warning(
                        f"Housekeeping evicted {len(report.evicted)} playlists "
                        f"({len(report.failed)} failed)"
                    )

                evicted = set(report.evicted)
                remaining = [c for c in collections if c.id not in evicted]
                self.cache.rebuild(remaining)
                report.cached = len(remaining)
                self._state = HousekeepingState.REBUILT
                return report
            finally:
                self._state = HousekeepingState.IDLE

    def select_evictions(
        self, collections: list[OwnedCollection], overflow: int
    ) -> list[OwnedCollection]:
        """Pick up to ``overflow`` dead playlists, oldest first.

        The listing is newest first, so it is walked backwards. A playlist
        is dead when it is empty or nobody follows it.
        """
        victims: list[OwnedCollection] = []
        for collection in reversed(collections):
            if len(victims) >= overflow:
                break
            if self._is_dead(collection):
                victims.append(collection)
        return victims

    def _is_dead(self, collection: OwnedCollection) -> bool:
        if collection.is_empty:
            return True
        followers = collection.follower_count
        if followers is None:
            try:
                followers = self.store.get_follower_count(collection.id)
            except CatalogError as e:
                logger.warning(f"Could not read followers of {collection.id}: {e}")
                return False
        return followers == 0

    def _evict(self, victims: list[OwnedCollection]) -> tuple[list[str], list[str]]:
        evicted: list[str] = []
        failed: list[str] = []

        def evict_one(collection: OwnedCollection) -> None:
            try:
                self.store.delete(collection.id)
            except CatalogError as e:
                raise HousekeepingEvictionError(collection.id, e) from e

        with ThreadPoolExecutor(max_workers=self.eviction_workers) as executor:
            futures = {executor.submit(evict_one, c): c for c in victims}
            for future in as_completed(futures):
                collection = futures[future]
                try:
                    future.result()
                    evicted.append(collection.id)
                    logger.debug(f"Evicted '{collection.name}' ({collection.id})")
                except HousekeepingEvictionError as e:
                    logger.error(f"{e} ('{collection.name}')")
                    failed.append(collection.id)
        return evicted, failed


class HousekeepingScheduler:
    """Runs housekeeping cycles on a fixed interval.

    Modeled as a polling loop; stop() interrupts the wait immediately.
    """

    def __init__(
        self,
        housekeeper: Housekeeper,
        interval_seconds: float,
        run_on_startup: bool = True,
    ):
        self.housekeeper = housekeeper
        self.interval_seconds = interval_seconds
        self.run_on_startup = run_on_startup
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_report: Optional[HousekeepingReport] = None

    def run_once(self) -> Optional[HousekeepingReport]:
        """Run a single cycle, logging instead of raising unexpected errors."""
        try:
            self.last_report = self.housekeeper.run_housekeeping_cycle()
        except Exception as e:
            logger.error(f"Unexpected error during housekeeping: {e}", exc_info=True)
            return None
        return self.last_report

    def start(self) -> None:
        """Run the loop in the calling thread until stop() is called."""
        logger.info(f"Housekeeping every {self.interval_seconds / 3600:.1f}h")
        if self.run_on_startup and not self._stop_event.is_set():
            self.run_once()
        while not self._stop_event.wait(self.interval_seconds):
            self.run_once()
        logger.info("Housekeeping scheduler stopped")

    def start_in_background(self) -> threading.Thread:
        """Run the loop in a daemon thread."""
        self._thread = threading.Thread(
            target=self.start, name="housekeeping", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        logger.info("Stopping housekeeping scheduler...")
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
