"""Composition root: wires settings, clients and the engine together."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

from .config import AppSettings
from .counter import CreationCounter
from .creator import SetlistCreator
from .dedup_cache import DedupCache
from .housekeeping import Housekeeper, HousekeepingScheduler
from .ranker import CandidateRanker
from .resolver import TrackResolver
from .setlistfm import SetlistFmClient
from .spotify_client import SpotifyClient

logger = logging.getLogger(__name__)


@dataclass
class Application:
    """Every long-lived component of a running SetlistBot."""

    settings: AppSettings
    spotify: SpotifyClient
    setlistfm: SetlistFmClient
    cache: DedupCache
    resolver: TrackResolver
    creator: SetlistCreator
    housekeeper: Housekeeper
    counter: CreationCounter

    def scheduler(self) -> HousekeepingScheduler:
        hk = self.settings.housekeeping
        return HousekeepingScheduler(
            self.housekeeper,
            interval_seconds=hk.interval_seconds,
            run_on_startup=hk.run_on_startup,
        )


def build_application(
    settings: AppSettings,
    spotify: Optional[SpotifyClient] = None,
    http_logging: bool = False,
) -> Application:
    """Create the application components from settings.

    Args:
        settings: Application settings.
        spotify: Pre-built Spotify client (e.g. with a custom token cache).
        http_logging: Log all HTTP traffic to a separate file.

    Returns:
        Configured Application.
    """
    if spotify is None:
        spotify = SpotifyClient(settings.spotify, http_logging=http_logging)

    session = requests.Session()
    if http_logging:
        from .http_logging import timed_setlistfm_session

        session = timed_setlistfm_session(session)
    setlistfm = SetlistFmClient(settings.setlistfm, session=session)

    resolution = settings.resolution
    ranker = CandidateRanker(fuzzy_threshold=resolution.fuzzy_threshold)
    logger.debug(f"Tie-break rules: {ranker.list_rules()}")
    resolver = TrackResolver(
        spotify,
        ranker=ranker,
        search_limit=resolution.search_limit,
        min_resolved_ratio=resolution.min_resolved_ratio,
    )

    cache = DedupCache(spotify)
    counter = CreationCounter(Path(settings.counter_file))
    creator = SetlistCreator(
        source=setlistfm,
        catalog=spotify,
        store=spotify,
        resolver=resolver,
        cache=cache,
        retry_settings=settings.retry,
        counter=counter,
        public=resolution.playlist_public,
        debug_mode=settings.debug_mode,
    )
    housekeeper = Housekeeper(
        spotify,
        cache,
        target_quota=settings.housekeeping.target_quota,
        eviction_workers=settings.housekeeping.eviction_workers,
    )

    return Application(
        settings=settings,
        spotify=spotify,
        setlistfm=setlistfm,
        cache=cache,
        resolver=resolver,
        creator=creator,
        housekeeper=housekeeper,
        counter=counter,
    )
