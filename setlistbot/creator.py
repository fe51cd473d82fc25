"""Turns a setlist.fm setlist into a Spotify playlist."""

import logging
import threading
import time
from typing import Callable, Optional

from .base_client import CollectionStore, MusicCatalog, SetlistSource
from .config import RetrySettings
from .counter import CreationCounter
from .dedup_cache import DedupCache
from .errors import CatalogError, TransientCatalogError
from .models import CandidateTrack, CreationResult, MatchOutcome, ResolutionOptions, Setlist
from .naming import assemble_description, find_largest_image
from .normalizer import equals_ignore_case
from .resolver import TrackResolver
from .retry import call_with_retry

logger = logging.getLogger(__name__)


class SetlistCreator:
    """Orchestrates fetch, resolution, dedup lookup and playlist creation."""

    def __init__(
        self,
        source: SetlistSource,
        catalog: MusicCatalog,
        store: CollectionStore,
        resolver: TrackResolver,
        cache: DedupCache,
        retry_settings: Optional[RetrySettings] = None,
        counter: Optional[CreationCounter] = None,
        public: bool = True,
        debug_mode: bool = False,
    ):
        """Initialize the creator.

        Args:
            source: Where setlists come from.
            catalog: Music catalog, used for artist artwork.
            store: Where playlists are created.
            resolver: Track resolver.
            cache: Dedup cache shared with housekeeping.
            retry_settings: Retry policy for track additions and images.
            counter: Optional counter bumped for every new playlist.
            public: Create playlists as public.
            debug_mode: Delete new playlists right away and never cache them.
        """
        self.source = source
        self.catalog = catalog
        self.store = store
        self.resolver = resolver
        self.cache = cache
        self.retry_settings = retry_settings or RetrySettings()
        self.counter = counter
        self.public = public
        self.debug_mode = debug_mode

    def convert(
        self,
        setlist_id: str,
        options: ResolutionOptions,
        on_progress: Optional[Callable[[str], None]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> CreationResult:
        """Create (or reuse) the playlist for a setlist.

        Args:
            setlist_id: setlist.fm id or URL.
            options: Inclusion policy.
            on_progress: Receives short status messages.
            cancel_event: Stops resolution before the next song.

        Returns:
            CreationResult with the playlist id and every song's outcome.

        Raises:
            SourceNotFound: If the setlist can't be fetched or is empty.
            InsufficientMatches: If too few songs were found.
            TransientCatalogError: If tracks couldn't be added after retries.
        """
        start = time.perf_counter()
        progress = on_progress or (lambda message: None)

        progress("Fetching data from setlist.fm...")
        setlist = self.source.fetch(setlist_id)

        outcomes = self.resolver.resolve(
            setlist,
            options,
            cancel_event=cancel_event,
            on_progress=lambda i, n: progress(f"Searching for the tracks... ({i} of {n})"),
        )
        tracks = [outcome.track for outcome in outcomes if outcome.has_result]
        track_ids = [track.id for track in tracks]
        name = setlist.playlist_name

        progress("Looking for existing playlist...")
        existing_id = self.cache.find_existing(name, track_ids)
        if existing_id is not None:
            logger.info(f"Existing setlist requested: {name} ({existing_id})")
            return self._result(setlist, options, existing_id, outcomes, start, reused=True)

        progress("Creating new playlist...")
        collection_id = self.store.create(name, assemble_description(setlist), public=self.public)

        progress("Adding tracks to playlist...")
        self._add_tracks(collection_id, track_ids)

        if options.attach_cover_image and not self.debug_mode:
            progress("Attaching image...")
            self._attach_artist_image(collection_id, setlist, tracks)

        if self.debug_mode:
            self.store.delete(collection_id)
            logger.warning(f"Debug playlist deleted: {name}")
        else:
            self.cache.register(name, collection_id)
            if self.counter is not None:
                self.counter.increment()

        result = self._result(setlist, options, collection_id, outcomes, start, reused=False)
        logger.info(f"New setlist created: {name} - {result.collection_url}")
        return result

    def _add_tracks(self, collection_id: str, track_ids: list[str]) -> None:
        outcome = call_with_retry(
            lambda: self.store.add_tracks(collection_id, track_ids),
            max_attempts=self.retry_settings.max_attempts,
            delay=self.retry_settings.delay_seconds,
            description=f"Adding tracks to {collection_id}",
        )
        if outcome.exhausted:
            raise TransientCatalogError(
                f"Failed to add tracks to {collection_id}: {outcome.last_error}"
            )

    def _attach_artist_image(
        self, collection_id: str, setlist: Setlist, tracks: list[CandidateTrack]
    ) -> None:
        """Use the setlist artist's largest picture as playlist cover.

        Only done when one of the resolved tracks is by the setlist artist,
        so covers-only playlists don't get a random artist's face.
        """
        if not any(equals_ignore_case(t.first_artist_name, setlist.artist_name) for t in tracks):
            return

        try:
            artists = self.catalog.search_artist(setlist.artist_name)
            artist = next(
                (a for a in artists if equals_ignore_case(a.name, setlist.artist_name)),
                None,
            )
            image_url = find_largest_image(artist.images) if artist else None
            if image_url is None:
                logger.debug(f"No image found for {setlist.artist_name}")
                return
            image_bytes = self.catalog.download_image(image_url)
        except CatalogError as e:
            logger.warning(f"Couldn't fetch artist image for {setlist.artist_name}: {e}")
            return

        outcome = call_with_retry(
            lambda: self.store.attach_image(collection_id, image_bytes),
            max_attempts=self.retry_settings.max_attempts,
            delay=self.retry_settings.delay_seconds,
            description=f"Attaching image of {setlist.artist_name}",
        )
        if outcome.exhausted:
            logger.error(f"Failed to attach artist image -- {setlist.artist_name}")

    @staticmethod
    def _result(
        setlist: Setlist,
        options: ResolutionOptions,
        collection_id: str,
        outcomes: list[MatchOutcome],
        start: float,
        reused: bool,
    ) -> CreationResult:
        return CreationResult(
            setlist=setlist,
            options=options,
            collection_id=collection_id,
            outcomes=outcomes,
            elapsed_seconds=time.perf_counter() - start,
            reused=reused,
        )
