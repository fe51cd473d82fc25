"""Abstract interfaces of the external services SetlistBot talks to."""

from abc import ABC, abstractmethod

from .models import CandidateArtist, CandidateTrack, OwnedCollection, Setlist


class SetlistSource(ABC):
    """Source of parsed setlists (setlist.fm)."""

    @abstractmethod
    def fetch(self, setlist_id: str) -> Setlist:
        """Fetch and parse a setlist.

        Args:
            setlist_id: Opaque setlist identifier.

        Returns:
            The parsed Setlist.

        Raises:
            SourceNotFound: If the setlist is missing, malformed or empty.
        """
        pass


class MusicCatalog(ABC):
    """Read-only interface of the music catalog.

    Implementations raise CatalogError on failed calls.
    """

    @abstractmethod
    def search(self, query: str, limit: int = 20) -> list[CandidateTrack]:
        """Search tracks, in the order the catalog returns them."""
        pass

    @abstractmethod
    def search_artist(self, name: str, limit: int = 5) -> list[CandidateArtist]:
        """Search artists; only used to find playlist artwork."""
        pass

    @abstractmethod
    def download_image(self, url: str) -> bytes:
        """Download an image (JPEG) from the catalog's CDN."""
        pass


class CollectionStore(ABC):
    """Playlists owned by the bot account.

    Implementations raise CatalogError on failed calls, and
    TransientCatalogError where a retry is likely to succeed.
    """

    @abstractmethod
    def create(self, name: str, description: str, public: bool = True) -> str:
        """Create a playlist and return its id."""
        pass

    @abstractmethod
    def add_tracks(self, collection_id: str, track_ids: list[str]) -> None:
        """Append tracks, in order, to a playlist."""
        pass

    @abstractmethod
    def attach_image(self, collection_id: str, image_bytes: bytes) -> None:
        """Upload a JPEG as playlist cover."""
        pass

    @abstractmethod
    def list_owned(self) -> list[OwnedCollection]:
        """List the account's playlists, newest first."""
        pass

    @abstractmethod
    def get_track_ids(self, collection_id: str) -> list[str]:
        """Track ids of a playlist, in playlist order."""
        pass

    @abstractmethod
    def get_follower_count(self, collection_id: str) -> int:
        pass

    @abstractmethod
    def delete(self, collection_id: str) -> None:
        """Delete (unfollow) a playlist."""
        pass
