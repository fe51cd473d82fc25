"""Exception hierarchy for SetlistBot."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import MatchOutcome


class SetlistBotError(Exception):
    """Base class for all SetlistBot errors."""


class SourceNotFound(SetlistBotError):
    """The setlist id does not resolve, or the setlist has no songs."""


class InsufficientMatches(SetlistBotError):
    """Too few songs of a setlist could be found in the catalog."""

    def __init__(self, resolved: int, total: int):
        self.resolved = resolved
        self.total = total
        super().__init__(f"Only {resolved} of {total} songs could be found")


class ResolutionCancelled(SetlistBotError):
    """Resolution stopped before the next song; holds the finished outcomes."""

    def __init__(self, outcomes: list["MatchOutcome"]):
        self.outcomes = outcomes
        super().__init__(f"Resolution cancelled after {len(outcomes)} song(s)")


class CatalogError(SetlistBotError):
    """A call against the music catalog or the playlist store failed."""


class TransientCatalogError(CatalogError):
    """Rate limiting or an intermittent scope error; worth retrying."""


class HousekeepingEvictionError(CatalogError):
    """A single playlist could not be evicted during housekeeping."""

    def __init__(self, collection_id: str, cause: Exception):
        self.collection_id = collection_id
        self.cause = cause
        super().__init__(f"Failed to evict playlist {collection_id}: {cause}")
