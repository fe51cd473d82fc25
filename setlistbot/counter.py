"""Persistent counter of created playlists."""

import logging
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


class CreationCounter:
    """Counts created playlists in a plain text file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._count = self._load()

    def _load(self) -> int:
        if not self.path.exists():
            return 0
        try:
            return int(self.path.read_text().strip() or 0)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read counter from {self.path}: {e}")
            return 0

    @property
    def count(self) -> int:
        return self._count

    def formatted(self) -> str:
        """Count with thousands separators, e.g. ``12,345``."""
        return f"{self._count:,}"

    def increment(self) -> int:
        with self._lock:
            self._count += 1
            try:
                self.path.write_text(str(self._count))
            except OSError as e:
                logger.warning(f"Failed to save counter to {self.path}: {e}")
            return self._count
