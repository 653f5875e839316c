"""
Write Suppressor - tell our own rewrites apart from the user's saves

Every rewrite of a watched file produces a change notification of its own.
The suppressor keeps one latch per watched path: the loop arms it right before
rewriting, and the next notification for that path consumes it instead of
running the pipeline again.
"""

import logging
import os
from typing import Dict, Iterable, List, Optional

from ficta.models.watch_models import FileState, WatchedFile

logger = logging.getLogger(__name__)


class WriteSuppressor:
    """Per-path suppression latches for the watched files"""

    def __init__(self, paths: Iterable[str] = (), backup_extension: str = ""):
        self._files: Dict[str, WatchedFile] = {}
        for path in paths:
            self.register(path, backup_extension)

    @staticmethod
    def _key(path: str) -> str:
        return os.path.abspath(path)

    def register(self, path: str, backup_extension: str = "") -> WatchedFile:
        """Accept a path onto the watch list with its latch cleared"""
        key = self._key(path)
        watched = WatchedFile(path=key, backup_extension=backup_extension)
        self._files[key] = watched
        return watched

    def get(self, path: str) -> Optional[WatchedFile]:
        return self._files.get(self._key(path))

    def is_watched(self, path: str) -> bool:
        return self._key(path) in self._files

    @property
    def paths(self) -> List[str]:
        return list(self._files)

    def consume(self, path: str) -> bool:
        """
        Check a change notification against the latch

        Returns:
            True if the event was self-caused and must be discarded (the latch
            is cleared), False if it should be processed
        """
        watched = self.get(path)
        if watched is None:
            return False
        if watched.suppress_next_write:
            watched.suppress_next_write = False
            logger.debug(f"🔇 Suppressed self-write event for {watched.path}")
            return True
        return False

    def arm(self, path: str) -> None:
        """Mark the next notification for path as self-caused"""
        watched = self.get(path)
        if watched is not None:
            watched.suppress_next_write = True

    def disarm(self, path: str) -> None:
        """Clear a latch whose rewrite never reached the disk"""
        watched = self.get(path)
        if watched is not None:
            watched.suppress_next_write = False

    def set_state(self, path: str, state: FileState) -> None:
        watched = self.get(path)
        if watched is not None:
            watched.state = state
