"""Marker files for Rsync Backup.

Every piece of run state lives on disk as a zero-byte flag file inside
the working folder.  A marker's existence and its modification time are
the whole payload; contents are never read.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class MarkerNotFoundError(FileNotFoundError):
    """Raised when a timestamp is requested for a marker that is absent."""


class Marker(str, Enum):
    """The four sentinel files, valued by their file name."""

    START = "start.flag"
    LOCK = "backup.lock"
    ERROR = "error.flag"
    SUCCESS = "success.flag"


class MarkerStore:
    """Filesystem-backed accessor for the run markers.

    Holds no cache: each call goes to disk, so two calls in the same
    process always observe the latest state written by any process.
    """

    def __init__(self, folder: str | Path):
        self.folder = Path(folder)

    def path(self, marker: Marker) -> Path:
        """Return the on-disk location of *marker*."""
        return self.folder / marker.value

    def touch(self, marker: Marker) -> None:
        """Create *marker*, or bump its modification time if present."""
        p = self.path(marker)
        p.touch(exist_ok=True)
        logger.debug("Touched marker %s", p)

    def remove(self, marker: Marker) -> None:
        """Delete *marker*; absent markers are left alone."""
        p = self.path(marker)
        p.unlink(missing_ok=True)
        logger.debug("Removed marker %s", p)

    def exists(self, marker: Marker) -> bool:
        return self.path(marker).is_file()

    def modified_at(self, marker: Marker) -> datetime:
        """Return the modification time of *marker* as an aware local datetime.

        Raises MarkerNotFoundError if the marker does not exist.
        """
        p = self.path(marker)
        try:
            mtime = p.stat().st_mtime
        except FileNotFoundError as exc:
            raise MarkerNotFoundError(f"Marker not found: {p}") from exc
        return datetime.fromtimestamp(mtime, tz=timezone.utc).astimezone()
