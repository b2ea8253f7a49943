"""Single-instance lock for backup runs.

The lock is the ``backup.lock`` marker itself.  It is taken with an
atomic exclusive create, so of two overlapping start attempts exactly
one wins and the other fails straight away without waiting.
"""

from __future__ import annotations

import contextlib
import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass, field

from rsync_backup.markers import Marker, MarkerStore

logger = logging.getLogger(__name__)


class AlreadyRunningError(RuntimeError):
    """Raised when another run already holds the lock."""


@dataclass
class LockHandle:
    """Proof of a successful acquire; hand it back to release()."""

    pid: int
    released: bool = field(default=False)


class LockCoordinator:
    """Acquire and release the exclusive run lock."""

    def __init__(self, store: MarkerStore):
        self._store = store

    def acquire(self) -> LockHandle:
        """Create the lock marker or fail with AlreadyRunningError."""
        path = self._store.path(Marker.LOCK)
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as exc:
            raise AlreadyRunningError(
                f"A backup is already running (lock held at {path})"
            ) from exc
        os.close(fd)
        logger.info("Acquired backup lock %s", path)
        return LockHandle(pid=os.getpid())

    def release(self, handle: LockHandle) -> None:
        """Remove the lock marker taken by *handle*.

        Each handle releases exactly once.
        """
        if handle.released:
            raise RuntimeError("Backup lock released twice")
        handle.released = True

        path = self._store.path(Marker.LOCK)
        if not path.exists():
            logger.warning("Backup lock %s vanished before release", path)
        self._store.remove(Marker.LOCK)
        logger.info("Released backup lock %s", path)

    @contextlib.contextmanager
    def hold(self) -> Iterator[LockHandle]:
        """Hold the lock for the duration of a ``with`` block."""
        handle = self.acquire()
        try:
            yield handle
        finally:
            self.release(handle)
