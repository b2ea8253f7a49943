"""Status derivation for Rsync Backup.

The current status is never stored.  It is worked out on every query
from which marker files exist and when they were last modified, using
an ordered list of rules where the first match wins:

1. no ``start`` marker           -> no status (never ran)
2. ``lock`` present              -> running, start .. now
3. ``error`` present             -> failed, start .. error mtime
4. ``success`` present           -> succeeded, start .. success mtime
5. anything else                 -> no status, start time only
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from rsync_backup.markers import Marker, MarkerNotFoundError, MarkerStore

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    NO_STATUS = "none"
    RUNNING = "running"
    FAILED = "failed"
    SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class StatusSnapshot:
    """Point-in-time view of the backup for display."""

    status: RunStatus
    started_at: datetime | None = None
    duration_minutes: int | None = None


def local_now() -> datetime:
    """The current time as an aware local datetime."""
    return datetime.now(timezone.utc).astimezone()


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from *start* to *end*, truncated and never negative."""
    seconds = (end - start).total_seconds()
    return max(0, int(seconds // 60))


class StatusResolver:
    """Read-only view over a MarkerStore that yields a StatusSnapshot."""

    def __init__(
        self,
        store: MarkerStore,
        clock: Callable[[], datetime] | None = None,
    ):
        self._store = store
        self._clock = clock or local_now

    def resolve(self, now: datetime | None = None) -> StatusSnapshot:
        """Return the current status derived from the markers on disk."""
        started_at = self._mtime(Marker.START)
        if started_at is None:
            return StatusSnapshot(RunStatus.NO_STATUS)

        now = now or self._clock()
        for rule in _RULES:
            snapshot = rule(self, started_at, now)
            if snapshot is not None:
                return snapshot

        logger.debug("Start marker without lock/error/success; status unknown")
        return StatusSnapshot(RunStatus.NO_STATUS, started_at=started_at)

    def _mtime(self, marker: Marker) -> datetime | None:
        """Return the marker's mtime, or None if it is absent.

        Another process may delete a marker between the existence check
        and the stat; that counts as absent.
        """
        if not self._store.exists(marker):
            return None
        try:
            return self._store.modified_at(marker)
        except MarkerNotFoundError:
            return None

    def _running(self, started_at: datetime, now: datetime) -> StatusSnapshot | None:
        if not self._store.exists(Marker.LOCK):
            return None
        return StatusSnapshot(
            RunStatus.RUNNING, started_at, minutes_between(started_at, now)
        )

    def _finished(
        self, marker: Marker, status: RunStatus, started_at: datetime
    ) -> StatusSnapshot | None:
        finished_at = self._mtime(marker)
        if finished_at is None:
            return None
        return StatusSnapshot(
            status, started_at, minutes_between(started_at, finished_at)
        )

    def _failed(self, started_at: datetime, now: datetime) -> StatusSnapshot | None:
        return self._finished(Marker.ERROR, RunStatus.FAILED, started_at)

    def _succeeded(self, started_at: datetime, now: datetime) -> StatusSnapshot | None:
        return self._finished(Marker.SUCCESS, RunStatus.SUCCEEDED, started_at)


# Each rule returns a snapshot when it applies, or None to defer to the next.
_RULES: list[Callable[[StatusResolver, datetime, datetime], StatusSnapshot | None]] = [
    StatusResolver._running,
    StatusResolver._failed,
    StatusResolver._succeeded,
]
