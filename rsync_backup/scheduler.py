"""Scheduled-run check for Rsync Backup.

There is no daemon: whoever refreshes the status (the menu-bar plugin
host or the tray) also asks whether a backup is due, and if so starts
one as a detached ``--start`` process so the refresh returns at once.
A run is due when the configured frequency has elapsed since the last
run *started*, whatever its outcome.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from rsync_backup.config import BackupConfig
from rsync_backup.platform_utils import self_command, spawn_detached
from rsync_backup.status import RunStatus, StatusSnapshot, local_now

logger = logging.getLogger(__name__)


def is_backup_due(
    snapshot: StatusSnapshot,
    frequency_minutes: float | None,
    now: datetime,
) -> bool:
    if frequency_minutes is None:
        return False
    if snapshot.status is RunStatus.RUNNING:
        return False
    if snapshot.started_at is None:
        return True
    return now - snapshot.started_at >= timedelta(minutes=frequency_minutes)


def start_backup_if_scheduled(
    config: BackupConfig,
    snapshot: StatusSnapshot,
    now: datetime | None = None,
    spawn: Callable[[list[str]], None] | None = None,
) -> bool:
    """Start a background backup when one is due.  Returns True if started."""
    now = now or local_now()
    spawn = spawn or spawn_detached
    if not is_backup_due(snapshot, config.frequency_minutes, now):
        return False
    logger.info("Scheduled backup is due (frequency %s); starting.", config.frequency)
    spawn([*self_command(), "--start"])
    return True
