"""
Backup job runner for Rsync Backup.

A run takes the single-instance lock, marks its start, clears the
previous outcome, runs rsync to completion, then records success or
failure.  The lock is released on every exit path, including
exceptions raised while rsync is running or while markers are written.

rsync's stdout and stderr are handed to the child process as open log
files, so output lands on disk as it is produced rather than being
buffered in this process.
"""

from __future__ import annotations

import contextlib
import logging
import os
import subprocess
from collections.abc import Callable, Sequence
from datetime import datetime
from enum import Enum
from typing import IO

import psutil

from rsync_backup.config import BackupConfig
from rsync_backup.context import BackupContext
from rsync_backup.lock import LockCoordinator
from rsync_backup.markers import Marker

logger = logging.getLogger(__name__)

_STOP_GRACE_SECONDS = 10


class OperationLaunchError(RuntimeError):
    """Raised when the rsync executable cannot be started."""


class RunOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# (argv, stdout, stderr) -> exit code
Launcher = Callable[[Sequence[str], IO[bytes], IO[bytes]], int]


def launch_process(argv: Sequence[str], stdout: IO[bytes], stderr: IO[bytes]) -> int:
    """Run *argv* to completion with output going to the given files."""
    try:
        completed = subprocess.run(
            list(argv), stdin=subprocess.DEVNULL, stdout=stdout, stderr=stderr, check=False
        )
    except OSError as exc:
        raise OperationLaunchError(f"Could not start {argv[0]}: {exc}") from exc
    return completed.returncode


def expand_location(location: str) -> str:
    """Expand ``~`` in local paths; ``host:path`` specs pass through untouched."""
    if ":" in location:
        return location
    return os.path.expanduser(location)


def exclude_from_argument(ctx: BackupContext) -> str:
    return f"--exclude-from={ctx.excludes_file}"


def build_rsync_arguments(config: BackupConfig, ctx: BackupContext) -> list[str]:
    """Return the full rsync argv for *config*."""
    return [
        config.rsync_path,
        *config.additional_arguments,
        exclude_from_argument(ctx),
        expand_location(config.source),
        expand_location(config.destination),
    ]


class JobRunner:
    """Runs one backup and records its outcome in the marker files.

    Parameters
    ----------
    ctx : BackupContext
        Paths for markers, excludes file and rsync logs.
    launcher : callable, optional
        Starts the sync and returns its exit code.  Defaults to
        launch_process; tests pass a fake.
    """

    def __init__(self, ctx: BackupContext, launcher: Launcher | None = None):
        self._ctx = ctx
        self._launcher = launcher or launch_process
        self.store = ctx.marker_store()
        self.lock = LockCoordinator(self.store)

    def run(self, config: BackupConfig) -> RunOutcome:
        """Run a backup now.

        Raises AlreadyRunningError, without touching any marker, when
        another run holds the lock.
        """
        with self.lock.hold():
            self.store.touch(Marker.START)
            self.store.remove(Marker.ERROR)
            self.store.remove(Marker.SUCCESS)
            logger.info("Backup started: %s -> %s", config.source, config.destination)

            try:
                outcome = self._sync(config)
            except Exception:
                self.store.touch(Marker.ERROR)
                raise

            if outcome is RunOutcome.SUCCEEDED:
                self.store.touch(Marker.SUCCESS)
            else:
                self.store.touch(Marker.ERROR)
        logger.info("Backup %s.", outcome.value)
        return outcome

    def _sync(self, config: BackupConfig) -> RunOutcome:
        argv = build_rsync_arguments(config, self._ctx)
        logger.info("Running: %s", " ".join(argv))

        with open(self._ctx.rsync_stdout_log, "ab") as out, open(
            self._ctx.rsync_stderr_log, "ab"
        ) as err:
            banner = f"==== Backup started {datetime.now().isoformat(timespec='seconds')} ====\n"
            for fh in (out, err):
                fh.write(banner.encode("utf-8"))
                fh.flush()
            try:
                code = self._launcher(argv, out, err)
            except OperationLaunchError as exc:
                err.write(f"{exc}\n".encode("utf-8"))
                logger.error("Backup failed to launch: %s", exc)
                return RunOutcome.FAILED

        if code != 0:
            logger.error("rsync exited with code %d (see %s)", code, self._ctx.rsync_stderr_log)
            return RunOutcome.FAILED
        return RunOutcome.SUCCEEDED


def find_backup_processes(ctx: BackupContext) -> list[psutil.Process]:
    """Return running processes started by a backup in this working folder.

    A backup's rsync (and any helper processes it forks) carries this
    folder's ``--exclude-from`` argument, which is unique to it.
    """
    needle = exclude_from_argument(ctx)
    own_pid = os.getpid()
    found = []
    for proc in psutil.process_iter(["pid", "cmdline"]):
        cmdline = proc.info.get("cmdline") or []
        if proc.info.get("pid") != own_pid and needle in cmdline:
            found.append(proc)
    return found


def stop_backup(ctx: BackupContext, grace_seconds: float = _STOP_GRACE_SECONDS) -> int:
    """Terminate an in-flight backup's rsync processes.

    The runner that launched them sees a non-zero exit, records the run
    as failed and releases the lock.  Returns the number of processes
    signalled; 0 means nothing was running.
    """
    procs = find_backup_processes(ctx)
    if not procs:
        lock_path = ctx.marker_store().path(Marker.LOCK)
        if lock_path.exists():
            logger.warning(
                "No rsync process found but %s exists; a backup was probably "
                "interrupted. Delete the lock file if no backup is running.",
                lock_path,
            )
        else:
            logger.info("No running backup to stop.")
        return 0

    for proc in procs:
        with contextlib.suppress(psutil.NoSuchProcess):
            logger.info("Terminating rsync pid %d", proc.pid)
            proc.terminate()

    _, alive = psutil.wait_procs(procs, timeout=grace_seconds)
    for proc in alive:
        with contextlib.suppress(psutil.NoSuchProcess):
            logger.warning("rsync pid %d ignored SIGTERM; killing", proc.pid)
            proc.kill()
    return len(procs)
