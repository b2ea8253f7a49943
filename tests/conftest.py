"""Shared fixtures for the Rsync Backup tests."""

import logging
import os
import sys
import time
from datetime import datetime

import pytest

from rsync_backup.config import BackupConfig
from rsync_backup.context import BackupContext, ensure_working_folder
from rsync_backup.markers import Marker, MarkerStore


@pytest.fixture
def ctx(tmp_path) -> BackupContext:
    """A bootstrapped working folder under tmp_path."""
    context = BackupContext.from_folder(tmp_path / "backup")
    ensure_working_folder(context)
    return context


@pytest.fixture
def store(ctx) -> MarkerStore:
    return ctx.marker_store()


@pytest.fixture
def place_marker(store):
    """Create a marker with a chosen modification time."""

    def _place(marker: Marker, when: datetime) -> None:
        store.touch(marker)
        ts = when.timestamp()
        os.utime(store.path(marker), (ts, ts))

    return _place


@pytest.fixture
def python_job(tmp_path):
    """Build a config whose "rsync" is the Python interpreter.

    The exclude file, source and destination arguments end up in the
    script's sys.argv and are ignored.
    """

    def _job(exit_code: int) -> BackupConfig:
        return BackupConfig(
            rsync_path=sys.executable,
            frequency="1h",
            source=str(tmp_path / "src"),
            destination=str(tmp_path / "dst"),
            additional_arguments=(
                "-c",
                f"import sys; print('copying'); sys.exit({exit_code})",
            ),
        )

    return _job


@pytest.fixture
def restore_logging():
    """Remove any handlers a test installs on the root logger."""
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def eastern_time():
    """Run the test with the local zone set to US Eastern (observes DST)."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "America/New_York"
    time.tzset()
    yield
    if previous is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = previous
    time.tzset()
