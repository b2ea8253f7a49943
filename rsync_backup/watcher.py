"""Marker folder watcher for Rsync Backup.

Uses the watchdog library to notice marker files being created,
touched or removed in the working folder, so the tray can refresh the
moment a run starts or finishes instead of waiting for its next poll.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from rsync_backup.markers import Marker

logger = logging.getLogger(__name__)

_MARKER_NAMES = frozenset(m.value for m in Marker)


class MarkerEventHandler(FileSystemEventHandler):
    """Calls *on_change* for any event that touches a marker file."""

    def __init__(self, on_change: Callable[[], None]):
        super().__init__()
        self._on_change = on_change

    @staticmethod
    def _is_marker(path: Any) -> bool:
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        return os.path.basename(path) in _MARKER_NAMES

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        if not any(p and self._is_marker(p) for p in paths):
            return
        logger.debug("Marker event %s on %s", event.event_type, event.src_path)
        try:
            self._on_change()
        except Exception:
            logger.exception("Error in marker change callback")


class MarkerWatcher:
    """Watch the working folder for marker changes.

    Usage:
        watcher = MarkerWatcher(folder, on_change=refresh)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(self, folder: str | Path, on_change: Callable[[], None]):
        self.folder = Path(folder)
        self._handler = MarkerEventHandler(on_change)
        self._observer: Any | None = None

    def start(self) -> None:
        """Start watching the working folder."""
        if not self.folder.is_dir():
            logger.error("Working folder does not exist: %s", self.folder)
            raise FileNotFoundError(f"Working folder does not exist: {self.folder}")

        observer = Observer()
        self._observer = observer
        observer.schedule(self._handler, str(self.folder), recursive=False)
        observer.start()
        logger.info("Watching markers in '%s'", self.folder)

    def stop(self) -> None:
        """Stop watching and release resources."""
        if self._observer:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None
        logger.info("Marker watcher stopped.")

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()
