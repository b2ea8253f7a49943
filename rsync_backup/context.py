"""Per-invocation context for Rsync Backup.

Everything one run of the program needs to find on disk, worked out
once at startup and passed explicitly to each component.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from rsync_backup.config import DEFAULT_CONFIG_TEXT, DEFAULT_EXCLUDES
from rsync_backup.markers import MarkerStore

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.jsonc"
EXCLUDES_FILE = "excludes.txt"
APP_LOG_FILE = "rsyncbackup.log"
RSYNC_STDOUT_LOG = "rsync.out.log"
RSYNC_STDERR_LOG = "rsync.err.log"


@dataclass(frozen=True)
class BackupContext:
    working_folder: Path
    config_file: Path
    excludes_file: Path
    app_log: Path
    rsync_stdout_log: Path
    rsync_stderr_log: Path

    @classmethod
    def from_folder(cls, folder: str | Path) -> "BackupContext":
        root = Path(folder).expanduser()
        return cls(
            working_folder=root,
            config_file=root / CONFIG_FILE,
            excludes_file=root / EXCLUDES_FILE,
            app_log=root / APP_LOG_FILE,
            rsync_stdout_log=root / RSYNC_STDOUT_LOG,
            rsync_stderr_log=root / RSYNC_STDERR_LOG,
        )

    def marker_store(self) -> MarkerStore:
        return MarkerStore(self.working_folder)


def _create_file_if_needed(path: Path, content: str) -> None:
    if not path.exists():
        path.write_text(content, encoding="utf-8")
        logger.info("Created default %s", path)


def ensure_working_folder(ctx: BackupContext) -> None:
    """Create the working folder and default files; existing files are kept."""
    ctx.working_folder.mkdir(parents=True, exist_ok=True)
    _create_file_if_needed(ctx.config_file, DEFAULT_CONFIG_TEXT)
    _create_file_if_needed(ctx.excludes_file, DEFAULT_EXCLUDES)
