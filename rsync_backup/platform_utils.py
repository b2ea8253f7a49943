"""
Platform helpers for Rsync Backup (macOS and Linux).

Keeps OS detection in one place: where the working folder lives, how to
open a file for editing, how to beep, and how to launch this program
again in the background.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

IS_MACOS: bool = sys.platform == "darwin"

WORKING_FOLDER_ENV = "RSYNC_BACKUP_HOME"
DEFAULT_WORKING_FOLDER = "~/.backup"


def get_working_dir() -> Path:
    """
    Return the folder holding config, markers and logs.

    Defaults to ``~/.backup``; ``$RSYNC_BACKUP_HOME`` overrides it.
    """
    return Path(os.environ.get(WORKING_FOLDER_ENV, DEFAULT_WORKING_FOLDER)).expanduser()


def self_command() -> list[str]:
    """Return the argv prefix that re-invokes this program."""
    return [sys.executable, "-m", "rsync_backup"]


def open_file_in_default_app(filepath: str | Path) -> None:
    """Open a file in the OS default text editor."""
    fp = str(filepath)
    try:
        if IS_MACOS:
            subprocess.Popen(["open", "-t", fp])
        else:
            subprocess.Popen(["xdg-open", fp])
    except Exception:
        logger.warning("Could not open file: %s", fp, exc_info=True)


def spawn_detached(argv: list[str]) -> None:
    """Start *argv* in its own session, not tied to the caller's lifetime."""
    subprocess.Popen(
        argv,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        close_fds=True,
        start_new_session=True,
    )
    logger.info("Spawned background process: %s", " ".join(argv))


def play_error_sound() -> None:
    """Play the OS error/alert sound.  Silent on unsupported platforms."""
    try:
        if IS_MACOS:
            subprocess.Popen(
                ["afplay", "/System/Library/Sounds/Basso.aiff"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
    except Exception:
        logger.debug("Could not play error sound.", exc_info=True)
