"""Logging setup for Rsync Backup."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import TextIO

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    log_path: Path,
    log_level: str = "INFO",
    max_log_size_mb: int = 10,
    log_backup_count: int = 3,
    stream: TextIO | None = None,
) -> None:
    """Configure a rotating file log plus a stream handler.

    The stream defaults to stderr: in menu mode stdout carries the
    status-bar text and must stay clean.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    fmt = logging.Formatter(LOG_FORMAT)

    log_path.parent.mkdir(parents=True, exist_ok=True)
    fh = logging.handlers.RotatingFileHandler(
        str(log_path),
        maxBytes=max_log_size_mb * 1024 * 1024,
        backupCount=log_backup_count,
        encoding="utf-8",
    )
    fh.setLevel(level)
    fh.setFormatter(fmt)
    root_logger.addHandler(fh)

    sh = logging.StreamHandler(stream or sys.stderr)
    sh.setLevel(level)
    sh.setFormatter(fmt)
    root_logger.addHandler(sh)
