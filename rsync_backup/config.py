"""Configuration for Rsync Backup.

Settings live in ``config.jsonc`` inside the working folder: plain JSON
that may also carry ``//`` and ``/* */`` comments, so the default file
can document every option in place.  The file is validated once per
invocation and handed around as an immutable BackupConfig.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import json5

logger = logging.getLogger(__name__)

MANUAL_FREQUENCY = "manual"

_FREQUENCY_RE = re.compile(r"^\s*(\d+)\s*([smhd])\s*$", re.IGNORECASE)
_MINUTES_PER_UNIT = {"s": 1 / 60, "m": 1, "h": 60, "d": 1440}

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_LOG_SIZE_MB = 10
DEFAULT_LOG_BACKUP_COUNT = 3

DEFAULT_EXCLUDES = ".Trash/\n.DS_Store\n"

DEFAULT_CONFIG_TEXT = """\
/**
 * Configuration settings for backup
 */
{
    /**
     * Path to the rsync program.  The version shipped with macOS is old, so
     * you may want to install a newer one via homebrew and point this at
     * /usr/local/bin/rsync (or /opt/homebrew/bin/rsync) instead.
     */
    "rsyncPath": "/usr/bin/rsync",
    /**
     * How often a backup should run: a number followed by a unit.
     *      10s     Every 10 seconds
     *       5m     Every 5 minutes
     *       1h     Every 1 hour
     *       2d     Every 2 days
     *   manual     Backup only runs on demand
     */
    "frequency": "1h",
    /**
     * Source to pass along to rsync for syncing data from
     */
    // ***UNCOMMENT LINE BELOW TO SPECIFY A SOURCE***
    //"source": "~",
    /**
     * Destination to pass along to rsync for syncing data to.  Anything
     * with a colon (host:/path) is handed to rsync as a remote target.
     */
    // ***UNCOMMENT LINE BELOW TO SPECIFY A DESTINATION***
    //"destination": "/tmp/rsyncbackup/",
    /**
     * Additional arguments to pass to rsync.  The defaults make a standard
     * archival copy of the source (without permissions, ACLs, etc.).
     *
     * NOTE: --exclude-from pointing at excludes.txt in this folder is
     * always added for you.
     */
    "rsyncAdditionalArguments": [
        "--archive",
        "--no-perms",
        "--no-acls",
        "--stats",
        "--delete",
        "--delete-excluded"
    ],
    /**
     * Logging for the backup tool itself (rsync output is logged separately).
     */
    "logLevel": "INFO",
    "maxLogSizeMb": 10,
    "logBackupCount": 3
}
"""


class ConfigurationInvalidError(ValueError):
    """Raised when config.jsonc cannot be parsed or fails validation."""


@dataclass(frozen=True)
class BackupConfig:
    """Validated settings for a backup run."""

    rsync_path: str
    frequency: str
    source: str
    destination: str
    additional_arguments: tuple[str, ...] = ()
    log_level: str = DEFAULT_LOG_LEVEL
    max_log_size_mb: int = DEFAULT_MAX_LOG_SIZE_MB
    log_backup_count: int = DEFAULT_LOG_BACKUP_COUNT

    @property
    def frequency_minutes(self) -> float | None:
        """Minutes between scheduled runs, or None for manual-only."""
        return frequency_in_minutes(self.frequency)


def frequency_in_minutes(frequency: str) -> float | None:
    """Convert a frequency such as ``"1h"`` into minutes.

    Returns None for ``"manual"``.  Raises ValueError for anything that
    is not a positive number followed by one of s, m, h or d.
    """
    if frequency.strip().lower() == MANUAL_FREQUENCY:
        return None
    match = _FREQUENCY_RE.match(frequency)
    if not match:
        raise ValueError(f"Invalid frequency: {frequency!r}")
    value = int(match.group(1))
    if value <= 0:
        raise ValueError(f"Frequency must be positive: {frequency!r}")
    return value * _MINUTES_PER_UNIT[match.group(2).lower()]


def _parse(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationInvalidError(f"Cannot read configuration file: {exc}") from exc
    try:
        data = json5.loads(text)
    except ValueError as exc:
        logger.debug("JSON error in %s: %s", path, exc)
        raise ConfigurationInvalidError("Error parsing configuration file") from exc
    if not isinstance(data, dict):
        raise ConfigurationInvalidError("Error parsing configuration file")
    return data


def _int_setting(data: dict[str, Any], key: str, default: int, minimum: int) -> int:
    try:
        return max(minimum, int(data.get(key, default)))
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid %s=%r", key, data.get(key))
        return default


def load_config(path: Path) -> BackupConfig:
    """Load and validate *path*.

    Rules are checked in order and the first failure is reported via
    ConfigurationInvalidError.
    """
    data = _parse(path)

    rsync_path = data.get("rsyncPath")
    if not rsync_path or not isinstance(rsync_path, str) or not Path(rsync_path).is_file():
        raise ConfigurationInvalidError("rsyncPath is invalid or file does not exist")

    frequency = data.get("frequency")
    if not frequency or not isinstance(frequency, str):
        raise ConfigurationInvalidError("frequency is invalid")
    try:
        frequency_in_minutes(frequency)
    except ValueError as exc:
        raise ConfigurationInvalidError("frequency is invalid") from exc

    source = data.get("source")
    if not source or not isinstance(source, str):
        raise ConfigurationInvalidError("source must be set")

    destination = data.get("destination")
    if not destination or not isinstance(destination, str):
        raise ConfigurationInvalidError("destination must be set")

    extra = data.get("rsyncAdditionalArguments")
    if not isinstance(extra, list) or not all(isinstance(a, str) for a in extra):
        raise ConfigurationInvalidError("rsyncAdditionalArguments is invalid")

    settings = read_log_settings(data)
    return BackupConfig(
        rsync_path=rsync_path,
        frequency=frequency,
        source=source,
        destination=destination,
        additional_arguments=tuple(extra),
        **settings,
    )


def read_log_settings(data: dict[str, Any]) -> dict[str, Any]:
    """Pick the logging options out of raw config data, with defaults."""
    level = data.get("logLevel", DEFAULT_LOG_LEVEL)
    if not isinstance(level, str):
        level = DEFAULT_LOG_LEVEL
    return {
        "log_level": level.upper(),
        "max_log_size_mb": _int_setting(data, "maxLogSizeMb", DEFAULT_MAX_LOG_SIZE_MB, 1),
        "log_backup_count": _int_setting(data, "logBackupCount", DEFAULT_LOG_BACKUP_COUNT, 0),
    }


def load_log_settings(path: Path) -> dict[str, Any]:
    """Logging options from *path*, falling back to defaults if unreadable.

    Used before full validation so a broken config can still be logged.
    """
    try:
        return read_log_settings(_parse(path))
    except ConfigurationInvalidError:
        return read_log_settings({})
