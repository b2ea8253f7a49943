"""Status-bar plugin output for Rsync Backup.

Renders the current status in the BitBar / SwiftBar / xbar plugin text
format: a header line shown in the menu bar, a ``---`` separator, then
one line per dropdown item.  Items that run a command carry
``bash=... paramN=... terminal=false`` attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from rsync_backup.status import RunStatus, StatusSnapshot

SEPARATOR = "---"

HEADERS = {
    RunStatus.RUNNING: ":running:",
    RunStatus.FAILED: ":rage:",
    RunStatus.SUCCEEDED: ":smile:",
    RunStatus.NO_STATUS: ":expressionless:",
}


@dataclass(frozen=True)
class MenuActions:
    """Commands behind the dropdown actions."""

    program: list[str]
    config_file: Path


def format_backup_date(value: datetime) -> str:
    """Format as ``M/D/YY h:mm AM/PM``, e.g. ``3/7/24 9:05 PM``."""
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{value.month}/{value.day}/{value.year % 100:02d} {hour}:{value.minute:02d} {meridiem}"


_NEEDS_QUOTING = frozenset(' \t"|=\\')


def _quote(value: str) -> str:
    """Quote a parameter value so the plugin host reads it as one token."""
    if not _NEEDS_QUOTING.intersection(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _action(text: str, argv: list[str]) -> str:
    attrs = [f"bash={_quote(argv[0])}"]
    attrs += [f"param{i}={_quote(arg)}" for i, arg in enumerate(argv[1:], start=1)]
    attrs.append("terminal=false")
    return f"{text} | {' '.join(attrs)}"


def _configure(actions: MenuActions) -> str:
    return _action("Configure...", ["open", "-t", str(actions.config_file)])


def _start_or_config_error(actions: MenuActions, config_error: str | None) -> str:
    if config_error:
        return f"Error in config: {config_error}"
    return _action("Start backup", [*actions.program, "--start"])


def render_menu(
    snapshot: StatusSnapshot,
    config_error: str | None,
    actions: MenuActions,
) -> list[str]:
    """Return the plugin output lines for *snapshot*."""
    lines = [HEADERS[snapshot.status], SEPARATOR]

    if snapshot.status is RunStatus.RUNNING:
        lines.append(f"Running for {snapshot.duration_minutes} minutes")
        lines.append(_action("Stop backup", [*actions.program, "--stop"]))
        return lines

    if snapshot.status is RunStatus.FAILED:
        lines.append(f"Backup failed! (after {snapshot.duration_minutes} minutes)")
    elif snapshot.status is RunStatus.SUCCEEDED:
        when = format_backup_date(snapshot.started_at) if snapshot.started_at else "never"
        lines.append(f"Last backup {when}")

    lines.append(_configure(actions))
    lines.append(_start_or_config_error(actions, config_error))
    return lines


def describe_status(snapshot: StatusSnapshot) -> str:
    """One-line summary of *snapshot* for the tray menu and tooltip."""
    if snapshot.status is RunStatus.RUNNING:
        return f"Running for {snapshot.duration_minutes} minutes"
    if snapshot.status is RunStatus.FAILED:
        return f"Backup failed after {snapshot.duration_minutes} minutes"
    if snapshot.status is RunStatus.SUCCEEDED and snapshot.started_at:
        return f"Last backup {format_backup_date(snapshot.started_at)}"
    return "No backup status"
