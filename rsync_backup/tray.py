"""System tray icon for Rsync Backup.

A persistent status-bar presence whose colour follows the backup
status, with a menu to start or stop a backup, edit the configuration,
open the log, and quit.
"""

import contextlib
import logging
from typing import Any, Protocol

import pystray
from PIL import Image, ImageDraw
from PIL.Image import Image as PILImage

from rsync_backup import __app_name__
from rsync_backup.status import RunStatus

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    RunStatus.RUNNING: "#0078D4",    # blue
    RunStatus.FAILED: "#C4001A",     # red
    RunStatus.SUCCEEDED: "#0A6E0A",  # green
    RunStatus.NO_STATUS: "#888888",  # grey
}


class TrayCallbacks(Protocol):
    """Expected callback interface for the tray icon owner."""

    def on_start_backup(self) -> None:
        ...

    def on_stop_backup(self) -> None:
        ...

    def on_configure(self) -> None:
        ...

    def on_open_log(self) -> None:
        ...

    def on_quit(self) -> None:
        ...

    def is_backup_running(self) -> bool:
        ...

    def can_start_backup(self) -> bool:
        ...

    def get_status_summary(self) -> str:
        """Return a human-readable status string."""
        ...


def create_icon_image(color: str, size: int = 64) -> PILImage:
    """Draw a rounded square in *color* with a white ring."""
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.rounded_rectangle(
        [(2, 2), (size - 2, size - 2)],
        radius=10,
        fill=color,
    )
    margin = size // 4
    draw.ellipse(
        [(margin, margin), (size - margin, size - margin)],
        outline="white",
        width=max(2, size // 12),
    )
    return img


class SysTray:
    """Owns the pystray icon and rebuilds its menu on every status change."""

    def __init__(self, callbacks: TrayCallbacks):
        self._callbacks = callbacks
        self._icon: Any | None = None

    def _build_menu(self) -> pystray.Menu:
        running = self._callbacks.is_backup_running()
        return pystray.Menu(
            pystray.MenuItem(self._callbacks.get_status_summary(), None, enabled=False),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem(
                "Start backup",
                lambda: self._callbacks.on_start_backup(),
                enabled=not running and self._callbacks.can_start_backup(),
            ),
            pystray.MenuItem(
                "Stop backup",
                lambda: self._callbacks.on_stop_backup(),
                enabled=running,
            ),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Configure...", lambda: self._callbacks.on_configure()),
            pystray.MenuItem("Open log", lambda: self._callbacks.on_open_log()),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Quit", lambda: self._callbacks.on_quit()),
        )

    def create(self, status: RunStatus) -> None:
        """Build the icon; call run() afterwards to show it."""
        self._icon = pystray.Icon(
            name="RsyncBackup",
            icon=create_icon_image(STATUS_COLORS[status]),
            title=__app_name__,
            menu=self._build_menu(),
        )

    def run(self, setup=None) -> None:
        """Show the icon and block in the platform event loop until stop()."""
        if self._icon is None:
            raise RuntimeError("Tray icon not created")
        logger.info("System tray icon started.")
        self._icon.run(setup=setup)

    def stop(self) -> None:
        """Remove the tray icon and end its event loop."""
        if self._icon:
            with contextlib.suppress(Exception):
                self._icon.stop()
            self._icon = None
        logger.info("System tray icon stopped.")

    def show_status(self, status: RunStatus, tooltip: str) -> None:
        """Recolour the icon, update the tooltip and rebuild the menu."""
        if not self._icon:
            return
        self._icon.icon = create_icon_image(STATUS_COLORS[status])
        self._icon.title = tooltip
        self._icon.menu = self._build_menu()
        self._icon.update_menu()
