"""
Tray application controller for Rsync Backup.

Long-running alternative to the menu-bar plugin: keeps a tray icon in
sync with the marker files, runs the scheduled-backup check on a timer,
and offers start/stop/configure actions.  Backups themselves still run
in a separate ``--start`` process, so the lock and markers behave the
same whichever front end started them.
"""

import logging
import threading

from rsync_backup import __app_name__
from rsync_backup.config import BackupConfig, ConfigurationInvalidError, load_config
from rsync_backup.context import BackupContext
from rsync_backup.menu import describe_status
from rsync_backup.platform_utils import (
    open_file_in_default_app,
    play_error_sound,
    self_command,
    spawn_detached,
)
from rsync_backup.runner import stop_backup
from rsync_backup.scheduler import start_backup_if_scheduled
from rsync_backup.status import RunStatus, StatusResolver, StatusSnapshot
from rsync_backup.tray import SysTray
from rsync_backup.watcher import MarkerWatcher

logger = logging.getLogger(__name__)

# Running durations are shown in whole minutes.
_POLL_SECONDS = 60


class App:
    """
    Central orchestrator for tray mode.

    Implements the TrayCallbacks protocol expected by SysTray.
    """

    def __init__(self, ctx: BackupContext) -> None:
        self.ctx = ctx
        self.resolver = StatusResolver(ctx.marker_store())
        self._tray = SysTray(self)
        self._watcher = MarkerWatcher(ctx.working_folder, on_change=self.refresh)
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._snapshot = self.resolver.resolve()
        self._config: BackupConfig | None = None
        self._config_error = ""
        self.reload_config()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Show the tray icon and block until Quit."""
        logger.info("%s tray starting.", __app_name__)
        self._tray.create(self._snapshot.status)
        self._tray.run(setup=self._on_tray_ready)

    def _on_tray_ready(self, icon) -> None:
        icon.visible = True
        try:
            self._watcher.start()
        except FileNotFoundError:
            logger.warning("Marker watcher not started; relying on polling.")
        threading.Thread(target=self._poll, daemon=True, name="StatusPoll").start()
        self.refresh()

    def _poll(self) -> None:
        while not self._stop.wait(timeout=_POLL_SECONDS):
            self.reload_config()
            self.check_schedule()
            self.refresh()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def reload_config(self) -> None:
        """Re-read config.jsonc; the user may have edited it."""
        try:
            config = load_config(self.ctx.config_file)
        except ConfigurationInvalidError as exc:
            with self._lock:
                if str(exc) != self._config_error:
                    logger.warning("Configuration invalid: %s", exc)
                self._config, self._config_error = None, str(exc)
            return
        with self._lock:
            self._config, self._config_error = config, ""

    def check_schedule(self) -> bool:
        with self._lock:
            config, snapshot = self._config, self._snapshot
        if config is None:
            return False
        return start_backup_if_scheduled(config, snapshot)

    def refresh(self) -> StatusSnapshot:
        """Re-resolve the status and push it to the tray."""
        snapshot = self.resolver.resolve()
        with self._lock:
            previous, self._snapshot = self._snapshot, snapshot

        if snapshot.status is RunStatus.FAILED and previous.status is not RunStatus.FAILED:
            logger.warning("Backup failed.")
            play_error_sound()

        self._tray.show_status(snapshot.status, f"{__app_name__}: {self.get_status_summary()}")
        return snapshot

    # ------------------------------------------------------------------
    # TrayCallbacks implementation
    # ------------------------------------------------------------------

    def on_start_backup(self) -> None:
        if not self.can_start_backup():
            logger.warning("Cannot start backup: %s", self._config_error)
            return
        spawn_detached([*self_command(), "--start"])

    def on_stop_backup(self) -> None:
        threading.Thread(
            target=stop_backup, args=(self.ctx,), daemon=True, name="StopBackup"
        ).start()

    def on_configure(self) -> None:
        open_file_in_default_app(self.ctx.config_file)

    def on_open_log(self) -> None:
        open_file_in_default_app(self.ctx.rsync_stdout_log)

    def on_quit(self) -> None:
        logger.info("Shutting down.")
        self._stop.set()
        self._watcher.stop()
        self._tray.stop()

    def is_backup_running(self) -> bool:
        with self._lock:
            return self._snapshot.status is RunStatus.RUNNING

    def can_start_backup(self) -> bool:
        with self._lock:
            return self._config is not None

    def get_status_summary(self) -> str:
        with self._lock:
            snapshot, error = self._snapshot, self._config_error
        summary = describe_status(snapshot)
        if error:
            summary += f" (error in config: {error})"
        return summary
