"""Entry point for Rsync Backup.

Usage:
    python -m rsync_backup            Print status-bar plugin output
                                      (and start a backup if one is due)
    python -m rsync_backup --start    Run a backup now, in the foreground
    python -m rsync_backup --stop     Stop the running backup
    python -m rsync_backup --tray     Run as a system-tray application
"""

import argparse
import logging
import sys

from rsync_backup import __app_name__, __version__
from rsync_backup.config import ConfigurationInvalidError, load_config, load_log_settings
from rsync_backup.context import BackupContext, ensure_working_folder
from rsync_backup.lock import AlreadyRunningError
from rsync_backup.logs import setup_logging
from rsync_backup.menu import MenuActions, render_menu
from rsync_backup.platform_utils import get_working_dir, self_command
from rsync_backup.runner import JobRunner, RunOutcome, stop_backup
from rsync_backup.scheduler import start_backup_if_scheduled
from rsync_backup.status import StatusResolver

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_BAD_CONFIG = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rsync-backup",
        description="Schedule and monitor rsync backups from the menu bar.",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--start", action="store_true", help="Starts the backup")
    group.add_argument("--stop", action="store_true", help="Stops the backup")
    group.add_argument("--tray", action="store_true", help="Run as a tray application")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def start_backup(ctx: BackupContext) -> int:
    """Run one backup in the foreground and return a process exit code."""
    try:
        config = load_config(ctx.config_file)
    except ConfigurationInvalidError as exc:
        logger.error("Not starting backup; configuration invalid: %s", exc)
        return EXIT_BAD_CONFIG

    try:
        outcome = JobRunner(ctx).run(config)
    except AlreadyRunningError as exc:
        logger.info("%s", exc)
        return EXIT_OK
    return EXIT_OK if outcome is RunOutcome.SUCCEEDED else EXIT_FAILED


def print_status(ctx: BackupContext) -> int:
    """Start a backup if one is due, then print the plugin menu."""
    snapshot = StatusResolver(ctx.marker_store()).resolve()

    config_error = None
    try:
        config = load_config(ctx.config_file)
    except ConfigurationInvalidError as exc:
        config_error = str(exc)
    else:
        start_backup_if_scheduled(config, snapshot)

    actions = MenuActions(program=self_command(), config_file=ctx.config_file)
    for line in render_menu(snapshot, config_error, actions):
        print(line)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    ctx = BackupContext.from_folder(get_working_dir())
    ensure_working_folder(ctx)
    setup_logging(ctx.app_log, **load_log_settings(ctx.config_file))
    logger.debug("%s %s in %s", __app_name__, __version__, ctx.working_folder)

    if args.start:
        return start_backup(ctx)
    if args.stop:
        stopped = stop_backup(ctx)
        logger.info("Stop requested; %d process(es) signalled.", stopped)
        return EXIT_OK
    if args.tray:
        from rsync_backup.app import App

        App(ctx).run()
        return EXIT_OK
    return print_status(ctx)


if __name__ == "__main__":
    sys.exit(main())
