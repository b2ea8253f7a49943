"""Rsync Backup: scheduled rsync backups with a status-bar display.

Tracks each backup run with marker files in a working folder, derives
the current status from those markers, and guarantees that only one
rsync job runs at a time.
"""

__version__ = "1.0.0"
__app_name__ = "Rsync Backup"
