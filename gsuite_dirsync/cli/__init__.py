"""CLI package for gsuite_dirsync."""

from gsuite_dirsync.cli.formatters import show_detailed_changes, show_settings
from gsuite_dirsync.cli.main import SCHEDULED_EVENT, cli, get_config_file

__all__ = [
    "SCHEDULED_EVENT",
    "cli",
    "get_config_file",
    "show_detailed_changes",
    "show_settings",
]
