"""
gsuite_dirsync.utils - Utility module

Common utilities including lookup key normalization and name parsing.
"""

from gsuite_dirsync.utils.names import parse_display_name
from gsuite_dirsync.utils.normalization import lookup_key
from gsuite_dirsync.utils.paths import DEFAULT_CONFIG_DIR, resolve_config_dir

__all__ = [
    "lookup_key",
    "parse_display_name",
    "resolve_config_dir",
    "DEFAULT_CONFIG_DIR",
]
