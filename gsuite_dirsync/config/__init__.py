"""
gsuite_dirsync.config - Configuration management module

Contains settings validation, the Secrets Manager and YAML sources, and
the configuration template generator.
"""

from gsuite_dirsync.config.loader import ConfigError, ConfigLoader
from gsuite_dirsync.config.secrets import CONFIG_SECRET, get_secrets
from gsuite_dirsync.config.settings import (
    Environment,
    Settings,
    SettingsError,
    load_settings,
)

__all__ = [
    "CONFIG_SECRET",
    "ConfigError",
    "ConfigLoader",
    "Environment",
    "Settings",
    "SettingsError",
    "get_secrets",
    "load_settings",
]
