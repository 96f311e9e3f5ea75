"""
Logging configuration module for gsuite_dirsync.

Provides centralized logging configuration with support for:
- Console logging (stderr, which Lambda forwards to CloudWatch)
- Optional file logging for local runs
- Configurable log levels via environment variables
- Colored output for better readability (when supported)
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

# Root logger name for the package
LOGGER_NAME = "gsuite_dirsync"

# Default log format
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Simplified format for console (less verbose)
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

# Verbose format (includes more details)
VERBOSE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)

# Date format for log timestamps
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Environment variable names
ENV_LOG_LEVEL = "DIRSYNC_LOG_LEVEL"
ENV_DEBUG = "DIRSYNC_DEBUG"
ENV_LOG_FILE = "DIRSYNC_LOG_FILE"


class ColoredFormatter(logging.Formatter):
    """
    A logging formatter that adds ANSI color codes to log messages.

    Colors are only applied when output is to a terminal that supports them.
    """

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True,
    ):
        """
        Initialize the colored formatter.

        Args:
            fmt: Log message format string
            datefmt: Date format string
            use_colors: Whether to use colors (auto-detected if not specified)
        """
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and self._supports_color()

    def _supports_color(self) -> bool:
        """Check if the terminal supports colors."""
        if not hasattr(sys.stderr, "isatty") or not sys.stderr.isatty():
            return False

        # https://no-color.org/
        if os.environ.get("NO_COLOR"):
            return False

        term = os.environ.get("TERM", "")
        return term != "dumb"

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional colors."""
        # Work on a copy so other handlers see the plain record
        record = logging.makeLogRecord(record.__dict__)

        if self.use_colors and record.levelname in self.COLORS:
            color = self.COLORS[record.levelname]
            record.levelname = f"{color}{record.levelname}{self.RESET}"
            record.msg = f"{color}{record.msg}{self.RESET}"

        return super().format(record)


def get_log_level_from_env() -> int:
    """
    Get the logging level from environment variables.

    Checks DIRSYNC_DEBUG and DIRSYNC_LOG_LEVEL to determine the
    appropriate log level.

    Returns:
        Logging level constant (e.g., logging.DEBUG, logging.INFO)
    """
    if os.environ.get(ENV_DEBUG, "").lower() in ("1", "true", "yes"):
        return logging.DEBUG

    level_str = os.environ.get(ENV_LOG_LEVEL, "INFO").upper()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    return level_map.get(level_str, logging.INFO)


def get_log_file_path() -> Optional[Path]:
    """
    Get the log file path from the environment.

    File logging is opt-in: the Lambda filesystem is read-only outside /tmp,
    so nothing is written unless DIRSYNC_LOG_FILE names a file.

    Returns:
        Path to log file, or None if file logging is disabled
    """
    log_file = os.environ.get(ENV_LOG_FILE)
    if not log_file or log_file.lower() in ("none", "disabled"):
        return None
    return Path(log_file)


def setup_logging(
    level: Optional[int] = None,
    verbose: bool = False,
    log_file: Optional[Path] = None,
    use_colors: bool = True,
) -> logging.Logger:
    """
    Configure logging for the gsuite_dirsync application.

    Sets up a console handler and, when a log file is configured, a file
    handler that always captures DEBUG output.

    Args:
        level: Logging level (e.g., logging.DEBUG). If None, determined from
               environment variables.
        verbose: If True, use verbose format with more details.
        log_file: Path to log file. If None, uses DIRSYNC_LOG_FILE if set.
        use_colors: If True, use colored output for console (when supported).

    Returns:
        The root logger for gsuite_dirsync

    Example:
        # Lambda runtime
        setup_logging(use_colors=False)

        # Verbose mode for CLI
        setup_logging(verbose=True)
    """
    if level is None:
        level = get_log_level_from_env()
    if verbose:
        level = logging.DEBUG

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    # Avoid duplicate lines through the Lambda runtime's root handler
    logger.propagate = False

    console_format = VERBOSE_FORMAT if verbose else CONSOLE_FORMAT

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    console_formatter: logging.Formatter
    if use_colors:
        console_formatter = ColoredFormatter(console_format, DATE_FORMAT)
    else:
        console_formatter = logging.Formatter(console_format, DATE_FORMAT)

    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    file_path = log_file or get_log_file_path()
    if file_path:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(file_path, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(VERBOSE_FORMAT, DATE_FORMAT))
            logger.addHandler(file_handler)

            logger.debug(f"Log file: {file_path}")
        except OSError as e:
            logger.warning(f"Could not create log file {file_path}: {e}")

    return logger


def is_logging_configured() -> bool:
    """Check whether setup_logging() has attached handlers yet."""
    return bool(logging.getLogger(LOGGER_NAME).handlers)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Returns a child logger of the gsuite_dirsync logger hierarchy.

    Args:
        name: Name of the module (typically __name__)

    Returns:
        Logger instance for the module
    """
    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"

    return logging.getLogger(name)


__all__ = [
    "setup_logging",
    "get_logger",
    "is_logging_configured",
    "ColoredFormatter",
    "get_log_level_from_env",
    "get_log_file_path",
    "LOGGER_NAME",
    "DEFAULT_FORMAT",
    "CONSOLE_FORMAT",
    "VERBOSE_FORMAT",
    "DATE_FORMAT",
]
