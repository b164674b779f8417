"""Logging configuration for ecsdeploy.

Provides a single human-readable stderr handler for CLI use and quiets the
chattier third-party loggers pulled in by boto3.
"""

from __future__ import annotations

import logging
import sys

_NOISY_LOGGERS = ("boto3", "botocore", "urllib3", "s3transfer")


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter for console logs."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = False) -> None:
        """Initialize formatter with optional color support."""
        self.use_colors = use_colors
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        """Format with optional colors for console output."""
        if self.use_colors and record.levelname in self.COLORS:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
            )
        return super().format(record)


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the ecsdeploy logger hierarchy.

    Args:
        verbose: Enable DEBUG output
        quiet: Only emit warnings and errors
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    root_logger = logging.getLogger("ecsdeploy")
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(HumanReadableFormatter(use_colors=sys.stderr.isatty()))
    root_logger.addHandler(handler)
    root_logger.propagate = False

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name."""
    return logging.getLogger(name)
