# src/minipack/logs.py

import logging
from typing import cast

from .meta import PROGRAM_PACKAGE
from .utils_logs import CLILogger


class AppLogger(CLILogger):
    """App-specific logger class."""


# --- Logger initialization ---------------------------------------------------

# Must run before any logger is created so getLogger() returns AppLogger.
AppLogger.extend_logging_module()
logging.setLoggerClass(AppLogger)

_APP_LOGGER = cast("AppLogger", logging.getLogger(PROGRAM_PACKAGE))


# --- Convenience utils -------------------------------------------------------


def get_app_logger() -> AppLogger:
    """Return the configured app logger."""
    return _APP_LOGGER


def get_logger() -> AppLogger:
    """Alias of get_app_logger() kept for modules written against it."""
    return get_app_logger()
