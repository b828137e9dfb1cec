# src/minipack/utils_logs.py
"""Console logger for builds.

A bundle written to stdout (``--out -``) shares the terminal with build
progress, so records are split by severity: progress (info and below) goes to
stdout, problems (warning and above) to stderr. ``--quiet`` and per-build
``log_level`` only move the threshold; the split never changes.

Extra levels: TRACE sits under DEBUG (per-asset resolution detail) and SILENT
sits above CRITICAL (nothing at all, for scripted builds).
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Generator
from contextlib import contextmanager, suppress
from typing import Any, TextIO, cast

from .constants import DEFAULT_ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL
from .meta import PROGRAM_ENV


# --- Constants ---------------------------------------------------------------

RESET = "\033[0m"
CYAN = "\033[36m"
GRAY = "\033[90m"

TRACE_LEVEL = logging.DEBUG - 5
SILENT_LEVEL = logging.CRITICAL + 1

LEVEL_ORDER = [
    "trace",
    "debug",
    "info",
    "warning",
    "error",
    "critical",
    "silent",
]

TAG_STYLES = {
    "TRACE": (GRAY, "[TRACE]"),
    "DEBUG": (CYAN, "[DEBUG]"),
    "WARNING": ("", "⚠️ "),
    "ERROR": ("", "❌ "),
    "CRITICAL": ("", "💥 "),
}


def level_number(level: str | int) -> int | None:
    """Map a level name (any case) or number to a number; None if unknown."""
    if isinstance(level, int):
        return level
    name = level.lower()
    if name not in LEVEL_ORDER:
        return None
    return cast("int", logging.getLevelName(name.upper()))


def safe_log(msg: str) -> None:
    """Last-resort output for when the logger itself is broken."""
    stream = cast("TextIO", sys.__stderr__)
    try:
        print(msg, file=stream)
    except Exception:  # noqa: BLE001
        with suppress(Exception):
            stream.write(f"[INTERNAL] {msg}\n")


# --- Logger ------------------------------------------------------------------


class CLILogger(logging.Logger):
    """Logger with build-friendly levels and stdout/stderr routing."""

    enable_color: bool = False

    _logging_module_extended: bool = False

    def __init__(
        self,
        name: str,
        level: int = logging.NOTSET,
        *,
        enable_color: bool | None = None,
    ) -> None:
        super().__init__(name, level)

        if self.level == logging.NOTSET:
            self.setLevel(self.determine_log_level())

        self.enable_color = (
            enable_color
            if enable_color is not None
            else type(self).determine_color_enabled()
        )
        self.propagate = False
        self.addHandler(DualStreamHandler(self))

    def setLevel(self, level: int | str) -> None:  # noqa: N802
        """Case insensitive version."""
        if isinstance(level, str):
            level = level.upper()
        super().setLevel(level)

    @classmethod
    def determine_color_enabled(cls) -> bool:
        """Color only for a terminal, unless NO_COLOR or FORCE_COLOR says otherwise."""
        if "NO_COLOR" in os.environ:
            return False
        if os.getenv("FORCE_COLOR", "").lower() in {"1", "true", "yes"}:
            return True
        return sys.stdout.isatty()

    @classmethod
    def extend_logging_module(cls) -> bool:
        """Register TRACE and SILENT with `logging` once per process.

        Returns False when it already ran.
        """
        if cls._logging_module_extended:
            return False
        cls._logging_module_extended = True

        logging.setLoggerClass(cls)
        logging.addLevelName(TRACE_LEVEL, "TRACE")
        logging.addLevelName(SILENT_LEVEL, "SILENT")
        return True

    def determine_log_level(
        self,
        *,
        args: argparse.Namespace | None = None,
        root_log_level: str | None = None,
        build_log_level: str | None = None,
    ) -> str:
        """Pick the level for a build.

        First hit wins: --log-level/--quiet/--verbose, then MINIPACK_LOG_LEVEL
        or LOG_LEVEL, then the build's own ``log_level``, then the config
        root's, then the default.
        """
        args_level = getattr(args, "log_level", None)
        if args_level is not None:
            return cast("str", args_level).upper()

        for env_var in (f"{PROGRAM_ENV}_{DEFAULT_ENV_LOG_LEVEL}", DEFAULT_ENV_LOG_LEVEL):
            env_log_level = os.getenv(env_var)
            if env_log_level:
                return env_log_level.upper()

        return (build_log_level or root_log_level or DEFAULT_LOG_LEVEL).upper()

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.getEffectiveLevel())

    def _log_failure(
        self, level: int, msg: str, args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> None:
        # tracebacks are noise unless someone asked for debug output
        exc_info = kwargs.pop("exc_info", True)
        stacklevel = kwargs.pop("stacklevel", 2) + 1
        if not self.isEnabledFor(logging.DEBUG):
            exc_info = None
        self.log(level, msg, *args, exc_info=exc_info, stacklevel=stacklevel)

    def error_if_not_debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a build failure; the traceback shows only at debug or below."""
        self._log_failure(logging.ERROR, msg, args, kwargs)

    def critical_if_not_debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_failure(logging.CRITICAL, msg, args, kwargs)

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(TRACE_LEVEL):
            self._log(TRACE_LEVEL, msg, args, **kwargs)

    @contextmanager
    def use_level(
        self, level: str | int, *, minimum: bool = False
    ) -> Generator[None, None, None]:
        """Run a block (usually one build) at another level.

        Args:
            level: Level name or number.
            minimum: Only switch when the new level is more verbose than the
                current one, so a per-build "debug" never hides a global TRACE.
        """
        prev_level = self.level
        level_no = level_number(level)
        if level_no is None:
            self.error("Unknown log level: %r", level)
            yield
            return

        if not minimum or level_no < prev_level:
            self.setLevel(level_no)
        try:
            yield
        finally:
            self.setLevel(prev_level)


# --- Formatting and routing --------------------------------------------------


class TagFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        tag_color, tag_text = TAG_STYLES.get(record.levelname, ("", ""))
        msg = super().format(record)
        if not tag_text:
            return msg
        if getattr(record, "enable_color", False) and tag_color:
            return f"{tag_color}{tag_text}{RESET} {msg}"
        return f"{tag_text} {msg}"


class DualStreamHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Progress to stdout, problems to stderr.

    Streams are looked up per record, so redirected or captured
    stdout/stderr are always honored.
    """

    def __init__(self, owner: CLILogger) -> None:
        super().__init__()  # pyright: ignore[reportUnknownMemberType]
        self.owner = owner
        self.setFormatter(TagFormatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        self.stream = sys.stderr if record.levelno >= logging.WARNING else sys.stdout
        record.enable_color = self.owner.enable_color
        super().emit(record)
