# src/minipack/actions.py
import re
import subprocess
import time
from collections.abc import Callable
from contextlib import suppress
from pathlib import Path

from .config.config_types import BuildConfigResolved
from .constants import DEFAULT_WATCH_INTERVAL
from .errors import ExtractionError, GraphLimitError
from .logs import get_logger
from .meta import Metadata


def _entry_paths(resolved_builds: list[BuildConfigResolved]) -> list[Path]:
    return [
        (Path(b["entry"]["root"]) / b["entry"]["path"]).resolve()
        for b in resolved_builds
    ]


def _snapshot(paths: list[Path]) -> dict[Path, float | None]:
    """Map each path to its mtime, or None if it does not exist right now."""
    mtimes: dict[Path, float | None] = {}
    for p in paths:
        try:
            mtimes[p] = p.stat().st_mtime
        except OSError:
            mtimes[p] = None
    return mtimes


def _rebuild_quietly(rebuild_func: Callable[[], list[Path]]) -> list[Path] | None:
    """Run a rebuild; a broken module graph is logged, not fatal, while watching."""
    logger = get_logger()
    try:
        return rebuild_func()
    except (ExtractionError, GraphLimitError, FileNotFoundError) as e:
        logger.error_if_not_debug(str(e))
        return None


def watch_for_changes(
    rebuild_func: Callable[[], list[Path]],
    resolved_builds: list[BuildConfigResolved],
    interval: float = DEFAULT_WATCH_INTERVAL,
    *,
    config_path: Path | None = None,
    max_cycles: int | None = None,
) -> None:
    """Poll file modification times and rebuild when changes are detected.

    `rebuild_func` runs every build and returns the asset paths it read;
    those paths (plus each entry and the config file) are what gets watched.
    Every rebuild is a full rebuild. A build that fails is reported and the
    previous set of watched paths is kept.

    Stops on KeyboardInterrupt, or after `max_cycles` polls when given.
    """
    logger = get_logger()
    logger.info(
        "👀 Watching for changes (interval=%.2fs)... Press Ctrl+C to stop.", interval
    )

    fixed: list[Path] = _entry_paths(resolved_builds)
    if config_path is not None:
        fixed.append(config_path.resolve())

    watched = list(dict.fromkeys([*fixed, *(_rebuild_quietly(rebuild_func) or [])]))
    mtimes = _snapshot(watched)

    cycles = 0
    try:
        while max_cycles is None or cycles < max_cycles:
            cycles += 1
            time.sleep(interval)

            logger.trace(f"[watch] Checking {len(watched)} files for changes")
            current = _snapshot(watched)
            changed = [p for p in watched if current[p] != mtimes.get(p)]
            if not changed:
                continue

            logger.info(
                "\n🔁 Detected %d modified file(s). Rebuilding...", len(changed)
            )
            for p in changed:
                logger.debug("changed: %s", p)

            assets = _rebuild_quietly(rebuild_func)
            if assets is not None:
                watched = list(dict.fromkeys([*fixed, *assets]))
            mtimes = _snapshot(watched)
    except KeyboardInterrupt:
        logger.info("\n🛑 Watch stopped.")


def get_metadata() -> Metadata:
    """Return (version, commit) for this tool.

    Version comes from the project's pyproject.toml when running from a
    source checkout, else from the installed distribution; the commit
    comes from git when available.
    """
    logger = get_logger()
    logger.trace(f"get_metadata ran from: {Path(__file__).resolve()}")

    version = "unknown"
    commit = "unknown"

    root = Path(__file__).resolve().parents[2]
    pyproject = root / "pyproject.toml"
    if pyproject.exists():
        logger.trace(f"trying to read metadata from {pyproject}")
        text = pyproject.read_text(encoding="utf-8")
        match = re.search(r'(?m)^\s*version\s*=\s*["\']([^"\']+)["\']', text)
        if match:
            version = match.group(1)
    else:
        from importlib.metadata import (  # noqa: PLC0415
            PackageNotFoundError,
            version as dist_version,
        )

        with suppress(PackageNotFoundError):
            version = dist_version("minipack")

    with suppress(Exception):
        logger.trace("trying to get commit from git")
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],  # noqa: S607
            cwd=root,
            capture_output=True,
            text=True,
            check=True,
        )
        commit = result.stdout.strip()

    logger.trace(f"got package version {version} with commit {commit}")
    return Metadata(version, commit)
