# src/minipack/build.py
"""Build pipeline: graph, bundle, banner, output and post-processing for one build."""

import contextlib
import logging
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path

from .asset import Graph
from .bundle import emit_bundle
from .config.config_types import BuildConfigResolved, PathResolved
from .constants import (
    BUILD_TIMESTAMP_PLACEHOLDER,
    DEFAULT_DRY_RUN,
    DEFAULT_STDOUT_OUT,
)
from .extract import extract_asset
from .graph import build_graph
from .logs import get_logger
from .utils import bundle_output_file, find_package_json_version, is_ci
from .verify_bundle import post_bundle_processing


# --------------------------------------------------------------------------- #
# banner
# --------------------------------------------------------------------------- #


def extract_commit(root_path: Path) -> str:
    """Short git commit hash, embedded only for CI or release builds."""
    logger = get_logger()
    if not is_ci():
        return "unknown (local build)"
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],  # noqa: S607
            cwd=root_path,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()
    except subprocess.CalledProcessError as e:
        logger.warning("git rev-parse failed: %s", e.stderr.strip())
    except FileNotFoundError:
        logger.warning("git not available in environment")
    return "unknown"


def extract_version(build_cfg: BuildConfigResolved, entry_path: Path) -> str:
    """Config `version`, else the nearest package.json version, else 'unknown'."""
    version = build_cfg.get("version")
    if version:
        return version
    return find_package_json_version(entry_path) or "unknown"


def _format_header_line(*, display_name: str, description: str, fallback: str) -> str:
    name = display_name.strip() or fallback
    desc = description.strip()
    return f"{name} — {desc}" if desc else name


def _comment_lines(text: str) -> list[str]:
    lines: list[str] = []
    for line in text.strip("\n").splitlines():
        stripped = line.strip()
        lines.append(line if stripped.startswith("//") else f"// {line}".rstrip())
    return lines


def render_banner(
    build_cfg: BuildConfigResolved,
    entry_path: Path,
    *,
    commit: str | None = None,
    build_date: str | None = None,
) -> str:
    """Comment block placed above the bundle runtime."""
    if build_date is None:
        if build_cfg.get("disable_build_timestamp"):
            build_date = BUILD_TIMESTAMP_PLACEHOLDER
        else:
            build_date = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    if commit is None:
        commit = extract_commit(entry_path.parent)

    header = _format_header_line(
        display_name=build_cfg.get("display_name", ""),
        description=build_cfg.get("description", ""),
        fallback=entry_path.name,
    )
    lines = [f"// {header}"]
    license_header = build_cfg.get("license_header")
    if license_header:
        lines.extend(_comment_lines(license_header))
    lines.extend(
        [
            f"// Version: {extract_version(build_cfg, entry_path)}",
            f"// Commit: {commit}",
            f"// Build Date: {build_date}",
        ]
    )
    repo = build_cfg.get("repo")
    if repo:
        lines.append(f"// Repo: {repo}")
    return "\n".join(lines) + "\n\n"


# --------------------------------------------------------------------------- #
# builds
# --------------------------------------------------------------------------- #


def _absolute(path_resolved: PathResolved) -> Path:
    return (Path(path_resolved["root"]) / path_resolved["path"]).resolve()


def resolve_output_path(build_cfg: BuildConfigResolved) -> Path | None:
    """Final bundle file for a build, or None when it goes to stdout."""
    out = build_cfg["out"]
    if str(out["path"]) == DEFAULT_STDOUT_OUT:
        return None
    return bundle_output_file(
        _absolute(out), _absolute(build_cfg["entry"]), str(out["path"])
    )


def run_build(build_cfg: BuildConfigResolved) -> Graph:
    """Run a single build from a fully resolved config.

    Builds the graph, emits the bundle, then writes and post-processes it
    unless this is a dry run.

    Returns:
        The dependency graph, so callers can watch its asset paths.

    Raises:
        FileNotFoundError: the entry file does not exist.
        ExtractionError, ResolutionError, GraphLimitError: graph building failed.
    """
    logger = get_logger()
    dry_run = build_cfg.get("dry_run", DEFAULT_DRY_RUN)

    entry_path = _absolute(build_cfg["entry"])
    if not entry_path.is_file():
        xmsg = f"Entry file not found: {entry_path}"
        raise FileNotFoundError(xmsg)

    out_path = resolve_output_path(build_cfg)

    # bundle text owns stdout; keep info chatter off it at the default level
    quiet = out_path is None and logger.getEffectiveLevel() == logging.INFO
    context = logger.use_level("warning") if quiet else contextlib.nullcontext()

    with context:
        logger.info("📦 Bundling %s", entry_path)
        graph = build_graph(
            entry_path,
            extract_asset,
            max_assets=build_cfg["max_assets"],
            extensions=build_cfg["extensions"],
        )
        logger.debug("Graph has %d asset(s)", len(graph))

        text = emit_bundle(graph)
        if build_cfg["banner"]:
            text = render_banner(build_cfg, entry_path) + text

        target = "stdout" if out_path is None else str(out_path)
        if dry_run:
            logger.info(
                "🧪 (dry-run) Would write %d module(s) to: %s", len(graph), target
            )
            return graph

        if out_path is None:
            sys.stdout.write(text)
            sys.stdout.flush()
            return graph

        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        post_bundle_processing(out_path, post_processing=build_cfg["post_processing"])
        logger.info("✅ Bundle written → %s (%d module(s))", out_path, len(graph))

    return graph


def run_all_builds(
    resolved_builds: list[BuildConfigResolved],
    *,
    dry_run: bool,
) -> list[Path]:
    """Run every build in order, each at its own log level.

    Returns:
        Every asset path seen across all graphs (for watch mode).
    """
    logger = get_logger()
    root_level = logger.level_name
    logger.trace(f"[run_all_builds] Processing {len(resolved_builds)} build(s)")

    seen: dict[Path, None] = {}
    for i, build_cfg in enumerate(resolved_builds, 1):
        build_log_level = build_cfg.get("log_level")
        build_cfg["dry_run"] = dry_run

        needs_override = bool(build_log_level) and build_log_level != root_level
        context = (
            logger.use_level(build_log_level)
            if needs_override
            else contextlib.nullcontext()
        )

        with context:
            if needs_override:
                logger.debug("Overriding log level → %s", build_log_level)
            if len(resolved_builds) > 1:
                logger.info("▶️  Build %d/%d", i, len(resolved_builds))
            graph = run_build(build_cfg)
            seen.update(dict.fromkeys(asset.path for asset in graph))

    if len(resolved_builds) > 1:
        logger.info("🎉 All builds complete.")
    return list(seen)
