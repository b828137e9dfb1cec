# src/minipack/cli.py

import argparse
import platform
import sys
from dataclasses import dataclass
from difflib import get_close_matches
from pathlib import Path

from .actions import get_metadata, watch_for_changes
from .build import run_all_builds
from .config import (
    RootConfig,
    RootConfigResolved,
    load_and_validate_config,
    resolve_config,
)
from .constants import (
    DEFAULT_DRY_RUN,
    DEFAULT_MAX_ASSETS,
    DEFAULT_STDOUT_OUT,
    DEFAULT_WATCH_INTERVAL,
)
from .errors import ExtractionError, GraphLimitError
from .logs import get_app_logger
from .meta import (
    DESCRIPTION,
    PROGRAM_DISPLAY,
    PROGRAM_SCRIPT,
)
from .selftest import run_selftest
from .utils import cast_hint, shorten_path_for_display
from .utils_logs import LEVEL_ORDER, safe_log


# --------------------------------------------------------------------------- #
# CLI setup and helpers
# --------------------------------------------------------------------------- #


class HintingArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        # Build known option strings: ["-v", "--verbose", "--log-level", ...]
        known_opts: list[str] = []
        for action in self._actions:
            known_opts.extend([s for s in action.option_strings if s])

        hint_lines: list[str] = []
        # "unrecognized arguments: --mxa-assets ..."
        if "unrecognized arguments:" in message:
            bad = message.split("unrecognized arguments:", 1)[1].strip()
            bad_args = [tok for tok in bad.split() if tok.startswith("-")]
            for arg in bad_args:
                close = get_close_matches(arg, known_opts, n=1, cutoff=0.6)
                if close:
                    hint_lines.append(f"Hint: did you mean {close[0]}?")

        self.print_usage(sys.stderr)
        full = f"{self.prog}: error: {message}"
        if hint_lines:
            full += "\n" + "\n".join(hint_lines)
        self.exit(2, full + "\n")


def _setup_parser() -> argparse.ArgumentParser:
    """Define and return the CLI argument parser."""
    parser = HintingArgumentParser(prog=PROGRAM_SCRIPT, description=DESCRIPTION)

    # --- Positional shorthand arguments ---
    parser.add_argument(
        "positional_entry",
        nargs="?",
        metavar="ENTRY",
        help="Entry module of the bundle (shorthand for --entry).",
    )
    parser.add_argument(
        "positional_out",
        nargs="?",
        metavar="OUT",
        help=(
            "Output file or directory (shorthand for --out). "
            "Use '-' to write the bundle to stdout."
        ),
    )

    # --- Standard flags ---
    parser.add_argument("--entry", help="Override the entry module.")
    parser.add_argument(
        "-o",
        "--out",
        help=(
            "Override output file or directory. "
            "A trailing slash or a path without a .js/.mjs/.cjs suffix is a "
            "directory and gets '<entry>.bundle.js'. "
            "Examples: 'dist/app.js' (file), 'dist/' (directory), '-' (stdout)."
        ),
    )
    parser.add_argument("-c", "--config", help="Path to build config file.")
    parser.add_argument(
        "--extensions",
        nargs="+",
        metavar="EXT",
        help="Extensions tried when a specifier has none (e.g. .js,.mjs).",
    )
    parser.add_argument(
        "--max-assets",
        type=int,
        metavar="N",
        default=None,
        help=(
            "Stop with an error once N modules were discovered; 0 disables "
            f"the limit (default: {DEFAULT_MAX_ASSETS})."
        ),
    )
    parser.add_argument(
        "--no-banner",
        action="store_true",
        help="Do not prepend the comment banner to the bundle.",
    )

    parser.add_argument(
        "--watch",
        nargs="?",
        type=float,
        metavar="SECONDS",
        default=None,
        const=None,
        help=(
            "Rebuild automatically on changes. "
            "Optionally specify interval in seconds"
            f" (default config or: {DEFAULT_WATCH_INTERVAL}). "
        ),
    )

    # --- Color ---
    color = parser.add_mutually_exclusive_group()
    color.add_argument(
        "--no-color",
        dest="use_color",
        action="store_const",
        const=False,
        help="Disable ANSI color output.",
    )
    color.add_argument(
        "--color",
        dest="use_color",
        action="store_const",
        const=True,
        help="Force-enable ANSI color output (overrides auto-detect).",
    )
    color.set_defaults(use_color=None)

    # --- Version and verbosity ---
    parser.add_argument("--version", action="store_true", help="Show version info.")

    log_level = parser.add_mutually_exclusive_group()
    log_level.add_argument(
        "-q",
        "--quiet",
        action="store_const",
        const="warning",
        dest="log_level",
        help="Suppress non-critical output (same as --log-level warning).",
    )
    log_level.add_argument(
        "-v",
        "--verbose",
        action="store_const",
        const="debug",
        dest="log_level",
        help="Verbose output (same as --log-level debug).",
    )
    log_level.add_argument(
        "--log-level",
        choices=LEVEL_ORDER,
        default=None,
        dest="log_level",
        help="Set log verbosity level.",
    )
    parser.add_argument(
        "--selftest",
        action="store_true",
        help="Run a built-in sanity test to verify tool correctness.",
    )

    # --- Build execution mode ---
    build_mode = parser.add_mutually_exclusive_group()
    build_mode.add_argument(
        "--dry-run",
        action="store_true",
        help="Build the module graph without writing the bundle.",
    )
    build_mode.add_argument(
        "--validate-config",
        action="store_true",
        help=(
            "Validate configuration file and resolved settings without "
            "building (includes CLI arguments and environment variables)."
        ),
    )
    parser.add_argument(
        "--disable-build-timestamp",
        action="store_true",
        help="Disable build timestamps for deterministic builds (uses placeholder).",
    )
    return parser


def _normalize_positional_args(
    args: argparse.Namespace,
    parser: argparse.ArgumentParser,
) -> None:
    """Fold ENTRY/OUT positionals into --entry/--out, rejecting conflicts."""
    logger = get_app_logger()
    entry_pos: str | None = getattr(args, "positional_entry", None)
    out_pos: str | None = getattr(args, "positional_out", None)

    if entry_pos and getattr(args, "entry", None):
        parser.error("Cannot combine a positional ENTRY with --entry.")
    if out_pos and getattr(args, "out", None):
        parser.error("Cannot combine a positional OUT with --out.")

    if entry_pos:
        logger.trace(f"Interpreting positional {entry_pos!r} as --entry.")
        args.entry = entry_pos
    if out_pos:
        logger.trace(f"Interpreting positional {out_pos!r} as --out.")
        args.out = out_pos
    args.positional_entry = None
    args.positional_out = None


# --------------------------------------------------------------------------- #
# Main entry helpers
# --------------------------------------------------------------------------- #


@dataclass
class _LoadedConfig:
    """Container for loaded and resolved configuration data."""

    config_path: Path | None
    root_cfg: RootConfig
    resolved: RootConfigResolved
    config_dir: Path
    cwd: Path


def _initialize_logger(args: argparse.Namespace) -> None:
    """Initialize logger with CLI args, env vars, and defaults."""
    logger = get_app_logger()
    log_level = logger.determine_log_level(args=args)
    logger.setLevel(log_level)
    use_color = getattr(args, "use_color", None)
    logger.enable_color = (
        use_color if use_color is not None else logger.determine_color_enabled()
    )
    logger.trace("[BOOT] log-level initialized: %s", logger.level_name)

    logger.debug(
        "Runtime: Python %s (%s)\n    %s",
        platform.python_version(),
        platform.python_implementation(),
        sys.version.replace("\n", " "),
    )


def _handle_early_exits(args: argparse.Namespace) -> int | None:
    """
    Handle early exit conditions (version, selftest, Python version check).

    Returns exit code if we should exit early, None otherwise.
    """
    logger = get_app_logger()

    # --- Version flag ---
    if getattr(args, "version", None):
        meta = get_metadata()
        logger.info("%s %s (%s)", PROGRAM_DISPLAY, meta.version, meta.commit)
        return 0

    # --- Python version check ---
    if sys.version_info < (3, 10):
        logger.error("%s requires Python 3.10 or newer.", PROGRAM_DISPLAY)
        return 1

    # --- Self-test mode ---
    if getattr(args, "selftest", None):
        return 0 if run_selftest() else 1

    return None


def _load_and_resolve_config(
    args: argparse.Namespace,
    parser: argparse.ArgumentParser,
) -> _LoadedConfig:
    """Load config, normalize args, and resolve final configuration."""
    logger = get_app_logger()

    # --- Normalize shorthand arguments ---
    _normalize_positional_args(args, parser)

    # --- Load configuration ---
    config_path: Path | None = None
    root_cfg: RootConfig | None = None
    config_result = load_and_validate_config(args)
    if config_result is not None:
        config_path, root_cfg, _validation_summary = config_result

    logger.trace("[CONFIG] log-level re-resolved from config: %s", logger.level_name)

    cwd = Path.cwd().resolve()
    config_dir = config_path.parent if config_path else cwd

    # --- CLI-only mode fallback ---
    if root_cfg is None:
        logger.debug("No config file found — using CLI-only mode.")
        root_cfg = cast_hint(RootConfig, {})

    # a config without builds still describes one build: the CLI entry
    if not root_cfg.get("builds"):
        root_cfg = cast_hint(RootConfig, {**root_cfg, "builds": [{}]})

    # --- Resolve config with args and defaults ---
    resolved = resolve_config(root_cfg, args, config_dir, cwd, config_path)

    return _LoadedConfig(
        config_path=config_path,
        root_cfg=root_cfg,
        resolved=resolved,
        config_dir=config_dir,
        cwd=cwd,
    )


def _report_resolved(config: _LoadedConfig) -> None:
    """Log the resolved builds for --validate-config."""
    logger = get_app_logger()
    builds = config.resolved["builds"]
    logger.info("✔ Configuration is valid (%d build(s)).", len(builds))
    for i, build in enumerate(builds, 1):
        entry = Path(build["entry"]["root"]) / build["entry"]["path"]
        out = build["out"]
        out_display = (
            "stdout"
            if str(out["path"]) == DEFAULT_STDOUT_OUT
            else shorten_path_for_display(
                Path(out["root"]) / out["path"],
                cwd=config.cwd,
                config_dir=config.config_dir,
            )
        )
        logger.info(
            "  • build %d: %s → %s (max_assets=%s)",
            i,
            shorten_path_for_display(
                entry, cwd=config.cwd, config_dir=config.config_dir
            ),
            out_display,
            build["max_assets"] or "unbounded",
        )


def _execute_build(
    config: _LoadedConfig,
    args: argparse.Namespace,
    argv: list[str] | None,
) -> None:
    """Execute build either in watch mode or one-time mode."""
    resolved = config.resolved
    watch_enabled = getattr(args, "watch", None) is not None or (
        "--watch" in (argv or [])
    )
    dry_run = bool(getattr(args, "dry_run", DEFAULT_DRY_RUN))

    if watch_enabled:
        watch_for_changes(
            lambda: run_all_builds(resolved["builds"], dry_run=dry_run),
            resolved["builds"],
            interval=resolved["watch_interval"],
            config_path=config.config_path,
        )
    else:
        run_all_builds(resolved["builds"], dry_run=dry_run)


# --------------------------------------------------------------------------- #
# Main entry
# --------------------------------------------------------------------------- #


def main(argv: list[str] | None = None) -> int:
    logger = get_app_logger()  # init (use env + defaults)

    try:
        parser = _setup_parser()
        args = parser.parse_args(argv)

        # --- Early runtime init (use CLI + env + defaults) ---
        _initialize_logger(args)

        # --- Handle early exits (version, selftest, etc.) ---
        early_exit_code = _handle_early_exits(args)
        if early_exit_code is not None:
            return early_exit_code

        # --- Load and resolve configuration ---
        config = _load_and_resolve_config(args, parser)

        # --- Config summary ---
        if config.config_path:
            logger.debug("🔧 Using config: %s", config.config_path.name)
        else:
            logger.debug("🔧 Running in CLI-only mode (no config file).")
        logger.debug("📁 Config root: %s", config.config_dir)
        logger.debug("📂 Invoked from: %s", config.cwd)

        # --- Validate-config mode ---
        if getattr(args, "validate_config", None):
            _report_resolved(config)
            return 0

        # --- Dry-run notice ---
        if getattr(args, "dry_run", None):
            logger.info("🧪 Dry-run mode: no files will be written.")

        # --- Execute build ---
        _execute_build(config, args, argv)

    except (
        FileNotFoundError,
        ValueError,
        TypeError,
        RuntimeError,
        ExtractionError,
        GraphLimitError,
    ) as e:
        # controlled termination
        silent = getattr(e, "silent", False)
        if not silent:
            try:
                logger.error_if_not_debug(str(e))
            except Exception:  # noqa: BLE001
                safe_log(f"[FATAL] Logging failed while reporting: {e}")
        return getattr(e, "code", 1)

    except Exception as e:  # noqa: BLE001
        # unexpected internal error
        try:
            logger.critical_if_not_debug("Unexpected internal error: %s", e)
        except Exception:  # noqa: BLE001
            safe_log(f"[FATAL] Logging failed while reporting: {e}")

        return getattr(e, "code", 1)

    else:
        return 0
