# src/minipack/config/config_loader.py


import argparse
import logging
import sys
import traceback
from pathlib import Path
from typing import Any, cast

from minipack.logs import get_app_logger
from minipack.meta import PROGRAM_CONFIG
from minipack.utils import (
    ValidationSummary,
    cast_hint,
    load_jsonc,
    load_toml,
    plural,
    remove_path_in_error_message,
    schema_from_typeddict,
)
from minipack.utils_logs import level_number

from .config_types import BuildConfig, RootConfig
from .config_validate import validate_config


PYPROJECT_FILENAME = "pyproject.toml"

# same-directory preference when several config files exist
CONFIG_PRIORITY = {".py": 0, ".jsonc": 1, ".json": 2, ".toml": 3}


def can_run_configless(args: argparse.Namespace) -> bool:
    """An entry file on the command line is enough to build without config."""
    return bool(
        getattr(args, "entry", None) or getattr(args, "positional_entry", None),
    )


def _has_pyproject_section(path: Path) -> bool:
    try:
        data = load_toml(path)
    except (FileNotFoundError, ValueError):
        return False
    return isinstance(data.get("tool", {}).get(PROGRAM_CONFIG), dict)


def find_config(
    args: argparse.Namespace,
    cwd: Path,
    *,
    missing_level: str = "error",
) -> Path | None:
    """Locate a configuration file.

    Search order:
      1. Explicit path from CLI (--config)
      2. .{PROGRAM_CONFIG}.py, .{PROGRAM_CONFIG}.jsonc, .{PROGRAM_CONFIG}.json
         in cwd, then each parent in turn
      3. the nearest pyproject.toml with a [tool.{PROGRAM_CONFIG}] table

    Returns the first matching path, or None if no config was found.
    """
    logger = get_app_logger()

    missing_level_no = level_number(missing_level)
    if missing_level_no is None:
        logger.error("Invalid log level name in find_config(): %s", missing_level)
        missing_level_no = logging.ERROR

    # --- 1. Explicit config path ---
    if getattr(args, "config", None):
        config = Path(args.config).expanduser().resolve()
        logger.trace(f"[find_config] Checking explicit path: {config}")
        if not config.exists():
            xmsg = f"Specified config file not found: {config}"
            raise FileNotFoundError(xmsg)
        if config.is_dir():
            xmsg = f"Specified config path is a directory, not a file: {config}"
            raise ValueError(xmsg)
        return config

    # --- 2. Dot-config files, closest directory wins ---
    candidate_names = [
        f".{PROGRAM_CONFIG}.py",
        f".{PROGRAM_CONFIG}.jsonc",
        f".{PROGRAM_CONFIG}.json",
    ]
    found: list[Path] = []
    current = cwd
    while True:
        found = [current / n for n in candidate_names if (current / n).exists()]
        if found:
            break
        if current.parent == current:
            break
        current = current.parent

    if len(found) > 1:
        found.sort(key=lambda p: CONFIG_PRIORITY.get(p.suffix, 99))
        logger.warning(
            "Multiple config files detected (%s); using %s.",
            ", ".join(p.name for p in found),
            found[0].name,
        )
    if found:
        return found[0]

    # --- 3. pyproject.toml [tool.minipack] ---
    current = cwd
    while True:
        candidate = current / PYPROJECT_FILENAME
        if candidate.is_file():
            if _has_pyproject_section(candidate):
                logger.trace(f"[find_config] Using pyproject table in {candidate}")
                return candidate
            # the project root stops the search even without our table
            break
        if current.parent == current:
            break
        current = current.parent

    logger.log(missing_level_no, f"No config file found in {cwd} or parents")
    return None


def _load_python_config(config_path: Path) -> dict[str, Any] | list[Any] | None:
    logger = get_app_logger()
    config_globals: dict[str, Any] = {}

    # configs are trusted user code and may import helpers next to them
    parent_dir = str(config_path.parent)
    added_to_sys_path = parent_dir not in sys.path
    if added_to_sys_path:
        sys.path.insert(0, parent_dir)

    try:
        source = config_path.read_text(encoding="utf-8")
        exec(compile(source, str(config_path), "exec"), config_globals)  # noqa: S102
        logger.trace(f"[EXEC] globals after exec: {list(config_globals.keys())}")
    except Exception as e:
        tb = traceback.format_exc()
        xmsg = (
            f"Error while executing Python config: {config_path.name}\n"
            f"{type(e).__name__}: {e}\n{tb}"
        )
        raise RuntimeError(xmsg) from e
    finally:
        if added_to_sys_path and sys.path[0] == parent_dir:
            sys.path.pop(0)

    for key in ("config", "builds"):
        if key in config_globals:
            result = config_globals[key]
            if not isinstance(result, (dict, list, type(None))):
                xmsg = (
                    f"{key} in {config_path.name} must be a dict, list, or None"
                    f", not {type(result).__name__}"
                )
                raise TypeError(xmsg)
            return cast("dict[str, Any] | list[Any] | None", result)

    xmsg = f"{config_path.name} did not define `config` or `builds`"
    raise ValueError(xmsg)


def load_config(config_path: Path) -> dict[str, Any] | list[Any] | None:
    """Load configuration data from a file.

    Supports:
      - Python configs: .py files defining `config` or `builds`
      - JSON/JSONC configs: .json, .jsonc files
      - pyproject.toml: the [tool.minipack] table

    Returns:
        The raw object defined in the config (dict, list, or None).
        None means an intentionally empty config.

    Raises:
        ValueError if a .py config defines none of the expected variables.
    """
    logger = get_app_logger()
    logger.trace(f"[load_config] Loading from {config_path} ({config_path.suffix})")

    if config_path.suffix == ".py":
        return _load_python_config(config_path)

    if config_path.suffix == ".toml":
        try:
            data = load_toml(config_path)
        except ValueError as e:
            clean_msg = remove_path_in_error_message(str(e), config_path)
            xmsg = f"Error while loading '{config_path.name}': {clean_msg}"
            raise ValueError(xmsg) from e
        section = data.get("tool", {}).get(PROGRAM_CONFIG)
        return cast("dict[str, Any] | None", section or None)

    try:
        return load_jsonc(config_path)
    except ValueError as e:
        clean_msg = remove_path_in_error_message(str(e), config_path)
        xmsg = (
            f"Error while loading configuration file '{config_path.name}': {clean_msg}"
        )
        raise ValueError(xmsg) from e


# --- shape normalization -----------------------------------------------------


def _parse_list_of_entries(raw_config: list[str]) -> dict[str, Any]:
    # naked list of strings → one build per entry file
    return {"builds": [{"entry": entry} for entry in raw_config]}


def _parse_list_of_builds(raw_config: list[dict[str, Any]]) -> dict[str, Any]:
    # naked list of dicts → multi-build shorthand
    builds = [dict(b) for b in raw_config]
    root: dict[str, Any] = {"builds": builds}

    # app-wide settings can only be defined once: take the first, drop the rest
    for key in ("watch_interval", "disable_build_timestamp"):
        first = next((b[key] for b in builds if key in b), None)
        if first is not None:
            root[key] = first
            for b in builds:
                b.pop(key, None)
    return root


def _parse_dict_multi_builds(
    raw_config: dict[str, Any],
    *,
    build_val: Any,
) -> dict[str, Any]:
    logger = get_app_logger()
    root = dict(raw_config)

    if isinstance(build_val, list) and "builds" not in raw_config:
        logger.warning("Config key 'build' was a list — treating as 'builds'.")
        root["builds"] = build_val
        root.pop("build", None)

    return root


def _parse_dict_single_build(
    raw_config: dict[str, Any],
    *,
    builds_val: Any,
) -> dict[str, Any]:
    logger = get_app_logger()
    root = dict(raw_config)

    if isinstance(builds_val, dict):
        logger.warning("Config key 'builds' was a dict — treating as 'build'.")
        root["builds"] = [builds_val]
    else:
        root["builds"] = [dict(root.pop("build"))]

    # an explicit root means nothing gets hoisted
    return root


def _parse_flat_single_build(raw_config: dict[str, Any]) -> dict[str, Any]:
    # flat build fields: keys valid at both levels move up to the root,
    # everything else (unknown keys included) stays with the build
    root_keys = set(schema_from_typeddict(RootConfig))
    build_keys = set(schema_from_typeddict(BuildConfig))
    hoist_keys = root_keys & build_keys

    build = dict(raw_config)
    root: dict[str, Any] = {k: build.pop(k) for k in hoist_keys if k in build}
    root["builds"] = [build]
    return root


def parse_config(  # noqa: PLR0911
    raw_config: dict[str, Any] | list[Any] | None,
) -> dict[str, Any] | None:
    """Normalize user config into the RootConfig shape (no filesystem work).

    Accepted forms:
      - [] / {} / None               → None (nothing to build)
      - ["src/app.js", "src/cli.js"] → one build per entry
      - [{...}, {...}]               → multi-build list
      - {"builds": [...]}            → multi-build config (returned shape)
      - {"build": {...}}             → single build with root config
      - {...}                        → flat single build

    Unknown keys are preserved for validation.
    """
    logger = get_app_logger()
    logger.trace(f"[parse_config] Parsing {type(raw_config).__name__}")

    if not raw_config:
        return None

    if isinstance(raw_config, list):
        if all(isinstance(x, str) for x in raw_config):
            logger.trace("[parse_config] Detected case: list of entries")
            return _parse_list_of_entries(raw_config)
        if all(isinstance(x, dict) for x in raw_config):
            logger.trace("[parse_config] Detected case: list of builds")
            return _parse_list_of_builds(raw_config)
        xmsg = (
            "Invalid mixed-type list: "
            "all elements must be strings or all must be objects."
        )
        raise TypeError(xmsg)

    if not isinstance(raw_config, dict):  # pyright: ignore[reportUnnecessaryIsInstance]
        xmsg = (
            f"Invalid top-level value: {type(raw_config).__name__} "
            "(expected object, list of objects, or list of strings)"
        )
        raise TypeError(xmsg)

    builds_val = raw_config.get("builds")
    build_val = raw_config.get("build")

    if isinstance(builds_val, list) or (
        isinstance(build_val, list) and "builds" not in raw_config
    ):
        logger.trace("[parse_config] Detected case: root with builds")
        return _parse_dict_multi_builds(raw_config, build_val=build_val)

    if isinstance(build_val, dict) or isinstance(builds_val, dict):
        logger.trace("[parse_config] Detected case: root with single build")
        return _parse_dict_single_build(raw_config, builds_val=builds_val)

    logger.trace("[parse_config] Detected case: flat single build")
    return _parse_flat_single_build(raw_config)


# --- validation report -------------------------------------------------------


def _validation_summary(summary: ValidationSummary, config_path: Path) -> None:
    """Log a validation summary: one header line, then the detail sections."""
    logger = get_app_logger()
    mode = "strict mode" if summary.strict else "lenient mode"

    counts: list[str] = []
    if summary.errors:
        counts.append(f"{len(summary.errors)} error{plural(summary.errors)}")
    if summary.strict_warnings:
        counts.append(
            f"{len(summary.strict_warnings)} strict warning"
            f"{plural(summary.strict_warnings)}",
        )
    if summary.warnings:
        counts.append(
            f"{len(summary.warnings)} normal warning{plural(summary.warnings)}",
        )
    counts_msg = f"\nFound {', '.join(counts)}." if counts else ""

    if not summary.valid:
        logger.error(
            "Failed to validate configuration file %s (%s).%s",
            config_path.name,
            mode,
            counts_msg,
        )
    elif counts:
        logger.warning(
            "Validated configuration file %s (%s) with warnings.%s",
            config_path.name,
            mode,
            counts_msg,
        )
    else:
        logger.debug("Validated %s (%s) successfully.", config_path.name, mode)

    if summary.errors:
        logger.error("\nErrors:\n  • %s", "\n  • ".join(summary.errors))
    if summary.strict_warnings:
        logger.error(
            "\nStrict warnings (treated as errors):\n  • %s",
            "\n  • ".join(summary.strict_warnings),
        )
    if summary.warnings:
        logger.warning(
            "\nWarnings (non-fatal):\n  • %s", "\n  • ".join(summary.warnings)
        )


def load_and_validate_config(
    args: argparse.Namespace,
) -> tuple[Path, RootConfig, ValidationSummary] | None:
    """Find, load, parse, and validate the user's configuration.

    Applies a root-level `log_level` as early as possible so the rest of
    loading logs at the level the user asked for.

    Returns:
        (config_path, root_cfg, validation_summary), or None when there is
        no config or it is empty.

    Raises:
        ValueError: validation failed (the exception carries `.data` with the
            ValidationSummary and `.silent` since the summary is already logged).
    """
    logger = get_app_logger()
    cwd = Path.cwd().resolve()

    missing_level = "debug" if can_run_configless(args) else "error"
    config_path = find_config(args, cwd, missing_level=missing_level)
    if config_path is None:
        return None

    raw_config = load_config(config_path)
    if raw_config is None:
        return None

    if isinstance(raw_config, dict):
        raw_log_level = raw_config.get("log_level")
        if isinstance(raw_log_level, str) and raw_log_level:
            logger.setLevel(
                logger.determine_log_level(args=args, root_log_level=raw_log_level)
            )

    try:
        parsed_cfg = parse_config(raw_config)
    except TypeError as e:
        xmsg = f"Could not parse config {config_path.name}: {e}"
        raise TypeError(xmsg) from e
    if parsed_cfg is None:
        return None

    validation_result = validate_config(parsed_cfg)
    _validation_summary(validation_result, config_path)
    if not validation_result.valid:
        xmsg = f"Configuration file {config_path.name} contains validation errors."
        exception = ValueError(xmsg)
        exception.silent = True  # type: ignore[attr-defined]
        exception.data = validation_result  # type: ignore[attr-defined]
        raise exception

    return config_path, cast_hint(RootConfig, parsed_cfg), validation_result
