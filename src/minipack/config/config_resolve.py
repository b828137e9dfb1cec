# src/minipack/config/config_resolve.py


import argparse
import os
from pathlib import Path
from typing import Any, cast

from minipack.constants import (
    DEFAULT_BANNER,
    DEFAULT_CATEGORIES,
    DEFAULT_CATEGORY_ORDER,
    DEFAULT_DISABLE_BUILD_TIMESTAMP,
    DEFAULT_DRY_RUN,
    DEFAULT_ENV_DISABLE_BUILD_TIMESTAMP,
    DEFAULT_ENV_WATCH_INTERVAL,
    DEFAULT_EXTENSIONS,
    DEFAULT_MAX_ASSETS,
    DEFAULT_OUT_DIR,
    DEFAULT_POST_PROCESSING_ENABLED,
    DEFAULT_STDOUT_OUT,
    DEFAULT_STRICT_CONFIG,
    DEFAULT_WATCH_INTERVAL,
)
from minipack.logs import get_app_logger
from minipack.utils import bundle_output_file, cast_hint, env_flag, program_env

from .config_types import (
    BuildConfig,
    BuildConfigResolved,
    MetaBuildConfigResolved,
    OriginType,
    PathResolved,
    PostCategoryConfigResolved,
    PostProcessingConfig,
    PostProcessingConfigResolved,
    RootConfig,
    RootConfigResolved,
    ToolConfigResolved,
)


# build keys copied through unchanged when present
BANNER_TEXT_KEYS = ("display_name", "description", "version", "repo", "license_header")


def make_pathresolved(
    path: Path | str,
    root: Path | str = ".",
    origin: OriginType = "code",
) -> PathResolved:
    """Wrap a path with the root it is relative to and where it came from."""
    return {
        "path": path,
        "root": Path(root).resolve(),
        "origin": origin,
    }


def _normalize_path_with_root(
    raw: Path | str,
    context_root: Path | str,
) -> tuple[Path, Path | str]:
    """Split a user path into (root, path-relative-to-root).

    Absolute paths become their own root; a trailing slash is kept on the
    relative part so "dist/" still reads as a directory later on.
    """
    logger = get_app_logger()
    raw_str = str(raw)
    rel: Path | str

    if Path(raw_str).is_absolute():
        if raw_str.endswith(("/", os.sep)):
            root, rel = Path(raw_str).resolve(), "./"
        else:
            root, rel = Path(raw_str).resolve().parent, Path(raw_str).name
    else:
        root = Path(context_root).resolve()
        rel = raw if isinstance(raw, str) else Path(raw)

    logger.trace(f"Normalized: raw={raw!r} → root={root}, rel={rel}")
    return root, rel


def _cli_value(args: argparse.Namespace, *names: str) -> Any:
    for name in names:
        val = getattr(args, name, None)
        if val is not None:
            return val
    return None


def _resolve_entry(
    build_cfg: BuildConfig,
    *,
    args: argparse.Namespace,
    config_dir: Path,
    cwd: Path,
) -> PathResolved:
    cli_entry = _cli_value(args, "entry", "positional_entry")
    if cli_entry:
        root, rel = _normalize_path_with_root(cli_entry, cwd)
        return make_pathresolved(rel, root, "cli")
    if build_cfg.get("entry"):
        root, rel = _normalize_path_with_root(build_cfg["entry"], config_dir)
        return make_pathresolved(rel, root, "config")
    xmsg = (
        "No entry file given: pass ENTRY on the command line"
        " or set `entry` in the build config"
    )
    raise ValueError(xmsg)


def _resolve_output(
    build_cfg: BuildConfig,
    root_cfg: RootConfig,
    *,
    args: argparse.Namespace,
    config_dir: Path,
    cwd: Path,
) -> PathResolved:
    logger = get_app_logger()
    logger.trace("[resolve_output] Resolving output path")

    cli_out = _cli_value(args, "out", "positional_out")
    cfg_out = build_cfg.get("out", root_cfg.get("out"))

    if cli_out == DEFAULT_STDOUT_OUT:
        return make_pathresolved(DEFAULT_STDOUT_OUT, cwd, "cli")
    if not cli_out and cfg_out == DEFAULT_STDOUT_OUT:
        return make_pathresolved(DEFAULT_STDOUT_OUT, config_dir, "config")
    if cli_out:
        root, rel = _normalize_path_with_root(cli_out, cwd)
        return make_pathresolved(rel, root, "cli")
    if cfg_out:
        root, rel = _normalize_path_with_root(cfg_out, config_dir)
        return make_pathresolved(rel, root, "config")
    root, rel = _normalize_path_with_root(f"{DEFAULT_OUT_DIR}/", cwd)
    return make_pathresolved(rel, root, "default")


def _normalize_extensions(raw: list[str]) -> list[str]:
    exts: list[str] = []
    for item in raw:
        ext = item.strip()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = f".{ext}"
        if ext not in exts:
            exts.append(ext)
    return exts


def _resolve_extensions(
    build_cfg: BuildConfig, root_cfg: RootConfig, args: argparse.Namespace
) -> list[str]:
    cli_exts = getattr(args, "extensions", None)
    if cli_exts is not None:
        raw = [e for chunk in cli_exts for e in str(chunk).split(",")]
    else:
        raw = build_cfg.get(
            "extensions", root_cfg.get("extensions", DEFAULT_EXTENSIONS)
        )
    return _normalize_extensions(list(raw))


def _resolve_max_assets(
    build_cfg: BuildConfig, root_cfg: RootConfig, args: argparse.Namespace
) -> int | None:
    """CLI → build → root → DEFAULT_MAX_ASSETS; 0 means unbounded."""
    value = getattr(args, "max_assets", None)
    if value is None:
        value = build_cfg.get(
            "max_assets", root_cfg.get("max_assets", DEFAULT_MAX_ASSETS)
        )
    if value < 0:
        xmsg = f"max_assets must be 0 (unbounded) or a positive integer, got {value}"
        raise ValueError(xmsg)
    return value or None


def _resolve_disable_timestamp(root_cfg: RootConfig, args: argparse.Namespace) -> bool:
    if getattr(args, "disable_build_timestamp", False):
        return True
    if env_flag(DEFAULT_ENV_DISABLE_BUILD_TIMESTAMP):
        return True
    return bool(
        root_cfg.get("disable_build_timestamp", DEFAULT_DISABLE_BUILD_TIMESTAMP)
    )


# --- post-processing ---------------------------------------------------------


def _resolve_tool(tool_label: str, tool_cfg: dict[str, Any]) -> ToolConfigResolved:
    if "args" not in tool_cfg:
        xmsg = (
            f"post_processing tool '{tool_label}' needs an `args` list"
            " (it has no built-in default)"
        )
        raise ValueError(xmsg)
    return {
        "command": tool_cfg.get("command", tool_label),
        "args": list(tool_cfg["args"]),
        "path": tool_cfg.get("path"),
        "options": list(tool_cfg.get("options", [])),
    }


def _apply_post_layer(
    merged: dict[str, Any],
    layer: PostProcessingConfig | None,
) -> None:
    """Overlay one config level onto `merged` in place.

    Categories merge key by key; a tool entry merges over the previous
    definition of the same tool.
    """
    if not layer:
        return
    if "enabled" in layer:
        merged["enabled"] = layer["enabled"]
    if "category_order" in layer:
        merged["category_order"] = list(layer["category_order"])
    for cat_name, cat_cfg in layer.get("categories", {}).items():
        merged_cat = merged["categories"].setdefault(
            cat_name, {"enabled": True, "priority": [], "tools": {}}
        )
        if "enabled" in cat_cfg:
            merged_cat["enabled"] = cat_cfg["enabled"]
        if "priority" in cat_cfg:
            merged_cat["priority"] = list(cat_cfg["priority"])
        for tool_name, tool_override in cat_cfg.get("tools", {}).items():
            existing = merged_cat["tools"].get(tool_name, {})
            merged_cat["tools"][tool_name] = {**existing, **dict(tool_override)}


def resolve_post_processing(
    build_cfg: BuildConfig,
    root_cfg: RootConfig | None,
) -> PostProcessingConfigResolved:
    """Merge post-processing settings: defaults → root → build."""
    logger = get_app_logger()

    merged: dict[str, Any] = {
        "enabled": DEFAULT_POST_PROCESSING_ENABLED,
        "category_order": list(DEFAULT_CATEGORY_ORDER),
        "categories": {
            cat: {
                "enabled": bool(cfg.get("enabled", True)),
                "priority": list(cfg.get("priority", [])),
                "tools": {k: dict(v) for k, v in cfg.get("tools", {}).items()},
            }
            for cat, cfg in DEFAULT_CATEGORIES.items()
        },
    }
    layers = ((root_cfg or {}).get("post_processing"), build_cfg.get("post_processing"))
    for layer in layers:
        _apply_post_layer(merged, layer if isinstance(layer, dict) else None)

    unknown = [c for c in merged["category_order"] if c not in merged["categories"]]
    if unknown:
        logger.warning(
            "Unknown category names in post_processing.category_order: %s."
            " Known categories are: %s",
            unknown,
            sorted(merged["categories"]),
        )

    categories: dict[str, PostCategoryConfigResolved] = {}
    for cat_name, cat in merged["categories"].items():
        priority: list[str] = cat["priority"]
        categories[cat_name] = {
            # an empty priority list leaves nothing to run
            "enabled": bool(cat["enabled"]) and bool(priority),
            "priority": priority,
            "tools": {
                label: _resolve_tool(label, tool)
                for label, tool in cat["tools"].items()
                if label in priority
            },
        }
        defined = categories[cat_name]["tools"]
        missing = [label for label in priority if label not in defined]
        if missing:
            xmsg = (
                f"post_processing category '{cat_name}' lists unknown tool(s)"
                f" {missing}; define them under `tools`"
            )
            raise ValueError(xmsg)

    return {
        "enabled": bool(merged["enabled"]),
        "category_order": [c for c in merged["category_order"] if c in categories],
        "categories": categories,
    }


# --- main resolvers ----------------------------------------------------------


def resolve_build_config(
    build_cfg: BuildConfig,
    args: argparse.Namespace,
    config_dir: Path,
    cwd: Path,
    root_cfg: RootConfig | None = None,
    config_path: Path | None = None,
) -> BuildConfigResolved:
    """Resolve one build: CLI > env > build > root > default.

    CLI paths are relative to cwd, config paths to the config directory.
    """
    logger = get_app_logger()
    root_cfg = root_cfg or cast_hint(RootConfig, {})

    build_log_level = build_cfg.get("log_level")
    log_level = logger.determine_log_level(
        args=args,
        root_log_level=root_cfg.get("log_level"),
        build_log_level=build_log_level,
    )

    meta: MetaBuildConfigResolved = {
        "cli_root": cwd,
        "config_root": config_dir,
        "config_path": config_path,
    }

    resolved: dict[str, Any] = {
        "entry": _resolve_entry(build_cfg, args=args, config_dir=config_dir, cwd=cwd),
        "out": _resolve_output(
            build_cfg, root_cfg, args=args, config_dir=config_dir, cwd=cwd
        ),
        "extensions": _resolve_extensions(build_cfg, root_cfg, args),
        "max_assets": _resolve_max_assets(build_cfg, root_cfg, args),
        "strict_config": build_cfg.get(
            "strict_config", root_cfg.get("strict_config", DEFAULT_STRICT_CONFIG)
        ),
        "log_level": log_level,
        "banner": (
            False
            if getattr(args, "no_banner", False)
            else build_cfg.get("banner", DEFAULT_BANNER)
        ),
        "disable_build_timestamp": _resolve_disable_timestamp(root_cfg, args),
        "post_processing": resolve_post_processing(build_cfg, root_cfg),
        "dry_run": bool(getattr(args, "dry_run", DEFAULT_DRY_RUN)),
        "__meta__": meta,
    }
    for key in BANNER_TEXT_KEYS:
        if key in build_cfg:
            resolved[key] = build_cfg[key]  # type: ignore[literal-required]

    logger.trace(
        f"[resolve_build_config] entry={resolved['entry']['path']}"
        f" out={resolved['out']['path']} max_assets={resolved['max_assets']}"
    )
    return cast("BuildConfigResolved", resolved)


def _output_key(build: BuildConfigResolved) -> str:
    out = build["out"]
    if out["path"] == DEFAULT_STDOUT_OUT:
        return DEFAULT_STDOUT_OUT
    entry = build["entry"]
    entry_path = Path(entry["root"]) / entry["path"]
    out_path = bundle_output_file(
        Path(out["root"]) / out["path"], entry_path, str(out["path"])
    )
    return str(out_path)


def resolve_config(
    root_input: RootConfig,
    args: argparse.Namespace,
    config_dir: Path,
    cwd: Path,
    config_path: Path | None = None,
) -> RootConfigResolved:
    """Resolve a loaded RootConfig into a ready-to-run RootConfigResolved.

    Also syncs the app logger to the resolved root log level.
    """
    logger = get_app_logger()
    root_cfg = cast_hint(RootConfig, dict(root_input))

    builds_input = root_cfg.get("builds", [])
    logger.trace(
        f"[resolve_config] Resolving root config with {len(builds_input)} build(s)"
    )

    cli_entry = _cli_value(args, "entry", "positional_entry")
    if cli_entry and len(builds_input) > 1:
        xmsg = (
            "An entry file on the command line cannot be combined with a config"
            f" that defines {len(builds_input)} builds"
        )
        raise ValueError(xmsg)

    # --- watch interval: CLI → env → root → default ---
    env_watch = program_env(DEFAULT_ENV_WATCH_INTERVAL)
    watch_interval: float
    cli_watch = getattr(args, "watch", None)
    if cli_watch is not None:
        watch_interval = float(cli_watch)
    elif env_watch is not None:
        try:
            watch_interval = float(env_watch)
        except ValueError:
            logger.warning(
                "Invalid %s=%r, using default.", DEFAULT_ENV_WATCH_INTERVAL, env_watch
            )
            watch_interval = DEFAULT_WATCH_INTERVAL
    else:
        watch_interval = float(root_cfg.get("watch_interval", DEFAULT_WATCH_INTERVAL))
    logger.trace(f"[resolve_config] Watch interval resolved to {watch_interval}s")

    # --- log level: CLI → env → root → default ---
    log_level = logger.determine_log_level(
        args=args, root_log_level=root_cfg.get("log_level")
    )
    logger.setLevel(log_level)

    resolved_builds = [
        resolve_build_config(b, args, config_dir, cwd, root_cfg, config_path)
        for b in builds_input
    ]

    # --- two builds writing the same file would overwrite each other ---
    by_output: dict[str, list[int]] = {}
    for idx, build in enumerate(resolved_builds, start=1):
        by_output.setdefault(_output_key(build), []).append(idx)
    duplicates = {k: v for k, v in by_output.items() if len(v) > 1}
    if duplicates:
        lines = [
            f'  "{out}": ' + ", ".join(f"build #{i}" for i in indices)
            for out, indices in sorted(duplicates.items())
        ]
        xmsg = "Several builds have the same output path:\n" + "\n".join(lines)
        raise ValueError(xmsg)

    return {
        "builds": resolved_builds,
        "log_level": log_level,
        "strict_config": root_cfg.get("strict_config", DEFAULT_STRICT_CONFIG),
        "watch_interval": watch_interval,
        "config_path": config_path,
    }
