# src/minipack/config/config_validate.py
"""Config validation: schema conformance plus checks only a bundler cares about.

Each level (the root table, then every entry of ``builds``) is checked against
its TypedDict schema. Values the schema cannot judge are checked afterwards:
log level names, asset limits, and builds that would overwrite each other's
bundle.
"""

from pathlib import PurePosixPath
from typing import Any

from minipack.constants import DEFAULT_STDOUT_OUT, DEFAULT_STRICT_CONFIG
from minipack.logs import get_app_logger
from minipack.utils import (
    SchemaErrorAggregator,
    ValidationSummary,
    cast_hint,
    check_schema_conformance,
    collect_msg,
    flush_schema_aggregators,
    schema_from_typeddict,
    warn_keys_once,
)
from minipack.utils.utils_paths import SCRIPT_SUFFIXES
from minipack.utils_logs import LEVEL_ORDER

from .config_types import BuildConfig, RootConfig


DRYRUN_KEYS = {"dry-run", "dry_run", "dryrun", "no-op", "no_op", "noop"}
DRYRUN_MSG = (
    "Ignored config key(s) {keys} {ctx}: a dry run is not a config setting. "
    "Use the CLI flag '--dry-run' instead."
)

ROOT_ONLY_KEYS = {"watch_interval", "disable_build_timestamp"}
ROOT_ONLY_MSG = "Ignored {keys} {ctx}: these options only apply at the root level."

# example values shown next to type errors; `*` patterns match any build
FIELD_EXAMPLES: dict[str, str] = {
    "root.builds.*.entry": '"src/index.js"',
    "root.builds.*.out": '"dist/app.bundle.js"',
    "root.builds.*.extensions": '[".js", ".mjs"]',
    "root.builds.*.max_assets": "5000",
    "root.builds.*.display_name": '"MyApp"',
    "root.builds.*.version": '"1.2.0"',
    "root.builds.*.banner": "false",
    "root.extensions": '[".js", ".mjs"]',
    "root.max_assets": "5000",
    "root.out": '"dist/"',
    "root.watch_interval": "1.5",
    "root.log_level": '"debug"',
}


def _pick_strict(
    section: dict[str, Any], strict_arg: bool | None, inherited: bool
) -> bool:
    if strict_arg is not None:
        return strict_arg
    from_section = section.get("strict_config")
    return from_section if isinstance(from_section, bool) else inherited


def _check_values(
    section: dict[str, Any], context: str, summary: ValidationSummary
) -> None:
    """Checks on values that already have the right type."""
    level = section.get("log_level")
    if isinstance(level, str) and level.lower() not in LEVEL_ORDER:
        collect_msg(
            f"Unknown log_level {level!r} {context}"
            f" (expected one of: {', '.join(LEVEL_ORDER)}).",
            strict=True,
            summary=summary,
            is_error=True,
        )

    max_assets = section.get("max_assets")
    if isinstance(max_assets, int) and max_assets < 0:
        collect_msg(
            f"max_assets {context} must be 0 (unbounded) or positive,"
            f" got {max_assets}.",
            strict=True,
            summary=summary,
            is_error=True,
        )


def _validate_section(  # noqa: PLR0913
    section: dict[str, Any],
    schema: dict[str, Any],
    context: str,
    *,
    strict_config: bool,
    base_path: str,
    misplaced: tuple[tuple[str, set[str], str], ...],
    ignore_keys: set[str] | None = None,
    summary: ValidationSummary,  # modified
    agg: SchemaErrorAggregator,  # modified
) -> None:
    prewarn: set[str] = set()
    for tag, keys, msg in misplaced:
        _, found = warn_keys_once(
            tag,
            keys,
            section,
            context,
            msg,
            strict_config=strict_config,
            summary=summary,
            agg=agg,
        )
        prewarn |= found

    ok = check_schema_conformance(
        section,
        schema,
        context,
        strict_config=strict_config,
        summary=summary,
        prewarn=prewarn,
        ignore_keys=ignore_keys,
        base_path=base_path,
        field_examples=FIELD_EXAMPLES,
    )
    if not ok and not (summary.errors or summary.strict_warnings):
        collect_msg(
            f"Configuration invalid {context}.",
            strict=True,
            summary=summary,
            is_error=True,
        )
    _check_values(section, context, summary)


def _check_output_collisions(
    builds: list[dict[str, Any]], summary: ValidationSummary
) -> None:
    """Two builds naming the same bundle file would overwrite each other."""
    seen: dict[str, int] = {}
    stdout_builds: list[int] = []
    for i, build in enumerate(builds, start=1):
        out = build.get("out")
        if not isinstance(out, str):
            continue
        if out == DEFAULT_STDOUT_OUT:
            stdout_builds.append(i)
            continue
        target = PurePosixPath(out.replace("\\", "/"))
        if out.endswith(("/", "\\")) or target.suffix not in SCRIPT_SUFFIXES:
            # a directory: each bundle is named after its entry
            continue
        key = str(target)
        if key in seen:
            collect_msg(
                f"Builds #{seen[key]} and #{i} both write {out!r}.",
                strict=True,
                summary=summary,
                is_error=True,
            )
        else:
            seen[key] = i

    if len(stdout_builds) > 1:
        collect_msg(
            f"Builds {', '.join(f'#{i}' for i in stdout_builds)} all write to"
            " stdout; their bundles will be concatenated.",
            strict=False,
            summary=summary,
        )


def _validate_builds(
    parsed_cfg: dict[str, Any],
    *,
    strict_arg: bool | None,
    summary: ValidationSummary,  # modified
    agg: SchemaErrorAggregator,  # modified
) -> None:
    logger = get_app_logger()
    builds_raw: Any = parsed_cfg.get("builds", [])

    if not isinstance(builds_raw, list):
        collect_msg(
            "`builds` must be a list of builds.",
            strict=True,
            summary=summary,
            is_error=True,
        )
        return

    if not builds_raw:
        collect_msg(
            "No `builds` defined; nothing to bundle.",
            strict=False,
            summary=summary,
        )
        return

    root_strict = summary.strict
    build_schema = schema_from_typeddict(BuildConfig)
    build_dicts: list[dict[str, Any]] = []

    for i, b in enumerate(cast_hint(list[Any], builds_raw), start=1):
        logger.trace(f"[validate_builds] Checking build #{i}")
        if not isinstance(b, dict):
            collect_msg(
                f"Build #{i} must be an object with named keys (not a list or value)",
                strict=True,
                summary=summary,
                is_error=True,
            )
            continue
        b_dict = cast_hint(dict[str, Any], b)
        build_dicts.append(b_dict)

        strict_config = _pick_strict(b_dict, strict_arg, root_strict)
        if strict_config:
            summary.strict = True

        _validate_section(
            b_dict,
            build_schema,
            f"in build #{i}",
            strict_config=strict_config,
            base_path="root.builds.*",
            misplaced=(
                ("dry-run", DRYRUN_KEYS, DRYRUN_MSG),
                ("root-only", ROOT_ONLY_KEYS, ROOT_ONLY_MSG),
            ),
            summary=summary,
            agg=agg,
        )

    _check_output_collisions(build_dicts, summary)


def validate_config(
    parsed_cfg: dict[str, Any],
    *,
    strict: bool | None = None,
) -> ValidationSummary:
    """Validate a normalized config and return a ValidationSummary.

    strict=True  →  warnings become fatal, but are still listed separately
    strict=False →  warnings stay non-fatal
    strict=None  →  the `strict_config` keys decide (root, then each build),
                    falling back to DEFAULT_STRICT_CONFIG
    """
    logger = get_app_logger()
    logger.trace(f"[validate_config] Starting validation (strict={strict})")

    summary = ValidationSummary(
        valid=True,
        errors=[],
        strict_warnings=[],
        warnings=[],
        strict=DEFAULT_STRICT_CONFIG,
    )
    agg: SchemaErrorAggregator = {}

    summary.strict = _pick_strict(parsed_cfg, strict, DEFAULT_STRICT_CONFIG)
    _validate_section(
        parsed_cfg,
        schema_from_typeddict(RootConfig),
        "in top-level configuration",
        strict_config=summary.strict,
        base_path="root",
        misplaced=(("dry-run", DRYRUN_KEYS, DRYRUN_MSG),),
        ignore_keys={"builds"},
        summary=summary,
        agg=agg,
    )
    _validate_builds(parsed_cfg, strict_arg=strict, summary=summary, agg=agg)

    flush_schema_aggregators(summary=summary, agg=agg)
    summary.valid = not summary.errors and not summary.strict_warnings
    return summary
