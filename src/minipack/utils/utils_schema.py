# src/minipack/utils/utils_schema.py
"""Config schema checks driven by TypedDict annotations.

Messages are routed into a ValidationSummary; nothing here raises for bad
user input. Repeated warnings (the same bad key in several builds) can be
folded into one line through a SchemaErrorAggregator.
"""

from dataclasses import dataclass
from difflib import get_close_matches
from fnmatch import fnmatchcase
from typing import Any, TypedDict, get_args, get_origin

from typing_extensions import NotRequired

from .utils_text import plural
from .utils_types import (
    cast_hint,
    is_typeddict,
    safe_isinstance,
    schema_from_typeddict,
)


DEFAULT_HINT_CUTOFF: float = 0.75

AGG_STRICT_WARN = "strict_warnings"
AGG_WARN = "warnings"


class _SchErrAggEntry(TypedDict):
    msg: str
    contexts: list[str]


# severity → tag → {"msg": template, "contexts": [...]}
SchemaErrorAggregator = dict[str, dict[str, _SchErrAggEntry]]


@dataclass
class ValidationSummary:
    valid: bool
    errors: list[str]
    strict_warnings: list[str]
    warnings: list[str]
    strict: bool  # strict_config enabled anywhere in the config


def collect_msg(
    msg: str,
    *,
    strict: bool,
    summary: ValidationSummary,  # modified in function, not returned
    is_error: bool = False,
) -> None:
    """Route a message to errors, strict_warnings or warnings."""
    if is_error:
        summary.errors.append(msg)
    elif strict:
        summary.strict_warnings.append(msg)
    else:
        summary.warnings.append(msg)


def flush_schema_aggregators(
    *,
    summary: ValidationSummary,
    agg: SchemaErrorAggregator,
) -> None:
    def _clean_context(ctx: str) -> str:
        ctx = ctx.strip()
        for prefix in ("in ", "on "):
            if ctx.lower().startswith(prefix):
                return ctx[len(prefix) :].strip()
        return ctx

    def _flush_one(bucket: dict[str, _SchErrAggEntry], *, strict: bool) -> None:
        for tag, entry in bucket.items():
            joined_ctx = ", ".join(_clean_context(c) for c in entry["contexts"])
            rendered = entry["msg"].format(keys=tag, ctx=f"in {joined_ctx}")
            collect_msg(rendered, strict=strict, summary=summary)
        bucket.clear()

    strict_bucket = agg.get(AGG_STRICT_WARN, {})
    warn_bucket = agg.get(AGG_WARN, {})

    if strict_bucket:
        summary.valid = False
        _flush_one(strict_bucket, strict=True)
    if warn_bucket:
        _flush_one(warn_bucket, strict=False)


# --- field helpers -----------------------------------------------------------


def _get_example_for_field(
    field_path: str,
    field_examples: dict[str, str] | None = None,
) -> str | None:
    """Look up an example value by exact path, then by wildcard pattern."""
    if not field_examples:
        return None
    if field_path in field_examples:
        return field_examples[field_path]
    for pattern, example in field_examples.items():
        if "*" in pattern and fnmatchcase(field_path, pattern):
            return example
    return None


def _infer_type_label(expected_type: Any) -> str:
    """Readable label such as 'list[str]' or 'PostProcessingConfig'."""
    origin = get_origin(expected_type)
    args = get_args(expected_type)

    if origin is NotRequired and args:
        return _infer_type_label(args[0])
    if origin is list and args:
        return f"list[{_infer_type_label(args[0])}]"
    if isinstance(expected_type, type):
        return expected_type.__name__
    return str(expected_type)


def _type_error(  # noqa: PLR0913
    context: str,
    key: str,
    val: Any,
    exp_label: str,
    *,
    summary: ValidationSummary,
    field_path: str,
    field_examples: dict[str, str] | None,
) -> None:
    example = _get_example_for_field(field_path, field_examples)
    exmsg = f" (e.g. {example})" if example else ""
    collect_msg(
        f"{context}: key `{key}` expected {exp_label}{exmsg},"
        f" got {type(val).__name__}",
        strict=False,
        summary=summary,
        is_error=True,
    )


def _validate_list_value(  # noqa: PLR0913
    context: str,
    key: str,
    val: Any,
    subtype: Any,
    *,
    strict: bool,
    summary: ValidationSummary,  # modified in function, not returned
    prewarn: set[str],
    field_path: str,
    field_examples: dict[str, str] | None = None,
) -> bool:
    if not isinstance(val, list):
        _type_error(
            context,
            key,
            val,
            f"list[{_infer_type_label(subtype)}]",
            summary=summary,
            field_path=field_path,
            field_examples=field_examples,
        )
        return False

    valid = True
    for i, item in enumerate(cast_hint(list[Any], val)):
        item_path = f"{field_path}[{i}]"
        if is_typeddict(subtype):
            valid &= _validate_mapping(
                f"{context}.{key}[{i}]",
                item,
                schema_from_typeddict(subtype),
                subtype.__name__,
                strict=strict,
                summary=summary,
                prewarn=prewarn,
                field_path=item_path,
                field_examples=field_examples,
            )
        elif not safe_isinstance(item, subtype):
            _type_error(
                context,
                f"{key}[{i}]",
                item,
                _infer_type_label(subtype),
                summary=summary,
                field_path=item_path,
                field_examples=field_examples,
            )
            valid = False
    return valid


def _unknown_keys(
    context: str,
    val: dict[str, Any],
    schema: dict[str, Any],
    *,
    strict: bool,
    summary: ValidationSummary,  # modified in function, not returned
    prewarn: set[str],
) -> bool:
    unknown = [k for k in val if k not in schema and k not in prewarn]
    if not unknown:
        return True

    joined = ", ".join(f"`{u}`" for u in unknown)
    location = context
    if "in top-level configuration." in location:
        location = "in " + location.split("in top-level configuration.")[-1]

    msg = f"Unknown key{plural(unknown)} {joined} {location}."

    hints: list[str] = []
    for k in unknown:
        close = get_close_matches(k, schema.keys(), n=1, cutoff=DEFAULT_HINT_CUTOFF)
        if close:
            hints.append(f"'{k}' → '{close[0]}'")
    if hints:
        msg += "\nHint: did you mean " + ", ".join(hints) + "?"

    collect_msg(msg.strip(), strict=strict, summary=summary)
    return not strict


def _validate_mapping(  # noqa: PLR0913
    context: str,
    val: Any,
    schema: dict[str, Any],
    type_name: str,
    *,
    strict: bool,
    summary: ValidationSummary,  # modified in function, not returned
    prewarn: set[str],
    ignore_keys: set[str] | None = None,
    field_path: str = "",
    field_examples: dict[str, str] | None = None,
) -> bool:
    """Validate a dict against a field → type schema, recursing into
    nested TypedDicts and lists of them."""
    if not isinstance(val, dict):
        collect_msg(
            f"{context}: expected an object with named keys for"
            f" {type_name}, got {type(val).__name__}",
            strict=strict,
            summary=summary,
            is_error=True,
        )
        return False

    ignore_keys = ignore_keys or set()
    valid = True

    for field, expected_type in schema.items():
        if field not in val or field in prewarn or field in ignore_keys:
            continue

        inner_val = val[field]
        origin = get_origin(expected_type)
        args = get_args(expected_type)
        if origin is NotRequired and args:
            expected_type = args[0]  # noqa: PLW2901
            origin = get_origin(expected_type)
            args = get_args(expected_type)
        current_path = f"{field_path}.{field}" if field_path else field

        if origin is list:
            valid &= _validate_list_value(
                context,
                field,
                inner_val,
                args[0] if args else Any,
                strict=strict,
                summary=summary,
                prewarn=prewarn,
                field_path=current_path,
                field_examples=field_examples,
            )
        elif is_typeddict(expected_type):
            if "in top-level configuration." in context:
                location = field
            else:
                location = f"{context}.{field}"
            valid &= _validate_mapping(
                location,
                inner_val,
                schema_from_typeddict(expected_type),
                expected_type.__name__,
                strict=strict,
                summary=summary,
                prewarn=prewarn,
                field_path=current_path,
                field_examples=field_examples,
            )
        elif not safe_isinstance(inner_val, expected_type):
            _type_error(
                context,
                field,
                inner_val,
                _infer_type_label(expected_type),
                summary=summary,
                field_path=current_path,
                field_examples=field_examples,
            )
            valid = False

    if not _unknown_keys(
        context, val, schema, strict=strict, summary=summary, prewarn=prewarn
    ):
        valid = False

    return valid


# --- public entry points -----------------------------------------------------


def warn_keys_once(  # noqa: PLR0913
    tag: str,
    bad_keys: set[str],
    cfg: dict[str, Any],
    context: str,
    msg: str,
    *,
    strict_config: bool,
    summary: ValidationSummary,  # modified in function, not returned
    agg: SchemaErrorAggregator | None,
) -> tuple[bool, set[str]]:
    """Warn once for known-bad keys (dry-run keys, root-only keys).

    With an aggregator the context is recorded for a single combined message
    at flush time; without one the message is collected immediately.

    Returns (valid, found_keys).
    """
    bad_keys_lower = {k.lower(): k for k in bad_keys}
    cfg_keys_lower = {k.lower(): k for k in cfg}
    found_lower = bad_keys_lower.keys() & cfg_keys_lower.keys()

    if not found_lower:
        return True, set()

    found = {cfg_keys_lower[k] for k in found_lower}

    if agg is not None:
        severity = AGG_STRICT_WARN if strict_config else AGG_WARN
        bucket = agg.setdefault(severity, {})
        entry = bucket.setdefault(tag, {"msg": msg, "contexts": []})
        entry["contexts"].append(context)
    else:
        collect_msg(
            msg.format(keys=", ".join(sorted(found)), ctx=context),
            strict=strict_config,
            summary=summary,
        )

    return not strict_config, found


def check_schema_conformance(  # noqa: PLR0913
    cfg: dict[str, Any],
    schema: dict[str, Any],
    context: str,
    *,
    strict_config: bool,
    summary: ValidationSummary,  # modified in function, not returned
    prewarn: set[str] | None = None,
    ignore_keys: set[str] | None = None,
    base_path: str = "root",
    field_examples: dict[str, str] | None = None,
) -> bool:
    """Validate one config level (root or a single build) against `schema`."""
    return _validate_mapping(
        context,
        cfg,
        schema,
        "config",
        strict=strict_config,
        summary=summary,
        prewarn=prewarn or set(),
        ignore_keys=ignore_keys,
        field_path=base_path,
        field_examples=field_examples,
    )
