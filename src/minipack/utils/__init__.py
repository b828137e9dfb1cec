# src/minipack/utils/__init__.py

from .utils_env import env_flag, is_ci, program_env
from .utils_files import find_package_json_version, load_jsonc, load_toml
from .utils_paths import bundle_output_file, shorten_path_for_display
from .utils_schema import (
    SchemaErrorAggregator,
    ValidationSummary,
    check_schema_conformance,
    collect_msg,
    flush_schema_aggregators,
    warn_keys_once,
)
from .utils_text import plural, remove_path_in_error_message
from .utils_types import (
    cast_hint,
    is_typeddict,
    literal_to_set,
    safe_isinstance,
    schema_from_typeddict,
)


__all__ = [  # noqa: RUF022
    # utils_env
    "env_flag",
    "is_ci",
    "program_env",
    # utils_files
    "find_package_json_version",
    "load_jsonc",
    "load_toml",
    # utils_paths
    "bundle_output_file",
    "shorten_path_for_display",
    # utils_schema
    "SchemaErrorAggregator",
    "ValidationSummary",
    "check_schema_conformance",
    "collect_msg",
    "flush_schema_aggregators",
    "warn_keys_once",
    # utils_text
    "plural",
    "remove_path_in_error_message",
    # utils_types
    "cast_hint",
    "is_typeddict",
    "literal_to_set",
    "safe_isinstance",
    "schema_from_typeddict",
]
