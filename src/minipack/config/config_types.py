# src/minipack/config/config_types.py

from pathlib import Path
from typing import Literal, TypedDict

from typing_extensions import NotRequired


OriginType = Literal["cli", "config", "default", "code", "test"]


# --- post-processing ---------------------------------------------------------


class ToolConfig(TypedDict, total=False):
    command: str  # executable name (defaults to the tool label)
    args: list[str]  # replaces the default arguments
    path: str  # custom executable path
    options: list[str]  # appended after args


class PostCategoryConfig(TypedDict, total=False):
    enabled: bool
    priority: list[str]  # tool labels, first available one wins
    tools: NotRequired[dict[str, ToolConfig]]


class PostProcessingConfig(TypedDict, total=False):
    enabled: bool  # master switch, default: False
    category_order: list[str]
    categories: NotRequired[dict[str, PostCategoryConfig]]


class ToolConfigResolved(TypedDict):
    command: str
    args: list[str]
    path: str | None
    options: list[str]


class PostCategoryConfigResolved(TypedDict):
    enabled: bool
    priority: list[str]
    tools: dict[str, ToolConfigResolved]


class PostProcessingConfigResolved(TypedDict):
    enabled: bool
    category_order: list[str]
    categories: dict[str, PostCategoryConfigResolved]


# --- paths -------------------------------------------------------------------


class PathResolved(TypedDict):
    path: Path | str  # absolute, or relative to `root`
    root: Path  # directory the path is resolved against

    # meta only
    origin: OriginType  # provenance


class MetaBuildConfigResolved(TypedDict):
    cli_root: Path
    config_root: Path
    config_path: Path | None


# --- raw config (as written by the user) -------------------------------------


class BuildConfig(TypedDict, total=False):
    entry: str
    out: str  # file, directory, or "-" for stdout
    extensions: list[str]  # tried when a specifier has no matching file
    max_assets: int  # abort when the graph grows past this

    # per-build overrides
    strict_config: bool
    log_level: str
    post_processing: PostProcessingConfig

    # banner
    banner: bool
    display_name: str
    description: str
    version: str
    repo: str
    license_header: str

    # single-build convenience (hoisted to root)
    watch_interval: float
    disable_build_timestamp: bool


class RootConfig(TypedDict, total=False):
    builds: list[BuildConfig]

    # defaults that cascade into each build
    log_level: str
    out: str
    max_assets: int
    extensions: list[str]
    post_processing: PostProcessingConfig

    # runtime behavior
    strict_config: bool
    watch_interval: float
    disable_build_timestamp: bool


# --- resolved config ---------------------------------------------------------


class BuildConfigResolved(TypedDict):
    entry: PathResolved
    out: PathResolved
    extensions: list[str]
    max_assets: int | None

    strict_config: bool
    log_level: str

    banner: bool
    display_name: NotRequired[str]
    description: NotRequired[str]
    version: NotRequired[str]
    repo: NotRequired[str]
    license_header: NotRequired[str]
    disable_build_timestamp: bool

    post_processing: PostProcessingConfigResolved

    # runtime flag (CLI only)
    dry_run: bool

    # provenance, for audit/debug
    __meta__: MetaBuildConfigResolved


class RootConfigResolved(TypedDict):
    builds: list[BuildConfigResolved]

    log_level: str
    strict_config: bool
    watch_interval: float
    config_path: Path | None
