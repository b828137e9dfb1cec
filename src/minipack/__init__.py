# src/minipack/__init__.py

"""Minipack: bundle a JavaScript module graph into one self-contained script.

Full developer API
==================
This package re-exports all non-private symbols from its submodules,
making it suitable for programmatic use, custom integrations, or plugins.
Anything prefixed with "_" is considered internal and may change.

Highlights:
    - build_graph()       → Discover every module reachable from an entry file
    - emit_bundle()       → Render a graph as a self-invoking bundle
    - extract_asset()     → Read one module and rewrite its imports/exports
    - run_build()         → Execute a resolved build configuration
    - main()              → CLI entrypoint
"""

from .actions import get_metadata, watch_for_changes
from .asset import Asset, ExtractedAsset, Extractor, Graph
from .build import render_banner, run_all_builds, run_build
from .bundle import emit_bundle, render_registry_entry
from .cli import main
from .config import (
    BuildConfig,
    BuildConfigResolved,
    MetaBuildConfigResolved,
    OriginType,
    PathResolved,
    RootConfig,
    RootConfigResolved,
    find_config,
    load_and_validate_config,
    load_config,
    make_pathresolved,
    parse_config,
    resolve_build_config,
    resolve_config,
    validate_config,
)
from .constants import (
    DEFAULT_ENV_DISABLE_BUILD_TIMESTAMP,
    DEFAULT_ENV_LOG_LEVEL,
    DEFAULT_ENV_WATCH_INTERVAL,
    DEFAULT_EXTENSIONS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_ASSETS,
    DEFAULT_OUT_DIR,
    DEFAULT_STRICT_CONFIG,
    DEFAULT_WATCH_INTERVAL,
)
from .errors import ExtractionError, GraphLimitError, ResolutionError
from .extract import extract_asset, transform_source
from .graph import GraphBuilder, build_graph, resolve_specifier
from .logs import get_app_logger
from .meta import (
    PROGRAM_CONFIG,
    PROGRAM_DISPLAY,
    PROGRAM_ENV,
    PROGRAM_PACKAGE,
    PROGRAM_SCRIPT,
    Metadata,
)
from .selftest import run_selftest
from .verify_bundle import execute_bundle, post_bundle_processing, verify_syntax


__all__ = [  # noqa: RUF022
    # actions
    "get_metadata",
    "watch_for_changes",
    # asset
    "Asset",
    "ExtractedAsset",
    "Extractor",
    "Graph",
    # build
    "render_banner",
    "run_all_builds",
    "run_build",
    # bundle
    "emit_bundle",
    "render_registry_entry",
    # cli
    "main",
    # config
    "BuildConfig",
    "BuildConfigResolved",
    "find_config",
    "load_and_validate_config",
    "load_config",
    "make_pathresolved",
    "MetaBuildConfigResolved",
    "OriginType",
    "parse_config",
    "PathResolved",
    "resolve_build_config",
    "resolve_config",
    "RootConfig",
    "RootConfigResolved",
    "validate_config",
    # constants
    "DEFAULT_ENV_DISABLE_BUILD_TIMESTAMP",
    "DEFAULT_ENV_LOG_LEVEL",
    "DEFAULT_ENV_WATCH_INTERVAL",
    "DEFAULT_EXTENSIONS",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_MAX_ASSETS",
    "DEFAULT_OUT_DIR",
    "DEFAULT_STRICT_CONFIG",
    "DEFAULT_WATCH_INTERVAL",
    # errors
    "ExtractionError",
    "GraphLimitError",
    "ResolutionError",
    # extract
    "extract_asset",
    "transform_source",
    # graph
    "build_graph",
    "GraphBuilder",
    "resolve_specifier",
    # logs
    "get_app_logger",
    # meta
    "Metadata",
    "PROGRAM_CONFIG",
    "PROGRAM_DISPLAY",
    "PROGRAM_ENV",
    "PROGRAM_PACKAGE",
    "PROGRAM_SCRIPT",
    # selftest
    "run_selftest",
    # verify_bundle
    "execute_bundle",
    "post_bundle_processing",
    "verify_syntax",
]
