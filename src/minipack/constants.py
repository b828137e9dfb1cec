# src/minipack/constants.py
"""Central constants used across the project."""

from typing import Any


# --- env keys ---
DEFAULT_ENV_LOG_LEVEL: str = "LOG_LEVEL"
DEFAULT_ENV_WATCH_INTERVAL: str = "WATCH_INTERVAL"
DEFAULT_ENV_DISABLE_BUILD_TIMESTAMP: str = "DISABLE_BUILD_TIMESTAMP"

# --- program defaults ---
DEFAULT_LOG_LEVEL: str = "info"
DEFAULT_WATCH_INTERVAL: float = 1.0  # seconds

# --- config defaults ---
DEFAULT_STRICT_CONFIG: bool = True
DEFAULT_OUT_DIR: str = "dist"
DEFAULT_OUT_SUFFIX: str = ".bundle.js"
DEFAULT_STDOUT_OUT: str = "-"
DEFAULT_DRY_RUN: bool = False
DEFAULT_BANNER: bool = True
DEFAULT_DISABLE_BUILD_TIMESTAMP: bool = False
BUILD_TIMESTAMP_PLACEHOLDER: str = "<build-timestamp>"

# --- graph defaults ---
# CLI builds are bounded so a cyclic import chain fails instead of spinning.
# The library API stays unbounded unless the caller passes max_assets.
DEFAULT_MAX_ASSETS: int = 10_000
DEFAULT_EXTENSIONS: list[str] = [".js", ".mjs", ".cjs"]
INDEX_BASENAME: str = "index"

# --- verification ---
DEFAULT_NODE_COMMAND: str = "node"
DEFAULT_VERIFY_TIMEOUT: float = 30.0  # seconds

# --- post-processing defaults ---
DEFAULT_POST_PROCESSING_ENABLED: bool = False
DEFAULT_CATEGORY_ORDER: list[str] = ["formatter", "minifier"]

# Raw default structure; resolved into PostCategoryConfigResolved per build.
# Every tool is spelled out in its "tools" entry so custom labels work the
# same way as the built-in ones.
DEFAULT_CATEGORIES: dict[str, dict[str, Any]] = {
    "formatter": {
        "enabled": True,
        "priority": ["prettier", "biome"],
        "tools": {
            "prettier": {
                "args": ["--write"],
            },
            "biome": {
                "args": ["format", "--write"],
            },
        },
    },
    "minifier": {
        "enabled": False,
        "priority": ["terser"],
        "tools": {
            "terser": {
                # "{file}" placeholders replace the trailing file argument
                "args": ["{file}", "--compress", "--mangle", "-o", "{file}"],
            },
        },
    },
}
