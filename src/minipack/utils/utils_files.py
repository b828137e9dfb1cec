# src/minipack/utils/utils_files.py
"""Config-file readers: JSONC, TOML and package.json."""

import json
import re
import sys
from pathlib import Path
from typing import Any, cast

from minipack.logs import get_app_logger


def _strip_jsonc_comments(text: str) -> str:  # noqa: PLR0912
    """Strip comments from JSONC while preserving string contents.

    Handles //, #, and /* */ comments without touching string literals.
    """
    result: list[str] = []
    in_string = False
    in_escape = False
    i = 0
    while i < len(text):
        ch = text[i]

        if in_escape:
            result.append(ch)
            in_escape = False
            i += 1
            continue

        if ch == "\\" and in_string:
            result.append(ch)
            in_escape = True
            i += 1
            continue

        if ch == '"':
            in_string = not in_string
            result.append(ch)
            i += 1
            continue

        if in_string:
            result.append(ch)
            i += 1
            continue

        # line comments: // and #
        if (ch == "/" and text[i + 1 : i + 2] == "/") or ch == "#":
            while i < len(text) and text[i] != "\n":
                i += 1
            continue

        # block comments
        if ch == "/" and text[i + 1 : i + 2] == "*":
            end = text.find("*/", i + 2)
            i = len(text) if end == -1 else end + 2
            continue

        result.append(ch)
        i += 1

    return "".join(result)


def load_jsonc(path: Path) -> dict[str, Any] | list[Any] | None:
    """Load JSONC (JSON with comments and trailing commas).

    Returns None for a file that holds nothing but whitespace and comments.
    """
    logger = get_app_logger()
    logger.trace(f"[load_jsonc] Loading from {path}")

    if not path.exists():
        xmsg = f"JSONC file not found: {path}"
        raise FileNotFoundError(xmsg)

    if not path.is_file():
        xmsg = f"Expected a file: {path}"
        raise ValueError(xmsg)

    text = _strip_jsonc_comments(path.read_text(encoding="utf-8"))
    text = re.sub(r",(?=\s*[}\]])", "", text).strip()

    if not text:
        return None

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        xmsg = (
            f"Invalid JSONC syntax in {path}:"
            f" {e.msg} (line {e.lineno}, column {e.colno})"
        )
        raise ValueError(xmsg) from e

    if not isinstance(data, (dict, list)):
        xmsg = f"Invalid JSONC root type: {type(data).__name__}"
        raise ValueError(xmsg)  # noqa: TRY004

    result = cast("dict[str, Any] | list[Any]", data)
    logger.trace(
        f"[load_jsonc] Loaded {type(result).__name__} with {len(result)} items"
    )
    return result


def load_toml(path: Path) -> dict[str, Any]:
    """Load and parse a TOML file with tomllib (3.11+) or tomli (3.10).

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file cannot be parsed
    """
    if not path.exists():
        xmsg = f"TOML file not found: {path}"
        raise FileNotFoundError(xmsg)

    if sys.version_info >= (3, 11):
        import tomllib  # noqa: PLC0415
    else:
        import tomli as tomllib  # noqa: PLC0415

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        xmsg = f"Invalid TOML syntax in {path}: {e}"
        raise ValueError(xmsg) from e


def find_package_json_version(start: Path) -> str | None:
    """Return the "version" of the nearest package.json at or above start."""
    logger = get_app_logger()
    current = start if start.is_dir() else start.parent
    while True:
        candidate = current / "package.json"
        if candidate.is_file():
            try:
                data = json.loads(candidate.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("Could not read %s: %s", candidate, e)
                return None
            version = data.get("version") if isinstance(data, dict) else None
            logger.trace(f"[package.json] {candidate} → version={version!r}")
            return version if isinstance(version, str) else None
        if current.parent == current:
            return None
        current = current.parent
