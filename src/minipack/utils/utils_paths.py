# src/minipack/utils/utils_paths.py

import os
from pathlib import Path

from minipack.constants import DEFAULT_OUT_SUFFIX


SCRIPT_SUFFIXES = {".js", ".mjs", ".cjs"}


def shorten_path_for_display(
    path: Path | str,
    *,
    cwd: Path | None = None,
    config_dir: Path | None = None,
) -> str:
    """Return the shortest of path relative to cwd or config_dir.

    Falls back to the absolute path when it lives under neither.
    """
    path_obj = Path(path).resolve()

    candidates: list[str] = []
    for base in (cwd, config_dir):
        if base is None:
            continue
        try:
            candidates.append(str(path_obj.relative_to(Path(base).resolve())))
        except ValueError:
            continue

    if candidates:
        return min(candidates, key=len) or "."
    return str(path_obj)


def bundle_output_file(out_path: Path, entry_path: Path, raw_out: str = "") -> Path:
    """Return the file a bundle gets written to.

    `out_path` names a directory when `raw_out` ends with a slash, when it
    already exists as a directory, or when it has no script suffix. The
    bundle then lands at `<dir>/<entry stem>.bundle.js`.
    """
    is_dir = (
        raw_out.endswith(("/", os.sep))
        or out_path.is_dir()
        or out_path.suffix not in SCRIPT_SUFFIXES
    )
    if is_dir:
        return out_path / f"{entry_path.stem}{DEFAULT_OUT_SUFFIX}"
    return out_path
