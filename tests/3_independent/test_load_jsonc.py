# tests/3_independent/test_load_jsonc.py
"""Tests for load_jsonc(): comments, trailing commas and error reporting."""

from pathlib import Path

import pytest

import minipack.utils as mod_utils


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.jsonc"
    path.write_text(text, encoding="utf-8")
    return path


def test_strips_line_and_block_comments(tmp_path: Path) -> None:
    # --- setup ---
    path = _write(
        tmp_path,
        '// leading\n{\n  "entry": "src/app.js", # hash comment\n'
        '  /* block\n     comment */\n  "out": "dist/"\n}\n',
    )

    # --- execute ---
    data = mod_utils.load_jsonc(path)

    # --- verify ---
    assert data == {"entry": "src/app.js", "out": "dist/"}


def test_comment_markers_inside_strings_survive(tmp_path: Path) -> None:
    path = _write(tmp_path, '{"repo": "https://example.com/#readme", "x": "/* y */"}')
    data = mod_utils.load_jsonc(path)
    assert data == {"repo": "https://example.com/#readme", "x": "/* y */"}


def test_trailing_commas_are_allowed(tmp_path: Path) -> None:
    path = _write(tmp_path, '{"extensions": [".js", ".mjs",],}')
    assert mod_utils.load_jsonc(path) == {"extensions": [".js", ".mjs"]}


def test_top_level_list(tmp_path: Path) -> None:
    path = _write(tmp_path, '["a.js", "b.js"]')
    assert mod_utils.load_jsonc(path) == ["a.js", "b.js"]


def test_comment_only_file_is_empty(tmp_path: Path) -> None:
    path = _write(tmp_path, "// nothing here\n/* at all */\n")
    assert mod_utils.load_jsonc(path) is None


def test_scalar_root_is_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path, "42")
    with pytest.raises(ValueError, match="root type"):
        mod_utils.load_jsonc(path)


def test_syntax_error_reports_position(tmp_path: Path) -> None:
    path = _write(tmp_path, '{\n  "entry": \n}')
    with pytest.raises(ValueError, match=r"Invalid JSONC syntax.*line 3"):
        mod_utils.load_jsonc(path)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        mod_utils.load_jsonc(tmp_path / "missing.jsonc")
