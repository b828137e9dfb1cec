# tests/5_core/test_resolve_specifier.py
"""Tests for resolve_specifier(): join, normalize, then try extensions."""

from pathlib import Path

import minipack.graph as mod_graph
from tests.utils import make_js_project


def test_exact_file(tmp_path: Path) -> None:
    make_js_project(tmp_path, {"lib/a.js": ""})
    result = mod_graph.resolve_specifier(tmp_path, "./lib/a.js")
    assert result == tmp_path / "lib" / "a.js"


def test_parent_segments_are_normalized(tmp_path: Path) -> None:
    # --- setup ---
    make_js_project(tmp_path, {"shared.js": "", "src/main.js": ""})

    # --- execute ---
    result = mod_graph.resolve_specifier(tmp_path / "src", "../shared.js")

    # --- verify ---
    assert result == tmp_path / "shared.js"
    assert ".." not in result.parts


def test_extension_is_appended(tmp_path: Path) -> None:
    make_js_project(tmp_path, {"util.mjs": ""})
    result = mod_graph.resolve_specifier(tmp_path, "./util")
    assert result == tmp_path / "util.mjs"


def test_extension_order_is_respected(tmp_path: Path) -> None:
    make_js_project(tmp_path, {"util.js": "", "util.cjs": ""})
    result = mod_graph.resolve_specifier(tmp_path, "./util", [".cjs", ".js"])
    assert result == tmp_path / "util.cjs"


def test_directory_index(tmp_path: Path) -> None:
    make_js_project(tmp_path, {"widgets/index.js": ""})
    result = mod_graph.resolve_specifier(tmp_path, "./widgets")
    assert result == tmp_path / "widgets" / "index.js"


def test_file_beats_directory_index(tmp_path: Path) -> None:
    make_js_project(tmp_path, {"widgets.js": "", "widgets/index.js": ""})
    result = mod_graph.resolve_specifier(tmp_path, "./widgets")
    assert result == tmp_path / "widgets.js"


def test_unresolvable_returns_plain_join(tmp_path: Path) -> None:
    result = mod_graph.resolve_specifier(tmp_path, "./ghost")
    assert result == tmp_path / "ghost"
