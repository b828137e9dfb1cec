# tests/5_core/test_bundle_execution.py
"""Run emitted bundles with node and compare their output."""

import json
import subprocess
from pathlib import Path

import pytest

import minipack.asset as mod_asset
import minipack.bundle as mod_bundle
import minipack.extract as mod_extract
import minipack.graph as mod_graph
import minipack.verify_bundle as mod_verify
from tests.utils import (
    BASIC_PROJECT,
    COUNTER_PROJECT,
    DIAMOND_PROJECT,
    LIVE_BINDING_PROJECT,
    MIXED_SYNTAX_PROJECT,
    NODE,
    make_js_project,
    requires_node,
)


# --- helpers ----------------------------------------------------------------------


def _bundle_and_run(
    project: Path, entry: str = "entry.js", out_dir: Path | None = None
) -> str:
    graph = mod_graph.build_graph(project / entry, mod_extract.extract_asset)
    out = (out_dir or project) / "out.bundle.js"
    out.write_text(mod_bundle.emit_bundle(graph), encoding="utf-8")
    result = mod_verify.execute_bundle(out, cwd=project)
    assert result.returncode == 0, result.stderr
    return result.stdout.strip()


def _run_as_native_modules(project: Path, entry: str = "entry.js") -> str:
    """Run the unbundled sources as ES modules."""
    (project / "package.json").write_text(json.dumps({"type": "module"}))
    result = subprocess.run(  # noqa: S603
        [str(NODE), entry],
        cwd=project,
        capture_output=True,
        text=True,
        check=False,
    )
    assert result.returncode == 0, result.stderr
    return result.stdout.strip()


# --- tests ------------------------------------------------------------------------


@requires_node
def test_basic_project_output(tmp_path: Path) -> None:
    make_js_project(tmp_path, BASIC_PROJECT)
    assert _bundle_and_run(tmp_path) == "acb"


@requires_node
def test_same_dependency_runs_once_per_require(tmp_path: Path) -> None:
    """Two imports of one specifier evaluate it twice, with separate exports."""
    make_js_project(tmp_path, COUNTER_PROJECT)
    assert _bundle_and_run(tmp_path) == "1 2 false"


@requires_node
def test_diamond_runs_shared_module_twice(tmp_path: Path) -> None:
    make_js_project(tmp_path, DIAMOND_PROJECT)
    assert _bundle_and_run(tmp_path) == "L1 R2"


@requires_node
def test_hand_wired_graph_without_extractor(tmp_path: Path) -> None:
    """The runtime alone: a module requiring the same identity twice."""
    # --- setup ---
    entry = mod_asset.Asset(
        identity=0,
        path=tmp_path / "entry.js",
        specifiers=["./dep"],
        code=(
            'var first = require("./dep");\n'
            'var second = require("./dep");\n'
            "console.log(first.n, second.n, first === second);"
        ),
    )
    entry.resolve({"./dep": 1})
    dep = mod_asset.Asset(
        identity=1,
        path=tmp_path / "dep.js",
        specifiers=[],
        code="globalThis.n = (globalThis.n || 0) + 1;\nmodule.exports = { n: globalThis.n };",
    )
    dep.resolve({})
    out = tmp_path / "hand.bundle.js"
    out.write_text(mod_bundle.emit_bundle([entry, dep]), encoding="utf-8")

    # --- execute ---
    result = mod_verify.execute_bundle(out)

    # --- verify ---
    assert result.returncode == 0, result.stderr
    assert result.stdout.strip() == "1 2 false"


@requires_node
def test_emitted_bundle_passes_syntax_check(tmp_path: Path) -> None:
    # --- setup ---
    make_js_project(tmp_path, BASIC_PROJECT)
    graph = mod_graph.build_graph(tmp_path / "entry.js", mod_extract.extract_asset)
    out = tmp_path / "out.bundle.js"
    out.write_text(mod_bundle.emit_bundle(graph), encoding="utf-8")

    # --- execute & verify ---
    assert mod_verify.verify_syntax(out) is True


@requires_node
def test_live_binding_update_is_visible_to_importer(tmp_path: Path) -> None:
    make_js_project(tmp_path, LIVE_BINDING_PROJECT)
    assert _bundle_and_run(tmp_path) == "2"


@requires_node
@pytest.mark.parametrize(
    ("files", "expected"),
    [
        (LIVE_BINDING_PROJECT, "2"),
        (MIXED_SYNTAX_PROJECT, "hi x! 3 X Z export default 5"),
        (BASIC_PROJECT, "acb"),
    ],
    ids=["live-binding", "mixed-syntax", "basic"],
)
def test_bundle_matches_native_module_run(
    tmp_path: Path, files: dict[str, str], expected: str
) -> None:
    """Graphs without shared modules behave the same bundled or not."""
    # --- setup ---
    project = make_js_project(tmp_path / "src", files)

    # --- execute ---
    bundled = _bundle_and_run(project, out_dir=tmp_path)
    native = _run_as_native_modules(project)

    # --- verify ---
    assert bundled == native == expected
