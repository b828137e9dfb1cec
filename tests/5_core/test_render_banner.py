# tests/5_core/test_render_banner.py
"""Tests for the bundle banner and its metadata helpers."""

import json
from pathlib import Path

import pytest

import minipack.build as mod_build
from tests.utils import clear_ci_env, make_build_cfg, set_ci_env


def test_banner_lines(tmp_path: Path) -> None:
    # --- setup ---
    build_cfg = make_build_cfg(
        tmp_path,
        display_name="Widget",
        description="tiny widget",
        version="1.2.3",
        repo="https://example.com/widget",
        license_header="MIT License\n// (c) Someone",
    )

    # --- execute ---
    banner = mod_build.render_banner(
        build_cfg,
        tmp_path / "entry.js",
        commit="abc1234",
        build_date="2024-01-01 00:00:00 UTC",
    )

    # --- verify ---
    assert banner.splitlines() == [
        "// Widget — tiny widget",
        "// MIT License",
        "// (c) Someone",
        "// Version: 1.2.3",
        "// Commit: abc1234",
        "// Build Date: 2024-01-01 00:00:00 UTC",
        "// Repo: https://example.com/widget",
    ]
    assert banner.endswith("\n\n")


def test_banner_falls_back_to_entry_name(tmp_path: Path) -> None:
    banner = mod_build.render_banner(
        make_build_cfg(tmp_path), tmp_path / "main.js", commit="x", build_date="d"
    )
    assert banner.startswith("// main.js\n")
    assert "// Repo:" not in banner


def test_disabled_timestamp_uses_placeholder(tmp_path: Path) -> None:
    banner = mod_build.render_banner(
        make_build_cfg(tmp_path, disable_build_timestamp=True),
        tmp_path / "main.js",
        commit="x",
    )
    assert "// Build Date: <build-timestamp>" in banner


def test_timestamp_format(tmp_path: Path) -> None:
    banner = mod_build.render_banner(
        make_build_cfg(tmp_path), tmp_path / "main.js", commit="x"
    )
    date_line = next(ln for ln in banner.splitlines() if "Build Date" in ln)
    assert date_line.endswith(" UTC")
    assert len(date_line.removeprefix("// Build Date: ")) == len(
        "2024-01-01 00:00:00 UTC"
    )


def test_version_from_package_json(tmp_path: Path) -> None:
    # --- setup ---
    (tmp_path / "package.json").write_text(json.dumps({"version": "3.1.4"}))
    (tmp_path / "src").mkdir()

    # --- execute ---
    version = mod_build.extract_version(
        make_build_cfg(tmp_path), tmp_path / "src" / "app.js"
    )

    # --- verify ---
    assert version == "3.1.4"


def test_config_version_beats_package_json(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text(json.dumps({"version": "3.1.4"}))
    build_cfg = make_build_cfg(tmp_path, version="0.0.1")
    assert mod_build.extract_version(build_cfg, tmp_path / "app.js") == "0.0.1"


def test_extract_commit_not_in_ci(monkeypatch: pytest.MonkeyPatch) -> None:
    """Should return 'unknown (local build)' outside CI context."""
    clear_ci_env(monkeypatch)
    assert mod_build.extract_commit(Path()) == "unknown (local build)"


def test_extract_commit_outside_a_repo_in_ci(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    set_ci_env(monkeypatch)
    assert mod_build.extract_commit(tmp_path) == "unknown"
