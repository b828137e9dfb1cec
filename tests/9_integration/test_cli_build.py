# tests/9_integration/test_cli_build.py
"""End-to-end builds through minipack.cli.main()."""

from collections.abc import Callable
from pathlib import Path

import pytest

import minipack.cli as mod_cli
import minipack.verify_bundle as mod_verify
from tests.utils import (
    BASIC_PROJECT,
    CYCLE_PROJECT,
    make_js_project,
    requires_node,
)


def _run_cli(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, argv: list[str]) -> int:
    monkeypatch.chdir(tmp_path)
    return mod_cli.main(argv)


def test_entry_only_builds_into_default_dist(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    make_js_project(tmp_path, BASIC_PROJECT)

    # --- execute ---
    code = _run_cli(monkeypatch, tmp_path, ["--entry", "entry.js"])

    # --- verify ---
    assert code == 0
    bundle = tmp_path / "dist" / "entry.bundle.js"
    assert bundle.is_file()
    assert bundle.read_text(encoding="utf-8").startswith("// entry.js\n")
    assert "Bundle written" in capsys.readouterr().out


def test_no_banner_flag(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # --- setup ---
    make_js_project(tmp_path, BASIC_PROJECT)

    # --- execute ---
    code = _run_cli(monkeypatch, tmp_path, ["entry.js", "out/app.js", "--no-banner"])

    # --- verify ---
    assert code == 0
    text = (tmp_path / "out" / "app.js").read_text(encoding="utf-8")
    assert text.startswith("(function (modules) {")


def test_deterministic_builds(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # --- setup ---
    make_js_project(tmp_path, BASIC_PROJECT)
    flags = ["--disable-build-timestamp"]

    # --- execute ---
    assert _run_cli(monkeypatch, tmp_path, ["entry.js", "one/", *flags]) == 0
    assert _run_cli(monkeypatch, tmp_path, ["entry.js", "two/", *flags]) == 0

    # --- verify ---
    first = (tmp_path / "one" / "entry.bundle.js").read_text(encoding="utf-8")
    second = (tmp_path / "two" / "entry.bundle.js").read_text(encoding="utf-8")
    assert first == second
    assert "// Build Date: <build-timestamp>" in first


def test_stdout_output(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    make_js_project(tmp_path, BASIC_PROJECT)

    # --- execute ---
    code = _run_cli(monkeypatch, tmp_path, ["entry.js", "-", "--no-banner"])

    # --- verify ---
    assert code == 0
    out = capsys.readouterr().out
    assert out.startswith("(function (modules) {")
    assert "require(0);" in out
    assert not (tmp_path / "dist").exists()


def test_dry_run(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    make_js_project(tmp_path, BASIC_PROJECT)

    # --- execute ---
    code = _run_cli(monkeypatch, tmp_path, ["entry.js", "--dry-run"])

    # --- verify ---
    assert code == 0
    assert not (tmp_path / "dist").exists()
    out = capsys.readouterr().out
    assert "Dry-run mode" in out
    assert "Would write 4 module(s)" in out


def test_extensions_flag(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # --- setup ---
    make_js_project(
        tmp_path,
        {
            "entry.js": 'import "./lib";\n',
            "lib.js": 'var picked = "js";\n',
            "lib.cjs": 'var picked = "cjs";\n',
        },
    )

    # --- execute ---
    code = _run_cli(
        monkeypatch, tmp_path, ["entry.js", "--extensions", "cjs", "--no-banner"]
    )

    # --- verify ---
    assert code == 0
    text = (tmp_path / "dist" / "entry.bundle.js").read_text(encoding="utf-8")
    assert 'var picked = "cjs";' in text
    assert 'var picked = "js";' not in text



def test_cycle_is_stopped_by_max_assets(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    make_js_project(tmp_path, CYCLE_PROJECT)

    # --- execute ---
    code = _run_cli(monkeypatch, tmp_path, ["a.js", "--max-assets", "5"])

    # --- verify ---
    assert code == 1
    err = capsys.readouterr().err
    assert "exceeded 5 assets" in err
    assert not (tmp_path / "dist").exists()


def test_missing_dependency(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    make_js_project(tmp_path, {"entry.js": 'import { x } from "./missing.js";\n'})

    # --- execute ---
    code = _run_cli(monkeypatch, tmp_path, ["entry.js"])

    # --- verify ---
    assert code == 1
    assert "cannot resolve './missing.js'" in capsys.readouterr().err


def test_missing_entry(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    code = _run_cli(monkeypatch, tmp_path, ["nope.js"])
    assert code == 1
    assert "Entry file not found" in capsys.readouterr().err


def test_nothing_to_build(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- execute ---
    code = _run_cli(monkeypatch, tmp_path, [])

    # --- verify ---
    assert code == 1
    err = capsys.readouterr().err
    assert "No config file found" in err
    assert "No entry file given" in err


def test_watch_flag_uses_interval(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    # --- setup ---
    make_js_project(tmp_path, BASIC_PROJECT)
    seen: dict[str, object] = {}

    def fake_watch(
        rebuild: Callable[[], list[Path]],
        _builds: object,
        interval: float,
        **kwargs: object,
    ) -> None:
        seen["interval"] = interval
        seen["assets"] = rebuild()
        seen.update(kwargs)

    monkeypatch.setattr(mod_cli, "watch_for_changes", fake_watch)

    # --- execute ---
    code = _run_cli(monkeypatch, tmp_path, ["entry.js", "--watch", "0.2"])

    # --- verify ---
    assert code == 0
    assert seen["interval"] == 0.2
    assert len(seen["assets"]) == 4  # type: ignore[arg-type]
    assert seen["config_path"] is None


def test_watch_flag_without_value_uses_default(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    # --- setup ---
    make_js_project(tmp_path, BASIC_PROJECT)
    seen: dict[str, float] = {}
    monkeypatch.setattr(
        mod_cli,
        "watch_for_changes",
        lambda _rebuild, _builds, interval, **_kw: seen.update(interval=interval),
    )

    # --- execute ---
    code = _run_cli(monkeypatch, tmp_path, ["--watch", "--entry", "entry.js"])

    # --- verify ---
    assert code == 0
    assert seen["interval"] == 1.0


@requires_node
def test_cli_bundle_runs_under_node(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    # --- setup ---
    make_js_project(tmp_path, BASIC_PROJECT)

    # --- execute ---
    code = _run_cli(monkeypatch, tmp_path, ["entry.js", "app.js"])
    result = mod_verify.execute_bundle(tmp_path / "app.js")

    # --- verify ---
    assert code == 0
    assert result.stdout.strip() == "acb"
