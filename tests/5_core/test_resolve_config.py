# tests/5_core/test_resolve_config.py
"""Tests for resolve_config() and resolve_build_config(): precedence and paths."""

import argparse
from pathlib import Path
from typing import Any

import pytest

import minipack.config.config_resolve as mod_resolve
import minipack.constants as mod_constants


def _args(**kwargs: Any) -> argparse.Namespace:
    return argparse.Namespace(**kwargs)


def _resolve_one(
    build: dict[str, Any],
    tmp_path: Path,
    *,
    root: dict[str, Any] | None = None,
    **cli: Any,
) -> dict[str, Any]:
    cwd = tmp_path / "cwd"
    config_dir = tmp_path / "cfg"
    cwd.mkdir(exist_ok=True)
    config_dir.mkdir(exist_ok=True)
    resolved = mod_resolve.resolve_build_config(
        build,  # type: ignore[arg-type]
        _args(**cli),
        config_dir,
        cwd,
        root,  # type: ignore[arg-type]
    )
    return dict(resolved)


# --- entry / out paths -------------------------------------------------------------


def test_config_entry_is_relative_to_config_dir(tmp_path: Path) -> None:
    resolved = _resolve_one({"entry": "src/app.js"}, tmp_path)
    assert resolved["entry"]["root"] == (tmp_path / "cfg").resolve()
    assert resolved["entry"]["path"] == "src/app.js"
    assert resolved["entry"]["origin"] == "config"


def test_cli_entry_wins_and_is_relative_to_cwd(tmp_path: Path) -> None:
    resolved = _resolve_one({"entry": "src/app.js"}, tmp_path, entry="main.js")
    assert resolved["entry"]["root"] == (tmp_path / "cwd").resolve()
    assert resolved["entry"]["path"] == "main.js"
    assert resolved["entry"]["origin"] == "cli"


def test_positional_entry_is_used(tmp_path: Path) -> None:
    resolved = _resolve_one({}, tmp_path, positional_entry="pos.js")
    assert resolved["entry"]["path"] == "pos.js"


def test_absolute_entry_becomes_its_own_root(tmp_path: Path) -> None:
    target = tmp_path / "elsewhere" / "app.js"
    resolved = _resolve_one({"entry": str(target)}, tmp_path)
    assert resolved["entry"]["root"] == target.parent.resolve()
    assert resolved["entry"]["path"] == "app.js"


def test_missing_entry_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="No entry file given"):
        _resolve_one({}, tmp_path)


def test_default_out_dir(tmp_path: Path) -> None:
    resolved = _resolve_one({"entry": "a.js"}, tmp_path)
    assert resolved["out"]["path"] == f"{mod_constants.DEFAULT_OUT_DIR}/"
    assert resolved["out"]["origin"] == "default"


def test_out_precedence_cli_build_root(tmp_path: Path) -> None:
    # --- execute ---
    from_root = _resolve_one({"entry": "a.js"}, tmp_path, root={"out": "root/"})
    from_build = _resolve_one(
        {"entry": "a.js", "out": "build/"}, tmp_path, root={"out": "root/"}
    )
    from_cli = _resolve_one(
        {"entry": "a.js", "out": "build/"}, tmp_path, out="cli.js"
    )

    # --- verify ---
    assert from_root["out"]["path"] == "root/"
    assert from_build["out"]["path"] == "build/"
    assert from_cli["out"]["path"] == "cli.js"
    assert from_cli["out"]["root"] == (tmp_path / "cwd").resolve()


def test_stdout_marker_is_kept(tmp_path: Path) -> None:
    resolved = _resolve_one({"entry": "a.js", "out": "-"}, tmp_path)
    assert resolved["out"]["path"] == mod_constants.DEFAULT_STDOUT_OUT


# --- graph options -----------------------------------------------------------------


def test_extensions_are_normalized(tmp_path: Path) -> None:
    resolved = _resolve_one(
        {"entry": "a.js", "extensions": ["js", ".mjs", " ", ".js"]}, tmp_path
    )
    assert resolved["extensions"] == [".js", ".mjs"]


def test_cli_extensions_accept_commas(tmp_path: Path) -> None:
    resolved = _resolve_one({"entry": "a.js"}, tmp_path, extensions=["cjs,js"])
    assert resolved["extensions"] == [".cjs", ".js"]


def test_max_assets_default_and_zero(tmp_path: Path) -> None:
    default = _resolve_one({"entry": "a.js"}, tmp_path)
    unbounded = _resolve_one({"entry": "a.js", "max_assets": 0}, tmp_path)
    from_cli = _resolve_one({"entry": "a.js", "max_assets": 5}, tmp_path, max_assets=7)
    assert default["max_assets"] == mod_constants.DEFAULT_MAX_ASSETS
    assert unbounded["max_assets"] is None
    assert from_cli["max_assets"] == 7


def test_negative_max_assets_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="max_assets"):
        _resolve_one({"entry": "a.js", "max_assets": -1}, tmp_path)


# --- flags and env -----------------------------------------------------------------


def test_no_banner_flag(tmp_path: Path) -> None:
    on = _resolve_one({"entry": "a.js"}, tmp_path)
    off = _resolve_one({"entry": "a.js", "banner": True}, tmp_path, no_banner=True)
    assert on["banner"] is mod_constants.DEFAULT_BANNER
    assert off["banner"] is False


def test_banner_text_keys_are_copied(tmp_path: Path) -> None:
    resolved = _resolve_one(
        {"entry": "a.js", "display_name": "App", "repo": "https://x"}, tmp_path
    )
    assert resolved["display_name"] == "App"
    assert resolved["repo"] == "https://x"
    assert "version" not in resolved


def test_disable_build_timestamp_from_env(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("MINIPACK_DISABLE_BUILD_TIMESTAMP", "true")
    resolved = _resolve_one({"entry": "a.js"}, tmp_path)
    assert resolved["disable_build_timestamp"] is True


def test_log_level_precedence(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    # --- build beats root ---
    resolved = _resolve_one(
        {"entry": "a.js", "log_level": "debug"}, tmp_path, root={"log_level": "error"}
    )
    assert resolved["log_level"] == "DEBUG"

    # --- env beats build ---
    monkeypatch.setenv("LOG_LEVEL", "warning")
    resolved = _resolve_one({"entry": "a.js", "log_level": "debug"}, tmp_path)
    assert resolved["log_level"] == "WARNING"

    # --- CLI beats env ---
    resolved = _resolve_one({"entry": "a.js"}, tmp_path, log_level="trace")
    assert resolved["log_level"] == "TRACE"


# --- root resolution ---------------------------------------------------------------


def test_resolve_config_watch_interval(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    # --- setup ---
    root = {"watch_interval": 3.0, "builds": [{"entry": "a.js"}]}

    # --- execute ---
    from_root = mod_resolve.resolve_config(root, _args(), tmp_path, tmp_path)  # type: ignore[arg-type]
    monkeypatch.setenv("MINIPACK_WATCH_INTERVAL", "0.25")
    from_env = mod_resolve.resolve_config(root, _args(), tmp_path, tmp_path)  # type: ignore[arg-type]
    from_cli = mod_resolve.resolve_config(root, _args(watch=2), tmp_path, tmp_path)  # type: ignore[arg-type]

    # --- verify ---
    assert from_root["watch_interval"] == 3.0
    assert from_env["watch_interval"] == 0.25
    assert from_cli["watch_interval"] == 2.0


def test_resolve_config_rejects_cli_entry_with_many_builds(tmp_path: Path) -> None:
    root = {"builds": [{"entry": "a.js"}, {"entry": "b.js"}]}
    with pytest.raises(ValueError, match="cannot be combined"):
        mod_resolve.resolve_config(root, _args(entry="c.js"), tmp_path, tmp_path)  # type: ignore[arg-type]


def test_resolve_config_rejects_shared_output(tmp_path: Path) -> None:
    # --- setup ---
    root = {
        "builds": [
            {"entry": "one/app.js", "out": "dist/"},
            {"entry": "two/app.js", "out": "dist/"},
        ],
    }

    # --- execute & verify ---
    with pytest.raises(ValueError, match="same output path") as exc_info:
        mod_resolve.resolve_config(root, _args(), tmp_path, tmp_path)  # type: ignore[arg-type]
    assert "build #1, build #2" in str(exc_info.value)


def test_resolve_config_resolves_every_build(tmp_path: Path) -> None:
    # --- setup ---
    root = {
        "out": "dist/",
        "builds": [{"entry": "app.js"}, {"entry": "cli.js", "max_assets": 3}],
    }

    # --- execute ---
    resolved = mod_resolve.resolve_config(
        root,  # type: ignore[arg-type]
        _args(),
        tmp_path,
        tmp_path,
        tmp_path / ".minipack.json",
    )

    # --- verify ---
    assert [b["entry"]["path"] for b in resolved["builds"]] == ["app.js", "cli.js"]
    assert resolved["builds"][1]["max_assets"] == 3
    assert resolved["builds"][0]["__meta__"]["config_path"] == (
        tmp_path / ".minipack.json"
    )
    assert resolved["config_path"] == tmp_path / ".minipack.json"
