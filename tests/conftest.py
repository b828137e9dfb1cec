# tests/conftest.py
"""Shared test setup for the project."""

from collections.abc import Generator

import pytest

import minipack.logs as mod_logs
from tests.utils import DEFAULT_TEST_LOG_LEVEL


# ----------------------------------------------------------------------
# Fixtures
# ----------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_logger_level() -> Generator[None, None, None]:
    """Reset the app logger to DEFAULT_TEST_LOG_LEVEL around every test.

    The app logger is a module-level singleton, and main() or a config
    file may change its level; resetting keeps tests independent.
    """
    logger = mod_logs.get_app_logger()
    logger.setLevel(DEFAULT_TEST_LOG_LEVEL)
    yield
    logger.setLevel(DEFAULT_TEST_LOG_LEVEL)


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop env vars that change log level, timestamps or watch timing."""
    for name in (
        "LOG_LEVEL",
        "MINIPACK_LOG_LEVEL",
        "DISABLE_BUILD_TIMESTAMP",
        "MINIPACK_DISABLE_BUILD_TIMESTAMP",
        "WATCH_INTERVAL",
        "MINIPACK_WATCH_INTERVAL",
    ):
        monkeypatch.delenv(name, raising=False)


# ----------------------------------------------------------------------
# Hooks
# ----------------------------------------------------------------------


def _filter_debug_tests(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    keywords = config.getoption("-k") or ""
    if "debug" in keywords.lower():
        return  # user explicitly requested them, don't skip

    for item in items:
        if "debug" in item.keywords:
            item.add_marker(
                pytest.mark.skip(reason="Skipped debug test (use -k debug to run)"),
            )


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Skip debug tests unless asked for."""
    _filter_debug_tests(config, items)
