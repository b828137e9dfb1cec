# src/minipack/utils/utils_env.py
"""Environment lookups for build settings.

Every setting that can come from the environment is read twice: first with
the program prefix (``MINIPACK_WATCH_INTERVAL``), then bare
(``WATCH_INTERVAL``). The prefixed name wins.
"""

import os

from minipack.meta import PROGRAM_ENV


# env vars that mark a CI run; CI builds embed the git commit in the banner
CI_ENV_VARS = ("CI", "GITHUB_ACTIONS", "GIT_TAG", "GITHUB_REF")

TRUTHY = {"1", "true", "yes", "on"}


def program_env(name: str) -> str | None:
    """Value of ``{PROGRAM_ENV}_{name}`` or ``name``; empty counts as unset."""
    for var in (f"{PROGRAM_ENV}_{name}", name):
        value = os.getenv(var)
        if value:
            return value
    return None


def env_flag(name: str) -> bool:
    value = program_env(name)
    return value is not None and value.strip().lower() in TRUTHY


def is_ci() -> bool:
    return any(os.getenv(var) for var in CI_ENV_VARS)
