# src/minipack/meta.py
"""Program identity shared by the CLI, the logger and the config loader."""

from dataclasses import dataclass


PROGRAM_PACKAGE = "minipack"  # import name; also the logger name
PROGRAM_SCRIPT = "minipack"  # console script name
PROGRAM_DISPLAY = "Minipack"  # human-facing name
PROGRAM_CONFIG = "minipack"  # dot-config prefix: .minipack.json
PROGRAM_ENV = "MINIPACK"  # env var prefix: MINIPACK_LOG_LEVEL
DESCRIPTION = "Bundle a JavaScript module graph into one self-contained script."


@dataclass(frozen=True)
class Metadata:
    """Version and commit of the running tool."""

    version: str
    commit: str

    def __str__(self) -> str:
        return f"{self.version} ({self.commit})"
