# src/minipack/errors.py
"""Build failures raised by the extractor and the graph builder.

All of them abort the build; the CLI reports them as controlled errors.
"""

from pathlib import Path


class ExtractionError(RuntimeError):
    """A module file could not be read or could not be understood."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = Path(path)
        self.message = message
        super().__init__(f"{self.path}: {message}")


class ResolutionError(ExtractionError):
    """A specifier led to a file that could not be extracted."""

    def __init__(
        self,
        path: Path | str,
        message: str,
        *,
        importer: Path | str,
        specifier: str,
    ) -> None:
        self.importer = Path(importer)
        self.specifier = specifier
        super().__init__(path, message)
        # rebuild args so str(err) names the import, not just the file
        self.args = (
            f"cannot resolve {specifier!r} from {self.importer}: {message}",
        )


class GraphLimitError(RuntimeError):
    """The asset count passed the configured max_assets bound."""

    def __init__(self, limit: int, path: Path | str) -> None:
        self.limit = limit
        self.path = Path(path)
        super().__init__(
            f"dependency graph exceeded {limit} assets while adding {self.path}"
            " (is there an import cycle?)"
        )
