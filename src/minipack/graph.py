# src/minipack/graph.py
"""Dependency graph discovery.

The builder walks a FIFO work-list starting at the entry file. Every
specifier of every asset produces a brand-new asset with the next identity;
there is no path deduplication and no cycle detection, so a diamond yields
duplicate assets and a cycle only stops at the optional max_assets bound.
"""

import itertools
import os
from collections import deque
from collections.abc import Sequence
from pathlib import Path

from .asset import Asset, Extractor, Graph
from .constants import DEFAULT_EXTENSIONS, INDEX_BASENAME
from .errors import ExtractionError, GraphLimitError, ResolutionError
from .logs import get_app_logger


def resolve_specifier(
    directory: Path,
    specifier: str,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> Path:
    """Resolve `specifier` against the importing file's directory.

    Tries the joined path as-is, then with each extension appended, then
    `<path>/index<ext>`. When nothing exists the plain joined path is
    returned and extraction reports the failure.
    """
    joined = Path(os.path.normpath(directory / specifier))
    if joined.is_file():
        return joined

    for ext in extensions:
        candidate = joined.with_name(joined.name + ext)
        if candidate.is_file():
            return candidate

    if joined.is_dir():
        for ext in extensions:
            candidate = joined / f"{INDEX_BASENAME}{ext}"
            if candidate.is_file():
                return candidate

    return joined


class GraphBuilder:
    """One graph-building run.

    The identity counter and the work-list belong to the instance, so two
    builders never share identities.
    """

    def __init__(
        self,
        extract: Extractor,
        *,
        max_assets: int | None = None,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ) -> None:
        if max_assets is not None and max_assets < 1:
            xmsg = f"max_assets must be a positive integer, got {max_assets}"
            raise ValueError(xmsg)
        self.extract = extract
        self.max_assets = max_assets
        self.extensions = tuple(extensions)
        self._ids = itertools.count()
        self._queue: deque[Asset] = deque()
        self._assets: Graph = []

    def _create_asset(self, path: Path) -> Asset:
        if self.max_assets is not None and len(self._assets) >= self.max_assets:
            raise GraphLimitError(self.max_assets, path)

        extracted = self.extract(path)
        asset = Asset(
            identity=next(self._ids),
            path=path,
            specifiers=list(extracted.specifiers),
            code=extracted.code,
        )
        self._assets.append(asset)
        self._queue.append(asset)
        return asset

    def _process(self, asset: Asset) -> None:
        logger = get_app_logger()
        mapping: dict[str, int] = {}
        for specifier in asset.specifiers:
            child_path = resolve_specifier(asset.directory, specifier, self.extensions)
            try:
                child = self._create_asset(child_path)
            except ResolutionError:
                raise
            except ExtractionError as e:
                raise ResolutionError(
                    e.path,
                    e.message,
                    importer=asset.path,
                    specifier=specifier,
                ) from e
            logger.trace(
                f"[graph] #{asset.identity} {specifier!r} → #{child.identity}"
                f" ({child.path})"
            )
            mapping[specifier] = child.identity
        asset.resolve(mapping)

    def build(self, entry: Path | str) -> Graph:
        """Discover every asset reachable from `entry`, entry first."""
        if self._assets:
            xmsg = "GraphBuilder.build() can only run once per builder"
            raise RuntimeError(xmsg)

        logger = get_app_logger()
        entry_path = Path(os.path.abspath(entry))
        logger.debug(f"[graph] entry: {entry_path}")
        self._create_asset(entry_path)

        while self._queue:
            self._process(self._queue.popleft())

        logger.debug(f"[graph] {len(self._assets)} asset(s) discovered")
        return self._assets


def build_graph(
    entry: Path | str,
    extract: Extractor,
    *,
    max_assets: int | None = None,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> Graph:
    """Build the dependency graph for `entry` with a fresh builder.

    Raises:
        ExtractionError: the entry itself could not be extracted.
        ResolutionError: a dependency could not be extracted.
        GraphLimitError: more than `max_assets` assets were discovered.
    """
    builder = GraphBuilder(extract, max_assets=max_assets, extensions=extensions)
    return builder.build(entry)
