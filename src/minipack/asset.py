# src/minipack/asset.py
"""Data model shared by the graph builder and the bundle emitter."""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple


class ExtractedAsset(NamedTuple):
    """What an extractor hands back for one file."""

    specifiers: list[str]
    code: str


# path → ExtractedAsset; raises ExtractionError on failure
Extractor = Callable[[Path], ExtractedAsset]


@dataclass
class Asset:
    """One discovered module.

    `resolution` stays None until every specifier of this asset has been
    turned into a child asset; after that it maps each specifier string to
    the identity of the asset it resolved to.
    """

    identity: int
    path: Path
    specifiers: list[str]
    code: str
    resolution: dict[str, int] | None = field(default=None)

    @property
    def directory(self) -> Path:
        return self.path.parent

    @property
    def is_resolved(self) -> bool:
        return self.resolution is not None

    def resolve(self, mapping: dict[str, int]) -> None:
        """Attach the specifier → identity table.

        Raises:
            ValueError: if the table's keys differ from the declared specifiers
                or an identity is negative.
        """
        declared = set(self.specifiers)
        if set(mapping) != declared:
            missing = sorted(declared - set(mapping))
            extra = sorted(set(mapping) - declared)
            xmsg = (
                f"Resolution table for {self.path} does not match its"
                f" specifiers (missing={missing}, extra={extra})"
            )
            raise ValueError(xmsg)
        bad = {k: v for k, v in mapping.items() if not isinstance(v, int) or v < 0}
        if bad:
            xmsg = f"Invalid identities in resolution table for {self.path}: {bad}"
            raise ValueError(xmsg)
        self.resolution = dict(mapping)


# discovery order, entry first
Graph = list[Asset]
