"""Module lookup through a local copy of the CPAN 02packages index."""

from __future__ import annotations

import gzip
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional

from .archives import archive_kind, split_release_name
from .config import DEFAULT_MIRROR, ConfigError
from .errors import IndexLookupError
from .logging import get_logger
from .models import Distribution

_GZIP_MAGIC = b"\x1f\x8b"


@dataclass(frozen=True)
class IndexEntry:
    """One row of 02packages.details.txt."""

    module: str
    version: str
    path: str

    @property
    def filename(self) -> str:
        return self.path.rsplit("/", 1)[-1]


class PackageIndex:
    """Maps module names onto the release archives that provide them."""

    def __init__(self, entries: Dict[str, IndexEntry], *, mirror: str = DEFAULT_MIRROR) -> None:
        self.entries = entries
        self.mirror = mirror if mirror.endswith("/") else mirror + "/"

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, module: object) -> bool:
        return module in self.entries

    @classmethod
    def load(cls, path: Path, *, mirror: str = DEFAULT_MIRROR) -> "PackageIndex":
        logger = get_logger("index")
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise ConfigError(f"Cannot read package index {path}: {exc}") from exc
        if raw[:2] == _GZIP_MAGIC:
            try:
                raw = gzip.decompress(raw)
            except (OSError, EOFError) as exc:
                raise ConfigError(f"Package index {path} is not valid gzip data: {exc}") from exc
        entries = parse_index(raw.decode("utf-8", errors="replace").splitlines())
        logger.debug("Loaded %d modules from %s", len(entries), path)
        return cls(entries, mirror=mirror)

    def lookup(self, module: str) -> Distribution:
        """Return the release that provides ``module``."""
        entry = self.entries.get(module)
        if entry is None:
            raise IndexLookupError(f"{module} is not in the package index")
        name, version = split_release_name(entry.filename)
        return Distribution(
            name=name,
            version=version,
            source_url=f"{self.mirror}authors/id/{entry.path}",
            archive_kind=archive_kind(entry.filename),
        )


def parse_index(lines: Iterable[str]) -> Dict[str, IndexEntry]:
    """Parse the header block, blank separator and module rows of an index file."""
    entries: Dict[str, IndexEntry] = {}
    in_header = True
    for line in lines:
        if in_header:
            if not line.strip():
                in_header = False
            continue
        entry = _parse_row(line)
        if entry is not None:
            entries[entry.module] = entry
    return entries


def _parse_row(line: str) -> Optional[IndexEntry]:
    fields = line.split()
    if len(fields) != 3:
        return None
    module, version, path = fields
    return IndexEntry(module=module, version="0" if version == "undef" else version, path=path)


__all__ = ["IndexEntry", "PackageIndex", "parse_index"]
