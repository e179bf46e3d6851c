"""Archive variants and selection by file name."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Dict, Tuple

from ..errors import ArchiveError
from ..models import INDEXED, SEQUENTIAL
from .base import ArchiveView
from .tar import TarArchiveView
from .zip import ZipArchiveView

_SUFFIX_KINDS: tuple[tuple[str, str], ...] = (
    (".tar.gz", SEQUENTIAL),
    (".tgz", SEQUENTIAL),
    (".tar.bz2", SEQUENTIAL),
    (".tbz", SEQUENTIAL),
    (".tbz2", SEQUENTIAL),
    (".tar", SEQUENTIAL),
    (".zip", INDEXED),
)

_RELEASE_NAME = re.compile(r"^(?P<name>.+?)-v?(?P<version>\d[\w.]*)$")

_VIEWS: Dict[str, Callable[[Path], ArchiveView]] = {
    SEQUENTIAL: TarArchiveView,
    INDEXED: ZipArchiveView,
}


def archive_suffix(filename: str) -> str | None:
    """Return the recognised archive suffix of ``filename``."""
    lowered = filename.lower()
    for suffix, _ in _SUFFIX_KINDS:
        if lowered.endswith(suffix):
            return filename[len(filename) - len(suffix):]
    return None


def archive_kind(filename: str) -> str:
    """Map a file name to its archive kind."""
    lowered = filename.lower()
    for suffix, kind in _SUFFIX_KINDS:
        if lowered.endswith(suffix):
            return kind
    raise ArchiveError(f"unsupported archive type: {filename}")


def split_release_name(filename: str) -> Tuple[str, str]:
    """Split an archive file name such as ``Foo-Bar-1.02.tar.gz`` into name and version."""
    suffix = archive_suffix(filename)
    if suffix is None:
        raise ArchiveError(f"unsupported archive type: {filename}")
    match = _RELEASE_NAME.match(filename[: -len(suffix)])
    if match is None:
        raise ArchiveError(f"cannot determine name and version from {filename}")
    return match.group("name"), match.group("version")


def open_archive(path: Path, kind: str | None = None) -> ArchiveView:
    """Open ``path`` with the view matching its archive kind."""
    selected = kind or archive_kind(path.name)
    try:
        factory = _VIEWS[selected]
    except KeyError as exc:
        raise ArchiveError(f"unknown archive kind: {selected}") from exc
    return factory(path)


__all__ = [
    "ArchiveView",
    "TarArchiveView",
    "ZipArchiveView",
    "archive_kind",
    "archive_suffix",
    "open_archive",
    "split_release_name",
]
