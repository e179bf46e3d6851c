"""Sequential (tar) archive support."""

from __future__ import annotations

import tarfile
from pathlib import Path
from typing import Dict, List

from ..errors import ArchiveError, EntryReadError
from ..logging import get_logger
from ..models import SEQUENTIAL
from .base import ArchiveView

_BZIP2_MAGIC = b"BZh"

logger = get_logger("archives.tar")


class TarArchiveView(ArchiveView):
    """Reads plain, gzip and bzip2 compressed tarballs."""

    kind = SEQUENTIAL

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        mode = "r:bz2" if _is_bzip2(path) else "r:*"
        if mode == "r:bz2":
            _require_bz2(path)
        try:
            self._tar = tarfile.open(path, mode)
        except (tarfile.TarError, OSError, EOFError) as exc:
            raise ArchiveError(f"cannot open {path.name}: {exc}") from exc
        try:
            self._members: Dict[str, tarfile.TarInfo] = {}
            self._order: List[str] = []
            for member in self._tar.getmembers():
                self._order.append(member.name)
                self._members.setdefault(member.name, member)
        except (tarfile.TarError, OSError, EOFError) as exc:
            self._tar.close()
            raise ArchiveError(f"cannot list {path.name}: {exc}") from exc

    def list_entries(self) -> List[str]:
        return list(self._order)

    def read_entry(self, path: str) -> bytes:
        member = self._members.get(path)
        if member is None:
            raise EntryReadError(path, "no such member")
        if not member.isfile():
            raise EntryReadError(path, "not a regular file")
        try:
            handle = self._tar.extractfile(member)
            if handle is None:
                raise EntryReadError(path, "no data")
            with handle:
                return handle.read()
        except (tarfile.TarError, OSError, EOFError) as exc:
            raise EntryReadError(path, str(exc)) from exc

    def close(self) -> None:
        self._tar.close()


def _is_bzip2(path: Path) -> bool:
    try:
        with path.open("rb") as handle:
            return handle.read(len(_BZIP2_MAGIC)) == _BZIP2_MAGIC
    except OSError as exc:
        raise ArchiveError(f"cannot read {path.name}: {exc}") from exc


def _require_bz2(path: Path) -> None:
    try:
        import bz2  # noqa: F401
    except ImportError as exc:
        logger.warning("bzip2 support unavailable; cannot open %s", path.name)
        raise ArchiveError(f"bzip2 support unavailable for {path.name}") from exc


__all__ = ["TarArchiveView"]
