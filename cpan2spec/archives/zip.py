"""Indexed (zip) archive support."""

from __future__ import annotations

import zipfile
import zlib
from pathlib import Path
from typing import List

from ..errors import ArchiveError, EntryReadError
from ..models import INDEXED
from .base import ArchiveView


class ZipArchiveView(ArchiveView):
    """Reads members of a zip archive through its central directory."""

    kind = INDEXED

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        try:
            self._zip = zipfile.ZipFile(path)
        except (zipfile.BadZipFile, OSError) as exc:
            raise ArchiveError(f"cannot open {path.name}: {exc}") from exc

    def list_entries(self) -> List[str]:
        # Directory members carry a trailing slash that tar listings do not.
        return [name.rstrip("/") for name in self._zip.namelist()]

    def read_entry(self, path: str) -> bytes:
        try:
            info = self._zip.getinfo(path)
        except KeyError as exc:
            raise EntryReadError(path, "no such member") from exc
        if info.is_dir():
            raise EntryReadError(path, "not a regular file")
        try:
            return self._zip.read(info)
        except (zipfile.BadZipFile, zlib.error, OSError, NotImplementedError) as exc:
            raise EntryReadError(path, str(exc)) from exc

    def close(self) -> None:
        self._zip.close()


__all__ = ["ZipArchiveView"]
