"""Base class for read-only archive views."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from types import TracebackType
from typing import List, Optional, Type


class ArchiveView(ABC):
    """Uniform access to the members of a source archive."""

    kind: str = ""

    def __init__(self, path: Path) -> None:
        self.path = path

    @abstractmethod
    def list_entries(self) -> List[str]:
        """Return member paths in archive order."""

    @abstractmethod
    def read_entry(self, path: str) -> bytes:
        """Return the content of one member or raise EntryReadError."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying file handle."""

    def read_text(self, path: str) -> str:
        """Return a member decoded as UTF-8, falling back to Latin-1."""
        data = self.read_entry(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return data.decode("latin-1")

    def __enter__(self) -> "ArchiveView":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()
