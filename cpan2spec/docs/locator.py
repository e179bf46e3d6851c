"""Locate the primary module documentation inside a distribution."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

_SEPARATOR = re.compile(r"::|-|'")
_EXTENSIONS = (".pod", ".pm")


def module_parts(module: str) -> List[str]:
    """Split a module name such as ``Foo::Bar`` into its hierarchy segments."""
    return [part for part in _SEPARATOR.split(module) if part]


def doc_candidates(module: str) -> List[str]:
    """Return candidate documentation paths, most likely first.

    For ``Foo::Bar`` the order is ``lib/Foo/Bar``, ``lib/Bar``, ``Foo/Bar``
    and ``Bar``, each tried as ``.pod`` before ``.pm``.
    """
    parts = module_parts(module)
    if not parts:
        return []

    stems = [f"lib/{'/'.join(parts)}", f"lib/{parts[-1]}"]
    stems.extend("/".join(parts[index:]) for index in range(len(parts)))

    candidates: List[str] = []
    seen: set[str] = set()
    for stem in stems:
        for extension in _EXTENSIONS:
            candidate = f"{stem}{extension}"
            if candidate not in seen:
                seen.add(candidate)
                candidates.append(candidate)
    return candidates


def locate_documentation(module: str, files: Iterable[str]) -> Optional[str]:
    """Return the first candidate present in ``files``."""
    available = set(files)
    for candidate in doc_candidates(module):
        if candidate in available:
            return candidate
    return None


__all__ = ["doc_candidates", "locate_documentation", "module_parts"]
