"""Archive layout validation."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from .errors import LayoutError
from .logging import get_logger
from .models import LayoutResult

# Written by some tar implementations ahead of the real members.
_IGNORED_ENTRIES = {"pax_global_header"}

logger = get_logger("layout")


def root_pattern(name: str, version: str) -> re.Pattern[str]:
    """Return the regex every member of ``name``-``version`` must match."""
    return re.compile(rf"^({re.escape(name)}-(?:v\.?)?{re.escape(version)})(?:/|$)")


def validate_layout(entries: Iterable[str], name: str, version: str) -> LayoutResult:
    """Check that all entries live under one root directory and strip it.

    The root prefix is taken literally from the first matching entry, so
    ``Foo-v1.2`` is accepted for version ``1.2``. Any non-conforming entry
    rejects the whole archive.
    """
    pattern = root_pattern(name, version)
    root_prefix: Optional[str] = None
    files: List[str] = []
    violations = 0

    for raw in entries:
        entry = raw[2:] if raw.startswith("./") else raw
        if entry in _IGNORED_ENTRIES or entry in {"", "."}:
            continue
        match = pattern.match(entry)
        if match is None:
            logger.debug("Entry %s is outside %s-%s", raw, name, version)
            violations += 1
            continue
        if root_prefix is None:
            root_prefix = match.group(1)
        if entry == root_prefix or entry == f"{root_prefix}/":
            continue
        if not entry.startswith(f"{root_prefix}/"):
            # Matches the pattern but under a differently spelled root.
            violations += 1
            continue
        relative = entry[len(root_prefix) + 1:].rstrip("/")
        if relative:
            files.append(relative)

    if violations:
        raise LayoutError(f"{name}-{version}", violations)
    if root_prefix is None:
        raise LayoutError(f"{name}-{version}", 0)
    return LayoutResult(root_prefix=root_prefix, files=files)


__all__ = ["root_pattern", "validate_layout"]
