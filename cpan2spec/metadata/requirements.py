"""Translate dependency maps into RPM requirement values."""

from __future__ import annotations

import re
from typing import List, Mapping, Optional, Tuple

from ..models import ANY_VERSION, CoreModuleSet, Requirement

PERL = "perl"

# Versions sorting (as strings) below this get epoch 0, the rest epoch 1.
EPOCH_THRESHOLD = "5.8"

_NON_DIGIT = re.compile(r"\D")


def is_any_version(version: Optional[str]) -> bool:
    return version is None or version.strip() in {"", ANY_VERSION}


def epoch_qualify(version: str) -> str:
    """Prefix ``version`` with the epoch selected by :data:`EPOCH_THRESHOLD`."""
    epoch = "0" if version < EPOCH_THRESHOLD else "1"
    return f"{epoch}:{version}"


def version_key(version: str) -> Tuple[int, ...]:
    """Comparable form of a Perl version (decimal ``1.002003`` or dotted ``v1.2.3``)."""
    text = version.strip().replace("_", "")
    dotted = text.startswith("v") or text.count(".") > 1
    text = text.lstrip("v")
    parts = text.split(".")
    if dotted:
        numbers = [int(_NON_DIGIT.sub("", part) or 0) for part in parts]
    else:
        whole = int(_NON_DIGIT.sub("", parts[0]) or 0)
        fraction = _NON_DIGIT.sub("", parts[1]) if len(parts) > 1 else ""
        fraction = fraction.ljust(-(-len(fraction) // 3) * 3, "0")
        numbers = [whole] + [int(fraction[index:index + 3]) for index in range(0, len(fraction), 3)]
    while len(numbers) > 1 and numbers[-1] == 0:
        numbers.pop()
    return tuple(numbers)


def provided_by_core(name: str, core: CoreModuleSet) -> bool:
    """True when ``name`` ships with perl, whatever minimum version is asked for."""
    return name in core


def to_requirements(
    dependencies: Mapping[str, str],
    core: CoreModuleSet,
    *,
    keep_core: bool = False,
) -> List[Requirement]:
    """Build sorted requirements, dropping core modules unless ``keep_core``."""
    requirements: List[Requirement] = []
    for name in sorted(dependencies):
        version = dependencies[name]
        known = not is_any_version(version)
        if name == PERL:
            requirements.append(Requirement(PERL, PERL, epoch_qualify(version) if known else None))
            continue
        capability = f"perl({name})"
        if provided_by_core(name, core):
            if not keep_core:
                continue
            requirements.append(Requirement(name, capability, epoch_qualify(version) if known else None))
            continue
        requirements.append(Requirement(name, capability, version if known else None))
    return requirements


__all__ = [
    "EPOCH_THRESHOLD",
    "PERL",
    "epoch_qualify",
    "is_any_version",
    "provided_by_core",
    "to_requirements",
    "version_key",
]
