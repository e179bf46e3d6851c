"""License token classification."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from .errors import LicenseError
from .logging import get_logger

CANONICAL_LICENSES: dict[str, str] = {
    "perl": "GPL+ or Artistic",
    "apache": "Apache Software License",
    "artistic": "Artistic",
    "artistic2": "Artistic 2.0",
    "bsd": "BSD",
    "gpl": "GPL+",
    "lgpl": "LGPLv2+",
    "mit": "MIT",
    "mozilla": "MPL",
    "open_source": "OSI-Approved",
    "unrestricted": "Distributable",
    "restrictive": "Non-distributable",
}

# CPAN::Meta 2.0 spellings of the tokens above.
TOKEN_ALIASES: dict[str, str] = {
    "perl_5": "perl",
    "artistic_1": "artistic",
    "artistic_2": "artistic2",
    "apache_1_1": "apache",
    "apache_2_0": "apache",
    "gpl_1": "gpl",
    "gpl_2": "gpl",
    "gpl_3": "gpl",
    "lgpl_2_1": "lgpl",
    "lgpl_3_0": "lgpl",
    "mozilla_1_0": "mozilla",
    "mozilla_1_1": "mozilla",
}

GENERIC_LICENSES = frozenset({"OSI-Approved", "Distributable", "Non-distributable"})
UNKNOWN_LICENSE = "CHECK(Distributable)"

_LICENSE_FILE = re.compile(r"license|copyright|copying", re.IGNORECASE)

logger = get_logger("licenses")


def classify(token: str, log: logging.Logger | logging.LoggerAdapter = logger) -> str:
    """Map a manifest license token onto its RPM License value."""
    key = token.strip().lower()
    key = TOKEN_ALIASES.get(key, key)
    canonical = CANONICAL_LICENSES.get(key)
    if canonical is None:
        log.warning("Unknown license %r, using %s", token, UNKNOWN_LICENSE)
        return UNKNOWN_LICENSE
    if key == "restrictive":
        log.warning("License is restrictive; this package may not be redistributable")
    return canonical


def license_files(doc_files: Sequence[str]) -> List[str]:
    """Documentation files whose names suggest license text."""
    return [path for path in doc_files if _LICENSE_FILE.search(path)]


def resolve_license(
    token: Optional[str],
    doc_files: Sequence[str],
    log: logging.Logger | logging.LoggerAdapter = logger,
) -> str:
    """Return the License value, or raise LicenseError when nothing is known.

    Only the generic results get a reference to license files appended; a
    specific canonical license is returned untouched.
    """
    value = classify(token, log) if token else None
    if value is None or value in GENERIC_LICENSES:
        hints = license_files(doc_files)
        if hints:
            reference = ", ".join(hints)
            value = f"{value}, see {reference}" if value else f"See {reference}"
    if value is None:
        raise LicenseError("no license in META files and no license documentation")
    return value


__all__ = [
    "CANONICAL_LICENSES",
    "GENERIC_LICENSES",
    "TOKEN_ALIASES",
    "UNKNOWN_LICENSE",
    "classify",
    "license_files",
    "resolve_license",
]
