"""Exception taxonomy for the spec generation pipeline."""

from __future__ import annotations


class OutputError(RuntimeError):
    """Raised when a generated spec cannot be written; aborts the whole run."""


class DistributionError(RuntimeError):
    """Base class for failures that skip a single distribution."""


class ArchiveError(DistributionError):
    """Raised when an archive cannot be opened or decompressed."""


class EntryReadError(DistributionError):
    """Raised when an archive member is missing or cannot be extracted."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot extract {path}: {reason}")
        self.path = path
        self.reason = reason


class LayoutError(DistributionError):
    """Raised when archive members do not share the expected root directory."""

    def __init__(self, expected: str, violations: int) -> None:
        if violations:
            message = f"{violations} archive entr{'y' if violations == 1 else 'ies'} outside {expected}/"
        else:
            message = f"archive has no entries under {expected}/"
        super().__init__(message)
        self.expected = expected
        self.violations = violations


class ManifestError(DistributionError):
    """Raised when META.yml or META.json exists but cannot be parsed."""


class LicenseError(DistributionError):
    """Raised when no license information can be determined."""


class IndexLookupError(DistributionError):
    """Raised when a module is not present in the package index."""


class ScriptParseError(ValueError):
    """Raised when Makefile.PL contains constructs outside the literal subset."""


class ScriptTimeout(ScriptParseError):
    """Raised when parsing Makefile.PL exceeds its time or size allowance."""


__all__ = [
    "ArchiveError",
    "DistributionError",
    "EntryReadError",
    "IndexLookupError",
    "LayoutError",
    "LicenseError",
    "ManifestError",
    "OutputError",
    "ScriptParseError",
    "ScriptTimeout",
]
