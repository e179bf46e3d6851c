"""Core data models shared across cpan2spec components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

SEQUENTIAL = "sequential"
INDEXED = "indexed"

ANY_VERSION = "0"


@dataclass(frozen=True)
class Distribution:
    """One versioned CPAN release to be packaged."""

    name: str
    version: str
    source_url: str
    archive_kind: str
    archive_path: Optional[Path] = None

    @property
    def module(self) -> str:
        """Primary module name derived from the distribution name."""
        return self.name.replace("-", "::")

    @property
    def label(self) -> str:
        return f"{self.name}-{self.version}"


@dataclass(frozen=True)
class LayoutResult:
    """Archive root directory and member paths relative to it."""

    root_prefix: str
    files: List[str]


@dataclass
class ProseResult:
    """Summary line and description paragraph pulled from documentation."""

    description: Optional[str] = None
    summary: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.description and not self.summary


@dataclass
class ManifestData:
    """Fields read from a bundled META.yml or META.json."""

    build_requires: Dict[str, str] = field(default_factory=dict)
    requires: Dict[str, str] = field(default_factory=dict)
    recommends: Dict[str, str] = field(default_factory=dict)
    license: Optional[str] = None
    declares_scripts: bool = False
    generated_by: Optional[str] = None


@dataclass
class ResolvedMetadata:
    """Merged dependency information for one distribution."""

    build_requires: Dict[str, str] = field(default_factory=dict)
    requires: Dict[str, str] = field(default_factory=dict)
    license_token: Optional[str] = None
    uses_build_pl: bool = False
    installs_executables: bool = False


@dataclass(frozen=True)
class Requirement:
    """A single BuildRequires/Requires value, e.g. ``perl(Foo::Bar) >= 1.2``."""

    module: str
    capability: str
    version: Optional[str] = None

    def render(self) -> str:
        if self.version:
            return f"{self.capability} >= {self.version}"
        return self.capability


@dataclass
class PackageDescriptor:
    """Everything the spec template needs for one package."""

    name: str
    version: str
    module: str
    summary: str
    description: str
    license: str
    url: str
    source_url: str
    noarch: bool
    build_requires: List[Requirement] = field(default_factory=list)
    requires: List[Requirement] = field(default_factory=list)
    doc_files: List[str] = field(default_factory=list)
    uses_build_pl: bool = False
    installs_executables: bool = False
    root_prefix: Optional[str] = None
    release: str = "1"
    epoch: Optional[str] = None

    @property
    def package_name(self) -> str:
        return f"perl-{self.name}"


CoreModuleSet = Mapping[str, str]


__all__ = [
    "ANY_VERSION",
    "CoreModuleSet",
    "Distribution",
    "INDEXED",
    "LayoutResult",
    "ManifestData",
    "PackageDescriptor",
    "ProseResult",
    "Requirement",
    "ResolvedMetadata",
    "SEQUENTIAL",
]
