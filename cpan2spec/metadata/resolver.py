"""Merge manifest and Makefile.PL metadata into one dependency record."""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence

from ..errors import EntryReadError, ManifestError, ScriptParseError, ScriptTimeout
from ..logging import get_logger
from ..models import ANY_VERSION, ManifestData, ResolvedMetadata
from .makefile_pl import MakefileHarvest, MakefilePLParser
from .manifest import find_manifest, parse_manifest
from .requirements import PERL, is_any_version, version_key

Reader = Callable[[str], str]

BUILD_PL = "Build.PL"
MAKEFILE_PL = "Makefile.PL"
MODULE_BUILD = "Module::Build"
MAKEMAKER = "ExtUtils::MakeMaker"

_ARCH_SUFFIXES = (".xs", ".c", ".h", ".cc", ".cpp", ".swg")
_DOC_NAME = re.compile(
    r"^(?:README|CHANGE|NEWS|LICEN[CS]E|COPYING|COPYRIGHT|ARTISTIC|TODO|"
    r"AUTHORS|CREDITS|BUGS|FAQ|THANKS|HISTORY)",
    re.IGNORECASE,
)
_DOC_EXCLUDE = re.compile(r"(?:\.(?:PL|pl|pm|t|pod|sh|bat)$|^README\.(?:win32|os2|vms|cygwin)$)", re.IGNORECASE)
_DOC_DIRS = ("examples", "eg")

logger = get_logger("metadata.resolver")


class MetadataResolver:
    """Collects build-time and run-time dependencies for a distribution."""

    def __init__(self, parser: MakefilePLParser | None = None) -> None:
        self.parser = parser or MakefilePLParser()

    def resolve(
        self,
        files: Sequence[str],
        reader: Reader,
        log: logging.Logger | logging.LoggerAdapter = logger,
    ) -> ResolvedMetadata:
        available = set(files)
        uses_build_pl = BUILD_PL in available
        manifest = self._read_manifest(files, reader, log)

        build_requires: Dict[str, str] = dict(manifest.build_requires)
        requires: Dict[str, str] = dict(manifest.requires)
        for name, version in manifest.recommends.items():
            requires.setdefault(name, version)
        installs_executables = manifest.declares_scripts

        if not (uses_build_pl or _generated_by_module_build(manifest)) and MAKEFILE_PL in available:
            harvest = self._harvest_makefile(reader, log)
            for name, version in harvest.dependencies().items():
                build_requires.setdefault(name, version)
            installs_executables = installs_executables or harvest.exe_files

        build_requires.setdefault(MODULE_BUILD if uses_build_pl else MAKEMAKER, ANY_VERSION)

        if PERL in requires:
            build_requires[PERL] = _newer(build_requires.get(PERL), requires.pop(PERL))
        for name, version in requires.items():
            build_requires.setdefault(name, version)

        return ResolvedMetadata(
            build_requires=build_requires,
            requires=requires,
            license_token=manifest.license,
            uses_build_pl=uses_build_pl,
            installs_executables=installs_executables,
        )

    def _read_manifest(
        self,
        files: Sequence[str],
        reader: Reader,
        log: logging.Logger | logging.LoggerAdapter,
    ) -> ManifestData:
        path = find_manifest(files)
        if path is None:
            log.debug("No META.yml or META.json")
            return ManifestData()
        try:
            text = reader(path)
        except EntryReadError as exc:
            raise ManifestError(f"cannot read {path}: {exc.reason}") from exc
        manifest = parse_manifest(path, text)
        log.debug(
            "%s lists %d build and %d runtime dependencies",
            path,
            len(manifest.build_requires),
            len(manifest.requires),
        )
        return manifest

    def _harvest_makefile(
        self,
        reader: Reader,
        log: logging.Logger | logging.LoggerAdapter,
    ) -> MakefileHarvest:
        try:
            source = reader(MAKEFILE_PL)
            harvest = self.parser.parse(source)
        except EntryReadError as exc:
            log.warning("Cannot read %s: %s", MAKEFILE_PL, exc.reason)
            return MakefileHarvest()
        except ScriptTimeout as exc:
            log.warning("Gave up on %s: %s", MAKEFILE_PL, exc)
            return MakefileHarvest()
        except ScriptParseError as exc:
            log.warning("Ignoring dependencies in %s: %s", MAKEFILE_PL, exc)
            return MakefileHarvest()
        if not harvest.found_call:
            log.debug("No WriteMakefile call in %s", MAKEFILE_PL)
        return harvest


def detect_noarch(files: Sequence[str], dependencies: Sequence[str] = ()) -> bool:
    """A distribution is architecture independent unless it ships C/XS sources."""
    if any(path.lower().endswith(_ARCH_SUFFIXES) for path in files):
        return False
    return "Inline" not in dependencies and not any(name.startswith("Inline::") for name in dependencies)


def select_doc_files(files: Sequence[str]) -> List[str]:
    """Top-level documentation files and example directories, sorted."""
    docs = set()
    for path in files:
        top, _, rest = path.partition("/")
        if rest:
            if top in _DOC_DIRS:
                docs.add(top)
            continue
        if _DOC_NAME.match(path) and not _DOC_EXCLUDE.search(path):
            docs.add(path)
    return sorted(docs)


def _generated_by_module_build(manifest: ManifestData) -> bool:
    # Module::Build writes a pass-through Makefile.PL with no PREREQ_PM of its own.
    return (manifest.generated_by or "").startswith(MODULE_BUILD)


def _newer(current: Optional[str], candidate: str) -> str:
    if current is None or is_any_version(current):
        return candidate
    if is_any_version(candidate):
        return current
    return candidate if version_key(candidate) >= version_key(current) else current


__all__ = [
    "BUILD_PL",
    "MAKEFILE_PL",
    "MAKEMAKER",
    "MODULE_BUILD",
    "MetadataResolver",
    "detect_noarch",
    "select_doc_files",
]
