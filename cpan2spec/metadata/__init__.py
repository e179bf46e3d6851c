"""Dependency and manifest metadata resolution."""

from __future__ import annotations

from .makefile_pl import MakefileHarvest, MakefilePLParser
from .manifest import find_manifest, parse_manifest
from .requirements import epoch_qualify, to_requirements
from .resolver import MetadataResolver, detect_noarch, select_doc_files

__all__ = [
    "MakefileHarvest",
    "MakefilePLParser",
    "MetadataResolver",
    "detect_noarch",
    "epoch_qualify",
    "find_manifest",
    "parse_manifest",
    "select_doc_files",
    "to_requirements",
]
