"""META.yml / META.json manifest parsing."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml

from ..errors import ManifestError
from ..models import ANY_VERSION, ManifestData

MANIFEST_FILES: tuple[str, ...] = ("META.json", "META.yml")

_NUMERIC_TAGS = {"tag:yaml.org,2002:int", "tag:yaml.org,2002:float"}
_VERSION = re.compile(r"v?(\d[\d._]*)")


class _ManifestLoader(yaml.SafeLoader):
    """Safe loader that keeps ``5.010`` as text instead of the float 5.01."""


_ManifestLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _NUMERIC_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def find_manifest(files: Iterable[str]) -> Optional[str]:
    """Return the preferred top-level manifest path, if any."""
    available = set(files)
    for name in MANIFEST_FILES:
        if name in available:
            return name
    return None


def parse_manifest(path: str, text: str) -> ManifestData:
    """Parse manifest ``text`` according to the file name."""
    if path.endswith(".json"):
        return parse_meta_json(text)
    return parse_meta_yml(text)


def parse_meta_yml(text: str) -> ManifestData:
    """Parse a CPAN::Meta 1.x ``META.yml`` document."""
    try:
        data = yaml.load(text, Loader=_ManifestLoader)  # noqa: S506 - SafeLoader subclass
    except yaml.YAMLError as exc:
        raise ManifestError(f"Failed to parse META.yml: {exc}") from exc
    if data is None:
        return ManifestData()
    if not isinstance(data, dict):
        raise ManifestError("META.yml must contain a mapping at the root")
    return _from_v1(data)


def parse_meta_json(text: str) -> ManifestData:
    """Parse ``META.json`` in either the 2.0 ``prereqs`` layout or the 1.x layout."""
    try:
        data = json.loads(text, parse_float=str, parse_int=str)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Failed to parse META.json: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError("META.json must contain an object at the root")
    if isinstance(data.get("prereqs"), dict):
        return _from_v2(data)
    return _from_v1(data)


def _from_v1(data: Mapping[str, Any]) -> ManifestData:
    build_requires = version_map(data.get("build_requires"))
    for name, version in version_map(data.get("configure_requires")).items():
        build_requires.setdefault(name, version)
    return ManifestData(
        build_requires=build_requires,
        requires=version_map(data.get("requires")),
        recommends=version_map(data.get("recommends")),
        license=_license_token(data.get("license")),
        declares_scripts="script_files" in data or "scripts" in data,
        generated_by=_as_str(data.get("generated_by")),
    )


def _from_v2(data: Mapping[str, Any]) -> ManifestData:
    prereqs = data["prereqs"]

    def _phase(phase: str, relationship: str) -> Dict[str, str]:
        section = prereqs.get(phase)
        if not isinstance(section, dict):
            return {}
        return version_map(section.get(relationship))

    build_requires: Dict[str, str] = {}
    for phase in ("build", "test", "configure"):
        for name, version in _phase(phase, "requires").items():
            build_requires.setdefault(name, version)

    return ManifestData(
        build_requires=build_requires,
        requires=_phase("runtime", "requires"),
        recommends=_phase("runtime", "recommends"),
        license=_license_token(data.get("license")),
        declares_scripts="script_files" in data or "scripts" in data,
        generated_by=_as_str(data.get("generated_by")),
    )


def version_map(value: Any) -> Dict[str, str]:
    """Coerce a ``name: version`` mapping, using ``"0"`` when no version is given."""
    if not isinstance(value, dict):
        return {}
    result: Dict[str, str] = {}
    for name, version in value.items():
        if not isinstance(name, str) or not name.strip():
            continue
        result[name.strip()] = clean_version(version)
    return result


def clean_version(value: Any) -> str:
    """Extract a minimum version from values such as ``'>= 1.2, < 2'`` or ``v1.2.3``."""
    if value is None or isinstance(value, bool):
        return ANY_VERSION
    match = _VERSION.search(str(value))
    if match is None:
        return ANY_VERSION
    return match.group(1).rstrip("._") or ANY_VERSION


def _license_token(value: Any) -> Optional[str]:
    if isinstance(value, list):
        value = value[0] if value else None
    token = _as_str(value)
    if token is None:
        return None
    token = token.strip()
    return token or None


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


__all__ = [
    "MANIFEST_FILES",
    "clean_version",
    "find_manifest",
    "parse_manifest",
    "parse_meta_json",
    "parse_meta_yml",
    "version_map",
]
