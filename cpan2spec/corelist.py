"""Loading the set of modules bundled with perl itself."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict

import yaml

from .config import ConfigError
from .models import ANY_VERSION, CoreModuleSet

DEFAULT_CORELIST = Path(__file__).with_name("data") / "corelist.yml"


def load_core_modules(path: Path | None = None) -> CoreModuleSet:
    """Read a ``Module::Name: version`` YAML mapping into a read-only mapping."""
    source = path or DEFAULT_CORELIST
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read core module list {source}: {exc}") from exc
    try:
        loaded: Any = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {source.name}: {exc}") from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{source.name} must contain a mapping at the root")

    modules: Dict[str, str] = {}
    for name, version in loaded.items():
        if not isinstance(name, str):
            continue
        modules[name] = ANY_VERSION if version is None else str(version)
    return MappingProxyType(modules)


__all__ = ["DEFAULT_CORELIST", "load_core_modules"]
