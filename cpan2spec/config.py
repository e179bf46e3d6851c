"""Configuration loading for cpan2spec (.cpan2spec.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".cpan2spec.yml"
DEFAULT_MIRROR = "https://cpan.metacpan.org/"
DEFAULT_SCRIPT_TIMEOUT = 5.0


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class PackagerConfig:
    """Identity stamped into the %changelog entry."""

    name: str = "cpan2spec"
    email: str = "cpan2spec@localhost"

    @property
    def signature(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass
class RenderConfig:
    """Settings that shape the generated spec text."""

    prefer_macros: bool = True
    release: str = "1"
    epoch: Optional[str] = None
    keep_core_deps: bool = False


@dataclass
class SourcesConfig:
    """Where the package index, core module list and release archives come from."""

    package_index: Optional[Path] = None
    corelist: Optional[Path] = None
    mirror: str = DEFAULT_MIRROR
    archive_dir: Optional[Path] = None


@dataclass
class Cpan2SpecConfig:
    """Represents the high-level settings defined in .cpan2spec.yml."""

    root: Path
    packager: PackagerConfig = field(default_factory=PackagerConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    output_dir: Optional[Path] = None
    script_timeout: float = DEFAULT_SCRIPT_TIMEOUT

    @property
    def resolved_output_dir(self) -> Path:
        return self.output_dir or Path.cwd()


def load_config(config_path: Path) -> Cpan2SpecConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return Cpan2SpecConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    packager = PackagerConfig()
    packager_data = _as_dict(data.get("packager"))
    if packager_data:
        packager.name = _as_str(packager_data.get("name")) or packager.name
        packager.email = _as_str(packager_data.get("email")) or packager.email

    render = RenderConfig()
    render_data = _as_dict(data.get("render"))
    if render_data:
        prefer_macros = _as_bool(render_data.get("prefer_macros"))
        if prefer_macros is not None:
            render.prefer_macros = prefer_macros
        render.release = _as_str(render_data.get("release")) or render.release
        render.epoch = _as_str(render_data.get("epoch"))
        render.keep_core_deps = _as_bool(render_data.get("keep_core_deps")) or False

    sources = SourcesConfig()
    sources_data = _as_dict(data.get("sources"))
    if sources_data:
        sources.package_index = _as_path(root, sources_data.get("package_index"))
        sources.corelist = _as_path(root, sources_data.get("corelist"))
        sources.archive_dir = _as_path(root, sources_data.get("archive_dir"))
        mirror = _as_str(sources_data.get("mirror"))
        if mirror:
            sources.mirror = mirror if mirror.endswith("/") else mirror + "/"

    script_timeout = _as_float(data.get("script_timeout"))
    if script_timeout is not None and script_timeout <= 0:
        raise ConfigError("script_timeout must be a positive number of seconds")

    return Cpan2SpecConfig(
        root=root,
        packager=packager,
        render=render,
        sources=sources,
        output_dir=_as_path(root, data.get("output_dir")),
        script_timeout=script_timeout or DEFAULT_SCRIPT_TIMEOUT,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_path(root: Path, value: Any) -> Optional[Path]:
    text = _as_str(value)
    if not text:
        return None
    path = Path(text).expanduser()
    return path if path.is_absolute() else root / path


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "Cpan2SpecConfig",
    "DEFAULT_MIRROR",
    "DEFAULT_SCRIPT_TIMEOUT",
    "PackagerConfig",
    "RenderConfig",
    "SourcesConfig",
    "load_config",
]
