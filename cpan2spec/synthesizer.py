"""Render PackageDescriptors into RPM spec text."""

from __future__ import annotations

import datetime as _dt
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader

from . import __version__
from .docs.prose import wrap_description
from .models import PackageDescriptor

DEFAULT_PACKAGER = "cpan2spec <cpan2spec@localhost>"
TEMPLATE_NAME = "spec.j2"

_MACRO_PLACEHOLDERS = {"buildroot": "%{buildroot}", "optflags": "%{optflags}"}
_ENV_PLACEHOLDERS = {"buildroot": "$RPM_BUILD_ROOT", "optflags": "$RPM_OPT_FLAGS"}


class SpecSynthesizer:
    """Turns a descriptor into spec file text; output depends only on its inputs."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.env = self._create_env(templates_dir)

    def render(
        self,
        descriptor: PackageDescriptor,
        *,
        date: Optional[_dt.date] = None,
        packager: str = DEFAULT_PACKAGER,
        prefer_macros: bool = True,
    ) -> str:
        template = self.env.get_template(TEMPLATE_NAME)
        context = self.build_context(
            descriptor,
            date=date or _dt.date.today(),
            packager=packager,
            prefer_macros=prefer_macros,
        )
        return template.render(**context)

    def build_context(
        self,
        descriptor: PackageDescriptor,
        *,
        date: _dt.date,
        packager: str,
        prefer_macros: bool,
    ) -> Dict[str, object]:
        placeholders = _MACRO_PLACEHOLDERS if prefer_macros else _ENV_PLACEHOLDERS
        return {
            "header": _header(descriptor),
            "noarch": descriptor.noarch,
            "build_requires": [requirement.render() for requirement in descriptor.build_requires],
            "requires": [requirement.render() for requirement in descriptor.requires],
            "description": wrap_description(descriptor.description),
            "module": descriptor.module,
            "doc_files": list(descriptor.doc_files),
            "evr": _evr(descriptor),
            "source_dir": descriptor.root_prefix or f"{descriptor.name}-%{{version}}",
            "uses_build_pl": descriptor.uses_build_pl,
            "installs_executables": descriptor.installs_executables,
            "libdir": "%{perl_vendorlib}" if descriptor.noarch else "%{perl_vendorarch}",
            "buildroot": placeholders["buildroot"],
            "optflags": placeholders["optflags"],
            "changelog_date": date.strftime("%a %b %d %Y"),
            "packager": packager,
            "tool_version": __version__,
        }

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories: List[str] = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        loader = FileSystemLoader(directories)
        return Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )


def _header(descriptor: PackageDescriptor) -> List[Tuple[str, str]]:
    fields: List[Tuple[str, str]] = [
        ("Name", descriptor.package_name),
        ("Version", descriptor.version),
        ("Release", f"{descriptor.release}%{{?dist}}"),
    ]
    if descriptor.epoch:
        fields.append(("Epoch", descriptor.epoch))
    fields.extend(
        [
            ("Summary", descriptor.summary),
            ("License", descriptor.license),
            ("Group", "Development/Libraries"),
            ("URL", descriptor.url),
            ("Source0", descriptor.source_url),
        ]
    )
    return fields


def _evr(descriptor: PackageDescriptor) -> str:
    version_release = f"{descriptor.version}-{descriptor.release}"
    if descriptor.epoch:
        return f"{descriptor.epoch}:{version_release}"
    return version_release


__all__ = ["DEFAULT_PACKAGER", "SpecSynthesizer", "TEMPLATE_NAME"]
