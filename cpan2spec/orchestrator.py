"""Pipeline orchestration: one spec file per CPAN distribution."""

from __future__ import annotations

import datetime as _dt
import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .archives import archive_kind, archive_suffix, open_archive, split_release_name
from .config import Cpan2SpecConfig, ConfigError
from .corelist import load_core_modules
from .docs import resolve_prose
from .errors import ArchiveError, DistributionError, OutputError
from .index import PackageIndex
from .layout import validate_layout
from .licenses import resolve_license
from .logging import for_distribution, get_logger
from .metadata import (
    MakefilePLParser,
    MetadataResolver,
    detect_noarch,
    select_doc_files,
    to_requirements,
)
from .models import CoreModuleSet, Distribution, PackageDescriptor
from .synthesizer import SpecSynthesizer

METACPAN_RELEASE_URL = "https://metacpan.org/release/{name}"


@dataclass
class RunContext:
    """State shared by every distribution of one run."""

    config: Cpan2SpecConfig
    core: CoreModuleSet
    _index: Optional[PackageIndex] = field(default=None, repr=False)

    @classmethod
    def from_config(cls, config: Cpan2SpecConfig) -> "RunContext":
        return cls(config=config, core=load_core_modules(config.sources.corelist))

    @property
    def index(self) -> PackageIndex:
        """The package index, read from disk on first use."""
        if self._index is None:
            path = self.config.sources.package_index
            if path is None:
                raise ConfigError("Module names need a package index; pass --index or set sources.package_index")
            self._index = PackageIndex.load(path, mirror=self.config.sources.mirror)
        return self._index


@dataclass
class BatchResult:
    """Outcome of processing a list of targets."""

    written: List[Path] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)
    reported: List[str] = field(default_factory=list)

    @property
    def all_skipped(self) -> bool:
        return bool(self.skipped) and not self.written and not self.reported


class Orchestrator:
    """Coordinates archive inspection, metadata resolution and spec rendering."""

    def __init__(
        self,
        context: RunContext,
        resolver: MetadataResolver | None = None,
        synthesizer: SpecSynthesizer | None = None,
        *,
        today: Optional[_dt.date] = None,
    ) -> None:
        self.context = context
        self.resolver = resolver or MetadataResolver(
            MakefilePLParser(timeout=context.config.script_timeout)
        )
        self.synthesizer = synthesizer or SpecSynthesizer()
        self.today = today
        self.logger = get_logger("orchestrator")

    def run(self, targets: Sequence[str], *, deps_only: bool = False) -> BatchResult:
        """Process ``targets`` in order, skipping distributions that fail."""
        result = BatchResult()
        for target in targets:
            label = target
            try:
                distribution = self.resolve_target(target)
                label = distribution.label
                descriptor = self.describe(distribution)
            except DistributionError as exc:
                self.logger.warning("%s: skipped: %s", label, exc)
                result.skipped[label] = str(exc)
                continue

            if deps_only:
                self.report_dependencies(descriptor)
                result.reported.append(label)
                break

            path = self.write_spec(descriptor)
            self.logger.info("Wrote %s", path)
            result.written.append(path)
        return result

    def resolve_target(self, target: str) -> Distribution:
        """Turn an archive path or a module name into a Distribution."""
        sources = self.context.config.sources
        if archive_suffix(target) is not None:
            path = Path(target).expanduser()
            name, version = split_release_name(path.name)
            top = name.split("-", 1)[0]
            return Distribution(
                name=name,
                version=version,
                source_url=f"{sources.mirror}modules/by-module/{top}/{path.name}",
                archive_kind=archive_kind(path.name),
                archive_path=path,
            )

        distribution = self.context.index.lookup(target)
        filename = distribution.source_url.rsplit("/", 1)[-1]
        archive_dir = sources.archive_dir or Path.cwd()
        self.logger.debug("%s is provided by %s", target, distribution.label)
        return dataclasses.replace(distribution, archive_path=archive_dir / filename)

    def describe(self, distribution: Distribution) -> PackageDescriptor:
        """Run the per-distribution pipeline and build its descriptor."""
        log = for_distribution(self.logger, distribution.label)
        if distribution.archive_path is None:
            raise ArchiveError(f"no local archive; fetch {distribution.source_url}")

        with open_archive(distribution.archive_path, distribution.archive_kind) as archive:
            entries = archive.list_entries()
            layout = validate_layout(entries, distribution.name, distribution.version)
            members = _member_names(entries, layout.root_prefix)

            def reader(relative: str) -> str:
                return archive.read_text(members.get(relative, f"{layout.root_prefix}/{relative}"))

            prose = resolve_prose(distribution.module, layout.files, reader, log)
            metadata = self.resolver.resolve(layout.files, reader, log)

        doc_files = select_doc_files(layout.files)
        dependencies = sorted(set(metadata.build_requires) | set(metadata.requires))
        license_value = resolve_license(metadata.license_token, doc_files, log)

        config = self.context.config
        keep_core = config.render.keep_core_deps
        return PackageDescriptor(
            name=distribution.name,
            version=distribution.version,
            module=distribution.module,
            summary=prose.summary or "",
            description=prose.description or "",
            license=license_value,
            url=METACPAN_RELEASE_URL.format(name=distribution.name),
            source_url=distribution.source_url,
            noarch=detect_noarch(layout.files, dependencies),
            build_requires=to_requirements(metadata.build_requires, self.context.core, keep_core=keep_core),
            requires=to_requirements(metadata.requires, self.context.core, keep_core=keep_core),
            doc_files=doc_files,
            uses_build_pl=metadata.uses_build_pl,
            installs_executables=metadata.installs_executables,
            root_prefix=layout.root_prefix,
            release=config.render.release,
            epoch=config.render.epoch,
        )

    def render(self, descriptor: PackageDescriptor) -> str:
        config = self.context.config
        return self.synthesizer.render(
            descriptor,
            date=self.today,
            packager=config.packager.signature,
            prefer_macros=config.render.prefer_macros,
        )

    def write_spec(self, descriptor: PackageDescriptor) -> Path:
        """Write ``perl-<Dist>.spec``; any failure aborts the run."""
        path = self.context.config.resolved_output_dir / f"{descriptor.package_name}.spec"
        text = self.render(descriptor)
        try:
            with path.open("w", encoding="utf-8") as handle:
                handle.write(text)
        except OSError as exc:
            raise OutputError(f"Cannot write {path}: {exc}") from exc
        return path

    @staticmethod
    def report_dependencies(descriptor: PackageDescriptor) -> None:
        """Print build-time then run-time dependency names, one per line."""
        for requirement in descriptor.build_requires:
            print(requirement.module)
        for requirement in descriptor.requires:
            print(requirement.module)


def _member_names(entries: Sequence[str], root_prefix: str) -> Dict[str, str]:
    """Map root-relative paths back to the names stored in the archive."""
    members: Dict[str, str] = {}
    prefix = f"{root_prefix}/"
    for raw in entries:
        entry = raw[2:] if raw.startswith("./") else raw
        if entry.startswith(prefix):
            members.setdefault(entry[len(prefix):], raw)
    return members


__all__ = ["BatchResult", "METACPAN_RELEASE_URL", "Orchestrator", "RunContext"]
