"""Tests for cpan2spec.orchestrator."""

from __future__ import annotations

import datetime as dt
import gzip
from pathlib import Path
from types import MappingProxyType

import pytest

from cpan2spec.config import ConfigError, Cpan2SpecConfig
from cpan2spec.errors import OutputError
from cpan2spec.orchestrator import Orchestrator, RunContext

CORE = MappingProxyType({"Carp": "1.50", "ExtUtils::MakeMaker": "7.64", "strict": "1.12"})

FOO_BAR_PM = """package Foo::Bar;
use strict;
our $VERSION = '1.02';
1;

__END__

=head1 NAME

Foo::Bar - an example module.

=head1 DESCRIPTION

Does things.

=cut
"""

FOO_BAR_FILES = {
    "META.yml": "license: perl\nrequires:\n  perl: 5.008\n  Carp: 0\n  Moo: 2.0\n",
    "Makefile.PL": "use ExtUtils::MakeMaker;\nWriteMakefile(NAME => 'Foo::Bar', PREREQ_PM => { 'Test::Deep' => 0 });\n",
    "lib/Foo/Bar.pm": FOO_BAR_PM,
    "README": "Foo::Bar\n",
    "Changes": "1.02 released\n",
}


def _orchestrator(tmp_path: Path, **render) -> Orchestrator:
    config = Cpan2SpecConfig(root=tmp_path, output_dir=tmp_path / "specs")
    config.output_dir.mkdir()
    for key, value in render.items():
        setattr(config.render, key, value)
    return Orchestrator(RunContext(config=config, core=CORE), today=dt.date(2026, 10, 19))


def test_run_writes_spec_for_archive(tmp_path: Path, archive_builder) -> None:
    archive = archive_builder.distribution("Foo-Bar", "1.02", FOO_BAR_FILES)
    orchestrator = _orchestrator(tmp_path)

    result = orchestrator.run([str(archive)])

    spec_path = tmp_path / "specs" / "perl-Foo-Bar.spec"
    assert result.written == [spec_path]
    assert result.skipped == {}
    text = spec_path.read_text(encoding="utf-8")
    assert "Summary:        Example module\n" in text
    assert "License:        GPL+ or Artistic\n" in text
    assert "BuildArch:      noarch\n" in text
    assert "BuildRequires:  perl(Moo) >= 2.0\n" in text
    assert "BuildRequires:  perl(Test::Deep)\n" in text
    assert "BuildRequires:  perl >= 0:5.008\n" in text
    assert "Requires:       perl(Moo) >= 2.0\n" in text
    assert "perl(Carp)" not in text
    assert "perl(ExtUtils::MakeMaker)" not in text
    assert "%doc Changes README\n" in text
    assert "Source0:        https://cpan.metacpan.org/modules/by-module/Foo/Foo-Bar-1.02.tar.gz\n" in text


def test_describe_keeps_core_dependencies_when_configured(tmp_path: Path, archive_builder) -> None:
    archive = archive_builder.distribution("Foo-Bar", "1.02", FOO_BAR_FILES, suffix=".zip")
    orchestrator = _orchestrator(tmp_path, keep_core_deps=True)

    descriptor = orchestrator.describe(orchestrator.resolve_target(str(archive)))

    rendered = [requirement.render() for requirement in descriptor.requires]
    assert rendered == ["perl(Carp)", "perl(Moo) >= 2.0"]
    assert descriptor.root_prefix == "Foo-Bar-1.02"


def test_run_skips_bad_distribution_and_continues(tmp_path: Path, archive_builder) -> None:
    bad = archive_builder.tarball(
        "Broken-1.0.tar.gz",
        {"Broken-1.0/README": "x", "elsewhere/README": "y"},
    )
    good = archive_builder.distribution("Foo-Bar", "1.02", FOO_BAR_FILES)
    orchestrator = _orchestrator(tmp_path)

    result = orchestrator.run([str(bad), str(good)])

    assert list(result.skipped) == ["Broken-1.0"]
    assert "outside Broken-1.0/" in result.skipped["Broken-1.0"]
    assert [path.name for path in result.written] == ["perl-Foo-Bar.spec"]
    assert result.all_skipped is False


def test_run_skips_distribution_without_license(tmp_path: Path, archive_builder) -> None:
    archive = archive_builder.distribution("Quiet", "0.1", {"lib/Quiet.pm": "package Quiet;\n1;\n"})
    orchestrator = _orchestrator(tmp_path)

    result = orchestrator.run([str(archive)])

    assert result.written == []
    assert "license" in result.skipped["Quiet-0.1"]
    assert result.all_skipped is True


def test_run_reports_dependencies_and_stops(
    tmp_path: Path, archive_builder, capsys: pytest.CaptureFixture[str]
) -> None:
    first = archive_builder.distribution("Foo-Bar", "1.02", FOO_BAR_FILES)
    second = archive_builder.distribution("Other", "1.0", {"META.yml": "license: mit\n"})
    orchestrator = _orchestrator(tmp_path)

    result = orchestrator.run([str(first), str(second)], deps_only=True)

    assert result.reported == ["Foo-Bar-1.02"]
    assert result.written == []
    assert capsys.readouterr().out.splitlines() == ["Moo", "Test::Deep", "perl", "Moo"]


def test_module_target_uses_package_index(tmp_path: Path, archive_builder) -> None:
    archive = archive_builder.distribution("Foo-Bar", "1.02", FOO_BAR_FILES)
    index = tmp_path / "02packages.details.txt.gz"
    index.write_bytes(
        gzip.compress(b"File: 02packages.details.txt\n\nFoo::Bar  1.02  A/AU/AUTHOR/Foo-Bar-1.02.tar.gz\n")
    )
    orchestrator = _orchestrator(tmp_path)
    orchestrator.context.config.sources.package_index = index
    orchestrator.context.config.sources.archive_dir = archive.parent

    result = orchestrator.run(["Foo::Bar", "No::Such"])

    assert [path.name for path in result.written] == ["perl-Foo-Bar.spec"]
    assert "No::Such" in result.skipped
    text = result.written[0].read_text(encoding="utf-8")
    assert "Source0:        https://cpan.metacpan.org/authors/id/A/AU/AUTHOR/Foo-Bar-1.02.tar.gz\n" in text


def test_module_target_without_index_is_fatal(tmp_path: Path) -> None:
    orchestrator = _orchestrator(tmp_path)

    with pytest.raises(ConfigError):
        orchestrator.run(["Foo::Bar"])


def test_unwritable_output_aborts_run(tmp_path: Path, archive_builder) -> None:
    archive = archive_builder.distribution("Foo-Bar", "1.02", FOO_BAR_FILES)
    orchestrator = _orchestrator(tmp_path)
    orchestrator.context.config.output_dir = tmp_path / "missing" / "dir"

    with pytest.raises(OutputError):
        orchestrator.run([str(archive)])


def test_run_continues_past_unrepresentable_pod_escape(tmp_path: Path, archive_builder) -> None:
    bad = archive_builder.distribution(
        "Bad",
        "1.0",
        {"META.yml": "license: perl\n", "lib/Bad.pm": "=head1 NAME\n\nBad - E<99999999999999999999> x\n\n=cut\n"},
    )
    good = archive_builder.distribution("Foo-Bar", "1.02", FOO_BAR_FILES)
    orchestrator = _orchestrator(tmp_path)

    result = orchestrator.run([str(bad), str(good)])

    assert [path.name for path in result.written] == ["perl-Bad.spec", "perl-Foo-Bar.spec"]
    assert "Summary:        X\n" in result.written[0].read_text(encoding="utf-8")
