"""CLI parser and entrypoint tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from cpan2spec.cli import _build_parser, main


def test_cli_parses_flags_and_targets() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["-v", "--deps", "--no-macros", "--keep-core-deps", "--index", "02packages.txt", "Foo::Bar", "Baz-1.0.tar.gz"]
    )

    assert args.verbose is True
    assert args.deps is True
    assert args.prefer_macros is False
    assert args.keep_core_deps is True
    assert args.index == "02packages.txt"
    assert args.targets == ["Foo::Bar", "Baz-1.0.tar.gz"]


def test_cli_macro_flag_defaults_to_config() -> None:
    parser = _build_parser()

    assert parser.parse_args(["Foo"]).prefer_macros is None
    assert parser.parse_args(["--macros", "Foo"]).prefer_macros is True


def test_cli_rejects_conflicting_macro_flags() -> None:
    parser = _build_parser()

    with pytest.raises(SystemExit):
        parser.parse_args(["--macros", "--no-macros", "Foo"])


def test_cli_requires_a_target() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args([])


def test_main_writes_spec(tmp_path: Path, archive_builder) -> None:
    archive = archive_builder.distribution(
        "Foo",
        "0.01",
        {"META.yml": "license: mit\n", "lib/Foo.pm": "package Foo;\n1;\n"},
    )
    output = tmp_path / "out"
    output.mkdir()

    main(["--config", str(tmp_path), "-o", str(output), "--no-macros", str(archive)])

    text = (output / "perl-Foo.spec").read_text(encoding="utf-8")
    assert "License:        MIT\n" in text
    assert "rm -rf $RPM_BUILD_ROOT\n" in text


def test_main_exits_when_every_distribution_is_skipped(tmp_path: Path, archive_builder) -> None:
    archive = archive_builder.tarball("Foo-0.01.tar.gz", {"stray/file": "x"})

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "-o", str(tmp_path), str(archive)])

    assert excinfo.value.code == 1


def test_main_exits_on_bad_config(tmp_path: Path) -> None:
    (tmp_path / ".cpan2spec.yml").write_text("render: [unclosed\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "Foo-1.0.tar.gz"])

    assert excinfo.value.code == 1
