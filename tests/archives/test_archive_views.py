"""Tests for cpan2spec.archives."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from cpan2spec.archives import (
    TarArchiveView,
    ZipArchiveView,
    archive_kind,
    open_archive,
    split_release_name,
)
from cpan2spec.errors import ArchiveError, DistributionError, EntryReadError
from cpan2spec.models import INDEXED, SEQUENTIAL


def test_archive_kind_maps_suffixes() -> None:
    assert archive_kind("Foo-1.0.tar.gz") == SEQUENTIAL
    assert archive_kind("Foo-1.0.TGZ") == SEQUENTIAL
    assert archive_kind("Foo-1.0.tar.bz2") == SEQUENTIAL
    assert archive_kind("Foo-1.0.tbz") == SEQUENTIAL
    assert archive_kind("Foo-1.0.tar") == SEQUENTIAL
    assert archive_kind("Foo-1.0.zip") == INDEXED


def test_archive_kind_rejects_unknown_suffix() -> None:
    with pytest.raises(ArchiveError):
        archive_kind("Foo-1.0.rar")


def test_split_release_name_handles_dashes_and_v_prefix() -> None:
    assert split_release_name("Foo-Bar-1.02.tar.gz") == ("Foo-Bar", "1.02")
    assert split_release_name("Foo-v1.2.3.zip") == ("Foo", "1.2.3")
    assert split_release_name("Foo-2-Bar-0.01_01.tgz") == ("Foo-2-Bar", "0.01_01")


def test_split_release_name_requires_a_version() -> None:
    with pytest.raises(ArchiveError):
        split_release_name("Foo-Bar.tar.gz")


def test_tar_view_lists_entries_in_archive_order(archive_builder) -> None:
    path = archive_builder.tarball(
        "Foo-1.0.tar.gz",
        {"Foo-1.0/README": "hello\n", "Foo-1.0/lib/Foo.pm": "package Foo;\n"},
        directories=["Foo-1.0"],
    )

    with open_archive(path) as view:
        assert isinstance(view, TarArchiveView)
        assert view.list_entries() == ["Foo-1.0", "Foo-1.0/README", "Foo-1.0/lib/Foo.pm"]
        assert view.read_text("Foo-1.0/README") == "hello\n"


def test_bzip2_tarball_is_detected_by_magic(archive_builder) -> None:
    path = archive_builder.tarball(
        "Foo-1.0.tar.gz",
        {"Foo-1.0/Changes": "1.0 first\n"},
        compression="bz2",
    )
    assert path.read_bytes()[:3] == b"BZh"

    with open_archive(path) as view:
        assert view.read_entry("Foo-1.0/Changes") == b"1.0 first\n"


def test_bzip2_tarball_without_bz2_support_is_rejected(archive_builder, monkeypatch: pytest.MonkeyPatch) -> None:
    path = archive_builder.tarball("Foo-1.0.tar.bz2", {"Foo-1.0/README": "x\n"}, compression="bz2")
    monkeypatch.setitem(sys.modules, "bz2", None)

    with pytest.raises(ArchiveError, match="bzip2 support unavailable"):
        open_archive(path)


def test_missing_member_raises_entry_read_error(archive_builder) -> None:
    path = archive_builder.tarball("Foo-1.0.tar.gz", {"Foo-1.0/README": "x"}, directories=["Foo-1.0"])

    with open_archive(path) as view:
        with pytest.raises(EntryReadError) as excinfo:
            view.read_entry("Foo-1.0/META.yml")
        assert excinfo.value.path == "Foo-1.0/META.yml"
        with pytest.raises(EntryReadError):
            view.read_entry("Foo-1.0")


def test_zip_view_strips_directory_slashes(archive_builder) -> None:
    path = archive_builder.zipfile(
        "Foo-1.0.zip",
        {"Foo-1.0/README": "zip readme"},
        directories=["Foo-1.0"],
    )

    with open_archive(path) as view:
        assert isinstance(view, ZipArchiveView)
        assert view.list_entries() == ["Foo-1.0", "Foo-1.0/README"]
        assert view.read_text("Foo-1.0/README") == "zip readme"
        with pytest.raises(EntryReadError):
            view.read_entry("Foo-1.0/missing")


def test_read_text_falls_back_to_latin1(tmp_path: Path) -> None:
    import zipfile

    path = tmp_path / "Foo-1.0.zip"
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("Foo-1.0/README", "caf\xe9".encode("latin-1"))

    with open_archive(path) as view:
        assert view.read_text("Foo-1.0/README") == "caf\xe9"


def test_corrupt_archive_raises_archive_error(tmp_path: Path) -> None:
    path = tmp_path / "Foo-1.0.tar.gz"
    path.write_bytes(b"not really a tarball")

    with pytest.raises(ArchiveError) as excinfo:
        open_archive(path)
    assert isinstance(excinfo.value, DistributionError)


def test_missing_archive_raises_archive_error(tmp_path: Path) -> None:
    with pytest.raises(ArchiveError):
        open_archive(tmp_path / "Foo-1.0.zip")
    with pytest.raises(ArchiveError):
        open_archive(tmp_path / "Foo-1.0.tar.gz")
