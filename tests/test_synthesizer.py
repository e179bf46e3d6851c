"""Tests for cpan2spec.synthesizer."""

from __future__ import annotations

import datetime as dt

from cpan2spec.models import PackageDescriptor, Requirement
from cpan2spec.synthesizer import SpecSynthesizer

RENDER_DATE = dt.date(2026, 10, 19)


def _descriptor(**overrides) -> PackageDescriptor:
    values = dict(
        name="Foo-Bar",
        version="1.02",
        module="Foo::Bar",
        summary="Example module",
        description="Does things.",
        license="GPL+ or Artistic",
        url="https://metacpan.org/release/Foo-Bar",
        source_url="https://cpan.metacpan.org/modules/by-module/Foo/Foo-Bar-1.02.tar.gz",
        noarch=True,
        build_requires=[
            Requirement("ExtUtils::MakeMaker", "perl(ExtUtils::MakeMaker)"),
            Requirement("perl", "perl", "0:5.008"),
        ],
        requires=[Requirement("Moo", "perl(Moo)", "2.0")],
        doc_files=["Changes", "README"],
        root_prefix="Foo-Bar-1.02",
    )
    values.update(overrides)
    return PackageDescriptor(**values)


def test_render_writes_padded_header() -> None:
    text = SpecSynthesizer().render(_descriptor(), date=RENDER_DATE)

    assert text.startswith(
        "Name:           perl-Foo-Bar\n"
        "Version:        1.02\n"
        "Release:        1%{?dist}\n"
        "Summary:        Example module\n"
        "License:        GPL+ or Artistic\n"
        "Group:          Development/Libraries\n"
        "URL:            https://metacpan.org/release/Foo-Bar\n"
        "Source0:        https://cpan.metacpan.org/modules/by-module/Foo/Foo-Bar-1.02.tar.gz\n"
        "BuildArch:      noarch\n"
        "BuildRequires:  perl(ExtUtils::MakeMaker)\n"
        "BuildRequires:  perl >= 0:5.008\n"
        "Requires:       perl(Moo) >= 2.0\n"
        "BuildRequires:  perl-generators\n"
        "Requires:       perl(:MODULE_COMPAT_%(eval \"`%{__perl} -V:version`\"; echo $version))\n"
        "\n"
        "%description\n"
        "Does things.\n"
        "\n"
        "%package help\n"
    )


def test_render_is_deterministic() -> None:
    synthesizer = SpecSynthesizer()
    descriptor = _descriptor()

    first = synthesizer.render(descriptor, date=RENDER_DATE)
    second = synthesizer.render(descriptor, date=RENDER_DATE)

    assert first == second
    assert first.endswith(
        "%changelog\n"
        "* Mon Oct 19 2026 cpan2spec <cpan2spec@localhost> - 1.02-1\n"
        "- Specfile autogenerated by cpan2spec 0.4.0.\n"
    )


def test_render_makemaker_noarch_sections() -> None:
    text = SpecSynthesizer().render(_descriptor(), date=RENDER_DATE)

    assert "%setup -q -n Foo-Bar-1.02\n" in text
    assert "%{__perl} Makefile.PL INSTALLDIRS=vendor\nmake %{?_smp_mflags}\n" in text
    assert "make pure_install PERL_INSTALL_ROOT=%{buildroot}\n" in text
    assert "find %{buildroot}%{perl_vendorlib} -mindepth 1" in text
    assert "'*.bs'" not in text
    assert "%{_bindir}" not in text
    assert "%check\nmake test\n" in text
    assert "%files -f %{name}.files\n" in text
    assert "%files help\n%defattr(-,root,root,-)\n%doc Changes README\n" in text


def test_render_build_pl_arch_with_environment_placeholders() -> None:
    descriptor = _descriptor(noarch=False, uses_build_pl=True, installs_executables=True, epoch="1")

    text = SpecSynthesizer().render(descriptor, date=RENDER_DATE, prefer_macros=False, packager="Jo <jo@example.com>")

    assert "Epoch:          1\n" in text
    assert "BuildArch:      noarch\nBuildRequires:  perl(ExtUtils" not in text
    assert '%{__perl} Build.PL installdirs=vendor optimize="$RPM_OPT_FLAGS"\n./Build\n' in text
    assert "./Build install destdir=$RPM_BUILD_ROOT create_packlist=0\n" in text
    assert "-name '*.bs' -size 0" in text
    assert "find $RPM_BUILD_ROOT%{perl_vendorarch} -mindepth 1" in text
    assert "echo '%{_bindir}/*' >> %{name}.files\n" in text
    assert "%check\n./Build test\n" in text
    assert "%{buildroot}" not in text
    assert "* Mon Oct 19 2026 Jo <jo@example.com> - 1:1.02-1\n" in text


def test_render_omits_help_package_without_doc_files() -> None:
    text = SpecSynthesizer().render(_descriptor(doc_files=[]), date=RENDER_DATE)

    assert "%package help" not in text
    assert "%files help" not in text
    assert "%description\nDoes things.\n\n%prep\n" in text


def test_render_wraps_long_descriptions() -> None:
    description = " ".join(["frobnicate"] * 30)

    text = SpecSynthesizer().render(_descriptor(description=description, doc_files=[]), date=RENDER_DATE)

    body = text.split("%description\n", 1)[1].split("\n\n%prep", 1)[0]
    assert len(body.splitlines()) > 1
    assert all(len(line) <= 75 for line in body.splitlines())
