"""CLI entrypoint for cpan2spec."""

from __future__ import annotations

import argparse
from pathlib import Path

from . import __version__
from .config import CONFIG_FILENAME, ConfigError, Cpan2SpecConfig, load_config
from .errors import OutputError
from .logging import configure_logging
from .orchestrator import Orchestrator, RunContext


def _add_verbose_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_macro_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--macros",
        dest="prefer_macros",
        action="store_true",
        default=None,
        help="Write %%{buildroot} and %%{optflags} in scriptlets.",
    )
    group.add_argument(
        "--no-macros",
        dest="prefer_macros",
        action="store_false",
        default=None,
        help="Write $RPM_BUILD_ROOT and $RPM_OPT_FLAGS in scriptlets.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cpan2spec",
        description="Generate RPM spec files from CPAN source distributions.",
    )
    _add_verbose_option(parser)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to {CONFIG_FILENAME} or the directory holding it (defaults to current directory).",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        default=None,
        help="Directory the generated .spec files are written to.",
    )
    parser.add_argument(
        "--deps",
        action="store_true",
        help="Print the dependencies of the first distribution instead of writing a spec.",
    )
    _add_macro_options(parser)
    parser.add_argument(
        "--keep-core-deps",
        action="store_true",
        default=None,
        help="Keep dependencies on modules bundled with perl.",
    )
    parser.add_argument(
        "--index",
        default=None,
        help="Local copy of 02packages.details.txt(.gz) used to resolve module names.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write log records to this file.",
    )
    parser.add_argument(
        "targets",
        nargs="+",
        metavar="TARGET",
        help="Archive path (Foo-Bar-1.0.tar.gz) or module name (Foo::Bar).",
    )
    return parser


def _apply_overrides(config: Cpan2SpecConfig, args: argparse.Namespace) -> Cpan2SpecConfig:
    if args.output_dir:
        config.output_dir = Path(args.output_dir).expanduser()
    if args.prefer_macros is not None:
        config.render.prefer_macros = bool(args.prefer_macros)
    if args.keep_core_deps:
        config.render.keep_core_deps = True
    if args.index:
        config.sources.package_index = Path(args.index).expanduser()
    return config


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for cpan2spec."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if args.log_file else None
    logger = configure_logging(verbose=bool(args.verbose), log_file=log_file)

    try:
        config = _apply_overrides(load_config(Path(args.config or ".")), args)
        orchestrator = Orchestrator(RunContext.from_config(config))
        result = orchestrator.run(args.targets, deps_only=bool(args.deps))
    except (ConfigError, OutputError) as exc:
        parser.exit(1, f"cpan2spec failed: {exc}\nRun with --verbose for more details.\n")

    logger.debug(
        "%d written, %d skipped, %d reported",
        len(result.written),
        len(result.skipped),
        len(result.reported),
    )
    if result.all_skipped:
        parser.exit(1, "cpan2spec: every distribution was skipped\n")


__all__ = ["main"]
