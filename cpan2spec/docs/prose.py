"""Summary and description extraction from module documentation."""

from __future__ import annotations

import logging
import re
import textwrap
from typing import Callable, Iterable, Optional, Sequence

from ..errors import EntryReadError
from ..logging import get_logger
from ..models import ProseResult
from .locator import locate_documentation
from .pod import render_pod

Reader = Callable[[str], str]

_ARTICLE = re.compile(r"^(?:an?|the)\s+", re.IGNORECASE)
_DESCRIPTION = re.compile(r"^DESCRIPTION[ \t]*\n+(.+?)(?:\n[ \t]*\n|\Z)", re.MULTILINE | re.DOTALL)
_PARAGRAPH_SPLIT = re.compile(r"\n[ \t]*\n")
_MARKUP_PREFIXES = ("#", "-", "=")
_WRAP_WIDTH = 75

logger = get_logger("docs.prose")


def default_summary(module: str) -> str:
    return f"{module} Perl module"


def default_description(module: str) -> str:
    return f"{module} Perl module"


def extract_summary(rendered: str, module: str) -> Optional[str]:
    """Return the NAME line text following ``module``, cleaned up for a spec Summary."""
    pattern = re.compile(
        rf"^NAME\s+{re.escape(module)}[ \t]*(?:\s*-+[ \t]*|\s+)([^\n]+)",
        re.MULTILINE,
    )
    match = pattern.search(rendered)
    if match is None:
        return None
    captured = match.group(1).strip()
    # A bare NAME line lets the whitespace separator run into the next heading.
    if captured == "SYNOPSIS":
        return None
    summary = _ARTICLE.sub("", captured.rstrip(". \t"))
    if not summary:
        return None
    return summary[0].upper() + summary[1:]


def extract_description(rendered: str) -> Optional[str]:
    """Return the first paragraph under the DESCRIPTION heading."""
    match = _DESCRIPTION.search(rendered)
    if match is None:
        return None
    description = match.group(1).strip()
    return description or None


def extract_prose(rendered: str, module: str) -> ProseResult:
    """Parse rendered POD text into summary and description."""
    return ProseResult(
        description=extract_description(rendered),
        summary=extract_summary(rendered, module),
    )


def select_readme(files: Iterable[str]) -> Optional[str]:
    """Pick the README with the shortest path, ties broken alphabetically."""
    candidates = [path for path in files if "readme" in path.lower()]
    if not candidates:
        return None
    return min(candidates, key=lambda path: (len(path), path))


def readme_description(text: str) -> Optional[str]:
    """Return the first prose-like paragraph of a README."""
    normalised = text.replace("\r\n", "\n").replace("\r", "\n")
    for paragraph in _PARAGRAPH_SPLIT.split(normalised):
        paragraph = paragraph.strip("\n")
        if not paragraph or paragraph.startswith(_MARKUP_PREFIXES):
            continue
        if len(paragraph.split("\n")) > 2:
            return paragraph
    return None


def extract_from_readme(
    files: Sequence[str],
    reader: Reader,
    log: logging.Logger | logging.LoggerAdapter = logger,
) -> ProseResult:
    """Description from the README fallback; the summary is never set here."""
    readme = select_readme(files)
    if readme is None:
        log.debug("No README found")
        return ProseResult()
    try:
        text = reader(readme)
    except EntryReadError as exc:
        log.warning("Cannot read %s: %s", readme, exc.reason)
        return ProseResult()
    return ProseResult(description=readme_description(text))


def resolve_prose(
    module: str,
    files: Sequence[str],
    reader: Reader,
    log: logging.Logger | logging.LoggerAdapter = logger,
) -> ProseResult:
    """Resolve summary and description, always returning both fields.

    POD documentation is preferred, the README supplies a missing
    description, and generic text composed from the module name fills
    whatever is still absent.
    """
    result = ProseResult()
    doc_path = locate_documentation(module, files)
    if doc_path is None:
        log.info("No documentation file found for %s", module)
    else:
        try:
            source = reader(doc_path)
        except EntryReadError as exc:
            log.warning("Cannot read %s: %s", doc_path, exc.reason)
        else:
            result = _prose_from_pod(source, module, doc_path, log)

    if not result.description:
        result.description = extract_from_readme(files, reader, log).description

    if not result.summary:
        log.info("Using generic summary")
        result.summary = default_summary(module)
    if not result.description:
        log.info("Using generic description")
        result.description = default_description(module)
    return result


def _prose_from_pod(
    source: str,
    module: str,
    doc_path: str,
    log: logging.Logger | logging.LoggerAdapter,
) -> ProseResult:
    try:
        result = extract_prose(render_pod(source), module)
    except Exception as exc:  # malformed POD falls back to README and generic text
        log.warning("Cannot parse POD in %s: %s", doc_path, exc)
        return ProseResult()
    if result.is_empty():
        log.info("No NAME or DESCRIPTION section in %s", doc_path)
    return result


def wrap_description(description: str, width: int = _WRAP_WIDTH) -> str:
    """Re-flow each paragraph of ``description`` to ``width`` columns."""
    paragraphs = [part for part in _PARAGRAPH_SPLIT.split(description.strip()) if part.strip()]
    wrapped = []
    for paragraph in paragraphs:
        if paragraph.startswith((" ", "\t")):
            wrapped.append(paragraph.rstrip())
        else:
            wrapped.append(textwrap.fill(" ".join(paragraph.split()), width=width))
    return "\n\n".join(wrapped)


__all__ = [
    "default_description",
    "default_summary",
    "extract_description",
    "extract_from_readme",
    "extract_prose",
    "extract_summary",
    "readme_description",
    "resolve_prose",
    "select_readme",
    "wrap_description",
]
