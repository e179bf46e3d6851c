"""Minimal POD to plain text rendering."""

from __future__ import annotations

import html
import re
from typing import List, Optional

_COMMAND = re.compile(r"^=([a-zA-Z]\w*)(?:[ \t]+|\n|$)(.*)", re.S)
_CODE_START = re.compile(r"([A-Z])(<+)")
_PARAGRAPH_SPLIT = re.compile(r"\n[ \t]*\n")
_POD_LINE = re.compile(r"^=[a-zA-Z]")
_CUT_LINE = re.compile(r"^=cut\b")

_ENTITIES = {
    "lt": "<",
    "gt": ">",
    "verbar": "|",
    "sol": "/",
}


def render_pod(source: str) -> str:
    """Render the POD blocks of ``source`` as plain text.

    Headings become a bare line, ordinary paragraphs are joined onto one line
    and followed by a blank line, verbatim paragraphs keep their layout.
    Anything outside ``=pod ... =cut`` is ignored.
    """
    text = _isolate_commands(source.replace("\r\n", "\n").replace("\r", "\n"))
    output: List[str] = []
    in_pod = False
    skip_until: Optional[str] = None

    for paragraph in _PARAGRAPH_SPLIT.split(text):
        paragraph = paragraph.strip("\n")
        if not paragraph.strip():
            continue
        command = _COMMAND.match(paragraph)

        if not in_pod:
            if command is None or command.group(1) == "cut":
                continue
            in_pod = True

        if skip_until is not None:
            if command is not None and command.group(1) == "end":
                if command.group(2).strip().split()[:1] == [skip_until]:
                    skip_until = None
            continue

        if command is None:
            if paragraph[0] in " \t":
                output.append("\n".join(line.rstrip() for line in paragraph.split("\n")) + "\n\n")
            else:
                output.append(expand_codes(" ".join(paragraph.split())) + "\n\n")
            continue

        name, argument = command.group(1), " ".join(command.group(2).split())
        if name == "cut":
            in_pod = False
        elif name.startswith("head"):
            output.append(expand_codes(argument) + "\n")
        elif name == "item":
            label = argument.lstrip("*").strip()
            if label:
                output.append(expand_codes(label) + "\n\n")
        elif name == "begin":
            skip_until = (argument.split() or [""])[0]
        # =pod, =over, =back, =for, =encoding carry no renderable text.

    return "".join(output)


def _isolate_commands(text: str) -> str:
    """Start a new paragraph at each line that opens or closes a POD block.

    perl switches to POD at any line beginning with ``=word``, even without a
    blank line before it (``__END__\n=head1 NAME``).
    """
    lines: List[str] = []
    in_pod = False
    for line in text.split("\n"):
        if not in_pod and _POD_LINE.match(line):
            lines.append("")
            in_pod = not _CUT_LINE.match(line)
        elif in_pod and _CUT_LINE.match(line):
            lines.append("")
            in_pod = False
        lines.append(line)
    return "\n".join(lines)


def expand_codes(text: str) -> str:
    """Replace POD formatting codes (``B<>``, ``L<>``, ``E<>``...) with their text."""
    result: List[str] = []
    index = 0
    while index < len(text):
        match = _CODE_START.match(text, index)
        if match is None:
            result.append(text[index])
            index += 1
            continue
        letter, brackets = match.group(1), len(match.group(2))
        body_start = match.end()
        if brackets == 1:
            body_end, resume = _find_single_close(text, body_start)
        else:
            body_end, resume = _find_multi_close(text, body_start, brackets)
        body = text[body_start:body_end]
        if brackets > 1:
            body = body.strip()
        result.append(_format_code(letter, body))
        index = resume
    return "".join(result)


def _find_single_close(text: str, start: int) -> tuple[int, int]:
    depth = 1
    position = start
    while position < len(text):
        char = text[position]
        if char == "<" and position > 0 and text[position - 1].isupper():
            depth += 1
        elif char == ">":
            depth -= 1
            if depth == 0:
                return position, position + 1
        position += 1
    return len(text), len(text)


def _find_multi_close(text: str, start: int, brackets: int) -> tuple[int, int]:
    closer = re.compile(r"\s" + ">" * brackets)
    match = closer.search(text, start)
    if match is None:
        return len(text), len(text)
    return match.start(), match.end()


def _format_code(letter: str, body: str) -> str:
    if letter in {"X", "Z"}:
        return ""
    if letter == "E":
        return _entity(body)
    if letter == "L":
        return expand_codes(_link_text(body))
    return expand_codes(body)


def _entity(name: str) -> str:
    if name in _ENTITIES:
        return _ENTITIES[name]
    try:
        if name.lower().startswith("0x"):
            return chr(int(name, 16))
        if name.startswith("0") and len(name) > 1:
            return chr(int(name, 8))
        if name.isdigit():
            return chr(int(name))
    except (ValueError, OverflowError):
        return ""
    return html.unescape(f"&{name};")


def _link_text(body: str) -> str:
    if "|" in body:
        return body.split("|", 1)[0]
    if "://" in body:
        return body
    if "/" in body:
        page, section = body.split("/", 1)
        section = section.strip('"')
        return f"{section} in {page}" if page else section
    return body


__all__ = ["expand_codes", "render_pod"]
