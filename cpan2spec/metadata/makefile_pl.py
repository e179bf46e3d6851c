"""Dependency harvesting from ``Makefile.PL`` without running Perl.

The legacy build script is tokenized, the ``WriteMakefile(...)`` call is
located, and only the literal hash values of the prerequisite keys are read.
Anything that would need evaluation inside those values is rejected.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from ..errors import ScriptParseError, ScriptTimeout
from ..models import ANY_VERSION
from .manifest import clean_version

DEFAULT_TIMEOUT = 5.0
DEFAULT_MAX_BYTES = 1 << 20

PREREQ_KEY = "PREREQ_PM"
EXTRA_PREREQ_KEYS: tuple[str, ...] = ("BUILD_REQUIRES", "TEST_REQUIRES", "CONFIGURE_REQUIRES")
EXE_FILES_KEY = "EXE_FILES"

_CALL_NAME = re.compile(r"^(?:ExtUtils::MakeMaker::)?WriteMakefile1?$")

_WORD = re.compile(r"[A-Za-z_]\w*(?:::\w+)*(?:::)?")
_VSTRING = re.compile(r"v\d+(?:\.\d+)+")
_NUMBER = re.compile(r"\d[\d_]*(?:\.[\d_]+)*(?:[eE][+-]?\d+)?")
_VARIABLE = re.compile(r"[$@%&](?:\^\w|\{\^?\w+\}|[A-Za-z_]\w*(?:::\w+)*|::\w+(?:::\w+)*|\d+|[^\sA-Za-z0-9_{])")
_HEREDOC = re.compile(r"<<(~?)(?:\"([^\"\n]*)\"|'([^'\n]*)'|([A-Za-z_]\w*))")
_OPERATORS = (
    "<=>", "**=", "||=", "&&=", "//=", "...",
    "=>", "->", "=~", "!~", "==", "!=", "<=", ">=", "&&", "||", "//", "..", "::",
    "++", "--", "**", "+=", "-=", ".=", "*=", "/=", "x=",
)
_QUOTE_LIKE = {"q", "qq", "qw", "m", "qr", "s", "tr", "y"}
_TWO_PART_QUOTES = {"s", "tr", "y"}
_BRACKETS = {"(": ")", "[": "]", "{": "}", "<": ">"}
_REGEX_AFTER_OPS = {"(", ",", "=>", "=", "=~", "!~", "{", "[", ";", "!", "&&", "||", "?", ":", "==", "!="}
_REGEX_AFTER_WORDS = {"split", "grep", "map", "if", "unless", "and", "or", "not", "return", "while", "until"}
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "e": "\x1b", "a": "\x07"}

_CHECK_EVERY = 256


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    items: Tuple[str, ...] = ()


@dataclass
class MakefileHarvest:
    """Prerequisites and flags read from a ``WriteMakefile`` call."""

    prereqs: Dict[str, str] = field(default_factory=dict)
    build_prereqs: Dict[str, str] = field(default_factory=dict)
    exe_files: bool = False
    found_call: bool = False

    def dependencies(self) -> Dict[str, str]:
        merged = dict(self.prereqs)
        for name, version in self.build_prereqs.items():
            merged.setdefault(name, version)
        return merged


class _Lexer:
    """Tokenizer for the subset of Perl found in Makefile.PL files."""

    def __init__(self, source: str, check: Callable[[], None]) -> None:
        self.source = source.replace("\r\n", "\n").replace("\r", "\n")
        self.position = 0
        self.tokens: List[Token] = []
        self._check = check
        self._pending_heredocs: List[Tuple[str, bool]] = []

    def run(self) -> List[Token]:
        text = self.source
        steps = 0
        while self.position < len(text):
            steps += 1
            if steps % _CHECK_EVERY == 0:
                self._check()
            char = text[self.position]

            if char == "\n":
                self.position += 1
                if self._pending_heredocs:
                    self._skip_heredoc_bodies()
                if text.startswith("=", self.position) and _WORD.match(text, self.position + 1):
                    self._skip_pod()
                continue
            if char in " \t\f":
                self.position += 1
                continue
            if char == "#":
                end = text.find("\n", self.position)
                self.position = len(text) if end == -1 else end
                continue
            if self.position == 0 and char == "=" and _WORD.match(text, 1):
                self._skip_pod()
                continue
            if char in "'\"`":
                self._emit("str", self._read_delimited(char, interpolate=char != "'"))
                continue
            if char == "<" and self._read_heredoc_marker():
                continue

            vstring = _VSTRING.match(text, self.position)
            if vstring is not None:
                self.position = vstring.end()
                self._emit("num", vstring.group(0))
                continue

            word = _WORD.match(text, self.position)
            if word is not None:
                value = word.group(0)
                if value in {"__END__", "__DATA__"}:
                    break
                self.position = word.end()
                if value in _QUOTE_LIKE and not self._after_filetest_dash() and self._quote_follows():
                    self._read_quote_like(value)
                else:
                    self._emit("word", value)
                continue

            number = _NUMBER.match(text, self.position)
            if number is not None:
                self.position = number.end()
                self._emit("num", number.group(0).replace("_", ""))
                continue

            if char in "$@%&":
                variable = _VARIABLE.match(text, self.position)
                if variable is not None and not (char in "%&" and self._binary_context()):
                    self.position = variable.end()
                    self._emit("var", variable.group(0))
                    continue

            if char == "/" and self._regex_context():
                self.position += 1
                self._emit("regex", self._read_until("/"))
                self._skip_modifiers()
                continue

            for operator in _OPERATORS:
                if text.startswith(operator, self.position):
                    self.position += len(operator)
                    self._emit("op", operator)
                    break
            else:
                self.position += 1
                self._emit("op", char)

        if self._pending_heredocs:
            raise ScriptParseError("unterminated here-document")
        return self.tokens

    def _emit(self, kind: str, value: str, items: Tuple[str, ...] = ()) -> None:
        self.tokens.append(Token(kind, value, items))

    def _previous(self) -> Optional[Token]:
        return self.tokens[-1] if self.tokens else None

    def _binary_context(self) -> bool:
        previous = self._previous()
        if previous is None:
            return False
        return previous.kind in {"var", "num", "str"} or previous.value in {")", "]", "}"}

    def _regex_context(self) -> bool:
        previous = self._previous()
        if previous is None:
            return True
        if previous.kind == "op":
            return previous.value in _REGEX_AFTER_OPS
        return previous.kind == "word" and previous.value in _REGEX_AFTER_WORDS

    def _quote_follows(self) -> bool:
        text = self.source
        index = self.position
        while index < len(text) and text[index] in " \t":
            index += 1
        if index >= len(text):
            return False
        char = text[index]
        if char.isalnum() or char.isspace() or char in "_=,;)}]$@>-.":
            return False
        self.position = index
        return True

    def _after_filetest_dash(self) -> bool:
        # ``-s $file`` is a file test, not a substitution.
        previous = self._previous()
        return previous is not None and previous.kind == "op" and previous.value == "-"

    def _read_quote_like(self, operator: str) -> None:
        opener = self.source[self.position]
        self.position += 1
        body = self._read_delimited_body(opener)
        if operator in _TWO_PART_QUOTES:
            if opener in _BRACKETS:
                while self.position < len(self.source) and self.source[self.position].isspace():
                    self.position += 1
                second = self.source[self.position:self.position + 1]
                if not second:
                    raise ScriptParseError(f"unterminated {operator} operator")
                self.position += 1
                self._read_delimited_body(second)
            else:
                self._read_delimited_body(opener)
            self._skip_modifiers()
            self._emit("regex", body)
        elif operator in {"m", "qr"}:
            self._skip_modifiers()
            self._emit("regex", body)
        elif operator == "qw":
            self._emit("qw", body, tuple(body.split()))
        else:
            self._emit("str", body if operator == "q" else _unescape(body))

    def _read_delimited(self, quote: str, *, interpolate: bool) -> str:
        self.position += 1
        body = self._read_delimited_body(quote)
        return _unescape(body) if interpolate else body.replace("\\\\", "\\").replace(f"\\{quote}", quote)

    def _read_delimited_body(self, opener: str) -> str:
        closer = _BRACKETS.get(opener, opener)
        nested = closer != opener
        depth = 1
        text = self.source
        start = self.position
        while self.position < len(text):
            char = text[self.position]
            if char == "\\":
                self.position += 2
                continue
            if nested and char == opener:
                depth += 1
            elif char == closer:
                depth -= 1
                if depth == 0:
                    body = text[start:self.position]
                    self.position += 1
                    return body
            self.position += 1
        raise ScriptParseError(f"unterminated string starting at offset {start}")

    def _read_until(self, delimiter: str) -> str:
        return self._read_delimited_body(delimiter)

    def _skip_modifiers(self) -> None:
        while self.position < len(self.source) and self.source[self.position].isalpha():
            self.position += 1

    def _read_heredoc_marker(self) -> bool:
        match = _HEREDOC.match(self.source, self.position)
        if match is None or self._binary_context():
            return False
        terminator = next(group for group in match.groups()[1:] if group is not None)
        self._pending_heredocs.append((terminator, bool(match.group(1))))
        self.position = match.end()
        self._emit("str", "")
        return True

    def _skip_heredoc_bodies(self) -> None:
        text = self.source
        while self._pending_heredocs:
            terminator, indented = self._pending_heredocs.pop(0)
            while True:
                if self.position >= len(text):
                    raise ScriptParseError(f"here-document {terminator!r} never terminated")
                end = text.find("\n", self.position)
                end = len(text) if end == -1 else end
                line = text[self.position:end]
                self.position = min(end + 1, len(text))
                if (line.strip() if indented else line) == terminator:
                    break

    def _skip_pod(self) -> None:
        text = self.source
        match = re.compile(r"^=cut\b.*$", re.MULTILINE).search(text, self.position)
        self.position = len(text) if match is None else match.end()


class MakefilePLParser:
    """Reads prerequisite tables from ``WriteMakefile`` without evaluating code."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_bytes: int = DEFAULT_MAX_BYTES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout = timeout
        self.max_bytes = max_bytes
        self._clock = clock

    def parse(self, source: str) -> MakefileHarvest:
        if len(source.encode("utf-8", "replace")) > self.max_bytes:
            raise ScriptTimeout(f"Makefile.PL larger than {self.max_bytes} bytes")
        deadline = self._clock() + self.timeout

        def _check() -> None:
            if self._clock() > deadline:
                raise ScriptTimeout(f"Makefile.PL parsing exceeded {self.timeout:g}s")

        tokens = _Lexer(source, _check).run()
        harvest = MakefileHarvest()
        for start in _call_sites(tokens):
            end = _matching_close(tokens, start)
            harvest.found_call = True
            arguments = tokens[start + 1:end]
            if len(arguments) == 1 and arguments[0].kind == "var" and arguments[0].value.startswith("%"):
                # WriteMakefile(%WriteMakefileArgs) with the hash assigned from a literal list.
                arguments = _assigned_list(tokens, arguments[0].value, end=start)
            _harvest_arguments(arguments, harvest, _check)
        return harvest


def _call_sites(tokens: List[Token]) -> List[int]:
    """Indexes of the opening parenthesis of each WriteMakefile call."""
    sites = []
    for index, token in enumerate(tokens[:-1]):
        if token.kind != "word" or not _CALL_NAME.match(token.value):
            continue
        following = tokens[index + 1]
        if following.kind == "op" and following.value == "(":
            previous = tokens[index - 1] if index else None
            if previous is not None and previous.kind == "word" and previous.value == "sub":
                continue
            sites.append(index + 1)
    return sites


def _assigned_list(tokens: List[Token], variable: str, *, end: int) -> List[Token]:
    """Tokens of the last ``%var = (...)`` assignment before ``end``."""
    for index in range(end - 3, -1, -1):
        token = tokens[index]
        if token.kind != "var" or token.value != variable:
            continue
        assign, opener = tokens[index + 1], tokens[index + 2]
        if assign.value == "=" and opener.value == "(":
            close = _matching_close(tokens, index + 2)
            return tokens[index + 3:close]
    return []


def _matching_close(tokens: List[Token], start: int) -> int:
    closers = {"(": ")", "[": "]", "{": "}"}
    stack: List[str] = []
    for index in range(start, len(tokens)):
        token = tokens[index]
        if token.kind != "op":
            continue
        if token.value in closers:
            stack.append(closers[token.value])
        elif token.value in closers.values():
            if not stack or stack.pop() != token.value:
                raise ScriptParseError(f"unbalanced {token.value!r} in WriteMakefile arguments")
            if not stack:
                return index
    raise ScriptParseError("WriteMakefile call is never closed")


def _harvest_arguments(tokens: List[Token], harvest: MakefileHarvest, check: Callable[[], None]) -> None:
    index = 0
    while index < len(tokens) - 2:
        if index % _CHECK_EVERY == 0:
            check()
        token = tokens[index]
        key = token.value if token.kind in {"word", "str"} else None
        separator = tokens[index + 1]
        if key is None or separator.kind != "op" or separator.value not in {"=>", ","}:
            index += 1
            continue
        value_start = index + 2
        if key == PREREQ_KEY:
            table, index = _literal_hash(tokens, value_start, key)
            _fill(harvest.prereqs, table)
        elif key in EXTRA_PREREQ_KEYS:
            table, index = _literal_hash(tokens, value_start, key)
            _fill(harvest.build_prereqs, table)
        elif key == EXE_FILES_KEY:
            harvest.exe_files = harvest.exe_files or _non_empty_list(tokens, value_start)
            index = value_start
        else:
            index += 1


def _literal_hash(tokens: List[Token], start: int, key: str) -> Tuple[Dict[str, str], int]:
    opener = tokens[start] if start < len(tokens) else None
    if opener is None or opener.kind != "op" or opener.value != "{":
        raise ScriptParseError(f"{key} is not a literal hash")
    table: Dict[str, str] = {}
    index = start + 1
    while index < len(tokens):
        token = tokens[index]
        if token.kind == "op" and token.value == "}":
            return table, index + 1
        if token.kind not in {"str", "word"}:
            raise ScriptParseError(f"{key}: unexpected {token.value!r}")
        name = token.value
        separator = tokens[index + 1] if index + 1 < len(tokens) else None
        if separator is None or separator.kind != "op" or separator.value not in {"=>", ","}:
            raise ScriptParseError(f"{key}: expected '=>' after {name!r}")
        value = tokens[index + 2] if index + 2 < len(tokens) else None
        table[name] = _literal_version(key, name, value)
        index += 3
        if index < len(tokens) and tokens[index].kind == "op" and tokens[index].value == ",":
            index += 1
    raise ScriptParseError(f"{key} hash is never closed")


def _literal_version(key: str, name: str, token: Optional[Token]) -> str:
    if token is None:
        raise ScriptParseError(f"{key}: missing version for {name!r}")
    if token.kind == "num":
        return clean_version(token.value)
    if token.kind == "str":
        if "$" in token.value or "@" in token.value:
            raise ScriptParseError(f"{key}: interpolated version for {name!r}")
        return clean_version(token.value)
    if token.kind == "word" and token.value == "undef":
        return ANY_VERSION
    raise ScriptParseError(f"{key}: non-literal version for {name!r}")


def _non_empty_list(tokens: List[Token], start: int) -> bool:
    if start >= len(tokens):
        return False
    token = tokens[start]
    if token.kind == "qw":
        return bool(token.items)
    if token.kind == "op" and token.value == "[":
        following = tokens[start + 1] if start + 1 < len(tokens) else None
        return following is not None and not (following.kind == "op" and following.value == "]")
    return token.kind in {"var", "word", "str"}


def _fill(target: Dict[str, str], table: Dict[str, str]) -> None:
    for name, version in table.items():
        target.setdefault(name, version)


def _unescape(body: str) -> str:
    result: List[str] = []
    index = 0
    while index < len(body):
        char = body[index]
        if char == "\\" and index + 1 < len(body):
            following = body[index + 1]
            result.append(_ESCAPES.get(following, following))
            index += 2
            continue
        result.append(char)
        index += 1
    return "".join(result)


__all__ = [
    "DEFAULT_MAX_BYTES",
    "DEFAULT_TIMEOUT",
    "MakefileHarvest",
    "MakefilePLParser",
    "Token",
]
