"""
Line-oriented Gemfile parser.

Used when the structural parser cannot produce a usable result. Each logical
line is classified by its leading keyword and picked apart with regular
expressions; block nesting is tracked with a depth counter and a stack of
saved states.
"""

import re
from collections.abc import Iterator
from pathlib import Path
from typing import NamedTuple

from gemfile_kit.errors import GemfileSyntaxError
from gemfile_kit.gemfile.context import (
    OptionValue,
    ParseContext,
    block_source,
    build_dependency,
    build_gemspec_reference,
    split_comment,
)
from gemfile_kit.gemfile.models import (
    GemDependency,
    GemspecReference,
    ParsedGemfile,
    Source,
)

VARIABLE_RE = re.compile(r"""^(\w+)\s*=\s*['"]([^'"]+)['"]""")
GEM_NAME_RE = re.compile(r"""^gem[\s(]\s*['"]([^'"]+)['"]""")
HEAD_RE = re.compile(r"^([a-z_]+)")
BLOCK_OPEN_RE = re.compile(r"\bdo\s*(?:\|[^|]*\|)?$")
END_RE = re.compile(r"^end\b")

KEYWORD_OPENERS = {"if", "unless", "case", "begin", "while", "until"}
CONDITIONAL_OPENERS = {"if", "unless"}

# Tokens of a directive's argument list, in priority order
ARGUMENT_TOKEN_RE = re.compile(
    r"""
      '(?P<single>[^']*)'
    | "(?P<double>[^"]*)"
    | %[wW][\[(](?P<words>[^\])]*)[\])]
    | %[iI][\[(](?P<symbols>[^\])]*)[\])]
    | (?P<key>\w+):(?!:)
    | :(?P<rocket>\w+)\s*=>
    | :(?P<symbol>\w+)
    | (?P<word>[\w.]+)
    | (?P<open>\[)
    | (?P<close>\])
    """,
    re.VERBOSE,
)


def _call_end(text: str, index: int) -> int:
    """
    Return the index just past a parenthesized argument list starting at index.

    Returns 0 when text[index:] does not open with "(" (after whitespace).
    Quotes are honoured and an unbalanced list runs to the end of the text.
    """
    while index < len(text) and text[index] in " \t":
        index += 1
    if index >= len(text) or text[index] != "(":
        return 0
    depth = 0
    quote = ""
    for position in range(index, len(text)):
        char = text[position]
        if quote:
            if char == quote:
                quote = ""
        elif char in ("'", '"'):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return position + 1
    return len(text)


class Argument(NamedTuple):
    """A positional argument literal."""

    kind: str  # "string", "symbol" or "word"
    value: str


def split_arguments(text: str) -> tuple[list[Argument], dict[str, OptionValue]]:
    """
    Split the argument text of a directive into positionals and options.

    Positional arguments after the first option key are ignored, so quoted
    option values are never mistaken for version constraints. Method calls
    such as `ENV.fetch('X', '1.0')` are not literals: neither they nor the
    strings in their argument lists count as values.
    """
    positional: list[Argument] = []
    options: dict[str, OptionValue] = {}
    key: str | None = None
    array: list[str] | None = None
    skip_until = 0

    for match in ARGUMENT_TOKEN_RE.finditer(text):
        if match.start() < skip_until:
            continue
        kind = match.lastgroup
        raw = match.group(kind)

        if kind == "word":
            skip_until = _call_end(text, match.end())
            if skip_until:
                if key is not None and array is None:
                    options[key] = None
                    key = None
                continue

        if kind == "open":
            array = []
            continue
        if kind == "close":
            if key is not None and array is not None:
                options[key] = array
                key = None
            array = None
            continue
        if kind in ("key", "rocket"):
            key = raw
            array = None
            continue

        value: OptionValue
        if kind in ("single", "double"):
            kind, value = "string", raw
        elif kind == "symbol":
            value = raw
        elif kind in ("words", "symbols"):
            value = raw.split()
        elif raw == "true":
            value = True
        elif raw == "false":
            value = False
        elif raw == "nil":
            value = None
        else:
            value = raw

        if array is not None:
            if kind in ("string", "symbol"):
                array.append(raw)
            continue
        if key is not None:
            options[key] = value
            key = None
            continue
        if options or not isinstance(value, str):
            continue
        positional.append(Argument(kind, value))

    if key is not None and array is not None:
        options[key] = array
    return positional, options


def expand_variables(line: str, variables: dict[str, str]) -> str:
    """
    Substitute known variables into a line as quoted literals.

    Occurrences inside a quoted string (an odd number of quote characters
    before them) and option keys of the same name are left alone.
    """
    for name, value in variables.items():
        pattern = re.compile(
            rf"(?<![\w.:@$]){re.escape(name)}(?![\w?!])(?!:(?!:))"
        )
        pieces = []
        last = 0
        for match in pattern.finditer(line):
            before = line[: match.start()]
            if before.count("'") % 2 == 1 or before.count('"') % 2 == 1:
                continue
            pieces.append(line[last : match.start()])
            pieces.append(f"'{value}'")
            last = match.end()
        if pieces:
            pieces.append(line[last:])
            line = "".join(pieces)
    return line


def statement_spans(lines: list[str]) -> Iterator[tuple[int, int, str, str]]:
    """
    Yield (first, last, code, comment) for each statement in a list of lines.

    Lines ending in a comma or backslash are joined with the next line.
    first and last are the indexes of the statement's first and last
    physical lines, and the comment is that of the last one.
    """
    pending: list[str] = []
    first = last = 0
    for index, raw in enumerate(lines):
        code, comment = split_comment(raw)
        if not code:
            continue
        if not pending:
            first = index
        last = index
        if code.endswith("\\"):
            pending.append(code[:-1].strip())
            continue
        pending.append(code)
        if code.endswith(","):
            continue
        yield first, index, " ".join(pending), comment
        pending = []

    if pending:
        yield first, last, " ".join(pending), ""


def logical_lines(content: str) -> Iterator[tuple[int, str, str]]:
    """
    Yield (line_number, code, comment) for each non-blank statement line.

    The line number is that of the statement's first physical line.
    """
    for first, _, code, comment in statement_spans(content.splitlines()):
        yield first + 1, code, comment


def _names(arguments: list[Argument]) -> tuple[str, ...]:
    return tuple(
        a.value for a in arguments if a.kind in ("symbol", "string") and a.value
    )


def _strings(arguments: list[Argument]) -> list[str]:
    return [a.value for a in arguments if a.kind == "string"]


class LineGemfileParser:
    """Regex-based Gemfile parser working one logical line at a time."""

    def __init__(self):
        self._reset(None)

    def _reset(self, path: Path | None) -> None:
        self._path = path
        self._context = ParseContext()
        self._block_kind = ""
        self._skipping = False
        self._saved: list[tuple[ParseContext, str, bool]] = []
        self._depth = 0
        self._variables: dict[str, str] = {}
        self._dependencies: list[GemDependency] = []
        self._sources: list[Source] = []
        self._gemspecs: list[GemspecReference] = []
        self._ruby_version = ""

    def parse(self, content: str, path: str | Path | None = None) -> ParsedGemfile:
        """
        Parse Gemfile content.

        Args:
            content: Gemfile source.
            path: File the content came from, used in error messages.

        Returns:
            ParsedGemfile with every declaration found.

        Raises:
            GemfileSyntaxError: If a gem line has no quoted gem name.
        """
        self._reset(Path(path) if path is not None else None)

        for line_number, code, comment in logical_lines(content):
            variable = VARIABLE_RE.match(code)
            if variable and not self._skipping:
                self._variables[variable.group(1)] = variable.group(2)
                continue
            expanded = expand_variables(code, self._variables)
            self._parse_line(line_number, expanded, comment)

        return ParsedGemfile(
            dependencies=self._dependencies,
            sources=self._sources,
            ruby_version=self._ruby_version,
            gemspecs=self._gemspecs,
        )

    @property
    def depth(self) -> int:
        return self._depth

    def _open_block(self, kind: str, context: ParseContext | None = None) -> None:
        self._saved.append((self._context, self._block_kind, self._skipping))
        self._depth += 1
        self._block_kind = kind
        if context is not None:
            self._context = context

    def _close_block(self) -> None:
        self._depth = max(self._depth - 1, 0)
        if self._saved:
            self._context, self._block_kind, self._skipping = self._saved.pop()
        else:
            self._context = ParseContext()
            self._block_kind = ""
            self._skipping = False

    def _parse_line(self, line_number: int, line: str, comment: str) -> None:
        head_match = HEAD_RE.match(line)
        head = head_match.group(1) if head_match else ""
        opens_block = bool(BLOCK_OPEN_RE.search(line)) or head in KEYWORD_OPENERS
        rest = line[len(head) :]
        if BLOCK_OPEN_RE.search(rest):
            rest = BLOCK_OPEN_RE.sub("", rest)

        if self._skipping:
            if END_RE.match(line):
                self._close_block()
            elif opens_block:
                self._open_block(head)
            return

        context: ParseContext | None = None

        if head == "source":
            context = self._source(rest)
        elif head == "git_source":
            pass
        elif head == "group":
            names = _names(split_arguments(rest)[0])
            if names:
                context = self._context._replace(groups=names)
        elif END_RE.match(line):
            self._close_block()
            return
        elif head == "gemspec":
            _, options = split_arguments(rest)
            self._gemspecs.append(
                build_gemspec_reference(options, len(self._dependencies))
            )
        elif head == "gem":
            self._gem(line_number, line, rest, comment)
        elif head == "ruby":
            strings = _strings(split_arguments(rest)[0])
            if strings:
                self._ruby_version = strings[0]
        elif head in ("platforms", "platform"):
            names = _names(split_arguments(rest)[0])
            if names:
                context = self._context._replace(platforms=names)
        elif head in ("git", "path"):
            context = self._location_block(head, rest, opens_block)
        elif head in ("else", "elsif"):
            if self._block_kind in CONDITIONAL_OPENERS:
                self._skipping = True
            return
        elif head in CONDITIONAL_OPENERS:
            context = self._context._replace(conditional=True)

        if opens_block:
            self._open_block(head, context)

    def _source(self, rest: str) -> ParseContext | None:
        positional, options = split_arguments(rest)
        strings = _strings(positional)
        source = block_source("source", strings[0] if strings else "", options)
        if source is None:
            return None
        self._sources.append(source)
        return self._context._replace(source=source)

    def _location_block(
        self, kind: str, rest: str, opens_block: bool
    ) -> ParseContext | None:
        if not opens_block:
            return None
        positional, options = split_arguments(rest)
        strings = _strings(positional)
        source = block_source(kind, strings[0] if strings else "", options)
        if source is None:
            return None
        self._sources.append(source)
        return self._context._replace(source=source)

    def _gem(self, line_number: int, line: str, rest: str, comment: str) -> None:
        if GEM_NAME_RE.match(line) is None:
            raise GemfileSyntaxError(line_number, line, self._path)
        positional, options = split_arguments(rest)
        strings = _strings(positional)
        self._dependencies.append(
            build_dependency(
                strings[0], strings[1:], options, self._context, comment=comment
            )
        )
