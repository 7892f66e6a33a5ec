"""
Parsing state and option handling shared by both Gemfile parsers.

The structural and line parsers extract the same raw material (positional
literals plus keyword options) in different ways; turning that material into
GemDependency and GemspecReference values happens here so both produce the
same output.
"""

from typing import NamedTuple

from gemfile_kit.gemfile.models import (
    DEFAULT_DEVELOPMENT_GROUP,
    DEFAULT_GEMSPEC_GLOB,
    DEFAULT_GEMSPEC_PATH,
    DEFAULT_GROUPS,
    GemDependency,
    GemspecReference,
    Source,
    SourceType,
    github_url,
)

OptionValue = str | bool | list[str] | None


class ParseContext(NamedTuple):
    """One frame of block nesting state."""

    groups: tuple[str, ...] = DEFAULT_GROUPS
    platforms: tuple[str, ...] = ()
    source: Source | None = None
    conditional: bool = False


class ContextStack:
    """Stack of ParseContext frames.

    Frames are immutable, so a pushed frame can never leak changes into the
    frame it was derived from; pop() restores the parent exactly.
    """

    def __init__(self):
        self._frames: list[ParseContext] = [ParseContext()]

    @property
    def current(self) -> ParseContext:
        return self._frames[-1]

    @property
    def depth(self) -> int:
        return len(self._frames) - 1

    def push(self, **changes) -> ParseContext:
        frame = self.current._replace(**changes)
        self._frames.append(frame)
        return frame

    def pop(self) -> ParseContext:
        if len(self._frames) > 1:
            self._frames.pop()
        return self.current


def _as_list(value: OptionValue) -> list[str]:
    if isinstance(value, list):
        return [v for v in value if v]
    if isinstance(value, str) and value:
        return [value]
    return []


def _as_str(value: OptionValue) -> str:
    return value if isinstance(value, str) else ""


def resolve_source(
    options: dict[str, OptionValue], inherited: Source | None
) -> Source | None:
    """
    Work out the origin of one dependency.

    Explicit git/github/path/source options always produce a new Source.
    branch/tag/ref alone refine the inherited git source, or start an empty
    git source when the inherited one is not git.
    """
    branch = _as_str(options.get("branch"))
    tag = _as_str(options.get("tag"))
    ref = _as_str(options.get("ref"))

    github = _as_str(options.get("github"))
    git = _as_str(options.get("git"))
    path = _as_str(options.get("path"))
    registry = _as_str(options.get("source"))

    if github:
        return Source.git_checkout(github_url(github), branch, tag, ref)
    if git:
        return Source.git_checkout(git, branch, tag, ref)
    if path:
        return Source.local_path(path)
    if registry:
        return Source.registry(registry)
    if branch or tag or ref:
        if inherited is not None and inherited.type == SourceType.GIT:
            base = inherited
        else:
            base = Source.git_checkout("")
        return base._replace(
            branch=branch or base.branch,
            tag=tag or base.tag,
            ref=ref or base.ref,
        )
    return inherited


def build_dependency(
    name: str,
    constraints: list[str],
    options: dict[str, OptionValue],
    context: ParseContext,
    comment: str = "",
) -> GemDependency:
    """
    Build a GemDependency from its extracted parts.

    Inline group/platform options replace the inherited lists rather than
    extending them.
    """
    groups = context.groups
    platforms = context.platforms
    require: str | None = None

    for key, value in options.items():
        if key == "require":
            if value is False:
                require = ""
            elif isinstance(value, str):
                require = value
        elif key in ("group", "groups"):
            values = _as_list(value)
            if values:
                groups = tuple(values)
        elif key in ("platform", "platforms"):
            values = _as_list(value)
            if values:
                platforms = tuple(values)

    return GemDependency(
        name=name,
        constraints=tuple(c for c in constraints if ":" not in c),
        source=resolve_source(options, context.source),
        groups=groups,
        require=require,
        platforms=platforms,
        comment=comment,
    )


def build_gemspec_reference(
    options: dict[str, OptionValue], position: int = 0
) -> GemspecReference:
    """
    Build a GemspecReference from `gemspec` directive options.

    position is the number of dependencies declared before the directive.
    """
    return GemspecReference(
        path=_as_str(options.get("path")) or DEFAULT_GEMSPEC_PATH,
        name=_as_str(options.get("name")),
        development_group=_as_str(options.get("development_group"))
        or DEFAULT_DEVELOPMENT_GROUP,
        glob=_as_str(options.get("glob")) or DEFAULT_GEMSPEC_GLOB,
        position=position,
    )


def block_source(
    kind: str, location: str, options: dict[str, OptionValue]
) -> Source | None:
    """Build the origin pinned by a `source`, `git` or `path` block."""
    if not location:
        return None
    if kind == "source":
        return Source.registry(location)
    if kind == "git":
        return Source.git_checkout(
            location,
            _as_str(options.get("branch")),
            _as_str(options.get("tag")),
            _as_str(options.get("ref")),
        )
    return Source.local_path(location)


def split_comment(line: str) -> tuple[str, str]:
    """
    Split a line into code and trailing comment.

    A # inside a quoted string does not start a comment.

    Returns:
        (code, comment) with both parts stripped; comment excludes the #.
    """
    quote = ""
    escaped = False
    for index, char in enumerate(line):
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = ""
        elif char in ("'", '"'):
            quote = char
        elif char == "#":
            return line[:index].strip(), line[index + 1 :].strip()
    return line.strip(), ""
