"""
Gemfile editing: add and remove gem declarations.

Only the lines being added or removed change; everything else in the file,
comments and formatting included, is written back as it was read.
"""

import re
from pathlib import Path

from gemfile_kit.errors import (
    FileAccessError,
    GemAlreadyPresentError,
    GemNotPresentError,
)
from gemfile_kit.gemfile.line_parser import (
    BLOCK_OPEN_RE,
    END_RE,
    HEAD_RE,
    KEYWORD_OPENERS,
    statement_spans,
)
from gemfile_kit.gemfile.models import RUBYGEMS_URL, GemDependency, SourceType

GITHUB_PATH_RE = re.compile(r"github\.com[/:]([^/]+/[^/]+?)(?:\.git)?(?:/.*)?$")


def _gem_line_re(name: str) -> re.Pattern:
    return re.compile(rf"""^\s*gem\s*\(?\s*['"]{re.escape(name)}['"]""")


def github_path(url: str) -> str:
    """Return "owner/repo" for a GitHub clone URL, or "" for other URLs."""
    match = GITHUB_PATH_RE.search(url)
    return match.group(1) if match else ""


def _symbols(values: tuple[str, ...] | list[str]) -> str:
    return ", ".join(f":{value}" for value in values)


def format_gem_line(dep: GemDependency) -> str:
    """
    Format a dependency as a single `gem` line.

    Examples:
        gem 'rails', '~> 7.0'
        gem 'my_gem', github: 'user/my_gem', branch: 'develop'
        gem 'rspec', group: :test, require: false
    """
    parts = [f"gem '{dep.name}'"]
    parts.extend(f"'{constraint}'" for constraint in dep.constraints)

    source = dep.source
    if source is not None:
        if source.type == SourceType.GIT:
            shorthand = github_path(source.url)
            if shorthand:
                parts.append(f"github: '{shorthand}'")
            else:
                parts.append(f"git: '{source.url}'")
            if source.branch:
                parts.append(f"branch: '{source.branch}'")
            if source.tag:
                parts.append(f"tag: '{source.tag}'")
            if source.ref:
                parts.append(f"ref: '{source.ref}'")
        elif source.type == SourceType.PATH:
            parts.append(f"path: '{source.url}'")
        elif source.url.rstrip("/") != RUBYGEMS_URL:
            parts.append(f"source: '{source.url}'")

    if dep.groups and not dep.is_default_group:
        if len(dep.groups) == 1:
            parts.append(f"group: :{dep.groups[0]}")
        else:
            parts.append(f"groups: [{_symbols(dep.groups)}]")

    if dep.platforms:
        if len(dep.platforms) == 1:
            parts.append(f"platform: :{dep.platforms[0]}")
        else:
            parts.append(f"platforms: [{_symbols(dep.platforms)}]")

    if dep.require is not None:
        if dep.require in ("", "false"):
            parts.append("require: false")
        else:
            parts.append(f"require: '{dep.require}'")

    return ", ".join(parts)


class GemfileWriter:
    """Adds and removes gem declarations in a Gemfile on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.lines: list[str] = []
        self._trailing_newline = False

    def load(self) -> None:
        """
        Read the Gemfile into memory.

        Raises:
            FileAccessError: If the file cannot be read.
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise FileAccessError(self.path, e) from e
        self._trailing_newline = content.endswith("\n")
        self.lines = content.splitlines()

    def save(self) -> None:
        """
        Write the in-memory lines back to the Gemfile.

        Raises:
            FileAccessError: If the file cannot be written.
        """
        content = "\n".join(self.lines)
        if self._trailing_newline:
            content += "\n"
        try:
            self.path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise FileAccessError(self.path, e) from e

    def has_gem(self, name: str) -> bool:
        return bool(self._gem_spans(name))

    def add_gem(self, dep: GemDependency) -> None:
        """
        Add a gem declaration and save the file.

        Gems in the default group go after the last top-level gem statement; all
        others are appended at the end of the file.

        Raises:
            GemAlreadyPresentError: If the Gemfile already declares the gem.
        """
        self.load()
        if self.has_gem(dep.name):
            raise GemAlreadyPresentError(dep.name)

        index = self._insertion_point(dep)
        self.lines.insert(index, format_gem_line(dep))
        self.save()

    def remove_gem(self, name: str) -> None:
        """
        Remove every declaration of a gem and save the file.

        Raises:
            GemNotPresentError: If the Gemfile does not declare the gem.
        """
        self.load()
        spans = self._gem_spans(name)
        if not spans:
            raise GemNotPresentError(name)
        for first, last in reversed(spans):
            del self.lines[first : last + 1]
        self.save()

    def _gem_spans(self, name: str) -> list[tuple[int, int]]:
        """Return the (first, last) line indexes of each declaration of a gem."""
        pattern = _gem_line_re(name)
        return [
            (first, last)
            for first, last, code, _ in statement_spans(self.lines)
            if pattern.match(code)
        ]

    def _insertion_point(self, dep: GemDependency) -> int:
        if not dep.is_default_group:
            return len(self.lines)

        depth = 0
        last_gem = -1
        for _, last, code, _ in statement_spans(self.lines):
            if END_RE.match(code):
                depth = max(depth - 1, 0)
                continue
            head_match = HEAD_RE.match(code)
            head = head_match.group(1) if head_match else ""
            if head == "gem" and depth == 0:
                last_gem = last
            if BLOCK_OPEN_RE.search(code) or head in KEYWORD_OPENERS:
                depth += 1

        if last_gem >= 0:
            return last_gem + 1
        return len(self.lines)
