"""
Gemfile.lock parser.

The lockfile is read line by line by a small state machine. The current
section decides how an indented line is interpreted. A resolved gem is
accumulated while its dependency lines are read and is flushed into the
result when the next gem starts, when a new section begins, or at end of
input.
"""

import re
from enum import Enum
from pathlib import Path

from gemfile_kit.errors import FileAccessError, ManifestNotFoundError
from gemfile_kit.lockfile.models import (
    Checksum,
    Dependency,
    GemSpec,
    GitGemSpec,
    Lockfile,
    PathGemSpec,
    split_version_platform,
)

SPEC_RE = re.compile(r"^    ([a-zA-Z0-9\-_.]+) \(([^)]+)\)$")
DEPENDENCY_RE = re.compile(r"^      ([a-zA-Z0-9\-_.]+)(?: \(([^)]+)\))?$")
TOP_LEVEL_DEPENDENCY_RE = re.compile(r"^  ([^\s(!]+)(!)?(?: \(([^)]+)\))?$")
CHECKSUM_RE = re.compile(r"^  ([a-zA-Z0-9\-_.]+) \(([^)]+)\)(?: (\S+))?$")
INDENTED_VALUE_RE = re.compile(r"^   (\S.*)$")


class Section(str, Enum):
    """Lockfile sections, named after their headers."""

    NONE = ""
    GEM = "GEM"
    GIT = "GIT"
    PATH = "PATH"
    PLATFORMS = "PLATFORMS"
    DEPENDENCIES = "DEPENDENCIES"
    CHECKSUMS = "CHECKSUMS"
    RUBY_VERSION = "RUBY VERSION"
    BUNDLED_WITH = "BUNDLED WITH"


SPEC_SECTIONS = (Section.GEM, Section.GIT, Section.PATH)
BLOCK_METADATA = {
    Section.GEM: ("remote",),
    Section.GIT: ("remote", "revision", "branch", "tag"),
    Section.PATH: ("remote",),
}


def parse_constraints(text: str | None) -> tuple[str, ...]:
    """Split "(>= 1.0, < 2.0)" contents into individual constraints."""
    if not text:
        return ()
    return tuple(part.strip() for part in text.split(",") if part.strip())


def section_for_header(line: str) -> Section | None:
    """Return the section a header line opens, or None for other lines."""
    if line.startswith(" "):
        return None
    if line.startswith("BUNDLED WITH"):
        return Section.BUNDLED_WITH
    try:
        section = Section(line.strip())
    except ValueError:
        return None
    return section if section is not Section.NONE else None


class _OpenEntry:
    """A resolved gem whose dependency lines are still being read."""

    def __init__(self, name: str, version: str):
        self.name = name
        self.version = version
        self.dependencies: list[Dependency] = []


class LockfileParser:
    """Section state machine for Gemfile.lock text."""

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self.section = Section.NONE
        self._block: dict[str, str] = {}
        self._entry: _OpenEntry | None = None
        self._gem_specs: list[GemSpec] = []
        self._git_specs: list[GitGemSpec] = []
        self._path_specs: list[PathGemSpec] = []
        self._platforms: list[str] = []
        self._dependencies: list[Dependency] = []
        self._checksums: list[Checksum] = []
        self._bundled_with = ""
        self._ruby_version = ""

    def parse(self, text: str) -> Lockfile:
        """Parse lockfile text into a Lockfile."""
        self._reset()
        for line in text.splitlines():
            self.feed(line)
        self.finish()
        return self._build()

    def feed(self, line: str) -> None:
        """Process one line of input."""
        line = line.rstrip()
        if not line:
            return

        section = section_for_header(line)
        if section is not None:
            self._transition(section)
            return

        if self.section in SPEC_SECTIONS:
            self._spec_line(line)
        elif self.section == Section.PLATFORMS:
            if line.startswith("  "):
                self._platforms.append(line.strip())
        elif self.section == Section.DEPENDENCIES:
            self._dependency_line(line)
        elif self.section == Section.CHECKSUMS:
            self._checksum_line(line)
        elif self.section == Section.RUBY_VERSION:
            match = INDENTED_VALUE_RE.match(line)
            if match:
                self._ruby_version = match.group(1).strip()
        elif self.section == Section.BUNDLED_WITH:
            match = INDENTED_VALUE_RE.match(line)
            if match:
                self._bundled_with = match.group(1).strip()

    def finish(self) -> None:
        """Flush whatever is still open at end of input."""
        self._flush()

    def _transition(self, section: Section) -> None:
        self._flush()
        self._block = {}
        self.section = section

    def _flush(self) -> None:
        entry = self._entry
        if entry is None:
            return
        self._entry = None

        dependencies = tuple(entry.dependencies)
        block = self._block
        if self.section == Section.GEM:
            version, platform = split_version_platform(entry.version)
            self._gem_specs.append(
                GemSpec(
                    name=entry.name,
                    version=version,
                    platform=platform,
                    dependencies=dependencies,
                    source_url=block.get("remote", ""),
                )
            )
        elif self.section == Section.GIT:
            self._git_specs.append(
                GitGemSpec(
                    name=entry.name,
                    version=entry.version,
                    dependencies=dependencies,
                    remote=block.get("remote", ""),
                    revision=block.get("revision", ""),
                    branch=block.get("branch", ""),
                    tag=block.get("tag", ""),
                )
            )
        elif self.section == Section.PATH:
            self._path_specs.append(
                PathGemSpec(
                    name=entry.name,
                    version=entry.version,
                    dependencies=dependencies,
                    remote=block.get("remote", ""),
                )
            )

    def _spec_line(self, line: str) -> None:
        for key in BLOCK_METADATA[self.section]:
            prefix = f"  {key}:"
            if line.startswith(prefix):
                self._block[key] = line[len(prefix) :].strip()
                return
        if line.strip() == "specs:":
            return

        spec = SPEC_RE.match(line)
        if spec:
            self._flush()
            self._entry = _OpenEntry(spec.group(1), spec.group(2))
            return

        dependency = DEPENDENCY_RE.match(line)
        if dependency and self._entry is not None:
            self._entry.dependencies.append(
                Dependency(dependency.group(1), parse_constraints(dependency.group(2)))
            )

    def _dependency_line(self, line: str) -> None:
        if not line.startswith("  "):
            return
        match = TOP_LEVEL_DEPENDENCY_RE.match(line)
        if match:
            name, bang, constraints = match.groups()
            self._dependencies.append(
                Dependency(name, parse_constraints(constraints), pinned=bool(bang))
            )
            return
        name = line.split()[0]
        self._dependencies.append(
            Dependency(name.rstrip("!"), pinned=name.endswith("!"))
        )

    def _checksum_line(self, line: str) -> None:
        match = CHECKSUM_RE.match(line)
        if not match:
            return
        name, version_string, value = match.groups()
        version, platform = split_version_platform(version_string)
        self._checksums.append(Checksum(name, version, platform, value or ""))

    def _build(self) -> Lockfile:
        gem_specs = self._gem_specs
        git_specs = self._git_specs
        path_specs = self._path_specs
        if self._checksums:
            by_key = {(c.name, c.version_string): c.value for c in self._checksums}

            def attach(spec):
                value = by_key.get((spec.name, spec.version_string), "")
                return spec._replace(checksum=value) if value else spec

            gem_specs = [attach(spec) for spec in gem_specs]
            git_specs = [attach(spec) for spec in git_specs]
            path_specs = [attach(spec) for spec in path_specs]

        return Lockfile(
            gem_specs=gem_specs,
            git_specs=git_specs,
            path_specs=path_specs,
            platforms=self._platforms,
            dependencies=self._dependencies,
            checksums=self._checksums,
            bundled_with=self._bundled_with,
            ruby_version=self._ruby_version,
        )


def parse_lockfile_content(text: str) -> Lockfile:
    """Parse Gemfile.lock text."""
    return LockfileParser().parse(text)


def parse_lockfile(path: str | Path) -> Lockfile:
    """
    Parse a Gemfile.lock on disk.

    Raises:
        ManifestNotFoundError: If the file does not exist.
        FileAccessError: If the file cannot be read.
    """
    path = Path(path)
    if not path.exists():
        raise ManifestNotFoundError(path, kind="Lockfile")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FileAccessError(path, e) from e
    return parse_lockfile_content(text)
