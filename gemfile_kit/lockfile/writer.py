"""
Gemfile.lock writer.

Produces the layout the parser reads: sections in a fixed order, fixed
indentation per nesting level, and every list sorted so output does not
depend on input order.
"""

from collections.abc import Iterable
from pathlib import Path

from gemfile_kit.config import get_default_remote
from gemfile_kit.errors import FileAccessError
from gemfile_kit.lockfile.models import (
    AnySpec,
    Checksum,
    Dependency,
    GemSpec,
    GitGemSpec,
    Lockfile,
    PathGemSpec,
)

SECTION_INDENT = "  "
SPEC_INDENT = "    "
DEPENDENCY_INDENT = "      "
VALUE_INDENT = "   "


def _format_dependency(dep: Dependency) -> str:
    name = f"{dep.name}!" if dep.pinned else dep.name
    if dep.constraints:
        return f"{name} ({', '.join(dep.constraints)})"
    return name


def _spec_lines(specs: Iterable[AnySpec]) -> list[str]:
    lines = [f"{SECTION_INDENT}specs:"]
    for spec in sorted(specs, key=lambda s: (s.name, s.version_string)):
        lines.append(f"{SPEC_INDENT}{spec.name} ({spec.version_string})")
        for dep in sorted(spec.dependencies, key=lambda d: d.name):
            lines.append(f"{DEPENDENCY_INDENT}{_format_dependency(dep)}")
    return lines


def _collect_checksums(lockfile: Lockfile) -> list[Checksum]:
    """
    Merge the CHECKSUMS entries with the checksums set on resolved gems.

    An entry's own checksum fills in a CHECKSUMS line that has no value, and
    adds a line for a gem the CHECKSUMS list does not mention.
    """
    merged = {(c.name, c.version_string): c for c in lockfile.checksums}
    for spec in lockfile.all_specs():
        if not spec.checksum:
            continue
        key = (spec.name, spec.version_string)
        existing = merged.get(key)
        if existing is None:
            platform = spec.platform if isinstance(spec, GemSpec) else ""
            merged[key] = Checksum(spec.name, spec.version, platform, spec.checksum)
        elif not existing.value:
            merged[key] = existing._replace(value=spec.checksum)
    return list(merged.values())


class LockfileWriter:
    """Renders a Lockfile as Gemfile.lock text."""

    def __init__(self, default_remote: str | None = None):
        """
        Args:
            default_remote: Registry URL for gems without a source URL.
                Defaults to the configured default remote.
        """
        self.default_remote = default_remote or get_default_remote()

    def write(self, lockfile: Lockfile) -> str:
        """Render a lockfile. Empty sections are omitted."""
        sections = [
            *self._gem_sections(lockfile),
            *self._git_sections(lockfile.git_specs),
            *self._path_sections(lockfile.path_specs),
        ]

        if lockfile.platforms:
            sections.append(
                ["PLATFORMS"]
                + [f"{SECTION_INDENT}{p}" for p in sorted(set(lockfile.platforms))]
            )

        if lockfile.dependencies:
            dependencies = sorted(lockfile.dependencies, key=lambda d: d.name)
            sections.append(
                ["DEPENDENCIES"]
                + [f"{SECTION_INDENT}{_format_dependency(d)}" for d in dependencies]
            )

        checksums = _collect_checksums(lockfile)
        if checksums:
            lines = ["CHECKSUMS"]
            for checksum in sorted(checksums, key=lambda c: (c.name, c.version_string)):
                line = f"{SECTION_INDENT}{checksum.name} ({checksum.version_string})"
                if checksum.value:
                    line += f" {checksum.value}"
                lines.append(line)
            sections.append(lines)

        if lockfile.ruby_version:
            sections.append(
                ["RUBY VERSION", f"{VALUE_INDENT}{lockfile.ruby_version}"]
            )

        if lockfile.bundled_with:
            sections.append(
                ["BUNDLED WITH", f"{VALUE_INDENT}{lockfile.bundled_with}"]
            )

        if not sections:
            return ""
        return "\n\n".join("\n".join(lines) for lines in sections) + "\n"

    def _gem_sections(self, lockfile: Lockfile) -> list[list[str]]:
        by_remote: dict[str, list] = {}
        for spec in lockfile.gem_specs:
            remote = spec.source_url or self.default_remote
            by_remote.setdefault(remote, []).append(spec)

        return [
            ["GEM", f"{SECTION_INDENT}remote: {remote}", *_spec_lines(specs)]
            for remote, specs in sorted(by_remote.items())
        ]

    def _git_sections(self, specs: list[GitGemSpec]) -> list[list[str]]:
        blocks: dict[tuple[str, str, str, str], list[GitGemSpec]] = {}
        for spec in specs:
            key = (spec.remote, spec.revision, spec.branch, spec.tag)
            blocks.setdefault(key, []).append(spec)

        sections = []
        for key in sorted(blocks):
            remote, revision, branch, tag = key
            lines = ["GIT", f"{SECTION_INDENT}remote: {remote}"]
            lines.append(f"{SECTION_INDENT}revision: {revision}")
            if branch:
                lines.append(f"{SECTION_INDENT}branch: {branch}")
            if tag:
                lines.append(f"{SECTION_INDENT}tag: {tag}")
            lines.extend(_spec_lines(blocks[key]))
            sections.append(lines)
        return sections

    def _path_sections(self, specs: list[PathGemSpec]) -> list[list[str]]:
        blocks: dict[str, list[PathGemSpec]] = {}
        for spec in specs:
            blocks.setdefault(spec.remote, []).append(spec)

        return [
            ["PATH", f"{SECTION_INDENT}remote: {remote}", *_spec_lines(specs)]
            for remote, specs in sorted(blocks.items())
        ]


def write_lockfile_content(lockfile: Lockfile) -> str:
    """Render a Lockfile as Gemfile.lock text."""
    return LockfileWriter().write(lockfile)


def write_lockfile(lockfile: Lockfile, path: str | Path) -> None:
    """
    Write a Lockfile to disk, replacing any existing file.

    Raises:
        FileAccessError: If the file cannot be written.
    """
    path = Path(path)
    try:
        path.write_text(write_lockfile_content(lockfile), encoding="utf-8")
    except OSError as e:
        raise FileAccessError(path, e) from e
