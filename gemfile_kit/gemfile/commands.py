"""
High-level add/remove operations on a project's Gemfile.
"""

from pathlib import Path
from typing import NamedTuple

from gemfile_kit.errors import ManifestNotFoundError
from gemfile_kit.gemfile.models import (
    DEFAULT_GROUPS,
    GemDependency,
    Source,
    github_url,
)
from gemfile_kit.gemfile.writer import GemfileWriter
from gemfile_kit.lockfile.finder import find_gemfile


class AddOptions(NamedTuple):
    """Options for adding a gem, mirroring `bundle add`."""

    name: str
    version: str = ""
    groups: tuple[str, ...] = ()
    source: str = ""
    git: str = ""
    github: str = ""
    branch: str = ""
    tag: str = ""
    ref: str = ""
    path: str = ""
    require: str | None = None
    # Pin exactly ("= v") instead of using the version as given
    strict: bool = False
    # Allow any newer version (">= v")
    optimistic: bool = False


def parse_groups(value: str) -> tuple[str, ...]:
    """Split a comma-separated group list; an empty value means default."""
    if not value.strip():
        return DEFAULT_GROUPS
    return tuple(group.strip() for group in value.split(",") if group.strip())


def parse_require(value: str) -> str | None:
    """Convert a require option: "" means unset, "false" means require: false."""
    if value == "":
        return None
    if value == "false":
        return ""
    return value


def build_constraints(options: AddOptions) -> tuple[str, ...]:
    if not options.version:
        return ()
    if options.strict:
        return (f"= {options.version}",)
    if options.optimistic:
        return (f">= {options.version}",)
    return (options.version,)


def build_source(options: AddOptions) -> Source | None:
    if options.git:
        return Source.git_checkout(
            options.git, options.branch, options.tag, options.ref
        )
    if options.github:
        return Source.git_checkout(
            github_url(options.github), options.branch, options.tag, options.ref
        )
    if options.path:
        return Source.local_path(options.path)
    if options.source:
        return Source.registry(options.source)
    return None


def _resolve_gemfile(gemfile_path: str | Path | None) -> Path:
    path = Path(gemfile_path) if gemfile_path else find_gemfile()
    if not path.exists():
        raise ManifestNotFoundError(path)
    return path


def add_gem(
    options: AddOptions, gemfile_path: str | Path | None = None
) -> GemDependency:
    """
    Add a gem to a Gemfile.

    Args:
        options: What to add.
        gemfile_path: Gemfile to edit; discovered from the working directory
            when omitted.

    Returns:
        The dependency that was written.

    Raises:
        ValueError: If no gem name is given.
        ManifestNotFoundError: If the Gemfile does not exist.
        GemAlreadyPresentError: If the gem is already declared.
    """
    if not options.name:
        raise ValueError("gem name is required")

    path = _resolve_gemfile(gemfile_path)
    dep = GemDependency(
        name=options.name,
        constraints=build_constraints(options),
        source=build_source(options),
        groups=options.groups or DEFAULT_GROUPS,
        require=options.require,
    )
    GemfileWriter(path).add_gem(dep)
    return dep


def remove_gems(names: list[str], gemfile_path: str | Path | None = None) -> None:
    """
    Remove gems from a Gemfile.

    Gems are removed one at a time; the first missing gem stops the
    operation, leaving earlier removals in place.

    Raises:
        ValueError: If no names are given.
        ManifestNotFoundError: If the Gemfile does not exist.
        GemNotPresentError: If a gem is not declared.
    """
    if not names:
        raise ValueError("at least one gem name is required")

    path = _resolve_gemfile(gemfile_path)
    writer = GemfileWriter(path)
    for name in names:
        writer.remove_gem(name)
