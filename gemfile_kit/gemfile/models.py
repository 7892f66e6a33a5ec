"""
Data model shared by the Gemfile and gemspec parsers.
"""

import re
from enum import Enum
from typing import Any, NamedTuple

DEFAULT_GROUP = "default"
DEFAULT_GROUPS: tuple[str, ...] = (DEFAULT_GROUP,)
RUBYGEMS_URL = "https://rubygems.org"

DEFAULT_GEMSPEC_PATH = "."
DEFAULT_DEVELOPMENT_GROUP = "development"
# Matches *.gemspec in the directory itself, its children and grandchildren
DEFAULT_GEMSPEC_GLOB = "{,*,*/*}.gemspec"

URL_SCHEME_RE = re.compile(r"^https?://")


class SourceType(str, Enum):
    """Where a dependency's code comes from."""

    RUBYGEMS = "rubygems"
    GIT = "git"
    PATH = "path"


class Source(NamedTuple):
    """Origin of a dependency: a registry, a git checkout, or a local path."""

    type: SourceType
    url: str
    branch: str = ""
    tag: str = ""
    ref: str = ""

    @classmethod
    def registry(cls, url: str) -> "Source":
        return cls(SourceType.RUBYGEMS, url)

    @classmethod
    def git_checkout(
        cls, url: str, branch: str = "", tag: str = "", ref: str = ""
    ) -> "Source":
        return cls(SourceType.GIT, url, branch, tag, ref)

    @classmethod
    def local_path(cls, path: str) -> "Source":
        return cls(SourceType.PATH, path)


def github_url(repository: str) -> str:
    """
    Expand a `github:` shorthand into a clone URL.

    Args:
        repository: "owner/repo", or a full URL which is returned unchanged.

    Returns:
        https://github.com/owner/repo.git for shorthands.
    """
    if URL_SCHEME_RE.match(repository):
        return repository
    return f"https://github.com/{repository}.git"


class GemDependency(NamedTuple):
    """A single `gem` declaration from a Gemfile."""

    name: str
    constraints: tuple[str, ...] = ()
    source: Source | None = None
    groups: tuple[str, ...] = DEFAULT_GROUPS
    # None means the default require; "" means require: false
    require: str | None = None
    platforms: tuple[str, ...] = ()
    comment: str = ""

    @property
    def is_default_group(self) -> bool:
        return self.groups == DEFAULT_GROUPS


class GemspecReference(NamedTuple):
    """A `gemspec` directive in a Gemfile."""

    path: str = DEFAULT_GEMSPEC_PATH
    name: str = ""
    development_group: str = DEFAULT_DEVELOPMENT_GROUP
    glob: str = DEFAULT_GEMSPEC_GLOB
    # Index in the dependency list where the gemspec's dependencies belong
    position: int = 0


class ParsedGemfile(NamedTuple):
    """Everything extracted from a Gemfile."""

    dependencies: list[GemDependency]
    sources: list[Source]
    ruby_version: str
    gemspecs: list[GemspecReference]

    def find(self, name: str) -> GemDependency | None:
        """Return the first dependency with the given name."""
        for dep in self.dependencies:
            if dep.name == name:
                return dep
        return None

    def in_groups(self, *groups: str) -> list[GemDependency]:
        """Return the dependencies belonging to any of the given groups."""
        wanted = set(groups)
        return [dep for dep in self.dependencies if wanted.intersection(dep.groups)]


class GemspecDependency(NamedTuple):
    """A dependency declared inside a gemspec."""

    name: str
    requirements: tuple[str, ...] = ()


class GemspecFile(NamedTuple):
    """Metadata and dependencies of a gem, read from its .gemspec file."""

    name: str
    version: str
    summary: str
    description: str
    authors: list[str]
    email: list[str]
    homepage: str
    license: str
    required_ruby_version: str
    files: list[str]
    metadata: dict[str, str]
    runtime_dependencies: list[GemspecDependency]
    development_dependencies: list[GemspecDependency]
    post_install_message: str

    @classmethod
    def from_fields(cls, **fields: Any) -> "GemspecFile":
        """Build a GemspecFile, filling unspecified fields with empty values."""
        values: dict[str, Any] = {}
        for field in cls._fields:
            if field in fields:
                values[field] = fields.pop(field)
            elif field in _CONTAINER_FIELDS:
                values[field] = _CONTAINER_FIELDS[field]()
            else:
                values[field] = ""
        if fields:
            raise TypeError(f"Unknown gemspec fields: {', '.join(sorted(fields))}")
        return cls(**values)


_CONTAINER_FIELDS = {
    "authors": list,
    "email": list,
    "files": list,
    "metadata": dict,
    "runtime_dependencies": list,
    "development_dependencies": list,
}
