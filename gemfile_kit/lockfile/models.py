"""
Data model for Gemfile.lock contents.
"""

from typing import Any, NamedTuple

# A version is only split into version and platform when it has at least
# three hyphen-separated parts and names one of these platform families.
PLATFORM_INDICATORS = ("x86", "darwin", "linux", "java")


def split_version_platform(version: str) -> tuple[str, str]:
    """
    Split a locked version such as "1.15.4-x86_64-linux".

    Returns:
        (version, platform); platform is "" when no suffix is recognised.
    """
    parts = version.split("-")
    if len(parts) >= 3 and any(ind in version for ind in PLATFORM_INDICATORS):
        return parts[0], "-".join(parts[1:])
    return version, ""


def join_version_platform(version: str, platform: str) -> str:
    return f"{version}-{platform}" if platform else version


class Dependency(NamedTuple):
    """A dependency edge, or a top-level entry of the DEPENDENCIES section."""

    name: str
    constraints: tuple[str, ...] = ()
    # Top-level dependencies marked with "!" come from a non-registry source
    pinned: bool = False


class GemSpec(NamedTuple):
    """A gem resolved from a registry (GEM section)."""

    name: str
    version: str
    platform: str = ""
    dependencies: tuple[Dependency, ...] = ()
    checksum: str = ""
    source_url: str = ""

    @property
    def version_string(self) -> str:
        return join_version_platform(self.version, self.platform)

    @property
    def full_name(self) -> str:
        return f"{self.name}-{self.version_string}"


class GitGemSpec(NamedTuple):
    """A gem resolved from a git repository (GIT section)."""

    name: str
    version: str
    dependencies: tuple[Dependency, ...] = ()
    checksum: str = ""
    remote: str = ""
    revision: str = ""
    branch: str = ""
    tag: str = ""

    @property
    def version_string(self) -> str:
        return self.version

    @property
    def full_name(self) -> str:
        return f"{self.name}-{self.version}"


class PathGemSpec(NamedTuple):
    """A gem resolved from a local directory (PATH section)."""

    name: str
    version: str
    dependencies: tuple[Dependency, ...] = ()
    checksum: str = ""
    remote: str = ""

    @property
    def version_string(self) -> str:
        return self.version

    @property
    def full_name(self) -> str:
        return f"{self.name}-{self.version}"


AnySpec = GemSpec | GitGemSpec | PathGemSpec


class Checksum(NamedTuple):
    """An entry of the CHECKSUMS section."""

    name: str
    version: str
    platform: str = ""
    # "sha256=..." as written in the lockfile; empty when unknown
    value: str = ""

    @property
    def version_string(self) -> str:
        return join_version_platform(self.version, self.platform)


class Lockfile(NamedTuple):
    """A parsed Gemfile.lock."""

    gem_specs: list[GemSpec]
    git_specs: list[GitGemSpec]
    path_specs: list[PathGemSpec]
    platforms: list[str]
    dependencies: list[Dependency]
    checksums: list[Checksum]
    bundled_with: str = ""
    ruby_version: str = ""

    @classmethod
    def from_fields(cls, **fields: Any) -> "Lockfile":
        """Build a Lockfile, using empty collections for omitted sections."""
        for field in (
            "gem_specs",
            "git_specs",
            "path_specs",
            "platforms",
            "dependencies",
            "checksums",
        ):
            fields.setdefault(field, [])
        return cls(**fields)

    def all_specs(self) -> list[AnySpec]:
        """Return every resolved gem, registry gems first."""
        return [*self.gem_specs, *self.git_specs, *self.path_specs]

    def find_gem(self, name: str) -> AnySpec | None:
        """Return the first resolved gem with the given name."""
        for spec in self.all_specs():
            if spec.name == name:
                return spec
        return None
