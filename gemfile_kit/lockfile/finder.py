"""
Locating a project's Gemfile and lockfile.
"""

import os
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from gemfile_kit.errors import ManifestNotFoundError
from gemfile_kit.lockfile.models import AnySpec

if TYPE_CHECKING:  # pragma: no cover - for type checking only
    from gemfile_kit.gemfile.models import ParsedGemfile

# Manifest names Bundler looks for, with the lockfile each one produces
MANIFEST_CANDIDATES = (("Gemfile", "Gemfile.lock"), ("gems.rb", "gems.locked"))


class GemfilePaths(NamedTuple):
    """A manifest and its lockfile."""

    gemfile: Path
    lockfile: Path


def lockfile_path_for(gemfile: str | Path) -> Path:
    """
    Get the lockfile path that belongs to a manifest.

    Gemfile pairs with Gemfile.lock and gems.rb with gems.locked; any other
    manifest name gets ".lock" appended.
    """
    gemfile = Path(gemfile)
    for manifest, lockfile in MANIFEST_CANDIDATES:
        if gemfile.name == manifest:
            return gemfile.with_name(lockfile)
    return gemfile.with_name(gemfile.name + ".lock")


def _bundle_gemfile() -> Path | None:
    value = os.getenv("BUNDLE_GEMFILE")
    if not value:
        return None
    gemfile = Path(value).expanduser().resolve()
    if not gemfile.exists():
        raise ManifestNotFoundError(gemfile, kind="Gemfile (from BUNDLE_GEMFILE)")
    return gemfile


def find_gemfile(start_dir: str | Path | None = None) -> Path:
    """
    Find the project's manifest.

    Priority:
    1. BUNDLE_GEMFILE environment variable
    2. Gemfile in start_dir
    3. gems.rb in start_dir

    Returns:
        Path of the manifest; start_dir/Gemfile when none exists yet.

    Raises:
        ManifestNotFoundError: If BUNDLE_GEMFILE names a missing file.
    """
    gemfile = _bundle_gemfile()
    if gemfile is not None:
        return gemfile

    directory = Path(start_dir) if start_dir is not None else Path.cwd()
    for manifest, _ in MANIFEST_CANDIDATES:
        candidate = directory / manifest
        if candidate.exists():
            return candidate
    return directory / "Gemfile"


def find_gemfiles(start_dir: str | Path | None = None) -> GemfilePaths:
    """
    Find the project's manifest and lockfile.

    Raises:
        ManifestNotFoundError: If there is no manifest, or it has no lockfile.
    """
    gemfile = find_gemfile(start_dir)
    if not gemfile.exists():
        raise ManifestNotFoundError(gemfile)
    lockfile = lockfile_path_for(gemfile)
    if not lockfile.exists():
        raise ManifestNotFoundError(lockfile, kind="Lockfile")
    return GemfilePaths(gemfile.resolve(), lockfile.resolve())


def find_lockfile(start_dir: str | Path | None = None) -> Path:
    """Find the project's lockfile (see find_gemfiles)."""
    return find_gemfiles(start_dir).lockfile


def filter_gems_by_groups(
    specs: Iterable[AnySpec],
    gemfile: "ParsedGemfile",
    include_groups: Iterable[str] = (),
    exclude_groups: Iterable[str] = (),
) -> list[AnySpec]:
    """
    Select resolved gems by the groups their Gemfile declarations belong to.

    Gems the Gemfile does not declare (transitive dependencies) count as
    members of the default group. A gem in any excluded group is dropped;
    when include_groups is given, only gems in one of those groups or in
    the default group are kept.
    """
    include = set(include_groups)
    exclude = set(exclude_groups)

    declared: dict[str, set[str]] = {}
    for dep in gemfile.dependencies:
        declared.setdefault(dep.name, set()).update(dep.groups)

    selected = []
    for spec in specs:
        groups = declared.get(spec.name) or {"default"}
        if groups & exclude:
            continue
        if include and not (groups & include or "default" in groups):
            continue
        selected.append(spec)
    return selected
