"""
Gemfile.lock parsing and writing.
"""

from gemfile_kit.lockfile.finder import (
    GemfilePaths,
    filter_gems_by_groups,
    find_gemfile,
    find_gemfiles,
    find_lockfile,
    lockfile_path_for,
)
from gemfile_kit.lockfile.models import (
    Checksum,
    Dependency,
    GemSpec,
    GitGemSpec,
    Lockfile,
    PathGemSpec,
)
from gemfile_kit.lockfile.parser import (
    LockfileParser,
    parse_lockfile,
    parse_lockfile_content,
)
from gemfile_kit.lockfile.writer import (
    LockfileWriter,
    write_lockfile,
    write_lockfile_content,
)

__all__ = [
    "Checksum",
    "Dependency",
    "GemSpec",
    "GemfilePaths",
    "GitGemSpec",
    "Lockfile",
    "LockfileParser",
    "LockfileWriter",
    "PathGemSpec",
    "filter_gems_by_groups",
    "find_gemfile",
    "find_gemfiles",
    "find_lockfile",
    "lockfile_path_for",
    "parse_lockfile",
    "parse_lockfile_content",
    "write_lockfile",
    "write_lockfile_content",
]
