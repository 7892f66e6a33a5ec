"""
gemfile-kit: parse and write Bundler manifests, lockfiles and gemspecs.
"""

from gemfile_kit.gemfile import (
    GemDependency,
    GemfileParser,
    GemfileWriter,
    GemspecFile,
    GemspecParser,
    ParsedGemfile,
    Source,
    SourceType,
    parse_gemfile,
    parse_gemspec,
)
from gemfile_kit.lockfile import (
    Lockfile,
    LockfileParser,
    LockfileWriter,
    parse_lockfile,
    write_lockfile,
)

__version__ = "0.1.0"

__all__ = [
    "GemDependency",
    "GemfileParser",
    "GemfileWriter",
    "GemspecFile",
    "GemspecParser",
    "Lockfile",
    "LockfileParser",
    "LockfileWriter",
    "ParsedGemfile",
    "Source",
    "SourceType",
    "parse_gemfile",
    "parse_gemspec",
    "parse_lockfile",
    "write_lockfile",
]
