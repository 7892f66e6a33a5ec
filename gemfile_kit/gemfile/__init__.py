"""
Gemfile and gemspec parsing and editing.
"""

from gemfile_kit.gemfile.gemspec_parser import (
    GemspecParser,
    find_gemspecs,
    load_gemspec_dependencies,
    parse_gemspec,
)
from gemfile_kit.gemfile.line_parser import LineGemfileParser
from gemfile_kit.gemfile.models import (
    GemDependency,
    GemspecDependency,
    GemspecFile,
    GemspecReference,
    ParsedGemfile,
    Source,
    SourceType,
)
from gemfile_kit.gemfile.parser import (
    GemfileParser,
    parse_gemfile,
    parse_gemfile_content,
    should_use_structural,
)
from gemfile_kit.gemfile.tree_parser import TreeSitterGemfileParser
from gemfile_kit.gemfile.writer import GemfileWriter, format_gem_line

__all__ = [
    "GemDependency",
    "GemfileParser",
    "GemfileWriter",
    "GemspecDependency",
    "GemspecFile",
    "GemspecParser",
    "GemspecReference",
    "LineGemfileParser",
    "ParsedGemfile",
    "Source",
    "SourceType",
    "TreeSitterGemfileParser",
    "find_gemspecs",
    "format_gem_line",
    "load_gemspec_dependencies",
    "parse_gemfile",
    "parse_gemfile_content",
    "parse_gemspec",
    "should_use_structural",
]
