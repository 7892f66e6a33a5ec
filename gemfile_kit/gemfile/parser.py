"""
Gemfile parsing entry points.

The structural parser is tried first; its result is kept only when
should_use_structural() accepts it, otherwise the line parser runs.
"""

from pathlib import Path

from gemfile_kit.console import debug
from gemfile_kit.errors import FileAccessError, StructuralParseError
from gemfile_kit.gemfile.gemspec_parser import (
    GemspecEvaluator,
    load_gemspec_dependencies,
)
from gemfile_kit.gemfile.line_parser import LineGemfileParser
from gemfile_kit.gemfile.models import ParsedGemfile
from gemfile_kit.gemfile.tree_parser import TreeSitterGemfileParser


def should_use_structural(
    dependency_count: int, has_ruby_version: bool, gemspec_count: int
) -> bool:
    """
    Decide whether the structural parser's result can be used.

    It must have found something (a dependency or a ruby version) and no
    gemspec directives, which are only handled by the line parser.
    """
    return (dependency_count > 0 or has_ruby_version) and gemspec_count == 0


def parse_gemfile_content(
    content: str, path: str | Path | None = None
) -> ParsedGemfile:
    """
    Parse Gemfile content without resolving gemspec directives.

    Args:
        content: Gemfile source.
        path: File the content came from, used in error messages.

    Returns:
        ParsedGemfile from the structural or the line parser.

    Raises:
        GemfileSyntaxError: If the line parser meets a malformed gem line.
    """
    try:
        structural = TreeSitterGemfileParser().parse(content)
    except StructuralParseError as e:
        debug(f"Structural parse of {path or 'Gemfile'} failed: {e}")
    else:
        if should_use_structural(
            len(structural.dependencies),
            bool(structural.ruby_version),
            len(structural.gemspecs),
        ):
            return structural
        debug(f"Structural parse of {path or 'Gemfile'} unusable, using line parser")

    return LineGemfileParser().parse(content, path)


class GemfileParser:
    """Parses a Gemfile on disk, including its gemspec directives."""

    def __init__(self, path: str | Path, evaluator: GemspecEvaluator | None = None):
        """
        Args:
            path: Path to the Gemfile.
            evaluator: Gemspec evaluator passed on when resolving gemspec
                directives (see GemspecParser).
        """
        self.path = Path(path)
        self.evaluator = evaluator

    def parse(self) -> ParsedGemfile:
        """
        Parse the Gemfile.

        Dependencies declared by gemspecs referenced with `gemspec` are
        inserted where the directive appears among the Gemfile's own
        dependencies.

        Raises:
            FileAccessError: If the Gemfile cannot be read.
            GemfileSyntaxError: If a gem line is malformed.
            GemspecNotFoundError: If a gemspec directive matches no file.
            AmbiguousGemspecError: If a gemspec directive matches several files.
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise FileAccessError(self.path, e) from e

        parsed = parse_gemfile_content(content, self.path)
        loaded = [
            (
                reference.position,
                load_gemspec_dependencies(
                    reference, self.path.parent, evaluator=self.evaluator
                ),
            )
            for reference in parsed.gemspecs
        ]
        # Splice from the end so earlier positions stay valid
        for position, dependencies in reversed(loaded):
            parsed.dependencies[position:position] = dependencies
        return parsed


def parse_gemfile(
    path: str | Path, evaluator: GemspecEvaluator | None = None
) -> ParsedGemfile:
    """Parse a Gemfile on disk."""
    return GemfileParser(path, evaluator).parse()
