"""
Tests for parser selection and Gemfile parsing from disk.
"""

from unittest.mock import patch

import pytest

from gemfile_kit.errors import (
    AmbiguousGemspecError,
    FileAccessError,
    GemspecNotFoundError,
)
from gemfile_kit.gemfile.models import ParsedGemfile, Source
from gemfile_kit.gemfile.parser import (
    parse_gemfile,
    parse_gemfile_content,
    should_use_structural,
)

GEMSPEC = """\
Gem::Specification.new do |spec|
  spec.name = "widget"
  spec.version = "0.4.0"
  spec.add_dependency "zeitwerk", "~> 2.6"
  spec.add_development_dependency "rake", ">= 13"
end
"""


def _no_ruby(path):
    return None


class TestShouldUseStructural:
    """Test the selection predicate."""

    @pytest.mark.parametrize(
        ("dependency_count", "has_ruby_version", "gemspec_count", "expected"),
        [
            (1, False, 0, True),
            (0, True, 0, True),
            (3, True, 0, True),
            (0, False, 0, False),
            (1, False, 1, False),
            (0, True, 2, False),
        ],
    )
    def test_predicate(
        self, dependency_count, has_ruby_version, gemspec_count, expected
    ):
        """Test every combination of content and gemspec directives."""
        assert (
            should_use_structural(dependency_count, has_ruby_version, gemspec_count)
            is expected
        )


class TestParseGemfileContent:
    """Test choosing between the two parsers."""

    def test_structural_result_used(self):
        """Test that a usable structural result is returned as is."""
        with patch(
            "gemfile_kit.gemfile.parser.LineGemfileParser.parse"
        ) as mock_line_parse:
            parsed = parse_gemfile_content("gem 'rails'\n")

        mock_line_parse.assert_not_called()
        assert parsed.find("rails") is not None

    def test_falls_back_on_syntax_error(self):
        """Test that unparsable Ruby is handled by the line parser."""
        content = "gem 'rails', '~> 7.0'\ngroup :test do\n  gem 'rspec'\n"

        parsed = parse_gemfile_content(content)

        assert [d.name for d in parsed.dependencies] == ["rails", "rspec"]
        assert parsed.find("rspec").groups == ("test",)

    def test_falls_back_when_gemspec_present(self):
        """Test that gemspec directives route parsing to the line parser."""
        sentinel = ParsedGemfile([], [], "", [])
        with patch(
            "gemfile_kit.gemfile.parser.LineGemfileParser.parse",
            return_value=sentinel,
        ) as mock_line_parse:
            parsed = parse_gemfile_content("gemspec\ngem 'rails'\n")

        mock_line_parse.assert_called_once()
        assert parsed is sentinel

    def test_falls_back_when_nothing_found(self):
        """Test that an empty structural result is not used."""
        parsed = parse_gemfile_content("source 'https://rubygems.org'\n")

        assert parsed.dependencies == []
        assert parsed.sources == [Source.registry("https://rubygems.org")]


class TestGemfileParser:
    """Test parsing Gemfiles on disk."""

    def test_missing_file(self, tmp_path):
        """Test that an unreadable Gemfile raises FileAccessError."""
        with pytest.raises(FileAccessError) as exc_info:
            parse_gemfile(tmp_path / "Gemfile")
        assert str(tmp_path / "Gemfile") in str(exc_info.value)

    def test_gemspec_dependencies_at_directive(self, tmp_path):
        """Test that gemspec dependencies take the directive's place."""
        (tmp_path / "widget.gemspec").write_text(GEMSPEC)
        gemfile = tmp_path / "Gemfile"
        gemfile.write_text(
            "source 'https://rubygems.org'\ngemspec\ngem 'rubocop', require: false\n"
        )

        parsed = parse_gemfile(gemfile, evaluator=_no_ruby)

        names = [d.name for d in parsed.dependencies]
        assert names == ["widget", "zeitwerk", "rake", "rubocop"]
        assert parsed.find("widget").source == Source.local_path(str(tmp_path))
        assert parsed.find("zeitwerk").constraints == ("~> 2.6",)
        assert parsed.find("zeitwerk").groups == ("default",)
        assert parsed.find("rake").groups == ("development",)

    def test_gemspec_between_gems(self, tmp_path):
        """Test a gemspec directive declared between two gems."""
        (tmp_path / "widget.gemspec").write_text(GEMSPEC)
        gemfile = tmp_path / "Gemfile"
        gemfile.write_text("gem 'puma'\ngemspec\ngem 'rubocop'\n")

        parsed = parse_gemfile(gemfile, evaluator=_no_ruby)

        names = [d.name for d in parsed.dependencies]
        assert names == ["puma", "widget", "zeitwerk", "rake", "rubocop"]
        assert parsed.gemspecs[0].position == 1

    def test_gemspec_development_group(self, tmp_path):
        """Test a custom development group."""
        (tmp_path / "widget.gemspec").write_text(GEMSPEC)
        gemfile = tmp_path / "Gemfile"
        gemfile.write_text("gemspec development_group: :dev\n")

        parsed = parse_gemfile(gemfile, evaluator=_no_ruby)

        assert parsed.find("rake").groups == ("dev",)

    def test_gemspec_not_found(self, tmp_path):
        """Test a gemspec directive with no gemspec on disk."""
        gemfile = tmp_path / "Gemfile"
        gemfile.write_text("gemspec\n")

        with pytest.raises(GemspecNotFoundError) as exc_info:
            parse_gemfile(gemfile, evaluator=_no_ruby)
        assert str(tmp_path) in str(exc_info.value)

    def test_ambiguous_gemspec(self, tmp_path):
        """Test a gemspec directive matching two files."""
        (tmp_path / "a.gemspec").write_text(GEMSPEC)
        (tmp_path / "b.gemspec").write_text(GEMSPEC)
        gemfile = tmp_path / "Gemfile"
        gemfile.write_text("gemspec\n")

        with pytest.raises(AmbiguousGemspecError) as exc_info:
            parse_gemfile(gemfile, evaluator=_no_ruby)
        assert "a.gemspec" in str(exc_info.value)
        assert "b.gemspec" in str(exc_info.value)

    def test_named_gemspec(self, tmp_path):
        """Test that a name picks one gemspec out of several."""
        (tmp_path / "a.gemspec").write_text(GEMSPEC)
        (tmp_path / "b.gemspec").write_text(GEMSPEC.replace("widget", "other"))
        gemfile = tmp_path / "Gemfile"
        gemfile.write_text("gemspec name: 'b'\n")

        parsed = parse_gemfile(gemfile, evaluator=_no_ruby)

        assert parsed.dependencies[0].name == "other"
