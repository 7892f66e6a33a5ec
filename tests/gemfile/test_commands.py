"""
Tests for the add/remove commands.
"""

import pytest

from gemfile_kit.errors import GemNotPresentError, ManifestNotFoundError
from gemfile_kit.gemfile.commands import (
    AddOptions,
    add_gem,
    build_constraints,
    build_source,
    parse_groups,
    parse_require,
    remove_gems,
)
from gemfile_kit.gemfile.models import Source


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Create a project directory with a Gemfile and make it the cwd."""
    monkeypatch.delenv("BUNDLE_GEMFILE", raising=False)
    monkeypatch.chdir(tmp_path)
    gemfile = tmp_path / "Gemfile"
    gemfile.write_text("source 'https://rubygems.org'\n\ngem 'rails'\ngem 'pg'\n")
    return gemfile


class TestOptionHelpers:
    """Test converting command options."""

    def test_parse_groups(self):
        """Test splitting a comma-separated group list."""
        assert parse_groups("development, test") == ("development", "test")
        assert parse_groups("") == ("default",)

    def test_parse_require(self):
        """Test the require option values."""
        assert parse_require("") is None
        assert parse_require("false") == ""
        assert parse_require("active_support/all") == "active_support/all"

    @pytest.mark.parametrize(
        ("options", "expected"),
        [
            (AddOptions("rack"), ()),
            (AddOptions("rack", version="~> 3.0"), ("~> 3.0",)),
            (AddOptions("rack", version="3.0.8", strict=True), ("= 3.0.8",)),
            (AddOptions("rack", version="3.0", optimistic=True), (">= 3.0",)),
        ],
    )
    def test_build_constraints(self, options, expected):
        """Test strict, optimistic and verbatim versions."""
        assert build_constraints(options) == expected

    def test_build_source(self):
        """Test which option decides the source."""
        assert build_source(AddOptions("x")) is None
        assert build_source(AddOptions("x", github="a/x", branch="main")) == (
            Source.git_checkout("https://github.com/a/x.git", branch="main")
        )
        assert build_source(
            AddOptions("x", git="https://git.test/x.git", github="a/x")
        ) == Source.git_checkout("https://git.test/x.git")
        assert build_source(AddOptions("x", path="../x")) == Source.local_path("../x")
        assert build_source(AddOptions("x", source="https://gems.test")) == (
            Source.registry("https://gems.test")
        )


class TestAddGem:
    """Test add_gem."""

    def test_add_to_discovered_gemfile(self, project):
        """Test that the Gemfile in the working directory is edited."""
        dep = add_gem(AddOptions("puma", version="6.4.0", optimistic=True))

        assert dep.constraints == (">= 6.4.0",)
        assert project.read_text().splitlines()[4] == "gem 'puma', '>= 6.4.0'"

    def test_add_with_groups_and_require(self, project):
        """Test that grouped gems go to the end of the file."""
        add_gem(
            AddOptions("rspec", groups=("development", "test"), require=""),
            project,
        )

        assert project.read_text().splitlines()[-1] == (
            "gem 'rspec', groups: [:development, :test], require: false"
        )

    def test_empty_name(self, project):
        """Test that a gem name is required."""
        with pytest.raises(ValueError):
            add_gem(AddOptions(""))

    def test_missing_gemfile(self, tmp_path):
        """Test adding to a Gemfile that does not exist."""
        with pytest.raises(ManifestNotFoundError):
            add_gem(AddOptions("rack"), tmp_path / "Gemfile")


class TestRemoveGems:
    """Test remove_gems."""

    def test_remove(self, project):
        """Test removing several gems."""
        remove_gems(["rails", "pg"])
        assert project.read_text() == "source 'https://rubygems.org'\n\n"

    def test_remove_stops_at_missing_gem(self, project):
        """Test that earlier removals stay when a later gem is missing."""
        with pytest.raises(GemNotPresentError):
            remove_gems(["rails", "sidekiq"])
        assert "gem 'rails'" not in project.read_text()
        assert "gem 'pg'" in project.read_text()

    def test_no_names(self, project):
        """Test that at least one name is required."""
        with pytest.raises(ValueError):
            remove_gems([])
