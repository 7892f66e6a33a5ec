"""
Tests for Gemfile and lockfile discovery.
"""

from pathlib import Path

import pytest

from gemfile_kit.errors import ManifestNotFoundError
from gemfile_kit.gemfile.models import GemDependency, ParsedGemfile
from gemfile_kit.lockfile.finder import (
    GemfilePaths,
    filter_gems_by_groups,
    find_gemfile,
    find_gemfiles,
    find_lockfile,
    lockfile_path_for,
)
from gemfile_kit.lockfile.models import GemSpec


@pytest.fixture(autouse=True)
def no_bundle_gemfile(monkeypatch):
    """Keep BUNDLE_GEMFILE from the outer environment out of the tests."""
    monkeypatch.delenv("BUNDLE_GEMFILE", raising=False)


class TestLockfilePathFor:
    """Test pairing manifests with lockfiles."""

    @pytest.mark.parametrize(
        ("gemfile", "lockfile"),
        [
            ("Gemfile", "Gemfile.lock"),
            ("gems.rb", "gems.locked"),
            ("Gemfile.next", "Gemfile.next.lock"),
            ("/app/Gemfile", "/app/Gemfile.lock"),
        ],
    )
    def test_names(self, gemfile, lockfile):
        """Test the two default names and the fallback rule."""
        assert lockfile_path_for(gemfile) == Path(lockfile)


class TestFindGemfile:
    """Test locating the manifest."""

    def test_prefers_gemfile(self, tmp_path):
        """Test that Gemfile wins over gems.rb."""
        (tmp_path / "Gemfile").write_text("")
        (tmp_path / "gems.rb").write_text("")

        assert find_gemfile(tmp_path) == tmp_path / "Gemfile"

    def test_alternate_name(self, tmp_path):
        """Test finding gems.rb."""
        (tmp_path / "gems.rb").write_text("")
        assert find_gemfile(tmp_path) == tmp_path / "gems.rb"

    def test_default_when_missing(self, tmp_path):
        """Test that a missing manifest defaults to Gemfile."""
        assert find_gemfile(tmp_path) == tmp_path / "Gemfile"

    def test_bundle_gemfile(self, tmp_path, monkeypatch):
        """Test that BUNDLE_GEMFILE overrides the directory search."""
        custom = tmp_path / "Gemfile.rails7"
        custom.write_text("")
        (tmp_path / "Gemfile").write_text("")
        monkeypatch.setenv("BUNDLE_GEMFILE", str(custom))

        assert find_gemfile(tmp_path) == custom.resolve()

    def test_bundle_gemfile_missing(self, tmp_path, monkeypatch):
        """Test that BUNDLE_GEMFILE naming a missing file is an error."""
        monkeypatch.setenv("BUNDLE_GEMFILE", str(tmp_path / "nope"))

        with pytest.raises(ManifestNotFoundError, match="BUNDLE_GEMFILE"):
            find_gemfile(tmp_path)


class TestFindGemfiles:
    """Test locating the manifest together with its lockfile."""

    def test_both_present(self, tmp_path):
        """Test returning both paths."""
        (tmp_path / "gems.rb").write_text("")
        (tmp_path / "gems.locked").write_text("")

        paths = find_gemfiles(tmp_path)

        assert paths == GemfilePaths(
            (tmp_path / "gems.rb").resolve(), (tmp_path / "gems.locked").resolve()
        )
        assert find_lockfile(tmp_path) == paths.lockfile

    def test_missing_lockfile(self, tmp_path):
        """Test that a manifest without a lockfile is an error."""
        (tmp_path / "Gemfile").write_text("")

        with pytest.raises(ManifestNotFoundError, match="Lockfile not found"):
            find_lockfile(tmp_path)

    def test_missing_gemfile(self, tmp_path):
        """Test that a directory without a manifest is an error."""
        with pytest.raises(ManifestNotFoundError, match="Gemfile not found"):
            find_gemfiles(tmp_path)


class TestFilterGemsByGroups:
    """Test selecting resolved gems by Gemfile group."""

    @pytest.fixture
    def gemfile(self):
        return ParsedGemfile(
            dependencies=[
                GemDependency("rails"),
                GemDependency("rspec", groups=("development", "test")),
                GemDependency("pry", groups=("development",)),
                GemDependency("capybara", groups=("test",)),
            ],
            sources=[],
            ruby_version="",
            gemspecs=[],
        )

    @pytest.fixture
    def specs(self):
        names = ["rails", "rspec", "pry", "capybara", "rack"]
        return [GemSpec(name, "1.0") for name in names]

    def test_no_filters(self, specs, gemfile):
        """Test that no filters keeps everything."""
        assert filter_gems_by_groups(specs, gemfile) == specs

    def test_exclude(self, specs, gemfile):
        """Test dropping every gem in an excluded group."""
        selected = filter_gems_by_groups(specs, gemfile, exclude_groups=["test"])
        assert [s.name for s in selected] == ["rails", "pry", "rack"]

    def test_include(self, specs, gemfile):
        """Test keeping the included groups plus the default group."""
        selected = filter_gems_by_groups(specs, gemfile, include_groups=["development"])
        assert [s.name for s in selected] == ["rails", "rspec", "pry", "rack"]

    def test_exclusion_wins(self, specs, gemfile):
        """Test that a gem in an excluded group is dropped even if included."""
        selected = filter_gems_by_groups(
            specs, gemfile, include_groups=["development"], exclude_groups=["test"]
        )
        assert [s.name for s in selected] == ["rails", "pry", "rack"]
