"""
Tests for the configuration module.
"""

import tempfile
from pathlib import Path

import pytest

from gemfile_kit import config
from gemfile_kit.config import (
    get_default_remote,
    get_ruby_executable,
    get_ruby_timeout,
    is_verbose,
    load_config_file,
    reset_settings,
    set_default_remote,
    set_ruby_executable,
    set_ruby_timeout,
    set_verbose,
)


@pytest.fixture
def temp_project_root(monkeypatch):
    """Create a temporary project root with a clean environment."""
    for name in (
        "GEMFILE_KIT_RUBY",
        "GEMFILE_KIT_RUBY_TIMEOUT",
        "GEMFILE_KIT_DEFAULT_REMOTE",
        "GEMFILE_KIT_VERBOSE",
    ):
        monkeypatch.delenv(name, raising=False)

    with tempfile.TemporaryDirectory() as tmpdir:
        tmpdir_path = Path(tmpdir)

        # Patch PROJECT_ROOT
        original_root = config.PROJECT_ROOT
        config.PROJECT_ROOT = tmpdir_path
        reset_settings()

        yield tmpdir_path

        # Restore
        config.PROJECT_ROOT = original_root
        reset_settings()


def test_defaults(temp_project_root):
    """Test defaults when nothing is configured."""
    assert get_ruby_executable() == "ruby"
    assert get_ruby_timeout() == 30
    assert get_default_remote() == "https://rubygems.org/"
    assert is_verbose() is False


def test_values_from_local_config(temp_project_root):
    """Test loading settings from .gemfile-kit.toml."""
    (temp_project_root / ".gemfile-kit.toml").write_text(
        """
[tool.gemfile-kit]
ruby_executable = "/opt/ruby/bin/ruby"
ruby_timeout = 5
verbose = true
"""
    )

    assert get_ruby_executable() == "/opt/ruby/bin/ruby"
    assert get_ruby_timeout() == 5
    assert is_verbose() is True


def test_values_from_pyproject(temp_project_root):
    """Test loading settings from pyproject.toml."""
    (temp_project_root / "pyproject.toml").write_text(
        """
[tool.gemfile-kit]
default_remote = "https://gems.example.com/"
"""
    )

    assert get_default_remote() == "https://gems.example.com/"


def test_local_config_takes_priority(temp_project_root):
    """Test that .gemfile-kit.toml takes priority over pyproject.toml."""
    (temp_project_root / "pyproject.toml").write_text(
        """
[tool.gemfile-kit]
ruby_executable = "ruby-from-pyproject"
"""
    )
    (temp_project_root / ".gemfile-kit.toml").write_text(
        """
[tool.gemfile-kit]
ruby_executable = "ruby-from-local"
"""
    )

    assert get_ruby_executable() == "ruby-from-local"


def test_pyproject_used_when_local_config_lacks_key(temp_project_root):
    """Test falling through to pyproject.toml for keys the local file omits."""
    (temp_project_root / ".gemfile-kit.toml").write_text(
        """
[tool.gemfile-kit]
verbose = false
"""
    )
    (temp_project_root / "pyproject.toml").write_text(
        """
[tool.gemfile-kit]
ruby_timeout = 12
"""
    )

    assert get_ruby_timeout() == 12


def test_environment_overrides_config(temp_project_root, monkeypatch):
    """Test that environment variables override config files."""
    (temp_project_root / ".gemfile-kit.toml").write_text(
        """
[tool.gemfile-kit]
ruby_executable = "ruby-from-config"
ruby_timeout = 5
"""
    )
    monkeypatch.setenv("GEMFILE_KIT_RUBY", "ruby-from-env")
    monkeypatch.setenv("GEMFILE_KIT_RUBY_TIMEOUT", "9")

    assert get_ruby_executable() == "ruby-from-env"
    assert get_ruby_timeout() == 9


def test_explicit_setters_override_environment(temp_project_root, monkeypatch):
    """Test that explicitly set values win over everything else."""
    monkeypatch.setenv("GEMFILE_KIT_RUBY", "ruby-from-env")
    monkeypatch.setenv("GEMFILE_KIT_DEFAULT_REMOTE", "https://env.example.com/")
    monkeypatch.setenv("GEMFILE_KIT_VERBOSE", "1")

    set_ruby_executable("ruby-explicit")
    set_ruby_timeout(3)
    set_default_remote("https://explicit.example.com/")
    set_verbose(False)

    assert get_ruby_executable() == "ruby-explicit"
    assert get_ruby_timeout() == 3
    assert get_default_remote() == "https://explicit.example.com/"
    assert is_verbose() is False


def test_invalid_timeout_is_ignored(temp_project_root, monkeypatch):
    """Test that non-numeric and non-positive timeouts fall back."""
    monkeypatch.setenv("GEMFILE_KIT_RUBY_TIMEOUT", "soon")
    assert get_ruby_timeout() == 30

    monkeypatch.setenv("GEMFILE_KIT_RUBY_TIMEOUT", "-4")
    assert get_ruby_timeout() == 30


def test_set_ruby_timeout_rejects_non_positive(temp_project_root):
    """Test that a zero timeout cannot be set."""
    with pytest.raises(ValueError, match="must be positive"):
        set_ruby_timeout(0)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("true", True), ("On", True), ("0", False), ("no", False)],
)
def test_verbose_from_environment(temp_project_root, monkeypatch, value, expected):
    """Test truthy and falsy GEMFILE_KIT_VERBOSE values."""
    monkeypatch.setenv("GEMFILE_KIT_VERBOSE", value)
    assert is_verbose() is expected


def test_load_config_file_missing(temp_project_root):
    """Test that a missing config file yields an empty mapping."""
    assert load_config_file(temp_project_root / "absent.toml") == {}


def test_load_config_file_invalid(temp_project_root):
    """Test that malformed TOML raises a ValueError naming the file."""
    broken = temp_project_root / ".gemfile-kit.toml"
    broken.write_text("[tool.gemfile-kit\nverbose = ")

    with pytest.raises(ValueError, match="Failed to load config"):
        load_config_file(broken)
