"""
Configuration management for gemfile-kit.

Settings are resolved from (highest priority first):
1. Values set explicitly with the set_* functions
2. GEMFILE_KIT_* environment variables (a .env file is honoured)
3. .gemfile-kit.toml (local config)
4. pyproject.toml (project-level config)
"""

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

# project_root is the directory configuration files are looked up in
PROJECT_ROOT = Path.cwd()

CONFIG_SECTION = "gemfile-kit"

# Interpreter used to evaluate gemspecs that cannot be parsed statically
DEFAULT_RUBY_EXECUTABLE = "ruby"
# Wall-clock bound for a single gemspec evaluation (in seconds)
DEFAULT_RUBY_TIMEOUT = 30
# Registry assumed for lockfile entries without an explicit remote
DEFAULT_REMOTE = "https://rubygems.org/"

_TRUTHY = {"1", "true", "yes", "on"}

# Global settings (can be overridden)
_RUBY_EXECUTABLE: str | None = None
_RUBY_TIMEOUT: int | None = None
_DEFAULT_REMOTE: str | None = None
_VERBOSE: bool | None = None


def load_config_file(config_path: Path) -> dict:
    """Load a TOML configuration file."""
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e


def _get_config_value(key: str) -> Any:
    """
    Look up a key in the [tool.gemfile-kit] table.

    .gemfile-kit.toml wins over pyproject.toml when both define the key.

    Args:
        key: Setting name inside the table.

    Returns:
        The configured value, or None if neither file sets it.
    """
    for filename in (".gemfile-kit.toml", "pyproject.toml"):
        config_path = PROJECT_ROOT / filename
        if not config_path.exists():
            continue
        config = load_config_file(config_path)
        section = config.get("tool", {}).get(CONFIG_SECTION, {})
        if key in section:
            return section[key]
    return None


def _coerce_timeout(value: Any) -> int | None:
    try:
        timeout = int(value)
    except (TypeError, ValueError):
        return None
    return timeout if timeout > 0 else None


def set_ruby_executable(executable: str) -> None:
    """
    Set the Ruby interpreter used for gemspec evaluation.

    Args:
        executable: Command name or absolute path of the interpreter.
    """
    global _RUBY_EXECUTABLE
    _RUBY_EXECUTABLE = executable


def get_ruby_executable() -> str:
    """
    Get the Ruby interpreter used for gemspec evaluation.

    Priority:
    1. Explicitly set value via set_ruby_executable()
    2. GEMFILE_KIT_RUBY environment variable
    3. ruby_executable in config files
    4. Default: ruby

    Returns:
        Interpreter command.
    """
    if _RUBY_EXECUTABLE is not None:
        return _RUBY_EXECUTABLE

    env_ruby = os.getenv("GEMFILE_KIT_RUBY")
    if env_ruby:
        return env_ruby

    configured = _get_config_value("ruby_executable")
    if configured:
        return str(configured)

    return DEFAULT_RUBY_EXECUTABLE


def set_ruby_timeout(timeout: int) -> None:
    """
    Set the gemspec evaluation timeout.

    Args:
        timeout: Timeout in seconds. Must be positive.
    """
    global _RUBY_TIMEOUT
    if timeout <= 0:
        raise ValueError(f"Ruby timeout must be positive, got {timeout}")
    _RUBY_TIMEOUT = timeout


def get_ruby_timeout() -> int:
    """
    Get the gemspec evaluation timeout in seconds.

    Priority:
    1. Explicitly set value via set_ruby_timeout()
    2. GEMFILE_KIT_RUBY_TIMEOUT environment variable
    3. ruby_timeout in config files
    4. Default: 30 seconds

    Invalid or non-positive values are ignored.

    Returns:
        Timeout in seconds.
    """
    if _RUBY_TIMEOUT is not None:
        return _RUBY_TIMEOUT

    env_timeout = _coerce_timeout(os.getenv("GEMFILE_KIT_RUBY_TIMEOUT"))
    if env_timeout is not None:
        return env_timeout

    config_timeout = _coerce_timeout(_get_config_value("ruby_timeout"))
    if config_timeout is not None:
        return config_timeout

    return DEFAULT_RUBY_TIMEOUT


def set_default_remote(remote: str) -> None:
    """Set the registry URL assumed for lockfile entries without a remote."""
    global _DEFAULT_REMOTE
    _DEFAULT_REMOTE = remote


def get_default_remote() -> str:
    """
    Get the registry URL assumed for lockfile entries without a remote.

    Priority:
    1. Explicitly set value via set_default_remote()
    2. GEMFILE_KIT_DEFAULT_REMOTE environment variable
    3. default_remote in config files
    4. Default: https://rubygems.org/

    Returns:
        Registry URL.
    """
    if _DEFAULT_REMOTE is not None:
        return _DEFAULT_REMOTE

    env_remote = os.getenv("GEMFILE_KIT_DEFAULT_REMOTE")
    if env_remote:
        return env_remote

    configured = _get_config_value("default_remote")
    if configured:
        return str(configured)

    return DEFAULT_REMOTE


def set_verbose(verbose: bool) -> None:
    """Enable or disable diagnostic output."""
    global _VERBOSE
    _VERBOSE = verbose


def is_verbose() -> bool:
    """
    Check whether diagnostic output is enabled.

    Returns:
        True if verbose output was requested explicitly, through
        GEMFILE_KIT_VERBOSE, or through the verbose config key.
    """
    if _VERBOSE is not None:
        return _VERBOSE

    env_verbose = os.getenv("GEMFILE_KIT_VERBOSE")
    if env_verbose is not None:
        return env_verbose.strip().lower() in _TRUTHY

    return bool(_get_config_value("verbose"))


def reset_settings() -> None:
    """Clear every explicitly set value."""
    global _RUBY_EXECUTABLE, _RUBY_TIMEOUT, _DEFAULT_REMOTE, _VERBOSE
    _RUBY_EXECUTABLE = None
    _RUBY_TIMEOUT = None
    _DEFAULT_REMOTE = None
    _VERBOSE = None
