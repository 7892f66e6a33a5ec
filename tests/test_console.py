"""
Tests for diagnostic output.
"""

from unittest.mock import patch

from gemfile_kit import config
from gemfile_kit.console import debug, warn


class TestConsole:
    """Test debug and warning output."""

    def teardown_method(self):
        config.reset_settings()

    @patch("gemfile_kit.console.console.print")
    def test_debug_silent_by_default(self, mock_print):
        """Test that debug output is suppressed unless verbose."""
        config.set_verbose(False)
        debug("structural parse failed")
        mock_print.assert_not_called()

    @patch("gemfile_kit.console.console.print")
    def test_debug_when_verbose(self, mock_print):
        """Test that debug output is printed and markup is escaped."""
        config.set_verbose(True)
        debug("gem [rails] skipped")

        mock_print.assert_called_once()
        assert "\\[rails]" in mock_print.call_args[0][0]

    @patch("gemfile_kit.console.console.print")
    def test_warn(self, mock_print):
        """Test that warnings are always printed."""
        config.set_verbose(False)
        warn("lockfile is stale")

        assert "lockfile is stale" in mock_print.call_args[0][0]
