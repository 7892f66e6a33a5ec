"""External tool wrappers for evaluating Ruby files."""

from gemfile_kit.external_tools.base import ExternalTool
from gemfile_kit.external_tools.ruby_tools import RubyGemspecTool

__all__ = ["ExternalTool", "RubyGemspecTool"]
