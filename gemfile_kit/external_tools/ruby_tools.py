"""Ruby interpreter wrapper used to evaluate gemspecs."""

import json
import shutil
import subprocess
from pathlib import Path
from typing import Any

from gemfile_kit.config import get_ruby_executable, get_ruby_timeout
from gemfile_kit.console import debug
from gemfile_kit.external_tools.base import ExternalTool

# Loads the gemspec given as ARGV[0] and prints its fields as one JSON object.
GEMSPEC_TO_JSON_SCRIPT = """
require "json"
require "rubygems"

begin
  spec = Gem::Specification.load(ARGV[0])
  raise "could not load #{ARGV[0]}" if spec.nil?

  deps = lambda do |type|
    spec.dependencies.select { |d| d.type == type }.map do |d|
      { name: d.name, requirements: d.requirement.as_list }
    end
  end

  puts JSON.generate(
    name: spec.name.to_s,
    version: spec.version.to_s,
    summary: spec.summary.to_s,
    description: spec.description.to_s,
    authors: Array(spec.authors),
    email: Array(spec.email),
    homepage: spec.homepage.to_s,
    license: spec.license.to_s,
    licenses: Array(spec.licenses),
    required_ruby_version: spec.required_ruby_version.to_s,
    files: Array(spec.files),
    metadata: spec.metadata || {},
    runtime_dependencies: deps.call(:runtime),
    development_dependencies: deps.call(:development)
  )
rescue Exception => e
  puts JSON.generate(error: e.message)
  exit 1
end
"""


class RubyGemspecTool(ExternalTool):
    """Use the Ruby interpreter to evaluate a gemspec.

    This is only needed for gemspecs too dynamic to read statically. Any
    failure (interpreter missing, timeout, bad output) yields None.
    """

    def __init__(self, executable: str | None = None, timeout: int | None = None):
        self._executable = executable
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "ruby"

    @property
    def ecosystem(self) -> str:
        return "ruby"

    @property
    def executable(self) -> str:
        return self._executable or get_ruby_executable()

    @property
    def timeout(self) -> int:
        return self._timeout or get_ruby_timeout()

    def is_available(self) -> bool:
        """Check if the Ruby interpreter is installed."""
        return shutil.which(self.executable) is not None

    def evaluate(self, gemspec_path: str | Path) -> dict[str, Any] | None:
        """
        Evaluate a gemspec with Ruby and return its fields.

        The interpreter runs in the gemspec's directory, since gemspecs often
        read files relative to themselves. It is killed if it exceeds the
        configured timeout.

        Args:
            gemspec_path: Path to the .gemspec file.

        Returns:
            Decoded JSON object, or None if evaluation failed.
        """
        gemspec_path = Path(gemspec_path).resolve()
        if not self.is_available():
            debug(f"{self.executable} not found, skipping evaluation of {gemspec_path}")
            return None

        try:
            result = subprocess.run(
                [self.executable, "-e", GEMSPEC_TO_JSON_SCRIPT, str(gemspec_path)],
                cwd=gemspec_path.parent,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            debug(f"Evaluating {gemspec_path} timed out after {self.timeout}s")
            return None
        except (FileNotFoundError, PermissionError) as e:
            debug(f"Could not run {self.executable}: {e}")
            return None

        if result.returncode != 0:
            debug(
                f"{self.executable} exited with {result.returncode} for "
                f"{gemspec_path}: {result.stderr.strip() or result.stdout.strip()}"
            )
            return None

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError:
            debug(f"Unexpected output evaluating {gemspec_path}")
            return None

        if not isinstance(data, dict) or "error" in data:
            return None
        return data
