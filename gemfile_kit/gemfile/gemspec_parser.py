"""
Gemspec parsing with escalating strategies.

A gemspec is Ruby code, so no static reading is complete. Parsing tries, in
order:

1. structural: read literal assignments from the syntax tree
2. ruby: evaluate the file with the Ruby interpreter
3. regex: scrape fields with regular expressions

The first strategy that yields a gem name wins. The regex strategy always
yields a result, possibly with empty fields.
"""

import re
from collections.abc import Callable
from pathlib import Path
from typing import Any, NamedTuple

from gemfile_kit.console import debug, warn
from gemfile_kit.errors import (
    AmbiguousGemspecError,
    FileAccessError,
    GemspecNotFoundError,
)
from gemfile_kit.external_tools.ruby_tools import RubyGemspecTool
from gemfile_kit.gemfile.gemspec_tree_parser import TreeSitterGemspecParser
from gemfile_kit.gemfile.models import (
    DEFAULT_DEVELOPMENT_GROUP,
    DEFAULT_GEMSPEC_GLOB,
    DEFAULT_GROUPS,
    GemDependency,
    GemspecDependency,
    GemspecFile,
    GemspecReference,
    Source,
)
from gemfile_kit.ruby_ast import extract_quoted_strings

GemspecEvaluator = Callable[[Path], dict[str, Any] | None]

BLOCK_VARIABLE_RE = re.compile(
    r"Gem::Specification\.new(?:\.\w+)*\s*(?:do|\{)\s*\|\s*(\w+)\s*\|"
)


class GemspecStrategy(NamedTuple):
    """One parsing tier: returns a GemspecFile, or None to escalate."""

    name: str
    parse: Callable[[Path, str], GemspecFile | None]


def _field_patterns(var: str) -> dict[str, re.Pattern]:
    prefix = rf"\b{re.escape(var)}\."
    quoted = r"""\s*=\s*['"](.*?)['"]"""
    return {
        "name": re.compile(prefix + "name" + quoted),
        "version": re.compile(prefix + "version" + quoted),
        "summary": re.compile(prefix + "summary" + quoted),
        "description": re.compile(prefix + "description" + quoted),
        "homepage": re.compile(prefix + "homepage" + quoted),
        "license": re.compile(prefix + "licenses?" + quoted),
        "required_ruby_version": re.compile(prefix + "required_ruby_version" + quoted),
    }


def _list_field(content: str, prefix: str, field: str) -> list[str]:
    array = re.search(prefix + field + r"\s*=\s*\[(.*?)\]", content, re.DOTALL)
    if array:
        return extract_quoted_strings(array.group(1))
    scalar = re.search(prefix + field + r"""\s*=\s*['"](.*?)['"]""", content)
    if scalar:
        return [scalar.group(1)]
    return []


def parse_gemspec_with_regex(content: str) -> GemspecFile:
    """
    Scrape gemspec fields from raw text.

    Handles the conventional one-assignment-per-line layout. Values that are
    computed rather than written literally are left empty.
    """
    block_var = BLOCK_VARIABLE_RE.search(content)
    var = block_var.group(1) if block_var else "spec"
    prefix = rf"\b{re.escape(var)}\."

    fields: dict[str, Any] = {}
    for field, pattern in _field_patterns(var).items():
        match = pattern.search(content)
        if match:
            fields[field] = match.group(1)

    if "version" not in fields:
        constant = re.search(prefix + r"version\s*=\s*([\w:]+)", content)
        if constant:
            fields["version"] = constant.group(1)

    fields["authors"] = _list_field(content, prefix, "authors?")
    fields["email"] = _list_field(content, prefix, "email")

    runtime: list[GemspecDependency] = []
    development: list[GemspecDependency] = []
    dependency_re = re.compile(
        prefix
        + r"add_(?:(runtime|development)_)?dependency"
        + r"""\s*\(?\s*['"]([\w\-]+)['"]([^)\n]*)\)?"""
    )
    for match in dependency_re.finditer(content):
        kind, name, remainder = match.groups()
        requirements = tuple(extract_quoted_strings(remainder))
        bucket = development if kind == "development" else runtime
        bucket.append(GemspecDependency(name, requirements))

    metadata_re = re.compile(
        prefix + r"""metadata\[['"](.*?)['"]\]\s*=\s*['"](.*?)['"]"""
    )
    metadata = {key: value for key, value in metadata_re.findall(content)}

    return GemspecFile.from_fields(
        **fields,
        metadata=metadata,
        runtime_dependencies=runtime,
        development_dependencies=development,
    )


def gemspec_from_json(data: dict[str, Any]) -> GemspecFile:
    """Build a GemspecFile from the JSON printed by the Ruby evaluator."""

    def as_list(value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(v) for v in value]
        return [str(value)]

    def dependencies(key: str) -> list[GemspecDependency]:
        result = []
        for entry in data.get(key) or []:
            if isinstance(entry, dict) and entry.get("name"):
                result.append(
                    GemspecDependency(
                        str(entry["name"]), tuple(as_list(entry.get("requirements")))
                    )
                )
        return result

    license_value = str(data.get("license") or "")
    licenses = as_list(data.get("licenses"))
    if not license_value and licenses:
        license_value = ", ".join(licenses)

    metadata = data.get("metadata") or {}
    return GemspecFile.from_fields(
        name=str(data.get("name") or ""),
        version=str(data.get("version") or ""),
        summary=str(data.get("summary") or ""),
        description=str(data.get("description") or ""),
        authors=as_list(data.get("authors")),
        email=as_list(data.get("email")),
        homepage=str(data.get("homepage") or ""),
        license=license_value,
        required_ruby_version=str(data.get("required_ruby_version") or ""),
        files=as_list(data.get("files")),
        metadata={str(k): str(v) for k, v in metadata.items()},
        runtime_dependencies=dependencies("runtime_dependencies"),
        development_dependencies=dependencies("development_dependencies"),
    )


class GemspecParser:
    """Parses a .gemspec file, escalating through the parsing strategies."""

    def __init__(self, path: str | Path, evaluator: GemspecEvaluator | None = None):
        """
        Args:
            path: Path to the .gemspec file.
            evaluator: Callable that evaluates a gemspec and returns its JSON
                fields, or None on failure. Defaults to RubyGemspecTool.
        """
        self.path = Path(path)
        self.evaluator = evaluator or RubyGemspecTool().evaluate
        # Name of the strategy that produced the last result
        self.tier = ""

    def strategies(self) -> list[GemspecStrategy]:
        return [
            GemspecStrategy("structural", self._parse_structural),
            GemspecStrategy("ruby", self._parse_with_ruby),
            GemspecStrategy("regex", self._parse_with_regex),
        ]

    def parse(self) -> GemspecFile:
        """
        Parse the gemspec.

        Returns:
            GemspecFile from the first strategy that succeeded.

        Raises:
            FileAccessError: If the file cannot be read.
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise FileAccessError(self.path, e) from e

        for strategy in self.strategies():
            result = strategy.parse(self.path, content)
            if result is not None:
                self.tier = strategy.name
                if strategy.name == "regex":
                    warn(f"{self.path} was read with regular expressions only")
                return result
            debug(f"{strategy.name} parsing of {self.path} found no gem name")

        # The regex strategy never declines, so this is unreachable
        raise RuntimeError(f"No parsing strategy produced a result for {self.path}")

    def _parse_structural(self, path: Path, content: str) -> GemspecFile | None:
        result = TreeSitterGemspecParser().parse(content)
        return result if result.name else None

    def _parse_with_ruby(self, path: Path, content: str) -> GemspecFile | None:
        data = self.evaluator(path)
        if not data or "error" in data:
            return None
        result = gemspec_from_json(data)
        return result if result.name else None

    def _parse_with_regex(self, path: Path, content: str) -> GemspecFile | None:
        return parse_gemspec_with_regex(content)


def parse_gemspec(
    path: str | Path, evaluator: GemspecEvaluator | None = None
) -> GemspecFile:
    """Parse a .gemspec file."""
    return GemspecParser(path, evaluator).parse()


def expand_braces(pattern: str) -> list[str]:
    """
    Expand shell-style brace alternatives.

    "{,*,*/*}.gemspec" becomes [".gemspec", "*.gemspec", "*/*.gemspec"].
    Nested braces are supported.
    """
    start = pattern.find("{")
    if start == -1:
        return [pattern]

    depth = 0
    end = -1
    splits = []
    for index in range(start, len(pattern)):
        char = pattern[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                end = index
                break
        elif char == "," and depth == 1:
            splits.append(index)
    if end == -1:
        return [pattern]

    bounds = [start] + splits + [end]
    prefix, suffix = pattern[:start], pattern[end + 1 :]
    expanded = []
    for left, right in zip(bounds, bounds[1:]):
        option = pattern[left + 1 : right]
        expanded.extend(expand_braces(prefix + option + suffix))
    return expanded


def find_gemspecs(
    directory: str | Path, glob: str = DEFAULT_GEMSPEC_GLOB, name: str = ""
) -> list[Path]:
    """
    Find gemspec files under a directory.

    Args:
        directory: Directory the glob is relative to.
        glob: Bundler-style glob, brace alternatives allowed.
        name: If given, only NAME.gemspec files are returned.

    Returns:
        Matching paths, in glob-alternative order, without duplicates.
    """
    directory = Path(directory)
    found: list[Path] = []
    for pattern in expand_braces(glob or DEFAULT_GEMSPEC_GLOB):
        if "*" in pattern or "?" in pattern or "[" in pattern:
            matches = sorted(directory.glob(pattern))
        else:
            candidate = directory / pattern
            matches = [candidate] if candidate.is_file() else []
        for match in matches:
            if name and match.name != f"{name}.gemspec":
                continue
            if match.is_file() and match not in found:
                found.append(match)
    return found


def load_gemspec_dependencies(
    reference: GemspecReference,
    gemfile_dir: str | Path,
    evaluator: GemspecEvaluator | None = None,
) -> list[GemDependency]:
    """
    Resolve a `gemspec` directive into Gemfile dependencies.

    Returns the gem itself as a path dependency, then its runtime
    dependencies (default group), then its development dependencies (the
    directive's development group).

    Raises:
        GemspecNotFoundError: If no gemspec matches.
        AmbiguousGemspecError: If several match and the directive names none.
    """
    directory = Path(reference.path or ".")
    if not directory.is_absolute():
        directory = Path(gemfile_dir) / directory

    candidates = find_gemspecs(directory, reference.glob, reference.name)
    if not candidates:
        raise GemspecNotFoundError(directory)
    if len(candidates) > 1 and not reference.name:
        raise AmbiguousGemspecError(directory, candidates)

    gemspec_path = candidates[0]
    gemspec = parse_gemspec(gemspec_path, evaluator)
    development_group = reference.development_group or DEFAULT_DEVELOPMENT_GROUP

    dependencies = [
        GemDependency(
            name=gemspec.name,
            source=Source.local_path(str(gemspec_path.parent)),
            groups=DEFAULT_GROUPS,
        )
    ]
    dependencies.extend(
        GemDependency(name=dep.name, constraints=dep.requirements)
        for dep in gemspec.runtime_dependencies
    )
    dependencies.extend(
        GemDependency(
            name=dep.name,
            constraints=dep.requirements,
            groups=(development_group,),
        )
        for dep in gemspec.development_dependencies
    )
    return dependencies
