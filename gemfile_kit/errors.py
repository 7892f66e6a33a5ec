"""
Exceptions raised by gemfile-kit.
"""

from pathlib import Path


class GemfileKitError(Exception):
    """Base class for all gemfile-kit errors."""

    pass


class FileAccessError(GemfileKitError):
    """Raised when a manifest, lockfile or gemspec cannot be read or written."""

    def __init__(self, path: str | Path, cause: Exception):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to access {self.path}: {cause}")


class StructuralParseError(GemfileKitError):
    """Raised when the syntax tree of a Ruby file is unusable."""

    pass


class GemfileSyntaxError(GemfileKitError):
    """Raised when the line parser meets a malformed statement."""

    def __init__(self, line_number: int, line: str, path: str | Path | None = None):
        self.line_number = line_number
        self.line = line
        self.path = Path(path) if path is not None else None
        location = f"{self.path}: " if self.path is not None else ""
        super().__init__(f"{location}line {line_number}: invalid gem line: {line}")


class GemspecNotFoundError(GemfileKitError):
    """Raised when a gemspec directive matches no file."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        super().__init__(f"no gemspec files found in {self.directory}")


class AmbiguousGemspecError(GemfileKitError):
    """Raised when a gemspec directive matches several files and names none."""

    def __init__(self, directory: str | Path, candidates: list[Path]):
        self.directory = Path(directory)
        self.candidates = list(candidates)
        names = ", ".join(str(c) for c in self.candidates)
        super().__init__(
            f"multiple gemspec files found in {self.directory}, "
            f"please specify a name: [{names}]"
        )


class GemAlreadyPresentError(GemfileKitError):
    """Raised when adding a gem the manifest already declares."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"gem '{name}' already exists in Gemfile")


class GemNotPresentError(GemfileKitError):
    """Raised when removing a gem the manifest does not declare."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"gem '{name}' not found in Gemfile")


class ManifestNotFoundError(GemfileKitError):
    """Raised when a Gemfile or its lockfile cannot be located."""

    def __init__(self, path: str | Path, kind: str = "Gemfile"):
        self.path = Path(path)
        self.kind = kind
        super().__init__(f"{kind} not found: {self.path}")
