"""Base class for external tool wrappers."""

from abc import ABC, abstractmethod


class ExternalTool(ABC):
    """An executable gemfile-kit can delegate work to when it is installed."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name, used in diagnostics."""

    @property
    @abstractmethod
    def ecosystem(self) -> str:
        """Ecosystem the tool belongs to."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the tool can be run on this machine."""
