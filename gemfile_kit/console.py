"""
Diagnostic output shared by the parsers.
"""

from rich.console import Console
from rich.markup import escape

from gemfile_kit.config import is_verbose

console = Console(stderr=True)


def debug(message: str) -> None:
    """Print a diagnostic message when verbose output is enabled."""
    if is_verbose():
        console.print(f"[dim]{escape(message)}[/dim]", highlight=False)


def warn(message: str) -> None:
    """Print a warning."""
    console.print(f"[yellow]Warning:[/yellow] {escape(message)}", highlight=False)
