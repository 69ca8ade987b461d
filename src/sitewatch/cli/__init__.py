"""Command-line interface components."""

from .main import cli
from .types import CLIContext, CLIError, CommandResult

__all__ = [
    "CLIError",
    "CommandResult",
    "CLIContext",
    "cli",
]
