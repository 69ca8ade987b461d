"""Type definitions for the CLI module."""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from ..config.settings import AppSettings


class CLIError(Exception):
    """Base exception for CLI-related errors."""

    pass


class CommandResult:
    """Result of a CLI command execution."""

    def __init__(
        self,
        success: bool,
        message: str = "",
        data: Optional[dict[str, Any]] = None,
        exit_code: int = 0,
    ):
        self.success = success
        self.message = message
        self.data = data or {}
        self.exit_code = exit_code

    def __bool__(self) -> bool:
        return self.success


class CLIContext:
    """Context object for CLI commands."""

    def __init__(
        self,
        settings: "AppSettings",
        verbose: bool = False,
        debug: bool = False,
    ):
        self.settings = settings
        self.verbose = verbose
        self.debug = debug
