"""Type definitions for utility modules."""

from typing import Optional


class UtilityError(Exception):
    """Base exception for utility-related errors."""

    pass


class AsyncTimeoutError(UtilityError):
    """Raised when an awaited operation does not finish in time."""

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message)
        self.timeout = timeout
