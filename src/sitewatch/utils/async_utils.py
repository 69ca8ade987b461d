"""Async utility functions and helpers."""

import asyncio
from collections.abc import Awaitable
from typing import Optional, TypeVar

from .logging import get_structured_logger
from .types import AsyncTimeoutError

logger = get_structured_logger(__name__)

T = TypeVar("T")


async def run_with_timeout(
    coro: Awaitable[T], timeout: float, timeout_message: Optional[str] = None
) -> T:
    """Run a coroutine with a timeout, cancelling it when the timeout expires."""
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError as e:
        msg = timeout_message or f"Operation timed out after {timeout}s"
        logger.warning(msg, timeout_seconds=timeout)
        raise AsyncTimeoutError(msg, timeout=timeout) from e
