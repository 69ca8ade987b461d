"""Baseline persistence for sitewatch."""

from .state import DEFAULT_STATE_PATH, StateStore
from .types import CheckState, StateError, StorageError

__all__ = [
    "StorageError",
    "StateError",
    "CheckState",
    "StateStore",
    "DEFAULT_STATE_PATH",
]
