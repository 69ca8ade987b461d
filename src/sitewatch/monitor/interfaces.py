"""Collaborator interfaces used by the monitor orchestrator."""

from typing import Optional, Protocol

from ..storage.types import CheckState


class Fetcher(Protocol):
    """Returns the raw document for a URL."""

    async def fetch(self, url: str, timeout_ms: Optional[int] = None) -> str:
        ...


class StateRepository(Protocol):
    """Loads and saves the single baseline record."""

    def load(self) -> Optional[CheckState]:
        ...

    def save(self, state: CheckState) -> None:
        ...


class Notifier(Protocol):
    """Announces a detected change."""

    async def notify(self, topic: str, url: str) -> None:
        ...
