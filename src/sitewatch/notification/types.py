"""Type definitions for the notification module."""

from dataclasses import dataclass, field
from typing import Optional


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotifyError(NotificationError):
    """Raised when the notification endpoint rejects or never receives a message."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class NtfyMessage:
    """A message published to an ntfy topic."""

    title: str
    body: str
    priority: str = "default"
    tags: list[str] = field(default_factory=list)
    click: Optional[str] = None
    actions: Optional[str] = None

    def headers(self) -> dict[str, str]:
        headers = {"Title": self.title, "Priority": self.priority}
        if self.tags:
            headers["Tags"] = ",".join(self.tags)
        if self.click:
            headers["Click"] = self.click
        if self.actions:
            headers["Actions"] = self.actions
        return headers
