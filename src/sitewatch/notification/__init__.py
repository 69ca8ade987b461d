"""Change notifications for sitewatch."""

from .ntfy import (
    DEFAULT_NTFY_SERVER,
    NtfyNotifier,
    change_message,
    setup_check_message,
)
from .types import NotificationError, NotifyError, NtfyMessage

__all__ = [
    "NotificationError",
    "NotifyError",
    "NtfyMessage",
    "NtfyNotifier",
    "DEFAULT_NTFY_SERVER",
    "change_message",
    "setup_check_message",
]
