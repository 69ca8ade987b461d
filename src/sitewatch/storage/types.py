"""Type definitions for storage components."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


class StorageError(Exception):
    """Base exception for storage-related errors."""

    pass


class StateError(StorageError):
    """Raised when a stored check record cannot be used."""

    pass


@dataclass
class CheckState:
    """Baseline persisted between runs."""

    fingerprint: str
    last_checked_at: datetime
    url: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "fingerprint": self.fingerprint,
            "last_checked_at": self.last_checked_at.isoformat(),
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CheckState":
        """Build a record from its JSON form.

        Records written by earlier releases use ``hash`` and
        ``lastCheck`` keys and are accepted as well.
        """
        if not isinstance(data, dict):
            raise StateError(f"State record must be an object, got {type(data).__name__}")

        fingerprint = data.get("fingerprint", data.get("hash"))
        if not isinstance(fingerprint, str) or not fingerprint:
            raise StateError("State record has no fingerprint")

        checked_at = data.get("last_checked_at", data.get("lastCheck"))
        try:
            last_checked_at = datetime.fromisoformat(
                str(checked_at).replace("Z", "+00:00")
            )
        except ValueError as e:
            raise StateError(f"Invalid last check timestamp: {checked_at!r}") from e

        url = data.get("url", "")
        if not isinstance(url, str):
            raise StateError("State record url must be a string")

        return cls(fingerprint=fingerprint, last_checked_at=last_checked_at, url=url)
