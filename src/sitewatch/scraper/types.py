"""Type definitions for the scraper module."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ScrapingError(Exception):
    """Base exception for scraping-related errors."""

    pass


class FetchError(ScrapingError):
    """Raised when a page cannot be fetched (bad status, timeout, transport)."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class NoiseCategory(str, Enum):
    """Classes of non-semantic markup, in the order they are stripped."""

    SCRIPTS = "scripts"
    STYLES = "styles"
    COMMENTS = "comments"
    DYNAMIC_IDS = "dynamic_ids"
    TRACKING = "tracking"
    TEMPORAL = "temporal"
    WHITESPACE = "whitespace"

    @property
    def position(self) -> int:
        return list(NoiseCategory).index(self)


@dataclass
class ChangeOutcome:
    """Result of comparing the current fingerprint with the stored baseline."""

    is_first_run: bool
    changed: bool
    current_fingerprint: str
    previous_fingerprint: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "is_first_run": self.is_first_run,
            "changed": self.changed,
            "current_fingerprint": self.current_fingerprint,
            "previous_fingerprint": self.previous_fingerprint,
        }
