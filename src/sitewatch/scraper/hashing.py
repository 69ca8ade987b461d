"""Content fingerprinting and change detection."""

import hashlib
from typing import Optional

import blake3

from ..utils.logging import get_structured_logger
from .types import ChangeOutcome

logger = get_structured_logger(__name__)

SUPPORTED_HASH_TYPES = ("md5", "sha256", "blake3")
DEFAULT_HASH_TYPE = "md5"

# Digests are taken over this encoding so a fingerprint does not depend on
# the platform that computed it.
CONTENT_ENCODING = "utf-8"


class ContentHasher:
    """Maps canonical text to a fixed-width hex digest.

    The digest is used for equality checks only; md5 is the default because
    its 32 character fingerprints are what existing state files hold.
    """

    def __init__(self, hash_type: str = DEFAULT_HASH_TYPE):
        hash_type = hash_type.lower()
        if hash_type not in SUPPORTED_HASH_TYPES:
            raise ValueError(f"Unsupported hash type: {hash_type}")
        self.hash_type = hash_type

    def fingerprint(self, text: str) -> str:
        """Return the hex digest of ``text``."""
        data = text.encode(CONTENT_ENCODING)

        if self.hash_type == "blake3":
            hasher = blake3.blake3()
            hasher.update(data)
            return hasher.hexdigest()
        if self.hash_type == "sha256":
            return hashlib.sha256(data).hexdigest()
        return hashlib.md5(data).hexdigest()


def compute_fingerprint(text: str, hash_type: str = DEFAULT_HASH_TYPE) -> str:
    """Fingerprint ``text`` with the given algorithm."""
    return ContentHasher(hash_type).fingerprint(text)


class ChangeDetector:
    """Decides first-run / changed / unchanged from two fingerprints.

    Stateless: the caller owns persistence and passes in the stored
    fingerprint, or None when there is no baseline yet.
    """

    def detect(self, current: str, previous: Optional[str]) -> ChangeOutcome:
        if previous is None:
            outcome = ChangeOutcome(
                is_first_run=True,
                changed=False,
                current_fingerprint=current,
                previous_fingerprint=None,
            )
        else:
            outcome = ChangeOutcome(
                is_first_run=False,
                changed=current != previous,
                current_fingerprint=current,
                previous_fingerprint=previous,
            )

        logger.debug(
            "Compared fingerprints",
            current=current,
            previous=previous,
            is_first_run=outcome.is_first_run,
            changed=outcome.changed,
        )
        return outcome


def detect_change(current: str, previous: Optional[str]) -> ChangeOutcome:
    """Compare ``current`` against the stored ``previous`` fingerprint."""
    return ChangeDetector().detect(current, previous)
