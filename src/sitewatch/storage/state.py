"""JSON file persistence for the check baseline."""

import json
from pathlib import Path
from typing import Optional, Union

from ..utils.logging import get_structured_logger
from .types import CheckState, StateError, StorageError

logger = get_structured_logger(__name__)

DEFAULT_STATE_PATH = Path("./data/state.json")


class StateStore:
    """Loads and saves one CheckState record in a JSON file.

    Each monitored target gets its own store; nothing here is shared between
    instances.
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_STATE_PATH):
        self.path = Path(path)

    def load(self) -> Optional[CheckState]:
        """Return the stored record, or None when there is no usable baseline.

        A missing, unreadable or corrupt file is treated exactly like a first
        run.
        """
        if not self.path.exists():
            logger.info("No previous state found", path=str(self.path))
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return CheckState.from_dict(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, StateError) as e:
            logger.warning(
                "Ignoring unusable state file",
                path=str(self.path),
                error=str(e),
            )
            return None

    def load_fingerprint(self) -> Optional[str]:
        """Return only the stored fingerprint."""
        state = self.load()
        return state.fingerprint if state else None

    def save(self, state: CheckState) -> None:
        """Overwrite the stored record."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(state.to_dict(), indent=2) + "\n", encoding="utf-8"
            )
        except OSError as e:
            raise StorageError(f"Failed to write state file {self.path}: {e}") from e

        logger.info(
            "Saved state",
            path=str(self.path),
            fingerprint=state.fingerprint,
            url=state.url,
        )
