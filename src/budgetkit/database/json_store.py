"""Local JSON state file, the offline counterpart of browser storage."""

import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog

from budgetkit.database.base import Database
from budgetkit.database.serialization import dumps, loads, merge_state
from budgetkit.domain.entities import Store
from budgetkit.domain.errors import PersistenceError, ValidationError

logger = structlog.get_logger(__name__)


class JSONFileDatabase(Database):
    """Persist the whole store as one JSON document."""

    def __init__(self, state_path: str):
        """Initialize the state file backend.

        Args:
            state_path: Path to the JSON state file
        """
        self.state_path = Path(state_path)

    def connect(self) -> None:
        """Connect to the backend."""
        # Nothing to open; the file is read and written per call
        pass

    def disconnect(self) -> None:
        """Disconnect from the backend."""
        pass

    def initialize_schema(self) -> None:
        """Make sure the state directory exists."""
        try:
            self.state_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create state directory {self.state_path.parent}: {e}") from e

    def load_state(self) -> Optional[Store]:
        """Load the saved store, or None when no state file exists yet.

        Raises:
            PersistenceError: If the file cannot be read or does not hold a store
        """
        if not self.state_path.exists() or self.state_path.stat().st_size == 0:
            return None
        try:
            text = self.state_path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot read state file {self.state_path}: {e}") from e

        try:
            store, ignored = merge_state(Store(), loads(text))
        except ValidationError as e:
            raise PersistenceError(f"State file {self.state_path} is corrupt: {e}") from e
        if ignored:
            logger.warning("state_keys_ignored", path=str(self.state_path), keys=ignored)
        return store

    def save_state(self, store: Store) -> None:
        """Write the store atomically (temporary file, then rename)."""
        payload = dumps(store)
        tmp_path = None
        try:
            self.state_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.state_path.name}.", suffix=".tmp", dir=self.state_path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_path, self.state_path)
        except OSError as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            logger.error("state_save_failed", path=str(self.state_path), error=str(e))
            raise PersistenceError(f"Cannot write state file {self.state_path}: {e}") from e
        logger.debug("state_saved", path=str(self.state_path))
