"""
Session persistence for the ML Studio client.

Keeps one record ``{currentDataset, datasetInfo, timestamp}`` under a fixed
key so the active dataset survives a client restart. Records older than the
freshness window, or missing the dataset reference or metadata, are treated
as absent and removed.
"""

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from .config import SESSION_KEY, SESSION_TTL_HOURS
from .models import DatasetMetadata, SessionSnapshot
from .shared.logger import get_logger

logger = get_logger(__name__)


class SessionStore:
    """File-backed store for the session snapshot."""

    def __init__(
        self,
        storage_dir: Path,
        key: str = SESSION_KEY,
        ttl: timedelta = timedelta(hours=SESSION_TTL_HOURS),
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            storage_dir: Directory holding the record file
            key: Fixed session key; the record lives in ``<key>.json``
            ttl: Freshness window
            clock: Source of the current time
        """
        self._storage_dir = Path(storage_dir)
        self._path = self._storage_dir / f"{key}.json"
        self._ttl = ttl
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    def snapshot(self, reference: str, metadata: DatasetMetadata) -> SessionSnapshot:
        """Build a snapshot stamped with the current time."""
        return SessionSnapshot(reference=reference, metadata=metadata, timestamp=self._clock())

    def save(self, snapshot: SessionSnapshot) -> bool:
        """Write the snapshot, replacing any previous one.

        Failures are logged, never raised.

        Returns:
            True if the record was written
        """
        try:
            self._storage_dir.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(snapshot.to_record(), f, indent=2)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Failed to save session: %s", e)
            return False
        logger.debug("Session saved: %s", snapshot.reference)
        return True

    def load(self) -> Optional[SessionSnapshot]:
        """Read the snapshot if it is present, well-formed and fresh."""
        if not self._path.exists():
            return None

        try:
            with open(self._path, encoding="utf-8") as f:
                record = json.load(f)
        except OSError as e:
            logger.warning("Failed to load session: %s", e)
            return None
        except ValueError as e:
            logger.warning("Discarding unreadable session record: %s", e)
            self.clear()
            return None

        try:
            snapshot = SessionSnapshot.model_validate(record)
        except PydanticValidationError as e:
            logger.info("Discarding incomplete session record (%d errors)", e.error_count())
            self.clear()
            return None

        try:
            age = self._clock() - snapshot.timestamp
        except TypeError:
            # naive vs. aware timestamp
            logger.info("Discarding session record with incompatible timestamp")
            self.clear()
            return None
        if age > self._ttl:
            logger.info("Saved session expired (age %s)", age)
            self.clear()
            return None

        logger.info("Restored dataset: %s", snapshot.reference)
        return snapshot

    def clear(self) -> bool:
        """Remove the record. Safe to call when nothing is stored.

        Returns:
            True if no record remains
        """
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to clear session: %s", e)
            return False
        return True
