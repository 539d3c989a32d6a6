"""
Orchestration state for the ML Studio client.

Single source of truth for the active dataset (reference + metadata), the
connectivity flag and the two mutual-exclusion flags guarding uploads and
analyses. Owns the periodic health probe.

All mutation goes through the methods below; flows never touch the fields
directly.
"""

import asyncio
from enum import Enum
from typing import Any, Dict, List, Optional

from .client import RemoteClient
from .config import HEALTH_CHECK_INTERVAL
from .errors import PreconditionError, Precondition
from .events import Outcome, OutcomeBus, OutcomeType
from .models import DatasetMetadata
from .session_store import SessionStore
from .shared.logger import get_logger

logger = get_logger(__name__)


class Operation(str, Enum):
    """Operation kinds guarded by a mutual-exclusion flag."""

    UPLOAD = "upload"
    ANALYSIS = "analysis"


class OrchestrationState:
    """Dataset identity, operation flags and connectivity."""

    def __init__(
        self,
        store: SessionStore,
        client: RemoteClient,
        bus: Optional[OutcomeBus] = None,
        health_interval: float = HEALTH_CHECK_INTERVAL,
    ):
        """
        Args:
            store: Persistence for the session snapshot
            client: Remote service client used for health probes and lookups
            bus: Outcome bus; a private one is created when omitted
            health_interval: Seconds between background health probes
        """
        self._store = store
        self._client = client
        self._bus = bus or OutcomeBus()
        self._health_interval = health_interval

        self._reference: Optional[str] = None
        self._metadata: Optional[DatasetMetadata] = None
        self._flags: Dict[Operation, bool] = {op: False for op in Operation}
        self._connected = False
        self._probed = False
        self._probe_task: Optional[asyncio.Task] = None

    # ============= Read Access =============

    @property
    def client(self) -> RemoteClient:
        return self._client

    @property
    def bus(self) -> OutcomeBus:
        return self._bus

    @property
    def reference(self) -> Optional[str]:
        return self._reference

    @property
    def metadata(self) -> Optional[DatasetMetadata]:
        return self._metadata

    @property
    def has_dataset(self) -> bool:
        return self._reference is not None

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def uploading(self) -> bool:
        return self._flags[Operation.UPLOAD]

    @property
    def analyzing(self) -> bool:
        return self._flags[Operation.ANALYSIS]

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of the state for display."""
        return {
            "dataset": self._reference,
            "metadata": self._metadata.model_dump() if self._metadata else None,
            "connected": self._connected,
            "uploading": self.uploading,
            "analyzing": self.analyzing,
            "base_url": self._client.base_url,
        }

    # ============= Lifecycle =============

    async def init(self) -> bool:
        """Restore the saved session, then probe the service once.

        Returns:
            The connectivity flag after the probe
        """
        logger.info("Backend URL: %s", self._client.base_url)

        snapshot = self._store.load()
        if snapshot is not None:
            self._reference = snapshot.reference
            self._metadata = snapshot.metadata

        connected = await self.probe_connectivity()
        if connected and self.has_dataset:
            self._bus.emit(Outcome(
                type=OutcomeType.DATASET_RESTORED,
                data={"reference": self._reference, "metadata": self._metadata.model_dump()},
            ))
        return connected

    def start_health_checks(self) -> None:
        """Start the periodic health probe. No-op if already running."""
        if self._probe_task is not None and not self._probe_task.done():
            return
        self._probe_task = asyncio.create_task(self._health_loop(), name="mlstudio-health-probe")

    async def stop_health_checks(self) -> None:
        """Cancel the periodic health probe and wait for it to finish."""
        task, self._probe_task = self._probe_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    @property
    def health_checks_running(self) -> bool:
        return self._probe_task is not None and not self._probe_task.done()

    async def _health_loop(self) -> None:
        while True:
            await asyncio.sleep(self._health_interval)
            try:
                await self.probe_connectivity()
            except Exception as e:
                logger.error("Background health check failed: %s", e)

    # ============= Connectivity =============

    async def probe_connectivity(self) -> bool:
        """Probe ``/health`` and record the result. Last write wins."""
        connected = await self._client.check_health()
        changed = connected != self._connected or not self._probed
        self._connected = connected
        self._probed = True

        if changed:
            if connected:
                logger.info("Backend connected: %s", self._client.base_url)
            else:
                logger.warning("Backend not connected: %s", self._client.base_url)
            self._bus.emit(Outcome(
                type=OutcomeType.CONNECTIVITY_CHANGED,
                data={"connected": connected, "base_url": self._client.base_url},
            ))
        return connected

    # ============= Dataset =============

    def set_dataset(self, reference: str, metadata: DatasetMetadata) -> None:
        """Replace the active dataset and persist it.

        Raises:
            ValueError: If the reference is empty or the metadata is missing
        """
        if not reference:
            raise ValueError("Dataset reference must be a non-empty string")
        if not isinstance(metadata, DatasetMetadata):
            raise ValueError("Dataset metadata is required alongside a reference")

        self._reference = reference
        self._metadata = metadata
        self._store.save(self._store.snapshot(reference, metadata))
        self._bus.emit(Outcome(
            type=OutcomeType.DATASET_CHANGED,
            data={"reference": reference, "metadata": metadata.model_dump()},
        ))

    def reset(self) -> None:
        """Forget the active dataset and its saved session."""
        self._reference = None
        self._metadata = None
        self._store.clear()
        logger.info("State cleared")
        self._bus.emit(Outcome(type=OutcomeType.DATASET_CLEARED))

    async def refresh_dataset_info(self) -> DatasetMetadata:
        """Re-read the active dataset's metadata from the service.

        The fresh metadata is stored only if the active dataset did not
        change while the lookup was in flight.

        Raises:
            PreconditionError: If no dataset is active
            NetworkError, ServiceError: From the lookup
        """
        reference = self._require_dataset()
        metadata = await self._client.get_metadata(reference)
        if self._reference == reference:
            self.set_dataset(reference, metadata)
        return metadata

    async def dataset_columns(self, refresh: bool = False) -> List[str]:
        """Column names of the active dataset.

        Args:
            refresh: Ask the service instead of using the stored metadata
        """
        reference = self._require_dataset()
        if not refresh and self._metadata is not None:
            return list(self._metadata.columns_list)
        return await self._client.get_columns(reference)

    def _require_dataset(self) -> str:
        if self._reference is None:
            raise PreconditionError(Precondition.DATASET_PRESENT, "Please upload a dataset first!")
        return self._reference

    # ============= Operation Flags =============

    def acquire(self, operation: Operation) -> bool:
        """Set the flag for an operation kind.

        Returns:
            False if an operation of that kind is already in flight
        """
        if self._flags[operation]:
            return False
        self._flags[operation] = True
        return True

    def release(self, operation: Operation) -> None:
        self._flags[operation] = False
