"""
Application context for the ML Studio client.

Built once at startup and handed to every presentation component. Owns the
orchestration state (and through it the periodic health probe), both flows
and the outcome bus.

Usage:
    async with StudioContext.create() as studio:
        studio.bus.subscribe(render)
        await studio.upload.submit(CandidateFile.from_path(path))
        await studio.analysis.run(["random_forest", "clustering"])
"""

from datetime import timedelta
from typing import Optional

import httpx

from .analysis import AnalysisFlow
from .client import RemoteClient
from .config import Settings, load_settings
from .events import OutcomeBus
from .session_store import SessionStore
from .shared.logger import get_logger
from .state import OrchestrationState
from .upload import UploadFlow

logger = get_logger(__name__)


class StudioContext:
    """Wires settings, persistence, the remote client and the flows together."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        background_health_checks: bool = True,
    ):
        """
        Args:
            settings: Resolved client settings
            transport: Custom httpx transport for the remote client
            background_health_checks: Run the periodic probe while open
        """
        self.settings = settings
        self.bus = OutcomeBus()
        self.store = SessionStore(
            settings.session_dir,
            key=settings.session_key,
            ttl=timedelta(hours=settings.session_ttl_hours),
        )
        self.client = RemoteClient.from_settings(settings, transport=transport)
        self.state = OrchestrationState(
            self.store,
            self.client,
            bus=self.bus,
            health_interval=settings.health_interval_seconds,
        )
        self.upload = UploadFlow(
            self.state,
            max_file_size=settings.max_file_size,
            allowed_extensions=settings.allowed_extensions,
        )
        self.analysis = AnalysisFlow(self.state)
        self._background_health_checks = background_health_checks

    @classmethod
    def create(cls, **kwargs) -> "StudioContext":
        """Build a context from the resolved settings."""
        return cls(load_settings(), **kwargs)

    async def start(self) -> bool:
        """Restore the session, probe the service and start periodic probing.

        Returns:
            The connectivity flag after the first probe
        """
        logger.info("ML Studio initializing...")
        connected = await self.state.init()
        if self._background_health_checks:
            self.state.start_health_checks()
        logger.info("ML Studio ready")
        return connected

    async def close(self) -> None:
        await self.state.stop_health_checks()

    async def __aenter__(self) -> "StudioContext":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
