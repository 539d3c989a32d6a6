"""
Shared fixtures for the ML Studio client tests.

Unit tests run against a RemoteClient spy (AsyncMock) and a SessionStore
in tmp_path; nothing here opens a socket. The in-process fake service used
by the end-to-end tests lives in integration/conftest.py.
"""

import sys
from pathlib import Path
from typing import List
from unittest.mock import AsyncMock

import pytest

# main.py sits at the project root, outside the package
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from mlstudio.client import RemoteClient
from mlstudio.config import Settings
from mlstudio.events import Outcome, OutcomeBus
from mlstudio.models import DatasetMetadata
from mlstudio.session_store import SessionStore
from mlstudio.state import OrchestrationState

TEST_BASE_URL = "http://testserver"


# ============================================================================
# Pytest Hooks
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as running against the in-process fake backend",
    )
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow running",
    )


def pytest_collection_modifyitems(config, items):
    """Tag end-to-end tests so `-m "not integration"` runs unit tests only."""
    for item in items:
        if item.path.parent.name == "integration":
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)


# ============================================================================
# Shared Fixtures
# ============================================================================


@pytest.fixture
def sample_metadata() -> DatasetMetadata:
    return DatasetMetadata(
        rows=150,
        columns=5,
        columns_list=("sepal_length", "sepal_width", "petal_length", "petal_width", "species"),
        memory_usage="6.02 KB",
        duplicates_removed=1,
    )


@pytest.fixture
def other_metadata() -> DatasetMetadata:
    return DatasetMetadata(rows=10, columns=2, columns_list=("x", "y"), memory_usage="0.16 KB")


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated to a temporary session directory."""
    return Settings(api_url=TEST_BASE_URL, session_dir=tmp_path / "session")


@pytest.fixture
def store(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "session")


@pytest.fixture
def mock_client() -> AsyncMock:
    """RemoteClient spy with every coroutine replaced by an AsyncMock."""
    client = AsyncMock(spec=RemoteClient)
    client.base_url = TEST_BASE_URL
    client.check_health.return_value = True
    return client


@pytest.fixture
def outcomes() -> List[Outcome]:
    return []


@pytest.fixture
def bus(outcomes: List[Outcome]) -> OutcomeBus:
    """Outcome bus recording every emitted outcome into ``outcomes``."""
    bus = OutcomeBus()
    bus.subscribe(outcomes.append)
    return bus


@pytest.fixture
def state(store: SessionStore, mock_client: AsyncMock, bus: OutcomeBus) -> OrchestrationState:
    return OrchestrationState(store, mock_client, bus=bus, health_interval=0.01)
