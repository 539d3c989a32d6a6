"""
ML Studio client package.

Client-side orchestration for a remote ML analysis service:
- Configuration (config.py)
- Session persistence (session_store.py)
- Remote service client (client.py)
- Orchestration state and health probing (state.py)
- Upload and analysis flows (upload.py, analysis.py)
- Result reduction (reducer.py)
- Outcome notifications (events.py)
- Application context (context.py)
"""

from .analysis import DEFAULT_ALGORITHMS, AnalysisFlow
from .client import RemoteClient, UploadResult
from .config import Settings, load_settings
from .context import StudioContext
from .errors import (
    NetworkError,
    Precondition,
    PreconditionError,
    ServiceError,
    StudioError,
    ValidationError,
)
from .events import Outcome, OutcomeBus, OutcomeType
from .files import CandidateFile
from .models import DatasetMetadata, ModelType, SessionSnapshot
from .reducer import ReducedResults, Winner, reduce_results
from .session_store import SessionStore
from .state import Operation, OrchestrationState
from .upload import UploadFlow

__all__ = [
    "StudioContext",
    "Settings",
    "load_settings",
    "SessionStore",
    "SessionSnapshot",
    "RemoteClient",
    "UploadResult",
    "OrchestrationState",
    "Operation",
    "UploadFlow",
    "AnalysisFlow",
    "DEFAULT_ALGORITHMS",
    "reduce_results",
    "ReducedResults",
    "Winner",
    "CandidateFile",
    "DatasetMetadata",
    "ModelType",
    "Outcome",
    "OutcomeBus",
    "OutcomeType",
    "StudioError",
    "ValidationError",
    "PreconditionError",
    "Precondition",
    "NetworkError",
    "ServiceError",
]
