"""
Outcome notifications for the presentation layer.

Flows and the orchestration state publish Outcome records on an OutcomeBus;
a presentation layer (the CLI, a web view) subscribes and renders them.
Nothing in the core depends on who is listening.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .shared.logger import get_logger

logger = get_logger(__name__)


class OutcomeType(str, Enum):
    """Types of outcome notifications."""

    # Connectivity
    CONNECTIVITY_CHANGED = "connectivity_changed"

    # Dataset lifecycle
    DATASET_RESTORED = "dataset_restored"
    DATASET_CHANGED = "dataset_changed"
    DATASET_CLEARED = "dataset_cleared"

    # Upload
    UPLOAD_STARTED = "upload_started"
    UPLOAD_SUCCEEDED = "upload_succeeded"
    UPLOAD_FAILED = "upload_failed"

    # Analysis
    ANALYSIS_STARTED = "analysis_started"
    ANALYSIS_SUCCEEDED = "analysis_succeeded"
    ANALYSIS_FAILED = "analysis_failed"


@dataclass
class Outcome:
    """A single notification."""

    type: OutcomeType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[str] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now().isoformat()

    @property
    def succeeded(self) -> bool:
        return self.type not in (OutcomeType.UPLOAD_FAILED, OutcomeType.ANALYSIS_FAILED)

    @property
    def message(self) -> Optional[str]:
        return self.data.get("message")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "data": self.data,
            "timestamp": self.timestamp,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


OutcomeCallback = Callable[[Outcome], None]


class OutcomeBus:
    """Synchronous fan-out of outcomes to subscribers."""

    def __init__(self):
        self._callbacks: List[OutcomeCallback] = []

    def subscribe(self, callback: OutcomeCallback) -> None:
        """Register a callback for every outcome."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unsubscribe(self, callback: OutcomeCallback) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def emit(self, outcome: Outcome) -> Outcome:
        """Deliver an outcome to all subscribers.

        A failing subscriber is logged and does not stop delivery.

        Returns:
            The outcome, for chaining
        """
        for callback in list(self._callbacks):
            try:
                callback(outcome)
            except Exception as e:
                logger.error("Error in outcome subscriber for %s: %s", outcome.type.value, e)
        return outcome
