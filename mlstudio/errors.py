"""
Error taxonomy for the ML Studio client.

- ValidationError: bad input caught before any network call
- PreconditionError: an analysis request issued in the wrong state
- NetworkError: the service could not be reached
- ServiceError: the service answered, but not with a usable success
"""

from enum import Enum
from typing import Optional


class StudioError(Exception):
    """Base class for every error raised by the client."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StudioError):
    """Input rejected before contacting the service."""


class Precondition(str, Enum):
    """Checks evaluated before an analysis request, in evaluation order."""

    DATASET_PRESENT = "dataset_present"
    CONNECTED = "connected"
    NOT_ANALYZING = "not_analyzing"
    ALGORITHMS_SELECTED = "algorithms_selected"


class PreconditionError(ValidationError):
    """An analysis precondition failed."""

    def __init__(self, precondition: Precondition, message: str):
        super().__init__(message)
        self.precondition = precondition


class NetworkError(StudioError):
    """Transport failure: unreachable service, refused connection or timeout."""


class ServiceError(StudioError):
    """Non-success response or a payload that does not match the contract."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
