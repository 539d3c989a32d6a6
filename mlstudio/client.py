"""
HTTP client for the remote analysis service.

Wraps the service endpoints in typed coroutines and owns every translation
from transport failures to client errors:

- ``httpx.TransportError`` (refused, unreachable, timeout) -> NetworkError
- non-2xx, ``success: false`` or a payload outside the contract -> ServiceError

Each call opens its own ``httpx.AsyncClient``; requests are stateless and
never retried here.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .config import ENDPOINTS, Settings
from .errors import NetworkError, ServiceError
from .files import CandidateFile
from .models import AlgorithmResult, AnalyzeResponse, DatasetMetadata, UploadResponse
from .shared.logger import get_logger

logger = get_logger(__name__)

UPLOAD_FAILED = "Upload failed"
ANALYSIS_FAILED = "Analysis failed"
COLUMNS_FAILED = "Failed to load columns"
DATASET_INFO_FAILED = "Failed to load dataset info"

_COLUMNS = TypeAdapter(List[str])


@dataclass(frozen=True)
class UploadResult:
    """Dataset reference and metadata assigned by the service."""

    reference: str
    metadata: DatasetMetadata
    original_filename: Optional[str] = None


def _server_error(response: httpx.Response, default: str) -> str:
    """Extract the ``error`` field of a failure body, else the default."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return default


def _json_body(response: httpx.Response, default: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise ServiceError(f"{default}: response is not valid JSON", response.status_code) from e


class RemoteClient:
    """Client for the remote upload/analysis service."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[httpx.Timeout] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Service root, e.g. ``http://localhost:5000``
            timeout: Transport timeouts; httpx defaults when omitted
            transport: Custom transport (mock or in-process ASGI app)
        """
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout if timeout is not None else httpx.Timeout(5.0)
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "RemoteClient":
        timeout = httpx.Timeout(settings.request_timeout, read=settings.read_timeout)
        return cls(settings.base_url, timeout=timeout, transport=transport)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                return await client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise NetworkError(f"Could not reach {self.base_url}: {e}") from e

    # ============= Health =============

    async def check_health(self) -> bool:
        """Probe the service. Never raises.

        Returns:
            True if ``/health`` answered 2xx with a JSON body
        """
        try:
            response = await self._request("GET", ENDPOINTS["HEALTH"])
        except NetworkError as e:
            logger.debug("Health check failed: %s", e)
            return False

        if not response.is_success:
            logger.debug("Health check returned HTTP %d", response.status_code)
            return False
        try:
            response.json()
        except ValueError:
            logger.debug("Health check returned a non-JSON body")
            return False
        return True

    # ============= Upload / Analyze =============

    async def upload(self, file: CandidateFile) -> UploadResult:
        """Send a dataset file as multipart field ``file``.

        The file is streamed from its open handle, never read whole.

        Raises:
            OSError: The file on disk could not be opened or read
            NetworkError: Service unreachable
            ServiceError: Rejected upload or malformed response
        """
        with file.open() as f:
            response = await self._request(
                "POST",
                ENDPOINTS["UPLOAD"],
                files={"file": (file.name, f)},
            )
        if not response.is_success:
            raise ServiceError(_server_error(response, UPLOAD_FAILED), response.status_code)

        body = _json_body(response, UPLOAD_FAILED)
        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("error") if isinstance(body, dict) else None
            raise ServiceError(message or UPLOAD_FAILED, response.status_code)

        try:
            parsed = UploadResponse.model_validate(body)
        except PydanticValidationError as e:
            raise ServiceError(f"{UPLOAD_FAILED}: malformed response ({e.error_count()} errors)") from e

        return UploadResult(
            reference=parsed.filename,
            metadata=parsed.info,
            original_filename=parsed.original_filename,
        )

    async def analyze(self, reference: str, algorithms: Iterable[str]) -> List[AlgorithmResult]:
        """Run the given algorithms against a stored dataset.

        Returns:
            Results in the order the algorithms were requested

        Raises:
            NetworkError: Service unreachable
            ServiceError: Rejected request or malformed response
        """
        response = await self._request(
            "POST",
            ENDPOINTS["ANALYZE"],
            json={"filename": reference, "algorithms": list(algorithms)},
        )
        if not response.is_success:
            raise ServiceError(_server_error(response, ANALYSIS_FAILED), response.status_code)

        body = _json_body(response, ANALYSIS_FAILED)
        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("error") if isinstance(body, dict) else None
            raise ServiceError(message or ANALYSIS_FAILED, response.status_code)

        try:
            parsed = AnalyzeResponse.model_validate(body)
        except PydanticValidationError as e:
            raise ServiceError(f"{ANALYSIS_FAILED}: malformed response ({e.error_count()} errors)") from e
        return list(parsed.results)

    # ============= Lookups =============

    async def get_columns(self, reference: str) -> List[str]:
        """Column names of a stored dataset."""
        response = await self._request("GET", f"{ENDPOINTS['GET_COLUMNS']}/{quote(reference, safe='')}")
        if not response.is_success:
            raise ServiceError(COLUMNS_FAILED, response.status_code)
        try:
            return _COLUMNS.validate_python(_json_body(response, COLUMNS_FAILED))
        except PydanticValidationError as e:
            raise ServiceError(f"{COLUMNS_FAILED}: malformed response") from e

    async def get_metadata(self, reference: str) -> DatasetMetadata:
        """Metadata of a stored dataset."""
        response = await self._request("GET", f"{ENDPOINTS['DATASET_INFO']}/{quote(reference, safe='')}")
        if not response.is_success:
            raise ServiceError(DATASET_INFO_FAILED, response.status_code)
        try:
            return DatasetMetadata.model_validate(_json_body(response, DATASET_INFO_FAILED))
        except PydanticValidationError as e:
            raise ServiceError(f"{DATASET_INFO_FAILED}: malformed response") from e
