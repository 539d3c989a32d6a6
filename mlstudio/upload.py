"""
Upload flow: validate a candidate file, send it, record the new dataset.

Validation runs before any network call and stops at the first failure:
extension, size, connectivity. While an upload is in flight further
submissions are ignored, not queued.
"""

from typing import Iterable, Optional

from .config import ALLOWED_FILE_TYPES, MAX_FILE_SIZE
from .errors import NetworkError, ServiceError, ValidationError
from .events import Outcome, OutcomeType
from .files import CandidateFile
from .shared.logger import get_logger
from .state import Operation, OrchestrationState

logger = get_logger(__name__)


class UploadFlow:
    """Submits dataset files to the remote service."""

    def __init__(
        self,
        state: OrchestrationState,
        max_file_size: int = MAX_FILE_SIZE,
        allowed_extensions: Iterable[str] = ALLOWED_FILE_TYPES,
    ):
        self._state = state
        self._max_file_size = max_file_size
        self._allowed_extensions = tuple(ext.lower() for ext in allowed_extensions)

    def validate(self, file: CandidateFile) -> None:
        """Check a file before upload.

        Raises:
            ValidationError: On the first failing check
        """
        if not file.name.lower().endswith(self._allowed_extensions):
            allowed = ", ".join(ext.lstrip(".").upper() for ext in self._allowed_extensions)
            raise ValidationError(
                f"Invalid file type '{file.extension or file.name}'. "
                f"Please upload {allowed} files only."
            )
        if file.size > self._max_file_size:
            limit_mb = self._max_file_size // (1024 * 1024)
            raise ValidationError(f"File size exceeds {limit_mb}MB limit ({file.formatted_size}).")
        if not self._state.connected:
            raise ValidationError(
                f"Backend server is not connected. Please start the server at {self._state.client.base_url}."
            )

    async def submit(self, file: CandidateFile) -> Optional[Outcome]:
        """Validate and upload a file.

        Returns:
            The success or failure outcome, or None if another upload was
            already in flight

        Raises:
            ValidationError: If the file or the connection state is rejected
        """
        self.validate(file)

        if not self._state.acquire(Operation.UPLOAD):
            logger.debug("Upload already in progress, ignoring %s", file.name)
            return None

        bus = self._state.bus
        try:
            logger.info("Uploading %s (%s)", file.name, file.formatted_size)
            bus.emit(Outcome(
                type=OutcomeType.UPLOAD_STARTED,
                data={"filename": file.name, "size": file.formatted_size},
            ))

            try:
                result = await self._state.client.upload(file)
            except (NetworkError, ServiceError) as e:
                return self._failed(file, e.message)
            except OSError as e:
                return self._failed(file, f"Could not read {file.name}: {e.strerror or e}")

            self._state.set_dataset(result.reference, result.metadata)
            logger.info("File uploaded successfully! %d rows loaded.", result.metadata.rows)
            return bus.emit(Outcome(
                type=OutcomeType.UPLOAD_SUCCEEDED,
                data={
                    "reference": result.reference,
                    "filename": result.original_filename or file.name,
                    "size": file.formatted_size,
                    "metadata": result.metadata.model_dump(),
                },
            ))
        finally:
            self._state.release(Operation.UPLOAD)

    def _failed(self, file: CandidateFile, message: str) -> Outcome:
        logger.error("Upload failed: %s", message)
        return self._state.bus.emit(Outcome(
            type=OutcomeType.UPLOAD_FAILED,
            data={"filename": file.name, "message": message},
        ))
