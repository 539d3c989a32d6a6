"""
Candidate files for upload.

A CandidateFile carries the name and size needed for validation without
touching its content. Files on disk are opened only when the upload
request is built, and httpx streams them in chunks from the open handle.
"""

import io
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional


def format_file_size(size: int) -> str:
    """Format a byte count the way the upload status shows it."""
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


@dataclass(frozen=True)
class CandidateFile:
    """A file selected for upload, either on disk or already in memory."""

    name: str
    size: int
    path: Optional[Path] = None
    content: Optional[bytes] = None

    @classmethod
    def from_path(cls, path: Path) -> "CandidateFile":
        """Describe a file on disk.

        Raises:
            FileNotFoundError: If the path does not exist
        """
        path = Path(path)
        return cls(name=path.name, size=path.stat().st_size, path=path)

    @classmethod
    def from_bytes(cls, name: str, content: bytes) -> "CandidateFile":
        return cls(name=name, size=len(content), content=content)

    @property
    def extension(self) -> str:
        """Lower-cased suffix including the dot, or an empty string."""
        dot = self.name.rfind(".")
        return self.name[dot:].lower() if dot >= 0 else ""

    @property
    def formatted_size(self) -> str:
        return format_file_size(self.size)

    @contextmanager
    def open(self) -> Iterator[BinaryIO]:
        """Open the content for reading.

        Files on disk are not loaded into memory; the handle is closed on
        exit.

        Raises:
            OSError: If the file on disk can no longer be opened
            ValueError: If the file has neither a path nor in-memory content
        """
        if self.content is not None:
            yield io.BytesIO(self.content)
            return
        if self.path is None:
            raise ValueError(f"No content available for {self.name}")
        with open(self.path, "rb") as f:
            yield f
