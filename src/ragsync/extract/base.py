"""Abstract base class for document-type text extractors."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import PurePath
from typing import IO

from ragsync.exceptions import ExtractionError

__all__ = ["BaseExtractor", "UnsupportedExtractor"]

logger = logging.getLogger(__name__)

MAX_DOCUMENT_SIZE: int = 50 * 1024 * 1024  # 50 MB


class BaseExtractor(ABC):
    """Base class for all document-type extractors.

    Subclasses implement ``get_text`` and ``supported_extensions``.
    The ``can_process`` helper checks file extension membership.
    """

    #: ``False`` only for the distinguished unsupported extractor.
    supported: bool = True

    @abstractmethod
    def get_text(self, stream: IO[bytes], locator: str) -> str:
        """Extract plain text from a document.

        Args:
            stream: Readable binary stream with the document bytes.
            locator: Path or URL of the document, used for messages.

        Returns:
            Extracted text.

        Raises:
            ExtractionError: If the document cannot be read or decoded.
        """

    @abstractmethod
    def supported_extensions(self) -> frozenset[str]:
        """Return the set of file extensions this extractor handles, e.g. ``{".pdf"}``."""

    def can_process(self, locator: str) -> bool:
        """Check whether this extractor can handle the given path or URL."""
        return PurePath(locator).suffix.lower() in self.supported_extensions()

    @staticmethod
    def read_bytes(stream: IO[bytes], locator: str, max_size: int = MAX_DOCUMENT_SIZE) -> bytes:
        """Read the whole stream, enforcing a size limit."""
        try:
            data = stream.read(max_size + 1)
        except OSError as e:
            raise ExtractionError(f"Cannot read {locator}: {e}") from e
        if len(data) > max_size:
            raise ExtractionError(f"{locator} exceeds maximum size ({max_size} bytes)")
        return data


class UnsupportedExtractor(BaseExtractor):
    """Stand-in for document types ragsync cannot read. Documents using it are skipped."""

    supported = False

    def get_text(self, stream: IO[bytes], locator: str) -> str:
        raise ExtractionError(f"Unsupported document type: {locator}")

    def supported_extensions(self) -> frozenset[str]:
        return frozenset()
