"""Abstract base class for chunking strategies."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ragsync.config import ChunkConfig
    from ragsync.types import TextChunk

__all__ = ["BaseChunker"]

logger = logging.getLogger(__name__)


class BaseChunker(ABC):
    """Base class for all chunking strategies.

    Subclasses split a document's text into a list of ``TextChunk`` objects
    with empty embeddings.
    """

    @abstractmethod
    def chunk(
        self,
        full_text: str,
        document_reference: str,
        config: ChunkConfig,
    ) -> list[TextChunk]:
        """Split document text into chunks.

        Args:
            full_text: Extracted text of one document.
            document_reference: Reference every chunk points back to.
            config: Chunk size and overlap, passed explicitly per call.

        Returns:
            List of chunks in document order.

        Raises:
            ChunkError: If the configuration is invalid.
        """
