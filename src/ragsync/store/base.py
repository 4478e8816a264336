"""Abstract base class for vector indexes."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ragsync.types import TextChunk

__all__ = ["BaseIndex"]

logger = logging.getLogger(__name__)


class BaseIndex(ABC):
    """Base class for all vector indexes.

    Subclasses persist embedded chunks keyed by chunk ID and support
    nearest-neighbour search. Retry and timeout handling live in the
    synchronizer, not here.
    """

    @abstractmethod
    def exists(self) -> bool:
        """Return whether the index has been created."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create the index if it does not exist. Idempotent.

        Raises:
            StoreError: If creation fails.
        """

    @abstractmethod
    def upsert(self, chunks: Sequence[TextChunk]) -> int:
        """Merge-or-insert chunks keyed by ``chunk.id``.

        Returns:
            Number of chunks written.

        Raises:
            IndexNotReadyError: If the index does not exist.
            StoreError: If the write fails.
        """

    @abstractmethod
    def delete(self, chunk_ids: Sequence[str]) -> int:
        """Delete chunks by ID in one batch.

        Returns:
            Number of IDs submitted for deletion.

        Raises:
            StoreError: If deletion fails.
        """

    @abstractmethod
    def get_by_prefix(self, source_prefix: str) -> list[TextChunk]:
        """Return ID and reference of every chunk whose reference starts with *source_prefix*.

        Content and embeddings may be left empty.

        Raises:
            IndexNotReadyError: If the index does not exist.
            StoreError: If the query fails.
        """

    @abstractmethod
    def get_by_reference(self, document_reference: str) -> list[TextChunk]:
        """Return ID and reference of every chunk of exactly *document_reference*.

        Raises:
            IndexNotReadyError: If the index does not exist.
            StoreError: If the query fails.
        """

    @abstractmethod
    def search(self, query_embedding: Sequence[float], k: int = 3) -> list[TextChunk]:
        """Return up to *k* nearest chunks with content populated.

        Raises:
            IndexNotReadyError: If the index does not exist.
            StoreError: If the search fails.
        """

    @abstractmethod
    def count(self) -> int:
        """Return the total number of chunks in the index (0 if it does not exist)."""
