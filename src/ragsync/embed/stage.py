"""Embedding stage: chunk a document and embed every chunk through the retry policy."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import threading

    from ragsync.chunk.base import BaseChunker
    from ragsync.config import ChunkConfig
    from ragsync.embed.base import BaseEmbedder
    from ragsync.resilience import RetryPolicy
    from ragsync.types import TextChunk

__all__ = ["EmbeddingStage"]

logger = logging.getLogger(__name__)


class EmbeddingStage:
    """Turns document text into embedded chunks, and queries into vectors.

    All-or-nothing per document: if any chunk fails terminally the exception
    propagates and none of the document's chunks are returned.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        chunker: BaseChunker,
        chunk_config: ChunkConfig,
        policy: RetryPolicy,
    ) -> None:
        self.embedder = embedder
        self.chunker = chunker
        self.chunk_config = chunk_config
        self.policy = policy

    def embed(
        self,
        full_text: str,
        document_reference: str,
        cancel: threading.Event | None = None,
    ) -> list[TextChunk]:
        """Chunk *full_text* and embed each non-empty chunk.

        Raises:
            ChunkError: If the chunk configuration is invalid.
            EmbeddingError: If a chunk still fails after retries.
            AuthorizationError: If the embedding service rejects credentials.
        """
        chunks = [
            c
            for c in self.chunker.chunk(full_text, document_reference, self.chunk_config)
            if c.content
        ]

        embedded: list[TextChunk] = []
        for chunk in chunks:
            vector = self.policy.call(self.embedder.embed, chunk.content, cancel=cancel)
            embedded.append(dataclasses.replace(chunk, embedding=tuple(vector)))

        logger.info("Embedded %d chunks for %s", len(embedded), document_reference)
        return embedded

    def embed_query(self, text: str, cancel: threading.Event | None = None) -> list[float]:
        """Embed a search query."""
        return self.policy.call(self.embedder.embed, text, cancel=cancel)
