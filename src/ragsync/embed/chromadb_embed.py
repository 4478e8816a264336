"""ChromaDB built-in embedding provider using ONNX runtime.

Runs ``all-MiniLM-L6-v2`` locally through ChromaDB, already a project
dependency. No server, no API key. Model is auto-downloaded on first use.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chromadb.utils.embedding_functions import DefaultEmbeddingFunction

from ragsync.embed.base import BaseEmbedder
from ragsync.exceptions import EmbeddingError

if TYPE_CHECKING:
    from ragsync.config import RagsyncConfig

__all__ = ["ChromaDBEmbedder"]

logger = logging.getLogger(__name__)


class ChromaDBEmbedder(BaseEmbedder):
    """Embedding provider using ChromaDB's default ONNX embedding function (384 dims)."""

    _FIXED_MODEL = "all-MiniLM-L6-v2"

    def __init__(self, config: RagsyncConfig) -> None:
        if config.embedding.model and config.embedding.model != self._FIXED_MODEL:
            logger.warning(
                "ChromaDB provider only supports %s, ignoring model=%r",
                self._FIXED_MODEL,
                config.embedding.model,
            )

        try:
            self._ef = DefaultEmbeddingFunction()
        except Exception as e:
            raise EmbeddingError(f"Failed to initialize ChromaDB embedding function: {e}") from e

        self._dimension: int | None = None
        logger.info("ChromaDBEmbedder initialized (ONNX %s)", self._FIXED_MODEL)

    def embed(self, text: str) -> list[float]:
        try:
            vectors = self._ef([text])
        except Exception as e:
            raise EmbeddingError(f"ChromaDB embedding failed: {e}") from e

        if vectors is None or len(vectors) != 1:
            raise EmbeddingError("ChromaDB returned unexpected result for single input")

        vector = [float(v) for v in vectors[0]]
        if self._dimension is None:
            self._dimension = len(vector)
        return vector

    @property
    def dimension(self) -> int:
        """Return the dimensionality of the embedding vectors (384 for MiniLM)."""
        if self._dimension is None:
            self._dimension = len(self.embed("dimension probe"))
        return self._dimension
