"""Ollama embedding provider using the /api/embed endpoint."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ragsync.embed.base import BaseEmbedder
from ragsync.exceptions import EmbeddingError
from ragsync.transport import post_json

if TYPE_CHECKING:
    from ragsync.config import RagsyncConfig

__all__ = ["OllamaEmbedder"]

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "http://localhost:11434"


class OllamaEmbedder(BaseEmbedder):
    """Embedding provider using a local Ollama instance.

    Config fields used::

        [embedding]
        model = "nomic-embed-text"
        provider = "ollama"
        base_url = ""           # empty = http://localhost:11434
    """

    _DEFAULT_TIMEOUT = 120  # seconds

    def __init__(self, config: RagsyncConfig) -> None:
        self._model = config.embedding.model
        self._base_url = (config.embedding.base_url or _DEFAULT_BASE_URL).rstrip("/")
        self._dimension: int | None = None

    def embed(self, text: str) -> list[float]:
        url = f"{self._base_url}/api/embed"
        data = post_json(
            url,
            {"model": self._model, "input": [text]},
            error_cls=EmbeddingError,
            service=f"Ollama at {self._base_url}",
            timeout=self._DEFAULT_TIMEOUT,
        )

        embeddings = data.get("embeddings") or []
        if len(embeddings) != 1:
            raise EmbeddingError(f"Ollama returned {len(embeddings)} embeddings for 1 input")

        vector = [float(v) for v in embeddings[0]]
        if self._dimension is None:
            self._dimension = len(vector)
        return vector

    @property
    def dimension(self) -> int:
        if self._dimension is None:
            self._dimension = len(self.embed("dimension probe"))
        return self._dimension
