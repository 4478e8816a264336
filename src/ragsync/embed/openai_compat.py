"""OpenAI-compatible embedding provider.

Works with any server implementing the OpenAI /v1/embeddings API:
OpenAI, Azure OpenAI behind a proxy, LiteLLM proxy, vLLM, Ollama (OpenAI-compat mode), etc.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from ragsync.embed.base import BaseEmbedder
from ragsync.exceptions import EmbeddingError
from ragsync.transport import post_json

if TYPE_CHECKING:
    from ragsync.config import RagsyncConfig

__all__ = ["OpenAICompatEmbedder"]

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAICompatEmbedder(BaseEmbedder):
    """Embedding provider using any OpenAI-compatible /v1/embeddings endpoint.

    Supports both cloud APIs (with API key) and local servers (without API key).

    Config fields used::

        [embedding]
        model = "text-embedding-3-small"
        provider = "openai"
        api_key_env = "OPENAI_API_KEY"   # env var name; empty = no auth
        base_url = ""                     # empty = https://api.openai.com/v1
    """

    _DEFAULT_TIMEOUT = 120  # seconds

    def __init__(self, config: RagsyncConfig) -> None:
        self._model = config.embedding.model
        self._base_url = (config.embedding.base_url or _DEFAULT_BASE_URL).rstrip("/")
        self._dimension: int | None = None

        self._api_key: str | None = None
        if config.embedding.api_key_env:
            self._api_key = os.environ.get(config.embedding.api_key_env)
            if not self._api_key:
                logger.warning(
                    "API key env var %s is not set; requests may fail",
                    config.embedding.api_key_env,
                )

    def embed(self, text: str) -> list[float]:
        """Call the /v1/embeddings endpoint with *text* as the sole input.

        Raises:
            EmbeddingError: On connection, API or response format errors.
            AuthorizationError: On HTTP 401/403.
        """
        url = f"{self._base_url}/embeddings"
        data = post_json(
            url,
            {"model": self._model, "input": [text]},
            error_cls=EmbeddingError,
            service="Embedding API",
            api_key=self._api_key,
            timeout=self._DEFAULT_TIMEOUT,
        )

        try:
            vector = [float(v) for v in data["data"][0]["embedding"]]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise EmbeddingError(
                f"Unexpected response format from {url}: missing 'embedding' field"
            ) from e

        if self._dimension is None:
            self._dimension = len(vector)
        return vector

    @property
    def dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Warning:
            First access makes a network call to probe the model.
        """
        if self._dimension is None:
            self._dimension = len(self.embed("dimension probe"))
        return self._dimension
