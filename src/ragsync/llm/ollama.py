"""Ollama chat completion provider using the /api/chat endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ragsync.exceptions import CompletionError
from ragsync.llm.base import BaseCompleter
from ragsync.transport import post_json
from ragsync.types import Completion

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ragsync.chat import ChatMessage
    from ragsync.config import RagsyncConfig

__all__ = ["OllamaCompleter"]

_DEFAULT_BASE_URL = "http://localhost:11434"


class OllamaCompleter(BaseCompleter):
    """Completion provider using a local Ollama instance (non-streaming)."""

    _DEFAULT_TIMEOUT = 300  # seconds

    def __init__(self, config: RagsyncConfig) -> None:
        self._model = config.llm.model
        self._base_url = (config.llm.base_url or _DEFAULT_BASE_URL).rstrip("/")
        self._temperature = config.llm.temperature

    def complete(self, messages: Sequence[ChatMessage]) -> Completion:
        data = post_json(
            f"{self._base_url}/api/chat",
            {
                "model": self._model,
                "messages": [m.to_dict() for m in messages],
                "stream": False,
                "options": {"temperature": self._temperature},
            },
            error_cls=CompletionError,
            service=f"Ollama at {self._base_url}",
            timeout=self._DEFAULT_TIMEOUT,
        )

        message = data.get("message")
        if not isinstance(message, dict) or "content" not in message:
            raise CompletionError("Ollama response has no message content")
        return Completion(text=str(message["content"] or ""), raw=data)
