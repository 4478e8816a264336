"""OpenAI-compatible chat completion provider (/v1/chat/completions)."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from ragsync.exceptions import CompletionError
from ragsync.llm.base import BaseCompleter
from ragsync.transport import post_json
from ragsync.types import Completion

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ragsync.chat import ChatMessage
    from ragsync.config import RagsyncConfig

__all__ = ["OpenAICompatCompleter"]

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAICompatCompleter(BaseCompleter):
    """Completion provider for any OpenAI-compatible chat endpoint.

    Config fields used::

        [llm]
        provider = "openai"
        model = "gpt-4o-mini"
        api_key_env = "OPENAI_API_KEY"
        base_url = ""                 # empty = https://api.openai.com/v1
        temperature = 0.0
    """

    _DEFAULT_TIMEOUT = 120  # seconds

    def __init__(self, config: RagsyncConfig) -> None:
        self._model = config.llm.model
        self._base_url = (config.llm.base_url or _DEFAULT_BASE_URL).rstrip("/")
        self._temperature = config.llm.temperature

        self._api_key: str | None = None
        if config.llm.api_key_env:
            self._api_key = os.environ.get(config.llm.api_key_env)
            if not self._api_key:
                logger.warning(
                    "API key env var %s is not set; requests may fail", config.llm.api_key_env
                )

    def complete(self, messages: Sequence[ChatMessage]) -> Completion:
        url = f"{self._base_url}/chat/completions"
        data = post_json(
            url,
            {
                "model": self._model,
                "messages": [m.to_dict() for m in messages],
                "temperature": self._temperature,
            },
            error_cls=CompletionError,
            service="Completion API",
            api_key=self._api_key,
            timeout=self._DEFAULT_TIMEOUT,
        )

        try:
            text = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise CompletionError(f"Unexpected response format from {url}: no message content") from e

        usage = data.get("usage") or {}
        logger.debug(
            "Completion from %s: %s prompt / %s completion tokens",
            self._model,
            usage.get("prompt_tokens", "?"),
            usage.get("completion_tokens", "?"),
        )
        return Completion(text=text, raw=data)
