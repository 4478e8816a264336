"""Chat completion providers."""

from ragsync.llm.base import BaseCompleter
from ragsync.llm.ollama import OllamaCompleter
from ragsync.llm.openai_compat import OpenAICompatCompleter
from ragsync.registry import default_registry

__all__ = ["BaseCompleter", "OllamaCompleter", "OpenAICompatCompleter"]

default_registry.register("llm", "ollama", lambda cfg: OllamaCompleter(cfg))
default_registry.register("llm", "openai", lambda cfg: OpenAICompatCompleter(cfg))
