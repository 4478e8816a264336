"""Embedding engine — abstract provider interface, concrete providers, and the embedding stage."""

from ragsync.embed.base import BaseEmbedder
from ragsync.embed.chromadb_embed import ChromaDBEmbedder
from ragsync.embed.ollama import OllamaEmbedder
from ragsync.embed.openai_compat import OpenAICompatEmbedder
from ragsync.embed.stage import EmbeddingStage
from ragsync.registry import default_registry

__all__ = [
    "BaseEmbedder",
    "ChromaDBEmbedder",
    "EmbeddingStage",
    "OllamaEmbedder",
    "OpenAICompatEmbedder",
]

# Register built-in embedding providers
default_registry.register("embedding", "ollama", lambda cfg: OllamaEmbedder(cfg))
default_registry.register("embedding", "openai", lambda cfg: OpenAICompatEmbedder(cfg))
default_registry.register("embedding", "chromadb", lambda cfg: ChromaDBEmbedder(cfg))
