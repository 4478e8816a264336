"""Vector index — abstract interface and ChromaDB persistent storage."""

from ragsync.store.base import BaseIndex
from ragsync.store.chroma import ChromaIndex

__all__ = ["BaseIndex", "ChromaIndex"]
