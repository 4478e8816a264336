"""Chunking engine — fixed-size character windows with overlap."""

from ragsync.chunk.base import BaseChunker
from ragsync.chunk.window import WindowChunker

__all__ = ["BaseChunker", "WindowChunker"]
