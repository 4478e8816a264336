"""Fixed-size sliding window chunker.

Windows start at ``0, stride, 2 * stride, ...`` where
``stride = chunk_size - overlap``. The last window is the first one that
reaches the end of the text, so consecutive windows always overlap by
exactly ``overlap`` characters and together cover the whole text.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ragsync.chunk.base import BaseChunker
from ragsync.exceptions import ChunkError
from ragsync.types import TextChunk, make_chunk_id

if TYPE_CHECKING:
    from ragsync.config import ChunkConfig

__all__ = ["WindowChunker", "window_bounds"]

logger = logging.getLogger(__name__)


def window_bounds(length: int, chunk_size: int, overlap: int) -> list[tuple[int, int]]:
    """Return ``(start, end)`` offsets of every window over a text of *length*.

    Raises:
        ChunkError: If ``chunk_size < 1`` or ``overlap`` is outside
            ``[0, chunk_size)``. Such settings would give a stride below one.
    """
    if chunk_size < 1:
        raise ChunkError(f"chunk_size must be >= 1, got {chunk_size}")
    if overlap < 0 or overlap >= chunk_size:
        raise ChunkError(
            f"overlap must satisfy 0 <= overlap < chunk_size, "
            f"got overlap={overlap}, chunk_size={chunk_size}"
        )

    stride = chunk_size - overlap
    bounds: list[tuple[int, int]] = []
    start = 0
    while start < length:
        end = min(start + chunk_size, length)
        bounds.append((start, end))
        if end == length:
            break
        start += stride
    return bounds


class WindowChunker(BaseChunker):
    """Split text into overlapping windows of ``config.chunk_size`` characters.

    Usage::

        chunker = WindowChunker()
        chunks = chunker.chunk(text, "host:FileSystem@/docs/a.txt", ChunkConfig(500, 50))
    """

    def chunk(
        self,
        full_text: str,
        document_reference: str,
        config: ChunkConfig,
    ) -> list[TextChunk]:
        bounds = window_bounds(len(full_text or ""), config.chunk_size, config.overlap)
        chunks = [
            TextChunk(
                id=make_chunk_id(),
                document_reference=document_reference,
                content=full_text[start:end],
            )
            for start, end in bounds
        ]
        logger.debug(
            "Chunked %s into %d windows (size=%d, overlap=%d)",
            document_reference,
            len(chunks),
            config.chunk_size,
            config.overlap,
        )
        return chunks
