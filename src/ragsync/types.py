"""Pipeline data contracts for ragsync.

Frozen dataclasses that flow between pipeline stages:
  DocumentInfo → text → list[TextChunk] → embedded TextChunk → indexed
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import IO, TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ragsync.extract.base import BaseExtractor

__all__ = [
    "Completion",
    "DocumentInfo",
    "TextChunk",
    "make_chunk_id",
]


def make_chunk_id() -> str:
    """Return a fresh, globally unique chunk ID."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class DocumentInfo:
    """One unit of content discovered by a document source.

    ``document_reference`` is the corpus-wide key: ``"<prefix>@<path>"``.
    """

    source_prefix: str
    file_path: str
    stream: IO[bytes] | None = None
    extractor: BaseExtractor | None = None

    @property
    def document_reference(self) -> str:
        return f"{self.source_prefix or ''}@{self.file_path or ''}"


@dataclass(frozen=True)
class TextChunk:
    """A contiguous slice of a document's text plus its embedding.

    ``embedding`` stays empty until the embedding stage fills it.
    """

    id: str
    document_reference: str
    content: str
    embedding: tuple[float, ...] = field(default_factory=tuple)

    @property
    def is_embedded(self) -> bool:
        return len(self.embedding) > 0


@dataclass(frozen=True)
class Completion:
    """Text returned by a completion service plus the decoded raw response."""

    text: str
    raw: dict[str, Any] = field(default_factory=dict)
