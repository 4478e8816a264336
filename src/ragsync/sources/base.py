"""Abstract base class for document sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterator

    from ragsync.types import DocumentInfo

__all__ = ["BaseDocumentSource"]


class BaseDocumentSource(ABC):
    """A place documents come from: a directory tree, a website, a bucket.

    ``prefix`` must be stable across runs. It partitions the index for
    reconciliation, so two sources must never share a prefix.
    """

    @property
    @abstractmethod
    def prefix(self) -> str:
        """Stable identifier of this source."""

    @abstractmethod
    def iter_documents(self, cancel: threading.Event | None = None) -> Iterator[DocumentInfo]:
        """Lazily yield the documents currently present in the source.

        A yielded document's stream is only valid until the next item is
        requested. Implementations stop early once *cancel* is set.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.prefix!r})"
