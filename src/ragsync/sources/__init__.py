"""Document sources — enumerate documents to ingest."""

from ragsync.sources.base import BaseDocumentSource
from ragsync.sources.filesystem import FileSystemSource

__all__ = ["BaseDocumentSource", "FileSystemSource"]
