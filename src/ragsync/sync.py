"""Index synchronizer: keeps the vector index consistent with the document sources.

Three operations, each wrapped by a retry policy:

- ``ensure_indexed`` creates the index if needed and upserts a document's chunks.
- ``prune_document`` drops chunks left over from a previous version of a document.
- ``reconcile`` deletes chunks of documents a source no longer reports,
  a full per-source set difference run once per ingestion pass.
- ``search`` returns the nearest chunks for a query vector.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterable, Sequence

    from ragsync.ledger import ChangeDetector
    from ragsync.resilience import RetryPolicy
    from ragsync.store.base import BaseIndex
    from ragsync.types import TextChunk

__all__ = ["DEFAULT_TOP_K", "IndexSynchronizer"]

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3


class IndexSynchronizer:
    """Applies ingestion results to the index and reconciles deletions.

    Args:
        index: Vector index service.
        detector: Change detector whose ledger entries are dropped for deleted documents.
        admin_policy: Policy for existence checks and schema creation (short timeout).
        data_policy: Policy for upsert, listing, deletion and search.
    """

    def __init__(
        self,
        index: BaseIndex,
        detector: ChangeDetector,
        admin_policy: RetryPolicy,
        data_policy: RetryPolicy,
    ) -> None:
        self.index = index
        self.detector = detector
        self.admin_policy = admin_policy
        self.data_policy = data_policy

    def ensure_indexed(
        self,
        chunks: Sequence[TextChunk],
        cancel: threading.Event | None = None,
    ) -> None:
        """Create the index if absent, then upsert *chunks*. No-op for an empty list."""
        if not chunks:
            return
        self.admin_policy.call(self.index.ensure_schema, cancel=cancel)
        self.data_policy.call(self.index.upsert, chunks, cancel=cancel)

    def prune_document(
        self,
        document_reference: str,
        keep_ids: Iterable[str],
        cancel: threading.Event | None = None,
    ) -> int:
        """Delete chunks of *document_reference* left over from an earlier version.

        Called after a changed document was re-indexed: every chunk of the
        reference whose ID is not in *keep_ids* is removed.

        Returns:
            Number of chunks deleted.
        """
        if not self.admin_policy.call(self.index.exists, cancel=cancel):
            return 0

        keep = set(keep_ids)
        existing = self.data_policy.call(
            self.index.get_by_reference, document_reference, cancel=cancel
        )
        stale = [c.id for c in existing if c.id not in keep]
        if stale:
            self.data_policy.call(self.index.delete, stale, cancel=cancel)
            logger.info("Pruned %d outdated chunks of %s", len(stale), document_reference)
        return len(stale)

    def reconcile(
        self,
        source_prefix: str,
        current_references: Iterable[str],
        cancel: threading.Event | None = None,
    ) -> int:
        """Delete indexed chunks under *source_prefix* whose document is no longer current.

        Chunks of references in *current_references* are left untouched. The
        deleted references are also removed from the hash ledger.

        Returns:
            Number of chunks deleted.
        """
        if not self.admin_policy.call(self.index.exists, cancel=cancel):
            logger.debug("No index yet, nothing to reconcile for %s", source_prefix)
            return 0

        current = set(current_references)
        # Match on "<prefix>@" so a source never reconciles chunks of another
        # source whose prefix merely starts with the same characters.
        indexed = self.data_policy.call(
            self.index.get_by_prefix, f"{source_prefix}@", cancel=cancel
        )

        stale = [c for c in indexed if c.document_reference not in current]
        if not stale:
            logger.info("Reconciled %s: nothing to delete", source_prefix)
            return 0

        stale_refs = sorted({c.document_reference for c in stale})
        self.data_policy.call(self.index.delete, [c.id for c in stale], cancel=cancel)
        self.detector.forget(stale_refs)

        logger.info(
            "Reconciled %s: deleted %d chunks from %d removed document(s)",
            source_prefix,
            len(stale),
            len(stale_refs),
        )
        return len(stale)

    def search(
        self,
        query_vector: Sequence[float],
        k: int = DEFAULT_TOP_K,
        cancel: threading.Event | None = None,
    ) -> list[TextChunk]:
        """Return the *k* nearest chunks to *query_vector*.

        Raises:
            IndexNotReadyError: If nothing has been ingested yet.
        """
        return self.data_policy.call(self.index.search, query_vector, k, cancel=cancel)
