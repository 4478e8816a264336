"""Ingestion pipeline for ragsync.

Per source: enumerate → (per document: extract → skip | embed → index) →
reconcile. Components are injected via the constructor so the pipeline is
fully testable with mock implementations.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ragsync.exceptions import (
    AuthorizationError,
    DocumentRejected,
    IndexNotReadyError,
    RagsyncError,
)

if TYPE_CHECKING:
    import threading
    from collections.abc import Sequence

    from ragsync.embed.stage import EmbeddingStage
    from ragsync.ledger import ChangeDetector
    from ragsync.sources.base import BaseDocumentSource
    from ragsync.sync import IndexSynchronizer
    from ragsync.types import DocumentInfo

__all__ = ["IngestReport", "IngestionPipeline", "SourceReport"]

logger = logging.getLogger(__name__)


@dataclass
class SourceReport:
    """Outcome of one ingestion pass over one source."""

    prefix: str
    processed: int = 0
    skipped: int = 0
    unsupported: int = 0
    rejected: int = 0
    failed: int = 0
    deleted_chunks: int = 0
    cancelled: bool = False
    error: str = ""
    seen: list[str] = field(default_factory=list)


@dataclass
class IngestReport:
    """Outcome of an ingestion run over several sources."""

    sources: list[SourceReport] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(s.processed for s in self.sources)

    @property
    def skipped(self) -> int:
        return sum(s.skipped for s in self.sources)

    @property
    def failed(self) -> int:
        return sum(s.failed for s in self.sources)

    @property
    def deleted_chunks(self) -> int:
        return sum(s.deleted_chunks for s in self.sources)

    @property
    def cancelled(self) -> bool:
        return any(s.cancelled for s in self.sources)


def _validate(doc: DocumentInfo | None) -> DocumentInfo:
    if doc is None:
        raise DocumentRejected("Source yielded no document")
    missing = [
        name
        for name, value in (
            ("source_prefix", doc.source_prefix),
            ("file_path", doc.file_path),
            ("stream", doc.stream),
            ("extractor", doc.extractor),
        )
        if value is None or value == ""
    ]
    if missing:
        raise DocumentRejected(f"Document {doc.document_reference!r} is missing {missing}")
    return doc


class IngestionPipeline:
    """Keeps the index in sync with a set of document sources.

    Usage::

        pipeline = IngestionPipeline(stage=stage, synchronizer=sync, detector=detector)
        report = pipeline.run([FileSystemSource(Path("docs"))], cancel=stop_event)
    """

    def __init__(
        self,
        stage: EmbeddingStage,
        synchronizer: IndexSynchronizer,
        detector: ChangeDetector,
    ) -> None:
        self.stage = stage
        self.synchronizer = synchronizer
        self.detector = detector

    def run(
        self,
        sources: Sequence[BaseDocumentSource],
        cancel: threading.Event | None = None,
        max_workers: int = 1,
    ) -> IngestReport:
        """Ingest every source and return a report.

        Sources run one after another unless *max_workers* > 1, in which
        case independent sources share a thread pool. A source that fails
        terminally is recorded in the report and the others continue.

        Raises:
            AuthorizationError: If any external service rejects the credentials.
        """
        logger.info("Processing %d document source(s)...", len(sources))

        if max_workers > 1 and len(sources) > 1:
            with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ragsync-source") as pool:
                futures = [pool.submit(self._run_source, s, cancel) for s in sources]
                reports = [f.result() for f in futures]
        else:
            reports = [self._run_source(s, cancel) for s in sources]

        report = IngestReport(sources=reports)
        logger.info(
            "Ingestion finished: %d processed, %d unchanged, %d failed, %d chunks deleted",
            report.processed,
            report.skipped,
            report.failed,
            report.deleted_chunks,
        )
        return report

    def _run_source(
        self,
        source: BaseDocumentSource,
        cancel: threading.Event | None,
    ) -> SourceReport:
        try:
            return self.ingest_source(source, cancel)
        except AuthorizationError:
            raise
        except RagsyncError as e:
            logger.error("Source %s failed: %s", source.prefix, e)
            return SourceReport(prefix=source.prefix, error=str(e))

    def ingest_source(
        self,
        source: BaseDocumentSource,
        cancel: threading.Event | None = None,
    ) -> SourceReport:
        """Run one full pass over *source*, then reconcile its index partition.

        Reconciliation runs even after cancellation, against the references
        seen so far. Documents not reached in a cancelled pass are therefore
        deleted from the index and re-ingested on the next full pass.
        """
        report = SourceReport(prefix=source.prefix)
        logger.info("Enumerating %s", source.prefix)

        for doc in source.iter_documents(cancel):
            self._ingest_document(doc, report, cancel)

            if cancel is not None and cancel.is_set():
                break

        if cancel is not None and cancel.is_set():
            report.cancelled = True
            logger.warning(
                "Ingestion of %s cancelled after %d document(s); reconciling against partial set",
                source.prefix,
                len(report.seen),
            )

        report.deleted_chunks = self.synchronizer.reconcile(source.prefix, report.seen, cancel)
        return report

    def _ingest_document(
        self,
        doc: DocumentInfo | None,
        report: SourceReport,
        cancel: threading.Event | None,
    ) -> None:
        try:
            doc = _validate(doc)
        except DocumentRejected as e:
            logger.warning("Rejected document: %s", e)
            report.rejected += 1
            return

        if doc.extractor is None or doc.stream is None or not doc.extractor.supported:
            logger.debug("Unsupported document type: %s", doc.file_path)
            report.unsupported += 1
            return

        reference = doc.document_reference
        report.seen.append(reference)

        try:
            full_text = doc.extractor.get_text(doc.stream, doc.file_path)
        except Exception as e:
            logger.warning("Unable to process file %s: %s", doc.file_path, e)
            report.failed += 1
            return

        if self.detector.should_skip(reference, full_text):
            logger.debug("Unchanged: %s", reference)
            report.skipped += 1
            return

        logger.info("Ingesting %s", reference)
        try:
            chunks = self.stage.embed(full_text, reference, cancel)
            self.synchronizer.ensure_indexed(chunks, cancel)
            self.synchronizer.prune_document(reference, [c.id for c in chunks], cancel)
        except (AuthorizationError, IndexNotReadyError):
            self.detector.forget([reference])
            raise
        except Exception as e:
            # The ledger already holds the new hash; drop it so the next run retries.
            self.detector.forget([reference])
            logger.error("Failed to ingest %s: %s", reference, e)
            report.failed += 1
            return
        except BaseException:
            # Interrupted mid-document (Ctrl-C); same rollback as a failure.
            self.detector.forget([reference])
            raise

        report.processed += 1
