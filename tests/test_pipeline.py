"""Tests for ragsync.pipeline — ingestion runs against in-memory fakes."""

from __future__ import annotations

import io
import threading

import pytest

from ragsync.exceptions import AuthorizationError, EmbeddingError, ExtractionError
from ragsync.extract import TextExtractor, UnsupportedExtractor
from ragsync.extract.base import BaseExtractor
from ragsync.ledger import compute_hash
from ragsync.pipeline import IngestionPipeline, IngestReport, SourceReport
from ragsync.sources.base import BaseDocumentSource
from ragsync.types import DocumentInfo

_PREFIX = "host:FileSystem:/docs"


def _ref(path: str) -> str:
    return f"{_PREFIX}@{path}"


class _BrokenExtractor(BaseExtractor):
    def get_text(self, stream, locator: str) -> str:
        raise ExtractionError(f"corrupt: {locator}")

    def supported_extensions(self) -> frozenset[str]:
        return frozenset({".bin"})


class _ScriptedSource(BaseDocumentSource):
    """Yields a fixed list of (possibly invalid) documents."""

    def __init__(self, docs: list[DocumentInfo | None]) -> None:
        self.docs = docs

    @property
    def prefix(self) -> str:
        return _PREFIX

    def iter_documents(self, cancel=None):
        yield from self.docs


class _FailingSource(BaseDocumentSource):
    @property
    def prefix(self) -> str:
        return "broken"

    def iter_documents(self, cancel=None):
        raise ExtractionError("cannot list source")
        yield  # pragma: no cover


def _doc(path: str, text: str, extractor: BaseExtractor | None = None) -> DocumentInfo:
    return DocumentInfo(
        source_prefix=_PREFIX,
        file_path=path,
        stream=io.BytesIO(text.encode("utf-8")),
        extractor=extractor or TextExtractor(),
    )


class TestIngestSource:
    def test_first_run_indexes_everything(
        self, pipeline: IngestionPipeline, make_source, index, ledger
    ):
        source = make_source(_PREFIX, {"/docs/a.txt": "Test document text", "/docs/b.txt": "bravo"})
        report = pipeline.ingest_source(source)

        assert report.processed == 2
        assert report.skipped == 0
        assert index.count() == 3
        assert index.references() == {_ref("/docs/a.txt"), _ref("/docs/b.txt")}
        assert ledger.get(_ref("/docs/a.txt")).hash == compute_hash("Test document text")

    def test_unchanged_documents_skipped(
        self, pipeline: IngestionPipeline, make_source, embedder
    ):
        source = make_source(_PREFIX, {"/docs/a.txt": "Test document text"})
        pipeline.ingest_source(source)
        calls_after_first = len(embedder.calls)

        report = pipeline.ingest_source(source)
        assert report.skipped == 1
        assert report.processed == 0
        assert len(embedder.calls) == calls_after_first

    def test_second_run_leaves_index_unchanged(
        self, pipeline: IngestionPipeline, make_source, index
    ):
        source = make_source(_PREFIX, {"/docs/a.txt": "Test document text", "/docs/b.txt": "bravo"})
        pipeline.ingest_source(source)
        before = dict(index.chunks)

        pipeline.ingest_source(source)
        assert index.chunks == before

    def test_changed_document_reembedded_and_old_chunks_removed(
        self, pipeline: IngestionPipeline, make_source, index
    ):
        source = make_source(_PREFIX, {"/docs/a.txt": "Test document text"})
        pipeline.ingest_source(source)
        old_ids = set(index.chunks)

        source.files["/docs/a.txt"] = "Test document Text"
        report = pipeline.ingest_source(source)

        assert report.processed == 1
        assert not old_ids & set(index.chunks)
        assert sorted(c.content for c in index.chunks.values()) == ["Test docu", "ment Text"]

    def test_removed_document_deleted(
        self, pipeline: IngestionPipeline, make_source, index, ledger
    ):
        source = make_source(_PREFIX, {"/docs/a.txt": "Test document text", "/docs/b.txt": "bravo"})
        pipeline.ingest_source(source)

        del source.files["/docs/b.txt"]
        report = pipeline.ingest_source(source)

        assert report.deleted_chunks == 1
        assert index.references() == {_ref("/docs/a.txt")}
        assert ledger.references() == [_ref("/docs/a.txt")]

    def test_reappearing_document_reindexed(
        self, pipeline: IngestionPipeline, make_source, index
    ):
        source = make_source(_PREFIX, {"/docs/a.txt": "alpha"})
        pipeline.ingest_source(source)
        source.files.clear()
        pipeline.ingest_source(source)
        source.files["/docs/a.txt"] = "alpha"

        report = pipeline.ingest_source(source)
        assert report.processed == 1
        assert index.references() == {_ref("/docs/a.txt")}

    def test_empty_document_recorded_without_chunks(
        self, pipeline: IngestionPipeline, make_source, index
    ):
        source = make_source(_PREFIX, {"/docs/empty.txt": ""})
        report = pipeline.ingest_source(source)
        assert report.processed == 1
        assert index.count() == 0

        assert pipeline.ingest_source(source).skipped == 1

    def test_other_source_untouched(self, pipeline: IngestionPipeline, make_source, index):
        pipeline.ingest_source(make_source("other", {"/x.txt": "xray"}))
        pipeline.ingest_source(make_source(_PREFIX, {}))
        assert index.references() == {"other@/x.txt"}


class TestDocumentFailures:
    def test_invalid_documents_rejected(self, pipeline: IngestionPipeline, index):
        docs = [
            None,
            DocumentInfo(source_prefix=_PREFIX, file_path="/docs/x.txt", stream=None,
                         extractor=TextExtractor()),
            DocumentInfo(source_prefix=_PREFIX, file_path="", stream=io.BytesIO(b"x"),
                         extractor=TextExtractor()),
            _doc("/docs/ok.txt", "fine"),
        ]
        report = pipeline.ingest_source(_ScriptedSource(docs))
        assert report.rejected == 3
        assert report.processed == 1
        assert index.references() == {_ref("/docs/ok.txt")}

    def test_unsupported_documents_skipped(self, pipeline: IngestionPipeline, embedder):
        docs = [_doc("/docs/image.png", "binary", UnsupportedExtractor())]
        report = pipeline.ingest_source(_ScriptedSource(docs))
        assert report.unsupported == 1
        assert report.seen == []
        assert embedder.calls == []

    def test_extraction_failure_keeps_existing_chunks(
        self, pipeline: IngestionPipeline, index
    ):
        pipeline.ingest_source(_ScriptedSource([_doc("/docs/a.bin", "alpha")]))
        assert index.count() == 1

        report = pipeline.ingest_source(
            _ScriptedSource([_doc("/docs/a.bin", "alpha", _BrokenExtractor())])
        )
        assert report.failed == 1
        assert report.deleted_chunks == 0
        assert index.count() == 1

    def test_embedding_failure_forgets_hash(
        self, pipeline: IngestionPipeline, make_source, embedder, ledger, index
    ):
        source = make_source(_PREFIX, {"/docs/a.txt": "Test document text", "/docs/b.txt": "bravo"})
        embedder.fail_on = {"ment text"}

        report = pipeline.ingest_source(source)
        assert report.failed == 1
        assert report.processed == 1
        assert ledger.get(_ref("/docs/a.txt")) is None
        assert index.references() == {_ref("/docs/b.txt")}

        embedder.fail_on = set()
        report = pipeline.ingest_source(source)
        assert report.processed == 1
        assert report.skipped == 1
        assert index.references() == {_ref("/docs/a.txt"), _ref("/docs/b.txt")}

    def test_authorization_error_propagates(
        self, pipeline: IngestionPipeline, make_source, embedder, ledger
    ):
        embedder.auth_failure = True
        with pytest.raises(AuthorizationError):
            pipeline.run([make_source(_PREFIX, {"/docs/a.txt": "alpha"})])
        assert ledger.get(_ref("/docs/a.txt")) is None


class TestCancellation:
    def test_stops_after_current_document(
        self, pipeline: IngestionPipeline, make_source, embedder
    ):
        cancel = threading.Event()
        original = embedder.embed

        def embed_then_cancel(text: str) -> list[float]:
            cancel.set()
            return original(text)

        embedder.embed = embed_then_cancel
        source = make_source(_PREFIX, {"/docs/a.txt": "alpha", "/docs/b.txt": "bravo"})
        report = pipeline.ingest_source(source, cancel)

        assert report.cancelled is True
        assert report.processed == 1
        assert report.seen == [_ref("/docs/a.txt")]

    def test_reconciles_against_partial_set(
        self, pipeline: IngestionPipeline, make_source, index
    ):
        source = make_source(_PREFIX, {"/docs/a.txt": "alpha", "/docs/b.txt": "bravo"})
        pipeline.ingest_source(source)

        cancel = threading.Event()
        cancel.set()
        report = pipeline.ingest_source(source, cancel)

        assert report.cancelled is True
        assert report.deleted_chunks == 2
        assert index.count() == 0

    def test_cancel_during_backoff_retried_next_run(
        self, pipeline: IngestionPipeline, make_source, embedder, ledger, index
    ):
        cancel = threading.Event()
        original = embedder.embed

        def fail_and_cancel(text: str) -> list[float]:
            if text == "ment text":
                cancel.set()
                raise EmbeddingError("service unavailable")
            return original(text)

        embedder.embed = fail_and_cancel
        source = make_source(_PREFIX, {"/docs/a.txt": "Test document text", "/docs/b.txt": "bravo"})
        report = pipeline.ingest_source(source, cancel)

        assert report.cancelled is True
        assert report.failed == 1
        assert embedder.calls == ["Test docu"]
        assert ledger.get(_ref("/docs/a.txt")) is None
        assert index.count() == 0

        embedder.embed = original
        report = pipeline.ingest_source(source)
        assert report.processed == 2
        assert index.references() == {_ref("/docs/a.txt"), _ref("/docs/b.txt")}

    def test_interrupt_during_embedding_retried_next_run(
        self, pipeline: IngestionPipeline, make_source, embedder, ledger, index
    ):
        original = embedder.embed

        def interrupted(text: str) -> list[float]:
            raise KeyboardInterrupt

        embedder.embed = interrupted
        source = make_source(_PREFIX, {"/docs/a.txt": "Test document text"})
        with pytest.raises(KeyboardInterrupt):
            pipeline.ingest_source(source)
        assert ledger.get(_ref("/docs/a.txt")) is None

        embedder.embed = original
        report = pipeline.ingest_source(source)
        assert report.processed == 1
        assert report.skipped == 0
        assert index.references() == {_ref("/docs/a.txt")}

    def test_interrupt_on_changed_document_replaces_old_chunks_next_run(
        self, pipeline: IngestionPipeline, make_source, embedder, ledger, index
    ):
        source = make_source(_PREFIX, {"/docs/a.txt": "Test document text"})
        pipeline.ingest_source(source)
        original = embedder.embed

        def interrupt_second_chunk(text: str) -> list[float]:
            if text == "ment Text":
                raise KeyboardInterrupt
            return original(text)

        embedder.embed = interrupt_second_chunk
        source.files["/docs/a.txt"] = "Test document Text"
        with pytest.raises(KeyboardInterrupt):
            pipeline.ingest_source(source)
        assert ledger.get(_ref("/docs/a.txt")) is None

        embedder.embed = original
        report = pipeline.ingest_source(source)
        assert report.processed == 1
        assert sorted(c.content for c in index.chunks.values()) == ["Test docu", "ment Text"]
        assert ledger.get(_ref("/docs/a.txt")).hash == compute_hash("Test document Text")


class TestRun:
    def test_report_totals(self, pipeline: IngestionPipeline, make_source):
        report = pipeline.run(
            [
                make_source("one", {"/a.txt": "alpha"}),
                make_source("two", {"/b.txt": "bravo", "/c.txt": "charlie"}),
            ]
        )
        assert isinstance(report, IngestReport)
        assert [s.prefix for s in report.sources] == ["one", "two"]
        assert report.processed == 3
        assert report.failed == 0
        assert report.cancelled is False

    def test_parallel_sources(self, pipeline: IngestionPipeline, make_source, index):
        sources = [make_source(f"s{i}", {f"/{i}.txt": f"doc {i}"}) for i in range(4)]
        report = pipeline.run(sources, max_workers=3)
        assert report.processed == 4
        assert len(index.references()) == 4

    def test_failing_source_recorded_others_continue(
        self, pipeline: IngestionPipeline, make_source
    ):
        report = pipeline.run([_FailingSource(), make_source("ok", {"/a.txt": "alpha"})])
        broken, ok = report.sources
        assert isinstance(broken, SourceReport)
        assert "cannot list source" in broken.error
        assert ok.processed == 1
