"""Shared fixtures for ragsync tests."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

import pytest

from ragsync.chunk import WindowChunker
from ragsync.config import ChunkConfig, RagsyncConfig, SourceConfig, save_config
from ragsync.embed.base import BaseEmbedder
from ragsync.embed.stage import EmbeddingStage
from ragsync.exceptions import AuthorizationError, EmbeddingError, IndexNotReadyError
from ragsync.extract import TextExtractor
from ragsync.ledger import ChangeDetector, MemoryHashLedger
from ragsync.llm.base import BaseCompleter
from ragsync.pipeline import IngestionPipeline
from ragsync.project import CONFIG_FILE, INDEX_DIR, RAG_DIR
from ragsync.resilience import RetryPolicy
from ragsync.sources.base import BaseDocumentSource
from ragsync.store.base import BaseIndex
from ragsync.sync import IndexSynchronizer
from ragsync.types import Completion, DocumentInfo

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from pathlib import Path

    from ragsync.chat import ChatMessage
    from ragsync.types import TextChunk


# --- Fakes ---


class FakeEmbedder(BaseEmbedder):
    """Deterministic 3-dim embedder. Texts in ``fail_on`` raise ``EmbeddingError``."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self.auth_failure = False

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.auth_failure:
            raise AuthorizationError("bad key")
        if text in self.fail_on:
            raise EmbeddingError(f"cannot embed {text!r}")
        return [float(len(text)), float(text.count("a")), 1.0]

    @property
    def dimension(self) -> int:
        return 3


class MemoryIndex(BaseIndex):
    """Dict-backed index. Created lazily like the real one."""

    def __init__(self, created: bool = False) -> None:
        self.created = created
        self.chunks: dict[str, TextChunk] = {}
        self.ensure_calls = 0
        self.delete_calls: list[list[str]] = []

    def exists(self) -> bool:
        return self.created

    def ensure_schema(self) -> None:
        self.ensure_calls += 1
        self.created = True

    def upsert(self, chunks: Sequence[TextChunk]) -> int:
        self._require()
        for c in chunks:
            self.chunks[c.id] = c
        return len(chunks)

    def delete(self, chunk_ids: Sequence[str]) -> int:
        self._require()
        self.delete_calls.append(list(chunk_ids))
        for chunk_id in chunk_ids:
            self.chunks.pop(chunk_id, None)
        return len(chunk_ids)

    def get_by_prefix(self, source_prefix: str) -> list[TextChunk]:
        self._require()
        return [c for c in self.chunks.values() if c.document_reference.startswith(source_prefix)]

    def get_by_reference(self, document_reference: str) -> list[TextChunk]:
        self._require()
        return [c for c in self.chunks.values() if c.document_reference == document_reference]

    def search(self, query_embedding: Sequence[float], k: int = 3) -> list[TextChunk]:
        self._require()

        def score(c: TextChunk) -> float:
            return -sum(abs(a - b) for a, b in zip(c.embedding, query_embedding))

        return sorted(self.chunks.values(), key=score, reverse=True)[:k]

    def count(self) -> int:
        return len(self.chunks)

    def references(self) -> set[str]:
        return {c.document_reference for c in self.chunks.values()}

    def _require(self) -> None:
        if not self.created:
            raise IndexNotReadyError("index not created")


class FakeCompleter(BaseCompleter):
    """Returns queued replies in order, then ``"answer"``."""

    def __init__(self, replies: Sequence[str] = ()) -> None:
        self.replies = list(replies)
        self.calls: list[list[ChatMessage]] = []

    def complete(self, messages: Sequence[ChatMessage]) -> Completion:
        self.calls.append(list(messages))
        text = self.replies.pop(0) if self.replies else "answer"
        return Completion(text=text, raw={"choices": [{"message": {"content": text}}]})


class ListSource(BaseDocumentSource):
    """In-memory source: ``{path: text}``, yielded in sorted path order."""

    def __init__(self, prefix: str, files: dict[str, str]) -> None:
        self._prefix = prefix
        self.files = dict(files)

    @property
    def prefix(self) -> str:
        return self._prefix

    def iter_documents(self, cancel=None) -> Iterator[DocumentInfo]:
        for path in sorted(self.files):
            if cancel is not None and cancel.is_set():
                return
            yield DocumentInfo(
                source_prefix=self.prefix,
                file_path=path,
                stream=io.BytesIO(self.files[path].encode("utf-8")),
                extractor=TextExtractor(),
            )


# --- Fixtures ---


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Retry policy with no backoff and no per-attempt timeout."""
    return RetryPolicy(name="test", max_attempts=3, timeout=None, base_delay=0.0, max_delay=0.0)


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def index() -> MemoryIndex:
    return MemoryIndex()


@pytest.fixture
def ledger() -> MemoryHashLedger:
    return MemoryHashLedger()


@pytest.fixture
def detector(ledger: MemoryHashLedger) -> ChangeDetector:
    return ChangeDetector(ledger)


@pytest.fixture
def stage(embedder: FakeEmbedder, fast_policy: RetryPolicy) -> EmbeddingStage:
    return EmbeddingStage(
        embedder=embedder,
        chunker=WindowChunker(),
        chunk_config=ChunkConfig(chunk_size=9, overlap=0),
        policy=fast_policy,
    )


@pytest.fixture
def synchronizer(
    index: MemoryIndex, detector: ChangeDetector, fast_policy: RetryPolicy
) -> IndexSynchronizer:
    return IndexSynchronizer(
        index=index,
        detector=detector,
        admin_policy=fast_policy,
        data_policy=fast_policy,
    )


@pytest.fixture
def pipeline(
    stage: EmbeddingStage, synchronizer: IndexSynchronizer, detector: ChangeDetector
) -> IngestionPipeline:
    return IngestionPipeline(stage=stage, synchronizer=synchronizer, detector=detector)


@pytest.fixture
def make_source():
    """Factory for in-memory sources."""
    return ListSource


@pytest.fixture
def completer() -> FakeCompleter:
    return FakeCompleter()


@pytest.fixture
def initialized_project(tmp_path: Path) -> Path:
    """A temporary project with .ragsync/ initialized and one docs source."""
    rag = tmp_path / RAG_DIR
    (rag / INDEX_DIR).mkdir(parents=True)
    (tmp_path / "docs").mkdir()

    config = RagsyncConfig()
    config.project.name = "test-project"
    config.sources.append(SourceConfig(path="docs", prefix="test:docs"))
    save_config(config, rag / CONFIG_FILE)

    return tmp_path
