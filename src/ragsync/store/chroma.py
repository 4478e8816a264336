"""ChromaDB vector index using PersistentClient.

Stores embedded chunks with their document reference for similarity search
and per-source reconciliation. Uses file-based persistence, no server required.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import chromadb

from ragsync.exceptions import IndexNotReadyError, StoreError
from ragsync.store.base import BaseIndex
from ragsync.types import TextChunk

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

__all__ = ["ChromaIndex"]

logger = logging.getLogger(__name__)

_REFERENCE_KEY = "document_reference"


class ChromaIndex(BaseIndex):
    """Vector index backed by ChromaDB with file-based persistence.

    The collection is created lazily by :meth:`ensure_schema` so that
    "no index yet" is observable through :meth:`exists`.

    Usage::

        index = ChromaIndex(persist_path=project_root / ".ragsync" / "index")
        index.ensure_schema()
        index.upsert(chunks)
        hits = index.search(query_vector, k=3)
    """

    def __init__(
        self,
        persist_path: Path | None = None,
        collection_name: str = "ragsync",
        client: Any = None,
    ) -> None:
        self._collection_name = collection_name
        self._collection: Any = None

        try:
            if client is not None:
                self._client = client
            elif persist_path is not None:
                self._client = chromadb.PersistentClient(path=str(persist_path))
            else:
                self._client = chromadb.EphemeralClient()
        except Exception as e:
            raise StoreError(f"Failed to initialize ChromaDB at {persist_path}: {e}") from e

        logger.info(
            "ChromaDB index opened at %s (collection=%s)",
            persist_path or "<memory>",
            collection_name,
        )

    def exists(self) -> bool:
        if self._collection is not None:
            return True
        try:
            collections = self._client.list_collections()
        except Exception as e:
            raise StoreError(f"Failed to list ChromaDB collections: {e}") from e
        # Older chromadb returns Collection objects, newer returns names.
        names = {c if isinstance(c, str) else c.name for c in collections}
        return self._collection_name in names

    def ensure_schema(self) -> None:
        if self._collection is not None:
            return
        try:
            self._collection = self._client.get_or_create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        except Exception as e:
            raise StoreError(f"Failed to create collection {self._collection_name}: {e}") from e
        logger.info("Collection %s ready", self._collection_name)

    def upsert(self, chunks: Sequence[TextChunk]) -> int:
        if not chunks:
            return 0
        collection = self._require_collection()

        missing = [c.id for c in chunks if not c.is_embedded]
        if missing:
            raise StoreError(f"Refusing to index {len(missing)} chunk(s) without embeddings")

        try:
            collection.upsert(
                ids=[c.id for c in chunks],
                embeddings=[list(c.embedding) for c in chunks],
                documents=[c.content for c in chunks],
                metadatas=[{_REFERENCE_KEY: c.document_reference} for c in chunks],
            )
        except Exception as e:
            raise StoreError(f"Failed to upsert {len(chunks)} chunks: {e}") from e

        logger.info("Upserted %d chunks", len(chunks))
        return len(chunks)

    def delete(self, chunk_ids: Sequence[str]) -> int:
        if not chunk_ids:
            return 0
        collection = self._require_collection()
        try:
            collection.delete(ids=list(chunk_ids))
        except Exception as e:
            raise StoreError(f"Failed to delete {len(chunk_ids)} chunks: {e}") from e

        logger.info("Deleted %d chunks", len(chunk_ids))
        return len(chunk_ids)

    def get_by_prefix(self, source_prefix: str) -> list[TextChunk]:
        collection = self._require_collection()
        try:
            # Chroma has no prefix operator on metadata, so the filter runs
            # client-side. For very large indexes consider a dedicated
            # source_prefix metadata field.
            results = collection.get(include=["metadatas"])
        except Exception as e:
            raise StoreError(f"Failed to list chunks for {source_prefix}: {e}") from e

        ids = results.get("ids") or []
        metadatas = results.get("metadatas") or [None] * len(ids)

        chunks: list[TextChunk] = []
        for chunk_id, meta in zip(ids, metadatas, strict=True):
            reference = str((meta or {}).get(_REFERENCE_KEY, ""))
            if reference.startswith(source_prefix):
                chunks.append(TextChunk(id=chunk_id, document_reference=reference, content=""))
        return chunks

    def get_by_reference(self, document_reference: str) -> list[TextChunk]:
        collection = self._require_collection()
        try:
            results = collection.get(
                where={_REFERENCE_KEY: document_reference},
                include=[],
            )
        except Exception as e:
            raise StoreError(f"Failed to list chunks of {document_reference}: {e}") from e

        return [
            TextChunk(id=chunk_id, document_reference=document_reference, content="")
            for chunk_id in results.get("ids") or []
        ]

    def search(self, query_embedding: Sequence[float], k: int = 3) -> list[TextChunk]:
        collection = self._require_collection()

        total = self.count()
        if total == 0:
            return []

        # ChromaDB raises if n_results exceeds the collection size.
        try:
            results = collection.query(
                query_embeddings=[list(query_embedding)],
                n_results=min(k, total),
                include=["documents", "metadatas"],
            )
        except Exception as e:
            raise StoreError(f"Search failed: {e}") from e

        # ChromaDB returns batched results; we query with one embedding.
        raw_ids = results.get("ids")
        raw_docs = results.get("documents")
        raw_metas = results.get("metadatas")
        if not raw_ids or not raw_docs or not raw_metas:
            return []

        return [
            TextChunk(
                id=chunk_id,
                document_reference=str((meta or {}).get(_REFERENCE_KEY, "")),
                content=doc or "",
            )
            for chunk_id, doc, meta in zip(raw_ids[0], raw_docs[0], raw_metas[0], strict=True)
        ]

    def count(self) -> int:
        if not self.exists():
            return 0
        collection = self._require_collection()
        try:
            return collection.count()
        except Exception as e:
            raise StoreError(f"Failed to count chunks: {e}") from e

    def _require_collection(self) -> Any:
        if self._collection is not None:
            return self._collection
        if not self.exists():
            raise IndexNotReadyError(f"Index {self._collection_name!r} has not been created yet")
        try:
            self._collection = self._client.get_collection(name=self._collection_name)
        except Exception as e:
            raise StoreError(f"Failed to open collection {self._collection_name}: {e}") from e
        return self._collection
