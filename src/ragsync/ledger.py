"""Hash ledger and change detection for ragsync.

Tracks the SHA-256 of each document's extracted text so unchanged documents
are not re-embedded on the next ingestion run.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ragsync.exceptions import LedgerError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

__all__ = [
    "BaseHashLedger",
    "ChangeDetector",
    "DocumentHash",
    "JsonHashLedger",
    "MemoryHashLedger",
    "compute_hash",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentHash:
    """Last seen content hash of one document reference."""

    document_reference: str
    hash: str


def compute_hash(text: str) -> str:
    """Return the lowercase hex SHA-256 of *text* encoded as UTF-8."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class BaseHashLedger(ABC):
    """Keyed store of ``DocumentHash`` entries, at most one per reference."""

    @abstractmethod
    def get(self, document_reference: str) -> DocumentHash | None:
        """Return the entry for *document_reference*, or ``None``."""

    @abstractmethod
    def insert(self, entry: DocumentHash) -> None:
        """Add a new entry.

        Raises:
            LedgerError: If an entry for the reference already exists.
        """

    @abstractmethod
    def update(self, entry: DocumentHash, new_hash: str) -> DocumentHash:
        """Replace the hash of an existing entry and return the new entry."""

    @abstractmethod
    def delete(self, document_references: Iterable[str]) -> int:
        """Remove entries for the given references. Returns how many existed."""

    @abstractmethod
    def references(self) -> list[str]:
        """Return all references currently in the ledger."""


class MemoryHashLedger(BaseHashLedger):
    """In-process ledger. Uses a dict internally for O(1) lookups."""

    def __init__(self) -> None:
        self._entries: dict[str, DocumentHash] = {}
        self._lock = threading.Lock()

    def get(self, document_reference: str) -> DocumentHash | None:
        return self._entries.get(document_reference)

    def insert(self, entry: DocumentHash) -> None:
        with self._lock:
            if entry.document_reference in self._entries:
                raise LedgerError(f"Ledger already has an entry for {entry.document_reference}")
            self._entries[entry.document_reference] = entry
            self._changed()

    def update(self, entry: DocumentHash, new_hash: str) -> DocumentHash:
        with self._lock:
            if entry.document_reference not in self._entries:
                raise LedgerError(f"No ledger entry for {entry.document_reference}")
            updated = DocumentHash(document_reference=entry.document_reference, hash=new_hash)
            self._entries[entry.document_reference] = updated
            self._changed()
        return updated

    def delete(self, document_references: Iterable[str]) -> int:
        with self._lock:
            removed = 0
            for ref in set(document_references):
                if self._entries.pop(ref, None) is not None:
                    removed += 1
            if removed:
                self._changed()
        return removed

    def references(self) -> list[str]:
        return sorted(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def _changed(self) -> None:
        """Hook called under the lock after every mutation."""


class JsonHashLedger(MemoryHashLedger):
    """Ledger persisted to a JSON file, rewritten after every mutation.

    A missing file is treated as an empty ledger.
    """

    schema_version = "1"

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            logger.info("No ledger at %s, starting empty", self.path)
            return

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load ledger from %s: %s", self.path, e)
            raise LedgerError(f"Failed to load ledger from {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise LedgerError(f"Ledger in {self.path} is not a JSON object")

        for item in data.get("documents", []):
            try:
                entry = DocumentHash(
                    document_reference=str(item["document_reference"]),
                    hash=str(item["hash"]),
                )
            except (KeyError, TypeError) as e:
                raise LedgerError(f"Malformed ledger entry in {self.path}: {item!r}") from e
            self._entries[entry.document_reference] = entry

        logger.info("Loaded ledger from %s (%d documents)", self.path, len(self._entries))

    def _changed(self) -> None:
        data = {
            "schema_version": self.schema_version,
            "documents": [
                {"document_reference": e.document_reference, "hash": e.hash}
                for e in sorted(self._entries.values(), key=lambda e: e.document_reference)
            ],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save ledger to %s: %s", self.path, e)
            raise LedgerError(f"Failed to save ledger to {self.path}: {e}") from e


class ChangeDetector:
    """Decides whether a document's content changed since it was last ingested.

    The detector is the only writer of the ledger: new and changed documents
    are recorded as a side effect of ``should_skip``, deleted ones through
    ``forget``.
    """

    def __init__(self, ledger: BaseHashLedger) -> None:
        self.ledger = ledger

    def should_skip(self, document_reference: str, full_text: str) -> bool:
        """Return ``True`` if *full_text* matches the last ingested content.

        New references are inserted and changed ones updated; both return
        ``False`` so the caller re-embeds them.
        """
        new_hash = compute_hash(full_text)
        existing = self.ledger.get(document_reference)

        if existing is None:
            self.ledger.insert(DocumentHash(document_reference=document_reference, hash=new_hash))
            logger.debug("New document %s", document_reference)
            return False

        if existing.hash != new_hash:
            self.ledger.update(existing, new_hash)
            logger.debug("Changed document %s", document_reference)
            return False

        return True

    def forget(self, document_references: Iterable[str]) -> int:
        """Drop ledger entries for documents that no longer exist at their source."""
        return self.ledger.delete(document_references)
