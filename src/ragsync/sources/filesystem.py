"""Filesystem document source: recursive walk of a directory tree."""

from __future__ import annotations

import fnmatch
import logging
import socket
from pathlib import Path
from typing import TYPE_CHECKING

from ragsync.extract import resolve_extractor
from ragsync.sources.base import BaseDocumentSource
from ragsync.types import DocumentInfo

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterable, Iterator

    from ragsync.extract.base import BaseExtractor

__all__ = ["DEFAULT_EXCLUDES", "FileSystemSource"]

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDES: tuple[str, ...] = (".*", "__pycache__", "node_modules")


class FileSystemSource(BaseDocumentSource):
    """Yields every file under *root* in sorted path order.

    Files whose name or any parent directory name matches one of *exclude*
    (fnmatch patterns) are skipped. Each file gets the extractor matching its
    extension, or the unsupported extractor.

    The default prefix is ``"<hostname>:FileSystem:<root>"``.
    """

    def __init__(
        self,
        root: Path,
        prefix: str = "",
        exclude: Iterable[str] = DEFAULT_EXCLUDES,
        extractors: list[BaseExtractor] | None = None,
    ) -> None:
        self.root = root.resolve()
        self._prefix = prefix or f"{socket.gethostname()}:FileSystem:{self.root.as_posix()}"
        self._exclude = tuple(exclude)
        self._extractors = extractors

    @property
    def prefix(self) -> str:
        return self._prefix

    def iter_documents(self, cancel: threading.Event | None = None) -> Iterator[DocumentInfo]:
        if not self.root.is_dir():
            logger.warning("Source root %s is not a directory", self.root)
            return

        for path in sorted(self.root.rglob("*")):
            if cancel is not None and cancel.is_set():
                logger.info("Enumeration of %s cancelled", self.prefix)
                return
            if not path.is_file() or self._is_excluded(path):
                continue

            locator = path.as_posix()
            try:
                stream = path.open("rb")
            except OSError as e:
                logger.warning("Cannot open %s: %s", locator, e)
                continue

            with stream:
                yield DocumentInfo(
                    source_prefix=self.prefix,
                    file_path=locator,
                    stream=stream,
                    extractor=resolve_extractor(locator, self._extractors),
                )

    def _is_excluded(self, path: Path) -> bool:
        parts = path.relative_to(self.root).parts
        return any(fnmatch.fnmatch(part, pattern) for part in parts for pattern in self._exclude)
