"""Word extractor using python-docx.

Reads ``.docx`` only. Legacy binary ``.doc`` files resolve to the
unsupported extractor.
"""

from __future__ import annotations

import io
import logging
from typing import IO

from docx import Document

from ragsync.exceptions import ExtractionError
from ragsync.extract.base import BaseExtractor
from ragsync.extract.text import normalize_whitespace

__all__ = ["DocxExtractor"]

logger = logging.getLogger(__name__)


class DocxExtractor(BaseExtractor):
    """Paragraph text in body order, followed by table rows as ``cell | cell``."""

    def get_text(self, stream: IO[bytes], locator: str) -> str:
        if not self.can_process(locator):
            raise ExtractionError(f"Unsupported file format: {locator}")

        data = self.read_bytes(stream, locator)
        try:
            doc = Document(io.BytesIO(data))
        except Exception as e:
            logger.debug("DOCX open failure (%s): %s", type(e).__name__, e, exc_info=True)
            raise ExtractionError(f"Failed to open Word document {locator}: {e}") from e

        parts = [p.text for p in doc.paragraphs]
        for table in doc.tables:
            for row in table.rows:
                cells = [c.text.strip() for c in row.cells if c.text.strip()]
                if cells:
                    parts.append(" | ".join(cells))

        logger.debug(
            "Extracted %d paragraphs and %d tables from %s",
            len(doc.paragraphs),
            len(doc.tables),
            locator,
        )
        return normalize_whitespace("\n".join(parts))

    def supported_extensions(self) -> frozenset[str]:
        return frozenset({".docx"})
