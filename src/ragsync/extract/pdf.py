"""PDF extractor using PyMuPDF.

Extracts page text in reading order. Deterministic, no OCR.
"""

from __future__ import annotations

import logging
from typing import IO

import pymupdf

from ragsync.exceptions import ExtractionError
from ragsync.extract.base import BaseExtractor
from ragsync.extract.text import normalize_whitespace

__all__ = ["PdfExtractor"]

logger = logging.getLogger(__name__)

# PyMuPDF text extraction flags: preserve ligatures + whitespace, suppress images
_TEXT_FLAGS = 11


class PdfExtractor(BaseExtractor):
    """Extracts text from every page of a PDF, pages separated by blank lines."""

    MAX_FILE_SIZE: int = 200 * 1024 * 1024  # 200 MB

    def get_text(self, stream: IO[bytes], locator: str) -> str:
        data = self.read_bytes(stream, locator, self.MAX_FILE_SIZE)

        try:
            doc = pymupdf.open(stream=data, filetype="pdf")
        except (RuntimeError, ValueError) as e:
            logger.debug("PDF open failure (%s): %s", type(e).__name__, e, exc_info=True)
            raise ExtractionError(f"Failed to open PDF {locator}: {e}") from e

        try:
            if doc.needs_pass:
                raise ExtractionError(f"PDF is encrypted: {locator}")
            pages = [page.get_text("text", flags=_TEXT_FLAGS) for page in doc]
        finally:
            doc.close()

        logger.debug("Extracted %d pages from %s", len(pages), locator)
        return normalize_whitespace("\n\n".join(pages))

    def supported_extensions(self) -> frozenset[str]:
        return frozenset({".pdf"})
