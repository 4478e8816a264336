"""Document-type extractors and extractor resolution by file extension."""

from __future__ import annotations

from ragsync.extract.base import BaseExtractor, UnsupportedExtractor
from ragsync.extract.docx import DocxExtractor
from ragsync.extract.html import HtmlExtractor
from ragsync.extract.pdf import PdfExtractor
from ragsync.extract.text import TextExtractor

__all__ = [
    "BaseExtractor",
    "DocxExtractor",
    "HtmlExtractor",
    "PdfExtractor",
    "TextExtractor",
    "UnsupportedExtractor",
    "default_extractors",
    "resolve_extractor",
]


def default_extractors() -> list[BaseExtractor]:
    """Return fresh instances of the built-in extractors, in resolution order."""
    return [TextExtractor(), HtmlExtractor(), PdfExtractor(), DocxExtractor()]


def resolve_extractor(
    locator: str,
    extractors: list[BaseExtractor] | None = None,
) -> BaseExtractor:
    """Return the first extractor that can process *locator*, else an ``UnsupportedExtractor``."""
    for extractor in extractors if extractors is not None else default_extractors():
        if extractor.can_process(locator):
            return extractor
    return UnsupportedExtractor()
