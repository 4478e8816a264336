"""HTML extractor: visible text via BeautifulSoup."""

from __future__ import annotations

import logging
from typing import IO

from bs4 import BeautifulSoup

from ragsync.exceptions import ExtractionError
from ragsync.extract.base import BaseExtractor
from ragsync.extract.text import normalize_whitespace

__all__ = ["HtmlExtractor"]

logger = logging.getLogger(__name__)

_INVISIBLE_TAGS = ("script", "style", "noscript", "template", "head")


class HtmlExtractor(BaseExtractor):
    """Drops scripts, styles and ``<head>``, then returns the page's visible text."""

    def get_text(self, stream: IO[bytes], locator: str) -> str:
        raw = self.read_bytes(stream, locator)
        try:
            soup = BeautifulSoup(raw, "html.parser")
        except Exception as e:
            raise ExtractionError(f"Failed to parse HTML {locator}: {e}") from e

        for tag in soup(_INVISIBLE_TAGS):
            tag.decompose()

        return normalize_whitespace(soup.get_text("\n"))

    def supported_extensions(self) -> frozenset[str]:
        return frozenset({".html", ".htm"})
