"""Plain text and markdown extractor with whitespace normalization."""

from __future__ import annotations

import logging
import re
from typing import IO

from ragsync.extract.base import BaseExtractor

__all__ = ["TextExtractor", "normalize_whitespace"]

logger = logging.getLogger(__name__)

# Matches 3+ consecutive newlines (to collapse to 2)
_MULTI_BLANK_RE = re.compile(r"\n{3,}")


class TextExtractor(BaseExtractor):
    """Reads UTF-8 text files (falling back to replacement characters) and normalizes whitespace."""

    def get_text(self, stream: IO[bytes], locator: str) -> str:
        raw_bytes = self.read_bytes(stream, locator)
        try:
            raw = raw_bytes.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("UTF-8 decode failed for %s, retrying with replacement", locator)
            raw = raw_bytes.decode("utf-8", errors="replace")

        # Strip BOM if present
        if raw.startswith("\ufeff"):
            raw = raw[1:]

        return normalize_whitespace(raw)

    def supported_extensions(self) -> frozenset[str]:
        return frozenset({".txt", ".text", ".md", ".markdown"})


def normalize_whitespace(text: str) -> str:
    """Normalize whitespace in text.

    - Normalize line endings to ``\\n``
    - Strip trailing whitespace from each line
    - Collapse 3+ consecutive blank lines to 2
    - Strip leading/trailing whitespace from the whole document
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    text = _MULTI_BLANK_RE.sub("\n\n", text)
    return text.strip()
