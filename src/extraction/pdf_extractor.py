# src/extraction/pdf_extractor.py — v2
"""PDF text extractor using PyMuPDF (fitz).

Pure and deterministic: the same bytes always yield the same text.
Requires the 'pymupdf' package.
"""

from __future__ import annotations

import logging
import re

from lexresearch.core.errors import ExtractionError

logger = logging.getLogger(__name__)

_TRAILING_SPACE = re.compile(r"[ \t]+\n")
_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


class PdfTextExtractor:
    """Convert PDF bytes into plain text, page by page."""

    source_name = "pdf-extractor"

    def extract(self, content: bytes) -> str:
        """Extract the text layer of a PDF document.

        Raises:
            ExtractionError: Empty or corrupt content, or no text layer.
        """
        try:
            import fitz  # PyMuPDF
        except ImportError as e:
            raise ImportError(
                "pymupdf package required for PDF extraction: pip install pymupdf"
            ) from e

        if not content:
            raise ExtractionError(self.source_name, "empty document")

        try:
            doc = fitz.open(stream=content, filetype="pdf")
        except Exception as e:
            raise ExtractionError(self.source_name, f"unreadable PDF: {e}") from e

        try:
            pages = [doc[i].get_text("text") for i in range(len(doc))]
        except Exception as e:
            raise ExtractionError(self.source_name, f"text extraction failed: {e}") from e
        finally:
            doc.close()

        text = _normalize_whitespace("\n".join(pages))
        if not text:
            raise ExtractionError(self.source_name, "document has no text layer")
        logger.debug("Extracted %d characters from %d pages", len(text), len(pages))
        return text


def _normalize_whitespace(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _TRAILING_SPACE.sub("\n", text)
    text = _EXCESS_BLANK_LINES.sub("\n\n", text)
    return text.strip()
