"""
Text Extractor
==============
Extracts the ordered text stream of a standings PDF using PyMuPDF (fitz).

Pages are read one after another in page order. Each page's words are
joined with single spaces and a newline is appended after every page, so
rows that continue on the next page stay in one linear token stream.
"""

from __future__ import annotations

import logging
from typing import Optional

import fitz  # PyMuPDF

from .errors import ExtractionError

logger = logging.getLogger(__name__)


class TextExtractor:
    """
    Handles PDF ingestion and page-by-page text extraction.
    """

    def __init__(self, page_range: Optional[tuple[int, int]] = None):
        self.page_range = page_range

    def get_page_count(self, pdf_path: str) -> int:
        """Get total number of pages in the PDF."""
        with self._open(pdf_path=pdf_path) as doc:
            return doc.page_count

    def extract(self, pdf_path: str) -> str:
        """Extract the text stream of a PDF file on disk."""
        with self._open(pdf_path=pdf_path) as doc:
            return self._extract_document(doc, pdf_path)

    def extract_bytes(self, data: bytes, file_name: str = "upload.pdf") -> str:
        """Extract the text stream of an uploaded PDF held in memory."""
        with self._open(data=data) as doc:
            return self._extract_document(doc, file_name)

    def _open(
        self,
        pdf_path: Optional[str] = None,
        data: Optional[bytes] = None,
    ) -> fitz.Document:
        try:
            if data is not None:
                return fitz.open(stream=data, filetype="pdf")
            return fitz.open(pdf_path)
        except Exception as e:
            logger.error(f"Could not open PDF: {e}")
            raise ExtractionError(str(e)) from e

    def _extract_document(self, doc: fitz.Document, source: str) -> str:
        total_pages = doc.page_count

        # Determine page range (1-indexed)
        start_page = 1
        end_page = total_pages
        if self.page_range:
            start_page = max(1, self.page_range[0])
            end_page = min(total_pages, self.page_range[1])

        logger.info(
            f"Extracting text from {source} "
            f"(pages {start_page} to {end_page})"
        )

        text = ""
        for page_idx in range(start_page - 1, end_page):
            try:
                words = doc[page_idx].get_text("words")
            except Exception as e:
                logger.error(f"Failed reading page {page_idx + 1}: {e}")
                raise ExtractionError(str(e)) from e

            # Word tuples: (x0, y0, x1, y1, word, block_no, line_no, word_no)
            page_text = " ".join(word[4] for word in words)
            text += page_text + "\n"

        logger.debug(f"Extracted {len(text)} characters")
        return text
