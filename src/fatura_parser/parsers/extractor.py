"""Positioned text extraction using pdfplumber.

This module decodes PDF bytes into pages of positioned text runs. It is a
thin adapter: the rest of the pipeline only sees ``GlyphDocument`` and never
touches pdfplumber objects, so the backend can be swapped without affecting
the parsers.
"""

import io
import logging

import pdfplumber
from pypdf import PdfReader

from fatura_parser.core.exceptions import MalformedDocumentError
from fatura_parser.schemas.document import GlyphDocument, GlyphPage, GlyphRun

logger = logging.getLogger(__name__)


def open_pdf(stream: io.BytesIO):
    """Open a PDF stream with pdfplumber.

    Kept as a module-level symbol so tests can patch
    `fatura_parser.parsers.extractor.open_pdf` without a real PDF.
    """
    return pdfplumber.open(stream)


class PDFExtractor:
    """Decodes PDF bytes into a ``GlyphDocument``.

    Each pdfplumber "word" becomes one glyph run. With ``keep_blank_chars``
    and ``use_text_flow`` a word is a visually contiguous run of text that
    may contain single spaces ("Subtotal deste cartão"), and is split where
    the horizontal gap exceeds ``x_tolerance`` (a table column boundary).
    All processing happens in-memory without creating temporary files.

    Example:
        >>> extractor = PDFExtractor()
        >>> document = extractor.extract(pdf_bytes)
        >>> print(document.run_count)
    """

    def __init__(self, x_tolerance: float = 3.0, y_tolerance: float = 3.0):
        """Initialize the extractor.

        Args:
            x_tolerance: Max horizontal gap (points) between characters of one run
            y_tolerance: Max vertical offset (points) between characters of one run
        """
        self.x_tolerance = x_tolerance
        self.y_tolerance = y_tolerance

    def extract(self, pdf_bytes: bytes) -> GlyphDocument:
        """Extract positioned text runs from a PDF.

        Args:
            pdf_bytes: PDF file content as bytes

        Returns:
            GlyphDocument with one GlyphPage per PDF page

        Raises:
            MalformedDocumentError: PARSE_002 if the bytes cannot be decoded,
                PARSE_003 if the document is encrypted
        """
        if not pdf_bytes:
            raise MalformedDocumentError("PARSE_002", {"reason": "empty_document"})

        self._reject_encrypted(pdf_bytes)

        try:
            with open_pdf(io.BytesIO(pdf_bytes)) as pdf:
                pages = [
                    self._extract_page(page, number)
                    for number, page in enumerate(pdf.pages, start=1)
                ]
                metadata = dict(pdf.metadata or {})
        except MalformedDocumentError:
            raise
        except Exception as e:
            logger.warning(
                "PDF decode failed", extra={"error_type": type(e).__name__}
            )
            raise MalformedDocumentError(
                "PARSE_002", {"reason": "decode_failed", "error": str(e)}
            ) from e

        document = GlyphDocument(pages=pages, metadata=metadata)
        logger.debug(
            "Extracted glyph runs",
            extra={"pages": len(pages), "runs": document.run_count},
        )
        return document

    def _reject_encrypted(self, pdf_bytes: bytes) -> None:
        """Fail fast on encrypted PDFs (not supported)."""
        if not pdf_bytes.startswith(b"%PDF"):
            return

        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
            encrypted = bool(reader.is_encrypted)
        except Exception:
            # Let pdfplumber report the decode failure.
            return

        if encrypted:
            raise MalformedDocumentError("PARSE_003", {"reason": "encrypted"})

    def _extract_page(self, page, number: int) -> GlyphPage:
        words = page.extract_words(
            x_tolerance=self.x_tolerance,
            y_tolerance=self.y_tolerance,
            keep_blank_chars=True,
            use_text_flow=True,
        )

        runs: list[GlyphRun] = []
        for word in words:
            text = word.get("text") or ""
            if not text.strip():
                continue
            x0 = float(word["x0"])
            width = float(word["x1"]) - x0
            runs.append(
                GlyphRun(
                    page=number,
                    text=text,
                    x=x0,
                    y=float(word["top"]),
                    width=width,
                    spacing=width / len(text),
                )
            )

        return GlyphPage(
            number=number,
            width=float(page.width),
            height=float(page.height),
            runs=runs,
        )
