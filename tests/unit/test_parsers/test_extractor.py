"""Tests for the pdfplumber-based extractor."""

import io
from unittest.mock import MagicMock, Mock, patch

import pytest
from pypdf import PdfWriter

from fatura_parser.core.exceptions import MalformedDocumentError
from fatura_parser.parsers.extractor import PDFExtractor


def _pdf_bytes(encrypt_with: str | None = None) -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=595, height=842)
    if encrypt_with:
        writer.encrypt(encrypt_with)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def _mock_pdf(pages):
    pdf = MagicMock()
    pdf.pages = pages
    pdf.metadata = {"Producer": "test"}
    pdf.__enter__.return_value = pdf
    return pdf


def _mock_page(words, width=595.0, height=842.0):
    page = Mock()
    page.width = width
    page.height = height
    page.extract_words.return_value = words
    return page


class TestPDFExtractor:
    """Test suite for PDFExtractor."""

    def test_initialization(self):
        """Test tolerances are configurable."""
        extractor = PDFExtractor()
        assert extractor.x_tolerance == 3.0
        assert extractor.y_tolerance == 3.0

        custom = PDFExtractor(x_tolerance=1.5, y_tolerance=2.0)
        assert custom.x_tolerance == 1.5
        assert custom.y_tolerance == 2.0

    def test_empty_bytes_raise_malformed(self):
        """Test empty input is rejected before decoding."""
        with pytest.raises(MalformedDocumentError) as exc_info:
            PDFExtractor().extract(b"")

        assert exc_info.value.error_code == "PARSE_002"
        assert exc_info.value.details["reason"] == "empty_document"

    @patch("fatura_parser.parsers.extractor.open_pdf")
    def test_decode_failure_raises_malformed(self, mock_open):
        """Test backend errors are wrapped in MalformedDocumentError."""
        mock_open.side_effect = ValueError("not a pdf")

        with pytest.raises(MalformedDocumentError) as exc_info:
            PDFExtractor().extract(b"garbage bytes")

        assert exc_info.value.error_code == "PARSE_002"
        assert exc_info.value.details["reason"] == "decode_failed"
        assert exc_info.value.http_status == 422

    def test_encrypted_pdf_rejected(self):
        """Test encrypted PDFs raise PARSE_003."""
        with pytest.raises(MalformedDocumentError) as exc_info:
            PDFExtractor().extract(_pdf_bytes(encrypt_with="secret"))

        assert exc_info.value.error_code == "PARSE_003"

    def test_blank_pdf_has_pages_without_runs(self):
        """Test a real blank PDF decodes to one empty page."""
        document = PDFExtractor().extract(_pdf_bytes())

        assert len(document.pages) == 1
        assert document.pages[0].number == 1
        assert document.run_count == 0

    @patch("fatura_parser.parsers.extractor.open_pdf")
    def test_words_become_glyph_runs(self, mock_open):
        """Test pdfplumber words map to positioned runs."""
        words = [
            {"text": "Subtotal deste cartão", "x0": 40.0, "x1": 150.0, "top": 100.0},
            {"text": "R$ 1.500,00", "x0": 170.0, "x1": 225.0, "top": 100.4},
            {"text": "   ", "x0": 230.0, "x1": 240.0, "top": 100.0},
        ]
        mock_open.return_value = _mock_pdf([_mock_page(words), _mock_page([])])

        document = PDFExtractor(x_tolerance=2.0).extract(b"fake pdf")

        assert len(document.pages) == 2
        assert document.metadata == {"Producer": "test"}
        runs = document.pages[0].runs
        assert [run.text for run in runs] == ["Subtotal deste cartão", "R$ 1.500,00"]
        assert runs[0].x == 40.0
        assert runs[0].width == 110.0
        assert runs[0].right == 150.0
        assert runs[1].y == 100.4
        assert runs[1].page == 1
        assert runs[1].spacing == pytest.approx(55.0 / len("R$ 1.500,00"))

        call_kwargs = mock_open.return_value.pages[0].extract_words.call_args.kwargs
        assert call_kwargs["x_tolerance"] == 2.0
        assert call_kwargs["keep_blank_chars"] is True
        assert call_kwargs["use_text_flow"] is True

    @patch("fatura_parser.parsers.extractor.open_pdf")
    def test_extract_uses_bytesio(self, mock_open):
        """Test that extract works in memory (no temp files)."""
        mock_open.return_value = _mock_pdf([])

        PDFExtractor().extract(b"fake pdf")

        stream = mock_open.call_args.args[0]
        assert isinstance(stream, io.BytesIO)
        assert stream.getvalue() == b"fake pdf"
