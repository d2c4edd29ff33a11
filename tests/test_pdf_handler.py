"""Tests for PDF handling and document encoding."""

import base64
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from bulletin_ocr.errors import EncodingError
from bulletin_ocr.ocr.encoder import DocumentEncoder, detect_image_mime, encode_base64
from bulletin_ocr.ocr.pdf_handler import PDFHandler, is_pdf
from bulletin_ocr.utils.config import DocumentConfig


def _mock_pdfplumber(texts: list[str | None]) -> MagicMock:
    pages = []
    for text in texts:
        page = MagicMock()
        page.extract_text.return_value = text
        pages.append(page)
    pdf = MagicMock()
    pdf.pages = pages
    opened = MagicMock()
    opened.__enter__.return_value = pdf
    opened.__exit__.return_value = False
    return opened


class TestPDFHandler:
    """Tests for the PDFHandler class."""

    def test_init_defaults(self) -> None:
        handler = PDFHandler()
        assert handler.dpi == 200
        assert handler.max_pages == 4

    def test_is_pdf(self, pdf_bytes: bytes, png_bytes: bytes) -> None:
        assert is_pdf(pdf_bytes)
        assert is_pdf(b"\n  %PDF-1.7")
        assert not is_pdf(png_bytes)

    @patch("bulletin_ocr.ocr.pdf_handler.convert_from_bytes")
    def test_pdf_to_jpegs(self, mock_convert: MagicMock, pdf_bytes: bytes) -> None:
        mock_convert.return_value = [Image.new("RGB", (10, 10)), Image.new("L", (10, 10))]
        handler = PDFHandler(dpi=150, max_pages=2)

        pages = handler.pdf_to_jpegs(pdf_bytes)

        assert len(pages) == 2
        assert all(p.startswith(b"\xff\xd8") for p in pages)
        mock_convert.assert_called_once_with(pdf_bytes, dpi=150, first_page=1, last_page=2)

    @patch("bulletin_ocr.ocr.pdf_handler.convert_from_bytes")
    def test_pdf_to_jpegs_failure(self, mock_convert: MagicMock, pdf_bytes: bytes) -> None:
        mock_convert.side_effect = Exception("poppler missing")
        with pytest.raises(RuntimeError, match="PDF conversion failed"):
            PDFHandler().pdf_to_jpegs(pdf_bytes)

    @patch("bulletin_ocr.ocr.pdf_handler.pdfplumber")
    def test_extract_page_texts(self, mock_plumber: MagicMock, pdf_bytes: bytes) -> None:
        mock_plumber.open.return_value = _mock_pdfplumber(["page 1", None, "page 3"])
        assert PDFHandler().extract_page_texts(pdf_bytes) == ["page 1", "", "page 3"]

    @patch("bulletin_ocr.ocr.pdf_handler.pdfplumber")
    def test_extract_text_joins_pages(self, mock_plumber: MagicMock, pdf_bytes: bytes) -> None:
        mock_plumber.open.return_value = _mock_pdfplumber(["a", "b"])
        assert PDFHandler().extract_text(pdf_bytes) == "a\nb"

    @patch("bulletin_ocr.ocr.pdf_handler.pdfplumber")
    def test_extract_text_failure(self, mock_plumber: MagicMock, pdf_bytes: bytes) -> None:
        mock_plumber.open.side_effect = Exception("broken xref")
        with pytest.raises(RuntimeError, match="PDF text extraction failed"):
            PDFHandler().extract_text(pdf_bytes)

    def test_extract_text_non_pdf(self, png_bytes: bytes) -> None:
        assert PDFHandler().extract_text(png_bytes) == ""


class TestDocumentEncoder:
    """Tests for the DocumentEncoder class."""

    def setup_method(self) -> None:
        self.encoder = DocumentEncoder(DocumentConfig(pdf_dpi=100, max_pages=2))

    def test_encode_base64(self) -> None:
        assert encode_base64(b"bulletin") == base64.b64encode(b"bulletin").decode()

    def test_handler_built_from_config(self) -> None:
        assert self.encoder.pdf_handler.dpi == 100
        assert self.encoder.pdf_handler.max_pages == 2

    def test_read_bytes(self) -> None:
        assert self.encoder.read(b"abc") == b"abc"

    def test_read_path(self, tmp_path: Path) -> None:
        path = tmp_path / "bulletin.pdf"
        path.write_bytes(b"%PDF-1.4")
        assert self.encoder.read(path) == b"%PDF-1.4"

    def test_read_missing_file(self) -> None:
        with pytest.raises(EncodingError, match="Cannot read"):
            self.encoder.read(Path("/nonexistent/bulletin.pdf"))

    def test_read_empty(self) -> None:
        with pytest.raises(EncodingError, match="empty"):
            self.encoder.read(b"")

    def test_image_data_url(self, png_bytes: bytes) -> None:
        urls = self.encoder.to_data_urls(png_bytes)
        assert urls == [f"data:image/png;base64,{encode_base64(png_bytes)}"]

    def test_pdf_data_urls(self, pdf_bytes: bytes) -> None:
        with patch.object(self.encoder.pdf_handler, "pdf_to_jpegs", return_value=[b"j1", b"j2"]):
            urls = self.encoder.to_data_urls(pdf_bytes)
        assert urls == [
            f"data:image/jpeg;base64,{encode_base64(b'j1')}",
            f"data:image/jpeg;base64,{encode_base64(b'j2')}",
        ]

    def test_pdf_render_failure_propagates(self, pdf_bytes: bytes) -> None:
        with patch.object(
            self.encoder.pdf_handler, "pdf_to_jpegs", side_effect=RuntimeError("bad pdf")
        ):
            with pytest.raises(RuntimeError, match="bad pdf"):
                self.encoder.to_data_urls(pdf_bytes)

    def test_pdf_without_pages(self, pdf_bytes: bytes) -> None:
        with patch.object(self.encoder.pdf_handler, "pdf_to_jpegs", return_value=[]):
            with pytest.raises(RuntimeError, match="no pages"):
                self.encoder.to_data_urls(pdf_bytes)

    def test_unknown_format(self) -> None:
        with pytest.raises(EncodingError, match="Unsupported"):
            self.encoder.to_data_urls(b"just some text")

    def test_detect_mime(self, png_bytes: bytes) -> None:
        assert detect_image_mime(png_bytes) == "image/png"
