"""PDF handling for bulletin uploads.

Rasterizes PDF pages to JPEG for the vision model and pulls per-page
plain text for the text-model fallback.
"""

import io

import pdfplumber
from pdf2image import convert_from_bytes

from bulletin_ocr.utils.logger import get_logger

logger = get_logger(__name__)

PDF_MAGIC = b"%PDF"


def is_pdf(data: bytes) -> bool:
    """Whether ``data`` starts with the PDF signature."""
    return data[:1024].lstrip().startswith(PDF_MAGIC)


class PDFHandler:
    """Converts PDF bytes into model inputs.

    Args:
        dpi: Resolution for rendering pages to images.
        max_pages: Maximum number of pages rendered for the vision model.
        jpeg_quality: JPEG quality of rendered pages.
    """

    def __init__(self, dpi: int = 200, max_pages: int = 4, jpeg_quality: int = 90) -> None:
        self.dpi = dpi
        self.max_pages = max_pages
        self.jpeg_quality = jpeg_quality

    def pdf_to_jpegs(self, data: bytes) -> list[bytes]:
        """Render the first ``max_pages`` pages of a PDF as JPEG bytes.

        Args:
            data: Raw PDF bytes.

        Returns:
            One JPEG-encoded image per rendered page.

        Raises:
            RuntimeError: If PDF rendering fails.
        """
        try:
            pil_images = convert_from_bytes(
                data, dpi=self.dpi, first_page=1, last_page=self.max_pages
            )
        except Exception as exc:
            raise RuntimeError(f"PDF conversion failed: {exc}") from exc

        pages: list[bytes] = []
        for img in pil_images:
            buf = io.BytesIO()
            img.convert("RGB").save(buf, format="JPEG", quality=self.jpeg_quality)
            pages.append(buf.getvalue())

        logger.info("Rendered %d PDF pages at %d DPI", len(pages), self.dpi)
        return pages

    def extract_page_texts(self, data: bytes) -> list[str]:
        """Extract the plain text of every page.

        Args:
            data: Raw PDF bytes.

        Returns:
            Text per page, empty strings for pages without a text layer.

        Raises:
            RuntimeError: If the PDF cannot be opened.
        """
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                texts = [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise RuntimeError(f"PDF text extraction failed: {exc}") from exc

        logger.debug(
            "Extracted text from %d pages (%d chars)",
            len(texts),
            sum(len(t) for t in texts),
        )
        return texts

    def extract_text(self, data: bytes) -> str:
        """Extract the whole document text, one line break between pages.

        Non-PDF input yields an empty string.
        """
        if not is_pdf(data):
            return ""
        return "\n".join(self.extract_page_texts(data))
