"""Document encoding for the Mistral vision API.

Reads an uploaded bulletin and turns it into base64 ``data:`` URLs, one
per page image.
"""

import base64
import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from bulletin_ocr.errors import EncodingError
from bulletin_ocr.utils.config import DocumentConfig
from bulletin_ocr.utils.logger import get_logger

from .pdf_handler import PDFHandler, is_pdf

logger = get_logger(__name__)

_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "TIFF": "image/tiff",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "BMP": "image/bmp",
}

SUPPORTED_MIME_TYPES: frozenset[str] = frozenset(_MIME_TYPES.values()) | {"application/pdf"}


def encode_base64(data: bytes) -> str:
    """Encode raw bytes as an ASCII base64 string."""
    return base64.b64encode(data).decode("ascii")


def detect_image_mime(data: bytes) -> str:
    """Return the MIME type of an image payload.

    Raises:
        EncodingError: If Pillow cannot identify the image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format or ""
    except (UnidentifiedImageError, OSError) as exc:
        raise EncodingError(f"Unsupported document format: {exc}") from exc
    return _MIME_TYPES.get(fmt, "image/jpeg")


class DocumentEncoder:
    """Reads documents and encodes them for the vision model.

    Args:
        config: Document configuration (DPI, page cap, JPEG quality).
        pdf_handler: Optional PDF handler; built from ``config`` if omitted.
    """

    def __init__(
        self, config: DocumentConfig, pdf_handler: PDFHandler | None = None
    ) -> None:
        self.config = config
        self.pdf_handler = pdf_handler or PDFHandler(
            dpi=config.pdf_dpi,
            max_pages=config.max_pages,
            jpeg_quality=config.jpeg_quality,
        )

    def read(self, source: Path | bytes) -> bytes:
        """Load a document from a path or pass bytes through.

        Raises:
            EncodingError: If the file cannot be read or is empty.
        """
        if isinstance(source, str | Path):
            try:
                data = Path(source).read_bytes()
            except OSError as exc:
                raise EncodingError(f"Cannot read document {source}: {exc}") from exc
        else:
            data = bytes(source)

        if not data:
            raise EncodingError("Document is empty")
        return data

    def to_data_urls(self, data: bytes) -> list[str]:
        """Encode a document as one ``data:`` URL per page image.

        PDFs are rendered to JPEG first; images keep their own format.

        Raises:
            RuntimeError: If a PDF cannot be rendered to page images.
            EncodingError: If the document is neither a PDF nor an image.
        """
        if is_pdf(data):
            pages = self.pdf_handler.pdf_to_jpegs(data)
            if not pages:
                raise RuntimeError("PDF has no pages")
            return [f"data:image/jpeg;base64,{encode_base64(p)}" for p in pages]

        mime = detect_image_mime(data)
        logger.debug("Encoding %d-byte %s image", len(data), mime)
        return [f"data:{mime};base64,{encode_base64(data)}"]
