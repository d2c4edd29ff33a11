"""Remote extraction strategies tried in order by the pipeline.

Each strategy makes at most one model call and reports a tagged outcome
instead of raising, except for unreadable documents.
"""

import asyncio
from dataclasses import dataclass
from typing import Protocol

from bulletin_ocr.client.mistral_client import MistralClient
from bulletin_ocr.ocr.encoder import DocumentEncoder
from bulletin_ocr.ocr.pdf_handler import PDFHandler
from bulletin_ocr.utils.logger import get_logger

from .models import ExtractionMethod
from .prompts import build_extraction_prompt, build_text_fallback_prompt

logger = get_logger(__name__)


@dataclass(frozen=True)
class StrategyOutcome:
    """Result of one strategy attempt.

    ``source_text`` holds any document text the strategy read locally, so
    the manual fallback can reuse it.
    """

    success: bool
    content: str | None = None
    error: str | None = None
    source_text: str | None = None


class ExtractionStrategy(Protocol):
    name: str
    method: ExtractionMethod

    async def attempt(self, data: bytes) -> StrategyOutcome: ...


class VisionStrategy:
    """Sends page images and the prompt to the vision model.

    A PDF that cannot be rendered fails this strategy only, so the text
    fallback still gets a chance at the same bytes.

    Raises:
        EncodingError: From ``attempt`` when the document is neither a PDF
            nor a readable image.
    """

    name = "vision"
    method = ExtractionMethod.MODEL_VISION

    def __init__(self, client: MistralClient, encoder: DocumentEncoder) -> None:
        self.client = client
        self.encoder = encoder

    async def attempt(self, data: bytes) -> StrategyOutcome:
        try:
            image_urls = await asyncio.to_thread(self.encoder.to_data_urls, data)
        except RuntimeError as exc:
            logger.warning("Page rendering failed: %s", exc)
            return StrategyOutcome(success=False, error=str(exc))

        logger.info("Calling vision model with %d page image(s)", len(image_urls))
        result = await self.client.complete_vision(build_extraction_prompt(), image_urls)
        if not result.success:
            return StrategyOutcome(success=False, error=result.error)
        return StrategyOutcome(success=True, content=result.content)


class TextFallbackStrategy:
    """Extracts the PDF text layer and sends it to the text model."""

    name = "text"
    method = ExtractionMethod.MODEL_TEXT_FALLBACK

    def __init__(self, client: MistralClient, pdf_handler: PDFHandler) -> None:
        self.client = client
        self.pdf_handler = pdf_handler

    async def attempt(self, data: bytes) -> StrategyOutcome:
        try:
            text = await asyncio.to_thread(self.pdf_handler.extract_text, data)
        except RuntimeError as exc:
            logger.warning("Text extraction failed: %s", exc)
            return StrategyOutcome(success=False, error=str(exc))

        if not text.strip():
            return StrategyOutcome(success=False, error="no text layer", source_text="")

        logger.info("Calling text model with %d chars of extracted text", len(text))
        result = await self.client.complete_text(build_text_fallback_prompt(text))
        if not result.success:
            return StrategyOutcome(success=False, error=result.error, source_text=text)
        return StrategyOutcome(success=True, content=result.content, source_text=text)
