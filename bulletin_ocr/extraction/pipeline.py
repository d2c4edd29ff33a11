"""Extraction pipeline orchestrating model strategies and manual fallback.

Strategies are tried once each, in order. The first successful response
is normalized; if it cannot be parsed, or if every strategy fails, the
manual regex extractor produces a best-effort result. Only unreadable
documents raise.
"""

import asyncio
from pathlib import Path

from bulletin_ocr.client.mistral_client import MistralClient
from bulletin_ocr.errors import ResponseParseError
from bulletin_ocr.ocr.encoder import DocumentEncoder
from bulletin_ocr.ocr.pdf_handler import PDFHandler
from bulletin_ocr.utils.config import AppConfig
from bulletin_ocr.utils.logger import get_logger

from .manual_extractor import ManualExtractor
from .models import ExtractionResult
from .normalizer import normalize_response
from .strategies import ExtractionStrategy, TextFallbackStrategy, VisionStrategy

logger = get_logger(__name__)

STRATEGY_NAMES = ("vision", "text")


class BulletinExtractor:
    """Runs an ordered list of extraction strategies over a document.

    Args:
        strategies: Strategies to try, in order.
        manual_extractor: Regex extractor used as last resort.
        encoder: Reads documents from paths or bytes.
        pdf_handler: Supplies PDF text for the manual fallback when no
            strategy read it.
        client: Client closed together with the extractor, if any.
    """

    def __init__(
        self,
        strategies: list[ExtractionStrategy],
        manual_extractor: ManualExtractor,
        encoder: DocumentEncoder,
        pdf_handler: PDFHandler | None = None,
        client: MistralClient | None = None,
    ) -> None:
        self.strategies = strategies
        self.manual_extractor = manual_extractor
        self.encoder = encoder
        self.pdf_handler = pdf_handler or encoder.pdf_handler
        self._client = client

    @classmethod
    def from_config(
        cls, config: AppConfig, client: MistralClient | None = None
    ) -> "BulletinExtractor":
        """Build the default pipeline described by ``config``.

        Raises:
            ValueError: If ``config.extraction.strategies`` names an
                unknown strategy.
        """
        for name in config.extraction.strategies:
            if name not in STRATEGY_NAMES:
                raise ValueError(
                    f"Unknown extraction strategy {name!r}, expected one of {STRATEGY_NAMES}"
                )

        client = client or MistralClient(config.mistral)
        encoder = DocumentEncoder(config.document)
        pdf_handler = encoder.pdf_handler

        strategies: list[ExtractionStrategy] = []
        for name in config.extraction.strategies:
            if name == "vision":
                strategies.append(VisionStrategy(client, encoder))
            else:
                strategies.append(TextFallbackStrategy(client, pdf_handler))

        manual = ManualExtractor(
            context_before=config.extraction.context_before,
            context_after=config.extraction.context_after,
        )
        return cls(strategies, manual, encoder, pdf_handler, client)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()

    async def __aenter__(self) -> "BulletinExtractor":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def extract(
        self, source: Path | bytes, filename: str = "document"
    ) -> ExtractionResult:
        """Extract shift entries from a bulletin.

        Args:
            source: Path to the document or its raw bytes.
            filename: Display name used in logs.

        Returns:
            The best-effort extraction result.

        Raises:
            EncodingError: If the document cannot be read or encoded.
        """
        logger.info("Extracting bulletin: %s", filename)
        data = self.encoder.read(source)

        errors: list[str] = []
        source_text: str | None = None

        for strategy in self.strategies:
            outcome = await strategy.attempt(data)
            if outcome.source_text is not None:
                source_text = outcome.source_text

            if not outcome.success:
                logger.warning(
                    "Strategy %s failed for %s: %s", strategy.name, filename, outcome.error
                )
                errors.append(f"{strategy.name}: {outcome.error}")
                continue

            try:
                result = normalize_response(
                    outcome.content or "", strategy.method, tuple(errors)
                )
            except ResponseParseError as exc:
                logger.warning(
                    "Could not parse %s response for %s: %s", strategy.name, filename, exc
                )
                errors.append(f"{strategy.name}: {exc}")
                return self.manual_extractor.extract(outcome.content or "", tuple(errors))

            logger.info(
                "Extracted %d entries from %s via %s",
                len(result.entries),
                filename,
                result.extraction_method,
            )
            return result

        logger.warning("All model strategies failed for %s, using manual extraction", filename)
        if source_text is None:
            source_text = await self._local_text(data)
        return self.manual_extractor.extract(source_text, tuple(errors))

    async def _local_text(self, data: bytes) -> str:
        try:
            return await asyncio.to_thread(self.pdf_handler.extract_text, data)
        except RuntimeError as exc:
            logger.warning("Text extraction for manual fallback failed: %s", exc)
            return ""
