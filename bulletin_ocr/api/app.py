"""FastAPI application for the bulletin OCR API.

Provides REST endpoints for bulletin extraction, the service-code
registry, and health checks.
"""

import time
import uuid
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from bulletin_ocr import __version__
from bulletin_ocr.errors import EncodingError
from bulletin_ocr.extraction.pipeline import BulletinExtractor
from bulletin_ocr.extraction.service_codes import all_service_codes, is_valid_service_code
from bulletin_ocr.ocr.encoder import SUPPORTED_MIME_TYPES
from bulletin_ocr.utils.config import load_config
from bulletin_ocr.utils.logger import get_logger

from .schemas import (
    ExtractionResponse,
    HealthResponse,
    ServiceCodeInfo,
    ServiceCodesResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="Bulletin OCR API",
    description="Extract shift entries from SNCF bulletins de commande",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_extractor() -> BulletinExtractor:
    """Build an extraction pipeline from the current configuration."""
    return BulletinExtractor.from_config(load_config())


_ALLOWED_CONTENT_TYPES = SUPPORTED_MIME_TYPES | {"application/octet-stream"}


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    config = load_config()
    return HealthResponse(
        status="healthy",
        version=__version__,
        api_key_configured=config.mistral.resolve_api_key() is not None,
        vision_model=config.mistral.vision_model,
        text_model=config.mistral.text_model,
    )


@app.get("/service-codes", response_model=ServiceCodesResponse)
async def list_service_codes() -> ServiceCodesResponse:
    """List the service codes recognized on bulletins."""
    return ServiceCodesResponse(
        service_codes=[
            ServiceCodeInfo(
                code=sc.code,
                label=sc.label,
                service=sc.service,
                poste=sc.poste,
                valid=is_valid_service_code(sc.code),
            )
            for sc in all_service_codes()
        ]
    )


@app.post("/extract", response_model=ExtractionResponse)
async def extract_bulletin(
    file: Annotated[UploadFile, File(...)],
) -> ExtractionResponse:
    """Extract shift entries from an uploaded bulletin.

    Args:
        file: Uploaded bulletin (PDF or image).

    Returns:
        Extraction result with the method used and an accuracy score.
    """
    start_time = time.time()

    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )

    filename = file.filename or "document"
    try:
        content = await file.read()
        async with _get_extractor() as extractor:
            result = await extractor.extract(content, filename)
    except EncodingError as exc:
        logger.warning("Cannot encode %s: %s", filename, exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        logger.error("Extraction failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    processing_time = (time.time() - start_time) * 1000
    return ExtractionResponse.model_validate(
        {
            **result.to_dict(),
            "documentId": str(uuid.uuid4()),
            "filename": filename,
            "needsReview": result.needs_review,
            "processingTimeMs": processing_time,
        }
    )
