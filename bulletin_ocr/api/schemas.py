"""Pydantic response schemas for the FastAPI endpoints.

Field names are snake_case in Python and camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bulletin_ocr.extraction.models import ExtractionMethod, HoraireType


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeRangeResponse(_CamelModel):
    """Response schema for a time range within a shift."""

    type: HoraireType
    debut: str
    fin: str
    code: str = ""


class ShiftEntryResponse(_CamelModel):
    """Response schema for a single shift entry."""

    date: str
    date_display: str
    day_of_week: str | None = None
    service_code: str
    service_label: str
    horaires: list[TimeRangeResponse] = []
    complement: str | None = None
    is_night: bool = False
    is_valid: bool
    has_error: bool = False
    error_message: str | None = None


class MetadataResponse(_CamelModel):
    """Response schema for bulletin header information."""

    agent: str | None = None
    numero_cp: str | None = Field(default=None, alias="numeroCP")
    date_edition: str | None = None
    periode_debut: str | None = None
    periode_fin: str | None = None


class ExtractionResponse(_CamelModel):
    """Response schema for a bulletin extraction request."""

    document_id: str
    filename: str
    metadata: MetadataResponse
    entries: list[ShiftEntryResponse]
    extraction_method: ExtractionMethod
    accuracy: float
    needs_review: bool
    errors: list[str] = []
    processing_time_ms: float


class ServiceCodeInfo(_CamelModel):
    """A registered service code."""

    code: str
    label: str
    service: str | None = None
    poste: str | None = None
    valid: bool = True


class ServiceCodesResponse(_CamelModel):
    """Response schema listing known service codes."""

    service_codes: list[ServiceCodeInfo]


class HealthResponse(_CamelModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    api_key_configured: bool
    vision_model: str
    text_model: str
