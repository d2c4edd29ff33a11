"""Result types produced by the extraction pipeline.

All types are frozen dataclasses. ``to_dict`` renders the camelCase shape
consumed by the planning UI.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ExtractionMethod(StrEnum):
    """Which stage of the pipeline produced a result."""

    MODEL_VISION = "model_vision"
    MODEL_TEXT_FALLBACK = "model_text_fallback"
    MANUAL_REGEX = "manual_regex"


class HoraireType(StrEnum):
    """Kind of time range printed on a bulletin line."""

    METRO = "METRO"
    SERVICE = "SERVICE"
    RS = "RS"


@dataclass(frozen=True)
class TimeRange:
    """A single time range within a shift."""

    type: HoraireType
    debut: str
    fin: str
    code: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "debut": self.debut,
            "fin": self.fin,
            "code": self.code,
        }


@dataclass(frozen=True)
class BulletinMetadata:
    """Header information of a bulletin."""

    agent: str | None = None
    numero_cp: str | None = None
    date_edition: str | None = None
    periode_debut: str | None = None
    periode_fin: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent": self.agent,
            "numeroCP": self.numero_cp,
            "dateEdition": self.date_edition,
            "periodeDebut": self.periode_debut,
            "periodeFin": self.periode_fin,
        }


@dataclass(frozen=True)
class ShiftEntry:
    """One dated service line of a bulletin.

    ``date`` is the ISO form of ``date_display``. ``is_valid`` only says
    whether ``service_code`` is a known code. ``is_night`` marks services
    that run overnight; they stay dated on their start day.
    """

    date: str
    date_display: str
    service_code: str
    service_label: str
    day_of_week: str | None = None
    horaires: tuple[TimeRange, ...] = ()
    complement: str | None = None
    is_night: bool = False
    is_valid: bool = False
    has_error: bool = False
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "dateDisplay": self.date_display,
            "dayOfWeek": self.day_of_week,
            "serviceCode": self.service_code,
            "serviceLabel": self.service_label,
            "horaires": [h.to_dict() for h in self.horaires],
            "complement": self.complement,
            "isNight": self.is_night,
            "isValid": self.is_valid,
            "hasError": self.has_error,
            "errorMessage": self.error_message,
        }


@dataclass(frozen=True)
class ExtractionResult:
    """Complete, immutable outcome of one extraction call."""

    metadata: BulletinMetadata
    entries: tuple[ShiftEntry, ...]
    extraction_method: ExtractionMethod
    accuracy: float
    errors: tuple[str, ...] = field(default=())

    @property
    def needs_review(self) -> bool:
        """Whether a human should check the result before importing it."""
        if self.extraction_method == ExtractionMethod.MANUAL_REGEX:
            return True
        return any(e.has_error or not e.is_valid for e in self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "entries": [e.to_dict() for e in self.entries],
            "extractionMethod": self.extraction_method.value,
            "accuracy": self.accuracy,
            "errors": list(self.errors),
        }
