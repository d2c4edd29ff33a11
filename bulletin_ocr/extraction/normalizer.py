"""Normalization of model responses into ``ExtractionResult`` objects.

Strips markdown fences, parses the JSON the prompt asked for, converts
``JJ/MM/AAAA`` dates to ISO form and checks service codes against the
registry. Normalizing an already-normalized payload returns the same
entries.
"""

import json
import re
from datetime import date
from typing import Any

from bulletin_ocr.errors import ResponseParseError
from bulletin_ocr.utils.logger import get_logger

from .models import (
    BulletinMetadata,
    ExtractionMethod,
    ExtractionResult,
    HoraireType,
    ShiftEntry,
    TimeRange,
)
from .service_codes import get_service_label, is_night_code, is_valid_service_code

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)
_DISPLAY_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

_METADATA_KEYS = {
    "agent": "agent",
    "numeroCP": "numero_cp",
    "dateEdition": "date_edition",
    "periodeDebut": "periode_debut",
    "periodeFin": "periode_fin",
}


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```json ... ```) from a response."""
    return _FENCE_RE.sub("", text).strip()


def parse_response(text: str) -> dict[str, Any]:
    """Parse a model response into a JSON object.

    Falls back to the outermost ``{...}`` span when the model wrapped the
    JSON in prose.

    Raises:
        ResponseParseError: If no JSON object can be read.
    """
    cleaned = strip_code_fences(text or "")
    if not cleaned:
        raise ResponseParseError("empty response")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ResponseParseError(f"invalid JSON: {exc}") from exc
        try:
            data = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as inner:
            raise ResponseParseError(f"invalid JSON: {inner}") from inner

    if not isinstance(data, dict):
        raise ResponseParseError(f"expected a JSON object, got {type(data).__name__}")
    return data


def to_iso_date(display: str) -> str:
    """Convert ``D/M/YYYY`` into zero-padded ``YYYY-MM-DD``.

    ``5/3/2026`` becomes ``2026-03-05``.

    Raises:
        ValueError: If ``display`` is not a real calendar date in that format.
    """
    match = _DISPLAY_DATE_RE.match(display.strip())
    if not match:
        raise ValueError(f"not a JJ/MM/AAAA date: {display!r}")
    day, month, year = match.groups()
    date(int(year), int(month), int(day))
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def to_display_date(iso: str) -> str:
    """Convert ``YYYY-MM-DD`` back into ``DD/MM/YYYY``.

    Raises:
        ValueError: If ``iso`` is not a real calendar date.
    """
    parsed = date.fromisoformat(iso)
    return f"{parsed.day:02d}/{parsed.month:02d}/{parsed.year}"


def _hour(clock: str) -> int | None:
    match = _CLOCK_RE.match(clock)
    return int(match.group(1)) if match else None


def is_night_service(horaires: tuple[TimeRange, ...]) -> bool:
    """Whether any range starts from 22h, or starts from 20h and ends by 8h."""
    for horaire in horaires:
        start, end = _hour(horaire.debut), _hour(horaire.fin)
        if start is None:
            continue
        if start >= 22 or (start >= 20 and end is not None and end <= 8):
            return True
    return False


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_metadata(raw: Any) -> BulletinMetadata:
    if not isinstance(raw, dict):
        return BulletinMetadata()
    return BulletinMetadata(
        **{attr: _optional_str(raw.get(key)) for key, attr in _METADATA_KEYS.items()}
    )


def _normalize_horaires(raw: Any, errors: list[str]) -> tuple[TimeRange, ...]:
    if not isinstance(raw, list):
        return ()
    ranges: list[TimeRange] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        kind = str(item.get("type") or "").strip().upper()
        try:
            horaire_type = HoraireType(kind)
        except ValueError:
            errors.append(f"Type d'horaire inconnu: {kind or '?'}")
            continue
        ranges.append(
            TimeRange(
                type=horaire_type,
                debut=str(item.get("debut") or "").strip(),
                fin=str(item.get("fin") or "").strip(),
                code=str(item.get("code") or "").strip(),
            )
        )
    return tuple(ranges)


def normalize_entry(raw: dict[str, Any]) -> ShiftEntry:
    """Turn one raw entry into a ``ShiftEntry``.

    Accepts both the model's shape (``date`` as ``JJ/MM/AAAA``) and an
    already-normalized entry (ISO ``date`` plus ``dateDisplay``). A bare
    ISO ``date`` gets its ``JJ/MM/AAAA`` display form rebuilt, so ``date``
    is always derived from ``date_display``.
    """
    errors: list[str] = []

    display = _optional_str(raw.get("dateDisplay")) or _optional_str(raw.get("date")) or ""
    try:
        if _ISO_DATE_RE.match(display):
            display = to_display_date(display)
        iso = to_iso_date(display)
    except ValueError:
        iso = ""
        errors.append(f"Date illisible: {display or '?'}")

    code = _optional_str(raw.get("serviceCode")) or ""
    label = _optional_str(raw.get("serviceLabel")) or get_service_label(code)
    horaires = _normalize_horaires(raw.get("horaires"), errors)

    previous = _optional_str(raw.get("errorMessage"))
    messages = previous.split("; ") if previous else []
    messages.extend(e for e in errors if e not in messages)

    return ShiftEntry(
        date=iso,
        date_display=display,
        day_of_week=_optional_str(raw.get("dayOfWeek")),
        service_code=code,
        service_label=label,
        horaires=horaires,
        complement=_optional_str(raw.get("complement")),
        is_night=is_night_code(code) or is_night_service(horaires),
        is_valid=is_valid_service_code(code),
        has_error=raw.get("hasError") is True or bool(errors),
        error_message="; ".join(messages) or None,
    )


def compute_accuracy(entries: tuple[ShiftEntry, ...]) -> float:
    """Share of entries with a known code and no error, as a percentage."""
    if not entries:
        return 0.0
    good = sum(1 for e in entries if e.is_valid and not e.has_error)
    return round(100.0 * good / len(entries), 2)


def normalize(
    data: dict[str, Any],
    method: ExtractionMethod,
    errors: tuple[str, ...] = (),
) -> ExtractionResult:
    """Build an ``ExtractionResult`` from a parsed response.

    Args:
        data: JSON object returned by the model.
        method: Strategy that produced ``data``.
        errors: Failures collected by earlier strategies.
    """
    raw_entries = data.get("entries")
    if not isinstance(raw_entries, list):
        raw_entries = []

    entries = tuple(normalize_entry(e) for e in raw_entries if isinstance(e, dict))
    skipped = len(raw_entries) - len(entries)
    if skipped:
        logger.warning("Skipped %d malformed entries", skipped)

    logger.debug("Normalized %d entries", len(entries))
    return ExtractionResult(
        metadata=normalize_metadata(data.get("metadata")),
        entries=entries,
        extraction_method=method,
        accuracy=compute_accuracy(entries),
        errors=errors,
    )


def normalize_response(
    text: str,
    method: ExtractionMethod,
    errors: tuple[str, ...] = (),
) -> ExtractionResult:
    """Parse and normalize a raw model response.

    Raises:
        ResponseParseError: If ``text`` holds no JSON object.
    """
    return normalize(parse_response(text), method, errors)
