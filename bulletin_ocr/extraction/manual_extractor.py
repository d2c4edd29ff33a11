"""Regex-based best-effort extraction of bulletin text.

Used when no model response could be parsed. Results from this extractor
always carry an accuracy of zero and must be reviewed by a human.
"""

import re

from bulletin_ocr.utils.logger import get_logger

from .models import BulletinMetadata, ExtractionMethod, ExtractionResult, ShiftEntry
from .service_codes import MANUAL_SCAN_CODES, get_service_label, is_night_code

logger = get_logger(__name__)

_AGENT_PATTERN = re.compile(
    r"Agent\s*:?[ \t]*([A-ZÀÂÄÉÈÊËÏÎÔÖÙÛÜÇ][A-ZÀÂÄÉÈÊËÏÎÔÖÙÛÜÇ' \t\-]*)",
    re.IGNORECASE,
)
_CP_PATTERN = re.compile(r"\bCP\s*:?\s*([A-Z0-9]+)", re.IGNORECASE)
_DATE_PATTERN = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")

UNKNOWN_CODE = "INCONNU"
UNKNOWN_LABEL = "À vérifier manuellement"
INCOMPLETE_MESSAGE = "Extraction automatique incomplète"


class ManualExtractor:
    """Scans raw text for an agent, a CP number and dated service codes.

    Args:
        context_before: Characters inspected before each date match.
        context_after: Characters inspected from the start of each date match.
        scan_codes: Codes searched near each date, first match wins.
    """

    def __init__(
        self,
        context_before: int = 50,
        context_after: int = 100,
        scan_codes: tuple[str, ...] = MANUAL_SCAN_CODES,
    ) -> None:
        self.context_before = context_before
        self.context_after = context_after
        self.scan_codes = scan_codes

    def extract(self, text: str, errors: tuple[str, ...] = ()) -> ExtractionResult:
        """Extract whatever can be recognized in ``text``.

        Args:
            text: Raw model response or PDF text.
            errors: Failures collected by earlier strategies.

        Returns:
            A manual-regex result with one entry per date match.
        """
        text = text or ""
        logger.info("Running manual extraction over %d chars", len(text))

        entries = tuple(
            self._entry_for_match(text, match) for match in _DATE_PATTERN.finditer(text)
        )
        logger.info(
            "Manual extraction found %d dates, %d with a service code",
            len(entries),
            sum(1 for e in entries if e.is_valid),
        )

        return ExtractionResult(
            metadata=self.extract_metadata(text),
            entries=entries,
            extraction_method=ExtractionMethod.MANUAL_REGEX,
            accuracy=0.0,
            errors=errors,
        )

    def extract_metadata(self, text: str) -> BulletinMetadata:
        agent_match = _AGENT_PATTERN.search(text)
        cp_match = _CP_PATTERN.search(text)
        agent = agent_match.group(1).strip() if agent_match else None
        return BulletinMetadata(
            agent=agent or None,
            numero_cp=cp_match.group(1) if cp_match else None,
        )

    def find_service_code(self, text: str, position: int) -> str | None:
        """Return the first scan code found in the window around ``position``."""
        start = max(0, position - self.context_before)
        end = min(len(text), position + self.context_after)
        context = text[start:end]
        for code in self.scan_codes:
            if code in context:
                return code
        return None

    def _entry_for_match(self, text: str, match: re.Match[str]) -> ShiftEntry:
        day, month, year = match.groups()
        iso = f"{year}-{month.zfill(2)}-{day.zfill(2)}"
        code = self.find_service_code(text, match.start())

        if code is None:
            return ShiftEntry(
                date=iso,
                date_display=match.group(0),
                service_code=UNKNOWN_CODE,
                service_label=UNKNOWN_LABEL,
                is_valid=False,
                error_message=INCOMPLETE_MESSAGE,
            )

        return ShiftEntry(
            date=iso,
            date_display=match.group(0),
            service_code=code,
            service_label=get_service_label(code),
            is_night=is_night_code(code),
            is_valid=True,
        )
