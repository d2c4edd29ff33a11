"""Shared test fixtures for the bulletin OCR test suite."""

import io
import json
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
from PIL import Image

from bulletin_ocr.client.mistral_client import MistralClient
from bulletin_ocr.utils.config import MistralConfig

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def bulletin_payload() -> dict:
    """A model response matching the prompt schema."""
    return {
        "metadata": {
            "agent": "DUPONT JEAN",
            "numeroCP": "8507312A",
            "dateEdition": "28/02/2026",
            "periodeDebut": "01/03/2026",
            "periodeFin": "07/03/2026",
        },
        "entries": [
            {
                "date": "5/3/2026",
                "dayOfWeek": "Jeu",
                "serviceCode": "CCU001",
                "horaires": [
                    {"type": "METRO", "debut": "05:35", "fin": "06:00", "code": "N1100010CO72"},
                    {"type": "SERVICE", "debut": "06:00", "fin": "14:00", "code": "CCU001"},
                ],
                "complement": "du CCU601",
            },
            {
                "date": "06/03/2026",
                "dayOfWeek": "Ven",
                "serviceCode": "RP",
                "serviceLabel": "Repos",
                "horaires": [],
            },
            {
                "date": "07/03/2026",
                "dayOfWeek": "Sam",
                "serviceCode": "XYZ999",
            },
        ],
    }


@pytest.fixture
def bulletin_json(bulletin_payload: dict) -> str:
    return json.dumps(bulletin_payload, ensure_ascii=False)


@pytest.fixture
def bulletin_text() -> str:
    """Plain text of a bulletin, as read from a PDF text layer."""
    return (
        "BULLETIN DE COMMANDE\n"
        "Agent : DUPONT JEAN\n"
        "N° CP : 8507312A\n"
        "03/03/2026 Mar CCU002 METRO 13:05 13:30 SERVICE 13:30 21:30\n"
        "04/03/2026 Mer RP Repos périodique\n"
        "05/03/2026 Jeu formation à confirmer\n"
    )


@pytest.fixture
def png_bytes() -> bytes:
    """A minimal PNG image."""
    buf = io.BytesIO()
    Image.new("RGB", (20, 10), color="white").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def pdf_bytes() -> bytes:
    """Bytes carrying the PDF signature; PDF libraries are mocked in tests."""
    return b"%PDF-1.4\n% fake bulletin\n"


@pytest.fixture
def make_client() -> Callable[[Handler], MistralClient]:
    """Factory for a ``MistralClient`` backed by a mock transport."""

    def _make(handler: Handler) -> MistralClient:
        return MistralClient(
            MistralConfig(timeout_seconds=5, connect_timeout_seconds=1),
            api_key="test-key",
            transport=httpx.MockTransport(handler),
        )

    return _make
