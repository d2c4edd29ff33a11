"""Static registry of SNCF service codes found on bulletins.

Maps each code to a human-readable label and, where the planning grid
needs it, to the service symbol and poste used for import.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ServiceCode:
    """A known bulletin service code."""

    code: str
    label: str
    service: str | None = None
    poste: str | None = None


_REGISTRY: dict[str, ServiceCode] = {
    sc.code: sc
    for sc in (
        ServiceCode("CCU001", "CRC/CCU DENFERT", "-", "CCU"),
        ServiceCode("CCU002", "CRC/CCU DENFERT", "O", "CCU"),
        ServiceCode("CCU003", "CRC/CCU DENFERT", "X", "CCU"),
        ServiceCode("CCU004", "Régulateur Table PARC Denfert", "-", "RE"),
        ServiceCode("CRC001", "Coordonnateur Régional Circulation", "-", "CRC"),
        ServiceCode("CRC002", "Coordonnateur Régional Circulation", "O", "CRC"),
        ServiceCode("ACR001", "Aide Coordonnateur Régional", "-", "ACR"),
        ServiceCode("ACR002", "Aide Coordonnateur Régional", "O", "ACR"),
        ServiceCode("ACR003", "Aide Coordonnateur Régional", "X", "ACR"),
        ServiceCode("REO001", "Référent Équipe Opérationnelle", "-", "RO"),
        ServiceCode("REO002", "Référent Équipe Opérationnelle", "O", "RO"),
        ServiceCode("CENT001", "Centre Souffleur", "-", "RC"),
        ServiceCode("CENT002", "Centre Souffleur", "O", "RC"),
        ServiceCode("CENT003", "Centre Souffleur", "X", "RC"),
        ServiceCode("RP", "Repos Périodique", "RP"),
        ServiceCode("NU", "Non Utilisé", "NU"),
        ServiceCode("DISPO", "Disponible", "D"),
        ServiceCode("INACTIN", "Inactif/Formation", "I"),
        ServiceCode("HAB-QF", "Formation/Perfectionnement", "HAB"),
        ServiceCode("CA", "Congé Annuel", "C"),
        ServiceCode("CONGE", "Congé Annuel", "C"),
        ServiceCode("RTT", "Réduction du Temps de Travail", "C"),
        ServiceCode("RQ", "Repos Qualifié", "RP"),
    )
}

VALID_SERVICE_CODES: frozenset[str] = frozenset(_REGISTRY)

NIGHT_SERVICE = "X"

# Order matters: the first code found near a date wins.
MANUAL_SCAN_CODES: tuple[str, ...] = (
    "CCU001",
    "CCU002",
    "CCU003",
    "CCU004",
    "CRC001",
    "CRC002",
    "ACR001",
    "ACR002",
    "RP",
    "NU",
    "DISPO",
    "INACTIN",
)


def get_service_label(code: str | None) -> str:
    """Return the label for a code, or the code itself when unknown."""
    if not code:
        return ""
    known = _REGISTRY.get(code)
    return known.label if known else code


def is_valid_service_code(code: str | None) -> bool:
    """Whether ``code`` is in the allow-list. Matching is case-sensitive."""
    return code in VALID_SERVICE_CODES


def lookup(code: str | None) -> ServiceCode | None:
    return _REGISTRY.get(code) if code else None


def all_service_codes() -> list[ServiceCode]:
    """All registered codes, in registry order."""
    return list(_REGISTRY.values())


def is_night_code(code: str | None) -> bool:
    """Whether ``code`` is a night service (planning symbol ``X``)."""
    known = lookup(code)
    return known is not None and known.service == NIGHT_SERVICE
