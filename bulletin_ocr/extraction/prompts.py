"""Prompt templates sent to the Mistral models.

The prompt is static: it describes the JSON schema the model must return,
the valid service codes, and the date conventions of SNCF bulletins.
"""

from .service_codes import all_service_codes


def _service_code_lines() -> str:
    grouped: dict[str, list[str]] = {}
    for sc in all_service_codes():
        grouped.setdefault(sc.label, []).append(sc.code)
    return "\n".join(
        f"- {', '.join(codes)} ({label})" for label, codes in grouped.items()
    )


_SCHEMA = """{
  "metadata": {
    "agent": "NOM PRENOM",
    "numeroCP": "XXXXXXXX",
    "dateEdition": "JJ/MM/AAAA",
    "periodeDebut": "JJ/MM/AAAA",
    "periodeFin": "JJ/MM/AAAA"
  },
  "entries": [
    {
      "date": "JJ/MM/AAAA",
      "dayOfWeek": "Lun|Mar|Mer|Jeu|Ven|Sam|Dim",
      "serviceCode": "CODE_SERVICE",
      "serviceLabel": "Description du service",
      "horaires": [
        {
          "type": "METRO|SERVICE|RS",
          "debut": "HH:MM",
          "fin": "HH:MM",
          "code": "N1100010CO72 ou autre code technique"
        }
      ],
      "complement": "Info complémentaire (du CCU601, TRACTION, etc.)"
    }
  ]
}"""

_TEMPLATE = """Tu es un expert en extraction de données OCR pour les bulletins de commande SNCF.

INSTRUCTIONS CRITIQUES :
1. Extrais TOUTES les informations du bulletin de commande
2. Respecte EXACTEMENT le format JSON demandé
3. Ne rajoute AUCUN texte avant ou après le JSON
4. Gère les caractères français (é, è, ç, à, etc.)

CODES DE SERVICE VALIDES :
{codes}

FORMAT JSON ATTENDU :
{schema}

IMPORTANT :
- Les dates sont au format JJ/MM/AAAA
- Si une date a plusieurs services (matin et soir), crée 2 entrées distinctes
- Les services de nuit (après 22h) doivent être datés du jour de début
- Extrais TOUS les horaires même partiels
- Retourne UNIQUEMENT le JSON, sans commentaire"""


def build_extraction_prompt() -> str:
    """Return the instruction prompt for bulletin extraction."""
    return _TEMPLATE.format(codes=_service_code_lines(), schema=_SCHEMA)


def build_text_fallback_prompt(text: str) -> str:
    """Wrap text extracted from the PDF in the extraction prompt.

    Args:
        text: Plain text of the bulletin, pages separated by newlines.
    """
    return (
        "Analyse ce texte de bulletin SNCF et retourne un JSON structuré:\n"
        f"{build_extraction_prompt()}\n\n"
        f"TEXTE EXTRAIT:\n{text}"
    )
