import re
from typing import List, Optional

from docintake.commons.errors import NoExtractableFields

from .base import _split_lines, determine_status, parse_value
from .models import ExtractedField, ParsedDocument

TEXT_PARSING_WARNING = "Text parsing used - please verify extracted data accuracy"

# Orden = prioridad. Un patrón anterior gana aunque uno posterior calce antes en el texto.
IDENTITY_RULES = [
    ("client_id", re.compile(r"client\s*id\s*:?\s*([A-Za-z0-9]+)", re.I)),
    ("patient_id", re.compile(r"patient\s*id\s*:?\s*([A-Za-z0-9]+)", re.I)),
    ("id", re.compile(r"id\s*:?\s*([A-Za-z0-9]+)", re.I)),
    ("code", re.compile(r"code\s*:?\s*([A-Za-z0-9]+)", re.I)),
]

# token : número unidad?  (con pérdida: líneas que no calzan no aportan nada)
FIELD_LINE = re.compile(r"([A-Za-z0-9_-]+)\s*:?\s*([0-9.,]+)\s*([A-Za-z/%]*)")


def find_identity(lines: List[str]) -> Optional[str]:
    for _name, pattern in IDENTITY_RULES:
        for line in lines:
            m = pattern.search(line)
            if m:
                return m.group(1)
    return None


def parse_text(text: str) -> ParsedDocument:
    lines = _split_lines(text)
    identity = find_identity(lines)

    fields: List[ExtractedField] = []
    for line in lines:
        m = FIELD_LINE.search(line)
        if not m:
            continue
        value = parse_value(m.group(2))
        fields.append(
            ExtractedField(
                key=m.group(1),
                value=value,
                unit=m.group(3) or "",
                status=determine_status(value),
                description=f"Extracted from: {line}",
            )
        )

    if not fields:
        raise NoExtractableFields("No structured data could be extracted from the text")

    return ParsedDocument(
        source="unstructured",
        fields=fields,
        identity=identity,
        missing_identity_warning="No Client ID could be extracted from text",
        warnings=[TEXT_PARSING_WARNING],
    )
