from typing import List, Sequence

from docintake.parsers.base import value_text
from docintake.parsers.models import ExtractedField

LOW_QUALITY_WARNING = "Low data quality detected - please review extracted information"
DEFAULT_THRESHOLD = 70

# Pesos del puntaje compuesto (suman 100)
W_HAS_FIELDS = 30
W_IDENTITY = 30
W_COMPLETENESS = 20
W_STRUCTURED = 10
W_VALID_KEYS = 10


def quality_score(
    fields: Sequence[ExtractedField], identity_resolved: bool, structured_rows: int = 0
) -> int:
    """Puntaje 0..100 de confianza de una extracción.

    structured_rows es la cantidad de filas de la grilla (0 si la fuente no fue tabular).
    """
    total = len(fields)
    denom = max(total, 1)
    score = 0.0
    if total:
        score += W_HAS_FIELDS
    if identity_resolved:
        score += W_IDENTITY
    complete = sum(1 for f in fields if value_text(f.value).strip())
    score += W_COMPLETENESS * complete / denom
    if structured_rows >= 3:
        score += W_STRUCTURED
    valid_keys = sum(1 for f in fields if (f.key or "").strip())
    score += W_VALID_KEYS * valid_keys / denom
    return int(min(100, max(0, round(score))))


def quality_warnings(score: int, threshold: int = DEFAULT_THRESHOLD) -> List[str]:
    return [LOW_QUALITY_WARNING] if score < threshold else []
