import math
import re
from datetime import date, datetime
from typing import Any, List, Optional

from .models import FieldValue, NumberValue, Status, TextValue

# Prefijo numérico al estilo parseFloat: "5.2 mg/dL" -> 5.2
_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")
_FULL_NUMBER = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?$")

# Unidad: primero la cola alfabética/%, luego lo que vaya entre paréntesis
UNIT_RULES = [
    re.compile(r"([a-zA-Z/%]+)$"),
    re.compile(r"\(([^)]+)\)"),
]


def _split_lines(text: str) -> List[str]:
    """Líneas recortadas y no vacías, en orden."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def _format_number(num) -> str:
    if isinstance(num, float) and num.is_integer():
        return str(int(num))
    return str(num)


def _cell_text(cell: Any) -> str:
    if cell is None:
        return ""
    if isinstance(cell, bool):
        return "true" if cell else "false"
    if isinstance(cell, (int, float)):
        return _format_number(cell)
    if isinstance(cell, (datetime, date)):
        return cell.isoformat()
    return str(cell)


def is_number_text(text: str) -> bool:
    return bool(_FULL_NUMBER.match((text or "").strip()))


def parse_value(raw: Any) -> FieldValue:
    """Resuelve el valor una sola vez: número (o texto con prefijo numérico) o texto."""
    if raw is None:
        return TextValue("")
    if isinstance(raw, bool):
        return TextValue(_cell_text(raw))
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            return TextValue(str(raw))
        return NumberValue(raw=raw, number=float(raw))
    if not isinstance(raw, str):
        return TextValue(_cell_text(raw))
    m = _LEADING_NUMBER.match(raw)
    if m:
        return NumberValue(raw=raw, number=float(m.group(1)))
    return TextValue(raw)


def value_text(value: FieldValue) -> str:
    if isinstance(value, NumberValue) and not isinstance(value.raw, str):
        return _format_number(value.raw)
    return str(value.raw)


def extract_unit(text: str) -> str:
    for pattern in UNIT_RULES:
        m = pattern.search(text or "")
        if m:
            return m.group(1).strip()
    return ""


def determine_status(value: FieldValue) -> Status:
    """Clasificación burda por magnitud.

    Es un marcador de posición: no hay rangos de referencia por analito, solo
    umbrales fijos (<0 o >1000 crítico, >100 alto, <10 bajo). Sin número -> normal;
    una celda vacía no se toma como 0 (eso la marcaría "low"), queda "normal".
    No es un juicio clínico.
    """
    num: Optional[float] = value.number
    if num is None or math.isnan(num):
        return "normal"
    if num > 1000 or num < 0:
        return "critical"
    if num > 100:
        return "high"
    if num < 10:
        return "low"
    return "normal"
