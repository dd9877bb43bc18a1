import re
import warnings
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from dateutil import parser as date_parser
from dateutil.parser import UnknownTimezoneWarning

from docintake.commons.types import FieldType
from docintake.parsers.base import is_number_text
from docintake.parsers.models import ParsedField, RawFormField

DEFAULT_TYPE: FieldType = "text"
MAX_SAMPLES = 5

# Orden fijo, gana el primero. "Phone Number" es phone y no number por esto.
FIELD_TYPE_RULES: List[Tuple[re.Pattern, FieldType]] = [
    (re.compile(r"email|e-mail|electronic.?mail", re.I), "email"),
    (re.compile(r"phone|mobile|cell|telephone|contact.?number", re.I), "phone"),
    (re.compile(r"date|birth|dob|birthday|when|time", re.I), "date"),
    (re.compile(r"number|age|quantity|amount|count|score|rating", re.I), "number"),
    (re.compile(r"address|description|comment|note|message|feedback|bio|about", re.I), "textarea"),
    (re.compile(r"website|url|link|homepage", re.I), "url"),
    (re.compile(r"agree|accept|consent|confirm|yes.?no|true.?false", re.I), "checkbox"),
    (re.compile(r"select|choose|pick|option|dropdown", re.I), "select"),
    (re.compile(r"radio|choice|option", re.I), "radio"),
]

REQUIRED_PATTERN = re.compile(r"required|mandatory|\*|must|need", re.I)

PLACEHOLDERS = {
    "email": "Enter your email address",
    "phone": "Enter your phone number",
    "date": "Select a date",
    "number": "Enter a number",
    "url": "Enter a URL",
    "textarea": "Enter your response",
}

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_URL = re.compile(r"^https?://")
_BOOLEAN = re.compile(r"^(true|false|yes|no|1|0)$", re.I)


# Dos fechas por defecto distintas: si el texto no trae año, mes y día propios
# (solo hora "T1" o solo día de semana "Mon") los resultados difieren.
_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _is_date(value: str) -> bool:
    parsed = []
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UnknownTimezoneWarning)
        for default in _DATE_DEFAULTS:
            try:
                parsed.append(date_parser.parse(value, default=default).date())
            except (ValueError, OverflowError):
                return False
    return parsed[0] == parsed[1]


# Cascada de homogeneidad: todas las muestras deben cumplir el predicado
SAMPLE_RULES: List[Tuple[Callable[[str], bool], FieldType]] = [
    (lambda v: bool(_EMAIL.match(v)), "email"),
    (lambda v: bool(_URL.match(v)), "url"),
    (lambda v: bool(_BOOLEAN.match(v)), "checkbox"),
    (is_number_text, "number"),
    (_is_date, "date"),
]
SELECT_MAX_OPTIONS = 10


def make_label(name: str) -> str:
    clean = re.sub(r"[_-]", " ", name or "").strip()
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), clean)


def is_required(name: str) -> bool:
    return bool(REQUIRED_PATTERN.search(name or ""))


def type_from_name(name: str) -> FieldType:
    for pattern, field_type in FIELD_TYPE_RULES:
        if pattern.search(name or ""):
            return field_type
    return DEFAULT_TYPE


def refine_type(current: FieldType, samples: Sequence[str]) -> Tuple[FieldType, Optional[List[str]]]:
    """Refina el tipo por nombre usando muestras de la columna.

    Devuelve (tipo, opciones); opciones solo cuando el resultado es select.
    """
    values = [s for s in samples if s]
    if not values:
        return current, None
    for predicate, field_type in SAMPLE_RULES:
        if all(predicate(v) for v in values):
            return field_type, None
    distinct = list(dict.fromkeys(values))
    if 1 < len(distinct) <= SELECT_MAX_OPTIONS:
        return "select", distinct
    return current, None


def classify_field(
    name: str, samples: Optional[Sequence[str]] = None, max_samples: int = MAX_SAMPLES
) -> ParsedField:
    field_type = type_from_name(name)
    options = None
    if samples:
        field_type, options = refine_type(field_type, list(samples)[:max_samples])
    return ParsedField(
        label=make_label(name),
        type=field_type,
        required=is_required(name),
        options=options,
        placeholder=PLACEHOLDERS.get(field_type),
    )


def classify_raw_field(raw: RawFormField, max_samples: int = MAX_SAMPLES) -> ParsedField:
    """Clasifica un campo crudo; la pista de tipo del valor JSON tiene prioridad."""
    field = classify_field(raw.name, raw.samples, max_samples=max_samples)
    if raw.type_hint:
        field.type = raw.type_hint
        field.options = raw.options_hint
        field.placeholder = PLACEHOLDERS.get(raw.type_hint)
    return field
