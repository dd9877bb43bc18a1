"""
Origen de los campos de formulario: de cada fuente se obtiene el nombre crudo
del campo (cabecera, línea de texto o clave JSON) y, si existen, muestras de
valores. La clasificación se hace después en classifier.py.
"""
import re
from typing import Any, List, Sequence

from docintake.commons.errors import MalformedStructured
from docintake.parsers.base import _cell_text, _split_lines
from docintake.parsers.models import RawFormField

# Formas de línea que sugieren un campo; la primera que calce (y pase el largo) gana
FORM_LINE_RULES = [
    ("colon", re.compile(r"^(.+?):\s*$")),  # "Nombre:"
    ("question", re.compile(r"^(.+?)\s*\?\s*$")),  # "Nombre?"
    ("underscores", re.compile(r"^(.+?)\s*_+\s*$")),  # "Nombre ____"
    ("brackets", re.compile(r"^(.+?)\s*\[\s*\]\s*$")),  # "Nombre []"
    ("parens", re.compile(r"^(.+?)\s*\(\s*\)\s*$")),  # "Nombre ()"
    ("numbered", re.compile(r"^\d+\.\s*(.+?)[:?]?\s*$")),  # "1. Nombre:"
    ("bullet", re.compile(r"^[-*]\s*(.+?)[:?]?\s*$")),  # "- Nombre" / "* Nombre"
]
MIN_NAME_LEN = 3
MAX_NAME_LEN = 99


def fields_from_grid(rows: Sequence[Sequence[Any]], max_sample_rows: int = 5) -> List[RawFormField]:
    """Fila 0 = cabeceras; filas 1..max_sample_rows = muestras de cada columna."""
    if not rows:
        return []
    headers = rows[0]
    if headers is None:
        return []
    if isinstance(headers, (str, bytes, dict)) or not isinstance(headers, Sequence):
        raise MalformedStructured("Header row is not a list of cells")

    sample_rows = [
        r for r in rows[1 : 1 + max_sample_rows]
        if isinstance(r, (list, tuple))
    ]
    out: List[RawFormField] = []
    for idx, header in enumerate(headers):
        name = _cell_text(header).strip()
        if not name:
            continue
        samples = [_cell_text(r[idx]).strip() for r in sample_rows if idx < len(r)]
        out.append(RawFormField(name=name, samples=[s for s in samples if s]))
    return out


def fields_from_text(text: str) -> List[RawFormField]:
    out: List[RawFormField] = []
    for line in _split_lines(text):
        for _shape, pattern in FORM_LINE_RULES:
            m = pattern.match(line)
            if not m:
                continue
            name = m.group(1).strip()
            if MIN_NAME_LEN <= len(name) <= MAX_NAME_LEN:
                out.append(RawFormField(name=name))
                break
    return out


def fields_from_object(data: Any) -> List[RawFormField]:
    """Claves del objeto (anidadas con '.') con pista de tipo según el valor."""
    if not isinstance(data, dict):
        return []
    out: List[RawFormField] = []
    stack = [("", iter(data.items()))]
    while stack:
        prefix, items = stack[-1]
        item = next(items, None)
        if item is None:
            stack.pop()
            continue
        key, value = item
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            stack.append((name, iter(value.items())))
        elif isinstance(value, list):
            out.append(
                RawFormField(
                    name=name,
                    type_hint="select",
                    options_hint=[v for v in value if isinstance(v, str)],
                )
            )
        elif isinstance(value, bool):
            out.append(RawFormField(name=name, type_hint="checkbox"))
        elif isinstance(value, (int, float)):
            out.append(RawFormField(name=name, type_hint="number"))
        else:
            out.append(RawFormField(name=name))
    return out
