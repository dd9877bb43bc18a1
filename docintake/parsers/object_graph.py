import re
from typing import Any, Iterator, List, Optional, Tuple

from docintake.commons.errors import NoExtractableFields
from docintake.commons.logger import logger

from .base import determine_status, is_number_text, parse_value
from .models import ExtractedField, ParsedDocument

JSON_PARSING_WARNING = "JSON structure parsing used - please verify field mappings"
DEFAULT_MAX_DEPTH = 64

_IDENTITY_KEY = re.compile(r"client|patient|id", re.I)
_DONE = object()


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and is_number_text(value)


def _entries(node: Any) -> Iterator[Tuple[str, Any]]:
    if isinstance(node, dict):
        return ((str(k), v) for k, v in node.items())
    return ((str(i), v) for i, v in enumerate(node))


def extract_numeric_fields(data: dict, max_depth: int = DEFAULT_MAX_DEPTH) -> Tuple[List[ExtractedField], List[str]]:
    """Recorre el objeto en profundidad (pila explícita, orden del documento).

    Solo los dicts anidados extienden la ruta con '.'; las listas no se recorren.
    Devuelve (campos, rutas descartadas por exceder max_depth).
    """
    fields: List[ExtractedField] = []
    skipped: List[str] = []
    stack = [("", _entries(data), 1)]

    while stack:
        prefix, items, depth = stack[-1]
        item = next(items, _DONE)
        if item is _DONE:
            stack.pop()
            continue

        key, value = item
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            if depth >= max_depth:
                skipped.append(path)
                continue
            stack.append((path, _entries(value), depth + 1))
        elif _is_numeric(value):
            parsed = parse_value(value)
            fields.append(
                ExtractedField(
                    key=path,
                    value=parsed,
                    unit="",
                    status=determine_status(parsed),
                    description=f"JSON field: {path}",
                )
            )

    return fields, skipped


def find_identity(data: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> Optional[str]:
    """Primer valor string cuya clave contenga client/patient/id (DFS, gana el primero)."""
    if not isinstance(data, (dict, list)):
        return None
    stack = [(_entries(data), 1)]
    while stack:
        items, depth = stack[-1]
        item = next(items, _DONE)
        if item is _DONE:
            stack.pop()
            continue
        key, value = item
        if isinstance(value, str):
            if _IDENTITY_KEY.search(key) and value.strip():
                return value.strip()
        elif isinstance(value, (dict, list)) and depth < max_depth:
            stack.append((_entries(value), depth + 1))
    return None


def parse_object(data: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> ParsedDocument:
    if not isinstance(data, dict):
        raise NoExtractableFields("No numeric data could be extracted from JSON structure")

    fields, skipped = extract_numeric_fields(data, max_depth=max_depth)
    if not fields:
        raise NoExtractableFields("No numeric data could be extracted from JSON structure")

    warnings = [JSON_PARSING_WARNING]
    if skipped:
        logger.warning(f"JSON con anidamiento > {max_depth}: {len(skipped)} rama(s) omitida(s)")
        warnings.insert(0, f"Nesting deeper than {max_depth} levels was skipped: {', '.join(skipped[:5])}")

    return ParsedDocument(
        source="object_graph",
        fields=fields,
        identity=find_identity(data, max_depth=max_depth),
        missing_identity_warning="No Client ID could be extracted from JSON",
        warnings=warnings,
    )
