from typing import Any, List, Sequence

from docintake.commons.errors import InsufficientRows, MalformedStructured, NoExtractableFields

from .base import _cell_text, determine_status, extract_unit, parse_value
from .models import ExtractedField, ParsedDocument

MIN_ROWS = 3

# Contrato posicional fijo (A1.. ids, A2.. valores, A3 identidad del cliente)
ID_ROW = 0
VALUE_ROW = 1
IDENTITY_ROW = 2
IDENTITY_COL = 0


def _row(rows: Sequence[Any], idx: int) -> List[Any]:
    row = rows[idx]
    if row is None:
        return []
    if isinstance(row, (str, bytes, dict)) or not isinstance(row, Sequence):
        raise MalformedStructured(f"Row {idx + 1} is not a list of cells")
    return list(row)


def parse_grid(rows: Sequence[Sequence[Any]], kind: str = "Excel") -> ParsedDocument:
    """Parsea una grilla con el contrato de 3 filas.

    - fila 0: ids de campo (celdas vacías se descartan, se conserva el orden)
    - fila 1: valores, por índice de columna original ("" si falta)
    - fila 2, columna 0: celda de identidad
    """
    if len(rows) < MIN_ROWS:
        raise InsufficientRows(
            f"{kind} file must have at least 3 rows (Path IDs, Information, Identifying Fields)"
        )

    id_row = _row(rows, ID_ROW)
    info_row = _row(rows, VALUE_ROW)
    identifying_row = _row(rows, IDENTITY_ROW)

    keys = [(col, _cell_text(cell).strip()) for col, cell in enumerate(id_row)]
    keys = [(col, key) for col, key in keys if key]
    if not keys:
        raise NoExtractableFields("No Path IDs found in row 1")

    fields: List[ExtractedField] = []
    for col, key in keys:
        raw = info_row[col] if col < len(info_row) else ""
        value = parse_value("" if raw is None else raw)
        fields.append(
            ExtractedField(
                key=key,
                value=value,
                unit=extract_unit(_cell_text(raw)),
                status=determine_status(value),
                description=f"Path ID {key}",
            )
        )

    identity = ""
    if len(identifying_row) > IDENTITY_COL:
        identity = _cell_text(identifying_row[IDENTITY_COL]).strip()

    raw_structure = {
        "path_ids_row": [_cell_text(c) for c in id_row],
        "info_row": [_cell_text(c) for c in info_row],
        "identifying_row": [_cell_text(c) for c in identifying_row],
        "total_rows": len(rows),
        "total_columns": max(
            (len(r) for r in rows if isinstance(r, (list, tuple))), default=0
        ),
    }

    return ParsedDocument(
        source="structured",
        fields=fields,
        identity=identity or None,
        missing_identity_warning="No Client ID found in cell A3",
        total_rows=len(rows),
        raw_structure=raw_structure,
    )
