"""
Decodificadores externos: bytes -> texto o grilla de celdas.

Son adaptadores finos sobre las librerías de formato; el núcleo solo consume
su salida. Cualquier falla de la librería se reporta como DocumentDecodeError
(o MalformedStructured para JSON) y nunca sale del pipeline sin capturar.
"""
import csv
import io
import json
from typing import Any, List

import pdfplumber
import xlrd
from docx import Document as DocxDocument
from openpyxl import load_workbook

from docintake.commons.errors import DocumentDecodeError, MalformedStructured

Grid = List[List[Any]]


def decode_text(payload: bytes) -> str:
    # UTF-8 por defecto (con o sin BOM); fallback latin-1 para archivos viejos
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError:
        return payload.decode("latin-1")


def read_xlsx_rows(payload: bytes) -> Grid:
    """Primera hoja del libro, celdas tal cual (None para vacías)."""
    try:
        wb = load_workbook(io.BytesIO(payload), read_only=True, data_only=True)
        try:
            sheet = wb.worksheets[0]
            return [list(row) for row in sheet.iter_rows(values_only=True)]
        finally:
            wb.close()
    except Exception as ex:
        raise DocumentDecodeError(f"Excel processing error: {ex}") from ex


def read_xls_rows(payload: bytes) -> Grid:
    try:
        book = xlrd.open_workbook(file_contents=payload)
        sheet = book.sheet_by_index(0)
        return [sheet.row_values(i) for i in range(sheet.nrows)]
    except Exception as ex:
        raise DocumentDecodeError(f"Excel processing error: {ex}") from ex


def read_csv_rows(payload: bytes) -> Grid:
    text = decode_text(payload)
    try:
        return [[cell.strip() for cell in row] for row in csv.reader(io.StringIO(text))]
    except csv.Error as ex:
        raise MalformedStructured(f"CSV parsing error: {ex}") from ex


def read_json(payload: bytes) -> Any:
    try:
        return json.loads(decode_text(payload))
    except ValueError as ex:
        raise MalformedStructured(f"JSON parsing error: {ex}") from ex


def read_pdf_text(payload: bytes) -> str:
    try:
        with pdfplumber.open(io.BytesIO(payload)) as pdf:
            return "\n".join(page.extract_text() or "" for page in pdf.pages)
    except Exception as ex:
        raise DocumentDecodeError(f"PDF processing error: {ex}") from ex


def read_docx_text(payload: bytes) -> str:
    """Párrafos y luego celdas de tablas, una por línea."""
    try:
        doc = DocxDocument(io.BytesIO(payload))
    except Exception as ex:
        raise DocumentDecodeError(f"Word document processing error: {ex}") from ex
    lines = [p.text for p in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            for cell in row.cells:
                lines.append(cell.text)
    return "\n".join(lines)
