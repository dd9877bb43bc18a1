from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from docintake.commons.errors import EmptySource, UnsupportedFormat
from docintake.commons.logger import logger
from docintake.helpers import decoders
from docintake.parsers.models import Document
from docintake.validation.validators import looks_like_template

OCR_NOT_IMPLEMENTED = (
    "Image processing with OCR is not yet implemented. Please convert to text format."
)
FORM_FORMATS_HINT = (
    "Supported formats: Excel (.xlsx, .xls), CSV (.csv), PDF (.pdf), "
    "Word (.docx), Text (.txt), JSON (.json)"
)

EMPTY_TEXT = {
    "PDF": "No text could be extracted from the PDF file",
    "Word": "No text could be extracted from the Word document",
    "Text": "Text file appears to be empty",
}


@dataclass(frozen=True)
class RouteSpec:
    route: str  # structured | unstructured | json | image
    kind: str  # nombre legible del formato para los mensajes
    decoder: Optional[Callable[[bytes], Any]] = None


SCAN_ROUTES: Dict[str, RouteSpec] = {
    "xlsx": RouteSpec("structured", "Excel", decoders.read_xlsx_rows),
    "xls": RouteSpec("structured", "Excel", decoders.read_xls_rows),
    "csv": RouteSpec("structured", "CSV", decoders.read_csv_rows),
    "pdf": RouteSpec("unstructured", "PDF", decoders.read_pdf_text),
    "txt": RouteSpec("unstructured", "Text", decoders.decode_text),
    "json": RouteSpec("json", "JSON", decoders.read_json),
    "jpg": RouteSpec("image", "Image"),
    "jpeg": RouteSpec("image", "Image"),
    "png": RouteSpec("image", "Image"),
    "tiff": RouteSpec("image", "Image"),
}

FORM_ROUTES: Dict[str, RouteSpec] = {
    "xlsx": RouteSpec("structured", "Excel", decoders.read_xlsx_rows),
    "xls": RouteSpec("structured", "Excel", decoders.read_xls_rows),
    "csv": RouteSpec("structured", "CSV", decoders.read_csv_rows),
    "pdf": RouteSpec("unstructured", "PDF", decoders.read_pdf_text),
    "docx": RouteSpec("unstructured", "Word", decoders.read_docx_text),
    "txt": RouteSpec("unstructured", "Text", decoders.decode_text),
    "json": RouteSpec("json", "JSON", decoders.read_json),
}


@dataclass
class DecodedDocument:
    document: Document
    route: str  # structured | unstructured | object_graph | template
    kind: str
    content: Any


class FormatDispatcher:
    """Elige el parser según la extensión declarada (sin mirar el contenido,
    salvo JSON donde la forma del payload decide entre grilla y objeto)."""

    def __init__(self, routes: Dict[str, RouteSpec], unsupported_hint: str = "", detect_templates: bool = False):
        self.routes = routes
        self.unsupported_hint = unsupported_hint
        self.detect_templates = detect_templates

    @property
    def supported_extensions(self):
        return sorted(self.routes)

    def route_for(self, extension: str) -> RouteSpec:
        ext = (extension or "").lower()
        entry = self.routes.get(ext)
        if entry is None:
            msg = f"Unsupported file format: {ext or '(none)'}"
            if self.unsupported_hint:
                msg = f"{msg}. {self.unsupported_hint}"
            raise UnsupportedFormat(ext, msg)
        if entry.route == "image":
            raise UnsupportedFormat(ext, OCR_NOT_IMPLEMENTED)
        return entry

    def json_route(self, data: Any) -> str:
        if self.detect_templates and looks_like_template(data):
            return "template"
        if isinstance(data, list) and len(data) >= 3:
            return "structured"
        return "object_graph"

    def decode(self, document: Document) -> DecodedDocument:
        entry = self.route_for(document.extension)
        content = entry.decoder(document.payload)
        route = self.json_route(content) if entry.route == "json" else entry.route
        if route == "unstructured" and not (content or "").strip():
            raise EmptySource(EMPTY_TEXT.get(entry.kind, f"{entry.kind} file appears to be empty"))
        logger.debug(f"{document.filename}: formato {document.extension} -> {route}")
        return DecodedDocument(document=document, route=route, kind=entry.kind, content=content)


scan_dispatcher = FormatDispatcher(SCAN_ROUTES)
form_dispatcher = FormatDispatcher(FORM_ROUTES, unsupported_hint=FORM_FORMATS_HINT, detect_templates=True)
