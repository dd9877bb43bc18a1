# docintake/services/import_service.py
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from docintake.commons.dispatcher import FormatDispatcher, form_dispatcher
from docintake.commons.errors import EmptySource, ExtractionError, NoExtractableFields
from docintake.commons.logger import logger
from docintake.commons.types import Template
from docintake.forms.assembler import assemble_template
from docintake.forms.classifier import MAX_SAMPLES, classify_raw_field
from docintake.forms.sources import fields_from_grid, fields_from_object, fields_from_text
from docintake.parsers.models import Document
from docintake.validation.validators import new_id, normalize_template

TEXT_IMPORT_WARNINGS = {
    "PDF": "PDF import uses text analysis. Please review and adjust field types as needed.",
    "Text": "Text import uses pattern analysis. Please review and adjust field types as needed.",
}
NO_FIELDS_IN_TEXT = {
    "PDF": "No form fields could be identified in the PDF content",
    "Word": "No form fields could be identified in the document content",
    "Text": "No form fields could be identified in the text content",
}
JSON_IMPORT_WARNING = "JSON structure converted to form fields. Please review field types."
DEFAULT_LARGE_FORM = 50


@dataclass
class ImportResult:
    success: bool
    template: Optional[Template] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.template is not None:
            out["template"] = self.template.to_payload()
        if self.error:
            out["error"] = self.error
        if self.warnings:
            out["warnings"] = list(self.warnings)
        return out


class ImportService:
    """Importa un documento como plantilla de formulario."""

    def __init__(
        self,
        max_sample_rows: int = MAX_SAMPLES,
        large_form_threshold: int = DEFAULT_LARGE_FORM,
        dispatcher: FormatDispatcher = form_dispatcher,
        id_factory: Callable[[str], str] = new_id,
    ):
        self.max_sample_rows = max_sample_rows
        self.large_form_threshold = large_form_threshold
        self.dispatcher = dispatcher
        self.id_factory = id_factory

    def build(self, document: Document) -> Tuple[Template, List[str]]:
        decoded = self.dispatcher.decode(document)

        # Plantilla ya exportada: solo se normaliza, nunca se reclasifica
        if decoded.route == "template":
            return normalize_template(decoded.content), []

        warnings: List[str] = []
        if decoded.route == "structured":
            rows = decoded.content
            if not rows or not any(rows):
                raise EmptySource(f"{decoded.kind} file appears to be empty")
            raw_fields = fields_from_grid(rows, max_sample_rows=self.max_sample_rows)
            no_fields = f"No valid form fields could be extracted from the {decoded.kind} file"
        elif decoded.route == "unstructured":
            raw_fields = fields_from_text(decoded.content)
            no_fields = NO_FIELDS_IN_TEXT.get(decoded.kind, "No form fields could be identified")
            if decoded.kind in TEXT_IMPORT_WARNINGS:
                warnings.append(TEXT_IMPORT_WARNINGS[decoded.kind])
        else:
            raw_fields = fields_from_object(decoded.content)
            no_fields = "No form fields could be extracted from the JSON structure"
            warnings.append(JSON_IMPORT_WARNING)

        if not raw_fields:
            raise NoExtractableFields(no_fields)

        fields = [classify_raw_field(raw, max_samples=self.max_sample_rows) for raw in raw_fields]
        if len(fields) > self.large_form_threshold:
            warnings.insert(
                0,
                f"Large number of fields detected ({len(fields)}). Consider breaking into multiple forms.",
            )
        return assemble_template(fields, document.filename, self.id_factory), warnings

    def import_file(self, filename: str, payload: bytes) -> ImportResult:
        """Punto de entrada: nunca lanza."""
        document = Document(filename=filename, payload=payload)
        try:
            template, warnings = self.build(document)
        except ExtractionError as ex:
            logger.warning(f"{filename}: {ex}")
            return ImportResult(success=False, error=str(ex))
        except Exception as ex:
            logger.exception(f"Error inesperado importando {filename}: {ex}")
            return ImportResult(success=False, error=f"Unknown error occurred during import: {ex}")

        logger.info(f"{filename}: plantilla '{template.name}' con {len(template.fields)} campo(s)")
        return ImportResult(success=True, template=template, warnings=warnings)

    def import_path(self, path: str) -> ImportResult:
        p = Path(path)
        try:
            payload = p.read_bytes()
        except OSError as ex:
            logger.error(f"No se pudo leer {p}: {ex}")
            return ImportResult(success=False, error=f"Could not read file {p.name}: {ex}")
        return self.import_file(p.name, payload)
