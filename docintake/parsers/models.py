# ===============================
# File: docintake/parsers/models.py
# ===============================
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

from docintake.commons.types import FieldType

Status = Literal["normal", "high", "low", "critical"]
AutomationStatus = Literal["automated", "manual", "failed"]
SourceKind = Literal["structured", "unstructured", "object_graph"]


@dataclass(frozen=True)
class Document:
    filename: str
    payload: bytes

    @property
    def extension(self) -> str:
        # "Reporte.Final.XLSX" -> "xlsx"; sin punto -> ""
        if "." not in self.filename:
            return ""
        return self.filename.rsplit(".", 1)[-1].strip().lower()


@dataclass(frozen=True)
class TextValue:
    raw: str

    @property
    def number(self) -> Optional[float]:
        return None


@dataclass(frozen=True)
class NumberValue:
    raw: Union[str, int, float]
    number: float


FieldValue = Union[TextValue, NumberValue]


@dataclass
class ExtractedField:
    key: str
    value: FieldValue
    unit: str = ""
    status: Status = "normal"
    description: Optional[str] = None


@dataclass
class ParsedDocument:
    """Salida común de los tres parsers antes de resolver identidad y puntuar."""

    source: SourceKind
    fields: List[ExtractedField]
    identity: Optional[str] = None
    missing_identity_warning: str = "No Client ID found"
    total_rows: int = 0
    warnings: List[str] = field(default_factory=list)
    raw_structure: Optional[Dict[str, Any]] = None


@dataclass
class ClientMatch:
    client_id: Optional[str]
    client_code: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""


@dataclass
class ExtractionResult:
    success: bool
    fields: List[ExtractedField] = field(default_factory=list)
    identity: Optional[ClientMatch] = None
    identity_candidate: Optional[str] = None
    automation_status: AutomationStatus = "failed"
    quality_score: int = 0
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None
    raw_structure: Optional[Dict[str, Any]] = None

    @classmethod
    def failure(cls, error: str) -> "ExtractionResult":
        return cls(success=False, error=error)


@dataclass
class ParsedField:
    """Campo de formulario clasificado, todavía sin id ni layout."""

    label: str
    type: FieldType = "text"
    required: bool = False
    options: Optional[List[str]] = None
    placeholder: Optional[str] = None
    description: Optional[str] = None


@dataclass
class RawFormField:
    """Nombre crudo de un campo (columna, línea o clave JSON) y sus muestras."""

    name: str
    samples: List[str] = field(default_factory=list)
    # Tipo dictado por el valor JSON (lista, bool, número); pisa la clasificación
    type_hint: Optional[FieldType] = None
    options_hint: Optional[List[str]] = None
