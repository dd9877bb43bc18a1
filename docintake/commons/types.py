from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Tipos que produce el clasificador. Plantillas re-importadas pueden traer otros
# tipos del editor (rating, heading, ...) y se conservan tal cual.
FieldType = Literal[
    "text", "email", "phone", "date", "number", "textarea", "url", "checkbox", "select", "radio"
]


# --------- Plantillas de formulario ----------
class FieldLayout(BaseModel):
    model_config = ConfigDict(extra="allow")

    width: str = "full"
    order: int = 0


class FormField(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    type: str = "text"
    label: str = ""
    placeholder: Optional[str] = None
    required: bool = False
    options: Optional[List[Any]] = None
    description: Optional[str] = None
    layout: FieldLayout


class TemplateSettings(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    multi_page: bool = Field(default=False, alias="multiPage")
    progress_bar: bool = Field(default=True, alias="progressBar")
    save_progress: bool = Field(default=True, alias="saveProgress")
    theme: str = "default"


class Template(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    description: str = ""
    fields: List[FormField]
    settings: TemplateSettings = Field(default_factory=TemplateSettings)
    created_at: str
    updated_at: str
    created_by: str = "imported"

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# --------- Configuración (settings.yaml) ----------
class PathsCfg(BaseModel):
    logs_root: str = "logs"
    inbox: str = "data/inbox"
    archive: str = "data/archive"
    error: str = "data/error"


class ResolverCfg(BaseModel):
    type: Literal["file", "none"] = "none"
    clients_file: Optional[str] = None
    timeout_sec: float = 5.0


class ScanCfg(BaseModel):
    low_quality_threshold: int = 70
    max_depth: int = 64


class FormsCfg(BaseModel):
    max_sample_rows: int = 5
    large_form_threshold: int = 50


class InboxCfg(BaseModel):
    filename_glob: Union[str, List[str]] = "*.*"
    mode: Literal["scan", "form"] = "scan"


class Settings(BaseModel):
    app: Dict[str, Any] = {}
    paths: PathsCfg = Field(default_factory=PathsCfg)
    resolver: ResolverCfg = Field(default_factory=ResolverCfg)
    scan: ScanCfg = Field(default_factory=ScanCfg)
    forms: FormsCfg = Field(default_factory=FormsCfg)
    inbox: InboxCfg = Field(default_factory=InboxCfg)
