# docintake/validation/validators.py
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from docintake.commons.errors import MalformedStructured
from docintake.commons.types import Template


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def looks_like_template(data: Any) -> bool:
    """Una plantilla ya exportada trae 'name' y un arreglo 'fields'."""
    return isinstance(data, dict) and bool(data.get("name")) and isinstance(data.get("fields"), list)


class TemplatePayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    fields: List[Dict[str, Any]]

    @field_validator("name")
    @classmethod
    def _not_empty(cls, v: str):
        if not v or not v.strip():
            raise ValueError("template name is required")
        return v


def _describe(ve: ValidationError) -> str:
    err = ve.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


def normalize_template(data: Dict[str, Any]) -> Template:
    """Completa lo que falte en una plantilla re-importada, sin reclasificar.

    Se conservan cantidad y orden de campos y todas las propiedades presentes;
    solo se rellenan ids, layout, settings y metadatos ausentes.
    """
    try:
        payload = TemplatePayload.model_validate(data)
    except ValidationError as ve:
        raise MalformedStructured(f"Invalid template payload: {_describe(ve)}") from ve

    fields = []
    for idx, raw_field in enumerate(payload.fields):
        item = dict(raw_field)
        item["id"] = str(item.get("id") or new_id("field"))
        layout = dict(item.get("layout") or {})
        layout.setdefault("width", "full")
        layout.setdefault("order", idx)
        item["layout"] = layout
        fields.append(item)

    raw = payload.model_dump()
    now = utc_now()
    normalized = {
        **raw,
        "id": str(raw.get("id") or new_id("template")),
        "description": raw.get("description") or "",
        "fields": fields,
        "settings": raw.get("settings") or {},
        "created_at": str(raw.get("created_at") or now),
        "updated_at": now,
        "created_by": raw.get("created_by") or "imported",
    }
    try:
        return Template.model_validate(normalized)
    except ValidationError as ve:
        raise MalformedStructured(f"Invalid template payload: {_describe(ve)}") from ve
