import re
from typing import Callable, List

from docintake.commons.types import FieldLayout, FormField, Template, TemplateSettings
from docintake.parsers.models import ParsedField
from docintake.validation.validators import new_id, utc_now

from .classifier import make_label


def template_name(filename: str) -> str:
    """'intake_form-v2.xlsx' -> 'Intake Form V2 (Imported)'."""
    stem = re.sub(r"\.[^/.]+$", "", filename or "")
    stem = re.sub(r"[_-]", " ", stem)
    return f"{make_label(stem)} (Imported)"


def assemble_template(
    fields: List[ParsedField],
    filename: str,
    id_factory: Callable[[str], str] = new_id,
) -> Template:
    """Arma la plantilla; layout.order = posición en la fuente (columna o línea)."""
    form_fields = [
        FormField(
            id=id_factory(f"field_{index}"),
            type=field.type,
            label=field.label,
            placeholder=field.placeholder,
            required=field.required,
            options=field.options,
            description=field.description,
            layout=FieldLayout(width="full", order=index),
        )
        for index, field in enumerate(fields)
    ]
    now = utc_now()
    return Template(
        id=id_factory("template"),
        name=template_name(filename),
        description=f"Form imported from {filename}",
        fields=form_fields,
        settings=TemplateSettings(),
        created_at=now,
        updated_at=now,
        created_by="imported",
    )
