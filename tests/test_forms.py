# flake8: noqa
import itertools
import warnings
from typing import get_args

import pytest

from docintake.commons.errors import MalformedStructured
from docintake.commons.types import FieldType
from docintake.forms.assembler import assemble_template, template_name
from docintake.forms.classifier import (
    FIELD_TYPE_RULES,
    PLACEHOLDERS,
    SAMPLE_RULES,
    classify_field,
    classify_raw_field,
    is_required,
    make_label,
    type_from_name,
)
from docintake.forms.sources import fields_from_grid, fields_from_object, fields_from_text
from docintake.validation.validators import normalize_template

FORM_TEXT = """Patient Intake
Email:
Phone Number ____
Are you a smoker?
Consent to treatment []
1. Home address:
- Emergency contact name
ok:
"""

GRID = [
    ["Full Name*", "Email", "Smoker", "Visits", "Plan", ""],
    ["Ana Rojas", "ana@example.com", "yes", "3", "basic", "x"],
    ["Luis Gomez", "luis@example.com", "no", "5", "premium", "y"],
    [None, "", "yes", "", "basic"],
]


def counter_ids():
    seq = itertools.count()
    return lambda prefix: f"{prefix}_{next(seq)}"


# ----------------- Clasificador -----------------
def test_labels_and_required():
    assert make_label("first_name") == "First Name"
    assert make_label("date-of-birth") == "Date Of Birth"
    assert is_required("Full Name*")
    assert is_required("Mandatory field")
    assert not is_required("Nickname")


def test_type_rules_order():
    assert type_from_name("Phone Number") == "phone"
    assert type_from_name("E-mail") == "email"
    assert type_from_name("Date of Birth") == "date"
    assert type_from_name("Age") == "number"
    assert type_from_name("Home address") == "textarea"
    assert type_from_name("Website") == "url"
    assert type_from_name("I agree") == "checkbox"
    assert type_from_name("Choose plan") == "select"
    assert type_from_name("Favourite color") == "text"


def test_scenario_e_boolean_samples():
    field = classify_field("Status", ["yes", "no", "yes", "no", "yes"])
    assert field.type == "checkbox"
    assert field.options is None


def test_samples_refine_type():
    assert classify_field("Contact", ["a@b.co", "c@d.org"]).type == "email"
    assert classify_field("Home", ["https://a.io", "http://b.io"]).type == "url"
    assert classify_field("Visits", ["3", "5.5"]).type == "number"
    assert classify_field("Visit", ["2024-01-05", "March 3 2023"]).type == "date"


def test_partial_dates_stay_select():
    # solo hora o solo día de semana no son una fecha completa
    shift = classify_field("Shift", ["T1", "T2", "T1"])
    assert shift.type == "select" and shift.options == ["T1", "T2"]
    slot = classify_field("Slot", ["Mon", "Tue"])
    assert slot.type == "select" and slot.options == ["Mon", "Tue"]
    assert classify_field("Visit", ["2024-01-05T10:30:00"]).type == "date"


def test_unknown_timezone_does_not_warn():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        classify_field("Seen", ["2024-01-05 10:00 ABC", "2024-02-01 09:00 ABC"])


def test_classifier_emits_only_known_field_types():
    allowed = set(get_args(FieldType))
    assert {t for _pattern, t in FIELD_TYPE_RULES} <= allowed
    assert {t for _predicate, t in SAMPLE_RULES} <= allowed
    assert set(PLACEHOLDERS) <= allowed
    assert classify_field("Anything").type in allowed


def test_select_options_keep_first_seen_order():
    field = classify_field("Plan", ["basic", "premium", "basic", "gold"])
    assert field.type == "select"
    assert field.options == ["basic", "premium", "gold"]
    assert field.placeholder is None


def test_many_distinct_samples_keep_name_type():
    samples = [f"value {i}" for i in range(12)]
    field = classify_field("Comment", samples, max_samples=12)
    assert field.type == "textarea"


def test_placeholder_follows_resolved_type():
    # el nombre sugiere phone pero las muestras son emails
    field = classify_field("Contact number", ["a@b.co"])
    assert field.type == "email"
    assert field.placeholder == PLACEHOLDERS["email"]


def test_classifier_is_deterministic():
    a = classify_field("Plan", ["basic", "premium"])
    b = classify_field("Plan", ["basic", "premium"])
    assert a == b


# ----------------- Fuentes -----------------
def test_scenario_d_text_lines():
    fields = [classify_raw_field(r) for r in fields_from_text("Email:\nPhone Number ____")]
    assert [(f.label, f.type) for f in fields] == [("Email", "email"), ("Phone Number", "phone")]


def test_text_line_shapes():
    names = [r.name for r in fields_from_text(FORM_TEXT)]
    assert names == [
        "Email",
        "Phone Number",
        "Are you a smoker",
        "Consent to treatment",
        "1. Home address",
        "Emergency contact name",
    ]


def test_grid_headers_and_samples():
    raw = fields_from_grid(GRID)
    assert [r.name for r in raw] == ["Full Name*", "Email", "Smoker", "Visits", "Plan"]
    assert raw[3].samples == ["3", "5"]
    fields = [classify_raw_field(r) for r in raw]
    assert fields[0].required
    assert fields[1].type == "email"
    assert fields[2].type == "checkbox"
    assert fields[3].type == "number"
    assert fields[4].type == "select" and fields[4].options == ["basic", "premium"]


def test_grid_sample_window():
    rows = [["Visits"], ["1"], ["2"], ["many"]]
    assert fields_from_grid(rows, max_sample_rows=2)[0].samples == ["1", "2"]


def test_grid_bad_header():
    with pytest.raises(MalformedStructured):
        fields_from_grid(["not a row"])


def test_object_keys_with_hints():
    data = {
        "name": "",
        "age": 30,
        "subscribe": True,
        "colors": ["red", "blue", 3],
        "address": {"city": ""},
    }
    fields = [classify_raw_field(r) for r in fields_from_object(data)]
    assert [f.label for f in fields] == ["Name", "Age", "Subscribe", "Colors", "Address.City"]
    assert [f.type for f in fields] == ["text", "number", "checkbox", "select", "textarea"]
    assert fields[3].options == ["red", "blue"]
    assert fields[1].placeholder == PLACEHOLDERS["number"]


# ----------------- Ensamblado -----------------
def test_template_name():
    assert template_name("intake_form-v2.xlsx") == "Intake Form V2 (Imported)"
    assert template_name("survey") == "Survey (Imported)"


def test_assemble_template_order_and_ids():
    fields = [classify_raw_field(r) for r in fields_from_text(FORM_TEXT)]
    tpl = assemble_template(fields, "intake.txt", id_factory=counter_ids())
    assert [f.layout.order for f in tpl.fields] == list(range(len(fields)))
    assert [f.id for f in tpl.fields] == [f"field_{i}_{i}" for i in range(len(fields))]
    assert tpl.description == "Form imported from intake.txt"
    assert tpl.created_by == "imported"
    assert all(f.layout.width == "full" for f in tpl.fields)

    payload = tpl.to_payload()
    assert payload["settings"] == {
        "multiPage": False,
        "progressBar": True,
        "saveProgress": True,
        "theme": "default",
    }
    assert "options" not in payload["fields"][0]


def test_reimport_is_idempotent():
    fields = [classify_raw_field(r) for r in fields_from_grid(GRID)]
    original = assemble_template(fields, "clients.xlsx").to_payload()
    again = normalize_template(original).to_payload()

    assert [f["id"] for f in again["fields"]] == [f["id"] for f in original["fields"]]
    assert [f["label"] for f in again["fields"]] == [f["label"] for f in original["fields"]]
    assert again["fields"] == original["fields"]
    assert again["id"] == original["id"]
    assert again["created_at"] == original["created_at"]


def test_reimport_fills_only_missing():
    data = {
        "name": "Legacy",
        "fields": [
            {"type": "rating", "label": "Stars", "max": 5},
            {"id": "f2", "type": "text", "label": "Notes", "layout": {"width": "half"}},
        ],
        "settings": {"multiPage": True},
    }
    tpl = normalize_template(data).to_payload()
    first, second = tpl["fields"]
    assert first["type"] == "rating" and first["max"] == 5
    assert first["id"]
    assert first["layout"] == {"width": "full", "order": 0}
    assert second["id"] == "f2"
    assert second["layout"] == {"width": "half", "order": 1}
    assert tpl["settings"]["multiPage"] is True
    assert tpl["created_by"] == "imported"
    assert tpl["description"] == ""


def test_reimport_rejects_bad_payload():
    with pytest.raises(MalformedStructured) as ex:
        normalize_template({"name": "  ", "fields": []})
    assert "Invalid template payload" in str(ex.value)
