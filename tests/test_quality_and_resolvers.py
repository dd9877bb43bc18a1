# flake8: noqa
import asyncio

import pytest

from docintake.parsers.base import parse_value
from docintake.parsers.models import ClientMatch, ExtractedField
from docintake.resolvers.base import NullResolver, resolve_identity
from docintake.resolvers.directory import DirectoryResolver
from docintake.services.quality import LOW_QUALITY_WARNING, quality_score, quality_warnings

CLIENTS = [
    {"client_id": 1, "client_code": "C1001", "first_name": "Ana", "last_name": "Rojas", "email": "ana@example.com"},
    {"client_id": 2, "client_code": "C1002", "first_name": "Luis", "last_name": "Gomez", "email": "luis@example.com"},
    {"client_id": 3, "client_code": "DUP", "email": "a@x.com"},
    {"client_id": 4, "client_code": "DUP2", "email": "a@x.com"},
]


def make_fields(*values):
    return [ExtractedField(key=f"k{i}", value=parse_value(v)) for i, v in enumerate(values)]


class SlowResolver:
    async def resolve(self, identity):
        await asyncio.sleep(1)
        return ClientMatch(client_id="x", client_code=identity)


class BrokenResolver:
    async def resolve(self, identity):
        raise ConnectionError("db down")


# ----------------- Puntaje -----------------
def test_score_full_structured_extraction():
    assert quality_score(make_fields("5.2", "200"), identity_resolved=True, structured_rows=3) == 100
    assert quality_score(make_fields("5.2", "200"), identity_resolved=False, structured_rows=3) == 70


def test_score_partial_completeness():
    # 30 + 20 * 1/2 + 10
    assert quality_score(make_fields("5", ""), identity_resolved=False) == 50


def test_score_empty():
    assert quality_score([], identity_resolved=False) == 0


@pytest.mark.parametrize("values", [(), ("1",), ("", ""), ("1", "", "3")])
@pytest.mark.parametrize("rows", [0, 2, 3, 10])
def test_score_bounds_and_identity_monotonic(values, rows):
    fields = make_fields(*values)
    without = quality_score(fields, identity_resolved=False, structured_rows=rows)
    with_id = quality_score(fields, identity_resolved=True, structured_rows=rows)
    assert 0 <= without <= with_id <= 100


def test_low_quality_threshold():
    assert quality_warnings(69) == [LOW_QUALITY_WARNING]
    assert quality_warnings(70) == []
    assert quality_warnings(80, threshold=90) == [LOW_QUALITY_WARNING]


# ----------------- Resolución de identidad -----------------
@pytest.mark.asyncio
async def test_directory_matches_code_and_email():
    resolver = DirectoryResolver(CLIENTS)
    match = await resolver.resolve("C1001")
    assert match.client_id == "1" and match.first_name == "Ana"
    by_mail = await resolver.resolve("luis@example.com")
    assert by_mail.client_code == "C1002"
    assert await resolver.resolve("c1001") is None
    assert await resolver.resolve("  ") is None


@pytest.mark.asyncio
async def test_directory_ambiguous_is_no_match():
    resolver = DirectoryResolver(CLIENTS)
    assert await resolver.resolve("a@x.com") is None


def test_directory_from_yaml(tmp_path):
    p = tmp_path / "clients.yaml"
    p.write_text(
        "clients:\n  - client_id: 9\n    client_code: Z9\n    email: z@example.com\n",
        encoding="utf-8",
    )
    resolver = DirectoryResolver.from_file(str(p))
    assert len(resolver) == 1


def test_directory_from_json_list(tmp_path):
    p = tmp_path / "clients.json"
    p.write_text('[{"client_id": 1, "client_code": "A"}, {"client_id": 2, "client_code": "B"}]', encoding="utf-8")
    assert len(DirectoryResolver.from_file(str(p))) == 2


@pytest.mark.asyncio
async def test_resolution_found():
    res = await resolve_identity(DirectoryResolver(CLIENTS), "C1002")
    assert res.automation_status == "automated"
    assert res.match.last_name == "Gomez"
    assert res.warnings == []


@pytest.mark.asyncio
async def test_resolution_missing_candidate():
    res = await resolve_identity(NullResolver(), None, missing_warning="No Client ID found in cell A3")
    assert res.automation_status == "failed"
    assert res.issue == "missing_identity"
    assert res.warnings == ["No Client ID found in cell A3"]


@pytest.mark.asyncio
async def test_resolution_not_found():
    res = await resolve_identity(NullResolver(), "C404")
    assert res.automation_status == "manual"
    assert res.issue == "identity_not_found"
    assert res.warnings == ['Client ID "C404" not found in database']


@pytest.mark.asyncio
async def test_resolution_timeout_is_soft():
    res = await resolve_identity(SlowResolver(), "C1", timeout=0.05)
    assert res.match is None
    assert res.automation_status == "manual"
    assert res.issue == "lookup_failed"
    assert "timed out" in res.warnings[0]


@pytest.mark.asyncio
async def test_resolution_error_is_soft():
    res = await resolve_identity(BrokenResolver(), "C1")
    assert res.automation_status == "manual"
    assert res.warnings == ['Client lookup failed for "C1": db down']
