"""
Unit tests for the workbook persistence layer.
"""

import pytest
from openpyxl import Workbook, load_workbook

from provider_crawler.core.models import ProviderFrontmatter
from provider_crawler.services.sheet_store import EXPECTED_HEADERS, SheetStore, provider_to_row
from tests.conftest import read_sheet_rows


def make_provider(**overrides) -> ProviderFrontmatter:
    data = {
        "name": "Acme Security",
        "slug": "acme-de",
        "website": "https://acme.de",
        "regions": ["DE", "AT"],
        "services": ["Pentest", "SOC / MDR"],
        "primary_services": ["Pentest"],
        "short_description": "Acme Security performs penetration tests for mid-sized companies.",
        "languages": ["de"],
        "delivery_modes": ["remote"],
        "company_size_band": "11-50",
        "response_time_band": "unknown",
        "lead_contact": {"type": "email", "value": "info@acme.de"},
        "founded_year": 2012,
        "emergency_24_7": True,
        "data_origin": "researched",
        "evidence_level": "basic",
        "publish_status": "published",
    }
    data.update(overrides)
    return ProviderFrontmatter.model_validate(data)


class TestProviderToRow:
    """Test flattening a provider into cell strings."""

    @pytest.fixture
    def row(self):
        return dict(zip(EXPECTED_HEADERS, provider_to_row(make_provider())))

    def test_column_count(self):
        assert len(provider_to_row(make_provider())) == len(EXPECTED_HEADERS) == 33

    def test_lists_comma_joined(self, row):
        assert row["regions"] == "DE,AT"
        assert row["services"] == "Pentest,SOC / MDR"

    def test_booleans_and_numbers(self, row):
        assert row["emergency_24_7"] == "true"
        assert row["is_fictional"] == "false"
        assert row["founded_year"] == "2012"
        assert row["schema_version"] == "1"

    def test_lead_contact_flattened(self, row):
        assert row["lead_contact_type"] == "email"
        assert row["lead_contact_value"] == "info@acme.de"
        assert row["lead_contact_notes"] == ""

    def test_missing_optionals_are_empty(self, row):
        assert row["legal_name"] == ""
        assert row["certifications"] == ""
        assert row["notes"] == ""


class TestSheetStore:
    """Test upsert-by-slug against a temporary workbook."""

    @pytest.fixture
    def store(self, tmp_path):
        return SheetStore(tmp_path / "out" / "providers.xlsx", tab="providers")

    def test_first_upsert_creates_workbook(self, store):
        assert store.upsert(make_provider()) == "appended"
        assert store.path.exists()

        rows = read_sheet_rows(store.path)
        assert len(rows) == 1
        assert rows[0]["slug"] == "acme-de"

    def test_same_slug_updates_in_place(self, store):
        store.upsert(make_provider())
        store.upsert(make_provider(slug="other-de", name="Other"))

        action = store.upsert(make_provider(name="Acme Security Renamed"))

        rows = read_sheet_rows(store.path)
        assert action == "updated"
        assert [r["slug"] for r in rows] == ["acme-de", "other-de"]
        assert rows[0]["name"] == "Acme Security Renamed"

    def test_header_row_written(self, store):
        store.upsert(make_provider())

        wb = load_workbook(store.path)
        headers = [cell.value for cell in wb["providers"][1]]
        wb.close()
        assert tuple(headers) == EXPECTED_HEADERS

    def test_wrong_headers_rewritten(self, store):
        store.path.parent.mkdir(parents=True)
        wb = Workbook()
        ws = wb.active
        ws.title = "providers"
        ws.append(["old", "headers"])
        wb.save(store.path)

        store.upsert(make_provider())

        wb = load_workbook(store.path)
        headers = [cell.value for cell in wb["providers"][1]]
        wb.close()
        assert tuple(headers) == EXPECTED_HEADERS

    def test_missing_tab_created(self, store):
        store.path.parent.mkdir(parents=True)
        wb = Workbook()
        wb.active.title = "other"
        wb.save(store.path)

        store.upsert(make_provider())

        wb = load_workbook(store.path)
        assert wb.sheetnames == ["other", "providers"]
        wb.close()

    def test_no_workbook_before_first_upsert(self, store):
        assert read_sheet_rows(store.path) == []

    def test_formula_like_text_stored_as_literal(self, store):
        payload = '=HYPERLINK("http://evil.example","x")'
        store.upsert(make_provider(name=payload, notes="=1+1"))

        wb = load_workbook(store.path)
        ws = wb["providers"]
        name_cell = ws.cell(row=2, column=EXPECTED_HEADERS.index("name") + 1)
        notes_cell = ws.cell(row=2, column=EXPECTED_HEADERS.index("notes") + 1)
        wb.close()

        assert name_cell.data_type == "s"
        assert name_cell.value == payload
        assert notes_cell.data_type == "s"
        assert read_sheet_rows(store.path)[0]["name"] == payload
