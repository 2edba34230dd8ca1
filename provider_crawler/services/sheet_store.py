"""
Spreadsheet persistence for provider records.

Providers live in one worksheet of a local .xlsx workbook, one row per
provider, columns in EXPECTED_HEADERS order. Rows are upserted by slug:
an existing row is overwritten in place, otherwise the row is appended.

Usage:
    store = SheetStore("out/providers.xlsx", tab="providers")
    store.upsert(provider)  # -> "updated" | "appended"
"""

from pathlib import Path

import structlog
from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from provider_crawler.core.models import ProviderFrontmatter
from provider_crawler.core.parsers import join_comma, to_boolean_string

logger = structlog.get_logger()


EXPECTED_HEADERS = (
    "schema_version",
    "name",
    "legal_name",
    "slug",
    "website",
    "regions",
    "services",
    "primary_services",
    "short_description",
    "languages",
    "delivery_modes",
    "company_size_band",
    "response_time_band",
    "lead_contact_type",
    "lead_contact_value",
    "lead_contact_notes",
    "notes",
    "founded_year",
    "differentiator",
    "notable_references",
    "proof_source_urls",
    "industries",
    "certifications",
    "qualifications",
    "case_studies",
    "engagement_models",
    "minimum_project_size_band",
    "availability",
    "emergency_24_7",
    "is_fictional",
    "data_origin",
    "evidence_level",
    "publish_status",
)

SLUG_COLUMN = EXPECTED_HEADERS.index("slug") + 1  # openpyxl columns are 1-based


def write_raw(ws: Worksheet, row: int, column: int, value: str) -> None:
    """Store `value` as literal text; openpyxl would otherwise turn "=..." into a formula."""
    cell = ws.cell(row=row, column=column, value=value)
    if cell.data_type == "f":
        cell.data_type = "s"


def provider_to_row(provider: ProviderFrontmatter) -> list[str]:
    """Flatten a provider into cell strings: lists comma-joined, booleans as true/false."""
    values = {
        "schema_version": str(provider.schema_version),
        "name": provider.name,
        "legal_name": provider.legal_name or "",
        "slug": provider.slug,
        "website": provider.website,
        "regions": join_comma(provider.regions),
        "services": join_comma(provider.services),
        "primary_services": join_comma(provider.primary_services),
        "short_description": provider.short_description,
        "languages": join_comma(provider.languages),
        "delivery_modes": join_comma(provider.delivery_modes),
        "company_size_band": provider.company_size_band,
        "response_time_band": provider.response_time_band,
        "lead_contact_type": provider.lead_contact.type,
        "lead_contact_value": provider.lead_contact.value,
        "lead_contact_notes": provider.lead_contact.notes or "",
        "notes": provider.notes or "",
        "founded_year": str(provider.founded_year) if provider.founded_year else "",
        "differentiator": provider.differentiator or "",
        "notable_references": join_comma(provider.notable_references),
        "proof_source_urls": join_comma(provider.proof_source_urls),
        "industries": join_comma(provider.industries),
        "certifications": join_comma(provider.certifications),
        "qualifications": join_comma(provider.qualifications),
        "case_studies": join_comma(provider.case_studies),
        "engagement_models": join_comma(provider.engagement_models),
        "minimum_project_size_band": provider.minimum_project_size_band or "",
        "availability": provider.availability or "",
        "emergency_24_7": to_boolean_string(provider.emergency_24_7),
        "is_fictional": to_boolean_string(provider.is_fictional),
        "data_origin": provider.data_origin,
        "evidence_level": provider.evidence_level,
        "publish_status": provider.publish_status,
    }
    return [values[header] for header in EXPECTED_HEADERS]


class SheetStore:
    """Upserts provider rows into a local workbook."""

    def __init__(self, path: str | Path, tab: str = "providers"):
        self.path = Path(path)
        self.tab = tab
        self.log = logger.bind(component="SheetStore", path=str(self.path), tab=tab)

    def _open(self) -> tuple[Workbook, Worksheet]:
        if self.path.exists():
            wb = load_workbook(filename=self.path)
            if self.tab in wb.sheetnames:
                return wb, wb[self.tab]
            return wb, wb.create_sheet(self.tab)

        wb = Workbook()
        ws = wb.active
        ws.title = self.tab
        return wb, ws

    def _ensure_headers(self, ws: Worksheet) -> None:
        current = [cell.value for cell in ws[1][:len(EXPECTED_HEADERS)]] if ws.max_row >= 1 else []
        if tuple(current) == EXPECTED_HEADERS and ws.max_column == len(EXPECTED_HEADERS):
            return
        self.log.info("Rewriting header row")
        for column, header in enumerate(EXPECTED_HEADERS, 1):
            ws.cell(row=1, column=column, value=header)

    def find_row(self, ws: Worksheet, slug: str) -> int | None:
        """1-based row number of the provider with this slug, if present."""
        for row_number in range(2, ws.max_row + 1):
            if ws.cell(row=row_number, column=SLUG_COLUMN).value == slug:
                return row_number
        return None

    def upsert(self, provider: ProviderFrontmatter) -> str:
        """
        Write a provider row, overwriting the existing row with the same slug.

        Returns:
            "updated" or "appended"
        """
        wb, ws = self._open()
        try:
            self._ensure_headers(ws)
            values = provider_to_row(provider)

            row_number = self.find_row(ws, provider.slug)
            action = "updated"
            if row_number is None:
                # an empty sheet reports max_row == 1 for the header alone
                row_number = ws.max_row + 1
                action = "appended"

            for column, value in enumerate(values, 1):
                write_raw(ws, row_number, column, value)

            self.path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(self.path)
        finally:
            wb.close()

        self.log.info("Provider row written", slug=provider.slug, action=action, row=row_number)
        return action
