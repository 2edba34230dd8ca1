"""
Core models and types for the provider crawler.

- CrawledPage: one captured page of a seed's crawl (immutable)
- LeadContact: tagged union of email / form / phone contacts
- ProviderFrontmatter: the validated provider profile record
"""

import re
from dataclasses import asdict, dataclass
from datetime import date
from typing import Annotated, Any, Literal, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator, model_validator

from provider_crawler.core.constants import (
    CERTIFICATION_MAX_LENGTH,
    DIFFERENTIATOR_MAX,
    FOUNDED_YEAR_MIN,
    INDUSTRY_MAX_LENGTH,
    LEAD_CONTACT_NOTES_MAX,
    LEGAL_NAME_MAX,
    MAX_CASE_STUDIES,
    MAX_CERTIFICATIONS,
    MAX_INDUSTRIES,
    MAX_NOTABLE_REFERENCES,
    MAX_PRIMARY_SERVICES,
    MAX_PROOF_SOURCE_URLS,
    MAX_QUALIFICATIONS,
    NOTES_MAX,
    PHONE_MIN_LENGTH,
    PROVIDER_SCHEMA_VERSION,
    SHORT_DESCRIPTION_MAX,
    SHORT_DESCRIPTION_MIN,
    Availability,
    CompanySizeBand,
    DataOrigin,
    DeliveryMode,
    EngagementModel,
    EvidenceLevel,
    Language,
    MinimumProjectSizeBand,
    PublishStatus,
    Region,
    ResponseTimeBand,
    Service,
)

KEBAB_CASE_REGEX = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")


def is_http_url(value: object) -> bool:
    """Check that a value parses as an absolute http(s) URL with a host."""
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def is_valid_email(value: object) -> bool:
    """Check that a value looks like a deliverable email address."""
    return isinstance(value, str) and bool(EMAIL_REGEX.match(value.strip()))


def _require_url(value: str) -> str:
    if not is_http_url(value):
        raise ValueError(f"invalid URL: {value!r}")
    return value


# =============================================================================
# Crawl records
# =============================================================================


@dataclass(frozen=True)
class CrawledPage:
    """A successfully fetched page of a seed's crawl.

    `key` names the page role (home, services, impressum, discovered-N, ...).
    """
    key: str
    url: str
    status: int
    text: str
    source_url: str | None = None
    discovery_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


# =============================================================================
# Lead contact (tagged union)
# =============================================================================

ContactNotes = Annotated[str, StringConstraints(max_length=LEAD_CONTACT_NOTES_MAX)]


class EmailContact(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["email"] = "email"
    value: str
    notes: ContactNotes | None = None

    @field_validator("value")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not is_valid_email(v):
            raise ValueError(f"invalid email address: {v!r}")
        return v.strip()


class FormContact(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["form"] = "form"
    value: str
    notes: ContactNotes | None = None

    @field_validator("value")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _require_url(v.strip())


class PhoneContact(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["phone"] = "phone"
    value: Annotated[str, StringConstraints(strip_whitespace=True, min_length=PHONE_MIN_LENGTH)]
    notes: ContactNotes | None = None


LeadContact = Annotated[
    Union[EmailContact, FormContact, PhoneContact],
    Field(discriminator="type"),
]


# =============================================================================
# Provider record
# =============================================================================

Industry = Annotated[str, StringConstraints(min_length=1, max_length=INDUSTRY_MAX_LENGTH)]
Certification = Annotated[str, StringConstraints(min_length=1, max_length=CERTIFICATION_MAX_LENGTH)]


class ProviderFrontmatter(BaseModel):
    """Validated provider profile.

    Built once per run by the normalizer and never mutated afterwards.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: Literal[1] = PROVIDER_SCHEMA_VERSION
    name: Annotated[str, StringConstraints(min_length=2)]
    legal_name: Annotated[str, StringConstraints(min_length=2, max_length=LEGAL_NAME_MAX)] | None = None
    slug: Annotated[str, StringConstraints(min_length=3)]
    website: str

    regions: list[Region] = Field(min_length=1)
    services: list[Service] = Field(min_length=1)
    primary_services: list[Service] = Field(min_length=1, max_length=MAX_PRIMARY_SERVICES)
    short_description: Annotated[str, StringConstraints(max_length=SHORT_DESCRIPTION_MAX)] = ""
    languages: list[Language] = Field(min_length=1)
    delivery_modes: list[DeliveryMode] = Field(min_length=1)
    company_size_band: CompanySizeBand
    response_time_band: ResponseTimeBand
    lead_contact: LeadContact

    founded_year: int | None = Field(default=None, ge=FOUNDED_YEAR_MIN)
    differentiator: Annotated[str, StringConstraints(max_length=DIFFERENTIATOR_MAX)] | None = None
    notable_references: list[str] | None = Field(default=None, max_length=MAX_NOTABLE_REFERENCES)
    proof_source_urls: list[str] | None = Field(default=None, max_length=MAX_PROOF_SOURCE_URLS)
    industries: list[Industry] | None = Field(default=None, max_length=MAX_INDUSTRIES)
    certifications: list[Certification] | None = Field(default=None, max_length=MAX_CERTIFICATIONS)
    qualifications: list[str] | None = Field(default=None, max_length=MAX_QUALIFICATIONS)
    case_studies: list[str] | None = Field(default=None, max_length=MAX_CASE_STUDIES)
    engagement_models: list[EngagementModel] | None = None
    minimum_project_size_band: MinimumProjectSizeBand | None = None
    availability: Availability | None = None
    emergency_24_7: bool = False
    is_fictional: bool = False

    data_origin: DataOrigin = "seed"
    evidence_level: EvidenceLevel = "none"
    publish_status: PublishStatus = "hidden"
    notes: Annotated[str, StringConstraints(max_length=NOTES_MAX)] | None = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        if not KEBAB_CASE_REGEX.match(v):
            raise ValueError(f"slug must be kebab-case: {v!r}")
        return v

    @field_validator("website")
    @classmethod
    def validate_website(cls, v: str) -> str:
        return _require_url(v)

    @field_validator("proof_source_urls", "case_studies")
    @classmethod
    def validate_url_list(cls, v: list[str] | None) -> list[str] | None:
        if v is not None:
            for item in v:
                _require_url(item)
        return v

    @field_validator("founded_year")
    @classmethod
    def validate_founded_year(cls, v: int | None) -> int | None:
        if v is not None and v > date.today().year:
            raise ValueError(f"founded_year in the future: {v}")
        return v

    @model_validator(mode="after")
    def validate_consistency(self) -> "ProviderFrontmatter":
        invalid_primary = [s for s in self.primary_services if s not in self.services]
        if invalid_primary:
            raise ValueError(
                f"primary_services must be a subset of services: {', '.join(invalid_primary)}"
            )
        if self.publish_status == "published" and len(self.short_description) < SHORT_DESCRIPTION_MIN:
            raise ValueError("published providers need a short_description of at least 30 characters")
        return self
