"""
Provider Normalizer

Reconciles the extractor's untrusted candidate against the provider
schema and the crawled corpus, then applies the publish gate.

Usage:
    from provider_crawler.services.normalization import normalize_provider

    result = normalize_provider(candidate, seed_url, pages, qualification_slugs)
    result.provider.publish_status  # "published" | "hidden"

Guarantees:
- Always returns a schema-valid ProviderFrontmatter (falls back to an
  empty candidate if the normalized record still fails validation)
- Deterministic for a fixed candidate and corpus
- slug always derives from the seed URL
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

import structlog
from pydantic import ValidationError

from provider_crawler.core.constants import (
    CERTIFICATION_MAX_LENGTH,
    ENGAGEMENT_MODELS,
    EVIDENCE_LEVELS,
    AVAILABILITY_VALUES,
    EXTERNAL_PROOF_REASON,
    INDUSTRY_MAX_LENGTH,
    MAX_CASE_STUDIES,
    MAX_CERTIFICATIONS,
    MAX_INDUSTRIES,
    MAX_NOTABLE_REFERENCES,
    MAX_PROOF_SOURCE_URLS,
    MAX_QUALIFICATIONS,
    MINIMUM_PROJECT_SIZE_BANDS,
    NOTES_MAX,
)
from provider_crawler.core.models import CrawledPage, ProviderFrontmatter
from provider_crawler.core.parsers import dedupe, normalize_text
from provider_crawler.services.normalization import fields
from provider_crawler.services.normalization.fields import FieldResult
from provider_crawler.services.normalization.gate import (
    FactFlags,
    count_non_default_facts,
    count_relevance_signals,
    decide_publish,
    gate_note,
)
from provider_crawler.services.normalization.qualifications import apply_bsi_qualification
from provider_crawler.services.url_utils import normalize_slug

logger = structlog.get_logger()


@dataclass(frozen=True)
class NormalizationResult:
    provider: ProviderFrontmatter
    low_confidence: bool
    facts_count: int = 0
    relevance_signals: int = 0


def corpus_text(pages: Iterable[CrawledPage]) -> tuple[str, str]:
    """
    Split the corpus into inference text.

    Returns:
        (official_text, text): official pages only, and the text used for
        keyword inference (official, or everything if nothing official)
    """
    pages = list(pages)
    official = " ".join(p.text for p in pages if p.discovery_reason != EXTERNAL_PROOF_REASON and p.text)
    if official:
        return official, official
    return "", " ".join(p.text for p in pages if p.text)


def _join_notes(parts: list[str]) -> str | None:
    joined = normalize_text(" | ".join(p for p in dedupe(parts) if p))
    return joined[:NOTES_MAX].rstrip() or None


def build_provider(
    candidate: dict[str, Any],
    seed_url: str,
    pages: list[CrawledPage],
    qualification_slugs: frozenset[str] = frozenset(),
    current_year: int | None = None,
) -> NormalizationResult:
    """
    Compose the field rules into a provider record.

    Raises:
        ValidationError: if the composed record violates the schema
    """
    current_year = current_year or date.today().year
    official_text, text = corpus_text(pages)
    slug = normalize_slug(seed_url)

    notes: list[str] = []
    low_confidence = False

    def take(result: FieldResult) -> FieldResult:
        nonlocal low_confidence
        if result.note:
            notes.append(result.note)
        if result.low_confidence:
            low_confidence = True
        return result

    # Identity
    name = fields.normalize_name(candidate.get("name"), slug)
    website = take(fields.normalize_website(candidate.get("website"), seed_url))
    legal_name = fields.normalize_legal_name(candidate.get("legal_name"))

    # Classification
    regions = take(fields.normalize_regions(candidate.get("regions"), text))
    services = take(fields.normalize_services(candidate.get("services"), text))
    primary = fields.normalize_primary_services(candidate.get("primary_services"), services.value)
    languages = take(fields.normalize_languages(candidate.get("languages"), text))
    delivery_modes = take(fields.normalize_delivery_modes(candidate.get("delivery_modes")))
    company_size = take(fields.normalize_company_size(candidate.get("company_size_band")))
    response_time = fields.normalize_response_time(candidate.get("response_time_band"))

    # Facts
    founded_year = take(fields.normalize_founded_year(candidate.get("founded_year"), current_year))
    notable_references = fields.string_list(candidate.get("notable_references"), MAX_NOTABLE_REFERENCES)
    proof_source_urls = fields.url_list(candidate.get("proof_source_urls"), MAX_PROOF_SOURCE_URLS)
    qualifications = fields.string_list(candidate.get("qualifications"), MAX_QUALIFICATIONS)
    qualifications, proof_source_urls, qualification_notes = apply_bsi_qualification(
        slug, qualification_slugs, qualifications, proof_source_urls
    )
    notes.extend(qualification_notes)

    industries = fields.string_list(candidate.get("industries"), MAX_INDUSTRIES, INDUSTRY_MAX_LENGTH)
    certifications = fields.string_list(
        candidate.get("certifications"), MAX_CERTIFICATIONS, CERTIFICATION_MAX_LENGTH
    )
    case_studies = fields.url_list(candidate.get("case_studies"), MAX_CASE_STUDIES)
    engagement_models = fields.enum_list(candidate.get("engagement_models"), ENGAGEMENT_MODELS)

    contact_page = next((p.url for p in pages if p.key == "contact"), None)
    lead_contact = take(fields.normalize_lead_contact(candidate.get("lead_contact"), seed_url, contact_page))
    emergency = take(fields.normalize_emergency(candidate.get("emergency_24_7"), text))

    # Free text
    differentiator = fields.normalize_differentiator(candidate.get("differentiator"), official_text)
    if differentiator.value and differentiator.note:
        notes.append(differentiator.note)
    description, description_reason = fields.normalize_short_description(
        candidate.get("short_description"), name.value, services, regions, official_text
    )
    take(description)

    # Gate
    facts_count = count_non_default_facts(FactFlags(
        services_defaulted=services.defaulted,
        regions_defaulted=regions.defaulted,
        languages_defaulted=languages.defaulted,
        delivery_modes_defaulted=delivery_modes.defaulted,
        company_size_defaulted=company_size.defaulted,
        response_time_defaulted=response_time.defaulted,
        founded_year=founded_year.value,
        legal_name=legal_name.value,
        differentiator=differentiator.value,
        notable_references_count=len(notable_references),
        proof_source_urls_count=len(proof_source_urls),
        industries_count=len(industries),
        certifications_count=len(certifications),
        qualifications_count=len(qualifications),
        case_studies_count=len(case_studies),
        engagement_models_count=len(engagement_models),
    ))
    relevance_signals = count_relevance_signals(
        raw_text=text,
        short_description=description.value,
        differentiator=differentiator.value,
        services_defaulted=services.defaulted,
    )
    publish_status, reasons = decide_publish(
        description.value,
        description_reason,
        differentiator.value,
        None if differentiator.value else differentiator.note,
        facts_count,
        relevance_signals,
    )

    if facts_count == 0:
        evidence_level = "none"
    elif low_confidence:
        evidence_level = "basic"
    else:
        evidence_level = fields.enum_value(candidate.get("evidence_level"), EVIDENCE_LEVELS) or "basic"

    # Gate note first so truncation never drops it
    candidate_notes = candidate.get("notes") if isinstance(candidate.get("notes"), str) else None
    all_notes = [gate_note(reasons) or "", candidate_notes or "", *notes]

    record = {
        "name": name.value,
        "slug": slug,
        "website": website.value,
        "legal_name": legal_name.value,
        "regions": regions.value,
        "services": services.value,
        "primary_services": primary.value,
        "short_description": description.value,
        "languages": languages.value,
        "delivery_modes": delivery_modes.value,
        "company_size_band": company_size.value,
        "response_time_band": response_time.value,
        "lead_contact": lead_contact.value,
        "founded_year": founded_year.value,
        "differentiator": differentiator.value or None,
        "notable_references": notable_references or None,
        "proof_source_urls": proof_source_urls or None,
        "industries": industries or None,
        "certifications": certifications or None,
        "qualifications": qualifications or None,
        "case_studies": case_studies or None,
        "engagement_models": engagement_models or None,
        "minimum_project_size_band": fields.enum_value(
            candidate.get("minimum_project_size_band"), MINIMUM_PROJECT_SIZE_BANDS
        ),
        "availability": fields.enum_value(candidate.get("availability"), AVAILABILITY_VALUES),
        "emergency_24_7": emergency.value,
        "is_fictional": candidate.get("is_fictional") is True,
        "data_origin": "researched",
        "evidence_level": evidence_level,
        "publish_status": publish_status,
        "notes": _join_notes(all_notes),
    }

    provider = ProviderFrontmatter.model_validate(record)
    return NormalizationResult(
        provider=provider,
        low_confidence=low_confidence,
        facts_count=facts_count,
        relevance_signals=relevance_signals,
    )


def normalize_provider(
    candidate: Any,
    seed_url: str,
    pages: list[CrawledPage],
    qualification_slugs: frozenset[str] = frozenset(),
    current_year: int | None = None,
) -> NormalizationResult:
    """
    Normalize an extractor candidate into a valid provider record.

    Never raises for bad candidate data: a record that fails schema
    validation is rebuilt from an empty candidate and flagged low confidence.

    Args:
        candidate: Raw extractor output (any shape; non-dicts count as empty)
        seed_url: Seed URL (slug, origin and default contact)
        pages: Crawled corpus
        qualification_slugs: Slugs on the BSI APT response allowlist
        current_year: Upper bound for founded_year (defaults to today)

    Returns:
        NormalizationResult with the record and the low-confidence flag
    """
    log = logger.bind(component="Normalizer", seed=seed_url)
    candidate = candidate if isinstance(candidate, dict) else {}

    try:
        result = build_provider(candidate, seed_url, pages, qualification_slugs, current_year)
    except ValidationError as e:
        log.warning(
            "Normalized record failed validation, falling back to empty candidate",
            errors=e.error_count(),
            first_error=str(e.errors()[0].get("msg")) if e.errors() else None,
        )
        fallback = build_provider({}, seed_url, pages, qualification_slugs, current_year)
        return NormalizationResult(
            provider=fallback.provider,
            low_confidence=True,
            facts_count=fallback.facts_count,
            relevance_signals=fallback.relevance_signals,
        )

    log.debug(
        "Normalized provider",
        publish_status=result.provider.publish_status,
        facts=result.facts_count,
        relevance=result.relevance_signals,
        low_confidence=result.low_confidence,
    )
    return result
