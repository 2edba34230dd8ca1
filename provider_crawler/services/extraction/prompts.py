"""
AI Extraction Prompts

Prompt templates for the provider extraction oracle. The schema listing
is built from the shared enumerations so prompt and normalizer never
disagree about allowed values.
"""

from collections.abc import Iterable

from provider_crawler.core.constants import (
    ALLOWED_SERVICES,
    AVAILABILITY_VALUES,
    COMPANY_SIZE_BANDS,
    DATA_ORIGINS,
    DELIVERY_MODES,
    ENGAGEMENT_MODELS,
    EVIDENCE_LEVELS,
    EXTERNAL_PROOF_REASON,
    LANGUAGES,
    MINIMUM_PROJECT_SIZE_BANDS,
    REGIONS,
    RESPONSE_TIME_BANDS,
)
from provider_crawler.core.models import CrawledPage

SYSTEM_PROMPT = "You extract structured data from website text."

OFFICIAL_SECTION = "## Official pages (use for descriptions/differentiators)"
EXTERNAL_SECTION = "## External sources (use only for proof/facts)"


def _one_of(values: Iterable[str]) -> str:
    return ", ".join(values)


def build_schema_lines() -> list[str]:
    return [
        "- schema_version (number)",
        "- name (string)",
        "- legal_name? (string, official legal entity name)",
        "- slug (kebab-case)",
        "- website (url)",
        f"- regions (array of: {_one_of(REGIONS)})",
        f"- services (array of: {_one_of(ALLOWED_SERVICES)})",
        "- primary_services (subset of services, 1-3 items)",
        "- short_description (30-200 chars, neutral and customer-centered, "
        "no marketing language, no second-person phrasing)",
        f"- languages (array of: {_one_of(LANGUAGES)})",
        f"- delivery_modes (array of: {_one_of(DELIVERY_MODES)})",
        f"- company_size_band ({_one_of(COMPANY_SIZE_BANDS)})",
        f"- response_time_band ({_one_of(RESPONSE_TIME_BANDS)})",
        "- lead_contact (object: {type: email|form|phone, value: string, notes?: string})",
        "- founded_year? (number, 4-digit year)",
        "- differentiator? (string, concrete and specific)",
        "- notable_references? (array of strings, 1-3 items)",
        "- proof_source_urls? (array of urls, 1-3 items)",
        "- industries? (array of strings)",
        "- certifications? (array of strings)",
        "- case_studies? (array of urls)",
        f"- engagement_models? (array of: {_one_of(ENGAGEMENT_MODELS)})",
        f"- minimum_project_size_band? ({_one_of(MINIMUM_PROJECT_SIZE_BANDS)})",
        f"- availability? ({_one_of(AVAILABILITY_VALUES)})",
        "- emergency_24_7? (boolean)",
        "- is_fictional? (boolean)",
        f"- data_origin? ({_one_of(DATA_ORIGINS)})",
        f"- evidence_level? ({_one_of(EVIDENCE_LEVELS)})",
        "- qualifications? (array of strings)",
        "- notes? (string, max 240 chars)",
    ]


RULES = [
    "- Never invent certifications, services, response times, company size, or founded year.",
    "- Do not use marketing language or second-person phrasing in short_description; "
    "leave it empty if specifics are missing.",
    "- Use external sources ONLY for proof/facts (founded_year, proof_source_urls, notable_references).",
    "- Use official pages for short_description, differentiator, and legal_name.",
    "- Only include notable_references and proof_source_urls when explicitly stated.",
    "- Prefer empty/unknown over guessing for optional fields.",
    "- If a required field is missing, set a conservative default and add uncertainty to notes.",
    "- Return JSON only.",
]


def build_source_text(pages: Iterable[CrawledPage]) -> str:
    """Official and external pages in separate labeled sections; empty sections are left out."""
    pages = list(pages)
    official = "\n\n".join(
        f"# {p.key}\n{p.text}" for p in pages if p.discovery_reason != EXTERNAL_PROOF_REASON
    )
    external = "\n\n".join(
        f"# {p.key}\n{p.text}" for p in pages if p.discovery_reason == EXTERNAL_PROOF_REASON
    )

    sections = []
    if official.strip():
        sections.append(f"{OFFICIAL_SECTION}\n\n{official}")
    if external.strip():
        sections.append(f"{EXTERNAL_SECTION}\n\n{external}")
    return "\n\n".join(sections)


def build_extraction_prompt(seed_slug: str, pages: Iterable[CrawledPage]) -> str:
    """Build the extraction prompt for one provider's crawled corpus."""
    lines = [
        "You are a strict data extraction tool. Use ONLY the provided text.",
        "",
        "Return JSON only with these fields:",
        *build_schema_lines(),
        "",
        "Rules:",
        *RULES,
        "",
        f"Seed slug: {seed_slug}",
    ]
    header = "\n".join(lines)
    return f"{header}\n\nText:\n{build_source_text(pages)}"
