"""
Per-field reconciliation rules.

Each rule takes the extractor's untrusted value (plus whatever context it
needs) and returns a FieldResult: the accepted or defaulted value, an
optional human-readable note, and whether the value was defaulted rather
than observed. Rules never raise.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from provider_crawler.core.constants import (
    ALLOWED_SERVICES,
    COMPANY_SIZE_BANDS,
    DELIVERY_MODES,
    DIFFERENTIATOR_MAX,
    DIFFERENTIATOR_MIN,
    FOUNDED_YEAR_MIN,
    LANGUAGES,
    LEAD_CONTACT_NOTES_MAX,
    LEGAL_NAME_MAX,
    MAX_PRIMARY_SERVICES,
    REGIONS,
    RESPONSE_TIME_BANDS,
    SHORT_DESCRIPTION_MAX,
    SHORT_DESCRIPTION_MIN,
)
from provider_crawler.core.models import LeadContact, is_http_url
from provider_crawler.core.parsers import coerce_string_list, dedupe, parse_int
from provider_crawler.services.normalization import rules
from provider_crawler.services.url_utils import get_origin

T = TypeVar("T")

_lead_contact_adapter = TypeAdapter(LeadContact)


@dataclass(frozen=True)
class FieldResult(Generic[T]):
    """Outcome of one field rule."""
    value: T
    note: str | None = None
    defaulted: bool = False
    low_confidence: bool = False


# =============================================================================
# Generic list / enum helpers
# =============================================================================


def enum_list(value: Any, allowed: tuple[str, ...]) -> list[str]:
    """Members of a closed enumeration, deduplicated, candidate order kept."""
    if not isinstance(value, (list, tuple)):
        value = [value] if isinstance(value, str) else []
    return dedupe(item for item in value if isinstance(item, str) and item in allowed)


def enum_value(value: Any, allowed: tuple[str, ...]) -> str | None:
    return value if isinstance(value, str) and value in allowed else None


def string_list(value: Any, max_items: int, max_length: int | None = None) -> list[str]:
    """Trimmed, deduplicated strings; over-long items are cut to max_length."""
    items = coerce_string_list(value)
    if max_length is not None:
        items = [item[:max_length].rstrip() for item in items]
    return dedupe(items)[:max_items]


def url_list(value: Any, max_items: int) -> list[str]:
    """Deduplicated http(s) URLs; anything that does not parse is dropped."""
    items = coerce_string_list(value)
    return dedupe(item for item in items if is_http_url(item))[:max_items]


# =============================================================================
# Identity
# =============================================================================


def normalize_name(value: Any, slug: str) -> FieldResult[str]:
    if isinstance(value, str) and len(value.strip()) >= 2:
        return FieldResult(value.strip())
    return FieldResult(slug.replace("-", " "), defaulted=True)


def normalize_website(value: Any, seed_url: str) -> FieldResult[str]:
    origin = get_origin(seed_url)
    if value is None or value == "":
        return FieldResult(origin, defaulted=True)
    if is_http_url(value):
        return FieldResult(value.strip())
    return FieldResult(
        origin,
        note="Website URL invalid; defaulted to seed origin.",
        defaulted=True,
        low_confidence=True,
    )


def normalize_legal_name(value: Any) -> FieldResult[str | None]:
    if value is None or isinstance(value, (dict, list, bool)):
        return FieldResult(None)
    trimmed = str(value).strip()
    if len(trimmed) < 2:
        return FieldResult(None)
    return FieldResult(trimmed[:LEGAL_NAME_MAX].rstrip())


# =============================================================================
# Classification
# =============================================================================


def normalize_regions(value: Any, text: str) -> FieldResult[list[str]]:
    regions = enum_list(value, REGIONS) or rules.infer_regions(text)
    if regions:
        return FieldResult(regions)
    return FieldResult(
        ["GLOBAL"],
        note="Regions not stated; defaulted to GLOBAL.",
        defaulted=True,
        low_confidence=True,
    )


def is_full_service_list(services: list[str]) -> bool:
    """True when the candidate listed every allowed service.

    Treated as the extractor defaulting rather than observing. A genuine
    full-service provider is indistinguishable here and loses its list
    to text inference (known false negative).
    """
    return len(services) == len(ALLOWED_SERVICES) and set(services) == set(ALLOWED_SERVICES)


def normalize_services(value: Any, text: str) -> FieldResult[list[str]]:
    services = enum_list(value, ALLOWED_SERVICES)
    note = None
    if is_full_service_list(services):
        services = []
        note = "Services list looked defaulted (all services); inferred from text."

    if not services:
        services = rules.infer_services(text)
    if services:
        return FieldResult(services, note=note)

    default_note = "Services not clearly stated; defaulted to Vulnerability Management."
    return FieldResult(
        ["Vulnerability Management"],
        note=f"{note} {default_note}" if note else default_note,
        defaulted=True,
        low_confidence=True,
    )


def normalize_primary_services(value: Any, services: list[str]) -> FieldResult[list[str]]:
    primary = [s for s in enum_list(value, ALLOWED_SERVICES) if s in services]
    if primary:
        return FieldResult(primary[:MAX_PRIMARY_SERVICES])
    return FieldResult(services[:1], defaulted=True)


def normalize_languages(value: Any, text: str) -> FieldResult[list[str]]:
    languages = enum_list(value, LANGUAGES) or rules.infer_languages(text)
    if languages:
        return FieldResult(languages)
    return FieldResult(
        ["en"],
        note="Languages not stated; defaulted to en.",
        defaulted=True,
        low_confidence=True,
    )


def normalize_delivery_modes(value: Any) -> FieldResult[list[str]]:
    modes = enum_list(value, DELIVERY_MODES)
    if modes:
        return FieldResult(modes)
    return FieldResult(
        ["remote"],
        note="Delivery modes not stated; defaulted to remote.",
        defaulted=True,
        low_confidence=True,
    )


def normalize_company_size(value: Any) -> FieldResult[str]:
    band = enum_value(value, COMPANY_SIZE_BANDS)
    if band:
        return FieldResult(band)
    return FieldResult(
        "2-10",
        note="Company size not stated; defaulted to 2-10.",
        defaulted=True,
        low_confidence=True,
    )


def normalize_response_time(value: Any) -> FieldResult[str]:
    band = enum_value(value, RESPONSE_TIME_BANDS)
    if band:
        return FieldResult(band)
    return FieldResult("unknown", defaulted=True)


# =============================================================================
# Facts
# =============================================================================


def normalize_founded_year(value: Any, current_year: int) -> FieldResult[int | None]:
    """Accept [1980, current_year]; rejections are noted but do not lower confidence."""
    if value is None or value == "":
        return FieldResult(None)
    year = parse_int(value)
    if year is None:
        return FieldResult(None, note="Founded year invalid.")
    if year < FOUNDED_YEAR_MIN or year > current_year:
        return FieldResult(None, note="Founded year out of range.")
    return FieldResult(year)


def normalize_lead_contact(value: Any, seed_url: str, contact_url: str | None) -> FieldResult[Any]:
    """
    Accept an email / form / phone contact that passes its variant's validation.

    Otherwise default to a contact form: the crawled contact page if there
    is one, else <origin>/contact.
    """
    if isinstance(value, dict) and value.get("type") and value.get("value"):
        payload = {
            "type": value["type"],
            "value": str(value["value"]).strip(),
        }
        notes = value.get("notes")
        if isinstance(notes, str) and notes.strip():
            payload["notes"] = notes.strip()[:LEAD_CONTACT_NOTES_MAX]
        try:
            return FieldResult(_lead_contact_adapter.validate_python(payload))
        except ValidationError:
            pass

    form_url = contact_url or f"{get_origin(seed_url)}/contact"
    return FieldResult(
        _lead_contact_adapter.validate_python({"type": "form", "value": form_url}),
        note="Lead contact not stated; defaulted to contact form.",
        defaulted=True,
    )


def normalize_emergency(value: Any, text: str) -> FieldResult[bool]:
    if isinstance(value, bool):
        return FieldResult(value)
    if rules.infers_emergency(text):
        return FieldResult(True, note="Emergency 24/7 inferred from site text.")
    return FieldResult(False, defaulted=True)


# =============================================================================
# Free text
# =============================================================================


def screen_description(text: Any) -> tuple[str, str | None]:
    """Return (description, rejection_reason); exactly one is meaningful."""
    if not isinstance(text, str) or not text.strip():
        return "", "Missing short description."
    trimmed = text.strip()
    if rules.contains_any(trimmed, rules.DESCRIPTION_BLACKLIST) or rules.has_second_person(trimmed):
        return "", "Short description contains marketing language or second-person phrasing."
    if len(trimmed) < SHORT_DESCRIPTION_MIN:
        return "", "Short description too short."
    return trimmed[:SHORT_DESCRIPTION_MAX].rstrip(), None


def join_human_list(values: list[str]) -> str:
    """["A"] -> "A"; ["A", "B"] -> "A and B"; ["A", "B", "C"] -> "A, B, and C"."""
    if len(values) <= 1:
        return "".join(values)
    if len(values) == 2:
        return f"{values[0]} and {values[1]}"
    return f"{', '.join(values[:-1])}, and {values[-1]}"


def format_regions(regions: list[str]) -> str:
    if "GLOBAL" in regions:
        return "global"
    return ", ".join(regions[:3])


def build_neutral_description(name: str, services: list[str], regions: list[str]) -> str:
    if not services:
        return ""
    region_label = f" in {format_regions(regions)}" if regions else ""
    description = f"{name} provides {join_human_list(services[:3])} cybersecurity services{region_label}."
    return description[:SHORT_DESCRIPTION_MAX]


def normalize_short_description(
    value: Any,
    name: str,
    services: FieldResult[list[str]],
    regions: FieldResult[list[str]],
    official_text: str,
) -> tuple[FieldResult[str], str | None]:
    """
    Screen the candidate description and pick a replacement if it fails.

    Replacement order: neutral synthesis (only when services and regions were
    both observed), then a security sentence from the official pages, else empty.

    Returns:
        (result, rejection_reason): the reason is set only when the final
        description is empty, and feeds the publish gate.
    """
    description, reason = screen_description(value)
    if description:
        return FieldResult(description), None

    if not services.defaulted and not regions.defaulted:
        neutral = build_neutral_description(name, services.value, regions.value)
        if len(neutral) >= SHORT_DESCRIPTION_MIN:
            return FieldResult(
                neutral,
                note=f"Short description replaced with neutral summary. {reason}",
                defaulted=True,
            ), None

    for sentence in rules.find_security_sentences(official_text):
        extracted, _ = screen_description(sentence)
        if extracted:
            return FieldResult(
                extracted,
                note=f"Short description taken from site text. {reason}",
                defaulted=True,
            ), None

    return FieldResult("", defaulted=True), reason


def screen_differentiator(text: Any) -> tuple[str, str | None]:
    if not isinstance(text, str) or not text.strip():
        return "", "Missing differentiator."
    trimmed = text.strip()
    if rules.contains_any(trimmed, rules.DIFFERENTIATOR_BLACKLIST):
        return "", "Differentiator contains vague or disallowed phrasing."
    if len(trimmed) < DIFFERENTIATOR_MIN:
        return "", "Differentiator too short."
    return trimmed[:DIFFERENTIATOR_MAX].rstrip(), None


def normalize_differentiator(value: Any, official_text: str) -> FieldResult[str]:
    """Candidate differentiator, else a hint sentence from site text, else empty (noted)."""
    differentiator, reason = screen_differentiator(value)
    if differentiator:
        return FieldResult(differentiator)

    sentence = rules.find_differentiator_sentence(official_text)
    if sentence:
        extracted, _ = screen_differentiator(sentence)
        if extracted:
            return FieldResult(extracted, note="Differentiator taken from site text.", defaulted=True)

    return FieldResult("", note=reason, defaulted=True)
