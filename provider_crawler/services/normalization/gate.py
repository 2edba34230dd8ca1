"""
Publish gate.

Decides whether a normalized record is fit to be shown. A hidden record
is still persisted; the gate only controls visibility.

published iff:
- short_description and differentiator are both non-empty
- at least MIN_FACTS non-default facts
- at least MIN_RELEVANCE_SIGNALS security relevance signals
"""

from dataclasses import dataclass

from provider_crawler.services.normalization.rules import has_security_keyword

MIN_FACTS = 2
MIN_RELEVANCE_SIGNALS = 2

INSUFFICIENT_FACTS = "Insufficient non-default facts for publication."
INSUFFICIENT_RELEVANCE = "Insufficient security relevance signals."


@dataclass(frozen=True)
class FactFlags:
    """What the normalizer observed (as opposed to defaulted)."""
    services_defaulted: bool
    regions_defaulted: bool
    languages_defaulted: bool
    delivery_modes_defaulted: bool
    company_size_defaulted: bool
    response_time_defaulted: bool
    founded_year: int | None = None
    legal_name: str | None = None
    differentiator: str = ""
    notable_references_count: int = 0
    proof_source_urls_count: int = 0
    industries_count: int = 0
    certifications_count: int = 0
    qualifications_count: int = 0
    case_studies_count: int = 0
    engagement_models_count: int = 0


def count_non_default_facts(flags: FactFlags) -> int:
    """One point per observed classification field, present fact and non-empty list (16 signals)."""
    signals = [
        not flags.services_defaulted,
        not flags.regions_defaulted,
        not flags.languages_defaulted,
        not flags.delivery_modes_defaulted,
        not flags.company_size_defaulted,
        not flags.response_time_defaulted,
        flags.founded_year is not None,
        bool(flags.legal_name and flags.legal_name.strip()),
        bool(flags.differentiator.strip()),
        flags.notable_references_count > 0,
        flags.proof_source_urls_count > 0,
        flags.industries_count > 0,
        flags.certifications_count > 0,
        flags.qualifications_count > 0,
        flags.case_studies_count > 0,
        flags.engagement_models_count > 0,
    ]
    return sum(signals)


def count_relevance_signals(
    raw_text: str,
    short_description: str,
    differentiator: str,
    services_defaulted: bool,
) -> int:
    """One point each: observed services, and a security keyword in description / differentiator / corpus."""
    signals = [
        not services_defaulted,
        has_security_keyword(short_description),
        has_security_keyword(differentiator),
        has_security_keyword(raw_text),
    ]
    return sum(signals)


def decide_publish(
    short_description: str,
    description_reason: str | None,
    differentiator: str,
    differentiator_reason: str | None,
    facts_count: int,
    relevance_signals: int,
) -> tuple[str, list[str]]:
    """
    Apply the gate.

    Returns:
        (publish_status, failing reasons in fixed order)
    """
    reasons = []
    if not short_description:
        reasons.append(description_reason or "Missing short description.")
    if not differentiator:
        reasons.append(differentiator_reason or "Missing differentiator.")
    if facts_count < MIN_FACTS:
        reasons.append(INSUFFICIENT_FACTS)
    if relevance_signals < MIN_RELEVANCE_SIGNALS:
        reasons.append(INSUFFICIENT_RELEVANCE)

    return ("published" if not reasons else "hidden"), reasons


def gate_note(reasons: list[str]) -> str | None:
    if not reasons:
        return None
    return f"Publish status hidden: {' '.join(reasons)}"
