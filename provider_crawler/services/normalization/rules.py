"""
Keyword tables and text inference for provider normalization.

Exact phrase membership here is behavior: changing a table changes which
records get published. Matching is case-insensitive; terms of four
characters or fewer ("soc", "eu", "aws", "24/7") must stand alone as a
word so they do not fire inside longer words.
"""

import re
from functools import lru_cache

from provider_crawler.core.constants import (
    DIFFERENTIATOR_HINT_MAX,
    SHORT_DESCRIPTION_MAX,
    SHORT_DESCRIPTION_MIN,
)
from provider_crawler.core.parsers import dedupe, split_sentences

# =============================================================================
# Inference tables
# =============================================================================

SERVICE_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Pentest", ("pentest", "penetration test", "penetration-testing", "penetrationstest")),
    ("Web App Pentest", ("web app pentest", "web application pentest")),
    ("Cloud Security", ("cloud security", "aws", "azure", "gcp")),
    ("Incident Response", ("incident response", "forensics", "forensik", "breach")),
    ("ISO 27001 Consulting", ("iso 27001", "iso27001")),
    ("NIS2 Consulting", ("nis2", "nis-2")),
    ("SOC / MDR", ("soc", "mdr", "managed detection", "xdr")),
    ("Vulnerability Management", ("vulnerability management", "vuln management", "schwachstellenmanagement")),
]

LANGUAGE_HINTS: list[tuple[str, tuple[str, ...]]] = [
    ("de", ("kontakt", "impressum", "leistungen", "datenschutz", "über uns", "ueber uns")),
    ("en", ("contact", "about", "services", "privacy", "case study")),
]

REGION_HINTS: list[tuple[str, tuple[str, ...]]] = [
    ("DACH", ("dach",)),
    ("DE", ("germany", "deutschland", "berlin", "munich", "muenchen", "münchen")),
    ("AT", ("austria", "österreich", "oesterreich", "vienna", "wien")),
    ("CH", ("switzerland", "schweiz", "zurich", "zürich")),
    ("EU", ("europe", "europa", "eu")),
    ("GLOBAL", ("global", "worldwide", "international")),
]

# =============================================================================
# Rejection tables
# =============================================================================

DESCRIPTION_BLACKLIST = (
    "details are not clearly stated",
    "details were not clearly stated",
    "public sources",
    "limited information",
    "insufficient information",
    "not clearly described",
    "details are limited",
    "details are scarce",
    "begrenz",
    "begrenzte information",
    "nicht klar beschrieben",
    "öffentlich",
    "kaum beschrieben",
    "nicht ausreichend beschrieben",
    "maßgeschneidert",
    "maßgeschneiderte",
    "tailored",
    "tailor-made",
    "best in class",
    "cutting edge",
    "cutting-edge",
    "state of the art",
    "state-of-the-art",
    "innovative",
    "modernste",
    "führend",
    "leading",
    "proaktiv",
)

DIFFERENTIATOR_BLACKLIST = (
    "tailored solutions",
    "customized solutions",
    "best in class",
    "cutting edge",
    "cutting-edge",
    "state of the art",
    "state-of-the-art",
    "innovative solutions",
    "führend",
    "führender anbieter",
    "maßgeschneiderte lösungen",
    "innovative",
    "modernste",
)

SECOND_PERSON_PATTERN = re.compile(r"\b(du|dein|deine|deinen|deinem|deiner|you|your|yours)\b", re.IGNORECASE)

# =============================================================================
# Signal tables
# =============================================================================

DIFFERENTIATOR_HINTS = (
    "specializ",
    "specialis",
    "focus",
    "fokus",
    "schwerpunkt",
    "spezialisiert",
    "spezialisier",
    "public sector",
    "government",
    "critical infrastructure",
    "kritische infrastruktur",
    "regulated",
    "kritis",
    "24/7",
    "response",
    "incident response",
    "soc",
    "mdr",
    "forensics",
    "iso 27001",
    "nis2",
)

SECURITY_KEYWORDS = (
    "cybersecurity",
    "cyber security",
    "information security",
    "it security",
    "it-sicherheit",
    "it sicherheit",
    "informationssicherheit",
    "penetration",
    "pentest",
    "penetration test",
    "penetrationstest",
    "vulnerability",
    "schwachstellen",
    "incident response",
    "forensics",
    "soc",
    "mdr",
    "xdr",
    "siem",
    "iso 27001",
    "iso27001",
    "nis2",
    "security operations",
)

EMERGENCY_KEYWORDS = (
    "24/7",
    "24x7",
    "24 x 7",
    "notfall",
    "emergency",
    "incident response",
    "hotline",
)

SHORT_TERM_LENGTH = 4


# =============================================================================
# Matching
# =============================================================================


@lru_cache(maxsize=512)
def _word_pattern(term: str) -> re.Pattern:
    return re.compile(rf"(?<![\w]){re.escape(term)}(?![\w])")


def contains_term(text_lower: str, term: str) -> bool:
    """Substring match; short terms must not touch other word characters."""
    if len(term) <= SHORT_TERM_LENGTH:
        return _word_pattern(term).search(text_lower) is not None
    return term in text_lower


def contains_any(text: str, terms: tuple[str, ...]) -> bool:
    lower = text.lower()
    return any(contains_term(lower, term) for term in terms)


def _infer(text: str, table: list[tuple[str, tuple[str, ...]]]) -> list[str]:
    lower = text.lower()
    return dedupe([
        value for value, terms in table
        if any(contains_term(lower, term) for term in terms)
    ])


def infer_services(text: str) -> list[str]:
    """Allowed services mentioned in the text, in enumeration order."""
    return _infer(text, SERVICE_KEYWORDS)


def infer_regions(text: str) -> list[str]:
    return _infer(text, REGION_HINTS)


def infer_languages(text: str) -> list[str]:
    return _infer(text, LANGUAGE_HINTS)


def has_security_keyword(text: str) -> bool:
    return bool(text) and contains_any(text, SECURITY_KEYWORDS)


def infers_emergency(text: str) -> bool:
    return bool(text) and contains_any(text, EMERGENCY_KEYWORDS)


def has_second_person(text: str) -> bool:
    return SECOND_PERSON_PATTERN.search(text) is not None


def find_sentence(text: str, hints: tuple[str, ...], min_length: int, max_length: int) -> str | None:
    """First sentence carrying a hint whose length is within [min_length, max_length]."""
    if not text:
        return None
    for sentence in split_sentences(text):
        if min_length <= len(sentence) <= max_length and contains_any(sentence, hints):
            return sentence
    return None


def find_differentiator_sentence(text: str) -> str | None:
    return find_sentence(text, DIFFERENTIATOR_HINTS, SHORT_DESCRIPTION_MIN, DIFFERENTIATOR_HINT_MAX)


def find_security_sentences(text: str) -> list[str]:
    """All security-keyword sentences of description length, in text order."""
    if not text:
        return []
    return [
        sentence for sentence in split_sentences(text)
        if SHORT_DESCRIPTION_MIN <= len(sentence) <= SHORT_DESCRIPTION_MAX
        and has_security_keyword(sentence)
    ]
