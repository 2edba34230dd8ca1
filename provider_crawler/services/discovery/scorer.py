"""
Discovery Module - Unified Scoring.

Single scoring algorithm shared by on-page links and sitemap entries,
so both sources rank on the same scale. Shallow, clearly-labeled pages
win; deep or ambiguous ones lose.
"""

from provider_crawler.services.url_utils import path_depth


# Keywords (German + English) that make a link worth fetching.
# Table order matters: the first match becomes the discovery reason.
DISCOVERY_KEYWORDS = (
    "leistungen",
    "services",
    "service",
    "angebot",
    "loesungen",
    "lösungen",
    "solutions",
    "ueber-uns",
    "über uns",
    "about",
    "unternehmen",
    "company",
    "team",
    "kontakt",
    "contact",
    "impressum",
    "imprint",
    "legal",
    "zertifizierung",
    "zertifikat",
    "certification",
    "certified",
    "iso-27001",
    "partner",
    "referenzen",
    "references",
    "kunden",
    "customers",
    "case-stud",
    "fallstudie",
    "branchen",
    "industries",
    "sectors",
    "pentest",
    "penetrationstest",
    "incident",
    "soc",
    "security",
    "sicherheit",
)

# Path terms that signal proof material (case studies, references, certs, partners)
HIGH_VALUE_TERMS = (
    "case-stud",
    "fallstudie",
    "referenz",
    "reference",
    "zertifi",
    "certif",
    "partner",
    "kunden",
    "customers",
)

# Score bonuses / penalties
URL_MATCH_BONUS = 3
TEXT_MATCH_BONUS = 2
HIGH_VALUE_BONUS = 3
DEEP_PATH_PENALTY = 2
DEEP_PATH_THRESHOLD = 4
SHALLOW_BONUS_BASE = 3

# Fixed score for externally sourced proof pages
EXTERNAL_PROOF_SCORE = 10


def match_reason(url: str, text: str = "") -> str | None:
    """Return the first discovery keyword found in url + anchor text."""
    haystack = f"{url} {text}".lower()
    for keyword in DISCOVERY_KEYWORDS:
        if keyword in haystack:
            return keyword
    return None


def score_candidate(url: str, reason: str, link_text: str = "") -> tuple[int, int]:
    """
    Score a candidate URL for fetch priority.

    Args:
        url: Canonical URL
        reason: Discovery reason (matched keyword or "sitemap")
        link_text: Anchor text, if the URL came from a link

    Returns:
        (score, depth)
    """
    url_lower = url.lower()
    reason_lower = reason.lower()
    text_lower = link_text.lower() if link_text else ""

    score = 0
    if reason_lower and reason_lower in url_lower:
        score += URL_MATCH_BONUS
    if reason_lower and reason_lower in text_lower:
        score += TEXT_MATCH_BONUS
    if any(term in url_lower for term in HIGH_VALUE_TERMS):
        score += HIGH_VALUE_BONUS

    depth = path_depth(url)
    if depth > DEEP_PATH_THRESHOLD:
        score -= DEEP_PATH_PENALTY
    score += max(0, SHALLOW_BONUS_BASE - depth)

    return score, depth
