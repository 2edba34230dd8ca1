"""
Qualification allowlists.

The BSI publishes a list of qualified APT response service providers
(PDF only). The list is kept by hand in seeds/bsi-apt-response.txt as
provider URLs or domains, one per line; providers on it get the
qualification and the BSI document as proof source.
"""

from pathlib import Path

import structlog

from provider_crawler.core.constants import MAX_PROOF_SOURCE_URLS, MAX_QUALIFICATIONS
from provider_crawler.services.url_utils import normalize_slug

logger = structlog.get_logger()

BSI_APT_QUALIFICATION = "BSI Qualified APT Response"
BSI_APT_RESPONSE_URL = (
    "https://www.bsi.bund.de/SharedDocs/Downloads/DE/BSI/Cyber-Sicherheit/Themen/"
    "Dienstleister_APT-Response-Liste.pdf?__blob=publicationFile&v=42"
)


def parse_seed_lines(content: str) -> list[str]:
    """Non-empty lines that are not # comments, trimmed."""
    lines = (line.strip() for line in content.splitlines())
    return [line for line in lines if line and not line.startswith("#")]


def load_qualification_slugs(path: str | Path) -> frozenset[str]:
    """
    Load an allowlist file as provider slugs.

    A missing file means an empty allowlist.
    """
    path = Path(path)
    if not path.exists():
        logger.info("Qualification list not found", path=str(path))
        return frozenset()

    slugs = {normalize_slug(entry) for entry in parse_seed_lines(path.read_text(encoding="utf-8"))}
    slugs.discard("")
    logger.debug("Loaded qualification list", path=str(path), count=len(slugs))
    return frozenset(slugs)


def apply_bsi_qualification(
    slug: str,
    allowlist: frozenset[str],
    qualifications: list[str],
    proof_source_urls: list[str],
) -> tuple[list[str], list[str], list[str]]:
    """
    Add the BSI APT response qualification and its proof URL for listed slugs.

    Both lists respect their caps; anything left out is noted.

    Returns:
        (qualifications, proof_source_urls, notes)
    """
    if slug not in allowlist:
        return qualifications, proof_source_urls, []

    qualifications = list(qualifications)
    proof_source_urls = list(proof_source_urls)
    notes = []

    if BSI_APT_QUALIFICATION not in qualifications:
        if len(qualifications) < MAX_QUALIFICATIONS:
            qualifications.append(BSI_APT_QUALIFICATION)
        else:
            notes.append("BSI qualification omitted (limit reached).")

    if BSI_APT_RESPONSE_URL not in proof_source_urls:
        if len(proof_source_urls) < MAX_PROOF_SOURCE_URLS:
            proof_source_urls.append(BSI_APT_RESPONSE_URL)
        else:
            notes.append("BSI proof URL omitted (limit reached).")

    return qualifications, proof_source_urls, notes
