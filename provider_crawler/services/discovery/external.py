"""
Discovery Module - External Proof Sources.

Off-site pages that can back up a provider's claims (founding year,
registrations, memberships). Two feeds:
1. Wikipedia article guesses built from the company name (no request needed)
2. Search engine hits for three fixed queries, run concurrently

Only results on the trusted-host allowlist survive canonicalization.
"""

import asyncio

import structlog

from provider_crawler.core.constants import EXTERNAL_PROOF_REASON
from provider_crawler.core.parsers import dedupe
from provider_crawler.services.discovery.base import DiscoveryCandidate
from provider_crawler.services.discovery.scorer import EXTERNAL_PROOF_SCORE
from provider_crawler.services.search_engine import SearchProvider
from provider_crawler.services.url_utils import canonicalize_href, extract_domain, path_depth

logger = structlog.get_logger()


# Host labels that never belong to a company name
KNOWN_TLD_SEGMENTS = frozenset({
    "de", "com", "net", "org", "io", "eu", "at", "ch", "info", "biz",
    "co", "uk", "gmbh", "tech", "digital", "cloud", "security",
})

WIKIPEDIA_LANGUAGES = ("de", "en")

SEARCH_QUERY_TEMPLATES = (
    "{company} cybersecurity",
    "{company} IT-Sicherheit",
    "{company} penetration test",
)

RESULTS_PER_QUERY = 10


def derive_company_name(seed_url: str) -> str:
    """
    Guess a company name from the seed hostname.

    Examples:
        "https://www.secure-labs.de" -> "secure labs"
        "https://acme.security.io" -> "acme"
    """
    host = extract_domain(seed_url if "://" in seed_url else f"https://{seed_url}") or ""
    labels = [label for label in host.split(".") if label and label not in KNOWN_TLD_SEGMENTS]
    name = " ".join(labels) if labels else host
    return " ".join(name.replace("-", " ").split())


def wikipedia_guesses(company: str) -> list[str]:
    """Article URLs for the original and title-cased name, per language."""
    if not company:
        return []
    titles = dedupe([company.replace(" ", "_"), company.title().replace(" ", "_")])
    return [
        f"https://{lang}.wikipedia.org/wiki/{title}"
        for lang in WIKIPEDIA_LANGUAGES
        for title in titles
    ]


def _to_candidates(urls: list[str], origin: str, source_url: str) -> list[DiscoveryCandidate]:
    candidates = []
    for url in urls:
        canonical = canonicalize_href(url, origin)
        # own-origin hits are already covered by links and sitemap
        if canonical is None or not canonical.is_external:
            continue
        candidates.append(DiscoveryCandidate(
            url=canonical.url,
            reason=EXTERNAL_PROOF_REASON,
            source_url=source_url,
            score=EXTERNAL_PROOF_SCORE,
            depth=path_depth(canonical.url),
            is_external=True,
        ))
    return candidates


async def search_result_urls(provider: SearchProvider, company: str) -> list[str]:
    """
    Run the fixed proof queries concurrently and flatten their result links.

    A failing query only loses its own results.
    """
    queries = [template.format(company=company) for template in SEARCH_QUERY_TEMPLATES]
    responses = await asyncio.gather(
        *(provider.search(query, max_results=RESULTS_PER_QUERY) for query in queries),
        return_exceptions=True,
    )

    urls = []
    for query, response in zip(queries, responses):
        if isinstance(response, BaseException):
            logger.warning("Proof search failed", query=query, error=str(response))
            continue
        urls.extend(result.url for result in response if result.url)
    return dedupe(urls)


async def collect_external_candidates(
    seed_url: str,
    origin: str,
    search_provider: SearchProvider | None = None,
) -> list[DiscoveryCandidate]:
    """
    Collect external proof candidates for a seed.

    Args:
        seed_url: Seed URL (company name source)
        origin: Seed origin, used to tell own-origin from external hits
        search_provider: Configured search backend, None when search is disabled

    Returns:
        External candidates with reason "external-proof" and score 10
    """
    log = logger.bind(component="ExternalSource", origin=origin)
    company = derive_company_name(seed_url)
    if not company:
        return []

    candidates = _to_candidates(wikipedia_guesses(company), origin, "(wikipedia)")

    if search_provider is not None:
        urls = await search_result_urls(search_provider, company)
        candidates.extend(_to_candidates(urls, origin, "(search)"))
    else:
        log.debug("External search disabled")

    log.info("Collected external candidates", company=company, candidates=len(candidates))
    return candidates
