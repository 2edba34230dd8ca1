"""
Impressum (legal notice) location helpers.

German sites are required to publish an Impressum; it is the most reliable
source for the legal entity name and contact data. Locating it is a chain
of cheap-to-expensive strategies run by the impressum crawl step:

1. Home page links whose URL or text carries a legal keyword
2. Guessed paths (only when the home page yielded no links at all)
3. Sitemap entries carrying a legal keyword
4. Probing the common paths below
"""

from collections.abc import Iterable

from provider_crawler.core.parsers import dedupe
from provider_crawler.services.discovery.base import DiscoveryLink
from provider_crawler.services.url_utils import canonicalize_href


LEGAL_KEYWORDS = (
    "impressum",
    "imprint",
    "legal-notice",
    "legal notice",
    "rechtliche hinweise",
    "anbieterkennzeichnung",
)

# Tried when the home page produced no links (JS-only navigation)
IMPRESSUM_GUESS_PATHS = [
    "/impressum",
    "/imprint",
]

# Common Impressum URL paths
IMPRESSUM_PROBE_PATHS = [
    "/impressum",
    "/impressum.html",
    "/de/impressum",
    "/de/impressum.html",
    "/imprint",
    "/en/imprint",
    "/legal-notice",
    "/legal",
]


def is_legal_reference(url: str, text: str = "") -> bool:
    haystack = f"{url} {text}".lower()
    return any(keyword in haystack for keyword in LEGAL_KEYWORDS)


def legal_link_urls(links: Iterable[DiscoveryLink], origin: str) -> list[str]:
    """Own-origin canonical URLs of links that look like a legal notice."""
    urls = []
    for link in links:
        canonical = canonicalize_href(link.href, origin)
        if canonical is None or canonical.is_external:
            continue
        if is_legal_reference(canonical.url, link.text):
            urls.append(canonical.url)
    return dedupe(urls)


def legal_sitemap_urls(sitemap_urls: Iterable[str], origin: str) -> list[str]:
    """Own-origin canonical sitemap entries that look like a legal notice."""
    return legal_link_urls((DiscoveryLink(href=url) for url in sitemap_urls), origin)


def candidate_paths(origin: str, paths: list[str]) -> list[str]:
    base = origin.rstrip("/")
    return [f"{base}{path}" for path in paths]
