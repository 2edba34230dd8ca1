"""
Discovery Module - Candidate Collection.

Turns raw anchors and sitemap entries into scored DiscoveryCandidates.
No HTTP requests happen here; fetching belongs to the sources.
"""

from collections.abc import Iterable

import structlog

from provider_crawler.core.constants import SITEMAP_REASON
from provider_crawler.services.discovery.base import DiscoveryCandidate, DiscoveryLink
from provider_crawler.services.discovery.scorer import match_reason, score_candidate
from provider_crawler.services.url_utils import canonicalize_href

logger = structlog.get_logger()


def collect_link_candidates(
    links: Iterable[DiscoveryLink],
    page_url: str,
    origin: str,
) -> list[DiscoveryCandidate]:
    """
    Score the keyword-matching anchors of one page.

    Anchors without a keyword match are dropped; so are anchors the
    canonicalizer rejects.

    Args:
        links: Visible anchors of the page
        page_url: URL of the page the anchors were found on
        origin: Seed origin (scheme://host)

    Returns:
        Candidates in anchor order (duplicates allowed)
    """
    candidates = []
    for link in links:
        canonical = canonicalize_href(link.href, origin)
        if canonical is None:
            continue

        reason = match_reason(canonical.url, link.text)
        if reason is None:
            continue

        score, depth = score_candidate(canonical.url, reason, link.text)
        candidates.append(DiscoveryCandidate(
            url=canonical.url,
            reason=reason,
            source_url=page_url,
            score=score,
            depth=depth,
            is_external=canonical.is_external,
        ))
    return candidates


def collect_sitemap_candidates(
    sitemap_urls: Iterable[str],
    origin: str,
) -> list[DiscoveryCandidate]:
    """
    Score sitemap entries.

    Every own-origin entry becomes a candidate: reason is the matched
    keyword, or "sitemap" when nothing matches. External entries are dropped.
    """
    candidates = []
    for url in sitemap_urls:
        canonical = canonicalize_href(url, origin)
        if canonical is None or canonical.is_external:
            continue

        reason = match_reason(canonical.url) or SITEMAP_REASON
        score, depth = score_candidate(canonical.url, reason)
        candidates.append(DiscoveryCandidate(
            url=canonical.url,
            reason=reason,
            source_url="(sitemap)",
            score=score,
            depth=depth,
        ))

    logger.debug("Scored sitemap entries", origin=origin, candidates=len(candidates))
    return candidates
