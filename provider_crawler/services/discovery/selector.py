"""
Discovery Module - Candidate Selection.

Picks which pooled candidates get fetched, under the page budget.
"""

from collections.abc import Iterable

from provider_crawler.services.discovery.base import DiscoveryCandidate


def select_candidates(
    candidates: Iterable[DiscoveryCandidate],
    visited: set[str],
    max_total: int,
    max_external: int,
) -> list[DiscoveryCandidate]:
    """
    Rank and cap the candidate pool.

    1. Drop URLs already visited
    2. Collapse duplicate URLs, keeping the strictly higher score
       (first seen wins ties)
    3. Sort by score desc, depth asc, url asc
    4. Accept up to max_total; external candidates beyond max_external
       are skipped, not a stopping point

    Args:
        candidates: Pool, possibly with duplicate URLs
        visited: Canonical URLs already fetched or scheduled
        max_total: Maximum candidates returned
        max_external: Maximum external candidates returned

    Returns:
        Selected candidates in visitation order
    """
    best: dict[str, DiscoveryCandidate] = {}
    for candidate in candidates:
        if candidate.url in visited:
            continue
        current = best.get(candidate.url)
        if current is None or candidate.score > current.score:
            best[candidate.url] = candidate

    ranked = sorted(best.values(), key=lambda c: (-c.score, c.depth, c.url))

    selected: list[DiscoveryCandidate] = []
    external_count = 0
    for candidate in ranked:
        if len(selected) >= max_total:
            break
        if candidate.is_external:
            if external_count >= max_external:
                continue
            external_count += 1
        selected.append(candidate)
    return selected
