"""
Discovery Module.

Finds the pages worth fetching beyond the fixed page groups:
on-page links, sitemap entries and external proof sources, all scored
on one scale and capped by the selector.
"""

from provider_crawler.services.discovery.base import DiscoveryCandidate, DiscoveryLink
from provider_crawler.services.discovery.collector import (
    collect_link_candidates,
    collect_sitemap_candidates,
)
from provider_crawler.services.discovery.external import (
    collect_external_candidates,
    derive_company_name,
)
from provider_crawler.services.discovery.selector import select_candidates
from provider_crawler.services.discovery.sitemap import fetch_sitemap_urls

__all__ = [
    "DiscoveryCandidate",
    "DiscoveryLink",
    "collect_link_candidates",
    "collect_sitemap_candidates",
    "collect_external_candidates",
    "derive_company_name",
    "select_candidates",
    "fetch_sitemap_urls",
]
