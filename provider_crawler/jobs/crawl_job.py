"""
Crawl Job - Steps 1-6: Home, Curated Pages, Impressum, Sitemap, External, Discovery.

Turns one seed URL into a page corpus:
1. Step 01: Home - seed page, with render retry and fallback entry paths
2. Step 02: Curated Pages - services / about / contact page groups
3. Step 03: Impressum - legal notice location chain
4. Step 04: Sitemap - sitemap entries into the candidate pool
5. Step 05: External - external proof sources into the candidate pool
6. Step 06: Discovery - visit the best candidates within the page budget

All per-seed state lives on a CrawlContext; nothing is shared between
seeds. Fetches go through one fetcher and are strictly sequential.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

import httpx
import structlog

from provider_crawler.core.config import Settings
from provider_crawler.core.logging import enrich_event
from provider_crawler.core.models import CrawledPage
from provider_crawler.core.parsers import hash_text
from provider_crawler.services.discovery import (
    DiscoveryCandidate,
    DiscoveryLink,
    collect_link_candidates,
    fetch_sitemap_urls,
)
from provider_crawler.services.fetcher import FetchError, PageFetcher, PageSnapshot, WaitStrategy
from provider_crawler.services.search_engine import SearchProvider
from provider_crawler.services.url_utils import canonical_url, get_origin, normalize_slug

logger = structlog.get_logger()

# Steps for crawl job
CRAWL_STEPS = None  # Lazy loaded to avoid circular imports


def get_crawl_steps():
    """Lazy load crawl steps to avoid circular imports."""
    global CRAWL_STEPS
    if CRAWL_STEPS is None:
        from provider_crawler.jobs.steps.step_01_home import HomeStep
        from provider_crawler.jobs.steps.step_02_curated import CuratedPagesStep
        from provider_crawler.jobs.steps.step_03_impressum import ImpressumStep
        from provider_crawler.jobs.steps.step_04_sitemap import SitemapStep
        from provider_crawler.jobs.steps.step_05_external import ExternalStep
        from provider_crawler.jobs.steps.step_06_discovery import DiscoveryStep

        CRAWL_STEPS = [
            HomeStep(),
            CuratedPagesStep(),
            ImpressumStep(),
            SitemapStep(),
            ExternalStep(),
            DiscoveryStep(),
        ]
    return CRAWL_STEPS


@dataclass
class CrawlContext:
    """
    Mutable crawl state for one seed.

    - visited: canonical URLs fetched or scheduled (only ever grows)
    - candidates: discovery pool; duplicates allowed, the selector collapses them
    - pages: corpus keyed by page role, insertion-ordered; a later capture
      under the same key replaces the earlier one
    """
    seed_url: str
    settings: Settings
    fetcher: PageFetcher
    client: httpx.AsyncClient
    search_provider: SearchProvider | None = None
    out_dir: Path | None = None

    slug: str = ""
    origin: str = ""
    visited: set[str] = field(default_factory=set)
    candidates: list[DiscoveryCandidate] = field(default_factory=list)
    pages: dict[str, CrawledPage] = field(default_factory=dict)
    home_links: list[DiscoveryLink] = field(default_factory=list)
    step_results: dict[str, str] = field(default_factory=dict)
    _sitemap_urls: list[str] | None = None

    def __post_init__(self):
        self.slug = self.slug or normalize_slug(self.seed_url)
        self.origin = self.origin or get_origin(self.seed_url)
        self.log = logger.bind(component="CrawlContext", seed=self.slug)

    # -------------------------------------------------------------------------
    # State helpers
    # -------------------------------------------------------------------------

    @property
    def page_budget_left(self) -> int:
        return max(0, self.settings.crawl_max_pages - len(self.pages))

    def is_visited(self, url: str) -> bool:
        return canonical_url(url, self.origin) in self.visited

    def add_candidates(self, candidates: list[DiscoveryCandidate]) -> None:
        self.candidates.extend(candidates)

    async def sitemap_urls(self) -> list[str]:
        """Sitemap page URLs, fetched once per seed."""
        if self._sitemap_urls is None:
            self._sitemap_urls = await fetch_sitemap_urls(
                self.client, self.origin, timeout=self.settings.sitemap_timeout
            )
        return self._sitemap_urls

    # -------------------------------------------------------------------------
    # Fetch + record
    # -------------------------------------------------------------------------

    async def fetch_page(self, url: str, wait: WaitStrategy = "domcontentloaded") -> PageSnapshot | None:
        """Fetch one URL, marking it visited first. None when the fetch fails."""
        self.visited.add(canonical_url(url, self.origin))
        try:
            snapshot = await self.fetcher.fetch(url, wait=wait)
        except FetchError as e:
            self.log.info("Fetch failed", url=url, reason=e.reason, status=e.status)
            return None
        self.visited.add(canonical_url(snapshot.final_url, self.origin))
        return snapshot

    def record(
        self,
        key: str,
        url: str,
        snapshot: PageSnapshot,
        source_url: str | None = None,
        discovery_reason: str | None = None,
        collect_links: bool = True,
    ) -> CrawledPage:
        """Add a fetched page to the corpus, persist it, then pool its links."""
        page = CrawledPage(
            key=key,
            url=url,
            status=snapshot.status,
            text=snapshot.text,
            source_url=source_url,
            discovery_reason=discovery_reason,
        )
        self.pages[key] = page
        self._write_artifact(page)

        if collect_links:
            self.add_candidates(collect_link_candidates(snapshot.links, url, self.origin))
        return page

    async def capture(
        self,
        key: str,
        url: str,
        wait: WaitStrategy = "domcontentloaded",
        source_url: str | None = None,
        discovery_reason: str | None = None,
        collect_links: bool = True,
    ) -> PageSnapshot | None:
        """Fetch and record a page under `key`; None on failure or when the page budget is spent."""
        if key not in self.pages and self.page_budget_left == 0:
            self.log.info("Page budget exhausted", key=key, url=url)
            return None

        snapshot = await self.fetch_page(url, wait=wait)
        if snapshot is None:
            return None

        self.record(key, url, snapshot, source_url, discovery_reason, collect_links)
        return snapshot

    def _write_artifact(self, page: CrawledPage) -> None:
        if self.out_dir is None:
            return
        self.out_dir.mkdir(parents=True, exist_ok=True)
        path = self.out_dir / f"{self.slug}-{page.key}.json"
        artifact = {**page.to_dict(), "text_hash": hash_text(page.text)}
        path.write_text(json.dumps(artifact, indent=2, ensure_ascii=False), encoding="utf-8")


async def crawl_seed(
    seed_url: str,
    settings: Settings,
    fetcher: PageFetcher,
    client: httpx.AsyncClient,
    search_provider: SearchProvider | None = None,
    out_dir: Path | None = None,
) -> list[CrawledPage]:
    """
    Execute all crawl phases for one seed.

    A failing phase is logged and isolated; the remaining phases still run.

    Args:
        seed_url: Provider homepage
        settings: Crawl budgets and timeouts
        fetcher: Page fetcher (shared for the seed)
        client: HTTP client for sitemap requests
        search_provider: External search backend, None to skip search
        out_dir: Directory for debug artifacts, None to skip writing

    Returns:
        Captured pages in capture order
    """
    ctx = CrawlContext(
        seed_url=seed_url,
        settings=settings,
        fetcher=fetcher,
        client=client,
        search_provider=search_provider,
        out_dir=out_dir,
    )
    log = logger.bind(seed=ctx.slug, origin=ctx.origin)
    log.info("Crawl started")

    steps = get_crawl_steps()
    total_steps = len(steps)
    failed = []
    for i, step in enumerate(steps, 1):
        if not await step.execute(ctx, i, total_steps):
            failed.append(step.label)

    pages = list(ctx.pages.values())
    enrich_event(crawl={
        "pages": len(pages),
        "page_keys": list(ctx.pages.keys()),
        "candidates": len(ctx.candidates),
        "visited": len(ctx.visited),
        "failed_steps": failed,
        "steps": dict(ctx.step_results),
    })
    log.info("Crawl finished", pages=len(pages), candidates=len(ctx.candidates), failed_steps=failed)
    return pages
