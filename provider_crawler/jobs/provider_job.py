"""
Provider Job - crawl, extract, normalize, persist.

Processes the seed list one seed at a time:
1. Crawl the seed into a page corpus (crawl_job)
2. Ask the extraction oracle for a raw candidate
3. Normalize the candidate into a valid record and apply the publish gate
4. Upsert the row into the workbook, or print it on --dry-run

Each seed emits one wide event (canonical log line) whatever the outcome.
"""

import asyncio
import sys
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

import httpx
import structlog

from provider_crawler.core.config import ConfigurationError, Settings, get_settings
from provider_crawler.core.logging import (
    emit_wide_event,
    enrich_event,
    finalize_seed_event,
    init_seed_event,
)
from provider_crawler.core.models import ProviderFrontmatter
from provider_crawler.jobs.crawl_job import crawl_seed
from provider_crawler.services.extraction import ProviderExtractor
from provider_crawler.services.fetcher import PageFetcher, create_fetcher
from provider_crawler.services.normalization import load_qualification_slugs, normalize_provider
from provider_crawler.services.normalization.qualifications import parse_seed_lines
from provider_crawler.services.search_engine import SearchProvider, get_search_provider
from provider_crawler.services.sheet_store import SheetStore
from provider_crawler.services.url_utils import normalize_slug

logger = structlog.get_logger()


@dataclass
class RunOptions:
    dry_run: bool = False
    only_slug: str | None = None
    seeds_file: str | None = None


@dataclass
class SeedOutcome:
    slug: str
    provider: ProviderFrontmatter
    low_confidence: bool
    pages: int
    action: str  # "updated" | "appended" | "printed"


# =============================================================================
# Seeds
# =============================================================================


def normalize_seed_url(seed: str) -> str:
    """Seeds may omit the scheme ("acme.de"); assume https."""
    seed = seed.strip()
    return seed if "://" in seed else f"https://{seed}"


def load_seeds(path: str | Path) -> list[str]:
    """
    Read the seed list.

    Raises:
        ConfigurationError: if the file is missing or lists no seeds
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Seeds file not found: {path}")

    seeds = [normalize_seed_url(line) for line in parse_seed_lines(path.read_text(encoding="utf-8"))]
    if not seeds:
        raise ConfigurationError(f"No provider seeds found in {path}")
    return seeds


def filter_seeds(seeds: list[str], only_slug: str | None) -> list[str]:
    """Keep the seed matching --only (by normalized slug), or all seeds."""
    if not only_slug:
        return seeds
    filtered = [seed for seed in seeds if normalize_slug(seed) == only_slug]
    if not filtered:
        raise ConfigurationError(f"No seeds matched --only slug: {only_slug}")
    return filtered


# =============================================================================
# Pipeline
# =============================================================================


async def process_seed(
    seed_url: str,
    settings: Settings,
    fetcher: PageFetcher,
    client: httpx.AsyncClient,
    extractor: ProviderExtractor,
    store: SheetStore | None,
    qualification_slugs: frozenset[str] = frozenset(),
    search_provider: SearchProvider | None = None,
    dry_run: bool = False,
    run_id: str | None = None,
    output: TextIO | None = None,
) -> SeedOutcome:
    """
    Run the full pipeline for one seed.

    Crawl and extraction problems are absorbed (the record degrades to
    defaults); a persistence failure propagates.
    """
    slug = normalize_slug(seed_url)
    log = logger.bind(seed=slug)
    init_seed_event(
        seed_url,
        slug,
        run_id=run_id,
        service_name=settings.app_name,
        service_version=settings.app_version,
    )
    error: Exception | None = None

    try:
        log.info("Processing seed", url=seed_url)
        pages = await crawl_seed(
            seed_url,
            settings,
            fetcher,
            client,
            search_provider=search_provider,
            out_dir=Path(settings.out_dir),
        )

        candidate = await extractor.extract(seed_url, pages)
        enrich_event(**{"extraction.fields": len(candidate), "extraction.empty": not candidate})

        result = normalize_provider(candidate, seed_url, pages, qualification_slugs)
        provider = result.provider
        enrich_event(
            publish_status=provider.publish_status,
            evidence_level=provider.evidence_level,
            low_confidence=result.low_confidence,
            **{
                "gate.facts": result.facts_count,
                "gate.relevance_signals": result.relevance_signals,
            },
        )

        if dry_run or store is None:
            print(provider.model_dump_json(indent=2, exclude_none=True), file=output or sys.stdout)
            action = "printed"
        else:
            action = await asyncio.to_thread(store.upsert, provider)
            log.info("Upserted provider", action=action)
        enrich_event(action=action)

        return SeedOutcome(
            slug=slug,
            provider=provider,
            low_confidence=result.low_confidence,
            pages=len(pages),
            action=action,
        )
    except Exception as e:
        error = e
        raise
    finally:
        emit_wide_event(finalize_seed_event(error))


async def run(options: RunOptions, settings: Settings | None = None) -> list[SeedOutcome]:
    """
    Process every selected seed sequentially.

    Raises:
        ConfigurationError: missing OPENAI_API_KEY, empty seed list,
            or --only matching nothing (checked before any crawling)
    """
    settings = settings or get_settings()
    settings.require_openai_key()

    seeds = filter_seeds(load_seeds(options.seeds_file or settings.seeds_file), options.only_slug)
    qualification_slugs = load_qualification_slugs(settings.qualification_list_path)
    store = None if options.dry_run else SheetStore(settings.sheet_path, settings.sheet_tab)
    run_id = str(uuid.uuid4())[:8]

    log = logger.bind(run_id=run_id)
    log.info("Run started", seeds=len(seeds), dry_run=options.dry_run)

    outcomes = []
    async with httpx.AsyncClient(
        timeout=settings.sitemap_timeout,
        headers={"User-Agent": settings.user_agent},
        follow_redirects=True,
    ) as client:
        search_provider = get_search_provider(settings, client)
        extractor = ProviderExtractor(settings)

        for seed_url in seeds:
            # fresh browser page per seed
            async with create_fetcher(settings, client) as fetcher:
                outcome = await process_seed(
                    seed_url,
                    settings,
                    fetcher,
                    client,
                    extractor,
                    store,
                    qualification_slugs=qualification_slugs,
                    search_provider=search_provider,
                    dry_run=options.dry_run,
                    run_id=run_id,
                )
            outcomes.append(outcome)

    published = sum(1 for o in outcomes if o.provider.publish_status == "published")
    log.info("Run finished", seeds=len(outcomes), published=published, hidden=len(outcomes) - published)
    return outcomes
