"""
Step 03: Impressum

Locates the legal notice, stopping at the first page that loads:
(a) home links with legal keywords (own origin only)
(b) guessed paths, only if the home page produced no links
(c) sitemap entries with legal keywords
(d) probing common Impressum paths

The found page's links join the candidate pool.
"""

from provider_crawler.jobs.crawl_job import CrawlContext
from provider_crawler.jobs.steps.base import BaseStep
from provider_crawler.services.impressum import (
    IMPRESSUM_GUESS_PATHS,
    IMPRESSUM_PROBE_PATHS,
    candidate_paths,
    legal_link_urls,
    legal_sitemap_urls,
)
from provider_crawler.services.url_utils import canonical_url


class ImpressumStep(BaseStep):
    label = "Impressum"
    description = "Locating the legal notice..."

    async def run(self, ctx: CrawlContext) -> str:
        attempted: set[str] = set()

        async def try_urls(urls: list[str], strategy: str) -> str | None:
            for url in urls:
                canonical = canonical_url(url, ctx.origin)
                if canonical in attempted:
                    continue
                attempted.add(canonical)
                if await ctx.capture("impressum", url) is not None:
                    self.log.info("Impressum found", url=url, strategy=strategy)
                    return f"Impressum via {strategy}: {url}"
            return None

        result = await try_urls(legal_link_urls(ctx.home_links, ctx.origin), "home links")
        if result:
            return result

        if not ctx.home_links:
            result = await try_urls(candidate_paths(ctx.origin, IMPRESSUM_GUESS_PATHS), "guess")
            if result:
                return result

        sitemap_urls = await ctx.sitemap_urls()
        result = await try_urls(legal_sitemap_urls(sitemap_urls, ctx.origin), "sitemap")
        if result:
            return result

        result = await try_urls(candidate_paths(ctx.origin, IMPRESSUM_PROBE_PATHS), "probe")
        if result:
            return result

        self.log.info("No impressum found", attempted=len(attempted))
        return "No impressum found"
