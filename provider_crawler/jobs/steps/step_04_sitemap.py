"""
Step 04: Sitemap

Scores every own-origin sitemap entry into the candidate pool.
"""

from provider_crawler.jobs.crawl_job import CrawlContext
from provider_crawler.jobs.steps.base import BaseStep
from provider_crawler.services.discovery import collect_sitemap_candidates


class SitemapStep(BaseStep):
    label = "Sitemap"
    description = "Collecting sitemap candidates..."

    async def run(self, ctx: CrawlContext) -> str:
        urls = await ctx.sitemap_urls()
        candidates = collect_sitemap_candidates(urls, ctx.origin)
        ctx.add_candidates(candidates)
        return f"{len(candidates)} candidates from {len(urls)} sitemap entries"
