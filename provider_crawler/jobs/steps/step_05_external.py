"""
Step 05: External

Adds external proof sources (Wikipedia guesses, search hits on trusted
hosts) to the candidate pool.
"""

from provider_crawler.jobs.crawl_job import CrawlContext
from provider_crawler.jobs.steps.base import BaseStep
from provider_crawler.services.discovery import collect_external_candidates


class ExternalStep(BaseStep):
    label = "External Sources"
    description = "Collecting external proof candidates..."

    async def run(self, ctx: CrawlContext) -> str:
        candidates = await collect_external_candidates(
            ctx.seed_url,
            ctx.origin,
            search_provider=ctx.search_provider,
        )
        ctx.add_candidates(candidates)
        return f"{len(candidates)} external candidates"
