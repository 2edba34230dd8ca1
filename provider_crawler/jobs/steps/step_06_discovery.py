"""
Step 06: Discovery

Visits the best pooled candidates in rank order as discovered-N,
within both the discovery target cap and the total page budget.
Discovered pages do not feed the pool again.
"""

from provider_crawler.jobs.crawl_job import CrawlContext
from provider_crawler.jobs.steps.base import BaseStep
from provider_crawler.services.discovery import select_candidates


class DiscoveryStep(BaseStep):
    label = "Discovery"
    description = "Visiting discovered pages..."

    async def run(self, ctx: CrawlContext) -> str:
        budget = min(ctx.settings.discovery_max_targets, ctx.page_budget_left)
        if budget <= 0:
            return "Page budget exhausted, nothing to discover"

        selected = select_candidates(
            ctx.candidates,
            ctx.visited,
            max_total=budget,
            max_external=ctx.settings.discovery_max_external,
        )

        captured = 0
        for candidate in selected:
            if ctx.page_budget_left == 0:
                break
            snapshot = await ctx.capture(
                f"discovered-{captured + 1}",
                candidate.url,
                source_url=candidate.source_url,
                discovery_reason=candidate.reason,
                collect_links=False,
            )
            if snapshot is not None:
                captured += 1

        return f"Visited {captured}/{len(selected)} selected candidates"
