"""
Step 02: Curated Pages

Fixed page groups every provider site tends to have. Per group the paths
are tried in order; the first successful one is kept under the group key.
"""

from provider_crawler.jobs.crawl_job import CrawlContext
from provider_crawler.jobs.steps.base import BaseStep

PAGE_GROUPS: list[tuple[str, list[str]]] = [
    ("services", ["/services", "/leistungen"]),
    ("about", ["/about", "/ueber-uns"]),
    ("contact", ["/contact", "/kontakt"]),
]


class CuratedPagesStep(BaseStep):
    label = "Curated Pages"
    description = "Capturing services, about and contact pages..."

    async def run(self, ctx: CrawlContext) -> str:
        base = ctx.origin.rstrip("/")
        found = []

        for key, paths in PAGE_GROUPS:
            if key in ctx.pages:
                continue
            for path in paths:
                url = f"{base}{path}"
                if ctx.is_visited(url):
                    continue
                if await ctx.capture(key, url) is not None:
                    found.append(key)
                    break

        return f"Captured {len(found)}/{len(PAGE_GROUPS)} groups: {', '.join(found) or 'none'}"
