"""
Step 01: Home

Captures the seed page itself.

1. Navigate with "domcontentloaded"
2. If the visible text is suspiciously short (JS-rendered shell) or the
   fetch failed, retry once with "networkidle" and keep the richer snapshot
3. If neither attempt reaches the seed, try common alternate entry
   paths, recorded as fallback-N; their links stand in for home links

Output on the context:
- pages["home"] or pages["fallback-N"]
- home_links: anchors of whichever entry page worked
"""

import structlog

from provider_crawler.jobs.crawl_job import CrawlContext
from provider_crawler.jobs.steps.base import BaseStep, StepError

logger = structlog.get_logger()

FALLBACK_ENTRY_PATHS = ["/index.html", "/de/", "/en/", "/home"]


class HomeStep(BaseStep):
    label = "Home Page"
    description = "Capturing the seed homepage..."

    async def run(self, ctx: CrawlContext) -> str:
        min_length = ctx.settings.min_home_text_length

        snapshot = await ctx.fetch_page(ctx.seed_url, wait="domcontentloaded")
        chars = len(snapshot.text) if snapshot is not None else 0
        if chars < min_length:
            self.log.info("Home text too short, retrying with networkidle", chars=chars)
            rendered = await ctx.fetch_page(ctx.seed_url, wait="networkidle")
            if rendered is not None and (snapshot is None or len(rendered.text) >= chars):
                snapshot = rendered

        if snapshot is not None:
            ctx.record("home", ctx.seed_url, snapshot)
            ctx.home_links = snapshot.links
            return f"Home captured ({len(snapshot.text)} chars, {len(snapshot.links)} links)"

        base = ctx.origin.rstrip("/")
        for index, path in enumerate(FALLBACK_ENTRY_PATHS, 1):
            url = f"{base}{path}"
            snapshot = await ctx.capture(f"fallback-{index}", url)
            if snapshot is not None:
                ctx.home_links = snapshot.links
                return f"Home unreachable, fallback entry {path} captured"

        raise StepError("Home page and all fallback entry paths unreachable")
