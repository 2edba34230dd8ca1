"""
Discovery Module - Sitemap Source.

Uses sitemap.xml for cheap URL discovery:
1. Fetch origin/sitemap.xml (usually not behind bot protection)
2. If it is a sitemap index, fetch up to MAX_NESTED_SITEMAPS children
   concurrently and flatten them
3. Return the page URLs; scoring happens in the collector
"""

import asyncio
from xml.etree import ElementTree

import httpx
import structlog

from provider_crawler.core.parsers import dedupe

logger = structlog.get_logger()

SITEMAP_PATH = "/sitemap.xml"
MAX_NESTED_SITEMAPS = 15


def _local_name(tag: str) -> str:
    """Strip an XML namespace: '{ns}loc' -> 'loc'."""
    return tag.rsplit("}", 1)[-1]


def parse_sitemap(xml_content: str) -> tuple[list[str], list[str]]:
    """
    Parse a sitemap or sitemap index.

    Namespace-agnostic, so sitemaps that omit or misspell the
    sitemaps.org namespace still parse.

    Args:
        xml_content: Raw sitemap XML

    Returns:
        (page_urls, nested_sitemap_urls)
    """
    try:
        root = ElementTree.fromstring(xml_content.strip())
    except ElementTree.ParseError as e:
        logger.debug("Sitemap XML parse error", error=str(e))
        return [], []

    page_urls: list[str] = []
    nested: list[str] = []

    for element in root.iter():
        name = _local_name(element.tag)
        if name not in ("url", "sitemap"):
            continue
        loc = next(
            (child for child in element if _local_name(child.tag) == "loc"),
            None,
        )
        if loc is None or not loc.text or not loc.text.strip():
            continue
        if name == "sitemap":
            nested.append(loc.text.strip())
        else:
            page_urls.append(loc.text.strip())

    return page_urls, nested


async def fetch_xml(client: httpx.AsyncClient, url: str, timeout: float = 10.0) -> str | None:
    """Fetch a sitemap document, None on any failure or non-XML response."""
    try:
        response = await client.get(url, timeout=timeout, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.debug("Sitemap fetch failed", url=url[:80], error=str(e))
        return None

    if response.status_code != 200:
        logger.debug("Sitemap not available", url=url[:80], status=response.status_code)
        return None

    content = response.text
    head = content[:1000]
    # Reject HTML error pages / bot challenges served with 200
    if not (head.lstrip().startswith("<?xml") or "<urlset" in head or "<sitemapindex" in head):
        logger.debug("Sitemap response is not XML", url=url[:80])
        return None
    return content


async def fetch_sitemap_urls(
    client: httpx.AsyncClient,
    origin: str,
    timeout: float = 10.0,
) -> list[str]:
    """
    Fetch and flatten all page URLs of a site's sitemap.

    Nested sitemaps are fetched as one bounded concurrent batch; a failed
    child only loses its own entries.

    Args:
        client: HTTP client
        origin: Site origin (scheme://host)
        timeout: Per-request timeout in seconds

    Returns:
        Page URLs in document order, deduplicated
    """
    log = logger.bind(component="SitemapSource", origin=origin)

    content = await fetch_xml(client, origin.rstrip("/") + SITEMAP_PATH, timeout)
    if not content:
        log.info("No sitemap available")
        return []

    page_urls, nested = parse_sitemap(content)

    if nested:
        batch = nested[:MAX_NESTED_SITEMAPS]
        if len(nested) > MAX_NESTED_SITEMAPS:
            log.info("Sitemap index truncated", nested=len(nested), fetched=len(batch))

        children = await asyncio.gather(
            *(fetch_xml(client, url, timeout) for url in batch),
            return_exceptions=True,
        )
        for url, child in zip(batch, children):
            if isinstance(child, BaseException):
                log.debug("Nested sitemap failed", url=url[:80], error=str(child))
                continue
            if child:
                child_urls, _ = parse_sitemap(child)
                page_urls.extend(child_urls)

    urls = dedupe(page_urls)
    log.info("Parsed sitemap", url_count=len(urls), nested=len(nested))
    return urls
