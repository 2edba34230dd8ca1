"""
Page Fetcher Service.

Renders a URL and returns its visible text plus outbound anchors.

Backends:
- PlaywrightFetcher: headless Chromium, one page reused for the whole seed
- HttpxFetcher: plain HTTP GET, no JavaScript (wait strategy ignored)

Both parse the final HTML the same way with BeautifulSoup, so the page
corpus does not depend on the backend beyond what JavaScript renders.

Usage:
    async with PlaywrightFetcher(settings) as fetcher:
        snapshot = await fetcher.fetch("https://example.de/", wait="domcontentloaded")
"""

import re
from dataclasses import dataclass, field
from typing import Literal, Protocol
from urllib.parse import urljoin

import httpx
import structlog
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from provider_crawler.core.config import Settings
from provider_crawler.core.parsers import normalize_text
from provider_crawler.services.discovery.base import DiscoveryLink

logger = structlog.get_logger()


WaitStrategy = Literal["domcontentloaded", "networkidle"]

# Elements never part of the visible page body
REMOVE_TAGS = [
    "script", "style", "noscript", "nav", "footer", "header",
    "aside", "svg", "iframe", "template",
]

_HIDDEN_STYLE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE)


class FetchError(Exception):
    """A single page could not be fetched (network, timeout or HTTP status >= 400)."""

    def __init__(self, url: str, reason: str, status: int | None = None):
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"{url}: {reason}")


@dataclass
class PageSnapshot:
    """Rendered page: status, visible text and absolute outbound anchors."""
    status: int
    text: str
    final_url: str
    links: list[DiscoveryLink] = field(default_factory=list)


class PageFetcher(Protocol):
    async def fetch(self, url: str, wait: WaitStrategy = "domcontentloaded") -> PageSnapshot:
        ...


# =============================================================================
# HTML parsing
# =============================================================================


def extract_links(soup: BeautifulSoup, base_url: str) -> list[DiscoveryLink]:
    """Collect anchors with absolute hrefs (non-http schemes are left as-is)."""
    links = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href:
            continue
        links.append(DiscoveryLink(
            href=urljoin(base_url, href),
            text=normalize_text(anchor.get_text(" ")),
        ))
    return links


def extract_visible_text(soup: BeautifulSoup) -> str:
    """
    Visible body text, whitespace collapsed.

    Mutates the soup: chrome elements (nav, header, footer...) and hidden
    elements are removed first.
    """
    for tag in soup(REMOVE_TAGS):
        tag.decompose()

    hidden = [
        element for element in soup.find_all(True)
        if element.has_attr("hidden")
        or element.get("aria-hidden") == "true"
        or _HIDDEN_STYLE.search(element.get("style") or "")
    ]
    for element in hidden:
        # already removed together with a hidden ancestor
        if element.decomposed:
            continue
        element.decompose()

    root = soup.body or soup
    return normalize_text(root.get_text(" "))


def parse_html(html: str, status: int, final_url: str) -> PageSnapshot:
    """Build a snapshot from raw HTML. Links are read before chrome is stripped."""
    soup = BeautifulSoup(html, "html.parser")
    links = extract_links(soup, final_url)
    text = extract_visible_text(soup)
    return PageSnapshot(status=status, text=text, final_url=final_url, links=links)


# =============================================================================
# Backends
# =============================================================================


class PlaywrightFetcher:
    """
    Headless Chromium fetcher.

    Holds one browser page per seed, so fetches are strictly sequential.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.timeout_ms = settings.navigation_timeout_ms
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None
        self.log = logger.bind(component="PlaywrightFetcher")

    async def __aenter__(self) -> "PlaywrightFetcher":
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=True,
            args=["--no-sandbox", "--disable-dev-shm-usage"],
        )
        self._context = await self._browser.new_context(user_agent=self.settings.user_agent)
        self._page = await self._context.new_page()
        self.log.debug("Browser started")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        self._page = None

    async def fetch(self, url: str, wait: WaitStrategy = "domcontentloaded") -> PageSnapshot:
        if self._page is None:
            raise FetchError(url, "browser not started")

        try:
            response = await self._page.goto(url, wait_until=wait, timeout=self.timeout_ms)
            html = await self._page.content()
        except PlaywrightError as e:
            # TimeoutError is a subclass
            raise FetchError(url, str(e).splitlines()[0] if str(e) else type(e).__name__) from e

        status = response.status if response else 0
        if status >= 400:
            raise FetchError(url, f"HTTP {status}", status=status)

        return parse_html(html, status, self._page.url or url)


class HttpxFetcher:
    """Plain HTTP fetcher; no JavaScript, so the wait strategy is ignored."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings):
        self.client = client
        self.timeout = settings.navigation_timeout_seconds
        self.log = logger.bind(component="HttpxFetcher")

    async def __aenter__(self) -> "HttpxFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    async def fetch(self, url: str, wait: WaitStrategy = "domcontentloaded") -> PageSnapshot:
        try:
            response = await self.client.get(url, timeout=self.timeout, follow_redirects=True)
        except httpx.HTTPError as e:
            raise FetchError(url, str(e) or type(e).__name__) from e

        if response.status_code >= 400:
            raise FetchError(url, f"HTTP {response.status_code}", status=response.status_code)

        return parse_html(response.text, response.status_code, str(response.url))


def create_fetcher(settings: Settings, client: httpx.AsyncClient) -> PlaywrightFetcher | HttpxFetcher:
    """Fetcher for the configured backend (use as async context manager)."""
    if settings.fetcher_backend == "httpx":
        return HttpxFetcher(client, settings)
    return PlaywrightFetcher(settings)
