"""
Pytest configuration and fixtures for provider crawler tests.
"""

from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from openpyxl import load_workbook

from provider_crawler.core.config import Settings
from provider_crawler.core.models import CrawledPage
from provider_crawler.services.discovery.base import DiscoveryLink
from provider_crawler.services.fetcher import FetchError, PageSnapshot
from provider_crawler.services.url_utils import canonical_url

SEED_URL = "https://acme.de"
ORIGIN = "https://acme.de"


def snapshot(url: str, text: str, links: list[tuple[str, str]] | None = None, status: int = 200) -> PageSnapshot:
    """Build a PageSnapshot; links are (absolute href, anchor text) pairs."""
    return PageSnapshot(
        status=status,
        text=text,
        final_url=url,
        links=[DiscoveryLink(href=href, text=anchor) for href, anchor in (links or [])],
    )


def page(key: str, text: str, url: str | None = None, discovery_reason: str | None = None) -> CrawledPage:
    return CrawledPage(
        key=key,
        url=url or f"{ORIGIN}/{key}",
        status=200,
        text=text,
        discovery_reason=discovery_reason,
    )


class FakeFetcher:
    """
    In-memory PageFetcher.

    Responses are keyed by canonical URL. A value may be a PageSnapshot,
    or a callable taking the wait strategy and returning one. Unknown URLs
    fail with HTTP 404.
    """

    def __init__(self, responses: dict[str, PageSnapshot | Callable[[str], PageSnapshot]]):
        self.responses = {canonical_url(url): response for url, response in responses.items()}
        self.calls: list[tuple[str, str]] = []

    async def fetch(self, url: str, wait: str = "domcontentloaded") -> PageSnapshot:
        self.calls.append((url, wait))
        response = self.responses.get(canonical_url(url))
        if response is None:
            raise FetchError(url, "HTTP 404", status=404)
        if callable(response):
            return response(wait)
        return response

    @property
    def fetched_urls(self) -> list[str]:
        return [url for url, _ in self.calls]


def read_sheet_rows(path: Path, tab: str = "providers") -> list[dict[str, str]]:
    """Data rows of a workbook tab keyed by header."""
    if not path.exists():
        return []
    wb = load_workbook(filename=path, read_only=True)
    try:
        rows = list(wb[tab].iter_rows(values_only=True)) if tab in wb.sheetnames else []
    finally:
        wb.close()
    if not rows:
        return []
    headers = [str(h) for h in rows[0]]
    return [
        {header: ("" if value is None else str(value)) for header, value in zip(headers, row)}
        for row in rows[1:]
    ]


def not_found_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404, text="not found")


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment and any local .env file."""
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        serpapi_api_key=None,
        search_provider="serpapi",
        fetcher_backend="httpx",
        out_dir=str(tmp_path / "raw"),
        sheet_path=str(tmp_path / "providers.xlsx"),
        seeds_file=str(tmp_path / "providers.txt"),
        qualification_list_path=str(tmp_path / "bsi-apt-response.txt"),
        ai_retry_attempts=1,
        ai_retry_backoff=1,
        min_home_text_length=40,
    )


@pytest_asyncio.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client where every request answers 404 (no sitemap, no network)."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(not_found_handler)) as client:
        yield client
