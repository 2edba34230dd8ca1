"""
Web search backends used to find third-party proof pages for a provider.

SerpApiProvider queries Google through SerpAPI and needs a key. DdgsProvider
is the keyless DuckDuckGo alternative. Hits are only candidates: the discovery
layer keeps those on trusted registry and directory hosts.
"""

import asyncio
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx
import structlog
from ddgs import DDGS

from provider_crawler.core.config import Settings

logger = structlog.get_logger()


@dataclass
class SearchResult:
    """One hit from a search backend."""
    title: str
    url: str
    snippet: str = ""
    is_knowledge_graph: bool = False


class SearchProvider(ABC):
    """Common interface of the search backends."""

    @abstractmethod
    async def search(self, query: str, max_results: int = 10) -> list[SearchResult]:
        """Run `query` and return at most `max_results` hits."""
        pass


class SerpApiProvider(SearchProvider):
    """Google search via SerpAPI.

    Besides organic results, picks up the knowledge graph's website link,
    which is often the best single proof source for a company.
    """

    BASE_URL = "https://serpapi.com/search"

    def __init__(self, client: httpx.AsyncClient, api_key: str, timeout: float = 15.0):
        self.client = client
        self.api_key = api_key
        self.timeout = timeout
        self.log = logger.bind(provider="serpapi")

    async def search(self, query: str, max_results: int = 10) -> list[SearchResult]:
        self.log.info("Executing search", query=query[:50])
        response = await self.client.get(
            self.BASE_URL,
            params={
                "api_key": self.api_key,
                "q": query,
                "engine": "google",
                "num": max_results,
                "hl": "de",
            },
            timeout=self.timeout,
        )
        if response.status_code == 429:
            self.log.warning("SerpAPI rate limit hit")
        response.raise_for_status()
        data = response.json()

        results = [
            SearchResult(
                title=item.get("title", ""),
                url=item.get("link", ""),
                snippet=(item.get("snippet") or "")[:500],
            )
            for item in data.get("organic_results", [])[:max_results]
            if item.get("link")
        ]

        knowledge_graph = data.get("knowledge_graph") or {}
        if knowledge_graph.get("website"):
            results.append(SearchResult(
                title=knowledge_graph.get("title", ""),
                url=knowledge_graph["website"],
                is_knowledge_graph=True,
            ))

        self.log.info("Search completed", result_count=len(results))
        return results


class DdgsProvider(SearchProvider):
    """Keyless DuckDuckGo backend (ddgs).

    DDGS is synchronous, so each query runs in a worker thread. Throttling
    responses are retried with jittered exponential waits up to `max_backoff`.
    """

    RATE_LIMIT_MARKERS = ("ratelimit", "429", "202", "too many")

    def __init__(
        self,
        timeout: int = 10,
        backend: str = "duckduckgo",
        max_retries: int = 3,
        max_backoff: float = 30.0,
    ):
        self.timeout = timeout
        self.backend = backend
        self.max_retries = max_retries
        self.max_backoff = max_backoff
        self.log = logger.bind(provider="ddgs", backend=backend)

    def _text_search(self, query: str, max_results: int) -> list[dict]:
        hits = DDGS(timeout=self.timeout).text(
            query, max_results=max_results, region="de-de", backend=self.backend
        )
        return list(hits or [])

    async def search(self, query: str, max_results: int = 10) -> list[SearchResult]:
        for attempt in range(1, self.max_retries + 1):
            self.log.info("Executing search", query=query[:50], attempt=attempt)
            try:
                hits = await asyncio.to_thread(self._text_search, query, max_results)
            except Exception as e:
                if not self._is_rate_limit(e):
                    self.log.error("Search failed", error=str(e))
                    raise
                delay = min(2 ** (attempt - 1) + random.uniform(0, 1), self.max_backoff)
                self.log.warning("DDG throttled the query", attempt=attempt, wait_seconds=round(delay, 2))
                await asyncio.sleep(delay)
                continue

            self.log.info("Search completed", result_count=len(hits))
            return [
                SearchResult(title=hit.get("title", ""), url=hit["href"], snippet=hit.get("body", ""))
                for hit in hits
                if hit.get("href")
            ]

        raise ValueError(f"DDG search still throttled after {self.max_retries} attempts")

    def _is_rate_limit(self, e: Exception) -> bool:
        message = str(e).lower()
        return any(marker in message for marker in self.RATE_LIMIT_MARKERS)


def get_search_provider(settings: Settings, client: httpx.AsyncClient) -> SearchProvider | None:
    """Build the configured search provider, or None when search is disabled.

    SerpAPI requires SERPAPI_API_KEY; without it, external search is skipped.
    """
    if not settings.search_enabled:
        return None
    if settings.search_provider == "ddgs":
        return DdgsProvider(timeout=settings.search_timeout)
    return SerpApiProvider(client, api_key=settings.serpapi_api_key, timeout=settings.search_timeout)
