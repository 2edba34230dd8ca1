"""
Unit tests for the search provider backends.
"""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from provider_crawler.services.search_engine import (
    DdgsProvider,
    SerpApiProvider,
    get_search_provider,
)

SERPAPI_RESPONSE = {
    "organic_results": [
        {"title": "Acme GmbH - North Data", "link": "https://www.northdata.de/Acme+GmbH", "snippet": "HRB 12345"},
        {"title": "No link"},
        {"title": "Acme - Wikipedia", "link": "https://de.wikipedia.org/wiki/Acme"},
    ],
    "knowledge_graph": {"title": "Acme Security", "website": "https://acme.de"},
}


@pytest.mark.asyncio
class TestSerpApiProvider:
    """Test SerpAPI requests and response mapping."""

    async def test_search_maps_results(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=SERPAPI_RESPONSE)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = SerpApiProvider(client, api_key="serp-key")
            results = await provider.search("acme cybersecurity", max_results=10)

        assert seen["params"]["api_key"] == "serp-key"
        assert seen["params"]["q"] == "acme cybersecurity"
        assert seen["params"]["engine"] == "google"
        assert [r.url for r in results] == [
            "https://www.northdata.de/Acme+GmbH",
            "https://de.wikipedia.org/wiki/Acme",
            "https://acme.de",
        ]
        assert results[-1].is_knowledge_graph is True
        assert results[0].snippet == "HRB 12345"

    async def test_http_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"error": "rate limited"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = SerpApiProvider(client, api_key="serp-key")
            with pytest.raises(httpx.HTTPStatusError):
                await provider.search("acme")


@pytest.mark.asyncio
class TestDdgsProvider:
    """Test the DuckDuckGo backend with the ddgs client mocked."""

    @patch("provider_crawler.services.search_engine.DDGS")
    async def test_search_maps_results(self, mock_ddgs):
        mock_ddgs.return_value.text.return_value = [
            {"title": "Acme", "href": "https://www.northdata.de/Acme", "body": "Snippet"},
            {"title": "Broken"},
        ]
        provider = DdgsProvider(timeout=5)

        results = await provider.search("acme cybersecurity", max_results=5)

        assert [r.url for r in results] == ["https://www.northdata.de/Acme"]
        assert results[0].snippet == "Snippet"

    @patch("provider_crawler.services.search_engine.DDGS")
    async def test_rate_limit_retries_then_fails(self, mock_ddgs):
        mock_ddgs.return_value.text.side_effect = Exception("202 Ratelimit")
        provider = DdgsProvider(max_retries=2, max_backoff=0.01)

        with pytest.raises(ValueError):
            await provider.search("acme")

        assert mock_ddgs.return_value.text.call_count == 2

    @patch("provider_crawler.services.search_engine.DDGS")
    async def test_other_errors_propagate(self, mock_ddgs):
        mock_ddgs.return_value.text.side_effect = RuntimeError("boom")
        provider = DdgsProvider(max_retries=3)

        with pytest.raises(RuntimeError):
            await provider.search("acme")


class TestGetSearchProvider:
    """Test provider selection from settings."""

    def test_disabled_without_serpapi_key(self, settings):
        assert get_search_provider(settings, MagicMock(spec=httpx.AsyncClient)) is None

    def test_serpapi_with_key(self, settings):
        settings = settings.model_copy(update={"serpapi_api_key": "serp-key"})
        provider = get_search_provider(settings, MagicMock(spec=httpx.AsyncClient))
        assert isinstance(provider, SerpApiProvider)

    def test_ddgs_is_keyless(self, settings):
        settings = settings.model_copy(update={"search_provider": "ddgs"})
        assert isinstance(get_search_provider(settings, MagicMock(spec=httpx.AsyncClient)), DdgsProvider)
