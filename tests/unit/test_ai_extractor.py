"""
Unit tests for the extraction oracle client and prompt builder.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIConnectionError

from provider_crawler.core.config import ConfigurationError
from provider_crawler.core.constants import EXTERNAL_PROOF_REASON
from provider_crawler.services.extraction import (
    ProviderExtractor,
    build_extraction_prompt,
    parse_candidate_payload,
)
from provider_crawler.services.extraction.prompts import EXTERNAL_SECTION, OFFICIAL_SECTION, SYSTEM_PROMPT
from tests.conftest import SEED_URL, page


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestParseCandidatePayload:
    """Test tolerant parsing of oracle responses."""

    @pytest.mark.parametrize("content,expected", [
        ('{"name": "Acme"}', {"name": "Acme"}),
        ('Sure! {"name": "Acme", "regions": ["DE"]} Hope this helps.', {"name": "Acme", "regions": ["DE"]}),
        ("```json\n{\"name\": \"Acme\"}\n```", {"name": "Acme"}),
        ("no json here", {}),
        ("[1, 2]", {}),
        ("{broken", {}),
        ("", {}),
        (None, {}),
    ])
    def test_parse(self, content, expected):
        assert parse_candidate_payload(content) == expected


class TestBuildPrompt:
    """Test prompt construction."""

    def test_sections_separated(self):
        pages = [
            page("home", "Official home text"),
            page("discovered-1", "Wikipedia text", discovery_reason=EXTERNAL_PROOF_REASON),
        ]
        prompt = build_extraction_prompt("acme-de", pages)

        assert "Seed slug: acme-de" in prompt
        official_at = prompt.index(OFFICIAL_SECTION)
        external_at = prompt.index(EXTERNAL_SECTION)
        assert official_at < prompt.index("Official home text") < external_at
        assert prompt.index("Wikipedia text") > external_at

    def test_empty_external_section_omitted(self):
        prompt = build_extraction_prompt("acme-de", [page("home", "Official home text")])
        assert EXTERNAL_SECTION not in prompt

    def test_schema_lists_allowed_values(self):
        prompt = build_extraction_prompt("acme-de", [])
        assert "SOC / MDR" in prompt
        assert "11-50" in prompt


@pytest.mark.asyncio
class TestProviderExtractor:
    """Test the oracle client with a mocked OpenAI client."""

    @pytest.fixture
    def openai_client(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=completion('{"name": "Acme Security"}'))
        return client

    async def test_extract_success(self, settings, openai_client):
        extractor = ProviderExtractor(settings, client=openai_client)

        candidate = await extractor.extract(SEED_URL, [page("home", "Acme Security GmbH")])

        assert candidate == {"name": "Acme Security"}
        kwargs = openai_client.chat.completions.create.await_args.kwargs
        assert kwargs["temperature"] == 0
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["model"] == settings.openai_model
        assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert "Seed slug: acme-de" in kwargs["messages"][1]["content"]

    async def test_garbage_response_is_empty_candidate(self, settings, openai_client):
        openai_client.chat.completions.create.return_value = completion("I cannot help with that.")
        extractor = ProviderExtractor(settings, client=openai_client)

        assert await extractor.extract(SEED_URL, []) == {}

    async def test_empty_choices(self, settings, openai_client):
        openai_client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        extractor = ProviderExtractor(settings, client=openai_client)

        assert await extractor.extract(SEED_URL, []) == {}

    async def test_oracle_failure_is_empty_candidate(self, settings, openai_client):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        openai_client.chat.completions.create.side_effect = APIConnectionError(request=request)
        extractor = ProviderExtractor(settings, client=openai_client)

        assert await extractor.extract(SEED_URL, []) == {}
        assert openai_client.chat.completions.create.await_count == settings.ai_retry_attempts

    async def test_missing_api_key(self, settings):
        settings = settings.model_copy(update={"openai_api_key": None})
        with pytest.raises(ConfigurationError):
            ProviderExtractor(settings)
