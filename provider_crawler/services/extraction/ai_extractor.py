"""
AI Extractor Service

OpenAI-compatible client for the provider extraction oracle.
Works with any provider exposing the chat completions API
(OpenAI, OpenRouter, Ollama via OPENAI_BASE_URL).

The oracle's answer is untrusted: parse_candidate_payload tolerates
surrounding prose by cutting out the outermost {...} span, and any
failure yields an empty candidate for the normalizer.
"""

import json
from typing import Any

import structlog
from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AsyncOpenAI,
    InternalServerError,
    RateLimitError,
)
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from provider_crawler.core.config import Settings
from provider_crawler.core.models import CrawledPage
from provider_crawler.services.extraction.prompts import SYSTEM_PROMPT, build_extraction_prompt
from provider_crawler.services.url_utils import normalize_slug

logger = structlog.get_logger()

# Transient oracle failures worth retrying
RETRYABLE_ERRORS = (APIConnectionError, APITimeoutError, RateLimitError, InternalServerError)


class ExtractionError(Exception):
    """The extraction oracle could not produce a response."""

    pass


def parse_candidate_payload(content: str | None) -> dict[str, Any]:
    """
    Parse the oracle response into a candidate dict.

    Examples:
        '{"name": "Acme"}' -> {"name": "Acme"}
        'Sure! {"name": "Acme"} Hope this helps.' -> {"name": "Acme"}
        'no json here' -> {}
        '[1, 2]' -> {}
    """
    if not content:
        return {}

    try:
        result = json.loads(content)
    except json.JSONDecodeError:
        start = content.find("{")
        end = content.rfind("}")
        if start < 0 or end <= start:
            return {}
        try:
            result = json.loads(content[start:end + 1])
        except json.JSONDecodeError:
            return {}

    return result if isinstance(result, dict) else {}


class ProviderExtractor:
    """Extraction oracle client (temperature 0, JSON response format)."""

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None):
        api_key = settings.require_openai_key()
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=settings.openai_base_url)
        self.model = settings.openai_model
        self.retry_attempts = settings.ai_retry_attempts
        self.retry_backoff = settings.ai_retry_backoff
        self.log = logger.bind(component="ProviderExtractor", model=self.model)

    async def complete(self, prompt: str) -> str:
        """
        Send one extraction prompt, retrying transient failures.

        Raises:
            ExtractionError: when the oracle fails for good
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(
                multiplier=max(1, self.retry_backoff // 2),
                min=max(1, self.retry_backoff // 2),
                max=self.retry_backoff * 2,
            ),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self.client.chat.completions.create(
                        model=self.model,
                        temperature=0,
                        response_format={"type": "json_object"},
                        messages=[
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": prompt},
                        ],
                    )
        except (APIError, RetryError) as e:
            raise ExtractionError(f"Extraction oracle failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def extract(self, seed_url: str, pages: list[CrawledPage]) -> dict[str, Any]:
        """
        Extract a raw provider candidate from the crawled corpus.

        Returns:
            Candidate dict; {} if the oracle failed or answered with garbage
        """
        prompt = build_extraction_prompt(normalize_slug(seed_url), pages)
        self.log.info("ai_extract_start", pages=len(pages), prompt_len=len(prompt))

        try:
            content = await self.complete(prompt)
        except ExtractionError as e:
            self.log.error("ai_extract_error", error=str(e))
            return {}

        candidate = parse_candidate_payload(content)
        if not candidate:
            self.log.warning("ai_extract_unparseable", content=content[:500])
        else:
            self.log.info("ai_extract_success", fields=len(candidate))
        return candidate
