"""
Extraction subpackage: the LLM oracle that turns a crawled corpus
into a raw (untrusted) provider candidate.

Modules:
- prompts: prompt construction (official vs. external sections)
- ai_extractor: OpenAI-compatible client and response parsing
"""

from provider_crawler.services.extraction.ai_extractor import (
    ExtractionError,
    ProviderExtractor,
    parse_candidate_payload,
)
from provider_crawler.services.extraction.prompts import build_extraction_prompt

__all__ = [
    "ExtractionError",
    "ProviderExtractor",
    "parse_candidate_payload",
    "build_extraction_prompt",
]
