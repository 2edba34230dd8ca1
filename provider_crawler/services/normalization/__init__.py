"""
Normalization Module.

Turns untrusted extractor output into a schema-valid provider record:
- fields: pure per-field reconciliation rules
- rules: keyword / blacklist tables and text inference
- gate: publish gate (facts + relevance signals)
- qualifications: BSI APT response allowlist
- normalizer: composition + validation fallback
"""

from provider_crawler.services.normalization.normalizer import (
    NormalizationResult,
    corpus_text,
    normalize_provider,
)
from provider_crawler.services.normalization.qualifications import load_qualification_slugs

__all__ = [
    "NormalizationResult",
    "corpus_text",
    "normalize_provider",
    "load_qualification_slugs",
]
