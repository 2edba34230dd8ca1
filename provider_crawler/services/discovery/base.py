"""
Discovery Module - Base Data Classes.

Shared types used across discovery sources.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class DiscoveryLink:
    """A raw anchor observed on a rendered page."""
    href: str
    text: str = ""


@dataclass(frozen=True)
class DiscoveryCandidate:
    """
    A discovered URL not yet fetched.

    The same url may appear several times in a pool (found on different
    pages, in the sitemap, via search); the selector keeps the best one.
    """
    url: str  # canonical
    reason: str  # matching keyword, "sitemap" or "external-proof"
    source_url: str  # page the link was found on, or "(sitemap)" / "(search)"
    score: int
    depth: int
    is_external: bool = False
