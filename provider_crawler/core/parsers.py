"""
Shared parsing utilities for crawled text and extractor output.

Common functions for normalizing whitespace, deduplicating lists and
coercing loosely-typed values returned by the extraction oracle.
"""

import hashlib
import re
from collections.abc import Iterable
from typing import TypeVar

T = TypeVar('T')

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Collapse all whitespace runs to single spaces and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def hash_text(text: str) -> str:
    """Short, stable content hash (first 12 hex chars of SHA-256)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]


def dedupe(values: Iterable[T]) -> list[T]:
    """Remove duplicates, keeping first-seen order."""
    return list(dict.fromkeys(values))


def join_comma(values: list[str] | None) -> str:
    """Join a list for a spreadsheet cell ("" for empty/None)."""
    return ",".join(values) if values else ""


def to_boolean_string(value: bool | None) -> str:
    return "true" if value else "false"


def parse_int(value: object) -> int | None:
    """
    Parse an integer the way extractor output tends to deliver it.

    Examples:
        2014 -> 2014
        "2014" -> 2014
        "2014 (approx.)" -> 2014
        2014.0 -> 2014
        True -> None
        "n/a" -> None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None

    match = re.match(r"\s*(-?\d+)", str(value))
    if not match:
        return None
    return int(match.group(1))


def coerce_string_list(value: object) -> list[str]:
    """
    Coerce a list-ish value into trimmed, non-empty strings.

    Accepts real lists or a comma-separated string; anything else is empty.
    """
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    elif isinstance(value, str):
        items = value.split(",")
    else:
        return []

    normalized = []
    for item in items:
        if item is None or isinstance(item, (dict, list)):
            continue
        text = str(item).strip()
        if text:
            normalized.append(text)
    return normalized


def split_sentences(text: str) -> list[str]:
    """Split text on sentence-ending punctuation followed by whitespace."""
    return [s.strip() for s in re.split(r"(?<=[.!?])\s+", text) if s.strip()]
