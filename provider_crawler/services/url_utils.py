"""
URL Utilities for the provider crawler.

Provides:
- canonicalize_href: href → comparable absolute URL (or rejection)
- normalize_slug: seed URL → kebab-case provider slug
- get_origin / extract_domain helpers

Canonical URLs are the sole basis for deduplication: two hrefs that
canonicalize to the same string are the same page everywhere downstream.
"""

import re
from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit

import structlog

logger = structlog.get_logger()


# =============================================================================
# Constants
# =============================================================================

# External hosts whose pages may serve as proof sources (suffix match)
TRUSTED_EXTERNAL_HOSTS = (
    "wikipedia.org",
    "wikidata.org",
    "bsi.bund.de",
    "northdata.de",
    "northdata.com",
    "crunchbase.com",
    "teletrust.de",
    "allianz-fuer-cybersicherheit.de",
)

# File extensions never worth fetching as a text page
BLOCKED_EXTENSIONS = (
    # images
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".ico", ".bmp", ".tif", ".tiff", ".avif",
    # archives
    ".zip", ".rar", ".7z", ".tar", ".gz", ".tgz", ".bz2",
    # stylesheets / scripts / fonts
    ".css", ".js", ".mjs", ".map", ".woff", ".woff2", ".ttf", ".eot",
    # media
    ".mp3", ".mp4", ".wav", ".avi", ".mov", ".webm", ".ogg", ".m4a",
    # data formats / documents
    ".json", ".xml", ".csv", ".rss", ".atom", ".pdf", ".doc", ".docx",
    ".xls", ".xlsx", ".ppt", ".pptx", ".ics", ".vcf", ".exe", ".dmg",
)

# Schemes rejected before resolution
REJECTED_PREFIXES = ("mailto:", "tel:", "javascript:", "data:")


@dataclass(frozen=True)
class CanonicalUrl:
    """An accepted, canonical URL."""
    url: str
    is_external: bool


# =============================================================================
# Host helpers
# =============================================================================


def _strip_www(host: str) -> str:
    host = host.lower()
    return host[4:] if host.startswith("www.") else host


def extract_domain(url: str) -> str | None:
    """Extract domain from URL without www prefix."""
    try:
        parsed = urlsplit(url)
    except ValueError:
        return None
    if parsed.hostname:
        return _strip_www(parsed.hostname)
    return None


def get_origin(url: str) -> str:
    """scheme://host[:port] of a URL."""
    parsed = urlsplit(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def is_trusted_external_host(host: str) -> bool:
    """Check if host matches the trusted allowlist (exact or subdomain)."""
    host = host.lower()
    return any(host == domain or host.endswith("." + domain) for domain in TRUSTED_EXTERNAL_HOSTS)


def has_blocked_extension(path: str) -> bool:
    last_segment = path.rstrip("/").rsplit("/", 1)[-1].lower()
    return last_segment.endswith(BLOCKED_EXTENSIONS)


# =============================================================================
# Canonicalization
# =============================================================================


def canonicalize_href(href: str, origin: str) -> CanonicalUrl | None:
    """Normalize an href into a comparable absolute URL, or reject it.

    Rejection order: mailto/tel (and javascript/data/fragment-only) hrefs,
    non-http(s) schemes, untrusted external hosts, blocked file extensions.

    Normalization: lowercase scheme/host, own-site hosts rewritten to the
    origin's host (with or without www), drop query and fragment, collapse
    duplicate slashes, strip trailing slashes (empty path becomes "/").

    Args:
        href: Raw href (absolute or relative)
        origin: Origin of the page the href was found on

    Returns:
        CanonicalUrl, or None when rejected
    """
    if not href:
        return None
    raw = href.strip()
    lower = raw.lower()
    if not raw or raw.startswith("#") or lower.startswith(REJECTED_PREFIXES):
        return None

    try:
        parsed = urlsplit(urljoin(origin.rstrip("/") + "/", raw))
        host = parsed.hostname
        port = parsed.port
    except ValueError:
        return None

    scheme = parsed.scheme.lower()
    if scheme not in ("http", "https") or not host:
        return None

    origin_domain = extract_domain(origin) or ""
    is_external = _strip_www(host) != origin_domain
    if is_external and not is_trusted_external_host(host):
        return None

    path = re.sub(r"/+", "/", parsed.path)
    if has_blocked_extension(path):
        return None
    path = path.rstrip("/") or "/"

    # own-site links use the origin's host form
    netloc = host.lower() if is_external else (urlsplit(origin).hostname or host.lower())
    if port and not ((scheme == "http" and port == 80) or (scheme == "https" and port == 443)):
        netloc = f"{netloc}:{port}"

    return CanonicalUrl(url=f"{scheme}://{netloc}{path}", is_external=is_external)


def canonical_url(url: str, origin: str | None = None) -> str:
    """Canonical form of an absolute URL relative to `origin` (default: its own), or the URL itself if rejected."""
    result = canonicalize_href(url, origin or get_origin(url))
    return result.url if result else url


def path_depth(url: str) -> int:
    """Number of non-empty path segments."""
    return len([segment for segment in urlsplit(url).path.split("/") if segment])


# =============================================================================
# Slugs
# =============================================================================


def normalize_slug(seed_url: str) -> str:
    """
    Derive the provider slug from a seed URL.

    Examples:
        "https://www.Secure-Labs.de/" -> "secure-labs-de"
        "acme.io" -> "acme-io"
    """
    value = seed_url.strip()
    if "://" not in value:
        value = f"https://{value}"
    host = urlsplit(value).hostname or ""
    host = _strip_www(host)
    return re.sub(r"[^a-z0-9]+", "-", host).strip("-")
