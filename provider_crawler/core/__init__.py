"""
Core package initialization.
"""

from provider_crawler.core.config import ConfigurationError, Settings, get_settings
from provider_crawler.core.models import (
    CrawledPage,
    EmailContact,
    FormContact,
    LeadContact,
    PhoneContact,
    ProviderFrontmatter,
)

__all__ = [
    # Config
    "ConfigurationError",
    "Settings",
    "get_settings",
    # Models
    "CrawledPage",
    "EmailContact",
    "FormContact",
    "LeadContact",
    "PhoneContact",
    "ProviderFrontmatter",
]
