"""
Unit tests for the provider record and crawl models.
"""

import pytest
from pydantic import ValidationError

from provider_crawler.core.models import (
    CrawledPage,
    EmailContact,
    PhoneContact,
    ProviderFrontmatter,
    is_http_url,
    is_valid_email,
)

MINIMAL = {
    "name": "Acme Security",
    "slug": "acme-de",
    "website": "https://acme.de",
    "regions": ["DE"],
    "services": ["Pentest"],
    "primary_services": ["Pentest"],
    "languages": ["de"],
    "delivery_modes": ["remote"],
    "company_size_band": "2-10",
    "response_time_band": "unknown",
    "lead_contact": {"type": "form", "value": "https://acme.de/contact"},
}


class TestProviderFrontmatter:
    """Test record validation rules."""

    def test_minimal_record_defaults(self):
        provider = ProviderFrontmatter.model_validate(MINIMAL)

        assert provider.schema_version == 1
        assert provider.publish_status == "hidden"
        assert provider.evidence_level == "none"
        assert provider.short_description == ""
        assert provider.emergency_24_7 is False

    def test_primary_services_must_be_subset(self):
        with pytest.raises(ValidationError, match="subset"):
            ProviderFrontmatter.model_validate({**MINIMAL, "primary_services": ["SOC / MDR"]})

    def test_at_most_three_primary_services(self):
        services = ["Pentest", "Cloud Security", "SOC / MDR", "NIS2 Consulting"]
        with pytest.raises(ValidationError):
            ProviderFrontmatter.model_validate({**MINIMAL, "services": services, "primary_services": services})

    def test_published_needs_description(self):
        with pytest.raises(ValidationError):
            ProviderFrontmatter.model_validate({**MINIMAL, "publish_status": "published"})

    @pytest.mark.parametrize("slug", ["Acme", "acme_de", "-acme", "ac"])
    def test_slug_must_be_kebab_case(self, slug):
        with pytest.raises(ValidationError):
            ProviderFrontmatter.model_validate({**MINIMAL, "slug": slug})

    def test_unknown_service_rejected(self):
        with pytest.raises(ValidationError):
            ProviderFrontmatter.model_validate({**MINIMAL, "services": ["Quantum Security"]})

    def test_founded_year_bounds(self):
        with pytest.raises(ValidationError):
            ProviderFrontmatter.model_validate({**MINIMAL, "founded_year": 1979})
        with pytest.raises(ValidationError):
            ProviderFrontmatter.model_validate({**MINIMAL, "founded_year": 9999})

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            ProviderFrontmatter.model_validate({**MINIMAL, "ceo": "Jane"})

    def test_lead_contact_discriminated(self):
        provider = ProviderFrontmatter.model_validate(
            {**MINIMAL, "lead_contact": {"type": "phone", "value": "+49 30 1234567"}}
        )
        assert isinstance(provider.lead_contact, PhoneContact)

    def test_invalid_email_contact_rejected(self):
        with pytest.raises(ValidationError):
            EmailContact(value="info(at)acme.de")

    def test_record_is_frozen(self):
        provider = ProviderFrontmatter.model_validate(MINIMAL)
        with pytest.raises(ValidationError):
            provider.name = "Changed"


class TestHelpers:
    """Test URL/email predicates and crawl page serialization."""

    def test_is_http_url(self):
        assert is_http_url("https://acme.de/x")
        assert not is_http_url("acme.de")
        assert not is_http_url("mailto:info@acme.de")
        assert not is_http_url(None)

    def test_is_valid_email(self):
        assert is_valid_email("info@acme.de")
        assert not is_valid_email("info@acme")

    def test_crawled_page_to_dict_drops_none(self):
        page = CrawledPage(key="home", url="https://acme.de", status=200, text="Hi")
        assert page.to_dict() == {"key": "home", "url": "https://acme.de", "status": 200, "text": "Hi"}
