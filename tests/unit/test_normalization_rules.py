"""
Unit tests for normalization rules, field rules, the publish gate and
qualification allowlists.
"""

import pytest

from provider_crawler.core.constants import ALLOWED_SERVICES, MAX_PROOF_SOURCE_URLS, MAX_QUALIFICATIONS
from provider_crawler.core.models import EmailContact, FormContact, PhoneContact
from provider_crawler.services.normalization import fields, rules
from provider_crawler.services.normalization.gate import (
    INSUFFICIENT_FACTS,
    INSUFFICIENT_RELEVANCE,
    FactFlags,
    count_non_default_facts,
    count_relevance_signals,
    decide_publish,
    gate_note,
)
from provider_crawler.services.normalization.qualifications import (
    BSI_APT_QUALIFICATION,
    BSI_APT_RESPONSE_URL,
    apply_bsi_qualification,
    load_qualification_slugs,
    parse_seed_lines,
)

SEED = "https://acme.de"


class TestKeywordMatching:
    """Test boundary-aware term matching and text inference."""

    def test_short_terms_need_word_boundaries(self):
        assert not rules.contains_term("member of the association", "soc")
        assert rules.contains_term("our soc team", "soc")
        assert not rules.contains_term("neue standorte", "eu")
        assert rules.contains_term("24/7 hotline", "24/7")

    def test_long_terms_match_as_substring(self):
        assert rules.contains_term("penetrationstests für kmu", "penetrationstest")

    def test_infer_services_in_enumeration_order(self):
        assert rules.infer_services("SOC monitoring and Penetration Test") == ["Pentest", "SOC / MDR"]

    def test_infer_regions(self):
        assert rules.infer_regions("Standorte in Berlin und Wien") == ["DE", "AT"]

    def test_infer_languages(self):
        assert rules.infer_languages("Impressum | Contact") == ["de", "en"]

    def test_second_person(self):
        assert rules.has_second_person("Protect your business")
        assert rules.has_second_person("Wir schützen dein Netzwerk")
        assert not rules.has_second_person("Acme schützt Netzwerke")

    def test_find_differentiator_sentence(self):
        text = "Willkommen. Wir sind spezialisiert auf Penetrationstests für Energieversorger. Mehr."
        assert rules.find_differentiator_sentence(text) == (
            "Wir sind spezialisiert auf Penetrationstests für Energieversorger."
        )

    def test_find_security_sentences(self):
        text = "Hallo. Acme unterstützt Unternehmen bei der IT-Sicherheit im Mittelstand. Kontakt."
        assert rules.find_security_sentences(text) == [
            "Acme unterstützt Unternehmen bei der IT-Sicherheit im Mittelstand."
        ]
        assert rules.find_security_sentences("") == []


class TestListHelpers:
    """Test generic list/enum coercion."""

    def test_enum_list_filters_and_dedupes(self):
        assert fields.enum_list(["DE", "Mars", "DE", "AT"], ("DE", "AT")) == ["DE", "AT"]

    def test_enum_list_accepts_single_string(self):
        assert fields.enum_list("DE", ("DE",)) == ["DE"]

    def test_string_list_caps_and_truncates(self):
        assert fields.string_list(["a" * 50, " b ", "b", "c"], 2, max_length=10) == ["a" * 10, "b"]

    def test_string_list_from_comma_string(self):
        assert fields.string_list("Energy, Finance", 5) == ["Energy", "Finance"]

    def test_url_list_drops_invalid(self):
        assert fields.url_list(["https://a.de/x", "not a url", "ftp://a.de"], 3) == ["https://a.de/x"]


class TestClassificationRules:
    """Test classification field defaults and inference."""

    def test_full_service_list_replaced_by_inference(self):
        result = fields.normalize_services(list(ALLOWED_SERVICES), "penetration test and iso 27001")
        assert result.value == ["Pentest", "ISO 27001 Consulting"]
        assert result.defaulted is False
        assert "looked defaulted" in result.note

    def test_full_service_list_without_evidence_defaults(self):
        result = fields.normalize_services(list(ALLOWED_SERVICES), "nothing relevant")
        assert result.value == ["Vulnerability Management"]
        assert result.defaulted and result.low_confidence

    def test_services_inferred_when_missing(self):
        result = fields.normalize_services(None, "We run a 24/7 SOC.")
        assert result.value == ["SOC / MDR"]
        assert result.note is None

    def test_primary_services_subset(self):
        result = fields.normalize_primary_services(["SOC / MDR", "Pentest"], ["Pentest"])
        assert result.value == ["Pentest"]

    def test_primary_services_default_first_service(self):
        result = fields.normalize_primary_services(None, ["Cloud Security", "Pentest"])
        assert result.value == ["Cloud Security"]
        assert result.defaulted

    def test_regions_default_global(self):
        result = fields.normalize_regions(None, "")
        assert result.value == ["GLOBAL"]
        assert result.low_confidence

    def test_response_time_default_is_silent(self):
        result = fields.normalize_response_time("asap")
        assert result.value == "unknown"
        assert result.defaulted
        assert result.note is None and not result.low_confidence

    def test_company_size_default(self):
        result = fields.normalize_company_size("huge")
        assert result.value == "2-10"
        assert result.low_confidence

    def test_website_invalid_falls_back_to_origin(self):
        result = fields.normalize_website("acme dot de", "https://acme.de/start")
        assert result.value == "https://acme.de"
        assert result.low_confidence

    def test_name_defaults_to_slug_words(self):
        assert fields.normalize_name("", "acme-de").value == "acme de"


class TestFactRules:
    """Test fact field rules."""

    @pytest.mark.parametrize("value,expected", [
        (2014, 2014),
        ("2014 (approx.)", 2014),
        (1980, 1980),
        (1979, None),
        (1920, None),
        (2031, None),
        ("n/a", None),
        (None, None),
    ])
    def test_founded_year(self, value, expected):
        assert fields.normalize_founded_year(value, 2026).value == expected

    def test_founded_year_rejection_is_noted_not_low_confidence(self):
        result = fields.normalize_founded_year(1920, 2026)
        assert result.note == "Founded year out of range."
        assert not result.low_confidence

    def test_lead_contact_email(self):
        result = fields.normalize_lead_contact({"type": "email", "value": " info@acme.de "}, SEED, None)
        assert result.value == EmailContact(value="info@acme.de")
        assert not result.defaulted

    def test_lead_contact_phone(self):
        result = fields.normalize_lead_contact({"type": "phone", "value": "+49 30 1234567"}, SEED, None)
        assert isinstance(result.value, PhoneContact)

    def test_lead_contact_invalid_defaults_to_contact_page(self):
        result = fields.normalize_lead_contact(
            {"type": "email", "value": "not-an-email"}, SEED, "https://acme.de/kontakt"
        )
        assert result.value == FormContact(value="https://acme.de/kontakt")
        assert result.defaulted
        assert not result.low_confidence

    def test_lead_contact_missing_defaults_to_origin_contact(self):
        result = fields.normalize_lead_contact(None, SEED, None)
        assert result.value.value == "https://acme.de/contact"

    def test_emergency_inferred_from_text(self):
        result = fields.normalize_emergency(None, "Notfall-Hotline rund um die Uhr")
        assert result.value is True
        assert result.note

    def test_emergency_explicit_value_wins(self):
        assert fields.normalize_emergency(False, "24/7 hotline").value is False


class TestFreeTextRules:
    """Test description and differentiator screening."""

    def test_screen_description_accepts_neutral_text(self):
        text = "Acme performs penetration tests for mid-sized companies."
        assert fields.screen_description(text) == (text, None)

    @pytest.mark.parametrize("text,reason", [
        (None, "Missing short description."),
        ("   ", "Missing short description."),
        ("Pentests.", "Short description too short."),
        ("The leading provider of penetration tests in Europe.",
         "Short description contains marketing language or second-person phrasing."),
        ("We protect your business against cyber attacks every day.",
         "Short description contains marketing language or second-person phrasing."),
    ])
    def test_screen_description_rejections(self, text, reason):
        assert fields.screen_description(text) == ("", reason)

    def test_description_truncated_to_max(self):
        description, _ = fields.screen_description("Acme performs penetration tests. " * 20)
        assert len(description) <= 200

    @pytest.mark.parametrize("values,expected", [
        ([], ""),
        (["A"], "A"),
        (["A", "B"], "A and B"),
        (["A", "B", "C"], "A, B, and C"),
    ])
    def test_join_human_list(self, values, expected):
        assert fields.join_human_list(values) == expected

    def test_build_neutral_description(self):
        assert fields.build_neutral_description("Acme", ["Pentest", "SOC / MDR"], ["DE", "AT"]) == (
            "Acme provides Pentest and SOC / MDR cybersecurity services in DE, AT."
        )

    def test_neutral_description_requires_observed_services_and_regions(self):
        services = fields.FieldResult(["Pentest"])
        regions = fields.FieldResult(["GLOBAL"], defaulted=True)

        result, reason = fields.normalize_short_description("Your partner.", "Acme", services, regions, "")

        assert result.value == ""
        assert reason == "Short description contains marketing language or second-person phrasing."

    def test_description_from_security_sentence(self):
        services = fields.FieldResult(["Vulnerability Management"], defaulted=True)
        regions = fields.FieldResult(["DE"])
        official = "Willkommen. Acme unterstützt Unternehmen bei der IT-Sicherheit im Mittelstand."

        result, reason = fields.normalize_short_description(None, "Acme", services, regions, official)

        assert result.value == "Acme unterstützt Unternehmen bei der IT-Sicherheit im Mittelstand."
        assert reason is None

    def test_differentiator_blacklist(self):
        result = fields.normalize_differentiator("We deliver innovative solutions.", "")
        assert result.value == ""
        assert result.note == "Differentiator contains vague or disallowed phrasing."

    def test_differentiator_from_site_text(self):
        official = "Willkommen. Unser Schwerpunkt liegt auf kritischer Infrastruktur und Energie."
        result = fields.normalize_differentiator(None, official)
        assert result.value == "Unser Schwerpunkt liegt auf kritischer Infrastruktur und Energie."
        assert result.note == "Differentiator taken from site text."


class TestPublishGate:
    """Test fact counting, relevance signals and the gate decision."""

    def test_all_defaulted_counts_zero(self):
        flags = FactFlags(
            services_defaulted=True,
            regions_defaulted=True,
            languages_defaulted=True,
            delivery_modes_defaulted=True,
            company_size_defaulted=True,
            response_time_defaulted=True,
        )
        assert count_non_default_facts(flags) == 0

    def test_every_signal_counts_once(self):
        flags = FactFlags(
            services_defaulted=False,
            regions_defaulted=False,
            languages_defaulted=False,
            delivery_modes_defaulted=False,
            company_size_defaulted=False,
            response_time_defaulted=False,
            founded_year=2012,
            legal_name="Acme GmbH",
            differentiator="Energy sector focus",
            notable_references_count=1,
            proof_source_urls_count=2,
            industries_count=1,
            certifications_count=3,
            qualifications_count=1,
            case_studies_count=1,
            engagement_models_count=1,
        )
        assert count_non_default_facts(flags) == 16

    def test_relevance_signals(self):
        assert count_relevance_signals("SIEM operations", "", "", services_defaulted=True) == 1
        assert count_relevance_signals(
            "pentest", "Acme runs pentests.", "ISO 27001 focus", services_defaulted=False
        ) == 4

    def test_published(self):
        assert decide_publish("desc", None, "diff", None, 2, 2) == ("published", [])

    def test_reasons_in_fixed_order(self):
        status, reasons = decide_publish("", "Short description too short.", "", None, 1, 1)
        assert status == "hidden"
        assert reasons == [
            "Short description too short.",
            "Missing differentiator.",
            INSUFFICIENT_FACTS,
            INSUFFICIENT_RELEVANCE,
        ]

    def test_gate_note(self):
        assert gate_note([]) is None
        assert gate_note(["A.", "B."]) == "Publish status hidden: A. B."


class TestQualifications:
    """Test the BSI APT response allowlist."""

    def test_parse_seed_lines(self):
        content = "# comment\n\nhttps://acme.de\n  secure-labs.de  \n"
        assert parse_seed_lines(content) == ["https://acme.de", "secure-labs.de"]

    def test_load_slugs(self, tmp_path):
        path = tmp_path / "bsi.txt"
        path.write_text("# BSI list\nhttps://www.acme.de/\nsecure-labs.de\n", encoding="utf-8")
        assert load_qualification_slugs(path) == frozenset({"acme-de", "secure-labs-de"})

    def test_missing_file_is_empty_allowlist(self, tmp_path):
        assert load_qualification_slugs(tmp_path / "missing.txt") == frozenset()

    def test_listed_slug_gets_qualification_and_proof(self):
        quals, proofs, notes = apply_bsi_qualification("acme-de", frozenset({"acme-de"}), [], [])
        assert quals == [BSI_APT_QUALIFICATION]
        assert proofs == [BSI_APT_RESPONSE_URL]
        assert notes == []

    def test_unlisted_slug_unchanged(self):
        assert apply_bsi_qualification("other-de", frozenset({"acme-de"}), ["X"], []) == (["X"], [], [])

    def test_caps_respected(self):
        full_quals = [f"Q{i}" for i in range(MAX_QUALIFICATIONS)]
        full_proofs = [f"https://proof.de/{i}" for i in range(MAX_PROOF_SOURCE_URLS)]

        quals, proofs, notes = apply_bsi_qualification(
            "acme-de", frozenset({"acme-de"}), full_quals, full_proofs
        )

        assert quals == full_quals
        assert proofs == full_proofs
        assert len(notes) == 2
