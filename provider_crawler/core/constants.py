"""
Shared constants for the provider crawler.

The closed enumerations of the provider schema live here so the
normalizer, the prompt builder and the sheet mapping agree on them.
"""

from typing import Literal

PROVIDER_SCHEMA_VERSION = 1

# =============================================================================
# Services
# =============================================================================

ALLOWED_SERVICES = (
    "Pentest",
    "Web App Pentest",
    "Cloud Security",
    "Incident Response",
    "ISO 27001 Consulting",
    "NIS2 Consulting",
    "SOC / MDR",
    "Vulnerability Management",
)

Service = Literal[
    "Pentest",
    "Web App Pentest",
    "Cloud Security",
    "Incident Response",
    "ISO 27001 Consulting",
    "NIS2 Consulting",
    "SOC / MDR",
    "Vulnerability Management",
]

# =============================================================================
# Classification enumerations
# =============================================================================

REGIONS = ("DACH", "DE", "AT", "CH", "EU", "GLOBAL")
Region = Literal["DACH", "DE", "AT", "CH", "EU", "GLOBAL"]

LANGUAGES = ("de", "en")
Language = Literal["de", "en"]

DELIVERY_MODES = ("remote", "on_site", "hybrid")
DeliveryMode = Literal["remote", "on_site", "hybrid"]

COMPANY_SIZE_BANDS = ("solo", "2-10", "11-50", "51-200", "200+")
CompanySizeBand = Literal["solo", "2-10", "11-50", "51-200", "200+"]

RESPONSE_TIME_BANDS = ("<4h", "<1d", "2-3d", "1w+", "unknown")
ResponseTimeBand = Literal["<4h", "<1d", "2-3d", "1w+", "unknown"]

ENGAGEMENT_MODELS = ("fixed_scope", "retainer", "project", "emergency")
EngagementModel = Literal["fixed_scope", "retainer", "project", "emergency"]

MINIMUM_PROJECT_SIZE_BANDS = ("<5k", "5-20k", "20-50k", "50k+")
MinimumProjectSizeBand = Literal["<5k", "5-20k", "20-50k", "50k+"]

AVAILABILITY_VALUES = ("yes", "limited", "no")
Availability = Literal["yes", "limited", "no"]

# =============================================================================
# Provenance
# =============================================================================

DATA_ORIGINS = ("seed", "provider_submitted", "researched")
DataOrigin = Literal["seed", "provider_submitted", "researched"]

EVIDENCE_LEVELS = ("none", "basic", "verified")
EvidenceLevel = Literal["none", "basic", "verified"]

PublishStatus = Literal["published", "hidden"]

# =============================================================================
# Field bounds
# =============================================================================

SHORT_DESCRIPTION_MIN = 30
SHORT_DESCRIPTION_MAX = 200
DIFFERENTIATOR_MIN = 10
DIFFERENTIATOR_MAX = 120
DIFFERENTIATOR_HINT_MAX = 160  # longest site sentence considered before truncation
LEGAL_NAME_MAX = 120
NOTES_MAX = 240
LEAD_CONTACT_NOTES_MAX = 120
PHONE_MIN_LENGTH = 5
FOUNDED_YEAR_MIN = 1980

MAX_PRIMARY_SERVICES = 3
MAX_NOTABLE_REFERENCES = 3
MAX_PROOF_SOURCE_URLS = 3
MAX_CASE_STUDIES = 3
MAX_QUALIFICATIONS = 5
MAX_INDUSTRIES = 8
INDUSTRY_MAX_LENGTH = 40
MAX_CERTIFICATIONS = 15
CERTIFICATION_MAX_LENGTH = 60

# =============================================================================
# Crawl page roles
# =============================================================================

EXTERNAL_PROOF_REASON = "external-proof"
SITEMAP_REASON = "sitemap"
