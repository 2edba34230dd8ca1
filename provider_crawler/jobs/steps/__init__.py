"""
Crawl Job Steps

Pipeline:
    step_01: Home       - Seed page (render retry, fallback entry paths)
    step_02: Curated    - services / about / contact page groups
    step_03: Impressum  - Legal notice location chain
    step_04: Sitemap    - Sitemap entries into the candidate pool
    step_05: External   - External proof sources into the candidate pool
    step_06: Discovery  - Visit top candidates within the page budget
"""

from provider_crawler.jobs.steps.base import BaseStep, StepError
from provider_crawler.jobs.steps.step_01_home import HomeStep
from provider_crawler.jobs.steps.step_02_curated import CuratedPagesStep
from provider_crawler.jobs.steps.step_03_impressum import ImpressumStep
from provider_crawler.jobs.steps.step_04_sitemap import SitemapStep
from provider_crawler.jobs.steps.step_05_external import ExternalStep
from provider_crawler.jobs.steps.step_06_discovery import DiscoveryStep

__all__ = [
    "BaseStep",
    "StepError",
    "HomeStep",
    "CuratedPagesStep",
    "ImpressumStep",
    "SitemapStep",
    "ExternalStep",
    "DiscoveryStep",
]
