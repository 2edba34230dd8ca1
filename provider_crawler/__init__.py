"""
Provider Crawler.

Turns a seed domain of a security service provider into a validated
provider profile: crawl, LLM extraction, normalization, publish gating.
"""

__version__ = "0.1.0"
