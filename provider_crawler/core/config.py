"""
Core configuration and settings for the provider crawler.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when a required credential or setting is missing.

    Fatal: aborts the whole run.
    """

    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "provider-crawler"
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    json_logs: bool = False

    # Inputs / outputs
    seeds_file: str = "seeds/providers.txt"
    qualification_list_path: str = "seeds/bsi-apt-response.txt"
    out_dir: str = "out/raw"

    # Spreadsheet persistence
    sheet_path: str = "out/providers.xlsx"
    sheet_tab: str = "providers"

    # Extraction oracle (OpenAI-compatible)
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str | None = None
    ai_retry_attempts: int = 3
    ai_retry_backoff: int = 4  # seconds

    # External proof search
    search_provider: Literal["serpapi", "ddgs"] = "serpapi"
    serpapi_api_key: str | None = None
    search_timeout: int = 15

    # Crawler
    fetcher_backend: Literal["playwright", "httpx"] = "playwright"
    crawl_max_pages: int = 14
    discovery_max_targets: int = 8
    discovery_max_external: int = 2
    navigation_timeout_ms: int = 30000
    sitemap_timeout: float = 10.0
    min_home_text_length: int = 200
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (compatible; ProviderCrawler/1.0; "
            "+https://github.com/provider-crawler/provider-crawler)"
        )
    )

    @property
    def search_enabled(self) -> bool:
        """External search runs only with a key, or with the keyless ddgs backend."""
        if self.search_provider == "ddgs":
            return True
        return bool(self.serpapi_api_key)

    @property
    def navigation_timeout_seconds(self) -> float:
        return self.navigation_timeout_ms / 1000

    @field_validator("openai_api_key", "serpapi_api_key", "openai_base_url", mode="before")
    @classmethod
    def empty_to_none(cls, v: str | None) -> str | None:
        """Treat empty env values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("crawl_max_pages", "discovery_max_targets")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("page budgets must be at least 1")
        return v

    def require_openai_key(self) -> str:
        """Return the oracle API key or fail the run."""
        if not self.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is missing")
        return self.openai_api_key


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
