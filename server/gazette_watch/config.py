"""Configuration settings for the Gazette Watch server."""

from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_env_file() -> str:
    """Find .env file - check current dir, then up to two parents."""
    current = Path.cwd()

    for directory in (current, current.parent, current.parent.parent):
        if (directory / ".env").exists():
            return str(directory / ".env")

    # Default to current directory
    return ".env"


# server/gazette_watch/config.py -> project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _find_data_file(relative: str) -> Path:
    """Find a data file - check current dir, its parent, then the project root."""
    path = Path(relative).expanduser()
    if path.is_absolute():
        return path

    current = Path.cwd()
    for directory in (current, current.parent, PROJECT_ROOT):
        if (directory / path).exists():
            return directory / path

    return PROJECT_ROOT / path


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=_find_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    port: int = 3456
    host: str = "0.0.0.0"
    debug: bool = False

    # API keys
    anthropic_api_key: str = ""
    tavily_api_key: str = ""
    companies_house_api_key: str = ""

    # Google Analytics (GA4 Data API)
    ga4_property_id: str = ""
    google_service_account_json: str = ""
    show_revenue: bool = False

    # LLM settings
    default_model: str = "claude-sonnet-4-5-20250929"
    analysis_model: str = "claude-3-5-haiku-20241022"
    blog_max_tokens: int = 2048
    linkedin_max_tokens: int = 1024
    analysis_max_tokens: int = 4096
    max_searches: int = 4

    # Upstream APIs
    companies_house_base_url: str = "https://api.company-information.service.gov.uk"
    companies_house_document_url: str = "https://find-and-update.company-information.service.gov.uk"
    gazette_base_url: str = "https://www.thegazette.co.uk/insolvency/notice/data.json"
    gazette_lookback_days: int = 7
    gazette_page_size: int = 100
    gazette_max_pages: int = 10
    http_timeout: float = 30.0

    # Cache TTLs (in seconds)
    notices_cache_ttl: int = 300  # 5 minutes
    notices_stale_ttl: int = 86400  # 24 hours
    financials_cache_ttl: int = 86400  # 24 hours
    analysis_cache_ttl: int = 3600  # 1 hour
    draft_cache_ttl: int = 86400  # 24 hours
    analytics_cache_ttl: int = 300  # 5 minutes

    # Cache sizes
    notices_cache_size: int = 10
    financials_cache_size: int = 500
    analysis_cache_size: int = 100
    draft_cache_size: int = 100
    analytics_cache_size: int = 20
    cache_cleanup_interval: int = 3600  # hourly sweep

    # Content settings
    link_database_path: str = "data/adminlist-links.json"
    max_internal_links: int = 5
    blog_word_count: int = 650

    @property
    def link_database_file(self) -> Path:
        """Link database path; relative paths work from the project root or server/."""
        return _find_data_file(self.link_database_path)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
