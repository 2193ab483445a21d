"""
Application configuration using pydantic-settings.
Loads values from .env file in project root.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


# Environment variable name -> service that needs it
REQUIRED_CREDENTIALS = {
    "SONAR_API_KEY": "Perplexity API",
    "NOTION_API_KEY": "Notion API",
    "ATTIO_API_KEY": "Attio CRM API",
    "MARK2NOTION_API_KEY": "Mark2Notion API",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API credentials (all four are required for any network command)
    sonar_api_key: str = ""
    notion_api_key: str = ""
    attio_api_key: str = ""
    mark2notion_api_key: str = ""

    # Perplexity settings
    perplexity_model: str = "sonar-pro"
    criteria_file: str = "Neo_Investor_Search_Criteria.md"

    # Notion settings
    notion_database_id: str = "27b6ef03-8cf6-8059-9860-c0ec6873c896"
    notion_version: str = "2022-06-28"

    # Attio settings
    attio_research_url_attribute: str = "notion_research_url"
    note_title: str = "Research"

    # HTTP settings (research calls can take a while)
    request_timeout: float = 60.0

    log_level: str = "INFO"

    @property
    def missing_credentials(self) -> list[str]:
        """Environment variable names of required credentials that are empty."""
        return [
            name
            for name in REQUIRED_CREDENTIALS
            if not getattr(self, name.lower())
        ]

    @property
    def credentials_configured(self) -> bool:
        """Check if every required API key is configured."""
        return not self.missing_credentials

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
