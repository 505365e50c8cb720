"""Configuration settings for the playerwatch service."""

from __future__ import annotations

from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Steam Web API
    steam_api_key: Optional[str] = Field(
        default=None,
        description="Steam Web API key - Steam lookups are disabled when unset",
    )
    steam_api_base_url: str = Field(default="https://api.steampowered.com")

    # BattleMetrics
    battlemetrics_api_key: Optional[str] = Field(
        default=None,
        description="Optional BattleMetrics bearer token for higher rate limits",
    )
    battlemetrics_api_base_url: str = Field(default="https://api.battlemetrics.com")

    # External call policy
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    steam_batch_size: int = Field(default=100, ge=1, le=100)
    batch_max_concurrency: int = Field(default=4, ge=1)

    # Persistence
    database_url: str = Field(default="sqlite+aiosqlite:///./playerwatch.db")

    # Application Configuration
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    @field_validator("steam_api_key", "battlemetrics_api_key")
    @classmethod
    def blank_key_is_absent(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty or whitespace-only key as not configured."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @property
    def steam_enabled(self) -> bool:
        """Whether Steam credentials are configured."""
        return self.steam_api_key is not None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix for environment variables
        extra="ignore",
    )


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()


# Create a global settings instance lazily
settings: Settings | None = None


def get_global_settings() -> Settings:
    """Get or create the global settings instance."""
    global settings
    if settings is None:
        settings = get_settings()
    return settings
