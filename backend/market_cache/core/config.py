"""
Market Data Cache Configuration

Configuration management with environment variable support.
Implements secure defaults and validation for all settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Dict, List
from functools import lru_cache
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation and secure defaults."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    # Environment settings
    ENVIRONMENT: str = Field(
        default="development", description="Application environment"
    )

    # API configuration
    API_HOST: str = Field(default="0.0.0.0", description="API server host")
    API_PORT: int = Field(default=8000, ge=1, le=65535, description="API server port")
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="CORS allowed origins (comma-separated)",
    )

    # Upstream provider configuration
    YAHOO_QUERY_URL: str = Field(
        default="https://query1.finance.yahoo.com",
        description="Base URL of the Yahoo Finance query API",
    )
    YAHOO_COOKIE_URL: str = Field(
        default="https://fc.yahoo.com",
        description="URL visited to obtain the consent cookie before fetching a crumb",
    )
    YAHOO_USER_AGENT: str = Field(
        default=(
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
        ),
        description="User agent sent to the upstream provider",
    )
    YAHOO_REQUEST_TIMEOUT_SECONDS: float = Field(
        default=10.0, gt=0, le=120, description="Per-request upstream timeout"
    )
    YAHOO_MAX_RETRIES: int = Field(
        default=3, ge=1, le=10, description="Attempts per upstream request"
    )
    YAHOO_RETRY_BACKOFF_SECONDS: float = Field(
        default=0.5, ge=0, le=30, description="Exponential backoff multiplier"
    )
    MARKET_REGION: str = Field(default="US", description="Market region code")
    MARKET_LANG: str = Field(default="en-US", description="Market language code")

    # Cache configuration
    CACHE_COALESCE_MISSES: bool = Field(
        default=True,
        description="Share one upstream fetch between concurrent misses on a key",
    )
    CACHE_TTL_OVERRIDES: Dict[str, float] = Field(
        default_factory=dict,
        description="Per-category TTL overrides in seconds, e.g. {\"QUOTE\": 10}",
    )

    # OpenTelemetry configuration
    OTEL_SERVICE_NAME: str = Field(
        default="market-cache-api", description="OpenTelemetry service name"
    )
    OTEL_SERVICE_VERSION: str = Field(
        default="0.1.0", description="OpenTelemetry service version"
    )
    OTEL_CONSOLE_EXPORT: bool = Field(
        default=False, description="Export spans to stdout"
    )

    # Development and debugging
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_JSON: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of: {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v.upper()

    @field_validator("CACHE_TTL_OVERRIDES")
    @classmethod
    def validate_ttl_overrides(cls, v):
        """Reject negative TTL overrides."""
        for category, seconds in v.items():
            if seconds < 0:
                raise ValueError(f"TTL override for {category} cannot be negative")
        return {category.upper(): seconds for category, seconds in v.items()}

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as list."""
        return [
            origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()
        ]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Create global settings instance
settings = get_settings()
