"""
Configuration module with strict validation.

Key principles:
- APP STARTUP needs no API keys (every upstream geospatial source is public)
- Provider timeouts and batch concurrency are configurable
- Safe defaults for all optional settings
"""
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with validation.

    Loads from environment variables and .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Provider behaviour
    provider_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=60.0,
        description="Hard timeout for each primary data source call before falling back"
    )

    default_buffer_radius_km: float = Field(
        default=1.0,
        gt=0,
        le=50.0,
        description="Buffer radius used by density factors when a request omits one"
    )

    # Batch fan-out
    batch_max_concurrency: int = Field(
        default=4,
        ge=1,
        le=50,
        description="Maximum locations scored concurrently in one batch"
    )

    batch_item_timeout_seconds: Optional[float] = Field(
        default=30.0,
        gt=0,
        description="Per-location timeout inside a batch (None disables)"
    )

    # Explanations
    top_explanations: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Number of ranked explanations returned with an assessment"
    )

    # Upstream endpoints (override for mirrors / self-hosted instances)
    fema_nfhl_url: Optional[str] = Field(default=None, description="FEMA NFHL MapServer base URL")
    open_elevation_url: Optional[str] = Field(default=None, description="Open-Elevation API base URL")
    nominatim_url: Optional[str] = Field(default=None, description="Nominatim base URL")
    overpass_url: Optional[str] = Field(default=None, description="Overpass API base URL")

    user_agent: str = Field(
        default="GeoRisk/1.0",
        description="User-Agent sent to upstream services (Nominatim requires one)"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # Testing
    run_integration_tests: bool = Field(
        default=False,
        description="Enable integration tests (requires network)"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("batch_item_timeout_seconds", mode="before")
    @classmethod
    def validate_item_timeout(cls, v):
        """Allow the timeout to be disabled from the environment with 0/none."""
        if isinstance(v, str) and v.strip().lower() in {"", "0", "none", "off"}:
            return None
        if v == 0:
            return None
        return v


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    This pattern allows:
    - Easy testing (can reset settings between tests)
    - Lazy loading (only loads when first accessed)
    - Singleton pattern (same instance used everywhere)
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """
    Reset the global settings instance.

    Useful for testing to ensure clean state between tests.
    """
    global _settings
    _settings = None
