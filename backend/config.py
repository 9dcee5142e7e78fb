"""Application configuration using pydantic-settings."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./portfolio.db"

    # Rebalancing
    REBALANCE_TOLERANCE: float = 0.01  # fraction: 0.01 -> +/- 1 percentage point

    # External lookup services
    EXCHANGE_RATE_API_URL: str = "https://api.exchangerate-api.com/v4/latest"
    OPENFIGI_API_URL: str = "https://api.openfigi.com/v3/mapping"
    OPENFIGI_API_KEY: str = ""
    HTTP_TIMEOUT_SECONDS: float = 5.0
    LOOKUP_TIMEOUT_SECONDS: float = 3.0
    LOOKUP_CONCURRENCY: int = 5
    LOOKUP_CACHE_TTL_SECONDS: int = 86400

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    @field_validator("LOOKUP_CONCURRENCY")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Lookup batches need at least one concurrent slot."""
        if v < 1:
            raise ValueError(f"LOOKUP_CONCURRENCY must be >= 1, got {v}")
        return v

    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"


settings = Settings()
