"""Application configuration using pydantic-settings."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from integrations.provider_registry import ALL_PROVIDER_NAMES


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./banklink.db"
    DATABASE_TIMEOUT_SECONDS: float = 10.0

    # Which aggregator backs institution listing ("Nordigen" or "Klarna")
    AGGREGATOR_PROVIDER: str = "Nordigen"

    # Nordigen / GoCardless Bank Account Data
    NORDIGEN_BASE_URL: str = "https://bankaccountdata.gocardless.com/api/v2"
    NORDIGEN_TIMEOUT_SECONDS: float = 10.0
    TOKEN_SAFETY_MARGIN_SECONDS: int = 300

    # Bank linking defaults
    DEFAULT_COUNTRY: str = "ES"
    AGREEMENT_MAX_HISTORICAL_DAYS: int = 90
    AGREEMENT_ACCESS_VALID_FOR_DAYS: int = 90
    REQUISITION_USER_LANGUAGE: str = "ES"

    # Page bounds for record store queries
    CONNECTION_PAGE_SIZE: int = 50
    TRANSACTION_PAGE_SIZE: int = 1000

    # Klarna Open Banking (placeholder integration)
    KLARNA_API_TOKEN: str = ""

    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    @field_validator("AGGREGATOR_PROVIDER", mode="before")
    @classmethod
    def normalize_provider_name(cls, v: str) -> str:
        """Accept known provider names case-insensitively ("nordigen" -> "Nordigen")."""
        name = str(v).strip().capitalize()
        if name not in ALL_PROVIDER_NAMES:
            raise ValueError(
                f"AGGREGATOR_PROVIDER must be one of {ALL_PROVIDER_NAMES}, got {v!r}"
            )
        return name

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()


settings = Settings()
