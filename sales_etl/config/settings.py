"""
Sales Normalization Pipeline
Centralized Configuration Management

Configuration is loaded with Pydantic settings from environment variables
and an optional .env file, validated and typed.
"""

from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational Store Configuration"""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = Field(
        default="sqlite+aiosqlite:///./coffee_sales.db",
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(default=False, description="Echo SQL queries")

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured store is a SQLite file"""
        return self.url.startswith("sqlite")

    @property
    def sqlite_path(self) -> Optional[str]:
        """Filesystem path of the SQLite database, if any"""
        if not self.is_sqlite:
            return None
        _, _, path = self.url.partition(":///")
        return path or None


class ImportSettings(BaseSettings):
    """Workbook Import Configuration"""

    model_config = SettingsConfigDict(env_prefix="IMPORT_")

    workbook_path: str = Field(default="Coffe_sales.xlsx", description="Source workbook")
    max_reported_errors: int = Field(
        default=10, ge=0, description="Row errors reported individually per sheet"
    )
    progress_interval: int = Field(default=100, gt=0, description="Rows between progress logs")
    locale: str = Field(default="en", description="Calendar name table: en or es")

    # Fallback reference entities for rows without a store / payment method
    default_store_name: str = Field(default="Main Store", description="Sentinel store name")
    default_store_address: Optional[str] = Field(default="No address", description="Sentinel store address")
    default_store_city: Optional[str] = Field(default="No city", description="Sentinel store city")
    default_payment_type: str = Field(default="Cash", description="Sentinel payment type")
    default_payment_description: Optional[str] = Field(
        default="Cash payment", description="Sentinel payment description"
    )

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        """Validate locale value"""
        allowed = ["en", "es"]
        if v.lower() not in allowed:
            raise ValueError(f"Locale must be one of: {allowed}")
        return v.lower()

    @field_validator("default_store_name", "default_payment_type")
    @classmethod
    def validate_sentinel(cls, v: str) -> str:
        """Sentinel names must survive natural-key normalization"""
        if not v.strip():
            raise ValueError("Sentinel names must not be blank")
        return v.strip()


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="text", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="sales-etl", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    importer: ImportSettings = Field(default_factory=ImportSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
