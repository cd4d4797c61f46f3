"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "bakery_stock.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms
    acquire_timeout: float = 10.0  # s

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class LedgerSettings(BaseSettings):
    """Stock ledger configuration."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    # Optimistic transaction retries before giving up with a conflict
    max_transaction_attempts: int = Field(default=5, ge=1)
    currency: str = "FCFA"
    # Relative tolerance for the value-preserving unit conversion check
    value_tolerance: float = 1e-9


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Bakery Stock Ledger"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    # auto: console renderer in development, JSON lines elsewhere
    log_format: Literal["auto", "console", "json"] = "auto"

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
