"""Configuration and environment settings for the Household Ledger API."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the Household Ledger API."""

    database_url: str = "sqlite:///ledger.db"
    server_host: str = "127.0.0.1"
    server_port: int = 8000
    log_level: str = "INFO"
    log_file: str | None = "logs/ledger.log"
    initialize_years_back: int = 10
    initialize_years_ahead: int = 2

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
