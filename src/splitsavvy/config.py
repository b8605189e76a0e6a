"""Configuration management for SplitSavvy."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SPLITSAVVY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Display settings
    currency_symbol: str = "$"

    # Settle-up links are display artifacts only, nothing is charged
    payment_link_base_url: str = "https://splitsavvy.app/pay"

    # Database path
    database_path: Path = Path.home() / ".splitsavvy" / "splitsavvy.db"

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check your SPLITSAVVY_* environment "
            f"variables or .env file.\n"
            f"Error: {e}"
        ) from e
