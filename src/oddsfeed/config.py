"""Configuration and logging setup for oddsfeed."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Default config file location
CONFIG_FILE_PATH = Path.home() / ".config" / "oddsfeed" / "config.toml"

# Error messages for missing credentials
_CREDENTIAL_ERROR_MESSAGES: dict[str, str] = {
    "the_odds_api": (
        "The Odds API requires an API key. "
        "Set ODDSFEED_ODDS_API_KEY environment variable, "
        "or configure odds_api_key in ~/.config/oddsfeed/config.toml"
    ),
}

_SECRET_FIELDS = ("odds_api_key", "debug_key")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid.

    This is a precondition failure: it is raised before any cache or
    upstream access and is never recovered by a cache fallback.
    """


def _load_config_file(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from TOML file if it exists.

    Args:
        config_path: Path to config file. Defaults to ~/.config/oddsfeed/config.toml

    Returns:
        Dictionary of configuration values, empty dict if file doesn't exist
    """
    path = config_path or CONFIG_FILE_PATH
    if not path.exists():
        return {}

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        # Config file is optional
        logging.getLogger(__name__).warning(
            "Failed to load config file %s: %s", path, type(e).__name__
        )
        return {}


class Settings(BaseSettings):
    """oddsfeed settings loaded from environment variables.

    Settings are loaded in priority order:
    1. Environment variables (highest priority)
    2. .env file
    3. ~/.config/oddsfeed/config.toml (lowest priority)

    The API key is stored as SecretStr so it never shows up in logs,
    repr, or error messages.
    """

    model_config = SettingsConfigDict(
        env_prefix="ODDSFEED_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Upstream provider - NEVER log the key
    odds_api_key: SecretStr | None = None
    odds_api_base_url: str = "https://api.the-odds-api.com/v4"
    request_timeout: float = 15.0  # seconds

    # Backing cache store
    cache_db_path: str = "~/.cache/oddsfeed/cache.db"

    # Request defaults
    default_region: str = "us"
    default_market: str = "h2h"

    # Logging
    log_level: str = "INFO"

    # Deployment; config_status requires debug_key when environment is "production"
    environment: str = "development"
    debug_key: SecretStr | None = None

    @model_validator(mode="before")
    @classmethod
    def load_from_config_file(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Load values from config file for any fields not set via env vars."""
        config_data = _load_config_file()

        if not config_data:
            return values

        for key in cls.model_fields:
            # Env vars take precedence over the config file
            if key not in values or values[key] is None:
                if key in config_data:
                    values[key] = config_data[key]

        return values

    def has_odds_api_credentials(self) -> bool:
        """Check if The Odds API key is configured.

        Returns:
            True if the key is non-empty, False otherwise
        """
        return self.odds_api_key is not None and bool(self.odds_api_key.get_secret_value())

    @staticmethod
    def get_credential_error_message(source: str) -> str:
        """Get a helpful error message for missing credentials.

        Args:
            source: The data source name (e.g. the_odds_api)

        Returns:
            Human-readable error message explaining how to configure credentials
        """
        source_lower = source.lower()
        if source_lower in _CREDENTIAL_ERROR_MESSAGES:
            return _CREDENTIAL_ERROR_MESSAGES[source_lower]
        return f"Unknown data source: {source}. No credential configuration available."

    def __repr__(self) -> str:
        """Safe repr that masks credential values."""
        fields = []
        for name in type(self).model_fields:
            value = getattr(self, name)
            if name in _SECRET_FIELDS:
                if value is not None:
                    fields.append(f"{name}=SecretStr('**********')")
                else:
                    fields.append(f"{name}=None")
            else:
                fields.append(f"{name}={value!r}")
        return f"Settings({', '.join(fields)})"

    def __str__(self) -> str:
        """Safe str representation that masks credential values."""
        return self.__repr__()


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the singleton Settings instance.

    Primarily used for testing to ensure fresh settings are loaded.
    """
    global _settings
    _settings = None


def configure_logging(level: str = "INFO") -> None:
    """Configure stdlib logging for oddsfeed."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


__all__ = [
    "ConfigurationError",
    "Settings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "CONFIG_FILE_PATH",
]
