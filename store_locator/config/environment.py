"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/stores.db"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        geocode_api_key: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
    ):
        self.geocode_api_key = geocode_api_key
        self.log_level = log_level
        self.database_url = database_url or DEFAULT_DATABASE_URL

    def require_geocode_api_key(self) -> str:
        """Return the geocoding API key or fail with a configuration error.

        The key is only needed when enrichment runs, so it is checked lazily
        instead of at load time.
        """
        if not self.geocode_api_key:
            raise ConfigurationError(
                "Missing required environment variable: GEOCODE_API_KEY",
                suggestions=[
                    "Copy .env.example to .env and set GEOCODE_API_KEY",
                    "Export GEOCODE_API_KEY before running with --geo",
                ],
            )
        return self.geocode_api_key


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Optional environment variables:
    - GEOCODE_API_KEY: Geocoding API key (required when running --geo)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - DATABASE_URL: Database URL (default: sqlite:///./data/stores.db)

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If a variable holds an invalid value
    """
    errors = []

    geocode_api_key = os.getenv("GEOCODE_API_KEY")
    log_level = os.getenv("LOG_LEVEL")
    database_url = os.getenv("DATABASE_URL")

    if geocode_api_key is not None and not geocode_api_key.strip():
        errors.append("GEOCODE_API_KEY is set but empty")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if database_url is not None and "://" not in database_url:
        errors.append(
            f"Invalid DATABASE_URL: '{database_url}'. Expected a URL like {DEFAULT_DATABASE_URL}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your values",
                "Unset variables you do not need; defaults apply when they are absent",
            ],
        )

    return EnvironmentConfig(
        geocode_api_key=geocode_api_key.strip() if geocode_api_key else None,
        log_level=log_level.upper() if log_level else None,
        database_url=database_url,
    )
