"""Configuration management module for the store locator."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config
from .models import (
    AppConfig,
    ExportConfig,
    GeocodingConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    SourceConfig,
)

__all__ = [
    "load_config",
    "load_environment_config",
    "AppConfig",
    "SourceConfig",
    "GeocodingConfig",
    "ExportConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    "LogLevel",
    "LogFormat",
    "ConfigurationError",
]
