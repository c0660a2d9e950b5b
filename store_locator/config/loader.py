"""Configuration loader for the store locator."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError

from store_locator.domain.models import CORE_FIELDS

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

DEFAULT_LOCATIONS = (Path("config.yaml"), Path("config") / "config.yaml")

GENERAL_SUGGESTION = "Review config.example.yaml for correct format"

# One hint per top-level section with a problem
SECTION_SUGGESTIONS = {
    "sources": "Each source needs a unique name, the path to its JSON file, "
    "and at least one field mapping or constant",
    "geocoding": "geocoding.queue_size is 1 to 1000 and geocoding.request_timeout "
    "is 1 to 300 seconds",
    "export": "export.output_path names the JSON file to write and export.indent is 0 to 8",
    "logging": "logging.level is DEBUG, INFO, WARNING, ERROR or CRITICAL "
    "and logging.format is json or key-value",
}

FIELD_MAP_KEYS = ("fields", "constants", "ignore_values")

REQUEST_DELAY_SUGGESTION = (
    "Write geocoding.request_delay as a duration between 1ms and 60s, "
    "e.g. '50ms', '1s' or 'PT0.05S'"
)


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and validate configuration from a YAML file and environment variables.

    Fallback logic for the config file location:
    1. Use provided config_path if given
    2. Try config.yaml in current directory
    3. Try ./config/config.yaml
    4. Fail with helpful error message

    Non-fatal problems (disabled or missing source files, an aggressive
    request delay) are emitted as warnings before validation.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Tuple of (AppConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If configuration is invalid or file not found
    """
    config_file = _find_config_file(config_path)
    config_dict = _read_yaml(config_file)

    warnings = check_for_warnings(config_dict)
    if warnings:
        emit_warnings(warnings)

    try:
        app_config = AppConfig.model_validate(config_dict)
    except ValidationError as e:
        errors, suggestions = _translate_validation_errors(e, config_dict)
        raise ConfigurationError(
            "Configuration validation failed",
            errors=errors,
            suggestions=suggestions,
            config_path=config_file,
        ) from e

    env_config = load_environment_config()

    return app_config, env_config


def _read_yaml(config_file: Path) -> Dict[str, Any]:
    """Parse the config file into a mapping, or raise ConfigurationError."""
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Configuration file not found: {config_file}",
            suggestions=["Copy config.example.yaml to config.yaml"],
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
                "Quote upstream keys that contain ':' or start with '-'",
            ],
            config_path=config_file,
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            suggestions=[f"Check the permissions of {config_file}"],
            config_path=config_file,
        ) from e

    if not config_dict:
        raise ConfigurationError(
            "Configuration file is empty",
            suggestions=["Copy config.example.yaml to config.yaml and list your brand sources"],
            config_path=config_file,
        )

    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            f"Configuration root must be a mapping, got {type(config_dict).__name__}",
            suggestions=[GENERAL_SUGGESTION],
            config_path=config_file,
        )

    return config_dict


def _translate_validation_errors(
    error: ValidationError, config_dict: Dict[str, Any]
) -> Tuple[List[str], List[str]]:
    """
    Turn pydantic errors into readable messages plus matching hints.

    Locations inside ``sources`` are reported by source name, so
    ``("sources", 0, "path")`` becomes ``sources[indigo].path``.
    """
    errors = []
    suggestions = []

    def suggest(hint: str) -> None:
        if hint not in suggestions:
            suggestions.append(hint)

    for detail in error.errors():
        loc = detail["loc"]
        where = _describe_location(loc, config_dict)
        error_type = detail["type"]

        if error_type == "missing":
            errors.append(f"Missing required field: {where}")
        elif error_type in ("string_type", "int_type", "bool_type", "list_type", "dict_type"):
            expected = error_type.replace("_type", "")
            errors.append(f"Invalid type for '{where}': expected {expected}, got {detail.get('input')!r}")
        elif error_type == "enum":
            errors.append(f"Invalid value for '{where}': {detail['msg']}")
        else:
            errors.append(f"{where}: {detail['msg']}" if where else detail["msg"])

        if loc[:2] == ("geocoding", "request_delay"):
            suggest(REQUEST_DELAY_SUGGESTION)
        elif loc and loc[0] == "sources" and any(key in loc for key in FIELD_MAP_KEYS):
            suggest(f"Store fields are: {', '.join(CORE_FIELDS)}")
        if loc and loc[0] in SECTION_SUGGESTIONS:
            suggest(SECTION_SUGGESTIONS[loc[0]])

    suggest(GENERAL_SUGGESTION)
    return errors, suggestions


def _describe_location(loc: Sequence[Any], config_dict: Dict[str, Any]) -> str:
    """Render an error location as a dotted path, naming sources where possible."""
    if not loc:
        return ""

    if loc[0] == "sources" and len(loc) > 1 and isinstance(loc[1], int):
        path = f"sources[{_source_label(config_dict, loc[1])}]"
        rest = loc[2:]
    else:
        path = str(loc[0])
        rest = loc[1:]

    for part in rest:
        path += f"[{part}]" if isinstance(part, int) else f".{part}"
    return path


def _source_label(config_dict: Dict[str, Any], index: int) -> str:
    """Name of the index-th raw source entry, or the index when it has none."""
    sources = config_dict.get("sources")
    if isinstance(sources, list) and index < len(sources):
        entry = sources[index]
        if isinstance(entry, dict):
            name = entry.get("name")
            if isinstance(name, str) and name.strip():
                return name.strip()
    return str(index)


def _find_config_file(config_path: Optional[Path] = None) -> Path:
    """
    Find configuration file using fallback logic.

    Raises:
        ConfigurationError: If no config file is found
    """
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[
                    f"Ensure {config_path} exists",
                    "Check the --config path and try again",
                ],
            )
        return config_path

    for candidate in DEFAULT_LOCATIONS:
        if candidate.exists():
            return candidate

    raise ConfigurationError(
        "Configuration file not found",
        errors=[f"Tried: {candidate.as_posix()}" for candidate in DEFAULT_LOCATIONS],
        suggestions=[
            "Copy config.example.yaml to config.yaml",
            "Use --config flag to specify a custom location",
        ],
    )
