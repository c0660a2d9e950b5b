"""Additional validation utilities for configuration."""

import warnings
from pathlib import Path
from typing import Any, Dict, List

from .duration import DurationParseError, parse_duration

# Below this the provider's per-second quota is easy to exceed
MIN_SAFE_REQUEST_DELAY = 0.02


def check_for_warnings(config_dict: Dict[str, Any], base_dir: Path = Path(".")) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary
        base_dir: Directory relative source paths are resolved against

    Returns:
        List of warning messages
    """
    warning_messages = []

    sources = config_dict.get("sources") or []
    for source in sources:
        if not isinstance(source, dict):
            continue
        name = source.get("name", "Unknown")
        if not source.get("enabled", True):
            warning_messages.append(f"Source '{name}' is disabled and will be skipped")
            continue
        path = source.get("path")
        if isinstance(path, str) and path.strip():
            candidate = Path(path)
            if not candidate.is_absolute():
                candidate = base_dir / candidate
            if not candidate.exists():
                warning_messages.append(f"Source '{name}' file does not exist yet: {path}")

    geocoding = config_dict.get("geocoding") or {}
    if isinstance(geocoding, dict):
        delay = geocoding.get("request_delay")
        if isinstance(delay, str):
            try:
                if parse_duration(delay) < MIN_SAFE_REQUEST_DELAY:
                    warning_messages.append(
                        f"Short geocoding.request_delay ({delay}) may trigger provider rate limits"
                    )
            except DurationParseError:
                # Reported by model validation
                pass

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
