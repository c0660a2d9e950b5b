"""Duration parsing utilities for configuration.

Rate-limit delays are short, so durations resolve to float seconds and the
human-readable form accepts milliseconds.
"""

import re


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""

    pass


_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(duration_str: str) -> float:
    """
    Parse a duration string to seconds.

    Supports human-readable and ISO-8601 durations:
    - Human-readable: "50ms", "1s", "1m30s", "2h"
    - ISO-8601: "PT0.05S", "PT1S", "PT1M"

    Args:
        duration_str: Duration string to parse

    Returns:
        Duration in seconds

    Raises:
        DurationParseError: If the duration string is invalid or zero

    Examples:
        >>> parse_duration("50ms")
        0.05
        >>> parse_duration("PT1M")
        60.0
    """
    if not isinstance(duration_str, str):
        raise DurationParseError(f"Duration must be a string, got {type(duration_str).__name__}")

    duration_str = duration_str.strip()
    if not duration_str:
        raise DurationParseError("Duration string cannot be empty")

    if duration_str.upper().startswith("P"):
        return _parse_iso8601_duration(duration_str)

    return _parse_human_readable_duration(duration_str)


def _parse_iso8601_duration(duration_str: str) -> float:
    """Parse ISO-8601 duration format (PT[n]H[n]M[n]S, fractional seconds allowed)."""
    duration_str = duration_str.upper()

    pattern = r"^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?$"
    match = re.match(pattern, duration_str)

    if not match or duration_str == "PT":
        raise DurationParseError(
            f"Invalid ISO-8601 duration format: '{duration_str}'. "
            "Expected format like 'PT1S', 'PT0.05S' or 'PT1M'"
        )

    hours, minutes, seconds = match.groups()

    total_seconds = 0.0
    if hours:
        total_seconds += int(hours) * 3600
    if minutes:
        total_seconds += int(minutes) * 60
    if seconds:
        total_seconds += float(seconds)

    if total_seconds == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")

    return total_seconds


def _parse_human_readable_duration(duration_str: str) -> float:
    """Parse human-readable durations such as '50ms', '2s' or '1m30s'."""
    cleaned_input = re.sub(r"\s+", "", duration_str.lower())
    matches = re.findall(r"(\d+)(ms|s|m|h)", cleaned_input)

    if not matches:
        raise DurationParseError(
            f"Invalid duration format: '{duration_str}'. "
            "Expected format like '50ms', '1s', '1m' or combinations like '1m30s'"
        )

    parsed_str = "".join(f"{num}{unit}" for num, unit in matches)
    if parsed_str != cleaned_input:
        raise DurationParseError(
            f"Invalid characters in duration: '{duration_str}'. "
            "Use only digits and units: ms, s, m, h"
        )

    total_seconds = sum(int(num) * _UNIT_SECONDS[unit] for num, unit in matches)

    if total_seconds == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")

    return round(total_seconds, 6)


def validate_duration_range(
    duration_seconds: float,
    min_seconds: float = 0.0,
    max_seconds: float = 60.0,
) -> None:
    """
    Validate that a duration is within an acceptable range.

    Raises:
        DurationParseError: If duration is outside the valid range
    """
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"Duration too short: {duration_seconds}s. Minimum is {min_seconds}s."
        )

    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"Duration too long: {duration_seconds}s. Maximum is {max_seconds}s."
        )
