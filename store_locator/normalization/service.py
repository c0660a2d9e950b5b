"""Normalization of raw source values into canonical store fields.

Raw upstream rows are mappings of arbitrarily-cased keys to str, int, float
or bool values. Normalization:
1. Upper-cases keys so mappings can match them regardless of source casing
2. Coerces values to strings with fixed, type-specific formatting
3. Collapses whitespace runs and trims
4. Turns values that end up empty into None (absent)

Absent and empty are deliberately different: absent fields contribute the
empty string to the identity hash and are omitted from exports.
"""

import re
from typing import Any, Dict, Mapping, Optional

from store_locator.domain.models import CORE_FIELDS, StoreRecord

NormalizedRecord = Dict[str, Optional[str]]

_WHITESPACE = re.compile(r"\s+")


class UnsupportedValueError(TypeError):
    """Raised when a raw value has a type the normalizer cannot coerce."""

    def __init__(self, key: str, value: Any):
        super().__init__(
            f"Unsupported value type {type(value).__name__} for key '{key}': {value!r}"
        )
        self.key = key
        self.value = value


def clean_string(value: str) -> str:
    """Collapse whitespace runs to a single space and trim."""
    return _WHITESPACE.sub(" ", value).strip()


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Clean a nullable string; an empty result becomes None."""
    if value is None:
        return None
    cleaned = clean_string(value)
    return cleaned or None


def normalize_key(key: str) -> str:
    """Upper-case a raw key for structural matching."""
    return key.upper()


def force_string(value: Any, key: str = "?") -> str:
    """Coerce a raw scalar to its string representation.

    bool -> "true"/"false", int -> decimal, float -> fixed-point with six
    decimals, str -> unchanged.

    Raises:
        UnsupportedValueError: For any other type, None included
    """
    # bool first: it is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:f}"
    if isinstance(value, str):
        return value
    raise UnsupportedValueError(key, value)


def normalize_mapping(raw: Mapping[str, Any]) -> NormalizedRecord:
    """Normalize one raw upstream row.

    Args:
        raw: Mapping of arbitrary-cased keys to str/int/float/bool values

    Returns:
        Mapping of upper-cased keys to cleaned strings or None

    Raises:
        UnsupportedValueError: If any value has an unsupported type
    """
    normalized: NormalizedRecord = {}
    for key, value in raw.items():
        normalized[normalize_key(key)] = clean_optional(force_string(value, key))
    return normalized


def normalize_record(record: StoreRecord) -> StoreRecord:
    """Clean the core fields and error of a store record in place.

    Returns the same record for chaining.
    """
    for field in CORE_FIELDS:
        setattr(record, field, clean_optional(getattr(record, field)))
    record.error = clean_optional(record.error)
    return record
