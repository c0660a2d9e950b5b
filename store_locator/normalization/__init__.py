"""Normalization layer for raw source values and store records."""

from .service import (
    NormalizedRecord,
    UnsupportedValueError,
    clean_optional,
    clean_string,
    force_string,
    normalize_key,
    normalize_mapping,
    normalize_record,
)

__all__ = [
    "NormalizedRecord",
    "UnsupportedValueError",
    "clean_optional",
    "clean_string",
    "force_string",
    "normalize_key",
    "normalize_mapping",
    "normalize_record",
]
