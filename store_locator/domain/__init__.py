"""Domain models for store records and locations."""

from .models import (
    CORE_FIELDS,
    EDITABLE_FIELDS,
    EnrichmentState,
    Location,
    StoreRecord,
    is_location_error,
    location_error,
)

__all__ = [
    "CORE_FIELDS",
    "EDITABLE_FIELDS",
    "EnrichmentState",
    "Location",
    "StoreRecord",
    "is_location_error",
    "location_error",
]
