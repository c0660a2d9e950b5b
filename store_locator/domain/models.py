"""Core domain models for store records and their locations.

This module defines the data structures used throughout the application:
- StoreRecord: canonical, normalized store entity keyed by its content identity
- Location: geocoded coordinate owned 1:1 by a store record
- EnrichmentState: where a record stands with respect to geocoding
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# Fixed order used for identity hashing, lookups and export
CORE_FIELDS = (
    "brand",
    "name",
    "address",
    "city",
    "state",
    "zip",
    "phone",
    "website",
)

# Fields a manual edit may touch
EDITABLE_FIELDS = CORE_FIELDS + ("error",)

LOCATION_ERROR_MARKER = "location error:"


def location_error(message: str) -> str:
    """Build the error string recorded when geocoding a store fails."""
    return f"{LOCATION_ERROR_MARKER} {message}"


def is_location_error(error: Optional[str]) -> bool:
    """Whether ``error`` marks a previous geocoding failure."""
    return bool(error) and error.startswith(LOCATION_ERROR_MARKER)


class EnrichmentState(str, Enum):
    """Geocoding state of a store record."""

    LOCATED = "located"
    UNLOCATED = "unlocated"
    LOCATION_FAILED = "location_failed"
    OTHER_FAILURE = "other_failure"

    @property
    def needs_geocoding(self) -> bool:
        return self in (EnrichmentState.UNLOCATED, EnrichmentState.LOCATION_FAILED)


class Location(BaseModel):
    """Geocoded coordinate of a store."""

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")
    geo_address: Optional[str] = Field(None, description="Address string that was geocoded")

    model_config = {"json_schema_extra": {"example": {
        "latitude": 43.6532,
        "longitude": -79.3832,
        "geo_address": "220 Yonge St, Toronto, ON",
    }}}


class StoreRecord(BaseModel):
    """Normalized store entity.

    ``identity`` is the content hash of the eight core fields and doubles as
    the primary key. It is assigned once (see
    ``store_locator.utils.hashing.assign_identity``) and never recomputed.
    ``location`` is persisted separately and joined by identity. ``error``
    is either absent or a human-readable message; a message starting with
    ``location error:`` marks a geocoding failure that is retried on the
    next enrichment run.
    """

    identity: Optional[str] = Field(None, description="Content hash of the core fields")
    brand: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    error: Optional[str] = Field(None, description="Human-readable problem, if any")
    location: Optional[Location] = None

    model_config = {"json_schema_extra": {"example": {
        "identity": "5f0c6d1ed3e5d4b8e3b0e6d2b0a3c7f7a4b7f0e1",
        "brand": "Indigo",
        "name": "Indigo Bay & Bloor",
        "address": "55 Bloor St W",
        "city": "Toronto",
        "state": "ON",
        "zip": "M4W 1A5",
        "phone": None,
        "website": "https://www.chapters.indigo.ca",
        "error": None,
        "location": {"latitude": 43.6697, "longitude": -79.3866},
    }}}

    def core_values(self) -> list[Optional[str]]:
        """Core field values in identity order."""
        return [getattr(self, field) for field in CORE_FIELDS]

    def geo_address(self) -> str:
        """Address used for geocoding: address, city and state joined by ', '."""
        parts = [part for part in (self.address, self.city, self.state) if part]
        return ", ".join(parts)

    def enrichment_state(self, has_location: Optional[bool] = None) -> EnrichmentState:
        """Classify the record for the enrichment pipeline.

        Args:
            has_location: Whether a Location is persisted for this record.
                Defaults to whether ``self.location`` is set.
        """
        if has_location is None:
            has_location = self.location is not None

        if is_location_error(self.error):
            return EnrichmentState.LOCATION_FAILED
        if self.error:
            return EnrichmentState.OTHER_FAILURE
        if has_location:
            return EnrichmentState.LOCATED
        return EnrichmentState.UNLOCATED

    def summary(self) -> str:
        """One-line description for lookups."""
        lat = self.location.latitude if self.location else 0.0
        lng = self.location.longitude if self.location else 0.0
        return (
            f"<{self.identity}: {_synopsis(self.brand)} | {_synopsis(self.name)} | "
            f"{_synopsis(self.address)} {{{lat:f}, {lng:f}}} {_synopsis(self.error)}>"
        )


def _synopsis(value: Optional[str], limit: int = 40) -> str:
    if not value:
        return ""
    if len(value) > limit:
        return value[:limit] + "..."
    return value
