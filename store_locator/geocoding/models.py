"""Geocode provider contract and result models."""

from typing import List, Optional, Protocol

from pydantic import BaseModel, Field

from store_locator.domain.models import Location


class GeocodeCandidate(BaseModel):
    """One candidate coordinate returned for an address."""

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    formatted_address: Optional[str] = None

    def to_location(self, geo_address: Optional[str] = None) -> Location:
        return Location(latitude=self.latitude, longitude=self.longitude, geo_address=geo_address)


class GeocodeProvider(Protocol):
    """Anything that turns an address into candidate coordinates.

    An empty list means the provider found nothing, which is not an error.
    Transport, HTTP and API-status failures raise GeocodeError.
    """

    def geocode(self, address: str) -> List[GeocodeCandidate]:
        ...
