"""Geocode providers used by the enrichment pipeline."""

from .client import GoogleGeocodeClient
from .exceptions import (
    GeocodeError,
    GeocodeHTTPError,
    GeocodeRequestError,
    GeocodeResponseError,
    GeocodeStatusError,
    GeocodeTimeoutError,
)
from .models import GeocodeCandidate, GeocodeProvider

__all__ = [
    "GoogleGeocodeClient",
    "GeocodeCandidate",
    "GeocodeProvider",
    "GeocodeError",
    "GeocodeHTTPError",
    "GeocodeRequestError",
    "GeocodeResponseError",
    "GeocodeStatusError",
    "GeocodeTimeoutError",
]
