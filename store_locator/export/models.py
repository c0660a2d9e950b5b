"""Wire shape of exported stores."""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field

from store_locator.domain.models import StoreRecord


class ExportedLocation(BaseModel):
    lat: float = 0.0
    lng: float = 0.0


class ExportedStore(BaseModel):
    """One store as written to the export file.

    Absent optional fields are dropped on serialization; ``location`` is
    always present and defaults to 0/0 for a store that was never located.
    """

    key: str = Field(..., alias="_key_")
    brand: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    location: ExportedLocation = Field(default_factory=ExportedLocation)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_store(cls, store: StoreRecord) -> "ExportedStore":
        location = ExportedLocation()
        if store.location is not None:
            location = ExportedLocation(lat=store.location.latitude, lng=store.location.longitude)

        return cls(
            key=store.identity,
            brand=store.brand,
            name=store.name,
            address=store.address,
            city=store.city,
            state=store.state,
            zip=store.zip,
            phone=store.phone,
            website=store.website,
            location=location,
        )

    def to_wire(self) -> dict:
        """Dictionary in export form: ``_key_`` alias, absent fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass
class ExportResult:
    """Outcome of an export.

    Attributes:
        store_count: Number of stores exported
        content: Rendered JSON document
        output_path: Where the document was written, None if it was not
    """

    store_count: int
    content: str
    output_path: Optional[str] = None
