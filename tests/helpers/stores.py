"""Store builders and a fake geocode provider for tests."""

import threading
from typing import Callable, Dict, List, Optional

from store_locator.domain.models import Location, StoreRecord
from store_locator.geocoding.exceptions import GeocodeError
from store_locator.geocoding.models import GeocodeCandidate
from store_locator.persistence.database import Database
from store_locator.persistence.repositories import StoreRepository
from store_locator.utils.hashing import assign_identity


class FakeGeocodeProvider:
    """In-memory geocode provider.

    Addresses listed in ``failures`` raise GeocodeError, addresses in
    ``empty`` return no candidates, everything else resolves to the entry in
    ``results`` or to ``default``. Calls are recorded in ``calls`` and
    appended to ``timeline`` (shared with a fake sleep in ordering tests).
    """

    def __init__(
        self,
        default: Optional[GeocodeCandidate] = None,
        results: Optional[Dict[str, GeocodeCandidate]] = None,
        failures: Optional[Dict[str, str]] = None,
        empty: Optional[List[str]] = None,
        timeline: Optional[list] = None,
        on_call: Optional[Callable[[str], None]] = None,
    ):
        self.default = default or GeocodeCandidate(
            latitude=43.6532, longitude=-79.3832, formatted_address="Toronto, ON"
        )
        self.results = results or {}
        self.failures = failures or {}
        self.empty = set(empty or [])
        self.timeline = timeline if timeline is not None else []
        self.on_call = on_call
        self.calls: List[str] = []
        self.threads: List[str] = []

    def geocode(self, address: str) -> List[GeocodeCandidate]:
        self.calls.append(address)
        self.threads.append(threading.current_thread().name)
        self.timeline.append(("geocode", address))

        if self.on_call is not None:
            self.on_call(address)

        if address in self.failures:
            raise GeocodeError(self.failures[address])
        if address in self.empty:
            return []
        return [self.results.get(address, self.default)]


def make_store(
    name: str,
    address: Optional[str] = None,
    city: Optional[str] = "Toronto",
    state: Optional[str] = "ON",
    brand: Optional[str] = "Indigo",
    error: Optional[str] = None,
    location: Optional[Location] = None,
    **fields,
) -> StoreRecord:
    """Build a store record with its identity assigned."""
    store = StoreRecord(
        brand=brand,
        name=name,
        address=address if address is not None else f"1 {name} St",
        city=city,
        state=state,
        error=error,
        location=location,
        **fields,
    )
    assign_identity(store)
    return store


def save_stores(database: Database, *stores: StoreRecord) -> None:
    with database.session() as session:
        repo = StoreRepository(session)
        for store in stores:
            repo.upsert_by_identity(store)


def load_store(database: Database, identity: str) -> StoreRecord:
    with database.session() as session:
        return StoreRepository(session).find_by_identity(identity)
