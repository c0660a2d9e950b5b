"""Unit tests for content identity hashing."""

import hashlib

from store_locator.domain.models import StoreRecord
from store_locator.normalization import normalize_mapping
from store_locator.utils.hashing import assign_identity, compute_identity


def sha1(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


class TestComputeIdentity:
    def test_sha1_over_concatenation(self):
        values = ["Indigo", "Bay", "55 Bloor St W", "Toronto", "ON", "M4W 1A5", None, None]

        assert compute_identity(values) == sha1("IndigoBay55 Bloor St WTorontoONM4W 1A5")

    def test_absent_fields_count_as_empty_string(self):
        assert compute_identity([None] * 8) == sha1("")
        assert compute_identity(["a", None, "b"]) == compute_identity(["a", "", "b"])

    def test_lowercase_hex_forty_characters(self):
        identity = compute_identity(["x"])

        assert len(identity) == 40
        assert identity == identity.lower()
        int(identity, 16)

    def test_values_are_cleaned_before_hashing(self):
        assert compute_identity(["  Bay   St "]) == compute_identity(["Bay St"])

    def test_utf8_bytes_are_hashed(self):
        assert compute_identity(["Montréal"]) == sha1("Montréal")


class TestAssignIdentity:
    def test_sets_identity_on_record(self):
        record = StoreRecord(brand="Indigo", name="Bay")

        identity = assign_identity(record)

        assert record.identity == identity
        assert identity == sha1("IndigoBay")

    def test_existing_identity_is_never_recomputed(self):
        record = StoreRecord(identity="already-set", brand="Indigo")

        assert assign_identity(record) == "already-set"
        record.name = "Renamed"
        assert assign_identity(record) == "already-set"

    def test_idempotent(self):
        record = StoreRecord(brand="Indigo", name="Bay")

        assert assign_identity(record) == assign_identity(record)

    def test_normalizes_fields_before_hashing(self):
        record = StoreRecord(brand="  Indigo ", name="Bay   Street", city="   ")

        assign_identity(record)

        assert record.brand == "Indigo"
        assert record.name == "Bay Street"
        assert record.city is None
        assert record.identity == sha1("IndigoBay Street")

    def test_same_fields_same_identity(self):
        first = StoreRecord(brand="Indigo", name="Bay", address="1 Main St")
        second = StoreRecord(brand="Indigo", name="Bay", address="1  Main St ")

        assert assign_identity(first) == assign_identity(second)

    def test_field_order_matters(self):
        first = StoreRecord(brand="A", name="B")
        second = StoreRecord(brand="B", name="A")

        assert assign_identity(first) != assign_identity(second)

    def test_error_and_location_do_not_affect_identity(self):
        clean = StoreRecord(brand="Indigo", name="Bay")
        errored = StoreRecord(brand="Indigo", name="Bay", error="store is closed")

        assert assign_identity(clean) == assign_identity(errored)

    def test_raw_key_case_and_order_do_not_matter(self):
        """Rows differing only in key case and order map to one identity."""
        first = normalize_mapping({"Name": "Bay", "City": "Toronto"})
        second = normalize_mapping({"CITY": "Toronto", "name": "Bay"})

        one = StoreRecord(name=first["NAME"], city=first["CITY"])
        two = StoreRecord(name=second["NAME"], city=second["CITY"])

        assert assign_identity(one) == assign_identity(two)
