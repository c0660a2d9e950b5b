"""Content hashing for store identities.

A store's identity is the SHA-1 of its eight normalized core fields
concatenated in a fixed order (brand, name, address, city, state, zip,
phone, website). Absent fields contribute the empty string. Upstream
sources rarely carry a stable ID, so the content itself is the key, and
re-ingesting identical data lands on the same row.
"""

import hashlib
from typing import Iterable, Optional

from store_locator.domain.models import StoreRecord
from store_locator.normalization.service import clean_optional, normalize_record


def compute_identity(values: Iterable[Optional[str]]) -> str:
    """Hash already-ordered core field values.

    Args:
        values: Core field values in identity order; None counts as ""

    Returns:
        Lowercase hexadecimal SHA-1 digest (40 characters)
    """
    hash_obj = hashlib.sha1()
    for value in values:
        hash_obj.update((clean_optional(value) or "").encode("utf-8"))
    return hash_obj.hexdigest()


def assign_identity(record: StoreRecord) -> str:
    """Return the record's identity, computing and storing it if unset.

    An existing non-empty identity is returned untouched. Otherwise the core
    fields are normalized in place before hashing, so the stored values and
    the hash always agree.

    Args:
        record: Store record to identify

    Returns:
        The record's identity
    """
    if record.identity:
        return record.identity

    normalize_record(record)
    record.identity = compute_identity(record.core_values())
    return record.identity
