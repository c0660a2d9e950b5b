"""Persistence layer for store records and locations.

Public API:
    # Database lifecycle
    - Database: owns engine + session factory (open/session/close)
    - open_database(database_url: str) -> Database

    # Repository
    - StoreRepository: keyed store access plus the 1:1 location join

    # Exceptions
    - PersistenceError: Base exception for all persistence errors
    - DatabaseConnectionError: Database connection/initialization failures
    - RecordNotFoundError: Required record not found
    - DataIntegrityError: Constraint violations

Example usage:
    >>> from store_locator.persistence import open_database, StoreRepository
    >>>
    >>> database = open_database("sqlite:///./data/stores.db")
    >>> with database.session() as session:
    ...     repo = StoreRepository(session)
    ...     stores = repo.find_all()
    >>> database.close()
"""

from .database import Database, open_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import StoreRepository

__all__ = [
    "Database",
    "open_database",
    "StoreRepository",
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
