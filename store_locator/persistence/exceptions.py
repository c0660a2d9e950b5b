"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers can catch
every storage failure with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when the database cannot be opened, validated or is not open.

    Examples:
    - Invalid database URL
    - Database file not accessible
    - Session requested before open() or after close()
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when a required record (store or location) does not exist."""

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a database constraint is violated."""

    pass
