"""Database connection and session management.

A single Database handle is created at startup, passed to whatever needs
storage, and closed on shutdown. Nothing here is module-global.
"""

import threading
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from store_locator.logging import get_logger

from .exceptions import DatabaseConnectionError

logger = get_logger(__name__, component="database")


class Database:
    """Owns the SQLAlchemy engine and session factory for one database URL.

    Example:
        >>> database = Database("sqlite:///./data/stores.db")
        >>> database.open()
        >>> with database.session() as session:
        ...     repo = StoreRepository(session)
        ...     store = repo.find_by_identity("abc123")
        >>> database.close()
    """

    def __init__(self, database_url: str):
        self.database_url = database_url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        # Set for in-memory databases, whose single connection every session shares
        self._shared_connection_lock = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        """The engine of an open database.

        Raises:
            DatabaseConnectionError: If the database is not open
        """
        if self._engine is None:
            raise DatabaseConnectionError(
                "Database not open. Call open() before using the engine"
            )
        return self._engine

    def open(self) -> "Database":
        """Create the engine, validate the connection and create missing tables.

        Returns:
            self, for chaining

        Raises:
            DatabaseConnectionError: If initialization fails
        """
        database_url = self.database_url

        if not database_url or not isinstance(database_url, str):
            raise DatabaseConnectionError("Database URL must be a non-empty string")

        if self._engine is not None:
            return self

        logger.info(
            "Opening database",
            extra={
                "event": "database.opening",
                "database_url": _redact_url(database_url),
            },
        )

        try:
            is_sqlite = database_url.startswith("sqlite")
            in_memory = is_sqlite and (
                database_url.endswith(":memory:") or database_url in ("sqlite://", "sqlite:///")
            )

            if is_sqlite and not in_memory and database_url.startswith("sqlite:///"):
                db_file = Path(database_url.replace("sqlite:///", "", 1))
                if not db_file.parent.exists():
                    logger.info(f"Creating database directory: {db_file.parent}")
                    db_file.parent.mkdir(parents=True, exist_ok=True)

            engine_kwargs = {
                "echo": False,
                "pool_pre_ping": True,
                "future": True,
            }
            if is_sqlite:
                # The geocode worker runs on its own thread
                engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
            if in_memory:
                # One shared connection, otherwise every thread sees an empty database
                engine_kwargs["poolclass"] = StaticPool
                self._shared_connection_lock = threading.RLock()

            engine = create_engine(database_url, **engine_kwargs)

            if is_sqlite:
                _configure_sqlite(engine)

            _validate_connection(engine)

            from .schema import create_schema

            create_schema(engine)

        except DatabaseConnectionError:
            raise
        except Exception as e:
            error_msg = f"Failed to open database: {e}"
            logger.error(error_msg, exc_info=True)
            raise DatabaseConnectionError(error_msg) from e

        self._engine = engine
        self._session_factory = sessionmaker(
            bind=engine,
            autocommit=False,
            autoflush=True,
            expire_on_commit=False,
            future=True,
        )

        logger.info(
            "Database opened",
            extra={
                "event": "database.opened",
                "database_url": _redact_url(database_url),
            },
        )
        return self

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a session that commits on success and rolls back on error.

        Raises:
            DatabaseConnectionError: If the database is not open
            Exception: Any exception from operations within the context
        """
        if self._session_factory is None:
            raise DatabaseConnectionError(
                "Database not open. Call open() before requesting a session"
            )

        with self._shared_connection_lock or nullcontext():
            session = self._session_factory()
            try:
                yield session
                session.commit()
                logger.debug(
                    "Database session committed",
                    extra={"event": "database.session.committed"},
                )
            except Exception as e:
                session.rollback()
                logger.warning(
                    f"Database session rolled back due to exception: {e}",
                    extra={
                        "event": "database.session.rolled_back",
                        "error_type": type(e).__name__,
                    },
                )
                raise
            finally:
                session.close()

    def close(self) -> None:
        """Dispose of all connections. Safe to call more than once."""
        if self._engine is not None:
            logger.info("Closing database connections", extra={"event": "database.closing"})
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._shared_connection_lock = None

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def open_database(database_url: str) -> Database:
    """Create and open a Database for ``database_url``."""
    return Database(database_url).open()


def _configure_sqlite(engine: Engine) -> None:
    """Enable foreign keys and WAL on every new SQLite connection."""

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


def _validate_connection(engine: Engine) -> None:
    """Run a trivial query to make sure the database is reachable."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.debug("Database connection validated successfully")
    except Exception as e:
        raise DatabaseConnectionError(f"Failed to validate database connection: {e}") from e


def _redact_url(url: str) -> str:
    """Hide the password part of a database URL before logging it."""
    if url.startswith("sqlite"):
        return url

    if "@" in url and ":" in url:
        parts = url.split("@")
        if len(parts) == 2:
            prefix = parts[0].rsplit(":", 1)[0]
            return f"{prefix}:***@{parts[1]}"

    return url
