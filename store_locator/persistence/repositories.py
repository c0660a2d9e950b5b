"""Data access layer for store records and their locations.

The repository is a keyed record store: stores are addressed by identity,
locations are a 1:1 side table joined by the same key. Methods return domain
models, never ORM rows.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from store_locator.domain.models import EDITABLE_FIELDS, Location, StoreRecord
from store_locator.normalization.service import clean_optional

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import LocationModel, StoreModel

logger = logging.getLogger(__name__)


class StoreRepository:
    """Repository for store and location database operations."""

    def __init__(self, session: Session):
        """
        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def find_all(self) -> List[StoreRecord]:
        """List every store without its location, in storage order.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            models = self.session.execute(select(StoreModel)).scalars().all()
            return [model.to_domain() for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Error listing stores: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list stores: {e}") from e

    def find_by_identity(self, identity: str) -> StoreRecord:
        """Retrieve one store, with its location when present.

        Raises:
            RecordNotFoundError: If no store has this identity
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(StoreModel, identity)
            if model is None:
                raise RecordNotFoundError(f"Store with identity {identity} not found")

            location_model = self.session.get(LocationModel, identity)
            location = location_model.to_domain() if location_model else None
            return model.to_domain(location)

        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving store {identity}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve store: {e}") from e

    def find_location(self, identity: str) -> Location:
        """Retrieve the location joined to a store.

        Raises:
            RecordNotFoundError: If the store has no location
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(LocationModel, identity)
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving location for {identity}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve location: {e}") from e

        if model is None:
            raise RecordNotFoundError(f"Location for store {identity} not found")
        return model.to_domain()

    def find_without_error(self) -> List[StoreRecord]:
        """List stores whose error is NULL, with locations attached.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(StoreModel, LocationModel)
                .outerjoin(LocationModel, LocationModel.store_key == StoreModel.key)
                .where(StoreModel.error.is_(None))
            )
            rows = self.session.execute(stmt).all()
            return [
                store.to_domain(location.to_domain() if location else None)
                for store, location in rows
            ]
        except SQLAlchemyError as e:
            logger.error(f"Error listing error-free stores: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list error-free stores: {e}") from e

    def create_if_absent(self, store: StoreRecord) -> bool:
        """Insert a store unless one with the same identity exists.

        Existing rows are left untouched so re-ingestion never clobbers
        enrichment results or manual edits.

        Returns:
            True if a row was created, False if it already existed

        Raises:
            ValueError: If the store has no identity
            PersistenceError: If database error occurs
        """
        _require_identity(store)

        try:
            if self.session.get(StoreModel, store.identity) is not None:
                return False

            self.session.add(StoreModel.from_domain(store))
            if store.location is not None:
                self.session.add(LocationModel.from_domain(store.identity, store.location))
            self.session.flush()
            return True

        except IntegrityError as e:
            logger.error(f"Integrity error creating store {store.identity}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to create store due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating store {store.identity}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create store: {e}") from e

    def upsert_by_identity(self, store: StoreRecord) -> StoreRecord:
        """Insert a store or overwrite the existing row with the same identity.

        When ``store.location`` is set the location row is inserted or
        updated too. A missing location never deletes an existing row.

        Returns:
            Persisted store, with its location

        Raises:
            ValueError: If the store has no identity
            PersistenceError: If database error occurs
        """
        _require_identity(store)

        try:
            model = self.session.get(StoreModel, store.identity)
            if model is None:
                model = StoreModel.from_domain(store)
                self.session.add(model)
            else:
                model.apply(store)

            location_model = self.session.get(LocationModel, store.identity)
            if store.location is not None:
                if location_model is None:
                    location_model = LocationModel.from_domain(store.identity, store.location)
                    self.session.add(location_model)
                else:
                    location_model.apply(store.location)

            self.session.flush()
            return model.to_domain(location_model.to_domain() if location_model else None)

        except IntegrityError as e:
            logger.error(f"Integrity error upserting store {store.identity}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert store due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting store {store.identity}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert store: {e}") from e

    def search(self, keyword: str) -> List[StoreRecord]:
        """Find stores by substring across all editable fields.

        The keyword ``error`` lists every store with a recorded error.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            if keyword == "error":
                stmt = select(StoreModel).where(StoreModel.error.is_not(None))
            else:
                pattern = f"%{keyword}%"
                stmt = select(StoreModel).where(
                    or_(*(getattr(StoreModel, field).like(pattern) for field in EDITABLE_FIELDS))
                )
            models = self.session.execute(stmt.order_by(StoreModel.key)).scalars().all()
            return [model.to_domain() for model in models]

        except SQLAlchemyError as e:
            logger.error(f"Error searching stores for '{keyword}': {e}", exc_info=True)
            raise PersistenceError(f"Failed to search stores: {e}") from e

    def update_field(self, identity: str, field: str, value: Optional[Any]) -> StoreRecord:
        """Manually edit one field of a store.

        The value is cleaned like any normalized field; an empty value clears
        the field. The identity is never recomputed.

        Raises:
            ValueError: If ``field`` is not editable
            RecordNotFoundError: If no store has this identity
            PersistenceError: If database error occurs
        """
        if field not in EDITABLE_FIELDS:
            raise ValueError(
                f"Field '{field}' is not editable. Editable fields: {', '.join(EDITABLE_FIELDS)}"
            )

        store = self.find_by_identity(identity)
        setattr(store, field, clean_optional(value))
        return self.upsert_by_identity(store)

    def count(self) -> int:
        """Number of stored stores.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            return self.session.execute(select(func.count()).select_from(StoreModel)).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting stores: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count stores: {e}") from e


def _require_identity(store: StoreRecord) -> None:
    if not store.identity:
        raise ValueError("Store has no identity; call assign_identity() before persisting")
