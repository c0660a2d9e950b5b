"""Database schema definition and ORM models.

Stores and locations live in separate tables; a location row references its
store by identity (1:1). Conversions between ORM rows and domain models are
kept next to the models.
"""

import logging
from typing import Optional

from sqlalchemy import Column, Float, ForeignKey, Index, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from store_locator.domain.models import CORE_FIELDS, Location, StoreRecord
from store_locator.utils.timestamps import format_timestamp, utc_now

logger = logging.getLogger(__name__)

Base = declarative_base()


class StoreModel(Base):
    """ORM model for the stores table."""

    __tablename__ = "stores"

    key = Column(String(40), primary_key=True, nullable=False)

    brand = Column(Text, nullable=True)
    name = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(255), nullable=True)
    state = Column(String(255), nullable=True)
    zip = Column(String(50), nullable=True)
    phone = Column(String(100), nullable=True)
    website = Column(Text, nullable=True)

    error = Column(Text, nullable=True)

    # Timestamps (stored as ISO 8601 strings)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_stores_brand", "brand"),
        Index("idx_stores_error", "error"),
    )

    def to_domain(self, location: Optional[Location] = None) -> StoreRecord:
        """Convert ORM model to domain model, attaching an optional location."""
        return StoreRecord(
            identity=self.key,
            brand=self.brand,
            name=self.name,
            address=self.address,
            city=self.city,
            state=self.state,
            zip=self.zip,
            phone=self.phone,
            website=self.website,
            error=self.error,
            location=location,
        )

    @classmethod
    def from_domain(cls, store: StoreRecord) -> "StoreModel":
        """Create ORM model from domain model. The location is not included."""
        now = format_timestamp(utc_now())
        model = cls(key=store.identity, error=store.error, created_at=now, updated_at=now)
        model.apply(store)
        return model

    def apply(self, store: StoreRecord) -> None:
        """Copy core fields and error from a domain model onto this row."""
        for field in CORE_FIELDS:
            setattr(self, field, getattr(store, field))
        self.error = store.error
        self.updated_at = format_timestamp(utc_now())


class LocationModel(Base):
    """ORM model for the locations table, one row per located store."""

    __tablename__ = "locations"

    store_key = Column(
        String(40),
        ForeignKey("stores.key", ondelete="CASCADE"),
        primary_key=True,
        nullable=False,
    )
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    geo_address = Column(Text, nullable=True)
    updated_at = Column(String(50), nullable=False)

    def to_domain(self) -> Location:
        return Location(
            latitude=self.latitude,
            longitude=self.longitude,
            geo_address=self.geo_address,
        )

    @classmethod
    def from_domain(cls, store_key: str, location: Location) -> "LocationModel":
        model = cls(store_key=store_key, updated_at="")
        model.apply(location)
        return model

    def apply(self, location: Location) -> None:
        self.latitude = location.latitude
        self.longitude = location.longitude
        self.geo_address = location.geo_address
        self.updated_at = format_timestamp(utc_now())


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)

        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")

    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
