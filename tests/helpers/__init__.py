"""Test helper utilities for store locator tests."""

from .stores import FakeGeocodeProvider, load_store, make_store, save_stores

__all__ = ["FakeGeocodeProvider", "make_store", "save_stores", "load_store"]
