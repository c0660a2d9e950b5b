"""Store locator: ingest brand store lists, geocode them and export JSON."""

__version__ = "0.1.0"
