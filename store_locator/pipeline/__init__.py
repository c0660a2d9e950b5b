"""Pipelines for ingesting store sources and geocoding stored records."""

from .enrichment import EnrichmentPipeline
from .ingestion import IngestionPipeline
from .models import EnrichmentRunResult, IngestionRunResult, SourceRunStats

__all__ = [
    "IngestionPipeline",
    "EnrichmentPipeline",
    "IngestionRunResult",
    "EnrichmentRunResult",
    "SourceRunStats",
]
