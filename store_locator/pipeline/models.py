"""Data models for pipeline execution tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class SourceRunStats:
    """
    Statistics for a single source's ingestion within a run.

    Attributes:
        source_name: Name of the source as configured
        transcribed_count: Number of store records read from the source
        created_count: Number of new stores inserted
        existing_count: Number of stores already present (left untouched)
        duplicate_count: Number of records sharing an identity within the batch
        error_count: Number of errors encountered
        duration_seconds: Time spent processing this source
        had_errors: Whether any errors occurred during processing
        error_message: Optional error message if the source failed
    """

    source_name: str
    transcribed_count: int = 0
    created_count: int = 0
    existing_count: int = 0
    duplicate_count: int = 0
    error_count: int = 0
    duration_seconds: float = 0.0
    had_errors: bool = False
    error_message: Optional[str] = None


@dataclass
class IngestionRunResult:
    """
    Aggregate results from one ingestion run over all enabled sources.

    Totals are computed from ``source_stats`` when not given explicitly.
    """

    run_started_at: datetime
    run_finished_at: datetime
    total_duration_seconds: float = 0.0
    total_transcribed: int = 0
    total_created: int = 0
    total_existing: int = 0
    total_duplicates: int = 0
    total_errors: int = 0
    source_stats: List[SourceRunStats] = field(default_factory=list)
    had_errors: bool = False

    def __post_init__(self):
        if self.source_stats and self.total_transcribed == 0:
            self.total_transcribed = sum(s.transcribed_count for s in self.source_stats)
            self.total_created = sum(s.created_count for s in self.source_stats)
            self.total_existing = sum(s.existing_count for s in self.source_stats)
            self.total_duplicates = sum(s.duplicate_count for s in self.source_stats)
            self.total_errors = sum(s.error_count for s in self.source_stats)
            self.had_errors = any(s.had_errors for s in self.source_stats)

        if self.total_duration_seconds == 0.0:
            delta = self.run_finished_at - self.run_started_at
            self.total_duration_seconds = delta.total_seconds()


@dataclass
class EnrichmentRunResult:
    """
    Outcome of one enrichment run.

    Attributes:
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the worker was joined
        total_duration_seconds: Wall time of the run
        selected_count: Records eligible for geocoding at scan time
        submitted_count: Records handed to the worker
        located_count: Records that received a location
        failed_count: Records that got a location error recorded
        persist_failed_count: Outcomes that could not be written back
        unexpected_error_count: Records aborted by an unexpected exception
        cancelled: Whether cancel() stopped the run early
        skipped: Whether the run was skipped because another was in progress
    """

    run_started_at: datetime
    run_finished_at: datetime
    total_duration_seconds: float = 0.0
    selected_count: int = 0
    submitted_count: int = 0
    located_count: int = 0
    failed_count: int = 0
    persist_failed_count: int = 0
    unexpected_error_count: int = 0
    cancelled: bool = False
    skipped: bool = False

    def __post_init__(self):
        if self.total_duration_seconds == 0.0:
            delta = self.run_finished_at - self.run_started_at
            self.total_duration_seconds = delta.total_seconds()

    @property
    def processed_count(self) -> int:
        """Records the worker finished, whatever the outcome."""
        return self.located_count + self.failed_count + self.unexpected_error_count

    @property
    def had_errors(self) -> bool:
        """Whether anything went wrong beyond ordinary geocode misses."""
        return self.persist_failed_count > 0 or self.unexpected_error_count > 0
