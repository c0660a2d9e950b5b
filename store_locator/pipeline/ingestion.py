"""Ingestion of configured store sources into the record store."""

import time
from typing import Callable, List, Set

from store_locator.config.models import AppConfig, SourceConfig
from store_locator.domain.models import StoreRecord
from store_locator.logging import get_logger
from store_locator.logging.context import log_context, run_log_context
from store_locator.persistence.database import Database
from store_locator.persistence.exceptions import PersistenceError
from store_locator.persistence.repositories import StoreRepository
from store_locator.sources.base import BaseSource
from store_locator.sources.exceptions import TranscriptionError
from store_locator.sources.json_file import JsonFileSource
from store_locator.utils.hashing import assign_identity
from store_locator.utils.timestamps import utc_now

from .models import IngestionRunResult, SourceRunStats

logger = get_logger(__name__, component="ingestion")

SourceFactory = Callable[[SourceConfig], BaseSource]


class IngestionPipeline:
    """
    Transcribes every enabled source and stores records not seen before.

    Each record is normalized and given its content identity; records whose
    identity is already stored are left as they are, so enrichment results
    and manual edits survive re-ingestion. A record that cannot be stored is
    logged and counted without stopping its source, and a source that cannot
    be read does not stop the others.
    """

    def __init__(
        self,
        database: Database,
        app_config: AppConfig,
        source_factory: SourceFactory = JsonFileSource,
    ):
        """
        Args:
            database: Open database handle
            app_config: Application configuration holding the sources
            source_factory: Builds a source reader from its configuration
        """
        self.database = database
        self.app_config = app_config
        self.source_factory = source_factory

    def run(self) -> IngestionRunResult:
        """Ingest all enabled sources, one after another."""
        run_started_at = utc_now()
        source_stats: List[SourceRunStats] = []

        with run_log_context("ingestion"):
            enabled_sources = self.app_config.get_enabled_sources()

            logger.info(
                f"Ingestion started for {len(enabled_sources)} sources",
                extra={
                    "event": "ingestion.run.started",
                    "enabled_source_count": len(enabled_sources),
                    "disabled_source_count": len(self.app_config.sources) - len(enabled_sources),
                },
            )

            for source_config in enabled_sources:
                source_stats.append(self._process_source(source_config))

            result = IngestionRunResult(
                run_started_at=run_started_at,
                run_finished_at=utc_now(),
                source_stats=source_stats,
            )

            logger.info(
                f"Ingestion completed: {result.total_created} created, "
                f"{result.total_existing} already present, "
                f"{result.total_duplicates} duplicates",
                extra={
                    "event": "ingestion.run.completed",
                    "duration_ms": int(result.total_duration_seconds * 1000),
                    "total_transcribed": result.total_transcribed,
                    "total_created": result.total_created,
                    "total_existing": result.total_existing,
                    "total_duplicates": result.total_duplicates,
                    "total_errors": result.total_errors,
                    "had_errors": result.had_errors,
                },
            )

        return result

    def _process_source(self, source_config: SourceConfig) -> SourceRunStats:
        source_start = time.time()
        stats = SourceRunStats(source_name=source_config.name)

        with log_context(source_id=source_config.name):
            logger.info(
                f"Ingesting source: {source_config.name}",
                extra={"event": "ingestion.source.started", "path": source_config.path},
            )

            try:
                records = self.source_factory(source_config).transcribe()
                stats.transcribed_count = len(records)

                seen: Set[str] = set()
                for record in records:
                    identity = assign_identity(record)
                    if identity in seen:
                        stats.duplicate_count += 1
                        continue
                    seen.add(identity)
                    self._store_record(record, stats)

            except TranscriptionError as e:
                stats.had_errors = True
                stats.error_count += 1
                stats.error_message = str(e)
                logger.error(
                    f"Transcription failed for {source_config.name}: {e}",
                    extra={
                        "event": "ingestion.source.transcription_failed",
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                )
            except Exception as e:
                stats.had_errors = True
                stats.error_count += 1
                stats.error_message = str(e)
                logger.error(
                    f"Unexpected error ingesting {source_config.name}: {e}",
                    extra={
                        "event": "ingestion.source.failed",
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                    exc_info=True,
                )
            finally:
                stats.duration_seconds = time.time() - source_start

            logger.info(
                f"Source {source_config.name}: {stats.transcribed_count} transcribed, "
                f"{stats.created_count} created, {stats.existing_count} existing",
                extra={
                    "event": "ingestion.source.completed",
                    "transcribed": stats.transcribed_count,
                    "created": stats.created_count,
                    "existing": stats.existing_count,
                    "duplicates": stats.duplicate_count,
                    "errors": stats.error_count,
                    "had_errors": stats.had_errors,
                    "duration_seconds": round(stats.duration_seconds, 3),
                },
            )

        return stats

    def _store_record(self, record: StoreRecord, stats: SourceRunStats) -> None:
        """Create one store in its own session; a failure is counted, not raised."""
        try:
            with self.database.session() as session:
                created = StoreRepository(session).create_if_absent(record)
        except PersistenceError as e:
            stats.had_errors = True
            stats.error_count += 1
            stats.error_message = str(e)
            logger.error(
                f"Storing {record.identity} failed: {e}",
                extra={
                    "event": "ingestion.store.persist_failed",
                    "identity": record.identity,
                    "store_name": record.name,
                    "error_type": type(e).__name__,
                    "error": str(e),
                },
            )
            return

        if created:
            stats.created_count += 1
        else:
            stats.existing_count += 1
