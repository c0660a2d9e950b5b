"""Main entry point for the store locator."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import os
import signal
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

from store_locator.config.environment import EnvironmentConfig
from store_locator.config.exceptions import ConfigurationError
from store_locator.config.loader import load_config
from store_locator.config.models import AppConfig
from store_locator.domain.models import EDITABLE_FIELDS, StoreRecord
from store_locator.export import ExportAssembler, ExportError
from store_locator.geocoding import GoogleGeocodeClient
from store_locator.logging import get_logger
from store_locator.logging.config import configure_logging
from store_locator.persistence import Database, PersistenceError, RecordNotFoundError, StoreRepository
from store_locator.pipeline import EnrichmentPipeline, IngestionPipeline

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Path, log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > environment > config file > INFO.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif env_config.log_level:
        pass
    elif app_config.logging and app_config.logging.level:
        env_config.log_level = app_config.logging.level
    else:
        env_config.log_level = "INFO"

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Store Locator - ingest brand store lists, geocode them and export JSON"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file (default: config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument("--seed", action="store_true", help="Ingest all enabled sources")
    parser.add_argument("--geo", action="store_true", help="Geocode stores lacking a location")
    parser.add_argument("--export", action="store_true", help="Write error-free stores as JSON")
    parser.add_argument(
        "--lookup",
        metavar="KEYWORD",
        help="Print stores matching KEYWORD in any field ('error' lists errored stores)",
    )
    parser.add_argument(
        "--edit",
        nargs=3,
        metavar=("IDENTITY", "FIELD", "VALUE"),
        help=f"Set FIELD of one store to VALUE (fields: {', '.join(EDITABLE_FIELDS)}; "
        "an empty VALUE clears it)",
    )
    return parser


def run_seed(database: Database, app_config: AppConfig) -> bool:
    """Ingest all sources. Returns True if any source failed."""
    result = IngestionPipeline(database, app_config).run()
    print(
        f"Ingested {result.total_transcribed} stores: {result.total_created} new, "
        f"{result.total_existing} already known, {result.total_duplicates} duplicates"
    )
    return result.had_errors


def run_geo(database: Database, app_config: AppConfig, env_config: EnvironmentConfig) -> bool:
    """Geocode stores lacking a location. Returns True if the run had errors.

    Ctrl+C cancels the run; the store being geocoded is still saved.
    """
    geocoding = app_config.geocoding
    client = GoogleGeocodeClient(
        api_key=env_config.require_geocode_api_key(),
        endpoint=geocoding.endpoint,
        timeout=geocoding.request_timeout,
        region=geocoding.region,
    )
    pipeline = EnrichmentPipeline(
        database,
        client,
        request_delay=geocoding.request_delay_seconds,
        queue_size=geocoding.queue_size,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, cancelling enrichment",
            extra={"event": "service.signal_received", "signal": signum},
        )
        pipeline.cancel()

    previous_handler = signal.signal(signal.SIGINT, signal_handler)
    try:
        result = pipeline.run()
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    print(
        f"Geocoded {result.processed_count} of {result.selected_count} stores: "
        f"{result.located_count} located, {result.failed_count} failed"
        + (" (cancelled)" if result.cancelled else "")
    )
    return result.had_errors


def run_export(database: Database, app_config: AppConfig) -> bool:
    assembler = ExportAssembler(
        database,
        output_path=app_config.export.output_path,
        indent=app_config.export.indent,
    )
    result = assembler.export()
    print(f"Exported {result.store_count} stores to {result.output_path}")
    return False


def run_lookup(database: Database, keyword: str) -> bool:
    """Print every store matching ``keyword``, with its location."""
    with database.session() as session:
        repo = StoreRepository(session)
        stores: List[StoreRecord] = repo.search(keyword)
        for store in stores:
            try:
                store.location = repo.find_location(store.identity)
            except RecordNotFoundError:
                store.location = None

    for store in stores:
        print(store.summary())
    print(f"{len(stores)} stores match '{keyword}'")
    return False


def run_edit(database: Database, identity: str, field: str, value: str) -> bool:
    """Edit one field of one store. Returns True if the edit was rejected."""
    try:
        with database.session() as session:
            store = StoreRepository(session).update_field(identity, field, value)
    except RecordNotFoundError:
        print(f"No store with identity {identity}", file=sys.stderr)
        return True
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return True

    logger.info(
        f"Store {identity} edited: {field}",
        extra={"event": "store.edited", "identity": identity, "field": field},
    )
    print(store.summary())
    return False


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the store locator.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    parser = build_parser()
    args = parser.parse_args(argv)

    if not (args.seed or args.geo or args.export or args.lookup is not None or args.edit):
        parser.print_help()
        return 0

    database: Optional[Database] = None
    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        log_format = app_config.logging.format if app_config.logging else "key-value"
        environment = os.environ.get("ENVIRONMENT", "local")
        configure_logging(
            level=env_config.log_level,
            format_type=log_format,
            environment=environment,
            secrets=[env_config.geocode_api_key] if env_config.geocode_api_key else (),
        )

        logger.info(
            "Store locator starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config),
                "log_level": env_config.log_level,
                "seed": args.seed,
                "geo": args.geo,
                "export": args.export,
            },
        )

        database = Database(env_config.database_url).open()

        had_errors = False
        if args.seed:
            had_errors |= run_seed(database, app_config)
        if args.geo:
            had_errors |= run_geo(database, app_config, env_config)
        if args.edit:
            had_errors |= run_edit(database, *args.edit)
        if args.lookup is not None:
            had_errors |= run_lookup(database, args.lookup)
        if args.export:
            had_errors |= run_export(database, app_config)

        logger.info(
            "Store locator finished",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(time.time() - start_time, 2),
                "had_errors": had_errors,
            },
        )
        return 1 if had_errors else 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except (PersistenceError, ExportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.error(
            f"Run aborted: {e}",
            extra={"event": "service.run.failed", "error_type": type(e).__name__},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "service.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1
    finally:
        if database is not None:
            database.close()


if __name__ == "__main__":
    sys.exit(main())
