"""Geocode enrichment of stored store records.

One producer (the caller's thread) scans the record store and feeds the
records that still need a location, one at a time, through a bounded queue
to a single worker thread. The worker geocodes each record, writes the
outcome back and then waits a fixed delay, which keeps provider calls at
least ``request_delay`` apart. run() joins the worker before returning.
"""

import contextvars
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterator, List, Tuple

from store_locator.domain.models import StoreRecord, location_error
from store_locator.geocoding.exceptions import GeocodeError
from store_locator.geocoding.models import GeocodeProvider
from store_locator.logging import get_logger
from store_locator.logging.context import new_run_id, run_log_context, store_log_context
from store_locator.persistence.database import Database
from store_locator.persistence.exceptions import PersistenceError, RecordNotFoundError
from store_locator.persistence.repositories import StoreRepository
from store_locator.utils.timestamps import utc_now

from .models import EnrichmentRunResult

logger = get_logger(__name__, component="enrichment")

DEFAULT_REQUEST_DELAY = 0.05
DEFAULT_QUEUE_SIZE = 10
NO_RESULTS_MESSAGE = "returned no results"

# Poll interval for blocking queue operations, so cancel() is noticed
_POLL_SECONDS = 0.1

_END_OF_WORK = object()


@dataclass
class _WorkerTally:
    located: int = 0
    failed: int = 0
    persist_failed: int = 0
    unexpected: int = 0


class EnrichmentPipeline:
    """
    Adds a geocoded Location to every store that lacks a valid one.

    Selection: a store is processed when it has no error and no location,
    or when its error is a previous location failure (``location error:``
    prefix). Any other error, such as a closed store, is never retried.

    Outcomes: on success the first candidate becomes the location and the
    error is cleared. A provider failure or an empty result records
    ``location error: <message>`` and leaves the location unset; the store
    is picked up again on the next run, never twice in the same run.
    """

    def __init__(
        self,
        database: Database,
        provider: GeocodeProvider,
        request_delay: float = DEFAULT_REQUEST_DELAY,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            database: Open database handle
            provider: Geocode provider
            request_delay: Seconds to wait after every processed record
            queue_size: Capacity of the producer/worker queue
            sleep: Sleep function (tests pass a recorder)
        """
        if queue_size < 1:
            raise ValueError(f"queue_size must be at least 1, got: {queue_size}")
        if request_delay < 0:
            raise ValueError(f"request_delay cannot be negative, got: {request_delay}")

        self.database = database
        self.provider = provider
        self.request_delay = request_delay
        self.queue_size = queue_size
        self._sleep = sleep
        self._cancel_event = threading.Event()
        self._lock = threading.Lock()

    def cancel(self) -> None:
        """Stop feeding and taking work. Safe to call from any thread.

        A geocode call already in flight completes and its outcome is
        persisted.
        """
        self._cancel_event.set()
        logger.info("Enrichment cancellation requested", extra={"event": "enrichment.cancel.requested"})

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def select_records(self) -> List[StoreRecord]:
        """Scan the record store for stores that need geocoding.

        Stores come back in listing order with their persisted location
        attached. A location that cannot be read counts as missing.

        Raises:
            PersistenceError: If the stores cannot be listed
        """
        return list(self._iter_candidates(self._list_stores()))

    def _list_stores(self) -> List[StoreRecord]:
        with self.database.session() as session:
            return StoreRepository(session).find_all()

    def _iter_candidates(self, stores: List[StoreRecord]) -> Iterator[StoreRecord]:
        """Yield the stores that need geocoding, looking up each location lazily.

        Lookups happen as the producer advances, so a full queue also holds
        back the scan.
        """
        for store in stores:
            try:
                with self.database.session() as session:
                    store.location = StoreRepository(session).find_location(store.identity)
            except RecordNotFoundError:
                store.location = None
            except PersistenceError as e:
                logger.warning(
                    f"Could not read location of {store.identity}, treating it as missing: {e}",
                    extra={
                        "event": "enrichment.location.read_failed",
                        "identity": store.identity,
                        "error": str(e),
                    },
                )
                store.location = None

            if store.enrichment_state().needs_geocoding:
                yield store

    def run(self) -> EnrichmentRunResult:
        """Geocode every selected store and wait for the worker to finish.

        Per-store failures are recorded and counted, never raised.

        Raises:
            PersistenceError: If the initial listing of the record store fails
        """
        run_started_at = utc_now()
        run_id = new_run_id()

        if not self._lock.acquire(blocking=False):
            with run_log_context("enrichment", run_id):
                logger.warning(
                    "Enrichment run skipped: previous run still in progress",
                    extra={"event": "enrichment.run.skipped", "reason": "lock_held"},
                )
            return EnrichmentRunResult(
                run_started_at=run_started_at,
                run_finished_at=utc_now(),
                skipped=True,
            )

        try:
            self._cancel_event.clear()
            with run_log_context("enrichment", run_id):
                try:
                    stores = self._list_stores()
                except PersistenceError as e:
                    logger.error(
                        f"Enrichment aborted, could not read stores: {e}",
                        extra={"event": "enrichment.scan.failed", "error": str(e)},
                        exc_info=True,
                    )
                    raise

                logger.info(
                    f"Enrichment started: scanning {len(stores)} stores",
                    extra={
                        "event": "enrichment.run.started",
                        "store_count": len(stores),
                        "queue_size": self.queue_size,
                        "request_delay_seconds": self.request_delay,
                    },
                )

                tally = _WorkerTally()
                selected, submitted = self._process_all(self._iter_candidates(stores), tally)

                result = EnrichmentRunResult(
                    run_started_at=run_started_at,
                    run_finished_at=utc_now(),
                    selected_count=selected,
                    submitted_count=submitted,
                    located_count=tally.located,
                    failed_count=tally.failed,
                    persist_failed_count=tally.persist_failed,
                    unexpected_error_count=tally.unexpected,
                    cancelled=self.cancelled,
                )

                logger.info(
                    f"Enrichment completed: {result.located_count} located, "
                    f"{result.failed_count} failed",
                    extra={
                        "event": "enrichment.run.completed",
                        "duration_ms": int(result.total_duration_seconds * 1000),
                        "selected_count": result.selected_count,
                        "submitted_count": result.submitted_count,
                        "located_count": result.located_count,
                        "failed_count": result.failed_count,
                        "persist_failed_count": result.persist_failed_count,
                        "unexpected_error_count": result.unexpected_error_count,
                        "cancelled": result.cancelled,
                    },
                )
                return result

        finally:
            self._lock.release()

    def _process_all(
        self, candidates: Iterator[StoreRecord], tally: _WorkerTally
    ) -> Tuple[int, int]:
        """Run the producer on this thread against one worker thread.

        Returns:
            Number of stores selected and number handed to the worker
        """
        work_queue: "queue.Queue[object]" = queue.Queue(maxsize=self.queue_size)
        worker_context = contextvars.copy_context()
        worker = threading.Thread(
            target=worker_context.run,
            args=(self._work, work_queue, tally),
            name="geocode-worker",
            daemon=True,
        )
        worker.start()

        selected = submitted = 0
        try:
            for store in candidates:
                if self.cancelled:
                    break
                selected += 1
                if not self._enqueue(work_queue, store, worker):
                    break
                submitted += 1
        finally:
            self._enqueue(work_queue, _END_OF_WORK, worker, ignore_cancel=True)
            worker.join()

        if submitted < selected:
            logger.info(
                f"Enrichment stopped early after submitting {submitted} stores",
                extra={
                    "event": "enrichment.producer.stopped",
                    "selected_count": selected,
                    "submitted_count": submitted,
                },
            )
        return selected, submitted

    def _enqueue(
        self,
        work_queue: "queue.Queue[object]",
        item: object,
        worker: threading.Thread,
        ignore_cancel: bool = False,
    ) -> bool:
        """Block until ``item`` is queued, the run is cancelled or the worker is gone."""
        while worker.is_alive() and (ignore_cancel or not self.cancelled):
            try:
                work_queue.put(item, timeout=_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def _work(self, work_queue: "queue.Queue[object]", tally: _WorkerTally) -> None:
        logger.debug("Geocode worker started", extra={"event": "enrichment.worker.started"})

        while not self.cancelled:
            try:
                item = work_queue.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                continue

            if item is _END_OF_WORK:
                break

            self._process_store(item, tally)
            self._sleep(self.request_delay)

        logger.debug(
            "Geocode worker stopped",
            extra={"event": "enrichment.worker.stopped", "cancelled": self.cancelled},
        )

    def _process_store(self, store: StoreRecord, tally: _WorkerTally) -> None:
        """Geocode one store and persist the outcome."""
        with store_log_context(store):
            try:
                located = self._geocode(store)
            except Exception as e:
                tally.unexpected += 1
                logger.error(
                    f"Unexpected error geocoding {store.identity}: {e}",
                    extra={
                        "event": "enrichment.store.unexpected_error",
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                    exc_info=True,
                )
                return

            if located:
                tally.located += 1
            else:
                tally.failed += 1

            try:
                with self.database.session() as session:
                    StoreRepository(session).upsert_by_identity(store)
            except PersistenceError as e:
                tally.persist_failed += 1
                logger.error(
                    f"Failed to persist geocode outcome for {store.identity}: {e}",
                    extra={
                        "event": "enrichment.store.persist_failed",
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                )
            except Exception as e:
                tally.unexpected += 1
                logger.error(
                    f"Unexpected error persisting {store.identity}: {e}",
                    extra={
                        "event": "enrichment.store.unexpected_error",
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                    exc_info=True,
                )

    def _geocode(self, store: StoreRecord) -> bool:
        """Apply the provider's answer to ``store``.

        Returns:
            True if the store got a location, False if a failure was recorded
        """
        address = store.geo_address()

        try:
            candidates = self.provider.geocode(address)
        except GeocodeError as e:
            store.location = None
            store.error = location_error(str(e))
            logger.warning(
                f"Geocoding failed for {store.identity}: {e}",
                extra={
                    "event": "enrichment.store.failed",
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "address": address,
                },
            )
            return False

        if not candidates:
            store.location = None
            store.error = location_error(NO_RESULTS_MESSAGE)
            logger.warning(
                f"Geocoding returned no results for {store.identity}",
                extra={"event": "enrichment.store.no_results", "address": address},
            )
            return False

        store.location = candidates[0].to_location(address)
        store.error = None
        logger.debug(
            f"Located {store.identity}",
            extra={
                "event": "enrichment.store.located",
                "latitude": store.location.latitude,
                "longitude": store.location.longitude,
            },
        )
        return True
