"""Base class shared by all store sources.

A source yields raw rows (mappings of upstream keys to scalar values). The
base class turns each row into a StoreRecord according to the source's
SourceConfig: field mapping, constants, placeholder values, closed markers,
state-code translation and the require_any filter.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from store_locator.config.models import SourceConfig
from store_locator.domain.models import StoreRecord
from store_locator.logging import get_logger
from store_locator.normalization.service import (
    NormalizedRecord,
    UnsupportedValueError,
    clean_optional,
    normalize_mapping,
)

from .exceptions import SourceDataError

logger = get_logger(__name__, component="transcription")

STORE_CLOSED_ERROR = "store is closed"


class BaseSource(ABC):
    """Base class for store sources.

    Subclasses implement fetch_rows(); transcribe() is shared.
    """

    def __init__(self, source_config: SourceConfig) -> None:
        self.config = source_config

    @abstractmethod
    def fetch_rows(self) -> List[Mapping[str, Any]]:
        """Read the raw upstream rows.

        Raises:
            TranscriptionError: If the rows cannot be read
        """
        pass

    def transcribe(self) -> List[StoreRecord]:
        """Read and map every row of the source.

        Rows rejected by ``require_any`` are skipped. Identities are not
        assigned here.

        Returns:
            Store records in source order

        Raises:
            TranscriptionError: If the source cannot be read or a row is invalid
        """
        rows = self.fetch_rows()
        records = []
        skipped = 0

        for index, row in enumerate(rows):
            try:
                normalized = normalize_mapping(row)
            except UnsupportedValueError as e:
                raise SourceDataError(
                    f"Row {index} of source '{self.config.name}': {e}", row_index=index
                ) from e

            record = self.map_row(normalized)
            if record is None:
                skipped += 1
                continue
            records.append(record)

        logger.info(
            f"Transcribed {len(records)} stores from {self.config.name}",
            extra={
                "event": "transcription.source.completed",
                "row_count": len(rows),
                "record_count": len(records),
                "skipped_count": skipped,
            },
        )
        return records

    def map_row(self, row: NormalizedRecord) -> Optional[StoreRecord]:
        """Map one normalized row to a StoreRecord, or None to skip it."""
        config = self.config

        if config.require_any and not self._has_any_required(row):
            return None

        values: Dict[str, Optional[str]] = {}
        error: Optional[str] = None

        for field, keys in config.fields.items():
            parts = [row.get(key) for key in keys]
            if config.closed_markers and any(part in config.closed_markers for part in parts):
                error = error or STORE_CLOSED_ERROR

            value = clean_optional(config.separator.join(part for part in parts if part))
            if value is not None and value in config.ignore_values.get(field, []):
                value = None
            values[field] = value

        if config.state_codes:
            state_name = " ".join((values.get("state") or "").lower().split())
            code = config.state_codes.get(state_name)
            if code is None:
                error = error or f"invalid state code: {state_name}"
            values["state"] = code

        for field, constant in config.constants.items():
            values[field] = constant

        record = StoreRecord(**values, error=clean_optional(error))
        if record.error:
            logger.warning(
                f"Store flagged during transcription: {record.error}",
                extra={
                    "event": "transcription.row.flagged",
                    "store_name": record.name,
                    "error": record.error,
                },
            )
        return record

    def _has_any_required(self, row: NormalizedRecord) -> bool:
        marker = self.config.missing_marker
        for key in self.config.require_any:
            value = row.get(key)
            if value is not None and value != marker:
                return True
        return False
