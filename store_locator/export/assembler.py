"""Assembly of the clean store export.

Only stores without any recorded error are exported, whatever the error
says, ordered by identity so repeated exports of the same data are
byte-identical.
"""

import json
from pathlib import Path
from typing import List, Optional

from store_locator.logging import get_logger
from store_locator.persistence.database import Database
from store_locator.persistence.repositories import StoreRepository

from .exceptions import ExportError
from .models import ExportedStore, ExportResult

logger = get_logger(__name__, component="export")

DEFAULT_INDENT = 4


class ExportAssembler:
    """Reads error-free stores and renders them as a JSON array."""

    def __init__(
        self,
        database: Database,
        output_path: Optional[str] = None,
        indent: int = DEFAULT_INDENT,
    ):
        """
        Args:
            database: Open database handle
            output_path: Default file written by export(); None renders only
            indent: JSON indentation width
        """
        self.database = database
        self.output_path = output_path
        self.indent = indent

    def assemble(self) -> List[ExportedStore]:
        """Error-free stores in identity order.

        Raises:
            PersistenceError: If the stores cannot be read
        """
        with self.database.session() as session:
            stores = StoreRepository(session).find_without_error()

        ordered = sorted(stores, key=lambda store: store.identity)
        return [ExportedStore.from_store(store) for store in ordered]

    def render(self, stores: List[ExportedStore]) -> str:
        """Serialize as pretty-printed JSON with non-ASCII text kept literal."""
        payload = [store.to_wire() for store in stores]
        return json.dumps(payload, indent=self.indent, ensure_ascii=False) + "\n"

    def export(self, path: Optional[str] = None) -> ExportResult:
        """Assemble, render and, when a path is known, write the document.

        Args:
            path: Output file; defaults to the configured output_path

        Raises:
            PersistenceError: If the stores cannot be read
            ExportError: If the file cannot be written
        """
        stores = self.assemble()
        content = self.render(stores)
        target = path or self.output_path

        if target is None:
            logger.info(
                f"Rendered {len(stores)} stores",
                extra={"event": "export.rendered", "store_count": len(stores)},
            )
            return ExportResult(store_count=len(stores), content=content)

        output = Path(target)
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(content.encode("utf-8"))
        except OSError as e:
            logger.error(
                f"Failed to write export to {output}: {e}",
                extra={"event": "export.write_failed", "path": str(output), "error": str(e)},
            )
            raise ExportError(f"Failed to write export to {output}: {e}", path=str(output)) from e

        logger.info(
            f"Exported {len(stores)} stores to {output}",
            extra={"event": "export.written", "store_count": len(stores), "path": str(output)},
        )
        return ExportResult(store_count=len(stores), content=content, output_path=str(output))
