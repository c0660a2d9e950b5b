"""Source backed by a JSON file holding an array of store objects."""

import json
from pathlib import Path
from typing import Any, List, Mapping

from store_locator.logging import get_logger

from .base import BaseSource
from .exceptions import SourceFormatError, SourceNotFoundError

logger = get_logger(__name__, component="transcription")


class JsonFileSource(BaseSource):
    """Reads ``source_config.path``: a JSON array of flat objects.

    Example file:
        [
            {"StoreName": "Walmart Supercenter", "Address": "1 Main St", "Zip": 12345},
            ...
        ]
    """

    def fetch_rows(self) -> List[Mapping[str, Any]]:
        """Load and validate the JSON array.

        Raises:
            SourceNotFoundError: If the file is missing or unreadable
            SourceFormatError: If the file is not a JSON array of objects
        """
        path = Path(self.config.path)

        logger.debug(
            f"Reading source file {path}",
            extra={"event": "transcription.source.reading", "path": str(path)},
        )

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise SourceNotFoundError(f"Source file not found: {path}", path=str(path)) from e
        except json.JSONDecodeError as e:
            raise SourceFormatError(f"Invalid JSON in {path}: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise SourceNotFoundError(f"Failed to read source file {path}: {e}", path=str(path)) from e

        if not isinstance(data, list):
            raise SourceFormatError(
                f"Expected a JSON array in {path}, got {type(data).__name__}"
            )

        for index, row in enumerate(data):
            if not isinstance(row, dict):
                raise SourceFormatError(
                    f"Row {index} in {path} is {type(row).__name__}, expected an object"
                )

        return data
