"""Store sources: transcription of per-brand files into store records."""

from .base import STORE_CLOSED_ERROR, BaseSource
from .exceptions import (
    SourceDataError,
    SourceFormatError,
    SourceNotFoundError,
    TranscriptionError,
)
from .json_file import JsonFileSource

__all__ = [
    "BaseSource",
    "JsonFileSource",
    "STORE_CLOSED_ERROR",
    "TranscriptionError",
    "SourceNotFoundError",
    "SourceFormatError",
    "SourceDataError",
]
