"""Custom exceptions for source transcription."""


class TranscriptionError(Exception):
    """Base exception for all transcription errors.

    Fatal to the ingestion of one source; the ingestion pipeline logs it and
    moves on to the next source.
    """

    pass


class SourceNotFoundError(TranscriptionError):
    """The source file does not exist or cannot be read."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class SourceFormatError(TranscriptionError):
    """The source file is not a JSON array of objects."""

    pass


class SourceDataError(TranscriptionError):
    """A row holds a value the normalizer cannot coerce."""

    def __init__(self, message: str, row_index: int) -> None:
        super().__init__(message)
        self.row_index = row_index
