"""Custom exceptions for exporting stores."""


class ExportError(Exception):
    """The export document could not be written."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path
