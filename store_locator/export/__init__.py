"""Export of error-free stores as JSON."""

from .assembler import ExportAssembler
from .exceptions import ExportError
from .models import ExportedLocation, ExportedStore, ExportResult

__all__ = [
    "ExportAssembler",
    "ExportedStore",
    "ExportedLocation",
    "ExportResult",
    "ExportError",
]
