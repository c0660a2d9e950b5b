"""Context propagation for structured logging.

This module provides utilities for managing contextual information that is
automatically included in log records, such as the run ID of an ingestion or
enrichment pass, the source being transcribed, or the store being geocoded.

Context is backed by contextvars, so each thread carries its own copy. The
geocode worker is started inside a copied context and therefore sees the
run fields pushed by the producer, while its own per-store fields never leak
back.

Example:
    >>> with run_log_context("ingestion"):
    ...     with log_context(source_id="indigo"):
    ...         logger.info("Transcribing source")  # carries run_id, pipeline, source_id
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional
from uuid import uuid4


LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def new_run_id() -> str:
    """Return a fresh identifier for one pipeline run."""
    return uuid4().hex


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the current logging context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """
    Merge new fields into the logging context.

    Args:
        **kwargs: Key-value pairs to add to the logging context

    Returns:
        Token that restores the previous state via pop_log_context()
    """
    current = LogContextVar.get()
    return LogContextVar.set({**current, **kwargs})


def pop_log_context(token: Token) -> None:
    """Restore the logging context to the state captured by ``token``."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Clear all logging context fields (mostly for tests)."""
    LogContextVar.set({})


class log_context:
    """
    Context manager for scoped logging context.

    Fields are added on entry and the previous context is restored on exit,
    including when the block raises.

    Example:
        >>> with log_context(source_id="walmart"):
        ...     logger.info("Transcribing source")  # includes source_id
    """

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
        return False


def run_log_context(pipeline: str, run_id: Optional[str] = None) -> log_context:
    """
    Scope the logs of one pipeline run.

    Args:
        pipeline: Which pass is running ("ingestion" or "enrichment")
        run_id: Identifier to reuse; a new one is generated when omitted

    Returns:
        log_context carrying ``run_id`` and ``pipeline``
    """
    return log_context(run_id=run_id or new_run_id(), pipeline=pipeline)


def store_log_context(store) -> log_context:
    """
    Scope the logs emitted while handling one store.

    ``store_name`` is used instead of ``name``, which LogRecord already owns.
    """
    fields = {"identity": store.identity, "brand": store.brand, "store_name": store.name}
    return log_context(**{key: value for key, value in fields.items() if value is not None})
