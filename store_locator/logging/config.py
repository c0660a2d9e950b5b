"""Logging configuration for the store locator.

Two output formats are supported: single-line JSON for log shippers and a
key-value form for terminals. Both carry the structured ``extra`` fields
(event, component, run_id, identity, ...) and both mask the geocoding API
key wherever it appears, since connection errors from requests quote the
full request URL.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Literal

from .context import get_log_context

LogFormat = Literal["json", "key-value"]

SERVICE_NAME = "store-locator"

REDACTED = "***"

# LogRecord attributes that are never rendered as extra fields
RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
    "processName", "relativeCreated", "thread", "threadName", "asctime",
    "exc_info", "exc_text", "stack_info", "taskName",
})

# Chatty at DEBUG; one line per pooled connection to the geocoding API
NOISY_LOGGERS = ("urllib3",)


def _redact(text: str, secrets: Iterable[str]) -> str:
    for secret in secrets:
        text = text.replace(secret, REDACTED)
    return text


class ContextualFilter(logging.Filter):
    """
    Filter that enriches log records with static metadata and active context.

    Merges static fields (service, environment) and the active context from
    LogContextVar (run_id, pipeline, source_id, identity, ...) into every
    record. Fields passed explicitly through ``extra`` are never overwritten.
    """

    def __init__(self, service: str = SERVICE_NAME, environment: str = "local"):
        super().__init__()
        self.service = service
        self.environment = environment

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service
        record.environment = self.environment

        for key, value in get_log_context().items():
            if not hasattr(record, key):
                setattr(record, key, value)

        return True


class _RedactingFormatter(logging.Formatter):
    """Base formatter that masks configured secrets in the final output."""

    def __init__(self, *args, secrets: Iterable[str] = (), **kwargs):
        super().__init__(*args, **kwargs)
        # Short values would mask unrelated text
        self.secrets = tuple(s for s in secrets if s and len(s) >= 8)

    @staticmethod
    def extra_fields(record: logging.LogRecord, skip: Iterable[str] = ()) -> Dict[str, Any]:
        """Return the record's structured fields, without standard attributes."""
        skipped = RESERVED_ATTRS.union(skip)
        return {
            key: value
            for key, value in record.__dict__.items()
            if key not in skipped and not key.startswith("_")
        }

    def redact(self, text: str) -> str:
        return _redact(text, self.secrets)


class JSONFormatter(_RedactingFormatter):
    """JSON formatter producing single-line objects with stable field names."""

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON string with mandatory fields plus all extras
        """
        log_obj: Dict[str, Any] = {
            "timestamp": self._format_timestamp(record.created),
            "level": record.levelname,
            "message": record.getMessage(),
        }

        for key, value in self.extra_fields(record).items():
            if isinstance(value, datetime):
                log_obj[key] = value.isoformat()
            elif isinstance(value, (str, int, float, bool, type(None), list, dict)):
                log_obj[key] = value
            else:
                log_obj[key] = str(value)

        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)

        return self.redact(json.dumps(log_obj, ensure_ascii=False))

    def _format_timestamp(self, created: float) -> str:
        """Format a unix timestamp as ISO-8601 UTC with millisecond precision."""
        dt = datetime.fromtimestamp(created, tz=timezone.utc)
        return dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


class KeyValueFormatter(_RedactingFormatter):
    """
    Human-readable formatter.

    Produces: ``timestamp [level] name: message key1=value1 key2=value2``
    The static service and environment fields are left out to keep lines short.
    """

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)

        extras = []
        for key, value in sorted(self.extra_fields(record, skip=("service", "environment")).items()):
            if isinstance(value, str):
                if " " in value or "=" in value or "," in value:
                    value_str = f'"{value}"'
                else:
                    value_str = value
            elif isinstance(value, datetime):
                value_str = value.isoformat()
            elif isinstance(value, bool):
                value_str = str(value).lower()
            elif value is None:
                value_str = "null"
            else:
                value_str = str(value)

            extras.append(f"{key}={value_str}")

        line = f"{base} {' '.join(extras)}" if extras else base
        return self.redact(line)


def configure_logging(
    level: str = "INFO",
    format_type: LogFormat = "key-value",
    environment: str = "local",
    secrets: Iterable[str] = (),
) -> None:
    """
    Configure the root logger with the specified level and format.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'json' for JSON logs or 'key-value' for human-readable
        environment: Environment label (production, staging, local)
        secrets: Values masked in every emitted line, e.g. the geocoding API key

    Raises:
        ValueError: If level or format_type is invalid
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    if format_type not in ("json", "key-value"):
        raise ValueError(f"Invalid log format: {format_type}. Must be 'json' or 'key-value'")

    # stderr keeps stdout free for --lookup and export summaries
    handler = logging.StreamHandler(sys.stderr)

    if format_type == "json":
        formatter = JSONFormatter(secrets=secrets)
    else:
        formatter = KeyValueFormatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            secrets=secrets,
        )

    handler.setFormatter(formatter)
    handler.addFilter(ContextualFilter(service=SERVICE_NAME, environment=environment))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(numeric_level, logging.WARNING))

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={
            "event": "logging.configured",
            "component": "logging",
            "log_level": level.upper(),
            "log_format": format_type,
        },
    )
