"""
Structured logging: one JSON object per event, keyed by event_type.

Every record carries timestamp, level, service, logger and event_type, plus
the keyword fields of the call (resource, digest, error, ...). Sync code
logs through bind_resource() so each line names the resource it concerns.

LOG_LEVEL and LOG_FORMAT (json | console) are read at import; the server
calls configure_logging() again with its settings at startup.

Depends only on stdlib logging and structlog so any backend_charity module
can import it.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

import structlog

SERVICE_NAME = "backend-charity"
DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "json"


def _level_value(level: str | None) -> int:
    name = (level or DEFAULT_LEVEL).strip().upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def _add_timestamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _add_service(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's positional 'event' becomes event_type."""
    event = event_dict.pop("event", None)
    if event is not None:
        event_dict.setdefault("event_type", event)
    return event_dict


def configure_logging(
    level: str | None = None,
    fmt: str | None = None,
    *,
    stream: TextIO | None = None,
) -> None:
    """
    (Re)configure structlog. level and fmt default to LOG_LEVEL / LOG_FORMAT.
    """
    fmt = (fmt or os.getenv("LOG_FORMAT") or DEFAULT_FORMAT).strip().lower()
    out = stream or sys.stdout
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        _add_timestamp,
        _add_service,
        _event_type,
    ]
    if fmt == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=out.isatty(), event_key="event_type"))
    else:
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_value(level or os.getenv("LOG_LEVEL"))),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        # configure_logging() may run again after module loggers exist
        cache_logger_on_first_use=False,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger; pass a snake_case event name and keyword fields:

        logger = get_logger(__name__)
        logger.info("tx_submitted", intent="PlaceBid", digest=digest)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_resource(resource: str, name: str = "backend_charity.sync", **context: Any) -> structlog.BoundLogger:
    """Logger with resource (and any extra context) on every line."""
    return structlog.get_logger(name).bind(logger=name, resource=resource, **context)
