"""Structured logging for the audit room engine.

Package modules log through plain ``logging.getLogger(__name__)``; this
module routes those records through structlog so every line comes out as
JSON (or coloured console output in development). The CLI binds a
``trace_id`` and the command name as structlog context variables, which
tags every line of one report build.
"""

from __future__ import annotations

import logging
import sys
import uuid
from typing import Any

import structlog

# Chatty at DEBUG and irrelevant to report output.
_QUIET_LOGGERS = ("asyncio", "aiosqlite", "asyncpg")


def get_trace_id() -> str:
    """Current trace ID, starting a new trace if none is bound."""
    tid = structlog.contextvars.get_contextvars().get("trace_id")
    return tid or new_trace_id()


def set_trace_id(trace_id: str) -> None:
    structlog.contextvars.bind_contextvars(trace_id=trace_id)


def new_trace_id(command: str | None = None) -> str:
    """Start a fresh trace, dropping context bound by the previous one."""
    tid = uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(trace_id=tid)
    if command:
        structlog.contextvars.bind_contextvars(command=command)
    return tid


def _ensure_trace_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: lines logged outside a trace still get one."""
    event_dict.setdefault("trace_id", get_trace_id())
    return event_dict


def setup_logging(
    level: str = "INFO",
    format: str = "json",
) -> None:
    """Route stdlib and structlog records through one stderr handler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: "json" for production, "console" for development.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _ensure_trace_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
