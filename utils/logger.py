"""
Structured logging for the telemetry engine.

structlog over stdlib logging: JSON lines when `log_json` is set, a
readable console renderer otherwise. Raw query text must never be
written out: pass `query_digest` and a processor swaps any `query`
field for its digest. Without one, `query` fields are dropped.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Callable, MutableMapping, Optional

import structlog


Processor = Callable[[Any, str, MutableMapping[str, Any]], MutableMapping[str, Any]]


def redact_query(digest: Optional[Callable[[str], str]] = None) -> Processor:
    """Build a processor that replaces raw query text with `digest(query)`."""

    def _redact(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        query = event_dict.pop("query", None)
        if isinstance(query, str) and digest is not None:
            event_dict["query_hash"] = digest(query)
        return event_dict

    return _redact


def setup_logging(
    *,
    level: str = "INFO",
    json_output: bool = False,
    query_digest: Optional[Callable[[str], str]] = None,
) -> None:
    """
    Call once at process startup. Configures both stdlib logging
    and structlog in one shot.
    """
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_query(query_digest),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a named, bound logger."""
    return structlog.get_logger(name)
