"""Structured logging for http-call.

The library logs through structlog and leaves configuration to the
application. Call ``configure_logging`` once at startup to render the
request lifecycle events; request and response details are logged at
DEBUG.
"""

import logging
import sys
import uuid
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any, TextIO

import structlog

from http_call.redact import REDACTED_VALUE, is_sensitive_header


COMPONENT = "http"


def redact_sensitive_fields(
    _logger: Any,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Processor that masks fields named after sensitive headers.

    Catches values bound directly on a logger, e.g.
    ``log.bind(authorization=token)``, which bypass header redaction.
    """
    for key in event_dict:
        if is_sensitive_header(key.replace("_", "-")):
            event_dict[key] = REDACTED_VALUE
    return event_dict


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.upper())
    if resolved is None:
        msg = f"Unknown log level: {level}"
        raise ValueError(msg)
    return resolved


def configure_logging(
    level: int | str = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structlog to render http-call events.

    Args:
        level: Logging level, as a number or a name such as ``"DEBUG"``.
        output: Output stream (default: stderr).
        json_format: Whether to use JSON format (default: True).

    Raises:
        ValueError: If the level name is unknown.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_sensitive_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )


def get_logger(**context: Any) -> structlog.stdlib.BoundLogger:
    """Get a logger bound to the http component.

    Args:
        **context: Extra key/value pairs bound to every event.

    Returns:
        Lazily configured bound logger.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(
        component=COMPONENT, **context
    )
    return logger


@contextmanager
def request_context() -> Iterator[str]:
    """Tag every event logged inside the block with one request id.

    Redirects, retries and continuation fetches of a single call share
    the id.

    Yields:
        The request id.
    """
    request_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(request_id=request_id):
        yield request_id
