"""Observability module for logging."""

from http_call.observability.logging import (
    configure_logging,
    get_logger,
    redact_sensitive_fields,
    request_context,
)


__all__ = [
    "configure_logging",
    "get_logger",
    "redact_sensitive_fields",
    "request_context",
]
