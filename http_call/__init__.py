"""Minimal HTTP client with JSON bodies, redirects, retries and pagination.

This package provides a thin request object over httpx with:
- Convenience methods for GET/POST/PUT/PATCH/DELETE and streaming
- Automatic JSON encoding of request bodies and decoding of responses
- Case-insensitive header handling
- Redirect following with a loop limit
- Transient transport error retry with exponential backoff
- Pagination through the Next-Range continuation header
"""

from http_call.client import HTTP, default_user_agent
from http_call.constants import (
    MAX_ERROR_RETRIES,
    MAX_REDIRECTS,
    PACKAGE_VERSION,
    REDIRECT_STATUS_CODES,
)
from http_call.errors import (
    BodyNotReplayableError,
    HTTPCallError,
    HTTPError,
    MissingLocationError,
    NoURLError,
    RedirectLoopError,
    RequestTransportError,
    ResponseParseError,
)
from http_call.headers import CaseInsensitiveHeaders, lowercase_headers
from http_call.metrics import RequestMetrics
from http_call.models import RequestOptions, RetryPolicy
from http_call.observability import configure_logging
from http_call.state_machine import (
    RequestState,
    RequestStateMachine,
    RequestStateTransitionError,
)


__version__ = PACKAGE_VERSION

__all__ = [
    # Client
    "HTTP",
    "default_user_agent",
    # Headers
    "CaseInsensitiveHeaders",
    "lowercase_headers",
    # Models
    "RequestOptions",
    "RetryPolicy",
    # Errors
    "BodyNotReplayableError",
    "HTTPCallError",
    "HTTPError",
    "MissingLocationError",
    "NoURLError",
    "RedirectLoopError",
    "RequestTransportError",
    "ResponseParseError",
    # Lifecycle
    "RequestState",
    "RequestStateMachine",
    "RequestStateTransitionError",
    # Constants
    "MAX_ERROR_RETRIES",
    "MAX_REDIRECTS",
    "REDIRECT_STATUS_CODES",
    # Logging
    "configure_logging",
    # Metrics
    "RequestMetrics",
]
