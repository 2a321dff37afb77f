"""Data models for the request lifecycle."""

import random
from dataclasses import dataclass, field, fields
from typing import Annotated, Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from http_call.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_JITTER_MS,
    MAX_ERROR_RETRIES,
)
from http_call.headers import CaseInsensitiveHeaders


DNS_NOT_FOUND_CODE = "ENOTFOUND"

# Transport error codes worth another attempt
RETRYABLE_ERROR_CODES = frozenset(
    {
        "ETIMEDOUT",
        "ECONNRESET",
        "EADDRINUSE",
        "ESOCKETTIMEDOUT",
        "ECONNREFUSED",
        "EPIPE",
        "EHOSTUNREACH",
        "EAI_AGAIN",
    }
)


@dataclass
class RequestOptions:
    """Options for one logical HTTP exchange.

    Mutated in place while the request follows redirects and
    continuation ranges, so the instance always reflects the next
    request to be issued.
    """

    method: str = "GET"
    headers: CaseInsensitiveHeaders = field(default_factory=CaseInsensitiveHeaders)
    protocol: str = "https:"
    host: str = "localhost"
    port: int | None = None
    path: str = "/"
    body: Any = None
    raw: bool = False
    partial: bool = False
    proxy: str | None = None
    transport: httpx.BaseTransport | None = None
    timeout: float | None = None

    @classmethod
    def field_names(cls) -> frozenset[str]:
        """Names accepted as request options."""
        return frozenset(f.name for f in fields(cls))

    @classmethod
    def from_dict(cls, options: dict[str, Any]) -> "RequestOptions":
        """Build options from a merged options dict.

        Args:
            options: Option name to value.

        Returns:
            RequestOptions instance.

        Raises:
            TypeError: If an unknown option name is given.
        """
        unknown = set(options) - cls.field_names()
        if unknown:
            msg = f"Unknown request options: {', '.join(sorted(unknown))}"
            raise TypeError(msg)
        return cls(**options)


class RetryPolicy(BaseModel):
    """Configuration for transport error retries.

    Uses exponential backoff with additive jitter:
    delay = base_delay_ms * (exponential_base ^ retry) + uniform(0, jitter_ms)
    where ``retry`` is the 1-based retry number.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: Annotated[int, Field(ge=0, le=10)] = MAX_ERROR_RETRIES
    base_delay_ms: Annotated[int, Field(ge=0, le=60000)] = DEFAULT_BASE_DELAY_MS
    exponential_base: Annotated[float, Field(ge=1.0, le=5.0)] = 2.0
    jitter_ms: Annotated[int, Field(ge=0, le=60000)] = DEFAULT_JITTER_MS
    retryable_codes: frozenset[str] = RETRYABLE_ERROR_CODES

    def should_retry(self, code: str | None, retry: int) -> bool:
        """Determine if a transport error should be retried.

        Args:
            code: Error code of the transport failure, if known.
            retry: Retry number this would be (1-based).

        Returns:
            True if the request should be reissued.
        """
        if retry > self.max_retries:
            return False
        if not code:
            return False
        if code == DNS_NOT_FOUND_CODE:
            return True
        return code in self.retryable_codes

    def get_delay_ms(self, retry: int) -> float:
        """Calculate delay before a retry.

        Args:
            retry: Retry number (1-based).

        Returns:
            Delay in milliseconds.
        """
        delay = self.base_delay_ms * (self.exponential_base**retry)
        jitter = self.jitter_ms * random.random()  # noqa: S311
        return delay + jitter
