"""Metrics collection for the request lifecycle."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class RequestMetrics:
    """Metrics for HTTP requests.

    Singleton class that tracks request counts by status, retries,
    redirects, continuation pages and failures.
    """

    http_requests_total: dict[int, int] = field(default_factory=dict)
    http_retry_total: int = 0
    http_redirect_total: int = 0
    http_pages_total: int = 0
    http_failures_total: dict[str, int] = field(default_factory=dict)
    http_bytes_total: int = 0

    _instance: ClassVar["RequestMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "RequestMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_response(self, status_code: int, bytes_received: int) -> None:
        """Record a received response.

        Args:
            status_code: HTTP status code.
            bytes_received: Number of body bytes buffered.
        """
        self.http_requests_total[status_code] = (
            self.http_requests_total.get(status_code, 0) + 1
        )
        self.http_bytes_total += bytes_received

    def record_retry(self) -> None:
        """Record a retry attempt."""
        self.http_retry_total += 1

    def record_redirect(self) -> None:
        """Record a followed redirect."""
        self.http_redirect_total += 1

    def record_page(self) -> None:
        """Record a continuation range fetch."""
        self.http_pages_total += 1

    def record_failure(self, error_type: str) -> None:
        """Record a request failure.

        Args:
            error_type: Name of the error raised.
        """
        self.http_failures_total[error_type] = (
            self.http_failures_total.get(error_type, 0) + 1
        )

    def to_dict(self) -> dict[str, int | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "http_requests_total": dict(self.http_requests_total),
            "http_retry_total": self.http_retry_total,
            "http_redirect_total": self.http_redirect_total,
            "http_pages_total": self.http_pages_total,
            "http_failures_total": dict(self.http_failures_total),
            "http_bytes_total": self.http_bytes_total,
        }
