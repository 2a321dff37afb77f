"""Error types for http-call."""

from pprint import pformat
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from http_call.client import HTTP


class HTTPCallError(Exception):
    """Base exception for all http-call errors."""


class NoURLError(HTTPCallError, ValueError):
    """Raised when a request is constructed without a URL."""

    def __init__(self) -> None:
        super().__init__("no url provided")


class RequestTransportError(HTTPCallError):
    """Transport failure that was not retried, or ran out of retries.

    Attributes:
        code: Error code derived from the underlying failure, if any.
        method: Request method.
        url: Request URL.
    """

    def __init__(self, message: str, code: str | None, method: str, url: str) -> None:
        super().__init__(message)
        self.code = code
        self.method = method
        self.url = url


class BodyNotReplayableError(RequestTransportError):
    """Raised when a streamed request body would have to be sent twice.

    Iterators and unseekable file objects are consumed by the first
    attempt, so a retry or redirect cannot resend them.
    """

    def __init__(self, code: str | None, method: str, url: str) -> None:
        super().__init__(
            f"Cannot resend streamed request body for {method} {url}",
            code,
            method,
            url,
        )


class RedirectLoopError(HTTPCallError):
    """Raised when a request follows too many redirects."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Redirect loop at {url}")


class MissingLocationError(HTTPCallError):
    """Raised when a redirect response has no location header."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Redirect from {url} has no location header")


class ResponseParseError(HTTPCallError):
    """Raised when a JSON response body cannot be decoded."""

    def __init__(self, message: str, url: str, body: str) -> None:
        super().__init__(message)
        self.url = url
        self.body = body


class HTTPError(HTTPCallError):
    """Non-2xx HTTP response.

    Attributes:
        status_code: HTTP status code of the response.
        body: Response body, parsed when it was JSON.
        http: The request that failed.
    """

    def __init__(self, http: "HTTP") -> None:
        self.status_code = http.status_code
        self.body = http.body
        self.http = http
        self.message = (
            f"HTTP Error {http.status_code} for {http.method} {http.url}\n"
            f"{_describe_body(http.body)}"
        )
        super().__init__(self.message)


def _describe_body(body: Any) -> str:
    if isinstance(body, str):
        return body
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"] or pformat(body)
    return pformat(body)
