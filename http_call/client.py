"""HTTP request object with redirects, retries and continuation ranges."""

import json
import platform
import time
from collections.abc import Iterator
from types import TracebackType
from typing import Any, ClassVar, NoReturn, Self
from urllib.parse import urljoin, urlsplit

import httpx

from http_call.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_HTTP_PORT,
    DEFAULT_HTTPS_PORT,
    HEADER_CONTENT_LENGTH,
    HEADER_CONTENT_TYPE,
    HEADER_LOCATION,
    HEADER_NEXT_RANGE,
    HEADER_RANGE,
    HEADER_USER_AGENT,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    JSON_MEDIA_TYPE,
    MAX_REDIRECTS,
    PACKAGE_NAME,
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
from http_call.observability import get_logger, request_context
from http_call.proxy import proxy_for
from http_call.redact import redact_headers, redact_url_credentials
from http_call.retry import error_code
from http_call.settings import HttpCallSettings, get_settings
from http_call.state_machine import RequestState, RequestStateMachine


def default_user_agent(settings: HttpCallSettings) -> str:
    """Build the user-agent sent when the caller does not set one.

    Args:
        settings: Settings that may override the user-agent.

    Returns:
        User-agent string.
    """
    if settings.user_agent:
        return settings.user_agent
    return f"{PACKAGE_NAME}/{PACKAGE_VERSION} python-{platform.python_version()}"


def _is_stream(body: Any) -> bool:
    return hasattr(body, "read") or isinstance(body, Iterator)


def _stream_position(body: Any) -> int | None:
    """Return where a rewindable stream body starts, or None."""
    seekable = getattr(body, "seekable", None)
    if seekable is None or not seekable():
        return None
    position: int = body.tell()
    return position


def _media_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


class HTTP:
    """One logical HTTP exchange.

    Issues the request, then follows redirects, retries transient
    transport failures with exponential backoff, and keeps fetching
    ``next-range`` continuations for list bodies, all on the same
    instance. Use the class methods for the common cases:

        http = HTTP.get("https://api.example.com/apps")
        http.body  # decoded JSON

    ``HTTP.create(**defaults)`` returns a subclass with its own defaults,
    e.g. a host so callers can pass bare paths.
    """

    defaults: ClassVar[dict[str, Any]] = {
        "method": "GET",
        "host": "localhost",
        "protocol": "https:",
        "path": "/",
        "raw": False,
        "partial": False,
        "headers": {},
    }
    retry_policy: ClassVar[RetryPolicy] = RetryPolicy()

    @classmethod
    def create(cls, **options: Any) -> type[Self]:
        """Create a subclass whose defaults are merged with ``options``.

        Args:
            **options: Request options to use as defaults.

        Returns:
            New HTTP subclass.
        """
        defaults = {**cls.defaults, **options}
        return type(f"Custom{cls.__name__}", (cls,), {"defaults": defaults})

    @classmethod
    def get(cls, url: str, **options: Any) -> Self:
        """Make an HTTP GET request."""
        return cls.request(url, **{**options, "method": "GET"})

    @classmethod
    def post(cls, url: str, **options: Any) -> Self:
        """Make an HTTP POST request."""
        return cls.request(url, **{**options, "method": "POST"})

    @classmethod
    def put(cls, url: str, **options: Any) -> Self:
        """Make an HTTP PUT request."""
        return cls.request(url, **{**options, "method": "PUT"})

    @classmethod
    def patch(cls, url: str, **options: Any) -> Self:
        """Make an HTTP PATCH request."""
        return cls.request(url, **{**options, "method": "PATCH"})

    @classmethod
    def delete(cls, url: str, **options: Any) -> Self:
        """Make an HTTP DELETE request."""
        return cls.request(url, **{**options, "method": "DELETE"})

    @classmethod
    def stream(cls, url: str, **options: Any) -> Self:
        """Make a streaming request.

        A successful response body is left unread. Iterate it with
        ``iter_bytes()`` and call ``close()`` when done, or use the
        returned instance as a context manager.
        """
        return cls.request(url, **{**options, "raw": True})

    @classmethod
    def request(cls, url: str, **options: Any) -> Self:
        """Make a request and run it to completion.

        Args:
            url: URL, or path when a default host is configured.
            **options: Request options (method, headers, body, raw,
                partial, port, proxy, transport, timeout).

        Returns:
            The completed request.
        """
        http = cls(url, **options)
        with request_context():
            http._request()
        return http

    def __init__(self, url: str, **options: Any) -> None:
        """Initialize the request.

        Args:
            url: URL, or path when a default host is configured.
            **options: Request options merged over the class defaults.

        Raises:
            NoURLError: If url is empty.
            TypeError: If an option is unknown or the body cannot be encoded.
        """
        self.response: httpx.Response | None = None
        self.body: Any = None
        self._client: httpx.Client | None = None
        self._body_start: int | None = None
        self._redirect_retries = 0
        self._error_retries = 0
        self._state = RequestStateMachine()
        self._metrics = RequestMetrics.get_instance()
        self._settings = get_settings()
        self._log = get_logger()

        merged = {**self.defaults, **options}
        merged["headers"] = lowercase_headers(
            {HEADER_USER_AGENT: default_user_agent(self._settings)},
            self.defaults.get("headers"),
            options.get("headers"),
        )
        if merged.get("timeout") is None:
            merged["timeout"] = self._settings.timeout_seconds
        self.options = RequestOptions.from_dict(merged)

        if not url:
            raise NoURLError
        self.url = url
        if self.options.body is not None:
            self._serialize_body(self.options.body)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def state(self) -> RequestState:
        """Get the lifecycle state."""
        return self._state.state

    @property
    def method(self) -> str:
        return (self.options.method or "GET").upper()

    @property
    def status_code(self) -> int:
        if self.response is None:
            return 0
        return self.response.status_code

    @property
    def secure(self) -> bool:
        return self.options.protocol == "https:"

    @property
    def url(self) -> str:
        """Render the URL, omitting the port when it is the scheme default."""
        host = self.options.host
        if ":" in host:
            host = f"[{host}]"
        default_port = DEFAULT_HTTPS_PORT if self.secure else DEFAULT_HTTP_PORT
        if self.options.port and self.options.port != default_port:
            host = f"{host}:{self.options.port}"
        return f"{self.options.protocol}//{host}{self.options.path}"

    @url.setter
    def url(self, value: str) -> None:
        parts = urlsplit(value)
        if parts.scheme:
            self.options.protocol = f"{parts.scheme}:"
        self.options.host = parts.hostname or self.defaults.get("host") or "localhost"
        path = parts.path or "/"
        if parts.query:
            path = f"{path}?{parts.query}"
        self.options.path = path
        if self.options.proxy is None and self.options.transport is None:
            self.options.proxy = proxy_for(
                self.secure, self.options.host, self._settings
            )
        self.options.port = parts.port or (
            DEFAULT_HTTPS_PORT if self.secure else DEFAULT_HTTP_PORT
        )

    @property
    def headers(self) -> CaseInsensitiveHeaders:
        """Response headers; empty before a response is received."""
        if self.response is None:
            return CaseInsensitiveHeaders()
        return CaseInsensitiveHeaders(self.response.headers.items())

    @property
    def partial(self) -> bool:
        """Whether the body is final, with no continuation left to fetch."""
        if self.method != "GET" or self.options.partial:
            return True
        return not (
            self._first_header(HEADER_NEXT_RANGE) and isinstance(self.body, list)
        )

    def iter_bytes(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """Iterate over the response body.

        Args:
            chunk_size: Size of chunks to yield.

        Yields:
            Body chunks.
        """
        if self.response is None:
            return
        yield from self.response.iter_bytes(chunk_size=chunk_size)

    def close(self) -> None:
        """Release the response and its connection."""
        if self.response is not None:
            self.response.close()
        if self._client is not None:
            self._client.close()
            self._client = None

    def _request(self) -> None:
        self._state.to_sent()
        self._debug_request()
        try:
            self.response = self._perform_request()
            content = self._read_body()
        except httpx.TransportError as exc:
            self.close()
            self.response = None
            self._state.to_failed()
            self._log.debug(
                "transport_error",
                method=self.method,
                url=redact_url_credentials(self.url),
                error=str(exc),
            )
            self._maybe_retry(exc)
            return

        self._state.to_parsed()
        if content is None:
            self._metrics.record_response(self.status_code, 0)
        else:
            self._parse(content)
        self._debug_response()

        if self._response_redirect:
            self._redirect()
            return
        if not self._response_ok:
            self._fail(HTTPError(self))
        if self.partial:
            self._state.to_done()
        else:
            self._get_next_range()

    def _redirect(self) -> None:
        self._state.to_redirecting()
        self._redirect_retries += 1
        if self._redirect_retries > MAX_REDIRECTS:
            self._fail(RedirectLoopError(self.url))
        location = self._first_header(HEADER_LOCATION)
        if not location:
            self._fail(MissingLocationError(self.url))
        self._rewind_body()

        previous = self.url
        self.url = urljoin(previous, location)
        self._metrics.record_redirect()
        self._log.debug(
            "redirect",
            from_url=redact_url_credentials(previous),
            to_url=redact_url_credentials(self.url),
            status_code=self.status_code,
            attempt=self._redirect_retries,
        )
        self._request()

    def _maybe_retry(self, exc: httpx.TransportError) -> None:
        self._error_retries += 1
        code = error_code(exc)
        if not self.retry_policy.should_retry(code, self._error_retries):
            message = str(exc) or type(exc).__name__
            self._fail(
                RequestTransportError(message, code, self.method, self.url),
                cause=exc,
            )
        self._rewind_body(code, cause=exc)

        delay_ms = self.retry_policy.get_delay_ms(self._error_retries)
        self._state.to_retrying()
        self._metrics.record_retry()
        self._log.info(
            "retry_scheduled",
            method=self.method,
            url=redact_url_credentials(self.url),
            code=code,
            attempt=self._error_retries,
            delay_ms=round(delay_ms, 2),
        )
        self._wait(delay_ms)
        self._request()

    def _get_next_range(self) -> None:
        self._rewind_body()
        self._state.to_paginating()
        next_range = self._first_header(HEADER_NEXT_RANGE)
        self.options.headers[HEADER_RANGE] = next_range
        previous = self.body
        self._metrics.record_page()
        self._log.debug(
            "next_range",
            url=redact_url_credentials(self.url),
            range=next_range,
            items=len(previous),
        )
        self._request()
        page = self.body if isinstance(self.body, list) else [self.body]
        self.body = previous + page

    def _perform_request(self) -> httpx.Response:
        self.close()
        self.response = None
        client = httpx.Client(
            transport=self.options.transport,
            proxy=None if self.options.transport else self.options.proxy,
            timeout=self.options.timeout,
            follow_redirects=False,
            trust_env=False,
        )
        try:
            request = client.build_request(
                self.method,
                self.url,
                headers=self.options.headers.to_dict(),
                content=self.options.body,
            )
            response = client.send(request, stream=True)
        except Exception:
            client.close()
            raise
        self._client = client
        return response

    def _read_body(self) -> bytes | None:
        """Buffer the response body unless it is left to the caller."""
        if self.response is None or not self._should_parse_response_body:
            return None
        content = self.response.read()
        self.close()
        return content

    def _rewind_body(
        self,
        code: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        body = self.options.body
        if not _is_stream(body):
            return
        if self._body_start is None:
            self._fail(
                BodyNotReplayableError(code, self.method, self.url),
                cause=cause,
            )
        body.seek(self._body_start)

    def _parse(self, content: bytes) -> None:
        if self.response is None:
            return
        self._metrics.record_response(self.status_code, len(content))
        text = self.response.text

        self.body = text
        content_type = self.response.headers.get(HEADER_CONTENT_TYPE)
        if not (content_type and text):
            return
        if not _media_type(content_type).startswith(JSON_MEDIA_TYPE):
            return
        try:
            self.body = json.loads(text)
        except json.JSONDecodeError as exc:
            self._fail(
                ResponseParseError(
                    f"Invalid JSON in response from {self.method} {self.url}: {exc}",
                    url=self.url,
                    body=text,
                ),
                cause=exc,
            )

    def _serialize_body(self, body: Any) -> None:
        if _is_stream(body):
            self.options.body = body
            self._body_start = _stream_position(body)
            return

        headers = self.options.headers
        if HEADER_CONTENT_TYPE not in headers:
            headers[HEADER_CONTENT_TYPE] = JSON_MEDIA_TYPE

        if headers[HEADER_CONTENT_TYPE] == JSON_MEDIA_TYPE and not isinstance(
            body, bytes
        ):
            encoded: str | bytes = json.dumps(body)
        elif isinstance(body, (str, bytes)):
            encoded = body
        else:
            msg = (
                f"Cannot encode body of type {type(body).__name__} "
                f"as {headers[HEADER_CONTENT_TYPE]}"
            )
            raise TypeError(msg)

        self.options.body = encoded
        size = len(encoded.encode("utf-8")) if isinstance(encoded, str) else len(encoded)
        headers[HEADER_CONTENT_LENGTH] = str(size)

    def _fail(
        self,
        error: HTTPCallError,
        cause: BaseException | None = None,
    ) -> NoReturn:
        if self._state.state is not RequestState.FAILED:
            self._state.to_failed()
        self._metrics.record_failure(type(error).__name__)
        self._log.info(
            "request_failed",
            method=self.method,
            url=redact_url_credentials(self.url),
            status_code=self.status_code,
            error_type=type(error).__name__,
            error=str(error),
        )
        if cause is not None:
            raise error from cause
        raise error

    def _first_header(self, name: str) -> str | None:
        if self.response is None:
            return None
        values = self.response.headers.get_list(name)
        return values[0] if values else None

    def _debug_request(self) -> None:
        proxy = self.options.proxy
        self._log.debug(
            "request_start",
            method=self.method,
            url=redact_url_credentials(self.url),
            headers=redact_headers(self.options.headers),
            proxy=redact_url_credentials(proxy) if proxy else None,
        )
        if isinstance(self.options.body, (str, bytes)):
            self._log.debug("request_body", body=self.options.body)

    def _debug_response(self) -> None:
        self._log.debug(
            "response_received",
            method=self.method,
            url=redact_url_credentials(self.url),
            status_code=self.status_code,
            headers=redact_headers(self.headers),
        )
        if self.body is not None:
            self._log.debug("response_body", body=self.body)

    @property
    def _response_ok(self) -> bool:
        if self.response is None:
            return False
        return HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX

    @property
    def _response_redirect(self) -> bool:
        if self.response is None:
            return False
        return self.status_code in REDIRECT_STATUS_CODES

    @property
    def _should_parse_response_body(self) -> bool:
        return not self._response_ok or not self.options.raw

    def _wait(self, ms: float) -> None:
        time.sleep(ms / 1000.0)
