"""Unit tests for streamed request bodies across retries and redirects."""

import errno
import io
from collections.abc import Callable

import httpx
import pytest

from http_call.client import HTTP
from http_call.errors import BodyNotReplayableError, RequestTransportError
from http_call.state_machine import RequestState


def refused() -> httpx.ConnectError:
    """Build a connect error caused by a refused connection."""
    error = httpx.ConnectError("[Errno 111] Connection refused")
    error.__cause__ = ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")
    return error


def refuse_first(bodies: list[bytes]) -> Callable:
    """Create a handler that records bodies and refuses the first attempt."""

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.content)
        if len(bodies) == 1:
            raise refused()
        return httpx.Response(200, json={"ok": True})

    return handler


def redirect_first(bodies: list[bytes]) -> Callable:
    """Create a handler that records bodies and redirects the first attempt."""

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.content)
        if request.url.path == "/upload":
            return httpx.Response(307, headers={"Location": "/upload/v2"})
        return httpx.Response(200, json={"ok": True})

    return handler


class TestIteratorBodies:
    """Tests for iterator bodies, which can only be sent once."""

    def test_single_attempt_is_sent(self, make_transport: Callable) -> None:
        """Test that an iterator body is streamed on the first attempt."""
        bodies: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.content)
            return httpx.Response(200, json={"ok": True})

        http = HTTP.post(
            "https://example.com/upload",
            body=iter([b"hello ", b"world"]),
            transport=make_transport(handler),
        )

        assert bodies == [b"hello world"]
        assert http.state == RequestState.DONE

    def test_retry_is_refused(self, make_transport: Callable, waits: list) -> None:
        """Test that a consumed iterator is not resent after a transport failure."""
        bodies: list[bytes] = []
        transport = make_transport(refuse_first(bodies))

        with pytest.raises(BodyNotReplayableError) as exc_info:
            HTTP.post(
                "https://example.com/upload",
                body=iter([b"hello ", b"world"]),
                transport=transport,
            )

        error = exc_info.value
        assert isinstance(error, RequestTransportError)
        assert error.code == "ECONNREFUSED"
        assert error.method == "POST"
        assert isinstance(error.__cause__, httpx.ConnectError)
        assert bodies == [b"hello world"]
        assert waits == []

    def test_redirect_is_refused(self, make_transport: Callable) -> None:
        """Test that a consumed iterator is not resent to a redirect target."""
        bodies: list[bytes] = []
        transport = make_transport(redirect_first(bodies))

        with pytest.raises(BodyNotReplayableError) as exc_info:
            HTTP.post(
                "https://example.com/upload",
                body=iter([b"hello ", b"world"]),
                transport=transport,
            )

        assert exc_info.value.code is None
        assert exc_info.value.url == "https://example.com/upload"
        assert bodies == [b"hello world"]


class TestSeekableBodies:
    """Tests for file-like bodies that can be rewound."""

    def test_retry_resends_whole_body(
        self, make_transport: Callable, waits: list
    ) -> None:
        """Test that a seekable body is rewound before a retry."""
        bodies: list[bytes] = []
        transport = make_transport(refuse_first(bodies))

        http = HTTP.post(
            "https://example.com/upload",
            body=io.BytesIO(b"hello world"),
            transport=transport,
        )

        assert bodies == [b"hello world", b"hello world"]
        assert http.body == {"ok": True}
        assert len(waits) == 1

    def test_redirect_resends_whole_body(self, make_transport: Callable) -> None:
        """Test that a seekable body is rewound before following a redirect."""
        bodies: list[bytes] = []
        transport = make_transport(redirect_first(bodies))

        http = HTTP.post(
            "https://example.com/upload",
            body=io.BytesIO(b"hello world"),
            transport=transport,
        )

        assert bodies == [b"hello world", b"hello world"]
        assert http.url == "https://example.com/upload/v2"

    def test_rewinds_to_starting_offset(
        self, make_transport: Callable, waits: list
    ) -> None:
        """Test that a body handed over mid-file is resent from that offset."""
        bodies: list[bytes] = []
        transport = make_transport(refuse_first(bodies))
        stream = io.BytesIO(b"skip:payload")
        stream.seek(5)

        HTTP.post("https://example.com/upload", body=stream, transport=transport)

        assert bodies == [b"payload", b"payload"]
        assert len(waits) == 1
