"""Shared fixtures for http-call tests."""

from collections.abc import Callable, Generator

import httpx
import pytest

from http_call.client import HTTP
from http_call.metrics import RequestMetrics


_ENV_VARS = (
    "HTTP_CALL_USER_AGENT",
    "HTTP_CALL_TIMEOUT",
    "HTTPS_PROXY",
    "HTTP_PROXY",
    "NO_PROXY",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Isolate tests from proxy and settings environment variables."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(name.lower(), raising=False)
    RequestMetrics.reset()
    yield
    RequestMetrics.reset()


@pytest.fixture
def waits(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record backoff delays instead of sleeping."""
    delays: list[float] = []

    def fake_wait(self: HTTP, ms: float) -> None:  # noqa: ARG001
        delays.append(ms)

    monkeypatch.setattr(HTTP, "_wait", fake_wait)
    return delays


Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def make_transport() -> Callable[[Handler], RecordingTransport]:
    """Build a recording mock transport from a request handler."""
    return RecordingTransport
