"""Transport error classification for retry decisions."""

import errno
import socket
import ssl

import httpx

from http_call.models import DNS_NOT_FOUND_CODE


def _exception_chain(exc: BaseException) -> list[BaseException]:
    """Return the exception followed by its explicit causes."""
    chain: list[BaseException] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        chain.append(current)
        current = current.__cause__
    return chain


def _os_error_code(exc: BaseException) -> str | None:
    if isinstance(exc, socket.gaierror):
        if exc.errno == socket.EAI_AGAIN:
            return "EAI_AGAIN"
        return DNS_NOT_FOUND_CODE
    if isinstance(exc, ssl.SSLCertVerificationError):
        return "CERT_VERIFICATION_FAILED"
    if isinstance(exc, ssl.SSLError):
        return "ESSL"
    if isinstance(exc, TimeoutError):
        return "ETIMEDOUT"
    if isinstance(exc, OSError) and exc.errno is not None:
        return errno.errorcode.get(exc.errno)
    return None


def error_code(exc: BaseException) -> str | None:
    """Derive a network error code from a transport exception.

    Walks the exception chain looking for the OS-level failure httpx
    wrapped (DNS lookup, refused connection, reset, timeout, TLS). When
    none is found the httpx exception type decides.

    Args:
        exc: Exception raised while issuing the request.

    Returns:
        Error code such as ``ECONNRESET``, or None when unknown.
    """
    for link in _exception_chain(exc):
        code = _os_error_code(link)
        if code:
            return code

    if isinstance(exc, httpx.TimeoutException):
        return "ETIMEDOUT"
    if isinstance(exc, httpx.RemoteProtocolError):
        return "ECONNRESET"
    return None

