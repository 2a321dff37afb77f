"""Unit tests for retry policy decisions."""

import errno
import socket
import ssl

import httpx
import pytest

from http_call.models import RETRYABLE_ERROR_CODES, RetryPolicy
from http_call.retry import error_code


def wrapped(cause: BaseException, message: str = "failed") -> httpx.ConnectError:
    """Wrap an OS error the way httpx chains transport failures."""
    error = httpx.ConnectError(message)
    error.__cause__ = cause
    return error


class TestRetryPolicy:
    """Tests for RetryPolicy model."""

    def test_default_values(self) -> None:
        """Test default retry policy values."""
        policy = RetryPolicy()

        assert policy.max_retries == 5
        assert policy.base_delay_ms == 100
        assert policy.exponential_base == 2.0
        assert policy.jitter_ms == 100
        assert policy.retryable_codes == RETRYABLE_ERROR_CODES

    def test_policy_is_frozen(self) -> None:
        """Test that policies cannot be mutated."""
        policy = RetryPolicy()

        with pytest.raises(ValueError):
            policy.max_retries = 1  # type: ignore[misc]

    def test_max_retries_bounds(self) -> None:
        """Test that max_retries is validated."""
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=11)


class TestShouldRetry:
    """Tests for retry decision logic."""

    @pytest.fixture
    def policy(self) -> RetryPolicy:
        """Create the default retry policy."""
        return RetryPolicy()

    @pytest.mark.parametrize("code", sorted(RETRYABLE_ERROR_CODES))
    def test_allow_listed_codes(self, policy: RetryPolicy, code: str) -> None:
        """Test that allow-listed codes are retried."""
        assert policy.should_retry(code, retry=1) is True

    def test_dns_not_found(self, policy: RetryPolicy) -> None:
        """Test that DNS not-found is retried."""
        assert policy.should_retry("ENOTFOUND", retry=1) is True

    def test_stops_after_max_retries(self, policy: RetryPolicy) -> None:
        """Test that the sixth retry is refused."""
        assert policy.should_retry("ECONNRESET", retry=5) is True
        assert policy.should_retry("ECONNRESET", retry=6) is False

    def test_no_code(self, policy: RetryPolicy) -> None:
        """Test that errors without a code are never retried."""
        assert policy.should_retry(None, retry=1) is False
        assert policy.should_retry("", retry=1) is False

    @pytest.mark.parametrize(
        "code", ["ENETUNREACH", "CERT_VERIFICATION_FAILED", "ESSL", "EACCES"]
    )
    def test_other_codes(self, policy: RetryPolicy, code: str) -> None:
        """Test that codes outside the allow-list are not retried."""
        assert policy.should_retry(code, retry=1) is False


class TestGetDelayMs:
    """Tests for backoff delay calculation."""

    def test_exponential_with_jitter(self) -> None:
        """Test that delays double and stay within the jitter window."""
        policy = RetryPolicy()

        for retry in range(1, 6):
            delay = policy.get_delay_ms(retry)
            assert (2**retry) * 100 <= delay < (2**retry) * 100 + 100

    def test_no_jitter(self) -> None:
        """Test exact delays when jitter is disabled."""
        policy = RetryPolicy(base_delay_ms=50, jitter_ms=0)

        assert policy.get_delay_ms(1) == 100.0
        assert policy.get_delay_ms(3) == 400.0


class TestErrorCode:
    """Tests for deriving error codes from transport exceptions."""

    def test_refused(self) -> None:
        """Test ECONNREFUSED from a refused connection."""
        error = wrapped(ConnectionRefusedError(errno.ECONNREFUSED, "refused"))

        assert error_code(error) == "ECONNREFUSED"

    def test_reset(self) -> None:
        """Test ECONNRESET from a reset connection."""
        error = wrapped(ConnectionResetError(errno.ECONNRESET, "reset"))

        assert error_code(error) == "ECONNRESET"

    def test_dns_not_found(self) -> None:
        """Test ENOTFOUND from a failed name lookup."""
        error = wrapped(socket.gaierror(socket.EAI_NONAME, "unknown"))

        assert error_code(error) == "ENOTFOUND"

    def test_dns_try_again(self) -> None:
        """Test EAI_AGAIN from a temporary lookup failure."""
        error = wrapped(socket.gaierror(socket.EAI_AGAIN, "try again"))

        assert error_code(error) == "EAI_AGAIN"

    def test_nested_cause(self) -> None:
        """Test that the chain is walked through intermediate wrappers."""
        middle = RuntimeError("transport layer")
        middle.__cause__ = ConnectionResetError(errno.ECONNRESET, "reset")

        assert error_code(wrapped(middle)) == "ECONNRESET"

    def test_certificate(self) -> None:
        """Test that certificate failures get a non-retryable code."""
        error = wrapped(ssl.SSLCertVerificationError("verify failed"))

        assert error_code(error) == "CERT_VERIFICATION_FAILED"

    def test_socket_timeout(self) -> None:
        """Test ETIMEDOUT from a socket timeout."""
        error = httpx.ConnectTimeout("timed out")
        error.__cause__ = TimeoutError("timed out")

        assert error_code(error) == "ETIMEDOUT"

    def test_httpx_timeout_without_cause(self) -> None:
        """Test ETIMEDOUT from an httpx timeout alone."""
        assert error_code(httpx.PoolTimeout("pool")) == "ETIMEDOUT"

    def test_remote_protocol_error(self) -> None:
        """Test that a dropped connection counts as a reset."""
        assert error_code(httpx.RemoteProtocolError("closed")) == "ECONNRESET"

    def test_unknown(self) -> None:
        """Test that unclassified errors have no code."""
        assert error_code(httpx.ReadError("boom")) is None

    def test_context_is_ignored(self) -> None:
        """Test that only explicit causes are followed."""
        error = httpx.ReadError("boom")
        error.__context__ = ConnectionResetError(errno.ECONNRESET, "reset")

        assert error_code(error) is None

