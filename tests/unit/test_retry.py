"""
Test transient error classification and the retry policy
"""
import asyncio
import socket
import ssl
import pytest
import aiohttp
from search_convergence.core.errors import ConfigurationError, ConvergenceError
from search_convergence.search.retry import RetryPolicy, is_transient_error


def _chained(cause: Exception) -> Exception:
    try:
        try:
            raise cause
        except Exception as e:
            raise RuntimeError("wrapped") from e
    except RuntimeError as wrapped:
        return wrapped


class TestTransientClassification:
    """Test which errors are retried"""

    @pytest.mark.parametrize("error", [
        ConnectionResetError(),
        socket.gaierror("name resolution failed"),
        asyncio.TimeoutError(),
        aiohttp.ServerTimeoutError(),
        aiohttp.ServerDisconnectedError(),
    ])
    def test_transient(self, error):
        assert is_transient_error(error)

    @pytest.mark.parametrize("error", [
        ConvergenceError("not found", url="https://x", elapsed=1.0),
        ConfigurationError("bad"),
        ValueError("bad payload"),
        AssertionError(),
        FileNotFoundError("config.json"),
        PermissionError(),
        ssl.SSLCertVerificationError("certificate verify failed"),
    ])
    def test_fatal(self, error):
        assert not is_transient_error(error)

    def test_transient_cause(self):
        """Test a socket error found in the cause chain counts"""
        assert is_transient_error(_chained(ConnectionRefusedError()))
        assert not is_transient_error(_chained(KeyError("x")))

    def test_certificate_failure_is_fatal(self):
        """Test a connection error caused by certificate verification is not retried"""
        try:
            try:
                raise ssl.SSLCertVerificationError("certificate verify failed")
            except ssl.SSLError as e:
                raise aiohttp.ClientConnectionError("cannot connect") from e
        except aiohttp.ClientConnectionError as error:
            assert not is_transient_error(error)


class TestRetryPolicy:
    """Test whole-operation retries"""

    def setup_method(self):
        self.policy = RetryPolicy(max_attempts=3, backoff_seconds=0)
        self.calls = 0

    def _operation(self, *errors):
        async def operation():
            self.calls += 1
            if self.calls <= len(errors):
                raise errors[self.calls - 1]
            return "done"
        return operation

    def test_success_after_transient(self):
        result = asyncio.run(self.policy.run(self._operation(ConnectionResetError())))

        assert result == "done"
        assert self.calls == 2

    def test_fatal_not_retried(self):
        error = ValueError("fatal")

        with pytest.raises(ValueError) as exc_info:
            asyncio.run(self.policy.run(self._operation(error)))

        assert exc_info.value is error
        assert self.calls == 1

    def test_exhausted_raises_last_error(self):
        errors = [ConnectionResetError("1"), ConnectionResetError("2"), ConnectionResetError("3")]

        with pytest.raises(ConnectionResetError) as exc_info:
            asyncio.run(self.policy.run(self._operation(*errors)))

        assert exc_info.value is errors[-1]
        assert self.calls == 3

    def test_custom_classifier(self):
        policy = RetryPolicy(max_attempts=2, backoff_seconds=0, classifier=lambda e: isinstance(e, KeyError))

        result = asyncio.run(policy.run(self._operation(KeyError("retry me"))))

        assert result == "done"
        assert self.calls == 2
