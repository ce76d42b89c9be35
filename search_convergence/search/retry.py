"""
Retry of whole convergence attempts on transient failures
"""
import asyncio
import logging
import socket
import ssl
from typing import Awaitable, Callable, Optional, TypeVar
import aiohttp
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)
from search_convergence.core.config import RetryConfig
from search_convergence.core.errors import iter_exception_chain

T = TypeVar("T")

TRANSIENT_ERROR_TYPES = (
    ConnectionError,
    socket.gaierror,
    aiohttp.ClientConnectionError,
    asyncio.TimeoutError,
)

# Certificate and handshake failures do not go away on a retry
FATAL_ERROR_TYPES = (
    ssl.SSLError,
    aiohttp.ClientSSLError,
)


def is_transient_error(error: BaseException) -> bool:
    """
    Classify an error as worth retrying

    Socket failures and timeouts are transient wherever they appear in the
    cause chain, unless an SSL failure appears there too. Anything else,
    including assertion failures, is fatal.
    """
    chain = list(iter_exception_chain(error))
    if any(isinstance(e, FATAL_ERROR_TYPES) for e in chain):
        return False
    return any(isinstance(e, TRANSIENT_ERROR_TYPES) for e in chain)


class RetryPolicy:
    """
    Runs an async operation again from scratch while it fails transiently
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_seconds: float = 5.0,
        classifier: Callable[[BaseException], bool] = is_transient_error,
        logger: Optional[logging.Logger] = None
    ):
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.classifier = classifier
        self.logger = logger or logging.getLogger("RetryPolicy")

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(max_attempts=config.max_attempts, backoff_seconds=config.backoff_seconds)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Await ``operation()`` until it succeeds, fails fatally or runs out of attempts

        Returns:
            Result of the first successful attempt

        Raises:
            The last error when it is fatal or the attempts are exhausted
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.backoff_seconds),
            retry=retry_if_exception(self.classifier),
            before_sleep=before_sleep_log(self.logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await operation()
        raise RuntimeError("unreachable")  # pragma: no cover
