"""
Error types for search convergence checks
"""
from typing import Optional


class SearchConvergenceError(Exception):
    """Base class for errors raised by this package"""


class ConfigurationError(SearchConvergenceError):
    """Raised when the search topology configuration cannot be used"""


class ServiceMappingError(ConfigurationError):
    """Raised when a discovered search host has no configured cloud service"""

    def __init__(self, host: str):
        super().__init__(f"index_json_mapped_search_services doesn't contain map for service {host}")
        self.host = host


class ManagementApiError(SearchConvergenceError):
    """Raised when the management API returns a document we cannot read"""


class ConvergenceError(AssertionError):
    """
    Raised when a replica did not satisfy the completion predicate in time.

    This is an assertion failure, not an infrastructure failure, so it is
    never retried.
    """

    def __init__(self, message: str, url: str, elapsed: float):
        super().__init__(message)
        self.url = url
        self.elapsed = elapsed


def iter_exception_chain(error: Optional[BaseException]):
    """Yield an exception followed by its causes and contexts"""
    seen = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))
        yield error
        error = error.__cause__ or error.__context__
