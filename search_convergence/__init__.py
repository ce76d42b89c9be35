"""
Search Convergence

Checks that a package change reaches every replica of a distributed search
tier within a bounded time, retrying through transient network failures and
replica scale events.
"""

__version__ = "0.1.0"

from .core.config import Config
from .core.errors import ConfigurationError, ConvergenceError
from .core.models import PollOutcome, SearchServiceProperties
from .search.client import SearchClient
from .search.coordinator import ConvergenceCoordinator

__all__ = [
    "Config",
    "ConfigurationError",
    "ConvergenceError",
    "ConvergenceCoordinator",
    "PollOutcome",
    "SearchClient",
    "SearchServiceProperties",
]
