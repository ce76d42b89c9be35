"""
Search client: queries search services and checks that changes reach them
"""
import logging
from typing import List, Optional
from yarl import URL
from search_convergence.clients.http import JsonHttpClient
from search_convergence.clients.index import ServiceIndexClient
from search_convergence.clients.management import ManagementApiClient
from search_convergence.core.config import Config
from search_convergence.core.models import (
    AutocompleteResponse,
    PollOutcome,
    SearchServiceProperties,
    V3SearchResponse,
)
from .coordinator import ConvergenceCoordinator
from .poller import ReplicaPoller
from .query import build_autocomplete_query
from .retry import RetryPolicy
from .topology import TopologyProvider


class SearchClient:
    """
    Entry point for search checks against a search tier
    """

    def __init__(
        self,
        http_client: JsonHttpClient,
        topology: TopologyProvider,
        coordinator: ConvergenceCoordinator
    ):
        self.http_client = http_client
        self.topology = topology
        self.coordinator = coordinator
        self.logger = logging.getLogger("SearchClient")

    @classmethod
    def from_config(cls, config: Config, http_client: Optional[JsonHttpClient] = None) -> "SearchClient":
        """Wire up a client from configuration"""
        http_client = http_client or JsonHttpClient(timeout=config.polling.request_timeout_seconds)
        management_client = (
            ManagementApiClient(config.management_api)
            if config.management_api is not None
            else None
        )
        topology = TopologyProvider(
            config.topology,
            ServiceIndexClient(http_client, config.index_url),
            management_client
        )
        coordinator = ConvergenceCoordinator(
            topology,
            ReplicaPoller(http_client, config.polling),
            RetryPolicy.from_config(config.retry)
        )
        return cls(http_client, topology, coordinator)

    async def query_v3(self, search_service: SearchServiceProperties, query_string: str) -> V3SearchResponse:
        """Run a v3 search query against a search service"""
        url = URL(search_service.uri).join(URL(f"query?{query_string}"))
        return await self.http_client.get_json(str(url), V3SearchResponse)

    async def autocomplete_package_ids(
        self,
        search_service: SearchServiceProperties,
        package_id: str,
        include_prerelease: Optional[bool] = None,
        sem_ver_level: Optional[str] = None
    ) -> AutocompleteResponse:
        """Autocomplete package IDs starting from ``package_id``"""
        query = build_autocomplete_query(f"take=30&q={package_id}", include_prerelease, sem_ver_level)
        return await self._autocomplete(search_service, query)

    async def autocomplete_package_versions(
        self,
        search_service: SearchServiceProperties,
        package_id: str,
        include_prerelease: Optional[bool] = None,
        sem_ver_level: Optional[str] = None
    ) -> AutocompleteResponse:
        """List the versions of ``package_id`` through autocomplete"""
        query = build_autocomplete_query(f"id={package_id}", include_prerelease, sem_ver_level)
        return await self._autocomplete(search_service, query)

    async def wait_for_package(self, package_id: str, version: str) -> List[PollOutcome]:
        """Wait until a package version is available on every replica"""
        return await self.coordinator.wait_for_package(package_id, version)

    async def wait_for_listed_state(self, package_id: str, version: str, listed: bool) -> List[PollOutcome]:
        """Wait until every replica shows the listed state of a package version"""
        return await self.coordinator.wait_for_listed_state(package_id, version, listed)

    async def get_search_services(self) -> List[SearchServiceProperties]:
        """Resolve the search services currently in effect"""
        return await self.topology.get_search_services()

    async def _autocomplete(self, search_service: SearchServiceProperties, query: str) -> AutocompleteResponse:
        url = URL(search_service.uri).join(URL(f"autocomplete?{query}"))
        return await self.http_client.get_json(str(url), AutocompleteResponse)
