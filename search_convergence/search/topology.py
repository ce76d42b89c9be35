"""
Resolution of the search services that make up the search tier
"""
import logging
from typing import List, Optional
from yarl import URL
from search_convergence.clients.index import ServiceIndexClient
from search_convergence.clients.management import (
    ManagementApiClient,
    parse_cloud_service_properties,
    to_https_base,
)
from search_convergence.core.config import (
    CloudServiceDetails,
    DiscoveryTopology,
    MappedTopology,
    SingleServiceTopology,
    TopologyConfig,
)
from search_convergence.core.errors import ConfigurationError, ServiceMappingError
from search_convergence.core.models import SearchServiceProperties


class TopologyProvider:
    """
    Works out which search services are currently in effect.

    The configured topology selects one of three modes:

    - discovery: services from the service index, each with a fixed
      instance count from configuration
    - mapped: services from the service index, each looked up in the
      management API through a host to cloud service map
    - single: one cloud service looked up in the management API

    Nothing is cached. Instance counts change during scale events, so every
    call asks again. Errors from the index or the management API propagate.
    """

    def __init__(
        self,
        topology: TopologyConfig,
        index_client: ServiceIndexClient,
        management_client: Optional[ManagementApiClient] = None
    ):
        self.topology = topology
        self.index_client = index_client
        self.management_client = management_client
        self.logger = logging.getLogger("TopologyProvider")

        self._resolvers = {
            DiscoveryTopology: self._resolve_discovered,
            MappedTopology: self._resolve_mapped,
            SingleServiceTopology: self._resolve_single,
        }

        if not isinstance(topology, DiscoveryTopology) and management_client is None:
            raise ConfigurationError(
                f"Search topology mode '{topology.mode}' requires management API access"
            )

    async def get_search_services(self) -> List[SearchServiceProperties]:
        """Resolve the search services for the configured topology"""
        resolver = self._resolvers[type(self.topology)]
        return await resolver(self.topology)

    async def _resolve_discovered(self, topology: DiscoveryTopology) -> List[SearchServiceProperties]:
        base_urls = await self.index_client.get_search_base_urls()

        self.logger.info(
            f"Configured search service mode: use index.json search services and use hardcoded "
            f"instance count ({topology.override_instance_count}). Services: {', '.join(base_urls)}"
        )

        if topology.override_instance_count == 0:
            raise ConfigurationError("override_instance_count must be greater than zero")

        return [
            SearchServiceProperties(uri=url, instance_count=topology.override_instance_count)
            for url in base_urls
        ]

    async def _resolve_mapped(self, topology: MappedTopology) -> List[SearchServiceProperties]:
        base_urls = await self.index_client.get_search_base_urls()

        self.logger.info(
            f"Configured search service mode: use index.json search services and get service "
            f"properties from the management API. Services: {', '.join(base_urls)}"
        )

        services = []
        for url in base_urls:
            host = URL(url).host
            mapped_service = topology.index_json_mapped_search_services.get(host)
            if mapped_service is None:
                raise ServiceMappingError(host)

            services.append(await self._get_service_from_management_api(mapped_service))

        return services

    async def _resolve_single(self, topology: SingleServiceTopology) -> List[SearchServiceProperties]:
        self.logger.info("Configured search service mode: use single search service.")
        return [await self._get_service_from_management_api(topology.single_search_service)]

    async def _get_service_from_management_api(self, details: CloudServiceDetails) -> SearchServiceProperties:
        self.logger.info(
            f"Extracting search service properties from the management API. "
            f"Subscription: {details.subscription}, "
            f"Resource group: {details.resource_group}, "
            f"Service name: {details.name}"
        )

        raw = await self.management_client.get_cloud_service_properties(
            details.subscription,
            details.resource_group,
            details.name,
            details.slot
        )
        cloud_service = parse_cloud_service_properties(raw)

        return SearchServiceProperties(
            uri=to_https_base(cloud_service.uri),
            instance_count=cloud_service.instance_count
        )
