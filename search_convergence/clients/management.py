"""
Cloud management API access for search service properties
"""
import logging
from typing import List
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from yarl import URL
from search_convergence.core.config import ManagementApiConfig
from search_convergence.core.errors import ManagementApiError
from search_convergence.core.models import CloudServiceProperties
from .http import JsonHttpClient


class _CloudServiceSlotProperties(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    uri: str
    role_instances: List[dict] = Field(alias="roleInstances")


class _CloudServiceSlot(BaseModel):
    model_config = ConfigDict(extra='ignore')

    properties: _CloudServiceSlotProperties


class ManagementApiClient:
    """
    Reads cloud service deployment slots from the management API

    Only the request is made here; acquiring the bearer token is left to
    whoever builds the configuration.
    """

    def __init__(self, config: ManagementApiConfig, http_client: JsonHttpClient = None):
        self.config = config
        self.http_client = http_client or JsonHttpClient(timeout=config.timeout_seconds)
        self.logger = logging.getLogger("ManagementApiClient")

    def slot_url(self, subscription: str, resource_group: str, name: str, slot: str) -> str:
        """Build the management API URL of a cloud service deployment slot"""
        return (
            f"{self.config.base_url.rstrip('/')}/subscriptions/{subscription}"
            f"/resourceGroups/{resource_group}"
            f"/providers/Microsoft.ClassicCompute/domainNames/{name}"
            f"/slots/{slot}?api-version={self.config.api_version}"
        )

    async def get_cloud_service_properties(
        self,
        subscription: str,
        resource_group: str,
        name: str,
        slot: str
    ) -> str:
        """
        Fetch the raw properties document of a cloud service slot

        Network errors propagate so that the caller can decide whether to retry.
        """
        url = self.slot_url(subscription, resource_group, name, slot)
        headers = {}
        if self.config.bearer_token:
            headers["Authorization"] = f"Bearer {self.config.bearer_token}"

        self.logger.debug(f"Fetching cloud service properties from {url}")
        return await self.http_client.get_text(url, headers=headers)


def parse_cloud_service_properties(raw: str) -> CloudServiceProperties:
    """
    Extract the service URI and instance count from a slot document

    Args:
        raw: JSON returned by ``get_cloud_service_properties``

    Returns:
        Service URI and the number of role instances
    """
    try:
        slot = _CloudServiceSlot.model_validate_json(raw)
    except ValidationError as e:
        raise ManagementApiError(f"Unexpected cloud service properties document: {e}") from e

    return CloudServiceProperties(
        uri=slot.properties.uri,
        instance_count=len(slot.properties.role_instances)
    )


def to_https_base(uri: str) -> str:
    """Force https and strip everything after the host"""
    url = URL(uri)
    return str(URL.build(scheme="https", host=url.host, path="/"))
