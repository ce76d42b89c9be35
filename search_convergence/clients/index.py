"""
Client for the service index document that lists search services
"""
import logging
from typing import List
from search_convergence.core.models import ServiceIndex
from .http import JsonHttpClient

SEARCH_QUERY_SERVICE_TYPE = "SearchQueryService"


class ServiceIndexClient:
    """Reads search base URLs from the service index"""

    def __init__(self, http_client: JsonHttpClient, index_url: str):
        self.http_client = http_client
        self.index_url = index_url
        self.logger = logging.getLogger("ServiceIndexClient")

    async def get_search_base_urls(self) -> List[str]:
        """
        Get the base URL of every search query service in the index

        The index lists query endpoints (``.../query``); the trailing
        ``query`` segment is removed so that the result can be used as a base
        for relative requests.

        Returns:
            Base URLs in index order, without duplicates
        """
        index = await self.http_client.get_json(self.index_url, ServiceIndex)

        base_urls = []
        for resource in index.resources:
            if not resource.type.startswith(SEARCH_QUERY_SERVICE_TYPE):
                continue

            url = resource.id
            if url.endswith("query"):
                url = url[:-len("query")]
            if not url.endswith("/"):
                url += "/"

            if url not in base_urls:
                base_urls.append(url)

        self.logger.debug(f"Found {len(base_urls)} search services in {self.index_url}")
        return base_urls
