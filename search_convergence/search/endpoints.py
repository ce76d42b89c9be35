"""
Expansion of search services into per-replica poll URLs
"""
from typing import Iterable, List
from yarl import URL
from search_convergence.core.models import SearchServiceProperties

# Replica i of a search service listens on MIN_PORT + i
MIN_PORT = 44301
SEARCH_QUERY_PATH = "/search/query"


def get_search_urls_for_polling(service: SearchServiceProperties) -> List[str]:
    """
    Build the query URL of every replica behind a search service

    Args:
        service: Search service with its instance count

    Returns:
        One https URL per instance, in instance order
    """
    host = URL(service.uri).host
    return [
        str(URL.build(
            scheme="https",
            host=host,
            port=MIN_PORT + instance_index,
            path=SEARCH_QUERY_PATH
        ))
        for instance_index in range(service.instance_count)
    ]


def get_all_search_urls(services: Iterable[SearchServiceProperties]) -> List[str]:
    """Poll URLs of all replicas of all services"""
    urls = []
    for service in services:
        urls.extend(get_search_urls_for_polling(service))
    return urls
