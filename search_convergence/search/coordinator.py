"""
Convergence coordinator: waits for a change to reach every search replica
"""
import asyncio
import logging
from typing import List
from search_convergence.core.errors import ConfigurationError
from search_convergence.core.models import (
    CompletionPredicate,
    PollMessages,
    PollOutcome,
    V2SearchResponse,
)
from .endpoints import get_all_search_urls
from .poller import ReplicaPoller
from .retry import RetryPolicy, is_transient_error
from .topology import TopologyProvider


class ConvergenceCoordinator:
    """
    Polls all replicas of all search services in parallel.

    Every attempt resolves the topology again, because replicas come and go
    during scale events. A transient failure anywhere in an attempt restarts
    it from topology resolution; a replica that never converges fails the
    whole check immediately.
    """

    def __init__(
        self,
        topology: TopologyProvider,
        poller: ReplicaPoller,
        retry_policy: RetryPolicy = None
    ):
        self.topology = topology
        self.poller = poller
        self.retry_policy = retry_policy or RetryPolicy()
        self.logger = logging.getLogger("ConvergenceCoordinator")

    async def wait_for(
        self,
        package_id: str,
        version: str,
        is_complete: CompletionPredicate,
        messages: PollMessages
    ) -> List[PollOutcome]:
        """
        Wait until every replica satisfies ``is_complete`` for a package version

        Returns:
            One outcome per replica from the successful attempt

        Raises:
            ConvergenceError: If a replica did not converge in time
            ConfigurationError: If the topology cannot be resolved into targets
        """
        async def attempt() -> List[PollOutcome]:
            return await self._poll_all(package_id, version, is_complete, messages)

        return await self.retry_policy.run(attempt)

    async def wait_for_package(self, package_id: str, version: str) -> List[PollOutcome]:
        """Wait until a package version is returned by every replica"""
        def is_complete(response: V2SearchResponse) -> bool:
            return any(d.matches(package_id, version) for d in response.data)

        return await self.wait_for(
            package_id,
            version,
            is_complete,
            PollMessages(
                starting=f"Waiting for package {package_id} {version} to be available on search endpoints:",
                success=f"Package {package_id} {version} was found on {{url}} after waiting {{elapsed}}.",
                failure=f"Package {package_id} {version} was not found on {{url}} after waiting {{elapsed}}."
            )
        )

    async def wait_for_listed_state(self, package_id: str, version: str, listed: bool) -> List[PollOutcome]:
        """Wait until every replica reports a package version as listed or unlisted"""
        success_state = "listed" if listed else "unlisted"
        failure_state = "unlisted" if listed else "listed"

        def is_complete(response: V2SearchResponse) -> bool:
            return any(d.matches(package_id, version) and d.listed == listed for d in response.data)

        return await self.wait_for(
            package_id,
            version,
            is_complete,
            PollMessages(
                starting=f"Waiting for package {package_id} {version} to be {success_state} on search endpoints:",
                success=f"Package {package_id} {version} became {success_state} on {{url}} after waiting {{elapsed}}.",
                failure=f"Package {package_id} {version} was still {failure_state} on {{url}} after waiting {{elapsed}}."
            )
        )

    async def _poll_all(
        self,
        package_id: str,
        version: str,
        is_complete: CompletionPredicate,
        messages: PollMessages
    ) -> List[PollOutcome]:
        services = await self.topology.get_search_services()
        poll_urls = get_all_search_urls(services)

        if not poll_urls:
            raise ConfigurationError("At least one search base URL must be configured.")

        self.logger.info(messages.starting + "\n" + "\n".join(f" - {url}" for url in poll_urls))

        tasks = [
            asyncio.create_task(
                self.poller.poll_until(url, package_id, version, is_complete, messages)
            )
            for url in poll_urls
        ]

        try:
            results = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            for failure in failures:
                self.logger.error(f"Replica poll failed: {failure!r}")

            # A replica that did not converge outranks a network hiccup on another
            fatal = [f for f in failures if not is_transient_error(f)]
            raise (fatal or failures)[0]

        return results
