"""
Polling of a single search replica until a change is visible
"""
import asyncio
import logging
import time
from datetime import timedelta
from search_convergence.clients.http import JsonHttpClient
from search_convergence.core.config import PollingConfig
from search_convergence.core.errors import ConvergenceError
from search_convergence.core.models import (
    CompletionPredicate,
    PollMessages,
    PollOutcome,
    V2SearchResponse,
)
from .query import build_poll_query_url


def format_elapsed(seconds: float) -> str:
    """Render an elapsed duration as H:MM:SS.ffffff"""
    return str(timedelta(seconds=seconds))


class ReplicaPoller:
    """
    Polls one replica query URL until the completion predicate holds or
    the wait duration runs out
    """

    def __init__(self, http_client: JsonHttpClient, config: PollingConfig = None):
        self.http_client = http_client
        self.config = config or PollingConfig()
        self.logger = logging.getLogger("ReplicaPoller")

    async def poll_until(
        self,
        poll_url: str,
        package_id: str,
        version: str,
        is_complete: CompletionPredicate,
        messages: PollMessages
    ) -> PollOutcome:
        """
        Poll a replica for a package version

        Args:
            poll_url: Query endpoint of one replica
            package_id: Package ID to filter on
            version: Package version to filter on
            is_complete: Predicate applied to every response
            messages: Success and failure message templates

        Returns:
            Successful outcome with the time it took

        Raises:
            ConvergenceError: If the predicate never held before the deadline
        """
        url = build_poll_query_url(poll_url, package_id, version)
        wait = self.config.search_wait_seconds
        sleep = self.config.sleep_seconds

        start = time.monotonic()
        while True:
            response = await self.http_client.get_json(
                url,
                V2SearchResponse,
                allow_not_found=False,
                log_response_body=False
            )
            complete = is_complete(response)

            # Sleep only when a full interval fits before the deadline
            if not complete and (time.monotonic() - start) + sleep < wait:
                await asyncio.sleep(sleep)

            elapsed = time.monotonic() - start
            if complete or elapsed >= wait:
                break

        if not complete:
            raise ConvergenceError(
                messages.failure.format(url=url, elapsed=format_elapsed(elapsed)),
                url=url,
                elapsed=elapsed
            )

        self.logger.info(messages.success.format(url=url, elapsed=format_elapsed(elapsed)))
        return PollOutcome(url=url, succeeded=True, elapsed=elapsed)
