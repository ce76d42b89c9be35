"""
JSON over HTTP client used to talk to search services
"""
import logging
from typing import Optional, Type, TypeVar
import aiohttp
from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


class JsonHttpClient:
    """
    Fetches JSON documents and validates them into pydantic models
    """

    def __init__(self, timeout: float = 60.0):
        self.timeout = timeout
        self.logger = logging.getLogger("JsonHttpClient")

    async def get_json(
        self,
        url: str,
        model: Type[ModelT],
        allow_not_found: bool = False,
        log_response_body: bool = True
    ) -> Optional[ModelT]:
        """
        GET a JSON document

        Args:
            url: Absolute URL to fetch
            model: Pydantic model the body is validated into
            allow_not_found: Return None instead of raising on 404
            log_response_body: Write the response body to the debug log

        Returns:
            The parsed document, or None for an allowed 404

        Raises:
            aiohttp.ClientResponseError: For any other non-success status
        """
        self.logger.debug(f"GET {url}")

        async with aiohttp.ClientSession() as session:
            async with session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                self.logger.debug(f"GET {url} returned {response.status}")

                if allow_not_found and response.status == 404:
                    return None

                body = await response.text()
                if log_response_body:
                    self.logger.debug(f"Response body from {url}: {body}")

                response.raise_for_status()
                return model.model_validate_json(body)

    async def get_text(self, url: str, headers: Optional[dict] = None) -> str:
        """GET a document and return the raw body"""
        self.logger.debug(f"GET {url}")

        async with aiohttp.ClientSession() as session:
            async with session.get(
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                self.logger.debug(f"GET {url} returned {response.status}")
                response.raise_for_status()
                return await response.text()
