"""
RapidAPI IRCTC client.

Base client shared by all train-data endpoints. Responses are cached per
(endpoint, params) with the same TTL cache as PNR lookups.
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from backend.app.core.config import settings
from backend.app.services.cache import TTLCache

logger = logging.getLogger(__name__)


class RapidApiError(Exception):
    """Raised when a RapidAPI call fails; message is user-facing."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def map_api_error(error: Exception) -> RapidApiError:
    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        if status_code == 404:
            return RapidApiError("Resource not found", status_code)
        if status_code == 429:
            return RapidApiError("API rate limit exceeded. Please try again later", status_code)
        if status_code in (401, 403):
            return RapidApiError("API authentication failed. Check your API key", status_code)
        if status_code >= 500:
            return RapidApiError("Railway server unavailable. Please try again", status_code)
        return RapidApiError("Unable to fetch data. Please try again", status_code)
    if isinstance(error, httpx.TimeoutException):
        return RapidApiError("Request timeout. Please try again")
    return RapidApiError("Unable to fetch data. Please try again")


class RapidApiClient:

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        host: Optional[str] = None,
        timeout: Optional[float] = None,
        cache: Optional[TTLCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.pnr_api_key
        self.base_url = (base_url or settings.rapidapi_base_url).rstrip("/")
        self.host = host or settings.rapidapi_host
        self.timeout = timeout or settings.external_api_timeout_seconds
        self.cache = cache if cache is not None else TTLCache(
            ttl_seconds=settings.lookup_cache_ttl_seconds,
            max_entries=settings.lookup_cache_max_entries,
        )
        self.transport = transport

    @staticmethod
    def cache_key(endpoint: str, params: Dict[str, Any]) -> str:
        return f"{endpoint}:{json.dumps(params, sort_keys=True, default=str)}"

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        use_cache: bool = True,
    ) -> Any:
        """
        Make a GET request to a RapidAPI endpoint.

        Args:
            endpoint: API path, e.g. "/api/v3/getLiveStation"
            params: Query parameters
            use_cache: Serve from and store into the cache

        Returns:
            Decoded JSON body

        Raises:
            RapidApiError: on any transport or HTTP failure
        """
        params = params or {}
        key = self.cache_key(endpoint, params)

        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    f"{self.base_url}{endpoint}",
                    params=params,
                    headers={
                        "x-rapidapi-key": self.api_key or "",
                        "x-rapidapi-host": self.host,
                    },
                )
                response.raise_for_status()
                result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("RapidAPI error (%s): %s", endpoint, e)
            raise map_api_error(e) from e

        if use_cache:
            self.cache.set(key, result)

        return result


# Singleton instance
rapid_api_client = RapidApiClient()
