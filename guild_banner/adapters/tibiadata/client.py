"""TibiaData API client with error handling."""

import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
import structlog

from guild_banner.adapters.observability import MetricsProvider
from guild_banner.core.entities import BossInfo, GuildInfo, WorldInfo

logger = structlog.get_logger()

PROVIDER = "tibiadata"


class TibiaDataAPIError(Exception):
    """Base exception for TibiaData API errors."""

    pass


class TibiaDataNotFoundError(TibiaDataAPIError):
    """Requested world or guild does not exist."""

    pass


class TibiaDataClient:
    """Client for the public TibiaData v4 API."""

    def __init__(
        self,
        base_url: str = "https://api.tibiadata.com",
        request_timeout: float = 10.0,
        metrics: Optional[MetricsProvider] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the TibiaData client.

        Args:
            base_url: Base URL of the API
            request_timeout: Request timeout in seconds
            metrics: Optional metrics provider
            client: Optional pre-built httpx client (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self.metrics = metrics
        self.client = client or httpx.AsyncClient(timeout=request_timeout)

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.client.aclose()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    def _record(self, endpoint: str, status_code: int, duration_start: float, error_type: Optional[str] = None):
        if self.metrics:
            self.metrics.record_upstream_call(
                PROVIDER, endpoint, status_code, time.monotonic() - duration_start, error_type
            )

    async def _make_request(self, url: str, endpoint: str) -> Dict[str, Any]:
        """Make a GET request and decode the JSON body.

        Raises:
            TibiaDataNotFoundError: On 404
            TibiaDataAPIError: On any other HTTP or transport failure
        """
        start = time.monotonic()
        try:
            response = await self.client.get(url, headers={"Accept": "application/json"})
        except httpx.TimeoutException as e:
            self._record(endpoint, 0, start, "timeout")
            logger.error("TibiaData request timed out", url=url, error=str(e))
            raise TibiaDataAPIError(f"Request timed out: {e}")
        except httpx.RequestError as e:
            self._record(endpoint, 0, start, "request_error")
            logger.error("HTTP request failed", url=url, error=str(e))
            raise TibiaDataAPIError(f"Request failed: {e}")

        self._record(endpoint, response.status_code, start)

        if response.status_code == 404:
            raise TibiaDataNotFoundError(f"Resource not found: {url}")

        if response.status_code >= 400:
            logger.error(
                "TibiaData API error",
                url=url,
                status_code=response.status_code,
                response=response.text,
            )
            raise TibiaDataAPIError(f"API error: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise TibiaDataAPIError(f"Invalid JSON from {url}: {e}")

    async def get_world_info(self, world: str) -> WorldInfo:
        """Get population counters for a world.

        Raises:
            TibiaDataNotFoundError: If the world does not exist
            TibiaDataAPIError: For other API errors
        """
        url = f"{self.base_url}/v4/world/{quote(world.strip())}"
        logger.debug("Fetching world info", world=world)

        data = await self._make_request(url, "world")
        try:
            return WorldInfo.from_api(data)
        except ValueError as e:
            raise TibiaDataNotFoundError(str(e))

    async def get_guild_info(self, guild_name: str) -> GuildInfo:
        """Get a guild's profile and member counters.

        TibiaData answers unknown guilds with an empty ``guild`` object, so an
        empty payload is reported as not found too.

        Raises:
            TibiaDataNotFoundError: If the guild does not exist
            TibiaDataAPIError: For other API errors
        """
        url = f"{self.base_url}/v4/guild/{quote(guild_name.strip())}"
        logger.debug("Fetching guild info", guild=guild_name)

        data = await self._make_request(url, "guild")
        try:
            return GuildInfo.from_api(data)
        except ValueError as e:
            raise TibiaDataNotFoundError(f"{e}: {guild_name}")

    async def get_boosted_boss(self) -> BossInfo:
        """Get today's boosted boss (without its icon)."""
        url = f"{self.base_url}/v4/boostablebosses"
        logger.debug("Fetching boosted boss")

        data = await self._make_request(url, "boostablebosses")
        try:
            return BossInfo.from_api(data)
        except ValueError as e:
            raise TibiaDataNotFoundError(str(e))

    async def fetch_image(self, url: str) -> bytes:
        """Download raw image bytes (boss icons)."""
        start = time.monotonic()
        try:
            response = await self.client.get(url)
        except httpx.RequestError as e:
            self._record("image", 0, start, "request_error")
            raise TibiaDataAPIError(f"Image download failed: {e}")

        self._record("image", response.status_code, start)
        if response.status_code >= 400:
            raise TibiaDataAPIError(f"Image download failed: {response.status_code}")
        return response.content
