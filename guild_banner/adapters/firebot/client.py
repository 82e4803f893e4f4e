"""Firebot API client with bearer-token authentication.

The client owns the process-wide token cache. Tokens are reused until they
are within ``token_expiry_skew`` seconds of expiring; refreshes are
single-flighted so that concurrent requests seeing the same expired or
rejected token trigger one login exchange between them.
"""

import asyncio
import time
from typing import Any, Callable, Optional
from urllib.parse import quote

import httpx
import structlog

from guild_banner.adapters.observability import MetricsProvider
from guild_banner.config import MIN_TOKEN_EXPIRY_SKEW_SECONDS
from guild_banner.core.entities import AuthToken, NpcLocation, WorldEvents
from guild_banner.core.errors import AuthFailureError

logger = structlog.get_logger()

PROVIDER = "firebot"

AUTH_REJECTED_STATUSES = {401, 403}


class FirebotAPIError(Exception):
    """Non-authentication failure talking to the Firebot API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class _AuthRejected(Exception):
    """Internal signal: the provider rejected the bearer token."""

    def __init__(self, token: AuthToken, status_code: int):
        super().__init__(f"Token rejected with status {status_code}")
        self.token = token
        self.status_code = status_code


class FirebotAPIClient:
    """Authenticated client for the Firebot game-data API."""

    def __init__(
        self,
        base_url: str,
        email: Optional[str],
        password: Optional[str],
        request_timeout: float = 10.0,
        token_expiry_skew: float = MIN_TOKEN_EXPIRY_SKEW_SECONDS,
        metrics: Optional[MetricsProvider] = None,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the Firebot API client.

        Args:
            base_url: Base URL of the Firebot API
            email: Login e-mail
            password: Login password
            request_timeout: Timeout in seconds for each call, login included
            token_expiry_skew: Seconds before expiry at which a token is
                considered stale
            metrics: Optional metrics provider
            client: Optional pre-built httpx client (tests)
            clock: Wall clock used for token expiry
        """
        if token_expiry_skew < MIN_TOKEN_EXPIRY_SKEW_SECONDS:
            raise ValueError(
                f"token_expiry_skew must be at least {MIN_TOKEN_EXPIRY_SKEW_SECONDS} seconds"
            )
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self.request_timeout = request_timeout
        self.token_expiry_skew = token_expiry_skew
        self.metrics = metrics
        self.client = client or httpx.AsyncClient(timeout=request_timeout)
        self._clock = clock

        self._token: Optional[AuthToken] = None
        self._token_lock = asyncio.Lock()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.client.aclose()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    # Token cache

    def _cached_token(self) -> Optional[AuthToken]:
        token = self._token
        if token and token.is_valid(self.token_expiry_skew, now=self._clock()):
            return token
        return None

    def invalidate_token(self, stale: Optional[AuthToken] = None) -> None:
        """Drop the cached token.

        With ``stale`` given, the cache is only cleared if it still holds that
        token; a concurrent caller may already have replaced it.
        """
        if stale is None or self._token is stale:
            self._token = None

    async def get_token(self) -> AuthToken:
        """Return a valid token, logging in at most once per expiry event.

        Raises:
            AuthFailureError: If the login exchange fails
        """
        token = self._cached_token()
        if token:
            return token

        async with self._token_lock:
            # Another caller may have refreshed while we waited for the lock
            token = self._cached_token()
            if token:
                return token

            self._token = None
            try:
                token = await asyncio.wait_for(self._login(), timeout=self.request_timeout)
            except asyncio.TimeoutError:
                self._record_login("failure")
                logger.error("Firebot login timed out", timeout=self.request_timeout)
                raise AuthFailureError("Failed to authenticate: login timed out")
            except AuthFailureError:
                self._record_login("failure")
                raise

            self._record_login("success")
            self._token = token
            return token

    def _record_login(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_login(outcome)

    async def _login(self) -> AuthToken:
        """Exchange the configured credentials for a bearer token."""
        if not self.email or not self.password:
            raise AuthFailureError("Firebot API credentials not configured")

        url = f"{self.base_url}/api/login"
        start = time.monotonic()
        try:
            response = await self.client.post(
                url, json={"email": self.email, "password": self.password}
            )
        except httpx.RequestError as e:
            self._record_call("login", 0, start, "request_error")
            logger.error("Firebot login request failed", error=str(e))
            raise AuthFailureError(f"Failed to authenticate: {e}")

        self._record_call("login", response.status_code, start)

        if response.status_code >= 400:
            logger.error("Firebot login rejected", status_code=response.status_code)
            raise AuthFailureError(f"Failed to authenticate: status {response.status_code}")

        try:
            data = response.json()
            access_token = data.get("access_token")
            expires_in = float(data.get("expires_in") or 0)
        except (ValueError, TypeError, AttributeError) as e:
            raise AuthFailureError(f"Failed to authenticate: invalid login response ({e})")

        if not access_token:
            raise AuthFailureError("Failed to obtain auth token")

        logger.info("Authenticated with Firebot API", expires_in=expires_in)
        return AuthToken(value=access_token, expires_at=self._clock() + expires_in)

    # Requests

    def _record_call(self, endpoint: str, status_code: int, start: float, error_type: Optional[str] = None):
        if self.metrics:
            self.metrics.record_upstream_call(
                PROVIDER, endpoint, status_code, time.monotonic() - start, error_type
            )

    async def _get_with_token(self, url: str, endpoint: str, token: AuthToken) -> Any:
        start = time.monotonic()
        try:
            response = await self.client.get(
                url,
                headers={
                    "Authorization": f"Bearer {token.value}",
                    "Accept": "application/json",
                },
            )
        except httpx.TimeoutException as e:
            self._record_call(endpoint, 0, start, "timeout")
            raise FirebotAPIError(f"Request timed out: {e}")
        except httpx.RequestError as e:
            self._record_call(endpoint, 0, start, "request_error")
            raise FirebotAPIError(f"Request failed: {e}")

        self._record_call(endpoint, response.status_code, start)

        if response.status_code in AUTH_REJECTED_STATUSES:
            raise _AuthRejected(token, response.status_code)

        if response.status_code >= 400:
            logger.error(
                "Firebot API error",
                url=url,
                status_code=response.status_code,
                response=response.text,
            )
            raise FirebotAPIError(f"API error: {response.status_code}", response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise FirebotAPIError(f"Invalid JSON from {url}: {e}")

    async def authenticated_get(self, path: str, endpoint: Optional[str] = None) -> Any:
        """GET ``path`` with the bearer token, retrying once after a refresh.

        Args:
            path: Path relative to the API base URL
            endpoint: Metric label for the call

        Returns:
            Decoded JSON body

        Raises:
            AuthFailureError: If login fails or the retried request is still
                rejected
            FirebotAPIError: For other API errors
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        endpoint = endpoint or path

        token = await self.get_token()
        try:
            return await self._get_with_token(url, endpoint, token)
        except _AuthRejected as rejected:
            logger.warning(
                "Token rejected, refreshing and retrying",
                endpoint=endpoint,
                status_code=rejected.status_code,
            )
            self.invalidate_token(rejected.token)

        token = await self.get_token()
        try:
            return await self._get_with_token(url, endpoint, token)
        except _AuthRejected as rejected:
            self.invalidate_token(rejected.token)
            logger.error("Request rejected after token refresh", endpoint=endpoint)
            raise AuthFailureError(
                f"Request failed after retry: status {rejected.status_code}"
            )

    async def fetch_rashid_location(self) -> NpcLocation:
        """Where Rashid is today."""
        data = await self.authenticated_get("/api/gamedata/rashid", endpoint="rashid")
        try:
            return NpcLocation.from_api(data)
        except (ValueError, AttributeError) as e:
            raise FirebotAPIError(str(e))

    async def fetch_world_changes(self, world: str) -> WorldEvents:
        """Active world changes for ``world``."""
        data = await self.authenticated_get(
            f"/api/gamedata/active-world-changes?world={quote(world)}",
            endpoint="active-world-changes",
        )
        try:
            return WorldEvents.from_api(data)
        except ValueError as e:
            raise FirebotAPIError(str(e))

    async def fetch_respawns(self) -> list[dict[str, Any]]:
        """Full respawn list; a non-list payload is treated as empty."""
        data = await self.authenticated_get("/api/respawns/list-all", endpoint="respawns")
        if isinstance(data, dict):
            data = data.get("respawns", [])
        return data if isinstance(data, list) else []
