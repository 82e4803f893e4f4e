"""Main service class for the Guild Banner service."""

import asyncio
import logging
from typing import Optional

from aiohttp import web

from guild_banner.adapters.assets import AssetResolver
from guild_banner.adapters.firebot import FirebotAPIClient
from guild_banner.adapters.http import BannerHTTPServer
from guild_banner.adapters.observability import MetricsProvider
from guild_banner.adapters.tibiadata import TibiaDataClient
from guild_banner.application.aggregator import DataAggregator
from guild_banner.application.banner_service import BannerService
from guild_banner.application.respawn_service import RespawnService
from guild_banner.application.text_banner_service import TextBannerService
from guild_banner.config import Config


logger = logging.getLogger(__name__)


class BannerApplication:
    """Wires the process-wide components and serves HTTP.

    The Firebot client (and its token cache) and the asset resolver (and its
    per-theme cache) are created once here and shared by every request.
    """

    def __init__(self, config: Config):
        """Initialize the application.

        Args:
            config: Service configuration
        """
        self.config = config
        self._running = False
        self._closed = False
        self._stopped = asyncio.Event()

        # Infrastructure components
        self._metrics_provider: Optional[MetricsProvider] = None
        self._tibiadata_client: Optional[TibiaDataClient] = None
        self._firebot_client: Optional[FirebotAPIClient] = None
        self._asset_resolver: Optional[AssetResolver] = None

        # Application services
        self.banner_service: Optional[BannerService] = None
        self.respawn_service: Optional[RespawnService] = None

        # HTTP server
        self.http_server: Optional[BannerHTTPServer] = None
        self._runner: Optional[web.AppRunner] = None

    def build(self) -> BannerHTTPServer:
        """Create clients, services and the HTTP application."""
        logger.info("Initializing infrastructure components")

        self._metrics_provider = MetricsProvider(self.config)
        self._metrics_provider.initialize()

        self._tibiadata_client = TibiaDataClient(
            base_url=self.config.tibia_data_api_url,
            request_timeout=self.config.tibia_data_timeout_seconds,
            metrics=self._metrics_provider,
        )
        self._firebot_client = FirebotAPIClient(
            base_url=self.config.firebot_api_url,
            email=self.config.firebot_api_email,
            password=self.config.firebot_api_password,
            request_timeout=self.config.firebot_timeout_seconds,
            token_expiry_skew=self.config.token_expiry_skew_seconds,
            metrics=self._metrics_provider,
        )
        self._asset_resolver = AssetResolver(
            self.config.asset_base_paths,
            timeout=self.config.asset_timeout_seconds,
        )
        logger.info(f"Using TibiaData API at: {self.config.tibia_data_api_url}")
        logger.info(f"Using Firebot API at: {self.config.firebot_api_url}")

        aggregator = DataAggregator(
            self._tibiadata_client,
            self._firebot_client,
            self.config,
            metrics=self._metrics_provider,
        )
        self.banner_service = BannerService(
            aggregator,
            self._asset_resolver,
            self.config,
            metrics=self._metrics_provider,
        )
        self.respawn_service = RespawnService(
            self._firebot_client, font_paths=self.config.font_paths
        )
        self.http_server = BannerHTTPServer(
            self.banner_service,
            self.respawn_service,
            cache_max_age_seconds=self.config.banner_cache_max_age_seconds,
            text_banner_service=TextBannerService(font_paths=self.config.font_paths),
        )
        return self.http_server

    async def start(self):
        """Start serving and block until stop() is called."""
        logger.info("Starting Guild Banner service")
        self._running = True
        self._stopped.clear()

        try:
            if self.http_server is None:
                self.build()

            self._runner = web.AppRunner(self.http_server.app)
            await self._runner.setup()
            site = web.TCPSite(self._runner, self.config.http_host, self.config.http_port)
            await site.start()
            logger.info(f"HTTP server listening on {self.config.http_host}:{self.config.http_port}")

            await self._stopped.wait()
        except Exception:
            self._running = False
            raise

    async def stop(self):
        """Stop serving and release clients."""
        if self._closed:
            return
        logger.info("Stopping Guild Banner service")
        self._closed = True
        self._running = False

        if self._runner:
            await self._runner.cleanup()
            self._runner = None

        await self._cleanup_infrastructure()
        self._stopped.set()
        logger.info("Guild Banner service stopped")

    async def _cleanup_infrastructure(self) -> None:
        """Close HTTP clients and flush metrics."""
        for client in (self._tibiadata_client, self._firebot_client):
            if client:
                try:
                    await client.close()
                except Exception as e:
                    logger.error(f"Error closing upstream client: {e}")

        if self._metrics_provider:
            self._metrics_provider.shutdown()
