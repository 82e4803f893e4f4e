"""Render entry point for guild banners."""

import asyncio
import logging
import time
from typing import Optional

from ..adapters.assets.resolver import AssetResolver
from ..adapters.observability import MetricsProvider
from ..config import Config
from ..core.entities import BannerRequest
from ..core.errors import BannerGenerationError
from ..core.themes import get_palette, resolve_theme_name
from .aggregator import DataAggregator
from .compositor import Compositor
from .layout import LayoutPlanner


logger = logging.getLogger(__name__)


class BannerService:
    """Runs the pipeline: aggregate and resolve assets, plan, composite."""

    def __init__(
        self,
        aggregator: DataAggregator,
        asset_resolver: AssetResolver,
        config: Config,
        metrics: Optional[MetricsProvider] = None,
        planner: Optional[LayoutPlanner] = None,
    ):
        self.aggregator = aggregator
        self.asset_resolver = asset_resolver
        self.config = config
        self.metrics = metrics
        self.planner = planner or LayoutPlanner(footer_text=config.banner_footer_text)

    async def generate_banner(self, world: str, guild_name: str, **options) -> bytes:
        """Render a banner for ``guild_name`` on ``world``.

        Args:
            world: Game world name
            guild_name: Guild name
            **options: ``lang``, ``theme``, ``show_boss``, ``show_logo``,
                ``width`` and ``height`` as accepted by BannerRequest

        Returns:
            PNG bytes

        Raises:
            ValueError: If the request parameters are invalid
            BannerGenerationError: For every pipeline failure, carrying the
                originating kind
        """
        request = BannerRequest(world=world.strip(), guild_name=guild_name.strip(), **options)
        theme = resolve_theme_name(request.theme)
        start = time.monotonic()

        try:
            image = await self._render(request)
        except Exception as e:
            error = BannerGenerationError.wrap(e)
            self._record(theme, "failure", start)
            logger.error(
                f"Banner generation failed for {request.guild_name} on {request.world}: "
                f"[{error.kind}] {error.message}"
            )
            if error is e:
                raise
            raise error from e

        self._record(theme, "success", start)
        logger.info(
            f"Rendered banner for {request.guild_name} on {request.world} "
            f"({request.width}x{request.height}, theme={theme}, lang={request.lang})"
        )
        return image

    async def _render(self, request: BannerRequest) -> bytes:
        data, assets = await asyncio.gather(
            self.aggregator.fetch_aggregated_data(request.world, request.guild_name, request.lang),
            self.asset_resolver.resolve_theme_assets(request.theme),
            return_exceptions=True,
        )
        # Data errors win over asset errors, whichever finished first
        for result in (data, assets):
            if isinstance(result, BaseException):
                raise result

        layers = self.planner.plan_layout(
            data,
            theme=request.theme,
            lang=request.lang,
            width=request.width,
            height=request.height,
            show_boss=request.show_boss,
            show_logo=request.show_logo,
        )
        compositor = Compositor(
            request.width,
            request.height,
            get_palette(request.theme),
            font_paths=self.config.font_paths,
        )
        return compositor.render(layers, assets)

    def _record(self, theme: str, outcome: str, start: float) -> None:
        if self.metrics:
            self.metrics.record_banner_rendered(theme, outcome, time.monotonic() - start)
