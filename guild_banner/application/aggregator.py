"""Concurrent aggregation of the banner's data sources.

Five sources are fetched at once. The guild is mandatory; every other source
degrades to a placeholder when it fails, so one flaky upstream never costs the
whole banner.
"""

import asyncio
import dataclasses
import io
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, TypeVar

from PIL import Image

from ..adapters.firebot.client import FirebotAPIClient
from ..adapters.observability import MetricsProvider
from ..adapters.tibiadata.client import TibiaDataAPIError, TibiaDataClient
from ..config import Config
from ..core.entities import (
    AggregatedData,
    BossInfo,
    Degraded,
    NpcLocation,
    Present,
    SourceDatum,
    WorldEvents,
    WorldInfo,
)
from ..core.enums import SourceName
from ..core.errors import AuthFailureError, DegradedSourceError, GuildNotFoundError
from ..core.translations import get_labels


logger = logging.getLogger(__name__)

T = TypeVar("T")


class DataAggregator:
    """Fetches and joins everything a guild banner shows."""

    def __init__(
        self,
        tibiadata: TibiaDataClient,
        firebot: FirebotAPIClient,
        config: Config,
        metrics: Optional[MetricsProvider] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the aggregator.

        Args:
            tibiadata: Client for the public game data API
            firebot: Authenticated client for NPC and world-change data
            config: Application configuration
            metrics: Optional metrics provider
            clock: Returns the aggregation time; defaults to now in the
                configured timezone
        """
        self.tibiadata = tibiadata
        self.firebot = firebot
        self.config = config
        self.metrics = metrics

        self.source_timeout = config.source_timeout_seconds
        self.special_event_marker = config.special_event_marker
        self._clock = clock or (lambda: datetime.now(config.timezone))

    async def _with_timeout(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.source_timeout)

    async def _fetch_boosted_boss(self) -> BossInfo:
        """Boosted boss plus its icon. A bad or slow icon only drops the icon.

        The boss lookup and the icon download share the source timeout; the
        icon gets whatever the lookup left over.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.source_timeout

        boss = await self._with_timeout(self.tibiadata.get_boosted_boss())
        if not boss.image_url:
            return boss

        try:
            data = await asyncio.wait_for(
                self.tibiadata.fetch_image(boss.image_url),
                timeout=max(deadline - loop.time(), 0),
            )
            with Image.open(io.BytesIO(data)) as icon:
                icon.verify()
        except asyncio.TimeoutError:
            logger.warning(f"Boss icon for {boss.name} timed out")
            return boss
        except (TibiaDataAPIError, OSError, SyntaxError, ValueError) as e:
            logger.warning(f"Boss icon for {boss.name} unavailable: {e}")
            return boss

        return dataclasses.replace(boss, image=data)

    def _settle(
        self,
        source: SourceName,
        result: Any,
        placeholder: T,
        world: str,
        guild_name: str,
    ) -> SourceDatum[T]:
        """Turn a gathered result into Present or a logged Degraded."""
        if not isinstance(result, BaseException):
            return Present(result)

        if isinstance(result, asyncio.TimeoutError):
            reason = f"timed out after {self.source_timeout}s"
        else:
            reason = str(result) or result.__class__.__name__
        error = DegradedSourceError(source.value, reason)

        logger.warning(
            f"Source {source.value} degraded for {guild_name} on {world}: {error.reason}"
        )
        if self.metrics:
            self.metrics.record_degraded_source(source.value, result.__class__.__name__)
        return Degraded(placeholder, reason=error.reason)

    async def fetch_aggregated_data(
        self, world: str, guild_name: str, lang: str = "pt"
    ) -> AggregatedData:
        """Fetch all sources concurrently and join them.

        Args:
            world: Game world name
            guild_name: Guild name
            lang: Locale for the timestamp text

        Returns:
            AggregatedData with the guild always present

        Raises:
            GuildNotFoundError: If the guild cannot be read for any reason
            AuthFailureError: If the authenticated provider rejects us
        """
        if not guild_name or not guild_name.strip():
            raise GuildNotFoundError("Guild name is required")

        results = await asyncio.gather(
            self._with_timeout(self.tibiadata.get_world_info(world)),
            self._with_timeout(self.tibiadata.get_guild_info(guild_name)),
            self._fetch_boosted_boss(),
            self._with_timeout(self.firebot.fetch_rashid_location()),
            self._with_timeout(self.firebot.fetch_world_changes(world)),
            return_exceptions=True,
        )
        for result in results:
            # Cancellation and the like are not source failures
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result

        world_result, guild_result, boss_result, npc_result, events_result = results

        if isinstance(guild_result, BaseException):
            if self.metrics:
                self.metrics.record_degraded_source(
                    SourceName.GUILD.value, guild_result.__class__.__name__
                )
            if isinstance(guild_result, asyncio.TimeoutError):
                message = f"Guild {guild_name} timed out after {self.source_timeout}s"
            else:
                message = f"Guild {guild_name} not found: {guild_result}"
            logger.error(message)
            raise GuildNotFoundError(message) from guild_result

        for result in (npc_result, events_result):
            if isinstance(result, AuthFailureError):
                logger.error(f"Authenticated source rejected credentials: {result}")
                raise result

        world_datum = self._settle(
            SourceName.WORLD, world_result, WorldInfo.placeholder(world), world, guild_name
        )
        boss_datum = self._settle(
            SourceName.BOOSTED_BOSS, boss_result, BossInfo.placeholder(), world, guild_name
        )
        npc_datum = self._settle(
            SourceName.NPC_LOCATION, npc_result, NpcLocation.placeholder(), world, guild_name
        )
        events_datum = self._settle(
            SourceName.WORLD_EVENTS, events_result, WorldEvents.placeholder(), world, guild_name
        )

        special_event_active = events_datum.is_present and events_datum.value.contains_marker(
            self.special_event_marker
        )

        generated_at = self._clock()
        labels = get_labels(lang)

        return AggregatedData(
            world=world_datum,
            guild=guild_result,
            boosted_boss=boss_datum,
            npc_location=npc_datum,
            world_events=events_datum,
            special_event_active=special_event_active,
            generated_at=generated_at,
            generated_at_text=generated_at.strftime(labels.timestamp_format),
        )
