"""Respawn list image: one tile per respawn, four tiles per row."""

import dataclasses
import logging
import math
from typing import Any, Optional, Sequence

from ..adapters.firebot.client import FirebotAPIClient
from ..core.entities import Geometry, LayerSpec, PanelContent, TextContent
from ..core.enums import LayerKind, TextAlign, ZBand
from ..core.errors import BannerGenerationError
from ..core.themes import get_palette
from .compositor import Compositor
from .layout import LayerStack


logger = logging.getLogger(__name__)

ITEMS_PER_ROW = 4
TILE_WIDTH = 300
TILE_HEIGHT = 200
PADDING = 20
LABEL_HEIGHT = 30

CANVAS_COLOR = (30, 30, 30, 255)
TILE_COLOR = (50, 50, 50, 255)
LABEL_COLOR = (255, 255, 255, 255)

UPSTREAM_ERROR_KIND = "UpstreamError"

RESPAWN_PALETTE = dataclasses.replace(
    get_palette("dark"),
    name="respawns",
    gradient_start=CANVAS_COLOR,
    gradient_end=CANVAS_COLOR,
)


def grid_size(count: int) -> tuple[int, int]:
    """Canvas size for ``count`` tiles; an empty list still gets one row."""
    rows = max(1, math.ceil(count / ITEMS_PER_ROW))
    width = TILE_WIDTH * ITEMS_PER_ROW + PADDING * (ITEMS_PER_ROW - 1)
    height = TILE_HEIGHT * rows + PADDING * (rows - 1)
    return width, height


def respawn_name(respawn: Any) -> str:
    if isinstance(respawn, dict):
        return str(respawn.get("name") or respawn.get("alias") or "")
    return str(respawn)


def plan_respawn_grid(respawns: Sequence[Any]) -> tuple[int, int, list[LayerSpec]]:
    """Tile and label layers for the grid, plus the canvas size."""
    width, height = grid_size(len(respawns))
    stack = LayerStack()

    for index, respawn in enumerate(respawns):
        row, col = divmod(index, ITEMS_PER_ROW)
        x = col * (TILE_WIDTH + PADDING)
        y = row * (TILE_HEIGHT + PADDING)

        stack.add(
            ZBand.PANELS,
            LayerKind.PANEL,
            Geometry(x / width, y / height, TILE_WIDTH / width, TILE_HEIGHT / height),
            PanelContent(fill=TILE_COLOR),
            f"tile_{index}",
        )
        label_y = y + (TILE_HEIGHT - LABEL_HEIGHT) / 2
        stack.add(
            ZBand.TEXT,
            LayerKind.TEXT,
            Geometry(x / width, label_y / height, TILE_WIDTH / width, LABEL_HEIGHT / height),
            TextContent(text=respawn_name(respawn), color=LABEL_COLOR, align=TextAlign.CENTER),
            f"label_{index}",
        )

    return width, height, stack.layers()


class RespawnService:
    """Renders the authenticated respawn list as a PNG grid."""

    def __init__(self, firebot: FirebotAPIClient, font_paths: Optional[Sequence[str]] = None):
        self.firebot = firebot
        self.font_paths = font_paths

    async def generate_respawn_image(self) -> bytes:
        """Fetch the respawn list and render it.

        Raises:
            BannerGenerationError: If the list cannot be fetched or rendered
        """
        try:
            respawns = await self.firebot.fetch_respawns()
        except Exception as e:
            error = BannerGenerationError.wrap(e, default_kind=UPSTREAM_ERROR_KIND)
            logger.error(f"Respawn list unavailable: [{error.kind}] {error.message}")
            raise error from e

        try:
            width, height, layers = plan_respawn_grid(respawns)
            image = Compositor(width, height, RESPAWN_PALETTE, self.font_paths).render(layers)
        except Exception as e:
            error = BannerGenerationError.wrap(e)
            logger.error(f"Respawn image generation failed: [{error.kind}] {error.message}")
            raise error from e

        logger.info(f"Rendered respawn image with {len(respawns)} respawns ({width}x{height})")
        return image
