"""Plain text banner: one centred line of black text on white."""

import dataclasses
import logging
from typing import Optional, Sequence

from ..core.entities import Geometry, LayerSpec
from ..core.enums import TextAlign
from ..core.errors import BannerGenerationError
from ..core.themes import get_palette
from .compositor import Compositor
from .layout import LayerStack


logger = logging.getLogger(__name__)

TEXT_BANNER_WIDTH = 1200
TEXT_BANNER_HEIGHT = 630
TEXT_BOX_HEIGHT = 60  # a 48 px font at the compositor's size ratio
TEXT_MARGIN = 40

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)

TEXT_PALETTE = dataclasses.replace(
    get_palette("light"),
    name="text",
    gradient_start=WHITE,
    gradient_end=WHITE,
)


def plan_text_banner(text: str) -> list[LayerSpec]:
    stack = LayerStack()
    stack.text(
        "text",
        Geometry(
            TEXT_MARGIN / TEXT_BANNER_WIDTH,
            (TEXT_BANNER_HEIGHT - TEXT_BOX_HEIGHT) / 2 / TEXT_BANNER_HEIGHT,
            (TEXT_BANNER_WIDTH - 2 * TEXT_MARGIN) / TEXT_BANNER_WIDTH,
            TEXT_BOX_HEIGHT / TEXT_BANNER_HEIGHT,
        ),
        text,
        BLACK,
        align=TextAlign.CENTER,
    )
    return stack.layers()


class TextBannerService:
    """Renders free text as a 1200x630 PNG."""

    def __init__(self, font_paths: Optional[Sequence[str]] = None):
        self.font_paths = font_paths

    def generate_text_banner(self, text: str) -> bytes:
        """Render ``text`` centred on a white canvas.

        Raises:
            ValueError: If ``text`` is not a string
            BannerGenerationError: If rendering fails
        """
        if not isinstance(text, str):
            raise ValueError("text must be a string")

        try:
            compositor = Compositor(
                TEXT_BANNER_WIDTH, TEXT_BANNER_HEIGHT, TEXT_PALETTE, self.font_paths
            )
            image = compositor.render(plan_text_banner(text))
        except Exception as e:
            error = BannerGenerationError.wrap(e)
            logger.error(f"Text banner generation failed: [{error.kind}] {error.message}")
            raise error from e

        logger.info(f"Rendered text banner ({len(text)} characters)")
        return image
