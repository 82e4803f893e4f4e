"""Raster composition of planned layers with Pillow.

Paints a list of layer specs onto a gradient canvas in ascending z-order and
encodes the result as PNG. Output carries no metadata, so the same layers and
assets always produce the same bytes.
"""

import io
import logging
import os
import re
import unicodedata
from typing import Optional, Sequence, Union

from PIL import Image, ImageDraw, ImageFont, ImageOps

from ..core.entities import (
    ASSET_BACKGROUND,
    ASSET_LOGO,
    Color,
    ImageContent,
    LayerSpec,
    PanelContent,
    ProgressBarContent,
    TextContent,
    ThemeAssets,
)
from ..core.enums import LayerKind, TextAlign
from ..core.errors import CompositionError
from ..core.themes import ThemePalette


logger = logging.getLogger(__name__)

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

# Font size as a share of the text box height
TEXT_SIZE_RATIO = 0.8
MIN_FONT_SIZE = 6

SYSTEM_FONT_PATHS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
]

SYSTEM_BOLD_FONT_PATHS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
]

_WHITESPACE = re.compile(r"\s+")


class TextLayerBuilder:
    """Turns arbitrary label input into the text that gets drawn.

    Bytes are decoded as UTF-8 with replacement characters, strings are NFC
    normalised, control and line-separator characters become spaces, runs of
    whitespace collapse to one space and the ends are stripped.
    """

    def build(self, value: Union[str, bytes, None]) -> str:
        if value is None:
            return ""
        if isinstance(value, (bytes, bytearray)):
            text = bytes(value).decode("utf-8", errors="replace")
        else:
            text = str(value)

        text = unicodedata.normalize("NFC", text)
        text = "".join(
            " " if unicodedata.category(char) in ("Cc", "Zl", "Zp") else char
            for char in text
        )
        return _WHITESPACE.sub(" ", text).strip()


class FontLoader:
    """Loads and caches fonts by size and weight."""

    def __init__(self, font_paths: Optional[Sequence[str]] = None):
        self.font_paths = [p for p in (font_paths or []) if p]
        self._cache: dict[tuple[int, bool], Font] = {}

    def _candidates(self, bold: bool) -> list[str]:
        if bold:
            return self.font_paths + SYSTEM_BOLD_FONT_PATHS + SYSTEM_FONT_PATHS
        return self.font_paths + SYSTEM_FONT_PATHS

    def load(self, size: int, bold: bool = False) -> Font:
        """Load a font, falling back to Pillow's default font if needed."""
        key = (size, bold)
        font = self._cache.get(key)
        if font is not None:
            return font

        for path in self._candidates(bold):
            if os.path.exists(path):
                try:
                    font = ImageFont.truetype(path, size)
                    break
                except OSError:
                    continue
        else:
            logger.debug(f"No TrueType font found for size {size}, using Pillow's default")
            font = ImageFont.load_default(size)

        self._cache[key] = font
        return font


def vertical_gradient(width: int, height: int, start: Color, end: Color) -> Image.Image:
    """RGBA canvas fading from ``start`` at the top to ``end`` at the bottom."""
    canvas = Image.new("RGBA", (width, height), start)
    draw = ImageDraw.Draw(canvas)
    span = max(height - 1, 1)
    for y in range(height):
        ratio = y / span
        color = tuple(round(s + (e - s) * ratio) for s, e in zip(start, end))
        draw.line([(0, y), (width - 1, y)], fill=color)
    return canvas


def horizontal_gradient(width: int, height: int, start: Color, end: Color) -> Image.Image:
    """RGBA strip fading from ``start`` on the left to ``end`` on the right."""
    strip = Image.new("RGBA", (width, height), start)
    draw = ImageDraw.Draw(strip)
    span = max(width - 1, 1)
    for x in range(width):
        ratio = x / span
        color = tuple(round(s + (e - s) * ratio) for s, e in zip(start, end))
        draw.line([(x, 0), (x, height - 1)], fill=color)
    return strip


class Compositor:
    """Renders layer specs to PNG bytes."""

    def __init__(
        self,
        width: int,
        height: int,
        palette: ThemePalette,
        font_paths: Optional[Sequence[str]] = None,
    ):
        self.width = width
        self.height = height
        self.palette = palette
        self.fonts = FontLoader(font_paths)
        self.text_builder = TextLayerBuilder()

    def render(self, layers: Sequence[LayerSpec], assets: Optional[ThemeAssets] = None) -> bytes:
        """Paint ``layers`` in ascending z-order and encode as PNG.

        Raises:
            CompositionError: On zero-area geometry, undecodable images,
                missing assets or encoder failures
        """
        if self.width <= 0 or self.height <= 0:
            raise CompositionError(f"Invalid canvas size {self.width}x{self.height}")

        canvas = vertical_gradient(
            self.width, self.height, self.palette.gradient_start, self.palette.gradient_end
        )

        for layer in sorted(layers, key=lambda layer: layer.z_order):
            try:
                self._paint(canvas, layer, assets)
            except CompositionError:
                raise
            except (OSError, ValueError, TypeError) as e:
                raise CompositionError(f"Failed to paint layer {layer.name or layer.kind.value}: {e}") from e

        output = io.BytesIO()
        try:
            canvas.convert("RGB").save(output, format="PNG")
        except (OSError, ValueError) as e:
            raise CompositionError(f"PNG encoding failed: {e}") from e
        return output.getvalue()

    def _box(self, layer: LayerSpec) -> tuple[int, int, int, int]:
        left, top, right, bottom = layer.geometry.to_pixels(self.width, self.height)
        if right <= left or bottom <= top:
            raise CompositionError(
                f"Layer {layer.name or layer.kind.value} has zero area at "
                f"{self.width}x{self.height}"
            )
        return left, top, right, bottom

    def _paint(self, canvas: Image.Image, layer: LayerSpec, assets: Optional[ThemeAssets]):
        box = self._box(layer)
        content = layer.content

        if layer.kind is LayerKind.PANEL and isinstance(content, PanelContent):
            self._paint_panel(canvas, box, content)
        elif layer.kind is LayerKind.PROGRESS_BAR and isinstance(content, ProgressBarContent):
            self._paint_progress_bar(canvas, box, content)
        elif layer.kind is LayerKind.IMAGE and isinstance(content, ImageContent):
            self._paint_image(canvas, box, content, assets)
        elif layer.kind is LayerKind.TEXT and isinstance(content, TextContent):
            self._paint_text(canvas, box, content)
        else:
            raise CompositionError(
                f"Layer {layer.name!r} of kind {layer.kind.value} has "
                f"{content.__class__.__name__} content"
            )

    def _radius(self, fraction: float, box_w: int, box_h: int) -> int:
        return max(0, min(round(fraction * self.height), box_w // 2, box_h // 2))

    def _rounded_overlay(self, size: tuple[int, int], fill: Color, radius: int) -> Image.Image:
        overlay = Image.new("RGBA", size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        draw.rounded_rectangle([0, 0, size[0] - 1, size[1] - 1], radius=radius, fill=fill)
        return overlay

    def _paint_panel(self, canvas: Image.Image, box: tuple[int, int, int, int], content: PanelContent):
        left, top, right, bottom = box
        w, h = right - left, bottom - top
        radius = self._radius(content.radius, w, h)
        if content.fill_end is None:
            overlay = self._rounded_overlay((w, h), content.fill, radius)
        else:
            overlay = Image.new("RGBA", (w, h), (0, 0, 0, 0))
            mask = Image.new("L", (w, h), 0)
            ImageDraw.Draw(mask).rounded_rectangle([0, 0, w - 1, h - 1], radius=radius, fill=255)
            overlay.paste(horizontal_gradient(w, h, content.fill, content.fill_end), mask=mask)
        canvas.alpha_composite(overlay, dest=(left, top))

    def _paint_progress_bar(
        self, canvas: Image.Image, box: tuple[int, int, int, int], content: ProgressBarContent
    ):
        left, top, right, bottom = box
        w, h = right - left, bottom - top
        track = self._rounded_overlay((w, h), content.track, self._radius(content.radius, w, h))
        canvas.alpha_composite(track, dest=(left, top))

        fill_w = round(w * min(max(content.fraction, 0.0), 1.0))
        if fill_w > 0:
            fill = self._rounded_overlay(
                (fill_w, h), content.fill, self._radius(content.radius, fill_w, h)
            )
            canvas.alpha_composite(fill, dest=(left, top))

    def _image_bytes(self, content: ImageContent, assets: Optional[ThemeAssets]) -> bytes:
        if content.data is not None:
            return content.data
        if assets is None:
            raise CompositionError(f"Layer needs asset {content.asset!r} but no assets were given")
        if content.asset == ASSET_LOGO:
            return assets.logo
        if content.asset == ASSET_BACKGROUND:
            return assets.background
        raise CompositionError(f"Unknown asset {content.asset!r}")

    def _paint_image(
        self,
        canvas: Image.Image,
        box: tuple[int, int, int, int],
        content: ImageContent,
        assets: Optional[ThemeAssets],
    ):
        left, top, right, bottom = box
        w, h = right - left, bottom - top

        data = self._image_bytes(content, assets)
        try:
            with Image.open(io.BytesIO(data)) as source:
                source.load()
                image = source.convert("RGBA")
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            raise CompositionError(f"Undecodable image: {e}") from e

        if content.cover:
            image = ImageOps.fit(image, (w, h), method=Image.Resampling.LANCZOS)
            dest = (left, top)
        else:
            scale = min(w / image.width, h / image.height)
            size = (max(1, round(image.width * scale)), max(1, round(image.height * scale)))
            image = image.resize(size, Image.Resampling.LANCZOS)
            dest = (left + (w - size[0]) // 2, top + (h - size[1]) // 2)

        if content.opacity < 1.0:
            opacity = max(content.opacity, 0.0)
            alpha = image.getchannel("A").point(lambda a: round(a * opacity))
            image.putalpha(alpha)

        canvas.alpha_composite(image, dest=dest)

    def _fit_font(self, draw: ImageDraw.ImageDraw, text: str, box_w: int, box_h: int, bold: bool) -> tuple[Font, int]:
        """Largest font not taller than the box that fits its width."""
        size = max(MIN_FONT_SIZE, int(box_h * TEXT_SIZE_RATIO))
        while True:
            font = self.fonts.load(size, bold)
            bbox = draw.textbbox((0, 0), text, font=font)
            text_w = bbox[2] - bbox[0]
            if text_w <= box_w or size <= MIN_FONT_SIZE:
                return font, text_w
            size -= 1

    def _paint_text(self, canvas: Image.Image, box: tuple[int, int, int, int], content: TextContent):
        left, top, right, bottom = box
        w, h = right - left, bottom - top

        text = self.text_builder.build(content.text)
        if not text:
            return

        draw = ImageDraw.Draw(canvas)
        font, text_w = self._fit_font(draw, text, w, h, content.bold)

        if content.align is TextAlign.CENTER:
            x = left + (w - text_w) // 2
        elif content.align is TextAlign.RIGHT:
            x = right - text_w
        else:
            x = left
        draw.text((x, top), text, font=font, fill=content.color)
