"""Layout planning for guild banners.

Turns aggregated data into an ordered list of layer specs. Every position
comes from one fractional geometry table, so the same plan scales to any
canvas size and localized strings only change content, never placement.
"""

import math
from typing import Optional

from ..core.entities import (
    ASSET_BACKGROUND,
    ASSET_LOGO,
    AggregatedData,
    Color,
    Geometry,
    ImageContent,
    LayerContent,
    LayerSpec,
    PanelContent,
    ProgressBarContent,
    TextContent,
)
from ..core.enums import BAND_SIZE, LayerKind, TextAlign, ZBand
from ..core.themes import ThemePalette, get_palette
from ..core.translations import Labels, get_labels


DESCRIPTION_MAX_CHARS = 100
ELLIPSIS = "..."

DEFAULT_FOOTER_TEXT = "https://firebot.run"

# Pixel insets of the content panels, converted to fractions per canvas
PANEL_INSET_PX = 10
RIGHT_COLUMN_INSET_PX = 20

PANEL_RADIUS = 0.015
BADGE_RADIUS = 0.02


def online_percentage(players_online: int, members_total: int) -> int:
    """Share of guild members online, in whole percent.

    Rounds half up. A guild with no members is 0%.
    """
    if members_total <= 0:
        return 0
    return math.floor(players_online / members_total * 100 + 0.5)


def progress_fraction(percentage: int) -> float:
    """Progress-bar fill for a percentage, clamped to [0, 1]."""
    return min(max(percentage / 100, 0.0), 1.0)


def truncate_description(description: str, limit: int = DESCRIPTION_MAX_CHARS) -> str:
    """Cut free text to ``limit`` characters, marking the cut with an ellipsis."""
    description = description.strip()
    if len(description) > limit:
        return description[:limit] + ELLIPSIS
    return description


def geometry_table(width: int) -> dict[str, Geometry]:
    """Boxes of every banner element, as fractions of the canvas.

    Text boxes span from the top of the glyphs to just below the baseline;
    the compositor sizes fonts from the box height.
    """
    inset = PANEL_INSET_PX / width
    right_x = 0.65 + RIGHT_COLUMN_INSET_PX / width
    right_w = 0.97 - right_x

    return {
        # Background and panels
        "background": Geometry(0.0, 0.0, 1.0, 1.0),
        "header": Geometry(0.0, 0.0, 1.0, 0.12),
        "left_panel": Geometry(inset, 0.14, 0.62, 0.82),
        "right_panel": Geometry(0.64 + inset, 0.14, 0.35 - 2 * inset, 0.82),
        "progress_bar": Geometry(0.02, 0.26, 0.58, 0.06),
        # Images and badges
        "logo": Geometry(0.80, 0.16, 0.17, 0.28),
        "boss_icon": Geometry(right_x, 0.60, 0.10, 0.34),
        "npc_badge": Geometry(0.785, 0.61, 0.19, 0.12),
        "event_badge": Geometry(0.785, 0.77, 0.19, 0.12),
        # Header text
        "world_name": Geometry(0.01, 0.03, 0.60, 0.06),
        "guild_name": Geometry(right_x, 0.04, right_w, 0.05),
        # Left column text
        "members_online": Geometry(0.02, 0.18, 0.58, 0.06),
        "progress_text": Geometry(0.02, 0.265, 0.58, 0.05),
        "founded": Geometry(0.02, 0.345, 0.58, 0.045),
        "description": Geometry(0.02, 0.43, 0.58, 0.04),
        "players_online": Geometry(0.02, 0.525, 0.58, 0.045),
        "record": Geometry(0.02, 0.605, 0.58, 0.045),
        "location": Geometry(0.02, 0.685, 0.58, 0.045),
        "generated_at": Geometry(0.02, 0.765, 0.58, 0.04),
        "footer": Geometry(0.02, 0.865, 0.58, 0.045),
        # Right column text
        "boss_label": Geometry(right_x, 0.45, right_w, 0.05),
        "boss_name": Geometry(right_x, 0.515, right_w, 0.045),
        "npc_location": Geometry(0.79, 0.645, 0.18, 0.05),
        "special_event": Geometry(0.79, 0.805, 0.18, 0.05),
    }


class LayerStack:
    """Collects layers and assigns ``z_order`` band by band.

    Layers in one band are numbered in insertion order, so the final order
    is total and independent of how the planner interleaves bands.
    """

    def __init__(self):
        self._layers: list[LayerSpec] = []
        self._next_position: dict[ZBand, int] = {}

    def add(
        self,
        band: ZBand,
        kind: LayerKind,
        geometry: Geometry,
        content: LayerContent,
        name: str = "",
    ) -> LayerSpec:
        position = self._next_position.get(band, 0)
        if position >= BAND_SIZE:
            raise ValueError(f"Too many layers in band {band.name}")
        self._next_position[band] = position + 1

        layer = LayerSpec(
            kind=kind,
            geometry=geometry,
            content=content,
            z_order=band.base + position,
            name=name,
        )
        self._layers.append(layer)
        return layer

    def text(
        self,
        name: str,
        geometry: Geometry,
        text: str,
        color: Color,
        bold: bool = False,
        align: TextAlign = TextAlign.LEFT,
    ) -> LayerSpec:
        return self.add(
            ZBand.TEXT,
            LayerKind.TEXT,
            geometry,
            TextContent(text=text, color=color, bold=bold, align=align),
            name,
        )

    def layers(self) -> list[LayerSpec]:
        return sorted(self._layers, key=lambda layer: layer.z_order)


class LayoutPlanner:
    """Builds the layer stack of a guild banner."""

    def __init__(self, footer_text: str = DEFAULT_FOOTER_TEXT):
        self.footer_text = footer_text

    def plan_layout(
        self,
        data: AggregatedData,
        theme: str = "default",
        lang: str = "pt",
        width: int = 1200,
        height: int = 300,
        show_boss: bool = True,
        show_logo: bool = True,
    ) -> list[LayerSpec]:
        """Compute the ordered layers for one banner.

        Args:
            data: Aggregated source data
            theme: Theme name; unknown names use the default palette
            lang: Locale; unknown locales use the default labels
            width: Canvas width in pixels
            height: Canvas height in pixels; vertical geometry is purely
                fractional, so it does not change the plan
            show_boss: Include the boosted boss block when it is present
            show_logo: Include the theme logo

        Returns:
            Layers sorted by ascending ``z_order``
        """
        palette = get_palette(theme)
        labels = get_labels(lang)
        table = geometry_table(width)
        stack = LayerStack()

        self._add_background(stack, table, palette)
        self._add_progress_bar(stack, table, palette, data)
        if show_logo:
            stack.add(
                ZBand.LOGO,
                LayerKind.IMAGE,
                table["logo"],
                ImageContent(asset=ASSET_LOGO),
                "logo",
            )

        boss = data.boosted_boss
        boss_visible = show_boss and boss.is_present
        if boss_visible and boss.value.image:
            stack.add(
                ZBand.ICONS,
                LayerKind.IMAGE,
                table["boss_icon"],
                ImageContent(data=boss.value.image),
                "boss_icon",
            )
        stack.add(
            ZBand.ICONS,
            LayerKind.PANEL,
            table["npc_badge"],
            PanelContent(fill=palette.badge_bg, radius=BADGE_RADIUS),
            "npc_badge",
        )
        event_visible = data.special_event_active and data.world_events.is_present
        if event_visible:
            stack.add(
                ZBand.ICONS,
                LayerKind.PANEL,
                table["event_badge"],
                PanelContent(fill=palette.badge_bg, radius=BADGE_RADIUS),
                "event_badge",
            )

        self._add_header_text(stack, table, palette, data)
        self._add_left_column_text(stack, table, palette, labels, data)

        # Right column, top to bottom
        if boss_visible:
            stack.text(
                "boss_label", table["boss_label"], f"{labels.boosted_boss}:",
                palette.primary_text, bold=True,
            )
            stack.text("boss_name", table["boss_name"], boss.value.name, palette.accent_text)
        npc = data.npc_location.value
        stack.text(
            "npc_location", table["npc_location"], f"{labels.npc_location}: {npc.city}",
            palette.primary_text, align=TextAlign.CENTER,
        )
        if event_visible:
            stack.text(
                "special_event", table["special_event"], labels.special_event,
                palette.primary_text, bold=True, align=TextAlign.CENTER,
            )

        return stack.layers()

    def _add_background(self, stack: LayerStack, table: dict[str, Geometry], palette: ThemePalette):
        stack.add(
            ZBand.BACKGROUND,
            LayerKind.IMAGE,
            table["background"],
            ImageContent(asset=ASSET_BACKGROUND, opacity=palette.background_opacity, cover=True),
            "background",
        )
        stack.add(
            ZBand.PANELS,
            LayerKind.PANEL,
            table["header"],
            PanelContent(fill=palette.header_start, fill_end=palette.header_end),
            "header",
        )
        for name in ("left_panel", "right_panel"):
            stack.add(
                ZBand.PANELS,
                LayerKind.PANEL,
                table[name],
                PanelContent(fill=palette.content_bg, radius=PANEL_RADIUS),
                name,
            )

    def _add_progress_bar(
        self,
        stack: LayerStack,
        table: dict[str, Geometry],
        palette: ThemePalette,
        data: AggregatedData,
    ):
        percentage = online_percentage(data.guild.players_online, data.guild.members_total)
        stack.add(
            ZBand.PROGRESS_BAR,
            LayerKind.PROGRESS_BAR,
            table["progress_bar"],
            ProgressBarContent(
                fraction=progress_fraction(percentage),
                track=palette.progress_track,
                fill=palette.progress_fill,
                radius=PANEL_RADIUS,
            ),
            "progress_bar",
        )

    def _add_header_text(
        self,
        stack: LayerStack,
        table: dict[str, Geometry],
        palette: ThemePalette,
        data: AggregatedData,
    ):
        world = data.world.value
        stack.text(
            "world_name", table["world_name"], f"{world.name} ({world.pvp_type})",
            palette.primary_text, bold=True,
        )
        stack.text("guild_name", table["guild_name"], data.guild.name, palette.primary_text)

    def _add_left_column_text(
        self,
        stack: LayerStack,
        table: dict[str, Geometry],
        palette: ThemePalette,
        labels: Labels,
        data: AggregatedData,
    ):
        guild = data.guild
        world = data.world.value
        percentage = online_percentage(guild.players_online, guild.members_total)

        stack.text(
            "members_online", table["members_online"], f"{labels.members_online}:",
            palette.primary_text, bold=True,
        )
        stack.text(
            "progress_text",
            table["progress_text"],
            f"{guild.players_online}/{guild.members_total} ({percentage}%)",
            palette.primary_text,
            bold=True,
            align=TextAlign.CENTER,
        )
        if guild.founded.strip():
            stack.text(
                "founded", table["founded"], f"{labels.founded}: {guild.founded}",
                palette.secondary_text,
            )
        description = self._description_text(guild.description)
        if description:
            stack.text("description", table["description"], description, palette.accent_text)

        stack.text(
            "players_online", table["players_online"],
            f"{labels.players_online}: {world.players_online}", palette.success_text,
        )
        stack.text(
            "record", table["record"], f"{labels.record}: {world.record_players}",
            palette.warning_text,
        )
        stack.text("location", table["location"], world.location, palette.danger_text)
        stack.text(
            "generated_at", table["generated_at"],
            f"{labels.generated_at}: {data.generated_at_text}", palette.secondary_text,
        )
        stack.text(
            "footer", table["footer"], self.footer_text, palette.accent_text,
            align=TextAlign.CENTER,
        )

    @staticmethod
    def _description_text(description: str) -> Optional[str]:
        description = truncate_description(description)
        if not description:
            return None
        return f'"{description}"'
