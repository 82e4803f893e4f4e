"""Theme palettes.

Every theme defines the full set of colours; lookups for unknown themes
return the default palette, never a partial one.
"""

from dataclasses import dataclass

from .entities import Color


DEFAULT_THEME = "default"


def hex_to_rgba(value: str, alpha: int = 255) -> Color:
    """Convert ``#rrggbb`` to an RGBA tuple."""
    value = value.lstrip("#")
    return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16), alpha)


@dataclass(frozen=True)
class ThemePalette:
    """Complete colour set of a theme."""

    name: str
    gradient_start: Color
    gradient_end: Color
    header_start: Color
    header_end: Color
    content_bg: Color
    primary_text: Color
    secondary_text: Color
    accent_text: Color
    success_text: Color
    warning_text: Color
    danger_text: Color
    progress_track: Color
    progress_fill: Color
    badge_bg: Color
    background_opacity: float = 0.35


_FIREBOT = dict(
    gradient_start=hex_to_rgba("#240000"),
    gradient_end=hex_to_rgba("#000000"),
    header_start=hex_to_rgba("#3c0000"),
    header_end=hex_to_rgba("#000000"),
    content_bg=(10, 10, 10, 230),
    primary_text=hex_to_rgba("#ffffff"),
    secondary_text=hex_to_rgba("#bbbbbb"),
    accent_text=hex_to_rgba("#ff3333"),
    success_text=hex_to_rgba("#00cc44"),
    warning_text=hex_to_rgba("#ffaa00"),
    danger_text=hex_to_rgba("#ff3333"),
    progress_track=hex_to_rgba("#222222"),
    progress_fill=hex_to_rgba("#750000"),
    badge_bg=hex_to_rgba("#750000", 220),
)

THEMES: dict[str, ThemePalette] = {
    "default": ThemePalette(name="default", **_FIREBOT),
    "firebot": ThemePalette(name="firebot", **_FIREBOT),
    "dark": ThemePalette(
        name="dark",
        gradient_start=hex_to_rgba("#1c1c24"),
        gradient_end=hex_to_rgba("#0b0b10"),
        header_start=hex_to_rgba("#2a2a3c"),
        header_end=hex_to_rgba("#18181f"),
        content_bg=(32, 32, 45, 230),
        primary_text=hex_to_rgba("#ffffff"),
        secondary_text=hex_to_rgba("#c8c8d2"),
        accent_text=hex_to_rgba("#64c8ff"),
        success_text=hex_to_rgba("#4cd97b"),
        warning_text=hex_to_rgba("#ffd700"),
        danger_text=hex_to_rgba("#ff6b6b"),
        progress_track=hex_to_rgba("#2c2c3a"),
        progress_fill=hex_to_rgba("#3a7bd5"),
        badge_bg=hex_to_rgba("#3a7bd5", 220),
        background_opacity=0.25,
    ),
    "light": ThemePalette(
        name="light",
        gradient_start=hex_to_rgba("#f5f5f7"),
        gradient_end=hex_to_rgba("#dcdce4"),
        header_start=hex_to_rgba("#ffffff"),
        header_end=hex_to_rgba("#e4e4ec"),
        content_bg=(255, 255, 255, 220),
        primary_text=hex_to_rgba("#1a1a1a"),
        secondary_text=hex_to_rgba("#555560"),
        accent_text=hex_to_rgba("#b00020"),
        success_text=hex_to_rgba("#1b7f3b"),
        warning_text=hex_to_rgba("#b36b00"),
        danger_text=hex_to_rgba("#b00020"),
        progress_track=hex_to_rgba("#d0d0d8"),
        progress_fill=hex_to_rgba("#b00020"),
        badge_bg=hex_to_rgba("#b00020", 220),
        background_opacity=0.2,
    ),
}


def get_palette(theme: str) -> ThemePalette:
    """Palette for ``theme``, falling back to the default theme."""
    return THEMES.get((theme or "").lower(), THEMES[DEFAULT_THEME])


def resolve_theme_name(theme: str) -> str:
    """Canonical name of the theme that will actually be used."""
    return get_palette(theme).name
