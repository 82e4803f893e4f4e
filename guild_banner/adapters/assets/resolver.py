"""Theme asset lookup with a fallback chain."""

import asyncio
from pathlib import Path
from typing import Optional, Sequence

import structlog

from guild_banner.core.entities import ThemeAssets
from guild_banner.core.errors import AssetResolutionError
from guild_banner.core.themes import THEMES

logger = structlog.get_logger()

LOGO_DEFAULT = "logo.png"
BACKGROUND_DEFAULT = "image.png"


def logo_candidates(theme: str) -> list[str]:
    return [f"logo-{theme}.png", LOGO_DEFAULT]


def background_candidates(theme: str) -> list[str]:
    return [f"background-{theme}.png", BACKGROUND_DEFAULT]


def _read_bytes(path: Path) -> Optional[bytes]:
    try:
        data = path.read_bytes()
    except OSError:
        return None
    return data or None


class AssetResolver:
    """Resolves logo and background bytes for a theme.

    Base locations are tried in order; inside each location the theme file is
    tried before the default file. Themes with their own files are cached per
    theme for the life of the resolver; named palettes are cached too. Other
    themes that fall back to the default files share one entry keyed by the
    files that won.
    """

    def __init__(self, base_paths: Sequence[str], timeout: float = 5.0):
        self.base_paths = [Path(p) for p in base_paths if p]
        self.timeout = timeout
        self._cache: dict[str, ThemeAssets] = {}
        self._shared: dict[tuple[Path, Path], ThemeAssets] = {}
        self._lock = asyncio.Lock()

    def clear_cache(self) -> None:
        self._cache.clear()
        self._shared.clear()

    async def _first_readable(self, names: list[str]) -> tuple[Path, bytes]:
        for base in self.base_paths:
            for name in names:
                path = base / name
                data = await asyncio.to_thread(_read_bytes, path)
                if data is not None:
                    return path, data
        tried = ", ".join(str(base / name) for base in self.base_paths for name in names)
        raise AssetResolutionError(f"No readable asset among: {tried}")

    async def _resolve(self, theme: str) -> tuple[ThemeAssets, bool]:
        """Read both assets; the flag tells whether a theme file won."""
        logo_path, logo = await self._first_readable(logo_candidates(theme))
        background_path, background = await self._first_readable(background_candidates(theme))
        logger.debug(
            "Resolved theme assets",
            theme=theme,
            logo=str(logo_path),
            background=str(background_path),
        )
        themed = logo_path.name == f"logo-{theme}.png" or (
            background_path.name == f"background-{theme}.png"
        )
        if themed:
            return ThemeAssets(logo=logo, background=background), True

        key = (logo_path, background_path)
        if key not in self._shared:
            self._shared[key] = ThemeAssets(logo=logo, background=background)
        return self._shared[key], False

    async def resolve_theme_assets(self, theme: str) -> ThemeAssets:
        """Return the theme's logo and background.

        Raises:
            AssetResolutionError: If either asset has no readable candidate or
                the lookup exceeds the timeout
        """
        theme = (theme or "default").strip().lower() or "default"
        cached = self._cache.get(theme)
        if cached:
            return cached

        async with self._lock:
            cached = self._cache.get(theme)
            if cached:
                return cached
            try:
                assets, themed = await asyncio.wait_for(self._resolve(theme), timeout=self.timeout)
            except asyncio.TimeoutError:
                raise AssetResolutionError(
                    f"Asset resolution for theme '{theme}' timed out after {self.timeout}s"
                )
            if themed or theme in THEMES:
                self._cache[theme] = assets
            return assets
