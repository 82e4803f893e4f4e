"""Tests for theme asset resolution."""

import asyncio

import pytest

from guild_banner.adapters.assets import AssetResolver
from guild_banner.adapters.assets.resolver import background_candidates, logo_candidates
from guild_banner.core.errors import AssetResolutionError


def write(directory, name, data: bytes):
    directory.mkdir(parents=True, exist_ok=True)
    (directory / name).write_bytes(data)


class TestAssetResolver:
    """Test cases for AssetResolver."""

    def test_candidate_order(self):
        assert logo_candidates("dark") == ["logo-dark.png", "logo.png"]
        assert background_candidates("dark") == ["background-dark.png", "image.png"]

    @pytest.mark.asyncio
    async def test_theme_file_preferred(self, tmp_path):
        write(tmp_path, "logo-dark.png", b"dark-logo")
        write(tmp_path, "logo.png", b"default-logo")
        write(tmp_path, "background-dark.png", b"dark-bg")
        write(tmp_path, "image.png", b"default-bg")
        resolver = AssetResolver([str(tmp_path)])

        assets = await resolver.resolve_theme_assets("dark")

        assert assets.logo == b"dark-logo"
        assert assets.background == b"dark-bg"

    @pytest.mark.asyncio
    async def test_default_file_when_theme_file_missing(self, tmp_path):
        write(tmp_path, "logo.png", b"default-logo")
        write(tmp_path, "image.png", b"default-bg")
        resolver = AssetResolver([str(tmp_path)])

        assets = await resolver.resolve_theme_assets("light")

        assert assets.logo == b"default-logo"
        assert assets.background == b"default-bg"

    @pytest.mark.asyncio
    async def test_locations_tried_in_order(self, tmp_path):
        """Test that an earlier location's default beats a later location's theme file."""
        first = tmp_path / "first"
        second = tmp_path / "second"
        write(first, "logo.png", b"first-logo")
        write(first, "image.png", b"first-bg")
        write(second, "logo-dark.png", b"second-dark-logo")
        write(second, "background-dark.png", b"second-dark-bg")
        resolver = AssetResolver([str(tmp_path / "missing"), str(first), str(second)])

        assets = await resolver.resolve_theme_assets("dark")

        assert assets.logo == b"first-logo"
        assert assets.background == b"first-bg"

    @pytest.mark.asyncio
    async def test_empty_file_is_skipped(self, tmp_path):
        write(tmp_path, "logo-dark.png", b"")
        write(tmp_path, "logo.png", b"default-logo")
        write(tmp_path, "image.png", b"default-bg")
        resolver = AssetResolver([str(tmp_path)])

        assets = await resolver.resolve_theme_assets("dark")

        assert assets.logo == b"default-logo"

    @pytest.mark.asyncio
    async def test_missing_assets_raise(self, tmp_path):
        write(tmp_path, "logo.png", b"default-logo")
        resolver = AssetResolver([str(tmp_path)])

        with pytest.raises(AssetResolutionError) as exc_info:
            await resolver.resolve_theme_assets("dark")

        assert "background-dark.png" in str(exc_info.value)
        assert "image.png" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_theme_name_normalised(self, tmp_path):
        write(tmp_path, "logo-dark.png", b"dark-logo")
        write(tmp_path, "image.png", b"default-bg")
        resolver = AssetResolver([str(tmp_path)])

        assets = await resolver.resolve_theme_assets("  DARK ")

        assert assets.logo == b"dark-logo"

    @pytest.mark.asyncio
    async def test_results_cached_per_theme(self, tmp_path):
        write(tmp_path, "logo.png", b"default-logo")
        write(tmp_path, "image.png", b"default-bg")
        resolver = AssetResolver([str(tmp_path)])

        first = await resolver.resolve_theme_assets("default")
        (tmp_path / "logo.png").write_bytes(b"changed")
        second = await resolver.resolve_theme_assets("default")

        assert second is first

        resolver.clear_cache()
        third = await resolver.resolve_theme_assets("default")
        assert third.logo == b"changed"

    @pytest.mark.asyncio
    async def test_concurrent_lookups_share_result(self, tmp_path):
        write(tmp_path, "logo.png", b"default-logo")
        write(tmp_path, "image.png", b"default-bg")
        resolver = AssetResolver([str(tmp_path)])

        results = await asyncio.gather(
            *(resolver.resolve_theme_assets("default") for _ in range(4))
        )

        assert all(result is results[0] for result in results)

    @pytest.mark.asyncio
    async def test_unknown_themes_share_default_entry(self, tmp_path):
        write(tmp_path, "logo.png", b"default-logo")
        write(tmp_path, "image.png", b"default-bg")
        resolver = AssetResolver([str(tmp_path)])

        results = [await resolver.resolve_theme_assets(f"nope{i}") for i in range(300)]

        assert all(result is results[0] for result in results)
        assert resolver._cache == {}
        assert len(resolver._shared) == 1

    @pytest.mark.asyncio
    async def test_unknown_theme_with_own_file_cached(self, tmp_path):
        write(tmp_path, "logo-neon.png", b"neon-logo")
        write(tmp_path, "logo.png", b"default-logo")
        write(tmp_path, "image.png", b"default-bg")
        resolver = AssetResolver([str(tmp_path)])

        neon = await resolver.resolve_theme_assets("neon")
        other = await resolver.resolve_theme_assets("other")

        assert neon.logo == b"neon-logo"
        assert other.logo == b"default-logo"
        assert set(resolver._cache) == {"neon"}
