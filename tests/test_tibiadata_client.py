"""Tests for TibiaData API client."""

import httpx
import pytest

from guild_banner.adapters.tibiadata import (
    TibiaDataAPIError,
    TibiaDataClient,
    TibiaDataNotFoundError,
)
from tests.factories import TibiaDataPayloads
from tests.provider_mocks import BOSS_IMAGE_URL, TIBIADATA_URL


class TestTibiaDataClient:
    """Test cases for TibiaDataClient."""

    def test_initialization(self):
        """Test client initialization."""
        client = TibiaDataClient(TIBIADATA_URL + "/", request_timeout=3.0)
        assert client.base_url == TIBIADATA_URL
        assert client.request_timeout == 3.0

    @pytest.mark.asyncio
    async def test_get_world_info_success(self, provider_mocks):
        provider_mocks.mock_world("Antica")
        client = TibiaDataClient(TIBIADATA_URL)

        world = await client.get_world_info("Antica")

        assert world.name == "Antica"
        assert world.players_online == 321
        assert world.record_players == 1234
        assert world.location == "Europe"
        assert world.pvp_type == "Open PvP"

        await client.close()

    @pytest.mark.asyncio
    async def test_get_guild_info_success(self, provider_mocks):
        provider_mocks.mock_guild("Redd")
        client = TibiaDataClient(TIBIADATA_URL)

        guild = await client.get_guild_info("Redd")

        assert guild.name == "Redd"
        assert guild.players_online == 12
        assert guild.members_total == 40
        assert guild.founded == "2019-03-02"

        await client.close()

    @pytest.mark.asyncio
    async def test_guild_name_is_url_encoded(self, provider_mocks):
        route = provider_mocks.router.get(url__regex=rf"{TIBIADATA_URL}/v4/guild/.*").mock(
            return_value=httpx.Response(200, json=TibiaDataPayloads.guild(name="Redd Alliance"))
        )
        client = TibiaDataClient(TIBIADATA_URL)

        guild = await client.get_guild_info("Redd Alliance")

        assert guild.name == "Redd Alliance"
        assert route.calls[0].request.url.raw_path == b"/v4/guild/Redd%20Alliance"

        await client.close()

    @pytest.mark.asyncio
    async def test_empty_guild_payload_is_not_found(self, provider_mocks):
        """Test that TibiaData's empty guild object is reported as not found."""
        provider_mocks.mock_guild("Nobody", response_data={"guild": {"name": ""}})
        client = TibiaDataClient(TIBIADATA_URL)

        with pytest.raises(TibiaDataNotFoundError):
            await client.get_guild_info("Nobody")

        await client.close()

    @pytest.mark.asyncio
    async def test_http_404_is_not_found(self, provider_mocks):
        provider_mocks.mock_world("Nowhere", status_code=404, response_data={})
        client = TibiaDataClient(TIBIADATA_URL)

        with pytest.raises(TibiaDataNotFoundError):
            await client.get_world_info("Nowhere")

        await client.close()

    @pytest.mark.asyncio
    async def test_server_error(self, provider_mocks):
        provider_mocks.mock_boosted_boss(status_code=503, response_data={"error": "down"})
        client = TibiaDataClient(TIBIADATA_URL)

        with pytest.raises(TibiaDataAPIError) as exc_info:
            await client.get_boosted_boss()

        assert not isinstance(exc_info.value, TibiaDataNotFoundError)

        await client.close()

    @pytest.mark.asyncio
    async def test_transport_error(self, provider_mocks):
        provider_mocks.router.get(f"{TIBIADATA_URL}/v4/world/Antica").mock(
            side_effect=httpx.ConnectError("connection refused")
        )
        client = TibiaDataClient(TIBIADATA_URL)

        with pytest.raises(TibiaDataAPIError):
            await client.get_world_info("Antica")

        await client.close()

    @pytest.mark.asyncio
    async def test_get_boosted_boss(self, provider_mocks):
        provider_mocks.mock_boosted_boss()
        client = TibiaDataClient(TIBIADATA_URL)

        boss = await client.get_boosted_boss()

        assert boss.name == "Ferumbras"
        assert boss.image_url == BOSS_IMAGE_URL
        assert boss.image is None

        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_image(self, provider_mocks):
        provider_mocks.mock_boss_image(content=b"\x89PNG-bytes")
        client = TibiaDataClient(TIBIADATA_URL)

        assert await client.fetch_image(BOSS_IMAGE_URL) == b"\x89PNG-bytes"

        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_image_failure(self, provider_mocks):
        provider_mocks.mock_boss_image(status_code=404, content=b"")
        client = TibiaDataClient(TIBIADATA_URL)

        with pytest.raises(TibiaDataAPIError):
            await client.fetch_image(BOSS_IMAGE_URL)

        await client.close()
