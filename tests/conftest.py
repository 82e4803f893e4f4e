"""Pytest fixtures for Guild Banner tests."""

import sys
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

# Add the parent directory to the path if not already there
# This ensures the guild_banner module can be imported in CI
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from guild_banner.config import reset_config
from mock_provider.control import MockProviderControlClient
from mock_provider.mock_provider_server import MockProviderServer
from tests.factories import ConfigFactory, make_png
from tests.provider_mocks import ProviderMockRouter


@pytest.fixture(autouse=True)
def clean_config():
    """Reset global config before each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def asset_dir(tmp_path):
    """Asset location holding only the default logo and background."""
    directory = tmp_path / "assets"
    directory.mkdir()
    (directory / "logo.png").write_bytes(make_png((40, 20), (255, 255, 255, 255)))
    (directory / "image.png").write_bytes(make_png((60, 15), (80, 0, 0, 255)))
    return directory


@pytest.fixture
def test_config(asset_dir):
    """Configuration pointing at the respx-mocked providers."""
    return ConfigFactory.create(asset_base_paths=[str(asset_dir)])


@pytest.fixture
def provider_mocks():
    """Started respx router for both providers."""
    with ProviderMockRouter() as mocks:
        yield mocks


@pytest_asyncio.fixture
async def mock_provider_server():
    """Start the mock TibiaData/Firebot server on a free port."""
    server = MockProviderServer()
    test_server = TestServer(server.app)
    await test_server.start_server()

    server.base_url = str(test_server.make_url("/")).rstrip("/")

    yield server

    await test_server.close()


@pytest_asyncio.fixture
async def mock_provider_control(mock_provider_server):
    """Control client for the running mock server."""
    client = MockProviderControlClient(mock_provider_server.base_url)
    await client.reset_server()
    return client
