"""
Pytest fixtures for controller testing.
Provides a scripted fake connector and controllers wired to it.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from dsc_controller.connectors.dsc.client import DSCClient, DSCConfig
from dsc_controller.connectors.dsc.controller import DSCController
from dsc_controller.core.config import get_settings
from tests.tools.fake_connector import CONSUMER_URL, FakeConnector


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Settings are cached per process; tests that patch the environment need a fresh read."""
    get_settings.cache_clear()


@pytest.fixture
def fake_connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def dsc_config() -> DSCConfig:
    return DSCConfig(
        base_url=CONSUMER_URL,
        username="admin",
        password="password",
    )


@pytest_asyncio.fixture
async def dsc_client(
    dsc_config: DSCConfig, fake_connector: FakeConnector
) -> AsyncGenerator[DSCClient, None]:
    client = DSCClient(dsc_config, transport=fake_connector.transport())
    yield client
    await client.close()


@pytest_asyncio.fixture
async def controller(
    dsc_config: DSCConfig, fake_connector: FakeConnector
) -> AsyncGenerator[DSCController, None]:
    async with DSCController(
        dsc_config,
        camel_artifact_base_url="https://localhost:8080",
        transport=fake_connector.transport(),
    ) as dsc:
        yield dsc
