"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

from unittest.mock import MagicMock

import pytest

from rediscache.core.config import settings as settings_module
from rediscache.core.config.settings import Settings
from tests.test_fixtures.cache_factory import CacheTestFactory, InMemoryRedis

# ============================================================================
# Pytest Configuration
# ============================================================================

# pytest-asyncio runs in auto mode via pyproject.toml configuration


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """
    Keep tests independent of the developer's environment and .env file.

    The settings singleton is dropped rather than rebuilt on both sides of
    the test, so a test that leaves an invalid variable set fails only
    inside its own body.
    """
    for name in list(Settings.model_fields):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setitem(Settings.model_config, "env_file", None)
    settings_module._settings = None
    yield
    settings_module._settings = None


# ============================================================================
# Logging Fixtures
# ============================================================================


@pytest.fixture
def mock_logger():
    """
    Logger double exposing the info/warning/error/debug surface.
    """
    return MagicMock()


# ============================================================================
# Redis Fixtures
# ============================================================================


@pytest.fixture
def fake_redis():
    """In-memory Redis double."""
    return InMemoryRedis()


@pytest.fixture
async def redis_client(fake_redis, mock_logger):
    """Connected RedisClient backed by the in-memory double."""
    client = await CacheTestFactory.connected_client(fake_redis, logger_instance=mock_logger)
    yield client
    await client.disconnect()


@pytest.fixture
async def cache_provider(fake_redis, mock_logger):
    """Connected CacheProvider backed by the in-memory double."""
    provider = await CacheTestFactory.provider(fake_redis, logger_instance=mock_logger)
    yield provider
    await provider.shutdown()
