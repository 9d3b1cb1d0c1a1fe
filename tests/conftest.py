"""Pytest configuration and fixtures."""

import json
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from hanko.client import ClientConfig
from hanko.common.settings import Settings

TEST_BASE_URL = "http://localhost:9496"
TEST_API_SECRET = "test-secret"
TEST_API_KEY_ID = "test-key"


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        base_url=TEST_BASE_URL,
        api_secret=TEST_API_SECRET,
        api_key_id=TEST_API_KEY_ID,
        http_timeout=5.0,
    )


@pytest.fixture
def hmac_config() -> ClientConfig:
    """Client config with HMAC signing enabled."""
    return ClientConfig(
        base_url=TEST_BASE_URL,
        api_secret=TEST_API_SECRET,
        api_key_id=TEST_API_KEY_ID,
    )


@pytest.fixture
def secret_config() -> ClientConfig:
    """Client config that sends the plain API secret."""
    return ClientConfig(base_url=TEST_BASE_URL, api_secret=TEST_API_SECRET)


@pytest.fixture
def make_response() -> Callable[..., AsyncMock]:
    """Factory for mocked aiohttp responses."""

    def _make(status: int = 200, body: Any = None) -> AsyncMock:
        response = AsyncMock()
        response.status = status
        if body is None:
            text = ""
        elif isinstance(body, str):
            text = body
        else:
            text = json.dumps(body)
        response.text = AsyncMock(return_value=text)
        response.__aenter__ = AsyncMock(return_value=response)
        response.__aexit__ = AsyncMock(return_value=None)
        return response

    return _make


@pytest.fixture
def mock_session() -> MagicMock:
    """Mock aiohttp session."""
    session = MagicMock()
    session.request = AsyncMock()
    session.close = AsyncMock()
    return session
