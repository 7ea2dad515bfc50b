"""Pytest configuration and fixtures."""

from collections.abc import Iterator
from datetime import UTC, datetime

import pytest

from polymarket_analytics.config import clear_settings_cache


@pytest.fixture
def sample_market_id() -> str:
    """Sample market ID for testing."""
    return "0x1234567890abcdef1234567890abcdef12345678"


@pytest.fixture
def sample_wallet() -> str:
    """Sample wallet address for testing."""
    return "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"


@pytest.fixture
def now() -> datetime:
    """Fixed evaluation time so results are reproducible."""
    return datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def fresh_settings() -> Iterator[None]:
    """Reset the cached settings around a test that changes the environment."""
    clear_settings_cache()
    yield
    clear_settings_cache()
