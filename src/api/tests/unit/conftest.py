"""Unit test fixtures with mocked dependencies."""

import pytest

from infrastructure.settings import (
    DatabaseSettings,
    get_access_settings,
    get_cache_settings,
    get_database_settings,
    get_settings,
)


@pytest.fixture
def mock_db_settings():
    """Provide test database settings."""
    return DatabaseSettings(
        host="testhost",
        port=5432,
        database="testdb",
        username="testuser",
        password="testpass",
    )


@pytest.fixture
def clear_settings_cache():
    """Reset the cached settings so environment changes are picked up."""
    getters = (get_settings, get_database_settings, get_cache_settings, get_access_settings)
    for getter in getters:
        getter.cache_clear()
    yield
    for getter in getters:
        getter.cache_clear()
