"""Shared pytest fixtures for oddsfeed tests."""

from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from fixtures.doubles import FakeClock, load_fixture
from oddsfeed.cache import FreshnessCache, MemoryStore
from oddsfeed.config import Settings, reset_settings


@pytest.fixture(autouse=True)
def _reset_settings_singleton():
    """Ensure no test sees settings cached by another."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def no_config_file(tmp_path: Path):
    """Point the config file lookup at a path that does not exist.

    Keeps a developer's ~/.config/oddsfeed/config.toml out of every test.
    """
    with patch("oddsfeed.config.CONFIG_FILE_PATH", tmp_path / "missing.toml"):
        yield


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def freshness_cache(memory_store: MemoryStore, clock: FakeClock) -> FreshnessCache:
    return FreshnessCache(memory_store, clock=clock)


@pytest.fixture
def settings(tmp_path: Path, no_config_file) -> Settings:
    """Settings with an API key and a throwaway cache database."""
    return Settings(
        odds_api_key="test-api-key",
        cache_db_path=str(tmp_path / "cache.db"),
        _env_file=None,
    )


@pytest.fixture
def odds_payload() -> list[dict[str, Any]]:
    return load_fixture("odds_response.json")


@pytest.fixture
def sports_payload() -> list[dict[str, Any]]:
    return load_fixture("sports_response.json")
