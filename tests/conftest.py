"""Pytest configuration and fixtures for Starweave tests."""

import pytest

from starweave.manager import GalaxyManager, ManagerConfig
from starweave.models.galaxy import Galaxy, GalaxyConfig
from starweave.models.storage import MemoryStorage


@pytest.fixture
def small_config():
    """A compact galaxy: every star sits well inside the starting search radius."""
    return GalaxyConfig(seed=42, star_count=200, size=3000.0, core_size=1000.0)


@pytest.fixture
def galaxy(small_config):
    return Galaxy(small_config)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def manager_config(small_config):
    return ManagerConfig(galaxy_config=small_config, autosave_interval=10.0)


@pytest.fixture
def manager(manager_config, storage):
    """An initialized manager on a fresh in-memory store."""
    mgr = GalaxyManager(manager_config, storage)
    mgr.initialize()
    return mgr
