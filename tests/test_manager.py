import json
import math

import pytest

from starweave.constants import SAVE_KEY
from starweave.exceptions import ConfigurationError, NoStartingSystemError
from starweave.manager import GalaxyManager, ManagerConfig
from starweave.models.exploration import ExplorationState
from starweave.models.save import GalaxyPersistence
from starweave.models.stars import StarType
from starweave.models.storage import MemoryStorage
from starweave.states import ManagerState


def _other_system(manager):
    return next(s for s in manager.galaxy.systems.values() if s.id != manager.exploration.current_system_id)


# ── Initialization ────────────────────────────────────────────────────

def test_new_game_picks_starting_system(manager):
    start = manager.current_system
    assert start is not None
    assert start.planets
    assert manager.home_system is start
    assert manager.exploration.home_system_id == start.id
    assert manager.is_explored(start.id)
    assert all(manager.is_planet_discovered(p.id) for p in start.planets)
    assert manager.state == ManagerState.ACTIVE


def test_starting_system_prefers_sun_like_star(manager):
    sun_like = [
        s for s in manager.galaxy.systems_in_radius((0.0, 0.0), manager.config.start_search_radius)
        if s.planets and s.star.star_type == StarType.G
    ]
    if sun_like:
        assert manager.current_system is sun_like[0]
    else:
        assert manager.current_system.planets


def test_no_starting_system_is_fatal(small_config, storage):
    config = ManagerConfig(galaxy_config=small_config.replace(system_chance=0.0))
    with pytest.raises(NoStartingSystemError):
        GalaxyManager(config, storage).initialize()


def test_search_radius_bounds_start(small_config, storage):
    # No star is generated this far out, so nothing qualifies
    config = ManagerConfig(galaxy_config=small_config, start_search_radius=1e-3)
    manager = GalaxyManager(config, storage)
    with pytest.raises(NoStartingSystemError):
        manager.initialize()


def test_loaded_area_surrounds_current_system(manager):
    center = manager.current_system.position
    radius = manager.config.chunk_load_radius
    assert manager.current_system in manager.loaded_systems
    for system in manager.loaded_systems:
        assert math.hypot(system.x - center[0], system.y - center[1]) <= radius
    for star in manager.nearby_stars:
        assert math.hypot(star.x - center[0], star.y - center[1]) <= radius / 2


def test_invalid_manager_config():
    with pytest.raises(ConfigurationError):
        ManagerConfig(autosave_interval=0)
    with pytest.raises(ConfigurationError):
        ManagerConfig(chunk_load_radius=-1)


def test_queries_before_initialize_raise(manager_config, storage):
    with pytest.raises(RuntimeError):
        GalaxyManager(manager_config, storage).stats()


# ── Travel and exploration ────────────────────────────────────────────

def test_travel_to_unknown_system(manager):
    before = manager.stats()
    assert manager.travel_to("star_9999") is False
    assert manager.stats() == before


def test_travel_updates_state(manager):
    origin = manager.current_system
    target = _other_system(manager)
    expected = math.hypot(target.x - origin.x, target.y - origin.y)

    assert manager.travel_to(target.id) is True
    assert manager.current_system is target
    assert manager.exploration.current_system_id == target.id
    assert manager.exploration.distance_traveled == pytest.approx(expected)
    assert manager.exploration.systems_visited == 1
    assert manager.is_explored(target.id)
    assert manager.exploration.visited_locations[-1].system_id == target.id
    assert manager.exploration.visited_locations[-1].coordinates == target.position
    assert manager.system_distance(origin.id, target.id) == pytest.approx(expected)


def test_revisiting_does_not_double_count(manager):
    home = manager.current_system
    target = _other_system(manager)
    manager.travel_to(target.id)
    manager.travel_to(home.id)
    manager.travel_to(target.id)

    assert manager.exploration.systems_visited == 1
    assert len(manager.exploration.explored_systems) == 2
    assert len(manager.exploration.visited_locations) == 3


def test_explore_is_idempotent(manager):
    target = _other_system(manager)
    manager.explore_system(target.id)
    size = len(manager.exploration.explored_systems)
    planets = manager.exploration.planets_explored
    progress = manager.exploration.discovery_progress

    manager.explore_system(target.id)
    for planet in target.planets:
        manager.discover_planet(planet.id)

    assert len(manager.exploration.explored_systems) == size
    assert manager.exploration.planets_explored == planets
    assert manager.exploration.discovery_progress == progress
    assert manager.exploration.systems_visited == 0


def test_stats(manager):
    stats = manager.stats()
    galaxy = manager.galaxy
    assert stats.total_stars == len(galaxy.stars)
    assert stats.total_systems == len(galaxy.systems)
    assert stats.explored_systems == 1
    assert stats.discovered_planets == len(manager.current_system.planets)
    assert stats.current_system_name == manager.current_system.name
    assert stats.galaxy_size == galaxy.config.size
    assert stats.exploration_progress == pytest.approx(1 / len(galaxy.systems))


def test_system_distance_unknown(manager):
    assert manager.system_distance("star_9999", manager.current_system.id) == -1.0


# ── Autosave ──────────────────────────────────────────────────────────

def test_autosave_after_interval(manager, storage):
    manager.update(5.0)
    assert storage.get(SAVE_KEY) is None
    manager.update(6.0)
    assert storage.get(SAVE_KEY) is not None


def test_no_autosave_while_paused(manager, storage):
    manager.pause()
    assert manager.state == ManagerState.PAUSED
    manager.update(100.0)
    assert storage.get(SAVE_KEY) is None

    manager.resume()
    manager.update(100.0)
    assert storage.get(SAVE_KEY) is not None


def test_autosave_can_be_disabled(small_config, storage):
    manager = GalaxyManager(ManagerConfig(galaxy_config=small_config, enable_autosave=False), storage)
    manager.initialize()
    manager.update(1_000.0)
    assert storage.get(SAVE_KEY) is None


def test_save_failure_is_not_raised(manager_config):
    class Rejecting:
        def put(self, key, data):
            return False

        def get(self, key):
            return None

    manager = GalaxyManager(manager_config, Rejecting())
    manager.initialize()
    assert manager.save() is False


# ── Persistence through the manager ───────────────────────────────────

def test_reload_restores_exploration(manager, manager_config, storage):
    manager.travel_to(_other_system(manager).id)
    assert manager.save()

    # A different configured seed must not matter: the save wins
    reloaded = GalaxyManager(
        ManagerConfig(galaxy_config=manager_config.galaxy_config.replace(seed=7)), storage
    )
    reloaded.initialize()

    assert reloaded.galaxy.config == manager.galaxy.config
    assert reloaded.exploration == manager.exploration
    assert reloaded.current_system.id == manager.current_system.id
    assert [s.position for s in reloaded.galaxy.stars] == [s.position for s in manager.galaxy.stars]


def test_corrupt_save_falls_back_to_new_game(manager_config):
    storage = MemoryStorage()
    storage.put(SAVE_KEY, b"{broken")
    manager = GalaxyManager(manager_config, storage)
    manager.initialize()

    assert manager.state == ManagerState.ACTIVE
    assert manager.current_system is not None
    assert manager.exploration.systems_visited == 0


def test_malformed_player_data_falls_back_to_new_game(manager_config, galaxy):
    storage = MemoryStorage()
    GalaxyPersistence(storage).save(galaxy, ExplorationState())
    snapshot = json.loads(storage.get(SAVE_KEY))
    snapshot["playerData"] = None
    storage.put(SAVE_KEY, json.dumps(snapshot).encode("utf-8"))

    manager = GalaxyManager(manager_config, storage)
    manager.initialize()

    assert manager.state == ManagerState.ACTIVE
    assert manager.current_system is not None


def test_save_without_position_gets_starting_system(manager_config, galaxy):
    storage = MemoryStorage()
    GalaxyPersistence(storage).save(galaxy, ExplorationState())

    manager = GalaxyManager(manager_config, storage)
    manager.initialize()

    start = manager.find_starting_system()
    assert manager.current_system is start
    assert manager.home_system is start
    assert manager.is_explored(start.id)
    assert manager.stats().current_system_name == start.name


def test_dangling_current_system_keeps_home(manager_config, galaxy):
    home = next(s for s in galaxy.systems.values() if s.planets)
    exploration = ExplorationState(current_system_id="sys_missing", home_system_id=home.id)
    storage = MemoryStorage()
    GalaxyPersistence(storage).save(galaxy, exploration)

    manager = GalaxyManager(manager_config, storage)
    manager.initialize()

    assert manager.current_system is not None
    assert manager.current_system.id != "sys_missing"
    assert manager.exploration.home_system_id == home.id


def test_shutdown_saves(manager, storage):
    manager.shutdown()
    assert manager.state == ManagerState.SHUT_DOWN
    assert storage.get(SAVE_KEY) is not None
    assert manager.loaded_systems == []
    assert manager.save() is False


def test_export_import(manager):
    manager.travel_to(_other_system(manager).id)
    manager.save()
    text = manager.export_galaxy()

    other = GalaxyManager(ManagerConfig(galaxy_config=manager.galaxy.config), MemoryStorage())
    other.import_galaxy(text)
    assert other.exploration == manager.exploration
    assert other.state == ManagerState.ACTIVE


def test_search_systems(manager):
    name = manager.current_system.star.name
    assert manager.current_system in manager.search_systems(name)
