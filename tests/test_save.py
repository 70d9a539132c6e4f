import json
import math

import pytest

from starweave.constants import SAVE_KEY
from starweave.exceptions import PersistenceError, SaveValidationError, StorageError
from starweave.models.exploration import ExplorationState, TradeRoute, VisitedLocation
from starweave.models.save import GalaxyPersistence, LoadedGalaxy, build_snapshot, validate_snapshot
from starweave.models.storage import FallbackStorage, FileStorage, MemoryStorage


class RejectingStorage:
    """Backend whose writes always fail."""

    def __init__(self):
        self.attempts = 0

    def put(self, key, data):
        self.attempts += 1
        return False

    def get(self, key):
        return None


class BrokenStorage:
    def put(self, key, data):
        raise StorageError("disk on fire")

    def get(self, key):
        raise StorageError("disk on fire")


@pytest.fixture
def exploration(galaxy):
    systems = list(galaxy.systems.values())
    first, second = systems[0], systems[1]
    state = ExplorationState(
        current_system_id=second.id,
        home_system_id=first.id,
        systems_visited=2,
        distance_traveled=1234.5,
        discovery_progress=2 / len(systems),
        reputation={"traders": 0.25},
        trade_routes=[TradeRoute("route_1", first.id, second.id, "ore", 0.4, discovered=True)],
    )
    state.explored_systems.update({first.id, second.id})
    for planet in first.planets + second.planets:
        state.mark_planet_discovered(planet.id)
    state.visited_locations.append(
        VisitedLocation(system_id=second.id, timestamp=1_700_000_000.5, coordinates=second.position)
    )
    return state


def _saved_snapshot(storage):
    return json.loads(storage.get(SAVE_KEY).decode("utf-8"))


# ── Round trip ────────────────────────────────────────────────────────

def test_round_trip_restores_exploration(galaxy, exploration, storage):
    persistence = GalaxyPersistence(storage)
    persistence.save(galaxy, exploration)

    loaded = GalaxyPersistence(storage).load()
    assert loaded is not None
    assert loaded.config == galaxy.config
    assert loaded.exploration == exploration
    assert loaded.exploration.explored_systems == exploration.explored_systems
    assert loaded.exploration.planets_explored == exploration.planets_explored


def test_regenerated_galaxy_matches(galaxy, exploration, storage):
    GalaxyPersistence(storage).save(galaxy, exploration)
    loaded = GalaxyPersistence(storage).load()

    regenerated = loaded.regenerate()
    assert [(s.id, s.x, s.y) for s in regenerated.stars] == [(s.id, s.x, s.y) for s in galaxy.stars]
    assert regenerated.systems.keys() == galaxy.systems.keys()
    assert loaded.drift(regenerated) == []


def test_drift_detects_changed_generation(galaxy, exploration, storage):
    GalaxyPersistence(storage).save(galaxy, exploration)
    loaded = GalaxyPersistence(storage).load()
    loaded.stars[0].star_type = "BH"
    assert loaded.drift(galaxy) == [loaded.stars[0].id]


def test_save_returns_stored_blob(galaxy, exploration, storage):
    blob = GalaxyPersistence(storage).save(galaxy, exploration)
    assert blob == storage.get(SAVE_KEY)


# ── Compression ───────────────────────────────────────────────────────

def test_compression_rounds_fields(galaxy, exploration, storage):
    GalaxyPersistence(storage).save(galaxy, exploration)
    snapshot = _saved_snapshot(storage)

    assert snapshot["version"] == "2.0.0"
    for record, star in zip(snapshot["stars"], galaxy.stars):
        assert record["pos"] == [math.floor(star.x + 0.5), math.floor(star.y + 0.5)]
        assert all(isinstance(v, int) for v in record["pos"])
        assert record["mass"] == round(star.mass, 2)
        assert record["temp"] == math.floor(star.temperature + 0.5)
        assert record["color"] == list(star.color)

    for record in snapshot["systems"]:
        system = galaxy.systems[record["id"]]
        assert record["explored"] == (system.id in exploration.explored_systems)
        for planet_record, planet in zip(record["planets"], system.planets):
            assert planet_record["orbit"] == round(planet.orbit_distance, 2)
            assert planet_record["moons"] == len(planet.moons)


def test_snapshot_records_last_visit(galaxy, exploration):
    snapshot = build_snapshot(galaxy, exploration, timestamp=1.0)
    visited = {s["id"]: s.get("lastVisited") for s in snapshot["systems"]}
    assert visited[exploration.current_system_id] == 1_700_000_000.5
    assert visited[exploration.home_system_id] is None
    assert snapshot["timestamp"] == 1.0


def test_loaded_records_are_partial(galaxy, exploration, storage):
    GalaxyPersistence(storage).save(galaxy, exploration)
    loaded = GalaxyPersistence(storage).load()
    assert len(loaded.stars) == len(galaxy.stars)
    assert len(loaded.systems) == len(galaxy.systems)
    first = loaded.stars[0]
    assert first.position == (round(galaxy.stars[0].x), round(galaxy.stars[0].y))
    assert isinstance(first.color, tuple)


# ── Validation ────────────────────────────────────────────────────────

def test_load_without_save_returns_none(storage):
    assert GalaxyPersistence(storage).load() is None


@pytest.mark.parametrize("blob", [b"not json", b"[1, 2, 3]", b"\xff\xfe"])
def test_load_rejects_garbage(storage, blob):
    storage.put(SAVE_KEY, blob)
    assert GalaxyPersistence(storage).load() is None


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("version"),
        lambda d: d.update(version="3.0.0"),
        lambda d: d.update(version="one.two"),
        lambda d: d.pop("config"),
        lambda d: d.pop("stars"),
        lambda d: d.pop("systems"),
        lambda d: d["config"].pop("seed"),
        lambda d: d["config"].update(starCount=-4),
        lambda d: d["stars"][0].pop("pos"),
        lambda d: d.update(playerData=None),
        lambda d: d.update(playerData=[1, 2]),
        lambda d: d.update(reputation=None),
        lambda d: d.update(visitedLocations=[{"systemId": "x", "coordinates": None}]),
        lambda d: d.update(visitedLocations=["x"]),
        lambda d: d.update(tradeRoutes=[None]),
        lambda d: d.update(config=[1, 2]),
    ],
)
def test_load_fails_closed(galaxy, exploration, storage, mutate):
    GalaxyPersistence(storage).save(galaxy, exploration)
    snapshot = _saved_snapshot(storage)
    mutate(snapshot)
    storage.put(SAVE_KEY, json.dumps(snapshot).encode("utf-8"))

    assert GalaxyPersistence(storage).load() is None


def test_minor_version_difference_is_compatible(galaxy, exploration, storage):
    GalaxyPersistence(storage).save(galaxy, exploration)
    snapshot = _saved_snapshot(storage)
    snapshot["version"] = "2.7.3"
    storage.put(SAVE_KEY, json.dumps(snapshot).encode("utf-8"))

    loaded = GalaxyPersistence(storage).load()
    assert loaded is not None
    assert loaded.version == "2.7.3"


def test_validate_snapshot_messages():
    with pytest.raises(SaveValidationError, match="missing version"):
        validate_snapshot({"config": {}, "stars": [], "systems": []})
    with pytest.raises(SaveValidationError, match="Incompatible"):
        validate_snapshot({"version": "1.0.0", "config": {}, "stars": [], "systems": []})
    with pytest.raises(SaveValidationError, match="core data"):
        validate_snapshot({"version": "2.0.0", "config": {}, "stars": []})
    validate_snapshot({"version": "2.0.0", "config": {}, "stars": [], "systems": []})


def test_from_snapshot_wraps_config_errors():
    with pytest.raises(SaveValidationError):
        LoadedGalaxy.from_snapshot({"version": "2.0.0", "config": {"size": 10}, "stars": [], "systems": []})


# ── Storage failures ──────────────────────────────────────────────────

def test_rejected_write_raises(galaxy, exploration):
    backend = RejectingStorage()
    with pytest.raises(StorageError):
        GalaxyPersistence(backend).save(galaxy, exploration)
    assert backend.attempts == 1


def test_unreadable_storage_loads_nothing():
    assert GalaxyPersistence(BrokenStorage()).load() is None
    assert GalaxyPersistence(BrokenStorage()).has_save() is False


def test_fallback_storage_uses_secondary(galaxy, exploration):
    secondary = MemoryStorage()
    storage = FallbackStorage(RejectingStorage(), BrokenStorage(), secondary)
    GalaxyPersistence(storage).save(galaxy, exploration)

    assert secondary.get(SAVE_KEY) is not None
    loaded = GalaxyPersistence(storage).load()
    assert loaded.exploration == exploration


def test_fallback_storage_all_fail(galaxy, exploration):
    storage = FallbackStorage(RejectingStorage(), BrokenStorage())
    with pytest.raises(StorageError):
        GalaxyPersistence(storage).save(galaxy, exploration)


def test_fallback_needs_a_backend():
    with pytest.raises(ValueError):
        FallbackStorage()


def test_file_storage(tmp_path):
    storage = FileStorage(tmp_path / "saves")
    assert storage.get("galaxy") is None
    assert storage.put("galaxy", b"{}")
    assert storage.exists("galaxy")
    assert storage.get("galaxy") == b"{}"
    assert storage.path_for("galaxy") == tmp_path / "saves" / "galaxy.json"
    assert list((tmp_path / "saves").iterdir()) == [storage.path_for("galaxy")]
    storage.delete("galaxy")
    assert not storage.exists("galaxy")


def test_file_storage_round_trip(tmp_path, galaxy, exploration):
    GalaxyPersistence(FileStorage(tmp_path)).save(galaxy, exploration)
    loaded = GalaxyPersistence(FileStorage(tmp_path)).load()
    assert loaded.exploration == exploration


# ── Export / import / housekeeping ────────────────────────────────────

def test_export_requires_snapshot(storage):
    with pytest.raises(PersistenceError):
        GalaxyPersistence(storage).export_snapshot()


def test_export_import(galaxy, exploration, storage):
    source = GalaxyPersistence(storage)
    source.save(galaxy, exploration)
    text = source.export_snapshot()

    target = GalaxyPersistence(MemoryStorage())
    target.import_snapshot(text)
    assert target.load().exploration == exploration


def test_import_rejects_invalid(storage):
    with pytest.raises(SaveValidationError):
        GalaxyPersistence(storage).import_snapshot('{"version": "9.0.0"}')
    assert storage.get(SAVE_KEY) is None


def test_has_save_and_delete(galaxy, exploration, storage):
    persistence = GalaxyPersistence(storage)
    assert not persistence.has_save()
    persistence.save(galaxy, exploration)
    assert persistence.has_save()
    assert persistence.storage_stats()["cached_snapshot"] is True

    persistence.delete()
    assert not persistence.has_save()
    assert persistence.storage_stats()["last_save_time"] is None
