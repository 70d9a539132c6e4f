"""Save / load galaxy snapshots.

Snapshots are JSON, compressed lossily: positions rounded to whole light
years, masses / orbits / radii to two decimals, temperatures to whole
Kelvin, and moons collapsed to a count. Loading regenerates the full
dataset from the saved config and seed; only exploration state is restored
exactly.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Collection
from dataclasses import dataclass, field
from typing import Any

from ..constants import CHUNK_CACHE_CAPACITY, SAVE_KEY, SAVE_VERSION
from ..exceptions import ConfigurationError, PersistenceError, SaveValidationError, StorageError
from .chunks import ChunkCache, ChunkOptions, chunk_key, round_half_up
from .exploration import ExplorationState, exploration_from_snapshot, exploration_to_snapshot
from .galaxy import Galaxy, GalaxyConfig, ProgressCallback, StarSystem
from .planets import Planet
from .stars import Star
from .storage import MemoryStorage, StorageBackend

logger = logging.getLogger(__name__)


def _major(version: str) -> int:
    return int(version.split(".")[0])


@dataclass
class StarRecord:
    """A star as persisted: enough to draw the map and detect generator drift."""

    id: str
    name: str
    position: tuple[int, int]
    star_type: str
    mass: float
    temperature: int
    color: tuple[int, int, int]


@dataclass
class PlanetRecord:
    id: str
    name: str
    planet_type: str
    orbit: float
    radius: float
    temperature: int
    has_atmosphere: bool
    moon_count: int
    color: tuple[int, int, int]


@dataclass
class SystemRecord:
    id: str
    planets: list[PlanetRecord] = field(default_factory=list)
    explored: bool = False
    last_visited: float | None = None


# ── Compression ───────────────────────────────────────────────────────

def _star_to_dict(star: Star) -> dict:
    return {
        "id": star.id,
        "name": star.name,
        "pos": [round_half_up(star.x), round_half_up(star.y)],
        "type": star.star_type.value,
        "mass": round(star.mass, 2),
        "temp": round_half_up(star.temperature),
        "color": list(star.color),
    }


def _star_record_from_dict(d: dict) -> StarRecord:
    x, y = d["pos"]
    return StarRecord(
        id=d["id"],
        name=d.get("name", ""),
        position=(x, y),
        star_type=d["type"],
        mass=d.get("mass", 0.0),
        temperature=d.get("temp", 0),
        color=tuple(d.get("color", (255, 255, 255))),
    )


def _planet_to_dict(planet: Planet) -> dict:
    return {
        "id": planet.id,
        "name": planet.name,
        "type": planet.planet_type.value,
        "orbit": round(planet.orbit_distance, 2),
        "radius": round(planet.radius, 2),
        "temp": round_half_up(planet.temperature),
        "hasAtmo": planet.has_atmosphere,
        "moons": len(planet.moons),
        "color": list(planet.surface_color),
    }


def _planet_record_from_dict(d: dict) -> PlanetRecord:
    return PlanetRecord(
        id=d["id"],
        name=d.get("name", ""),
        planet_type=d["type"],
        orbit=d["orbit"],
        radius=d.get("radius", 0.0),
        temperature=d.get("temp", 0),
        has_atmosphere=d.get("hasAtmo", False),
        moon_count=d.get("moons", 0),
        color=tuple(d.get("color", (0, 0, 0))),
    )


def _system_to_dict(system: StarSystem, explored: bool, last_visited: float | None) -> dict:
    data: dict[str, Any] = {
        "id": system.id,
        "planets": [_planet_to_dict(p) for p in system.planets],
        "explored": explored,
    }
    if last_visited is not None:
        data["lastVisited"] = last_visited
    return data


def _system_record_from_dict(d: dict) -> SystemRecord:
    return SystemRecord(
        id=d["id"],
        planets=[_planet_record_from_dict(p) for p in d.get("planets", [])],
        explored=d.get("explored", False),
        last_visited=d.get("lastVisited"),
    )


def build_snapshot(galaxy: Galaxy, exploration: ExplorationState, timestamp: float | None = None) -> dict:
    """Assemble the persisted snapshot dict for ``galaxy`` and ``exploration``."""
    last_visited: dict[str, float] = {}
    for loc in exploration.visited_locations:
        last_visited[loc.system_id] = max(loc.timestamp, last_visited.get(loc.system_id, loc.timestamp))

    snapshot: dict[str, Any] = {
        "version": SAVE_VERSION,
        "timestamp": time.time() if timestamp is None else timestamp,
        "config": galaxy.config.to_dict(),
    }
    snapshot.update(exploration_to_snapshot(exploration))
    snapshot["stars"] = [_star_to_dict(s) for s in galaxy.stars]
    snapshot["systems"] = [
        _system_to_dict(s, s.id in exploration.explored_systems, last_visited.get(s.id))
        for s in galaxy.systems.values()
    ]
    return snapshot


# ── Validation ────────────────────────────────────────────────────────

def validate_snapshot(data: Any) -> None:
    """Raise SaveValidationError unless ``data`` is a loadable snapshot."""
    if not isinstance(data, dict):
        raise SaveValidationError("Invalid save data: not a JSON object")
    version = data.get("version")
    if not version or not isinstance(version, str):
        raise SaveValidationError("Invalid save data: missing version")
    for key in ("config", "stars", "systems"):
        if data.get(key) is None:
            raise SaveValidationError(f"Invalid save data: missing core data ({key})")
    try:
        major = _major(version)
    except ValueError:
        raise SaveValidationError(f"Invalid save version: {version!r}") from None
    if major != _major(SAVE_VERSION):
        raise SaveValidationError(f"Incompatible save version: {version}")


def decode_snapshot(blob: bytes) -> dict:
    try:
        data = json.loads(blob.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SaveValidationError(f"Save data is not valid JSON: {exc}") from exc
    validate_snapshot(data)
    return data


@dataclass
class LoadedGalaxy:
    """A validated snapshot: config, exploration state and compressed records."""

    version: str
    timestamp: float
    config: GalaxyConfig
    exploration: ExplorationState
    stars: list[StarRecord]
    systems: list[SystemRecord]

    @classmethod
    def from_snapshot(cls, data: dict) -> LoadedGalaxy:
        validate_snapshot(data)
        try:
            config = GalaxyConfig.from_dict(data["config"])
            return cls(
                version=data["version"],
                timestamp=data.get("timestamp", 0.0),
                config=config,
                exploration=exploration_from_snapshot(data),
                stars=[_star_record_from_dict(s) for s in data["stars"]],
                systems=[_system_record_from_dict(s) for s in data["systems"]],
            )
        except ConfigurationError as exc:
            raise SaveValidationError(f"Invalid save data: {exc}") from exc
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise SaveValidationError(f"Invalid save data: malformed record ({exc!r})") from exc

    def regenerate(self, progress: ProgressCallback | None = None) -> Galaxy:
        """Rebuild the full dataset from the saved seed and config."""
        return Galaxy(self.config, progress)

    def drift(self, galaxy: Galaxy) -> list[str]:
        """Ids of saved stars the regenerated galaxy no longer reproduces."""
        drifted = []
        for record in self.stars:
            star = galaxy.get_star(record.id)
            if (
                star is None
                or star.star_type.value != record.star_type
                or (round_half_up(star.x), round_half_up(star.y)) != tuple(record.position)
            ):
                drifted.append(record.id)
        return drifted


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


# ── Top-level API ─────────────────────────────────────────────────────

class GalaxyPersistence:
    """Snapshot save/load through an injected backend, plus the chunk cache."""

    def __init__(
        self,
        storage: StorageBackend | None = None,
        key: str = SAVE_KEY,
        chunk_capacity: int = CHUNK_CACHE_CAPACITY,
    ) -> None:
        self.storage = storage if storage is not None else MemoryStorage()
        self.key = key
        self.chunks = ChunkCache(chunk_capacity)
        self._snapshot: dict | None = None

    def save(self, galaxy: Galaxy, exploration: ExplorationState) -> bytes:
        """Serialize and store a snapshot; returns the stored blob.

        Raises StorageError when the backend rejects the write.
        """
        started = time.perf_counter()
        snapshot = build_snapshot(galaxy, exploration)
        blob = json.dumps(snapshot, separators=(",", ":")).encode("utf-8")

        try:
            written = self.storage.put(self.key, blob)
        except StorageError:
            logger.exception("Failed to save galaxy")
            raise
        if not written:
            logger.error("Storage rejected galaxy save (key=%r)", self.key)
            raise StorageError(f"Storage rejected write of {self.key!r}")

        self._snapshot = snapshot
        logger.info(
            "Galaxy saved in %.2f ms (%d stars, %d systems, %s)",
            (time.perf_counter() - started) * 1000,
            len(snapshot["stars"]), len(snapshot["systems"]), _format_size(len(blob)),
        )
        return blob

    def load(self) -> LoadedGalaxy | None:
        """Read and validate the stored snapshot, or None if there is no usable save."""
        try:
            blob = self.storage.get(self.key)
        except StorageError as exc:
            logger.error("Failed to read galaxy save: %s", exc)
            return None
        if blob is None:
            logger.warning("No galaxy save data found")
            return None

        try:
            data = decode_snapshot(blob)
            loaded = LoadedGalaxy.from_snapshot(data)
        except SaveValidationError as exc:
            logger.warning("Rejected galaxy save: %s", exc)
            return None

        self._snapshot = data
        logger.info(
            "Galaxy save loaded (version %s, seed %d, %d explored systems)",
            loaded.version, loaded.config.seed, len(loaded.exploration.explored_systems),
        )
        return loaded

    def load_chunk(
        self,
        galaxy: Galaxy,
        center: tuple[float, float],
        radius: float,
        max_systems: int,
        include_unexplored: bool = True,
        explored: Collection[str] | None = None,
    ) -> list[StarSystem]:
        """Systems around ``center``, cached by quantized region.

        The nearest ``max_systems`` stars in generation order are considered;
        stars without a system, and unexplored systems when
        ``include_unexplored`` is false, are skipped. Explored-only chunks
        depend on the explored set and are never cached. Callers get a
        fresh list. Failures yield [].
        """
        options = ChunkOptions(center, radius, max_systems, include_unexplored)
        key = chunk_key(options)
        cached = self.chunks.get(key) if include_unexplored else None
        if cached is not None:
            return list(cached)

        logger.debug("Loading galaxy chunk: %s", key)
        try:
            if explored is None:
                explored = set(self._snapshot.get("exploredSystems", [])) if self._snapshot else set()
            stars = galaxy.stars_in_radius(center, radius)[:max(0, max_systems)]
            systems = []
            for star in stars:
                system = galaxy.get_system(star.id)
                if system is None:
                    continue
                if include_unexplored or system.id in explored:
                    systems.append(system)
        except Exception:
            logger.exception("Failed to load galaxy chunk: %s", key)
            return []

        if include_unexplored:
            self.chunks.put(key, list(systems))
        logger.debug("Loaded chunk with %d systems", len(systems))
        return systems

    def clear_cache(self) -> None:
        self._snapshot = None
        self.chunks.clear()
        logger.debug("Galaxy persistence cache cleared")

    def storage_stats(self) -> dict[str, Any]:
        return {
            "cached_snapshot": self._snapshot is not None,
            "loaded_chunks": len(self.chunks),
            "chunk_capacity": self.chunks.capacity,
            "last_save_time": self._snapshot.get("timestamp") if self._snapshot else None,
        }

    def export_snapshot(self) -> str:
        """Pretty-printed JSON of the last saved or loaded snapshot."""
        if self._snapshot is None:
            raise PersistenceError("No galaxy data to export")
        return json.dumps(self._snapshot, indent=2)

    def import_snapshot(self, text: str) -> None:
        """Validate a snapshot exported elsewhere and make it the stored save."""
        data = decode_snapshot(text.encode("utf-8"))
        LoadedGalaxy.from_snapshot(data)
        if not self.storage.put(self.key, json.dumps(data, separators=(",", ":")).encode("utf-8")):
            raise StorageError(f"Storage rejected write of {self.key!r}")
        self._snapshot = data
        logger.info("Galaxy data imported")

    def has_save(self) -> bool:
        try:
            return self.storage.get(self.key) is not None
        except StorageError:
            return False

    def delete(self) -> None:
        """Remove the stored save if the backend supports deletion."""
        delete = getattr(self.storage, "delete", None)
        if delete is not None:
            delete(self.key)
        self._snapshot = None
