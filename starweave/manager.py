"""Galaxy manager: owns exploration state and drives chunk loading.

Thin glue between generation and persistence: loads or generates the
galaxy, picks the starting system, handles travel and autosave, and
exposes the read-only query surface the rest of the game uses.
"""

from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import dataclass, field
from typing import Any

from .constants import (
    AUTOSAVE_INTERVAL,
    CHUNK_CACHE_CAPACITY,
    CHUNK_LOAD_RADIUS,
    MAX_LOADED_SYSTEMS,
    NEW_GAME_SIZE,
    NEW_GAME_STAR_COUNT,
    START_SEARCH_RADIUS,
)
from .exceptions import ConfigurationError, NoStartingSystemError, PersistenceError
from .models.exploration import ExplorationState, VisitedLocation
from .models.galaxy import Galaxy, GalaxyConfig, ProgressCallback, StarSystem
from .models.save import GalaxyPersistence
from .models.stars import Star, StarType
from .models.storage import StorageBackend
from .states import ManagerState

logger = logging.getLogger(__name__)


def _new_game_config() -> GalaxyConfig:
    return GalaxyConfig(
        seed=random.randrange(1_000_000),
        star_count=NEW_GAME_STAR_COUNT,
        size=NEW_GAME_SIZE,
    )


@dataclass
class ManagerConfig:
    enable_autosave: bool = True
    autosave_interval: float = AUTOSAVE_INTERVAL  # Seconds
    chunk_load_radius: float = CHUNK_LOAD_RADIUS  # Light years
    max_loaded_systems: int = MAX_LOADED_SYSTEMS
    start_search_radius: float = START_SEARCH_RADIUS
    chunk_cache_capacity: int = CHUNK_CACHE_CAPACITY
    galaxy_config: GalaxyConfig = field(default_factory=_new_game_config)

    def __post_init__(self) -> None:
        if self.autosave_interval <= 0:
            raise ConfigurationError(f"autosave_interval must be positive, got {self.autosave_interval!r}")
        if self.chunk_load_radius <= 0:
            raise ConfigurationError(f"chunk_load_radius must be positive, got {self.chunk_load_radius!r}")
        if self.max_loaded_systems < 0:
            raise ConfigurationError(f"max_loaded_systems must be >= 0, got {self.max_loaded_systems!r}")


@dataclass
class GalaxyStats:
    total_stars: int
    total_systems: int
    explored_systems: int
    discovered_planets: int
    systems_visited: int
    distance_traveled: float
    current_system_name: str
    galaxy_size: float
    exploration_progress: float  # 0–1


class GalaxyManager:
    """Unified interface for generation, persistence and exploration."""

    def __init__(
        self,
        config: ManagerConfig | None = None,
        storage: StorageBackend | None = None,
    ) -> None:
        self.config = config if config is not None else ManagerConfig()
        self.persistence = GalaxyPersistence(storage, chunk_capacity=self.config.chunk_cache_capacity)
        self.state = ManagerState.UNINITIALIZED

        self.galaxy: Galaxy | None = None
        self.exploration = ExplorationState()

        # Runtime data
        self._loaded_systems: dict[str, StarSystem] = {}
        self._nearby_stars: list[Star] = []
        self._current_system: StarSystem | None = None
        self._autosave_timer = 0.0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, progress: ProgressCallback | None = None) -> None:
        """Load the saved galaxy, or generate a new one if there is no usable save."""
        logger.info("Initializing galaxy...")
        saved = self.persistence.load()

        if saved is not None:
            logger.info("Loading existing galaxy (seed %d)", saved.config.seed)
            self.galaxy = saved.regenerate(progress)
            self.exploration = saved.exploration
            drifted = saved.drift(self.galaxy)
            if drifted:
                logger.warning(
                    "%d saved stars differ from the regenerated galaxy (first: %s)",
                    len(drifted), drifted[0],
                )
            self._restore_position()
        else:
            logger.info("Generating new galaxy...")
            self.galaxy = Galaxy(self.config.galaxy_config, progress)
            self.exploration = ExplorationState()
            self._setup_new_game()

        self._load_current_area()
        self._autosave_timer = 0.0
        self.state = ManagerState.ACTIVE
        logger.info("Galaxy initialization completed")

    def _restore_position(self) -> None:
        """Re-anchor a loaded save whose current system no longer resolves."""
        galaxy = self._require_galaxy()
        if galaxy.get_system(self.exploration.current_system_id) is not None:
            return
        start = self.find_starting_system()
        logger.warning(
            "Saved current system %r not found, moving to %s",
            self.exploration.current_system_id, start.name,
        )
        self.exploration.current_system_id = start.id
        if galaxy.get_system(self.exploration.home_system_id) is None:
            self.exploration.home_system_id = start.id
        self.explore_system(start.id)

    def _setup_new_game(self) -> None:
        start = self.find_starting_system()
        self.exploration.current_system_id = start.id
        self.exploration.home_system_id = start.id
        self.explore_system(start.id)
        logger.info("Starting system set: %s", start.name)

    def find_starting_system(self) -> StarSystem:
        """A Sun-like system with planets near the core, else any system with planets.

        Raises NoStartingSystemError if nothing qualifies within the search radius.
        """
        galaxy = self._require_galaxy()
        candidates = [
            s for s in galaxy.systems_in_radius((0.0, 0.0), self.config.start_search_radius)
            if s.planets
        ]
        for system in candidates:
            if system.star.star_type == StarType.G:
                return system
        if candidates:
            return candidates[0]
        raise NoStartingSystemError(
            f"No system with planets within {self.config.start_search_radius:.0f} ly of the galactic center"
        )

    def pause(self) -> None:
        if self.state == ManagerState.ACTIVE:
            self.state = ManagerState.PAUSED

    def resume(self) -> None:
        if self.state == ManagerState.PAUSED:
            self.state = ManagerState.ACTIVE

    def update(self, dt: float) -> None:
        """Advance the autosave timer by ``dt`` seconds."""
        if self.state != ManagerState.ACTIVE or not self.config.enable_autosave:
            return
        self._autosave_timer += dt
        if self._autosave_timer >= self.config.autosave_interval:
            self._autosave_timer = 0.0
            logger.debug("Autosaving galaxy")
            self.save()

    def save(self) -> bool:
        """Persist the galaxy; failures are logged, never raised."""
        if self.galaxy is None or self.state in (ManagerState.UNINITIALIZED, ManagerState.SHUT_DOWN):
            return False
        try:
            self.persistence.save(self.galaxy, self.exploration)
        except PersistenceError as exc:
            logger.error("Failed to save galaxy: %s", exc)
            return False
        return True

    def shutdown(self) -> None:
        """Final save, then drop cached data."""
        if self.state == ManagerState.SHUT_DOWN:
            return
        self.save()
        self._loaded_systems.clear()
        self._nearby_stars = []
        self.persistence.clear_cache()
        self.state = ManagerState.SHUT_DOWN
        logger.info("Galaxy manager shut down")

    # ------------------------------------------------------------------
    # Exploration
    # ------------------------------------------------------------------

    def _load_current_area(self) -> None:
        galaxy = self._require_galaxy()
        if not self.exploration.current_system_id:
            return
        self._current_system = galaxy.get_system(self.exploration.current_system_id)
        if self._current_system is None:
            logger.error("Current system not found: %s", self.exploration.current_system_id)
            return

        center = self._current_system.position
        nearby = self.persistence.load_chunk(
            galaxy,
            center,
            self.config.chunk_load_radius,
            self.config.max_loaded_systems,
            include_unexplored=True,
            explored=self.exploration.explored_systems,
        )
        self._loaded_systems = {s.id: s for s in nearby}
        self._nearby_stars = galaxy.stars_in_radius(center, self.config.chunk_load_radius / 2)
        logger.debug("Loaded %d systems and %d stars", len(nearby), len(self._nearby_stars))

    def travel_to(self, system_id: str) -> bool:
        """Jump to ``system_id``. Returns False if no such system exists."""
        galaxy = self._require_galaxy()
        target = galaxy.get_system(system_id)
        if target is None:
            logger.error("System not found: %s", system_id)
            return False

        cx, cy = self._current_system.position if self._current_system else (0.0, 0.0)
        distance = math.hypot(target.x - cx, target.y - cy)

        self.exploration.current_system_id = system_id
        self.exploration.distance_traveled += distance
        if not self.is_explored(system_id):
            self.exploration.systems_visited += 1
        self.explore_system(system_id)
        self.exploration.visited_locations.append(
            VisitedLocation(system_id=system_id, timestamp=time.time(), coordinates=target.position)
        )

        self._load_current_area()
        logger.info("Traveled to %s (%.1f ly)", target.name, distance)
        return True

    def explore_system(self, system_id: str) -> None:
        """Mark a system and all its planets explored. No-op if already explored."""
        galaxy = self._require_galaxy()
        if not self.exploration.mark_system_explored(system_id):
            return

        system = galaxy.get_system(system_id)
        if system is not None:
            for planet in system.planets:
                self.discover_planet(planet.id)

        self.exploration.update_progress(len(galaxy.systems))
        logger.debug("System explored: %s", system_id)

    def discover_planet(self, planet_id: str) -> None:
        if self.exploration.mark_planet_discovered(planet_id):
            logger.debug("Planet discovered: %s", planet_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _require_galaxy(self) -> Galaxy:
        if self.galaxy is None:
            raise RuntimeError("GalaxyManager.initialize() has not been called")
        return self.galaxy

    @property
    def current_system(self) -> StarSystem | None:
        return self._current_system

    @property
    def home_system(self) -> StarSystem | None:
        if not self.exploration.home_system_id:
            return None
        return self.get_system(self.exploration.home_system_id)

    @property
    def loaded_systems(self) -> list[StarSystem]:
        return list(self._loaded_systems.values())

    @property
    def nearby_stars(self) -> list[Star]:
        return list(self._nearby_stars)

    def get_system(self, system_id: str) -> StarSystem | None:
        return self._loaded_systems.get(system_id) or self._require_galaxy().get_system(system_id)

    def stars_in_radius(self, center: tuple[float, float], radius: float) -> list[Star]:
        return self._require_galaxy().stars_in_radius(center, radius)

    def systems_in_radius(self, center: tuple[float, float], radius: float) -> list[StarSystem]:
        return self._require_galaxy().systems_in_radius(center, radius)

    def search_systems(self, query: str) -> list[StarSystem]:
        return self._require_galaxy().search_systems(query)

    def system_distance(self, first_id: str, second_id: str) -> float:
        """Distance in light years, or -1 if either system is unknown."""
        first = self.get_system(first_id)
        second = self.get_system(second_id)
        if first is None or second is None:
            return -1.0
        return math.hypot(second.x - first.x, second.y - first.y)

    def is_explored(self, system_id: str) -> bool:
        return system_id in self.exploration.explored_systems

    def is_planet_discovered(self, planet_id: str) -> bool:
        return planet_id in self.exploration.discovered_planets

    def stats(self) -> GalaxyStats:
        galaxy = self._require_galaxy()
        return GalaxyStats(
            total_stars=len(galaxy.stars),
            total_systems=len(galaxy.systems),
            explored_systems=len(self.exploration.explored_systems),
            discovered_planets=len(self.exploration.discovered_planets),
            systems_visited=self.exploration.systems_visited,
            distance_traveled=self.exploration.distance_traveled,
            current_system_name=self._current_system.name if self._current_system else "Unknown",
            galaxy_size=galaxy.config.size,
            exploration_progress=self.exploration.discovery_progress,
        )

    def storage_stats(self) -> dict[str, Any]:
        return self.persistence.storage_stats()

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_galaxy(self) -> str:
        return self.persistence.export_snapshot()

    def import_galaxy(self, text: str, progress: ProgressCallback | None = None) -> None:
        """Replace the stored save with ``text`` and re-initialize from it."""
        self.persistence.import_snapshot(text)
        self.persistence.chunks.clear()
        self.state = ManagerState.UNINITIALIZED
        self.initialize(progress)
