"""Procedural spiral-galaxy generation for Starweave."""

from __future__ import annotations

import dataclasses
import logging
import math
import numbers
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from ..constants import (
    ASTEROID_BELT_CHANCE,
    DEFAULT_ARM_TIGHTNESS,
    DEFAULT_CORE_SIZE,
    DEFAULT_SEED,
    DEFAULT_SIZE,
    DEFAULT_SPIRAL_ARMS,
    DEFAULT_STAR_COUNT,
    DEFAULT_STAR_DENSITY,
    SYSTEM_CHANCE,
)
from ..exceptions import ConfigurationError
from .planets import AsteroidBelt, Planet, generate_belt, generate_planet, habitable_zone
from .rng import SeededRandom
from .stars import Star, derive_properties, star_id, star_name

logger = logging.getLogger(__name__)

# progress(percent, message); called between generation phases and batches
ProgressCallback = Callable[[int, str], None]

# Persisted snapshots use camelCase keys
_CAMEL_KEYS: dict[str, str] = {
    "seed": "seed",
    "size": "size",
    "star_count": "starCount",
    "spiral_arms": "spiralArms",
    "arm_tightness": "armTightness",
    "core_size": "coreSize",
    "star_density": "starDensity",
    "system_chance": "systemChance",
    "asteroid_belt_chance": "asteroidBeltChance",
}


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class GalaxyConfig:
    """Generation parameters. Together with the seed they fully determine a galaxy."""

    seed: int = DEFAULT_SEED
    size: float = DEFAULT_SIZE  # Galaxy radius in light years
    star_count: int = DEFAULT_STAR_COUNT
    spiral_arms: int = DEFAULT_SPIRAL_ARMS
    arm_tightness: float = DEFAULT_ARM_TIGHTNESS  # How tightly the arms wind
    core_size: float = DEFAULT_CORE_SIZE  # Radius of the galactic core
    star_density: float = DEFAULT_STAR_DENSITY
    system_chance: float = SYSTEM_CHANCE  # Chance a star has a planetary system
    asteroid_belt_chance: float = ASTEROID_BELT_CHANCE

    def __post_init__(self) -> None:
        if not _is_int(self.seed):
            raise ConfigurationError(f"seed must be an integer, got {self.seed!r}")
        if not _is_int(self.star_count) or self.star_count < 0:
            raise ConfigurationError(f"star_count must be a non-negative integer, got {self.star_count!r}")
        if not _is_int(self.spiral_arms) or self.spiral_arms < 1:
            raise ConfigurationError(f"spiral_arms must be a positive integer, got {self.spiral_arms!r}")
        for name in ("size", "core_size"):
            value = getattr(self, name)
            if not _is_number(value) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive number, got {value!r}")
        for name in ("arm_tightness", "star_density"):
            value = getattr(self, name)
            if not _is_number(value) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative number, got {value!r}")
        for name in ("system_chance", "asteroid_belt_chance"):
            value = getattr(self, name)
            if not _is_number(value) or not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be between 0 and 1, got {value!r}")

    @classmethod
    def from_dict(cls, data: Any) -> GalaxyConfig:
        """Build a config from snake_case or persisted camelCase keys."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"Galaxy config must be a mapping, got {type(data).__name__}")
        if "seed" not in data:
            raise ConfigurationError("Galaxy config is missing 'seed'")
        values: dict[str, Any] = {}
        for name, camel in _CAMEL_KEYS.items():
            if name in data:
                values[name] = data[name]
            elif camel in data:
                values[name] = data[camel]
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {camel: getattr(self, name) for name, camel in _CAMEL_KEYS.items()}

    def replace(self, **changes: Any) -> GalaxyConfig:
        return dataclasses.replace(self, **changes)


@dataclass
class StarSystem:
    """A star together with its planets. Its id is the owning star's id."""

    id: str
    name: str
    star: Star
    planets: list[Planet] = field(default_factory=list)  # Ascending orbit distance
    asteroid_belts: list[AsteroidBelt] = field(default_factory=list)
    habitable_zone_inner: float = 0.0  # AU
    habitable_zone_outer: float = 0.0
    system_age: float = 0.0  # Million years, from the star
    metallicity: float = 0.0

    @property
    def position(self) -> tuple[float, float]:
        return self.star.position

    @property
    def x(self) -> float:
        return self.star.x

    @property
    def y(self) -> float:
        return self.star.y


# ---------------------------------------------------------------------------
# Galaxy generation
# ---------------------------------------------------------------------------


class Galaxy:
    """Procedurally generated spiral galaxy of stars and star systems."""

    def __init__(self, config: GalaxyConfig | None = None, progress: ProgressCallback | None = None) -> None:
        self.config = config if config is not None else GalaxyConfig()
        self.rng = SeededRandom(self.config.seed)
        self.stars: list[Star] = []
        self.systems: dict[str, StarSystem] = {}
        self._stars_by_id: dict[str, Star] = {}

        self._generate(progress)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def _generate(self, progress: ProgressCallback | None) -> None:
        """Place stars, derive their properties, then build planetary systems."""
        report = progress or (lambda percent, message: None)
        logger.info(
            "Generating galaxy (seed=%d, size=%.0f ly, stars=%d)",
            self.config.seed, self.config.size, self.config.star_count,
        )
        started = time.perf_counter()
        try:
            report(10, "Creating star positions...")
            self._place_stars()

            report(30, "Calculating stellar properties...")
            self._derive_star_properties()

            report(50, "Generating planetary systems...")
            self._generate_systems(report)

            report(100, "Galaxy generation complete!")
        except Exception:
            logger.exception("Galaxy generation failed")
            raise

        logger.info(
            "Galaxy generated in %.2f ms (%d stars, %d systems)",
            (time.perf_counter() - started) * 1000, len(self.stars), len(self.systems),
        )

    def _place_stars(self) -> None:
        for i in range(self.config.star_count):
            x, y = self._spiral_position()
            star = Star(id=star_id(i), name=star_name(i), x=x, y=y)
            self.stars.append(star)
            self._stars_by_id[star.id] = star
        logger.debug("Placed %d stars", len(self.stars))

    def _spiral_position(self) -> tuple[float, float]:
        """Sample a position along one of the spiral arms."""
        cfg = self.config
        # Power law: 0 = center, 1 = edge
        normalized_radius = self.rng.next() ** 0.7
        radius = normalized_radius * cfg.size

        arm = math.floor(self.rng.next() * cfg.spiral_arms)
        arm_offset = arm * 2 * math.pi / cfg.spiral_arms
        spiral_angle = arm_offset + normalized_radius * cfg.arm_tightness * 4 * math.pi

        angle_noise = (self.rng.next() - 0.5) * 0.5
        radius_noise = (self.rng.next() - 0.5) * 0.2 * radius

        angle = spiral_angle + angle_noise
        final_radius = max(0.0, radius + radius_noise)
        return math.cos(angle) * final_radius, math.sin(angle) * final_radius

    def _derive_star_properties(self) -> None:
        for star in self.stars:
            derive_properties(star, self.rng, self.config.core_size)
        logger.debug("Derived properties for %d stars", len(self.stars))

    def _generate_systems(self, report: ProgressCallback) -> None:
        """Roll for a system around every star, in fixed-size batches.

        The progress hook runs between batches so a host loop can pump its
        events; it has no effect on the draw order.
        """
        total = len(self.stars)
        batch_size = max(10, total // 20)

        for start in range(0, total, batch_size):
            for star in self.stars[start:start + batch_size]:
                if self.rng.next() < self.config.system_chance:
                    self.systems[star.id] = self._generate_system(star)

            percent = 50 + math.floor(start / total * 35)
            report(percent, f"Generated {len(self.systems)} star systems...")

        logger.debug("Generated %d star systems", len(self.systems))

    def _generate_system(self, star: Star) -> StarSystem:
        hz_inner, hz_outer = habitable_zone(star.luminosity)
        system = StarSystem(
            id=star.id,
            name=f"{star.name} System",
            star=star,
            habitable_zone_inner=hz_inner,
            habitable_zone_outer=hz_outer,
            system_age=star.age,
            metallicity=star.metallicity,
        )

        planet_count = self.rng.integer(0, 7)
        orbit = self.rng.range(0.1, 0.5)
        for i in range(planet_count):
            system.planets.append(generate_planet(self.rng, star, i, orbit, hz_inner, hz_outer))
            # Each orbit is 1.4–2x wider than the last
            orbit *= self.rng.range(1.4, 2.0)

        if self.rng.next() < self.config.asteroid_belt_chance:
            system.asteroid_belts.append(generate_belt(self.rng, star, orbit))

        return system

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def planet_count(self) -> int:
        return sum(len(s.planets) for s in self.systems.values())

    def get_star(self, star_id: str) -> Star | None:
        return self._stars_by_id.get(star_id)

    def get_system(self, system_id: str) -> StarSystem | None:
        return self.systems.get(system_id)

    def all_stars(self) -> list[Star]:
        return list(self.stars)

    def all_systems(self) -> list[StarSystem]:
        return list(self.systems.values())

    def stars_in_radius(self, center: tuple[float, float], radius: float) -> list[Star]:
        """Stars within ``radius`` of ``center``, in generation order."""
        cx, cy = center
        return [s for s in self.stars if s.distance_to(cx, cy) <= radius]

    def systems_in_radius(self, center: tuple[float, float], radius: float) -> list[StarSystem]:
        return [
            self.systems[s.id] for s in self.stars_in_radius(center, radius)
            if s.id in self.systems
        ]

    def search_systems(self, query: str, limit: int = 20) -> list[StarSystem]:
        needle = query.lower()
        matches = [
            s for s in self.systems.values()
            if needle in s.name.lower() or needle in s.star.name.lower()
        ]
        return matches[:limit]


def generate_galaxy(config: GalaxyConfig | None = None, progress: ProgressCallback | None = None) -> Galaxy:
    """Generate a galaxy. Pure function of ``config`` (seed included)."""
    return Galaxy(config, progress)
